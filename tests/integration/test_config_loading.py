"""Integration tests for configuration loading with layered precedence.

Tests the real load_config() function with actual YAML files, environment
variables, and CLI overrides to verify precedence: defaults < YAML < ENV < CLI.
"""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from nyaarr.infrastructure.config.load import load_config
from nyaarr.interfaces.cli.cli import _parse_args, build_cli_overrides

pytestmark = pytest.mark.integration


@pytest.fixture()
def yaml_config(tmp_path: Path) -> Path:
    """Write a minimal YAML config and return its path."""
    config = {
        "app_name": "nyaarr-test",
        "environment": "test",
        "http": {
            "timeout_seconds": 15.0,
            "user_agent": "TestAgent/1.0",
        },
        "logging": {"level": "DEBUG", "format": "console"},
        "cache": {"search_ttl_seconds": 600},
        "search": {"preferred_groups": ["EMBER"], "max_pages": 2},
        "debrid": {"poll_attempts": 4},
        "stremio": {"max_streams": 5},
    }
    path = tmp_path / "config.yaml"
    path.write_text(yaml.dump(config), encoding="utf-8")
    return path


class TestDefaultsOnly:
    """Load with no YAML, no ENV, no CLI: pure defaults."""

    def test_defaults_produce_valid_config(self) -> None:
        config = load_config()
        assert config.app_name == "nyaarr"
        assert config.environment == "dev"
        assert config.http_timeout_seconds == 10.0
        assert config.log_level == "INFO"
        assert config.log_format == "console"  # dev -> console
        assert config.cache.backend == "memory"
        assert config.cache.title_ttl_seconds == 86_400
        assert config.cache.empty_title_ttl_seconds == 60
        assert config.cache.empty_search_ttl_seconds == 120
        assert config.search.nyaa_url == "https://nyaa.si"
        assert config.search.category == "1_2"
        assert config.debrid.no_account_sentinel == "nord"
        assert config.stremio.base_url is None
        assert config.stremio.max_streams == 20

    def test_defaults_derive_log_format_from_environment(self) -> None:
        config = load_config(cli_overrides={"environment": "prod"})
        assert config.log_format == "json"

    def test_default_season_keywords(self) -> None:
        config = load_config()
        assert config.search.season_keywords["Mugen Train"] == 2
        assert config.search.season_keywords["Swordsmith Village"] == 3


class TestYamlOverrides:
    """YAML values override defaults."""

    def test_yaml_overrides_defaults(self, yaml_config: Path) -> None:
        config = load_config(config_path=yaml_config)
        assert config.app_name == "nyaarr-test"
        assert config.environment == "test"
        assert config.http_timeout_seconds == 15.0
        assert config.http_user_agent == "TestAgent/1.0"
        assert config.log_level == "DEBUG"
        assert config.cache.search_ttl_seconds == 600
        assert config.search.preferred_groups == ["EMBER"]
        assert config.search.max_pages == 2
        assert config.debrid.poll_attempts == 4
        assert config.stremio.max_streams == 5

    def test_yaml_file_not_found_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(config_path=tmp_path / "nonexistent.yaml")

    def test_yaml_partial_override_preserves_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "partial.yaml"
        path.write_text(yaml.dump({"cache": {"backend": "redis"}}), encoding="utf-8")

        config = load_config(config_path=path)
        assert config.cache.backend == "redis"
        assert config.cache.sweep_interval_seconds == 1800  # default preserved
        assert config.app_name == "nyaarr"

    def test_empty_yaml_is_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert load_config(config_path=path).app_name == "nyaarr"

    def test_non_mapping_yaml_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ValueError, match="mapping"):
            load_config(config_path=path)

    def test_invalid_value_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text(yaml.dump({"search": {"max_pages": 0}}), encoding="utf-8")
        with pytest.raises(ValidationError):
            load_config(config_path=path)


class TestEnvOverrides:
    """Environment variables override YAML and defaults."""

    def test_env_overrides_yaml(
        self, yaml_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("NYAARR_LOG_LEVEL", "WARNING")
        monkeypatch.setenv("NYAARR_HTTP_TIMEOUT_SECONDS", "60.0")

        config = load_config(config_path=yaml_config)
        assert config.log_level == "WARNING"
        assert config.http_timeout_seconds == 60.0
        # YAML values not overridden by ENV stay
        assert config.app_name == "nyaarr-test"

    def test_env_flat_keys_land_in_sections(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("NYAARR_CACHE_BACKEND", "redis")
        monkeypatch.setenv("NYAARR_CACHE_REDIS_URL", "redis://cache:6379/1")
        monkeypatch.setenv("NYAARR_NYAA_URL", "https://nyaa.example")
        monkeypatch.setenv("NYAARR_BASE_URL", "https://addon.example.org")
        monkeypatch.setenv("NYAARR_PENDING_PLACEHOLDER_URL", "https://cdn.example/w.mp4")

        config = load_config()
        assert config.cache.backend == "redis"
        assert config.cache.redis_url == "redis://cache:6379/1"
        assert config.search.nyaa_url == "https://nyaa.example"
        assert config.stremio.base_url == "https://addon.example.org"
        assert config.debrid.pending_placeholder_url == "https://cdn.example/w.mp4"

    def test_env_selects_diskcache_directory(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("NYAARR_CACHE_BACKEND", "diskcache")
        monkeypatch.setenv("NYAARR_CACHE_DIR", str(tmp_path / "nyaarr-cache"))

        config = load_config()
        assert config.cache.backend == "diskcache"
        assert config.cache.directory == tmp_path / "nyaarr-cache"

    def test_env_overrides_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("NYAARR_ENVIRONMENT", "prod")

        config = load_config()
        assert config.environment == "prod"
        assert config.log_format == "json"  # prod -> json

    def test_dotenv_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        dotenv = tmp_path / ".env"
        dotenv.write_text("NYAARR_LOG_LEVEL=ERROR\n", encoding="utf-8")
        # load_dotenv writes into os.environ; let monkeypatch undo it.
        monkeypatch.setenv("NYAARR_LOG_LEVEL", "")
        monkeypatch.delenv("NYAARR_LOG_LEVEL")

        config = load_config(dotenv_path=dotenv)
        assert config.log_level == "ERROR"

    def test_dotenv_missing_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(dotenv_path=tmp_path / "missing.env")


class TestCliOverrides:
    """CLI overrides beat everything (highest precedence)."""

    def test_cli_overrides_yaml_and_env(
        self, yaml_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("NYAARR_LOG_LEVEL", "WARNING")

        config = load_config(
            config_path=yaml_config,
            cli_overrides={"log_level": "ERROR"},
        )
        assert config.log_level == "ERROR"

    def test_cli_overrides_with_sectioned_format(self, yaml_config: Path) -> None:
        config = load_config(
            config_path=yaml_config,
            cli_overrides={"http": {"timeout_seconds": 5.0}},
        )
        assert config.http_timeout_seconds == 5.0

    def test_parsed_arguments_become_overrides(self) -> None:
        args = _parse_args(
            ["--log-level", "DEBUG", "--base-url", "https://addon.example.org", "--port", "8080"]
        )
        overrides = build_cli_overrides(args)
        assert overrides == {
            "log_level": "DEBUG",
            "base_url": "https://addon.example.org",
        }

        config = load_config(cli_overrides=overrides)
        assert config.log_level == "DEBUG"
        assert config.stremio.base_url == "https://addon.example.org"
