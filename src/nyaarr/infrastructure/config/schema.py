"""Pydantic configuration models with validation."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import (
    AliasChoices,
    AliasPath,
    BaseModel,
    Field,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

Environment = Literal["dev", "test", "prod"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console"]
CacheBackendName = Literal["memory", "diskcache", "redis"]


class CacheConfig(BaseSettings):
    """Cache configuration (backend-agnostic)."""

    backend: CacheBackendName = Field(
        default="memory",
        description=(
            "Cache backend: 'memory' (process-local), 'diskcache' (SQLite)"
            " or 'redis'"
        ),
    )
    directory: Path = Field(
        default=Path("./cache/nyaarr"),
        description="Diskcache directory (only when backend=diskcache)",
    )
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL (only when backend=redis)",
    )
    sweep_interval_seconds: float = Field(
        default=1800.0,
        description="Interval between expired-entry sweeps (seconds).",
    )

    title_ttl_seconds: int = Field(
        default=86_400,
        description="TTL for resolved title lists (titles are stable).",
    )
    empty_title_ttl_seconds: int = Field(
        default=60,
        description="TTL for empty title resolutions so they are retried soon.",
    )
    search_ttl_seconds: int = Field(
        default=1_800,
        description="TTL for torrent search results (new releases appear).",
    )
    empty_search_ttl_seconds: int = Field(
        default=120,
        description="TTL for searches that found nothing, so they are retried soon.",
    )
    conversion_ttl_seconds: int = Field(
        default=3_600,
        description="TTL for debrid conversion results (links expire).",
    )
    metadata_ttl_seconds: int = Field(
        default=1_800,
        description="TTL for raw metadata lookups (Kitsu/Cinemeta/AniList).",
    )

    model_config = SettingsConfigDict(
        env_prefix="CACHE_",  # Env vars: CACHE_BACKEND, CACHE_REDIS_URL, ...
        case_sensitive=False,
    )

    @field_validator(
        "title_ttl_seconds",
        "empty_title_ttl_seconds",
        "search_ttl_seconds",
        "empty_search_ttl_seconds",
        "conversion_ttl_seconds",
        "metadata_ttl_seconds",
    )
    @classmethod
    def _validate_ttl(cls, v: int) -> int:
        if v < 0:
            raise ValueError("cache TTLs must be >= 0")
        return v


class MetadataConfig(BaseModel):
    """Metadata collaborators used to derive search titles."""

    kitsu_url: str = Field(
        default="https://kitsu.io/api/edge",
        description="Kitsu REST API base URL (kitsu: namespace).",
    )
    cinemeta_url: str = Field(
        default="https://v3-cinemeta.strem.io",
        description="Cinemeta base URL (IMDb id -> English name).",
    )
    anilist_url: str = Field(
        default="https://graphql.anilist.co",
        description="AniList GraphQL endpoint (fuzzy search by name).",
    )
    timeout_seconds: float = Field(
        default=8.0,
        description="Per-call timeout for metadata lookups.",
    )
    anilist_per_page: int = Field(
        default=10,
        description="Max AniList candidates fetched per name search.",
    )
    match_threshold: float = Field(
        default=0.3,
        description="Minimum word-overlap score for an AniList candidate.",
    )


class SearchConfig(BaseModel):
    """Torrent index search and release ranking."""

    nyaa_url: str = Field(
        default="https://nyaa.si",
        description="Nyaa base URL.",
    )
    category: str = Field(
        default="1_2",
        description="Nyaa category filter (1_2 = Anime, English-translated).",
    )
    filter: int = Field(
        default=0,
        description="Nyaa filter (0 = no filter, 1 = no remakes, 2 = trusted).",
    )
    max_pages: int = Field(
        default=1,
        description="Result pages fetched per query (75 rows per page).",
    )
    max_concurrent_queries: int = Field(
        default=16,
        description="Max parallel index queries per discovery run.",
    )
    timeout_seconds: float = Field(
        default=10.0,
        description="Per-query timeout for the torrent index.",
    )
    preferred_groups: list[str] = Field(
        default=["SubsPlease", "Erai-raws", "EMBER", "ASW"],
        description="Release groups in preference order (ranking tie-breaker).",
    )
    season_keywords: dict[str, int] = Field(
        default={
            "Mugen Train": 2,
            "Yuukaku-hen": 2,
            "Entertainment District": 2,
            "Katanakaji no Sato-hen": 3,
            "Swordsmith Village": 3,
            "Hashira Geiko-hen": 4,
            "Hashira Training": 4,
            "Shippuden": 2,
            "Shippuuden": 2,
            "Boruto": 3,
            "Shibuya Incident": 2,
            "Kaigyoku": 2,
            "Kai Kaichou": 2,
        },
        description=(
            "Arc/subtitle keywords mapped to the season they identify. "
            "Franchise-specific heuristic; extend per deployment."
        ),
    )

    @field_validator("max_pages", "max_concurrent_queries")
    @classmethod
    def _validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be > 0")
        return v


class DebridConfig(BaseModel):
    """Debrid conversion (RealDebrid)."""

    realdebrid_url: str = Field(
        default="https://api.real-debrid.com/rest/1.0",
        description="RealDebrid REST API base URL.",
    )
    no_account_sentinel: str = Field(
        default="nord",
        description="Account key meaning 'no debrid account configured'.",
    )
    add_timeout_seconds: float = Field(
        default=12.0,
        description="Timeout for the addMagnet call.",
    )
    call_timeout_seconds: float = Field(
        default=10.0,
        description="Timeout for every other provider call.",
    )
    poll_interval_seconds: float = Field(
        default=2.0,
        description="Sleep between status polls.",
    )
    poll_attempts: int = Field(
        default=10,
        description="Max status polls before giving up.",
    )
    first_attempt_timeout_seconds: float = Field(
        default=8.0,
        description=(
            "How long the click-through waits before answering with a "
            "placeholder; the conversion keeps running in the background."
        ),
    )
    pending_placeholder_url: str | None = Field(
        default=None,
        description="Video URL served while a conversion is still running.",
    )


class StremioConfig(BaseModel):
    """Stremio addon surface."""

    addon_id: str = Field(default="community.nyaarr")
    addon_name: str = Field(default="Nyaarr")
    addon_version: str = Field(default="0.1.0")
    base_url: str | None = Field(
        default=None,
        description=(
            "Public base URL used to build conversion-trigger links. "
            "Derived from the incoming request when unset."
        ),
    )
    max_streams: int = Field(
        default=20,
        description="Max stream candidates returned per request.",
    )
    min_seeders: int = Field(
        default=1,
        description="Torrents below this seeder count are not offered.",
    )
    placeholder_url: str = Field(
        default="https://nyaa.si",
        description="Target of 'not found' placeholder streams.",
    )


class AppConfig(BaseModel):
    """
    Canonical application configuration (validated, final).

    Note:
    - YAML is expected to be sectioned (http/logging/cache/metadata/...).
    - Environment variables are handled by EnvOverrides(BaseSettings) to allow strict
      precedence control (defaults < YAML < ENV < CLI) in load.py.
    """

    app_name: str = Field(default="nyaarr", description="Application name.")
    environment: Environment = Field(
        default="dev",
        description="Runtime environment (affects defaults like log format).",
    )

    # HTTP (YAML section: http.*)
    http_timeout_seconds: float = Field(
        default=10.0,
        validation_alias=AliasChoices(
            "http_timeout_seconds",
            AliasPath("http", "timeout_seconds"),
        ),
        description="Default timeout for outgoing HTTP requests.",
    )
    http_user_agent: str = Field(
        default="Nyaarr/0.1.0",
        validation_alias=AliasChoices(
            "http_user_agent",
            AliasPath("http", "user_agent"),
        ),
        description="User-Agent for outgoing HTTP requests.",
    )

    # Logging (YAML section: logging.*)
    log_level: LogLevel = Field(
        default="INFO",
        validation_alias=AliasChoices(
            "log_level",
            AliasPath("logging", "level"),
        ),
        description="Log level.",
    )
    log_format: Optional[LogFormat] = Field(
        default=None,
        validation_alias=AliasChoices(
            "log_format",
            AliasPath("logging", "format"),
        ),
        description=(
            "Log renderer format (console/json). If unset, derived from environment."
        ),
    )

    cache: CacheConfig = Field(default_factory=CacheConfig)
    metadata: MetadataConfig = Field(default_factory=MetadataConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    debrid: DebridConfig = Field(default_factory=DebridConfig)
    stremio: StremioConfig = Field(default_factory=StremioConfig)

    @field_validator("http_timeout_seconds")
    @classmethod
    def _validate_http_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("http_timeout_seconds must be > 0")
        return v

    @model_validator(mode="after")
    def _derive_defaults(self) -> "AppConfig":
        # Default log format: console in dev/test, json in prod.
        if self.log_format is None:
            self.log_format = "json" if self.environment == "prod" else "console"
        return self

    def to_sectioned_dict(self) -> dict[str, Any]:
        """
        Dump configuration in the sectioned shape used by config.yaml/docs.
        """
        return {
            "app_name": self.app_name,
            "environment": self.environment,
            "http": {
                "timeout_seconds": self.http_timeout_seconds,
                "user_agent": self.http_user_agent,
            },
            "logging": {
                "level": self.log_level,
                "format": self.log_format,
            },
            "cache": self.cache.model_dump(),
            "metadata": self.metadata.model_dump(),
            "search": self.search.model_dump(),
            "debrid": self.debrid.model_dump(),
            "stremio": self.stremio.model_dump(),
        }


class EnvOverrides(BaseSettings):
    """
    Environment-variable overrides (all optional).

    Intended usage:
    - load.py creates EnvOverrides() to read NYAARR_* variables,
      converts to dict of set values, merges into YAML/defaults,
      then validates AppConfig.

    Supported env var examples (flat, explicit):
    - NYAARR_LOG_LEVEL
    - NYAARR_CACHE_BACKEND
    - NYAARR_CACHE_DIR
    - NYAARR_BASE_URL
    - NYAARR_PENDING_PLACEHOLDER_URL
    """

    model_config = SettingsConfigDict(
        env_prefix="NYAARR_",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: Optional[str] = None
    environment: Optional[Environment] = None

    http_timeout_seconds: Optional[float] = None
    http_user_agent: Optional[str] = None

    log_level: Optional[LogLevel] = None
    log_format: Optional[LogFormat] = None

    cache_backend: Optional[CacheBackendName] = None
    cache_dir: Optional[Path] = None
    cache_redis_url: Optional[str] = None

    nyaa_url: Optional[str] = None
    base_url: Optional[str] = None
    pending_placeholder_url: Optional[str] = None

    def to_update_dict(self) -> dict[str, Any]:
        """
        Return only values that were actually provided (non-None), for merging.
        """
        return self.model_dump(exclude_none=True)
