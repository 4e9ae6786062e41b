from __future__ import annotations

import argparse
import os
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import structlog
import uvicorn

from nyaarr.infrastructure.config import load_config
from nyaarr.infrastructure.logging.setup import configure_logging
from nyaarr.interfaces.main import build_app

log = structlog.get_logger(__name__)

DEFAULT_PORT = 7000

# argparse dest -> flat config key understood by load_config()
_CONFIG_FLAGS = {
    "log_level": "log_level",
    "log_format": "log_format",
    "base_url": "base_url",
}


def _parse_args(argv: Iterable[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="nyaarr",
        description="Stremio addon serving anime torrents from Nyaa.",
    )

    server = parser.add_argument_group("server")
    server.add_argument("--host", default=None, help="Bind host (default: $HOST or 0.0.0.0).")
    server.add_argument(
        "--port", default=None, type=int, help=f"Bind port (default: $PORT or {DEFAULT_PORT})."
    )

    config = parser.add_argument_group("configuration")
    config.add_argument("--config", default=None, help="YAML config file.")
    config.add_argument("--dotenv", default=None, help=".env file with NYAARR_* variables.")
    config.add_argument(
        "--log-level", default=None, choices=["DEBUG", "INFO", "WARNING", "ERROR"]
    )
    config.add_argument("--log-format", default=None, choices=["json", "console"])
    config.add_argument(
        "--base-url",
        default=None,
        help="Public base URL used in RealDebrid click-through links.",
    )

    return parser.parse_args(argv)


def build_cli_overrides(args: argparse.Namespace) -> dict[str, Any]:
    """Flat overrides for the flags that were actually given."""
    return {
        key: getattr(args, dest)
        for dest, key in _CONFIG_FLAGS.items()
        if getattr(args, dest, None)
    }


def start(argv: Iterable[str] | None = None) -> None:
    """Process entrypoint: load config once, then serve the app."""
    args = _parse_args(sys.argv[1:] if argv is None else argv)

    host = args.host or os.getenv("HOST", "0.0.0.0")
    port = int(args.port or os.getenv("PORT", str(DEFAULT_PORT)))

    config = load_config(
        config_path=Path(args.config) if args.config else None,
        dotenv_path=Path(args.dotenv) if args.dotenv else None,
        cli_overrides=build_cli_overrides(args),
    )

    log_config = configure_logging(config)
    log.info("nyaarr_starting", host=host, port=port, environment=config.environment)

    uvicorn.run(build_app(config), host=host, port=port, log_config=log_config)


if __name__ == "__main__":
    raise SystemExit(start())
