"""Hardcoded default configuration values."""

from __future__ import annotations

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "app_name": "nyaarr",
    "environment": "dev",
    "http": {
        "timeout_seconds": 10.0,
        "user_agent": "Nyaarr/0.1.0",
    },
    "logging": {
        "level": "INFO",
        "format": None,  # Derived from environment in schema.py
    },
    "cache": {
        "backend": "memory",
        "sweep_interval_seconds": 1800,
    },
    "metadata": {
        "timeout_seconds": 8.0,
    },
    "search": {
        "category": "1_2",
        "max_pages": 1,
    },
    "debrid": {
        "no_account_sentinel": "nord",
        "poll_interval_seconds": 2.0,
        "poll_attempts": 10,
    },
    "stremio": {
        "max_streams": 20,
        "min_seeders": 1,
    },
}
