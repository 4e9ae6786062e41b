"""Cache factory - builds the adapter selected in config."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

import structlog

from nyaarr.domain.ports.cache import CachePort
from nyaarr.infrastructure.cache.diskcache_adapter import DiskcacheAdapter
from nyaarr.infrastructure.cache.memory_adapter import MemoryCacheAdapter
from nyaarr.infrastructure.cache.redis_adapter import RedisAdapter

log = structlog.get_logger(__name__)

CacheBackend = Literal["memory", "diskcache", "redis"]


def create_cache(
    backend: CacheBackend = "memory",
    *,
    directory: str | Path = "./cache/nyaarr",
    redis_url: str = "redis://localhost:6379/0",
    ttl_seconds: int = 3600,
) -> CachePort:
    """Create a cache adapter for *backend*.

    Args:
        backend: "memory" (process-local), "diskcache" (SQLite on disk)
            or "redis".
        directory: Cache directory (diskcache backend only).
        redis_url: Redis connection string (redis backend only).
        ttl_seconds: Default TTL for every backend.

    Raises:
        ValueError: If `backend` is unknown.
    """
    if backend == "memory":
        log.info("cache_factory_create", backend=backend, ttl=ttl_seconds)
        return MemoryCacheAdapter(ttl_seconds=ttl_seconds)
    elif backend == "diskcache":
        log.info(
            "cache_factory_create",
            backend=backend,
            directory=str(directory),
            ttl=ttl_seconds,
        )
        return DiskcacheAdapter(directory=directory, ttl_seconds=ttl_seconds)
    elif backend == "redis":
        log.info(
            "cache_factory_create",
            backend=backend,
            url=redis_url,
            ttl=ttl_seconds,
        )
        return RedisAdapter(url=redis_url, ttl_seconds=ttl_seconds)
    else:
        raise ValueError(
            f"Unknown cache backend: {backend!r}. "
            "Must be 'memory', 'diskcache' or 'redis'."
        )
