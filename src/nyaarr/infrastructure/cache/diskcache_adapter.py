"""Diskcache adapter - SQLite-backed cache, no daemon, survives restarts."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Optional

import structlog
from diskcache import Cache as DiskCache

log = structlog.get_logger(__name__)


class DiskcacheAdapter:
    """Async wrapper around the synchronous ``diskcache.Cache``.

    - Disk I/O runs in ``asyncio.to_thread`` so the event loop never blocks.
    - A semaphore bounds parallel disk operations (SQLite lock contention).
    - diskcache stores an absolute expiry per entry and hides expired ones
      on read; ``sweep()`` maps to ``Cache.expire()``, which deletes them.

    Args:
        directory: Cache directory (created on open).
        ttl_seconds: TTL used when ``set()`` gets none.
        max_concurrent: Max parallel disk operations.
    """

    def __init__(
        self,
        directory: str | Path = "./cache/nyaarr",
        ttl_seconds: int = 3600,
        max_concurrent: int = 10,
    ) -> None:
        self.directory = Path(directory)
        self.default_ttl = ttl_seconds
        self._cache: DiskCache | None = None
        self._semaphore = asyncio.Semaphore(max_concurrent)

        log.info(
            "diskcache_adapter_init",
            directory=str(self.directory),
            default_ttl=ttl_seconds,
            max_concurrent=max_concurrent,
        )

    # --- Context Manager ---
    async def __aenter__(self) -> DiskcacheAdapter:
        if self._cache is None:
            self._cache = await asyncio.to_thread(DiskCache, str(self.directory))
            log.info("diskcache_opened", directory=str(self.directory))
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._cache is None:
            return
        await asyncio.to_thread(self._cache.close)
        self._cache = None
        log.info("diskcache_closed", directory=str(self.directory))

    def _require_cache(self) -> DiskCache:
        if self._cache is None:
            raise RuntimeError("DiskcacheAdapter used outside 'async with'")
        return self._cache

    # --- CachePort implementation ---
    async def get(self, key: str) -> Optional[Any]:
        cache = self._require_cache()
        async with self._semaphore:
            value = await asyncio.to_thread(cache.get, key, None)
        log.debug("cache_get", key=key, hit=value is not None)
        return value

    async def set(self, key: str, value: Any, *, ttl: int | None = None) -> None:
        cache = self._require_cache()
        expire = self.default_ttl if ttl is None else ttl
        if expire <= 0:
            # Zero lifetime: the entry is invalid the moment it is written.
            await self.delete(key)
            return

        async with self._semaphore:
            await asyncio.to_thread(cache.set, key, value, expire=expire)
        log.debug("cache_set", key=key, ttl=expire)

    async def delete(self, key: str) -> bool:
        if self._cache is None:
            return False
        cache = self._cache
        async with self._semaphore:
            deleted = await asyncio.to_thread(cache.delete, key)
        log.debug("cache_delete", key=key, deleted=deleted)
        return bool(deleted)

    async def exists(self, key: str) -> bool:
        if self._cache is None:
            return False
        cache = self._cache
        async with self._semaphore:
            # Cache.__contains__ honours expiry.
            return await asyncio.to_thread(cache.__contains__, key)

    async def clear(self) -> None:
        if self._cache is None:
            return
        cache = self._cache
        async with self._semaphore:
            removed = await asyncio.to_thread(cache.clear)
        log.warning("cache_cleared", directory=str(self.directory), removed=removed)

    async def sweep(self) -> int:
        """Delete expired entries from disk; returns how many were removed."""
        if self._cache is None:
            return 0
        cache = self._cache
        async with self._semaphore:
            removed = await asyncio.to_thread(cache.expire)
        log.debug("cache_swept", directory=str(self.directory), removed=removed)
        return removed
