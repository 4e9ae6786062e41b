"""In-memory TTL cache - process-local, no persistence across restarts."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Optional

import structlog

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    """Stored value with its creation timestamp and lifetime (seconds)."""

    value: Any
    created_at: float
    ttl: float


def is_valid(entry: CacheEntry | None, ttl: float, now: float) -> bool:
    """An entry is valid iff its age is strictly below *ttl*."""
    return entry is not None and now - entry.created_at < ttl


class MemoryCacheAdapter:
    """Async dict-backed cache implementing ``CachePort``.

    - No eviction on write; ``sweep()`` removes expired entries.
    - Reads check validity themselves, so a sweep never changes what a
      concurrent reader observes.
    - Each mutation touches a single key; safe for single-threaded asyncio.

    Args:
        ttl_seconds: Default TTL for ``set()`` without explicit value.
        clock: Time source (seconds); injectable for tests.
    """

    def __init__(
        self,
        ttl_seconds: int = 3600,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.default_ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

        log.info("memory_cache_init", default_ttl=ttl_seconds)

    # --- Context Manager ---
    async def __aenter__(self) -> MemoryCacheAdapter:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        self._entries.clear()
        log.info("memory_cache_closed")

    def __len__(self) -> int:
        return len(self._entries)

    # --- CachePort implementation ---
    async def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        hit = entry is not None and is_valid(entry, entry.ttl, self._clock())
        log.debug("cache_get", key=key, hit=hit)
        return entry.value if hit else None

    async def set(self, key: str, value: Any, *, ttl: int | None = None) -> None:
        expire_time = ttl if ttl is not None else self.default_ttl
        self._entries[key] = CacheEntry(
            value=value, created_at=self._clock(), ttl=expire_time
        )
        log.debug("cache_set", key=key, ttl=expire_time)

    async def delete(self, key: str) -> bool:
        deleted = self._entries.pop(key, None) is not None
        log.debug("cache_delete", key=key, deleted=deleted)
        return deleted

    async def exists(self, key: str) -> bool:
        entry = self._entries.get(key)
        return entry is not None and is_valid(entry, entry.ttl, self._clock())

    async def clear(self) -> None:
        self._entries.clear()
        log.warning("cache_cleared")

    async def sweep(self) -> int:
        """Drop every entry older than its TTL."""
        now = self._clock()
        expired = [
            key
            for key, entry in list(self._entries.items())
            if not is_valid(entry, entry.ttl, now)
        ]
        for key in expired:
            self._entries.pop(key, None)
        log.debug("cache_swept", removed=len(expired), remaining=len(self._entries))
        return len(expired)
