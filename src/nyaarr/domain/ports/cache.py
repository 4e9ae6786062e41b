"""Cache Port - Interface for backend-agnostic caching strategies."""

from __future__ import annotations

from typing import Any, Protocol


class CachePort(Protocol):
    """Port for async key-value cache with per-entry TTL.

    Implementations:
      - MemoryCacheAdapter (process-local dict, periodic sweep)
      - DiskcacheAdapter (SQLite via diskcache, sweep = Cache.expire())
      - RedisAdapter (Redis async client, native expiry)

    An entry is valid iff ``now - created_at < ttl``. Invalid entries are
    treated as absent on read.

    Each adapter MUST support async context-manager semantics:
        async with cache:
            await cache.set("key", value, ttl=60)
    """

    async def get(self, key: str) -> Any:
        """Retrieve value. None = not found / expired."""
        ...

    async def set(self, key: str, value: Any, *, ttl: int | None = None) -> None:
        """Set value, stamping the current time. Optional TTL (seconds)."""
        ...

    async def delete(self, key: str) -> bool:
        """Delete key. True = deleted, False = did not exist."""
        ...

    async def exists(self, key: str) -> bool:
        """Check if key exists (not expired)."""
        ...

    async def clear(self) -> None:
        """Delete ALL keys."""
        ...

    async def sweep(self) -> int:
        """Remove expired entries. Returns the number of removed keys."""
        ...

    async def aclose(self) -> None:
        """Cleanup hook (e.g. close Redis connection)."""
        ...

    # Context-Manager Support (optional, implemented by adapters)
    async def __aenter__(self) -> CachePort: ...

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None: ...
