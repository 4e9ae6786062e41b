"""Redis cache adapter (redis.asyncio), for deployments with several workers."""

from __future__ import annotations

import asyncio
import pickle
from typing import Any

import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError

log = structlog.get_logger(__name__)


class RedisAdapter:
    """``CachePort`` backed by Redis.

    - Keys are namespaced with ``key_prefix`` so ``clear()`` only touches
      this addon's entries.
    - Values are pickled; entries expire through ``SETEX``, which makes
      ``sweep()`` a no-op.
    - A semaphore caps concurrent commands so bursts cannot drain the pool.
    - Read and write errors are logged and treated as misses.

    Args:
        url: Redis URL (e.g. ``redis://localhost:6379/0``).
        ttl_seconds: TTL used when ``set()`` gets none.
        max_concurrent: Max in-flight Redis commands.
        key_prefix: Namespace prepended to every key.
    """

    def __init__(
        self,
        url: str = "redis://localhost:6379/0",
        ttl_seconds: int = 3600,
        max_concurrent: int = 50,
        key_prefix: str = "nyaarr:",
    ) -> None:
        self.url = url
        self.default_ttl = ttl_seconds
        self.key_prefix = key_prefix
        self._client: Redis | None = None
        self._semaphore = asyncio.Semaphore(max_concurrent)

        log.info(
            "redis_adapter_init",
            url=url,
            default_ttl=ttl_seconds,
            max_concurrent=max_concurrent,
            key_prefix=key_prefix,
        )

    async def __aenter__(self) -> RedisAdapter:
        if self._client is None:
            # decode_responses=False: values are pickled bytes.
            self._client = Redis.from_url(self.url, decode_responses=False)
            try:
                await self._client.ping()
            except RedisError as e:
                log.error("redis_connection_failed", url=self.url, error=str(e))
                raise
            log.info("redis_connected", url=self.url)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is None:
            return
        await self._client.aclose()
        self._client = None
        log.info("redis_closed")

    def _require_client(self) -> Redis:
        if self._client is None:
            raise RuntimeError("RedisAdapter used outside 'async with'")
        return self._client

    def _key(self, key: str) -> str:
        return f"{self.key_prefix}{key}"

    async def get(self, key: str) -> Any | None:
        client = self._require_client()
        async with self._semaphore:
            try:
                raw = await client.get(self._key(key))
            except RedisError as e:
                log.error("redis_get_error", key=key, error=str(e))
                return None

        if raw is None:
            log.debug("cache_miss", key=key)
            return None
        try:
            value = pickle.loads(raw)
        except (pickle.PickleError, EOFError, AttributeError) as e:
            log.error("redis_unpickle_error", key=key, error=str(e))
            return None
        log.debug("cache_hit", key=key)
        return value

    async def set(self, key: str, value: Any, *, ttl: int | None = None) -> None:
        client = self._require_client()
        expire = self.default_ttl if ttl is None else ttl
        if expire <= 0:
            # Zero lifetime: the entry is invalid the moment it is written.
            await self.delete(key)
            return

        try:
            packed = pickle.dumps(value)
        except (pickle.PickleError, TypeError, AttributeError) as e:
            log.error("redis_pickle_error", key=key, error=str(e))
            return

        async with self._semaphore:
            try:
                await client.setex(self._key(key), expire, packed)
            except RedisError as e:
                log.error("redis_set_error", key=key, error=str(e))
                return
        log.debug("cache_set", key=key, ttl=expire, size_bytes=len(packed))

    async def delete(self, key: str) -> bool:
        if self._client is None:
            return False
        async with self._semaphore:
            try:
                removed = await self._client.delete(self._key(key))
            except RedisError as e:
                log.error("redis_delete_error", key=key, error=str(e))
                return False
        log.debug("cache_delete", key=key, deleted=removed > 0)
        return removed > 0

    async def exists(self, key: str) -> bool:
        if self._client is None:
            return False
        async with self._semaphore:
            try:
                return await self._client.exists(self._key(key)) > 0
            except RedisError as e:
                log.error("redis_exists_error", key=key, error=str(e))
                return False

    async def clear(self) -> None:
        """Delete every key under ``key_prefix``."""
        if self._client is None:
            return
        removed = 0
        async with self._semaphore:
            try:
                async for raw_key in self._client.scan_iter(match=f"{self.key_prefix}*"):
                    removed += await self._client.delete(raw_key)
            except RedisError as e:
                log.error("redis_clear_error", error=str(e))
                return
        log.warning("redis_cleared", prefix=self.key_prefix, removed=removed)

    async def sweep(self) -> int:
        """Redis expires keys itself; nothing to remove here."""
        return 0
