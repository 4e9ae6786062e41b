"""Periodic removal of expired cache entries.

Runs independently of request traffic so memory stays bounded even when
keys are never read again.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

import structlog

from nyaarr.domain.ports.cache import CachePort

log = structlog.get_logger(__name__)


class CacheSweeper:
    """Background task calling ``sweep()`` on each cache every interval."""

    def __init__(
        self,
        caches: Sequence[CachePort],
        *,
        interval_seconds: float = 1800.0,
    ) -> None:
        self._caches = list(caches)
        self._interval = interval_seconds

    async def sweep_once(self) -> int:
        removed = 0
        for cache in self._caches:
            try:
                removed += await cache.sweep()
            except Exception:
                log.warning("cache_sweep_failed", exc_info=True)
        log.info("cache_sweep_done", removed=removed)
        return removed

    async def run_forever(self) -> None:
        """Sweep every interval until cancelled."""
        log.info("cache_sweeper_started", interval_seconds=self._interval)
        while True:
            await asyncio.sleep(self._interval)
            await self.sweep_once()
