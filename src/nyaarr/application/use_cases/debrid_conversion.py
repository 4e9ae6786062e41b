"""Debrid conversion use case: magnet -> direct playable URL.

Per (magnet, account) key the conversion is either cached (READY),
running (one task in the in-flight registry) or idle. Failures are never
cached, so the next request starts over.
"""

from __future__ import annotations

import asyncio
import hashlib
from collections.abc import Awaitable, Callable

import structlog

from nyaarr.domain.entities import ConversionResult, ConversionStatus, DebridError
from nyaarr.domain.ports.cache import CachePort
from nyaarr.domain.ports.debrid import DebridProviderPort
from nyaarr.domain.ports.in_flight import InFlightPort

log = structlog.get_logger(__name__)

_SleepFn = Callable[[float], Awaitable[None]]

# RealDebrid states from which no download link will ever appear.
_DEAD_STATUSES = frozenset({"magnet_error", "error", "virus", "dead"})

_PENDING = ConversionResult(ConversionStatus.PENDING)
_FAILED = ConversionResult(ConversionStatus.FAILED)


class DebridConversionUseCase:
    """Coalescing, cached magnet conversion against a debrid provider."""

    def __init__(
        self,
        *,
        provider: DebridProviderPort,
        cache: CachePort,
        in_flight: InFlightPort,
        ttl_seconds: int = 3_600,
        poll_interval_seconds: float = 2.0,
        poll_attempts: int = 10,
        first_attempt_timeout_seconds: float = 8.0,
        sleep: _SleepFn = asyncio.sleep,
    ) -> None:
        self._provider = provider
        self._cache = cache
        self._in_flight = in_flight
        self._ttl = ttl_seconds
        self._poll_interval = poll_interval_seconds
        self._poll_attempts = poll_attempts
        self._first_attempt_timeout = first_attempt_timeout_seconds
        self._sleep = sleep

    @staticmethod
    def cache_key(magnet: str, account_key: str) -> str:
        # Hashed so API keys never end up in cache keys.
        digest = hashlib.sha256(f"{magnet}\x00{account_key}".encode()).hexdigest()
        return f"conversion:{digest}"

    async def _cached(self, key: str) -> ConversionResult | None:
        url = await self._cache.get(key)
        if url:
            log.debug("debrid_conversion_cache_hit", key=key)
            return ConversionResult(ConversionStatus.READY, url)
        return None

    def _start(self, key: str, magnet: str, account_key: str) -> asyncio.Task[ConversionResult]:
        log.info("debrid_conversion_started", key=key)
        return self._in_flight.start(key, self._run(key, magnet, account_key))

    async def convert(self, magnet: str, account_key: str) -> ConversionResult:
        """Convert, joining an already running conversion for the same key."""
        key = self.cache_key(magnet, account_key)
        cached = await self._cached(key)
        if cached is not None:
            return cached

        task = self._in_flight.get(key)
        if task is None:
            task = self._start(key, magnet, account_key)
        else:
            log.info("debrid_conversion_joined", key=key)

        # Shielded: a cancelled caller must not cancel the shared task.
        return await asyncio.shield(task)

    async def convert_with_deadline(
        self,
        magnet: str,
        account_key: str,
        timeout: float | None = None,
    ) -> ConversionResult:
        """Bounded first attempt for click-through playback.

        Returns PENDING when another request is already converting this
        key, or when *timeout* elapses first. The conversion keeps running
        in the background and fills the cache for the next request.
        """
        key = self.cache_key(magnet, account_key)
        cached = await self._cached(key)
        if cached is not None:
            return cached

        if key in self._in_flight:
            log.info("debrid_conversion_in_progress", key=key)
            return _PENDING

        task = self._start(key, magnet, account_key)
        deadline = self._first_attempt_timeout if timeout is None else timeout
        done, _ = await asyncio.wait({task}, timeout=deadline)
        if task in done:
            return task.result()

        log.info("debrid_conversion_deferred", key=key, timeout=deadline)
        return _PENDING

    async def _run(self, key: str, magnet: str, account_key: str) -> ConversionResult:
        try:
            url = await self._convert(magnet, account_key)
        except DebridError as exc:
            log.warning(
                "debrid_conversion_failed", key=key, step=exc.step, reason=exc.message
            )
            return _FAILED
        except Exception:
            log.exception("debrid_conversion_crashed", key=key)
            return _FAILED

        await self._cache.set(key, url, ttl=self._ttl)
        log.info("debrid_conversion_ready", key=key)
        return ConversionResult(ConversionStatus.READY, url)

    async def _convert(self, magnet: str, api_key: str) -> str:
        torrent_id = await self._provider.add_magnet(magnet, api_key)
        if not torrent_id:
            raise DebridError("add_magnet", "no torrent id returned")

        info = await self._provider.get_info(torrent_id, api_key)
        files = info.get("files") or []
        if not files:
            raise DebridError("get_info", "empty file list")

        file_ids = [int(f.get("id", idx)) for idx, f in enumerate(files, start=1)]
        await self._provider.select_files(torrent_id, file_ids, api_key)

        link = await self._poll_for_link(torrent_id, api_key)

        url = await self._provider.unrestrict(link, api_key)
        if not url:
            raise DebridError("unrestrict", "no download url returned")
        return url

    async def _poll_for_link(self, torrent_id: str, api_key: str) -> str:
        for attempt in range(1, self._poll_attempts + 1):
            await self._sleep(self._poll_interval)
            info = await self._provider.get_info(torrent_id, api_key)

            links = info.get("links") or []
            if links:
                return links[0]

            status = info.get("status")
            if status in _DEAD_STATUSES:
                raise DebridError("poll", f"torrent status {status}")
            log.debug(
                "debrid_poll_waiting",
                torrent_id=torrent_id,
                attempt=attempt,
                status=status,
                progress=info.get("progress"),
            )

        raise DebridError("poll", f"no link after {self._poll_attempts} attempts")
