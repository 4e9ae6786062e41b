"""Cinemeta client: IMDb id -> English display name."""

from __future__ import annotations

import httpx
import structlog

from nyaarr.domain.entities.media import MediaKind
from nyaarr.domain.ports.cache import CachePort

log = structlog.get_logger(__name__)

_BASE_URL = "https://v3-cinemeta.strem.io"


class HttpxCinemetaClient:
    """Implements ``CinemetaPort``."""

    def __init__(
        self,
        *,
        http_client: httpx.AsyncClient,
        cache: CachePort,
        base_url: str = _BASE_URL,
        timeout_seconds: float = 8.0,
        ttl_seconds: int = 1_800,
    ) -> None:
        self._http = http_client
        self._cache = cache
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout_seconds
        self._ttl = ttl_seconds

    async def get_name(self, media_kind: MediaKind, imdb_id: str) -> str | None:
        cache_key = f"cinemeta:{media_kind}:{imdb_id}"
        cached = await self._cache.get(cache_key)
        if cached is not None:
            return cached

        url = f"{self._base_url}/meta/{media_kind}/{imdb_id}.json"
        try:
            resp = await self._http.get(url, timeout=self._timeout)
            resp.raise_for_status()
            meta = resp.json().get("meta") or {}
        except httpx.HTTPError:
            log.warning("cinemeta_request_failed", imdb_id=imdb_id, exc_info=True)
            return None
        except (ValueError, AttributeError):
            log.warning("cinemeta_invalid_json", imdb_id=imdb_id)
            return None

        name = meta.get("name") if isinstance(meta, dict) else None
        if not name:
            log.debug("cinemeta_name_missing", imdb_id=imdb_id)
            return None

        await self._cache.set(cache_key, name, ttl=self._ttl)
        return name
