"""Kitsu API client (``kitsu:`` ids)."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from nyaarr.domain.ports.cache import CachePort

log = structlog.get_logger(__name__)

_BASE_URL = "https://kitsu.io/api/edge"
_TTL_ANIME = 1_800


class HttpxKitsuClient:
    """Implements ``AnimeMetadataPort`` via the Kitsu JSON:API."""

    def __init__(
        self,
        *,
        http_client: httpx.AsyncClient,
        cache: CachePort,
        base_url: str = _BASE_URL,
        timeout_seconds: float = 8.0,
        ttl_seconds: int = _TTL_ANIME,
    ) -> None:
        self._http = http_client
        self._cache = cache
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout_seconds
        self._ttl = ttl_seconds

    async def get_anime(self, anime_id: str) -> dict[str, Any] | None:
        """Return the ``attributes`` object of ``/anime/{id}`` or None."""
        cache_key = f"kitsu:anime:{anime_id}"
        cached = await self._cache.get(cache_key)
        if cached is not None:
            return cached

        url = f"{self._base_url}/anime/{anime_id}"
        try:
            resp = await self._http.get(
                url,
                headers={"Accept": "application/vnd.api+json"},
                timeout=self._timeout,
            )
            if resp.status_code == 404:
                log.debug("kitsu_anime_not_found", anime_id=anime_id)
                return None
            resp.raise_for_status()
            attributes = (resp.json().get("data") or {}).get("attributes")
        except httpx.HTTPError:
            log.warning("kitsu_request_failed", anime_id=anime_id, exc_info=True)
            return None
        except (ValueError, AttributeError):
            log.warning("kitsu_invalid_json", anime_id=anime_id)
            return None

        if not isinstance(attributes, dict):
            return None

        await self._cache.set(cache_key, attributes, ttl=self._ttl)
        return attributes
