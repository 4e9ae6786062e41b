"""AniList GraphQL client for fuzzy anime search by name."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from nyaarr.domain.ports.cache import CachePort

log = structlog.get_logger(__name__)

_ENDPOINT = "https://graphql.anilist.co"

SEARCH_QUERY = """
query ($search: String, $perPage: Int) {
  Page(page: 1, perPage: $perPage) {
    media(search: $search, type: ANIME, sort: SEARCH_MATCH) {
      format
      title { romaji english native }
      startDate { year }
    }
  }
}
"""


class HttpxAniListClient:
    """Implements ``AnimeSearchPort``.

    GraphQL errors come back with HTTP 200 and an ``errors`` list; those
    are treated like transport failures (empty result).
    """

    def __init__(
        self,
        *,
        http_client: httpx.AsyncClient,
        cache: CachePort,
        endpoint: str = _ENDPOINT,
        timeout_seconds: float = 8.0,
        per_page: int = 10,
        ttl_seconds: int = 1_800,
    ) -> None:
        self._http = http_client
        self._cache = cache
        self._endpoint = endpoint
        self._timeout = timeout_seconds
        self._per_page = per_page
        self._ttl = ttl_seconds

    async def search(self, name: str) -> list[dict[str, Any]]:
        cache_key = f"anilist:search:{name.casefold()}"
        cached = await self._cache.get(cache_key)
        if cached is not None:
            return cached

        body = {
            "query": SEARCH_QUERY,
            "variables": {"search": name, "perPage": self._per_page},
        }
        try:
            resp = await self._http.post(
                self._endpoint,
                json=body,
                headers={"Accept": "application/json"},
                timeout=self._timeout,
            )
            resp.raise_for_status()
            payload = resp.json()
            errors = payload.get("errors")
            media = ((payload.get("data") or {}).get("Page") or {}).get("media")
        except httpx.HTTPError:
            log.warning("anilist_request_failed", name=name, exc_info=True)
            return []
        except (ValueError, AttributeError):
            log.warning("anilist_invalid_json", name=name)
            return []

        if errors:
            log.warning("anilist_graphql_errors", name=name, errors=errors)
            return []

        if not isinstance(media, list):
            media = []
        results = [m for m in media if isinstance(m, dict)]
        log.debug("anilist_search_done", name=name, count=len(results))

        if results:
            await self._cache.set(cache_key, results, ttl=self._ttl)
        return results
