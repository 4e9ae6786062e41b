"""Title resolution use case.

Stremio id -> metadata lookups -> ordered list of search titles + year.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any

import structlog

from nyaarr.domain.entities import MediaKind, TitleResolution, parse_media_id
from nyaarr.domain.ports.cache import CachePort
from nyaarr.domain.ports.metadata import (
    AnimeMetadataPort,
    AnimeSearchPort,
    CinemetaPort,
)

log = structlog.get_logger(__name__)

# Type aliases for injected pure functions.
_SelectTitlesFn = Callable[[Sequence[str | None]], list[str]]
_ScoreFn = Callable[[str, str], float]

_TV_FORMATS = frozenset({"TV", "TV_SHORT"})
_MOVIE_FORMATS = frozenset({"MOVIE"})


def _year_from_date(value: Any) -> int | None:
    if not isinstance(value, str) or len(value) < 4:
        return None
    try:
        return int(value[:4])
    except ValueError:
        return None


def _candidate_titles(candidate: dict[str, Any]) -> list[str]:
    titles = candidate.get("title") or {}
    return [t for t in (titles.get("romaji"), titles.get("english")) if t]


class TitleResolver:
    """Derives search titles for a media id, cached per base id.

    ``kitsu:`` ids are answered by the anime metadata service directly.
    Everything else goes through Cinemeta (English name) and a fuzzy
    AniList search whose best match contributes its romanized title.
    """

    def __init__(
        self,
        *,
        anime_metadata: AnimeMetadataPort,
        cinemeta: CinemetaPort,
        anime_search: AnimeSearchPort,
        cache: CachePort,
        select_titles_fn: _SelectTitlesFn,
        score_fn: _ScoreFn,
        title_ttl_seconds: int = 86_400,
        empty_title_ttl_seconds: int = 60,
        match_threshold: float = 0.3,
    ) -> None:
        self._anime_metadata = anime_metadata
        self._cinemeta = cinemeta
        self._anime_search = anime_search
        self._cache = cache
        self._select_titles = select_titles_fn
        self._score = score_fn
        self._title_ttl = title_ttl_seconds
        self._empty_ttl = empty_title_ttl_seconds
        self._threshold = match_threshold

    async def resolve(self, media_kind: MediaKind, external_id: str) -> TitleResolution:
        media_id = parse_media_id(media_kind, external_id)
        cache_key = f"titles:{media_kind}:{media_id.namespace}:{media_id.base_id}"

        cached = await self._cache.get(cache_key)
        if cached is not None:
            log.debug("title_resolver_cache_hit", external_id=external_id)
            return cached

        if media_id.namespace == "kitsu":
            resolution = await self._from_anime_metadata(media_id.base_id)
        else:
            resolution = await self._from_cinemeta(media_kind, media_id.base_id)

        # Empty results expire quickly so the next request retries.
        ttl = self._title_ttl if resolution.names else self._empty_ttl
        await self._cache.set(cache_key, resolution, ttl=ttl)

        log.info(
            "title_resolved",
            external_id=external_id,
            names=list(resolution.names),
            year=resolution.year,
        )
        return resolution

    async def _from_anime_metadata(self, anime_id: str) -> TitleResolution:
        attrs = await self._anime_metadata.get_anime(anime_id)
        if not attrs:
            return TitleResolution()

        titles = attrs.get("titles") or {}
        names = self._select_titles(
            [titles.get("en_jp"), titles.get("en"), attrs.get("canonicalTitle")]
        )
        return TitleResolution(
            names=tuple(names), year=_year_from_date(attrs.get("startDate"))
        )

    async def _from_cinemeta(self, media_kind: MediaKind, imdb_id: str) -> TitleResolution:
        name = await self._cinemeta.get_name(media_kind, imdb_id)
        if not name:
            return TitleResolution()

        candidates = await self._anime_search.search(name)
        if not candidates:
            log.debug("anime_search_empty", name=name)
            return TitleResolution(names=tuple(self._select_titles([name])))

        best = self.pick_candidate(name, media_kind, candidates)
        romaji = (best.get("title") or {}).get("romaji")
        names = self._select_titles([name, romaji]) or [name]
        year = (best.get("startDate") or {}).get("year")
        return TitleResolution(
            names=tuple(names), year=year if isinstance(year, int) else None
        )

    def pick_candidate(
        self,
        name: str,
        media_kind: MediaKind,
        candidates: Sequence[dict[str, Any]],
    ) -> dict[str, Any]:
        """Best-scoring candidate, preferring the requested format.

        Falls back to the first candidate when nothing reaches the
        match threshold.
        """
        wanted = _TV_FORMATS if media_kind == "series" else _MOVIE_FORMATS

        scored: list[tuple[float, int, dict[str, Any]]] = []
        for idx, candidate in enumerate(candidates):
            score = max(
                (self._score(name, t) for t in _candidate_titles(candidate)),
                default=0.0,
            )
            if score >= self._threshold:
                scored.append((score, idx, candidate))

        if not scored:
            return candidates[0]

        # Highest score first; search order breaks ties.
        scored.sort(key=lambda item: (-item[0], item[1]))
        for _, _, candidate in scored:
            if candidate.get("format") in wanted:
                return candidate
        return scored[0][2]
