"""Torrent discovery use case.

Titles -> query variants -> parallel index search -> dedup -> filter -> rank.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable, Sequence
from typing import Optional, Protocol

import structlog

from nyaarr.domain.entities import TorrentRecord
from nyaarr.domain.ports.cache import CachePort
from nyaarr.domain.ports.torrent_index import TorrentIndexPort

log = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# Protocols for injected helpers (satisfied structurally by infrastructure).
# ---------------------------------------------------------------------------


class _ReleaseMatcher(Protocol):
    def deduplicate(self, records: Iterable[TorrentRecord]) -> list[TorrentRecord]: ...

    def is_junk(self, name: str) -> bool: ...

    def matches_episode(self, name: str, episode: int) -> bool: ...

    def matches_season(self, name: str, season: int) -> bool: ...


class _Ranker(Protocol):
    def rank(self, records: Sequence[TorrentRecord]) -> list[TorrentRecord]: ...


_QueryFn = Callable[[str, Optional[int]], list[str]]


class TorrentDiscoveryUseCase:
    """Finds, filters and ranks torrents for a set of titles.

    The first title is searched on its own; the remaining titles are only
    searched when it yields nothing after filtering, and their records are
    merged with it before the final dedup and ranking.

    Results are cached for ``search_ttl_seconds``; empty results only for
    ``empty_search_ttl_seconds``.
    """

    def __init__(
        self,
        *,
        index: TorrentIndexPort,
        cache: CachePort,
        query_fn: _QueryFn,
        matcher: _ReleaseMatcher,
        ranker: _Ranker,
        search_ttl_seconds: int = 1_800,
        empty_search_ttl_seconds: int = 120,
        max_concurrent_queries: int = 16,
        query_timeout_seconds: float = 15.0,
    ) -> None:
        self._index = index
        self._cache = cache
        self._query_fn = query_fn
        self._matcher = matcher
        self._ranker = ranker
        self._ttl = search_ttl_seconds
        self._empty_ttl = empty_search_ttl_seconds
        self._max_concurrent = max_concurrent_queries
        self._query_timeout = query_timeout_seconds

    @staticmethod
    def cache_key(titles: Sequence[str], episode: int | None, season: int | None) -> str:
        joined = "|".join(t.casefold() for t in titles)
        return f"search:{joined}:e{episode}:s{season}"

    def build_queries(self, title: str, episode: int | None) -> list[str]:
        """Episode queries first, then title-only queries for batch packs."""
        queries: list[str] = []
        if episode is not None:
            queries.extend(self._query_fn(title, episode))
        for query in self._query_fn(title, None):
            if query not in queries:
                queries.append(query)
        return queries

    async def discover(
        self,
        titles: Sequence[str],
        episode: int | None = None,
        season: int | None = None,
    ) -> list[TorrentRecord]:
        titles = list(dict.fromkeys(t for t in titles if t))
        if not titles:
            return []

        cache_key = self.cache_key(titles, episode, season)
        cached = await self._cache.get(cache_key)
        if cached is not None:
            log.debug("discovery_cache_hit", titles=titles, episode=episode)
            return cached

        raw = await self._collect(titles[0], episode)
        ranked = self._filter_and_rank(raw, episode, season)

        if not ranked and len(titles) > 1:
            log.info(
                "discovery_primary_empty",
                primary=titles[0],
                fallback=titles[1:],
            )
            extra = await asyncio.gather(
                *(self._collect(title, episode) for title in titles[1:])
            )
            for records in extra:
                raw.extend(records)
            ranked = self._filter_and_rank(raw, episode, season)

        log.info(
            "discovery_done",
            titles=titles,
            episode=episode,
            season=season,
            raw=len(raw),
            kept=len(ranked),
        )
        ttl = self._ttl if ranked else self._empty_ttl
        await self._cache.set(cache_key, ranked, ttl=ttl)
        return ranked

    async def _collect(self, title: str, episode: int | None) -> list[TorrentRecord]:
        """Run all query variants concurrently; merge in query order."""
        queries = self.build_queries(title, episode)
        semaphore = asyncio.Semaphore(self._max_concurrent)

        async def _run(query: str) -> list[TorrentRecord]:
            async with semaphore:
                try:
                    return await asyncio.wait_for(
                        self._index.search(query), timeout=self._query_timeout
                    )
                except asyncio.TimeoutError:
                    log.warning("torrent_query_timeout", query=query)
                    return []
                except Exception:
                    log.warning("torrent_query_failed", query=query, exc_info=True)
                    return []

        batches = await asyncio.gather(*(_run(q) for q in queries))
        merged = [record for batch in batches for record in batch]
        log.debug(
            "torrent_queries_done", title=title, queries=len(queries), records=len(merged)
        )
        return merged

    def _filter_and_rank(
        self,
        records: Iterable[TorrentRecord],
        episode: int | None,
        season: int | None,
    ) -> list[TorrentRecord]:
        kept = [
            r for r in self._matcher.deduplicate(records) if not self._matcher.is_junk(r.name)
        ]
        if episode is not None:
            kept = [r for r in kept if self._matcher.matches_episode(r.name, episode)]
        if season is not None:
            kept = [r for r in kept if self._matcher.matches_season(r.name, season)]
        return self._ranker.rank(kept)
