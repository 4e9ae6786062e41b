"""Composition root: dependency injection via FastAPI lifespan."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager, suppress
from typing import AsyncIterator, cast

import httpx
import structlog
from fastapi import FastAPI

from nyaarr.application.use_cases import (
    DebridConversionUseCase,
    StreamPipelineUseCase,
    TitleResolver,
    TorrentDiscoveryUseCase,
)
from nyaarr.infrastructure.cache import CacheSweeper, create_cache
from nyaarr.infrastructure.config.schema import AppConfig
from nyaarr.infrastructure.debrid import RealDebridClient
from nyaarr.infrastructure.matching.query_variants import build_query_variants
from nyaarr.infrastructure.matching.release_filters import ReleaseMatcher
from nyaarr.infrastructure.matching.release_ranker import ReleaseRanker
from nyaarr.infrastructure.matching.title_filters import (
    unique_titles,
    word_overlap_score,
)
from nyaarr.infrastructure.metadata import (
    HttpxAniListClient,
    HttpxCinemetaClient,
    HttpxKitsuClient,
)
from nyaarr.infrastructure.persistence import InFlightRegistry
from nyaarr.infrastructure.stremio import (
    format_candidate_title,
    format_placeholder_title,
)
from nyaarr.infrastructure.torrents import NyaaClient
from nyaarr.interfaces.app_state import AppState

log = structlog.get_logger(__name__)


def _wire_title_resolver(state: AppState, config: AppConfig) -> TitleResolver:
    meta = config.metadata
    ttl = config.cache.metadata_ttl_seconds
    return TitleResolver(
        anime_metadata=HttpxKitsuClient(
            http_client=state.http_client,
            cache=state.cache,
            base_url=meta.kitsu_url,
            timeout_seconds=meta.timeout_seconds,
            ttl_seconds=ttl,
        ),
        cinemeta=HttpxCinemetaClient(
            http_client=state.http_client,
            cache=state.cache,
            base_url=meta.cinemeta_url,
            timeout_seconds=meta.timeout_seconds,
            ttl_seconds=ttl,
        ),
        anime_search=HttpxAniListClient(
            http_client=state.http_client,
            cache=state.cache,
            endpoint=meta.anilist_url,
            timeout_seconds=meta.timeout_seconds,
            per_page=meta.anilist_per_page,
            ttl_seconds=ttl,
        ),
        cache=state.cache,
        select_titles_fn=unique_titles,
        score_fn=word_overlap_score,
        title_ttl_seconds=config.cache.title_ttl_seconds,
        empty_title_ttl_seconds=config.cache.empty_title_ttl_seconds,
        match_threshold=meta.match_threshold,
    )


def _wire_discovery(state: AppState, config: AppConfig) -> TorrentDiscoveryUseCase:
    search = config.search
    index = NyaaClient(
        http_client=state.http_client,
        base_url=search.nyaa_url,
        category=search.category,
        filter_=search.filter,
        max_pages=search.max_pages,
        timeout_seconds=search.timeout_seconds,
    )
    return TorrentDiscoveryUseCase(
        index=index,
        cache=state.cache,
        query_fn=build_query_variants,
        matcher=ReleaseMatcher(search.season_keywords),
        ranker=ReleaseRanker(search.preferred_groups),
        search_ttl_seconds=config.cache.search_ttl_seconds,
        empty_search_ttl_seconds=config.cache.empty_search_ttl_seconds,
        max_concurrent_queries=search.max_concurrent_queries,
        # One page may take a full timeout; leave room for every page.
        query_timeout_seconds=search.timeout_seconds * search.max_pages + 1.0,
    )


def _wire_conversion(state: AppState, config: AppConfig) -> DebridConversionUseCase:
    debrid = config.debrid
    provider = RealDebridClient(
        http_client=state.http_client,
        base_url=debrid.realdebrid_url,
        add_timeout_seconds=debrid.add_timeout_seconds,
        call_timeout_seconds=debrid.call_timeout_seconds,
    )
    return DebridConversionUseCase(
        provider=provider,
        cache=state.cache,
        in_flight=state.in_flight,
        ttl_seconds=config.cache.conversion_ttl_seconds,
        poll_interval_seconds=debrid.poll_interval_seconds,
        poll_attempts=debrid.poll_attempts,
        first_attempt_timeout_seconds=debrid.first_attempt_timeout_seconds,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan Hook: Initialize and cleanup all resources (DI Composition Root).

    Order matters:
        1. Cache (required by every other component)
        2. HTTP client (shared by all collaborators)
        3. In-flight registry
        4. Use cases
        5. Cache sweeper (background task)
    """
    state = cast(AppState, app.state)
    config = state.config

    # 1) Cache
    cache = create_cache(
        backend=config.cache.backend,
        directory=config.cache.directory,
        redis_url=config.cache.redis_url,
        ttl_seconds=config.cache.metadata_ttl_seconds,
    )
    await cache.__aenter__()
    state.cache = cache
    log.info("cache_initialized", backend=config.cache.backend)

    # 2) HTTP client
    state.http_client = httpx.AsyncClient(
        timeout=httpx.Timeout(config.http_timeout_seconds),
        headers={"User-Agent": config.http_user_agent},
        follow_redirects=True,
    )
    log.info("http_client_initialized", timeout=config.http_timeout_seconds)

    # 3) In-progress conversions
    state.in_flight = InFlightRegistry()

    # 4) Use cases
    state.title_resolver = _wire_title_resolver(state, config)
    state.torrent_discovery_uc = _wire_discovery(state, config)
    state.debrid_conversion_uc = _wire_conversion(state, config)
    state.stream_pipeline_uc = StreamPipelineUseCase(
        titles=state.title_resolver,
        discovery=state.torrent_discovery_uc,
        conversion=state.debrid_conversion_uc,
        config=config.stremio,
        format_title_fn=format_candidate_title,
        format_placeholder_fn=format_placeholder_title,
        no_account_sentinel=config.debrid.no_account_sentinel,
    )
    log.info("use_cases_initialized")

    # 5) Cache sweeper
    state.cache_sweeper = CacheSweeper(
        [state.cache], interval_seconds=config.cache.sweep_interval_seconds
    )
    state._sweeper_task = asyncio.create_task(state.cache_sweeper.run_forever())

    log.info("app_startup_complete")

    try:
        yield
    finally:
        if state._sweeper_task is not None:
            state._sweeper_task.cancel()
            with suppress(asyncio.CancelledError):
                await state._sweeper_task
            log.info("cache_sweeper_stopped")

        await state.in_flight.aclose()
        log.info("in_flight_conversions_cancelled")

        await state.http_client.aclose()
        log.info("http_client_closed")

        await state.cache.aclose()
        log.info("cache_closed")

        log.info("app_shutdown_complete")
