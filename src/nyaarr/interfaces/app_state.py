"""Application state container for FastAPI dependency injection."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
from starlette.datastructures import State

from nyaarr.infrastructure.config import AppConfig

if TYPE_CHECKING:
    import asyncio

    from nyaarr.application.use_cases import (
        DebridConversionUseCase,
        StreamPipelineUseCase,
        TitleResolver,
        TorrentDiscoveryUseCase,
    )
    from nyaarr.domain.ports import CachePort
    from nyaarr.infrastructure.cache import CacheSweeper
    from nyaarr.infrastructure.persistence import InFlightRegistry


class AppState(State):
    """FastAPI application state with all DI resources.

    Lifecycle managed by composition.py::lifespan().
    """

    # Configuration
    config: AppConfig

    # Infrastructure
    cache: CachePort
    http_client: httpx.AsyncClient
    in_flight: InFlightRegistry

    # Use cases
    title_resolver: TitleResolver
    torrent_discovery_uc: TorrentDiscoveryUseCase
    debrid_conversion_uc: DebridConversionUseCase
    stream_pipeline_uc: StreamPipelineUseCase

    # Periodic cache sweep
    cache_sweeper: CacheSweeper
    _sweeper_task: asyncio.Task | None
