"""Shared test fixtures for the Nyaarr test suite."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from nyaarr.domain.entities import TorrentRecord
from nyaarr.infrastructure.cache.memory_adapter import MemoryCacheAdapter


class FakeClock:
    """Manually advanced monotonic clock for TTL tests."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_record(
    name: str,
    info_hash: str = "a" * 40,
    *,
    seeders: int = 10,
    size_label: str = "1.4 GiB",
) -> TorrentRecord:
    """TorrentRecord with a magnet URI matching *info_hash*."""
    return TorrentRecord(
        name=name,
        magnet_uri=f"magnet:?xt=urn:btih:{info_hash}&dn=test",
        info_hash=info_hash.lower(),
        seeders=seeders,
        size_label=size_label,
    )


# ---------------------------------------------------------------------------
# Cache fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def memory_cache(clock: FakeClock) -> MemoryCacheAdapter:
    """Real in-memory cache driven by a fake clock."""
    return MemoryCacheAdapter(ttl_seconds=3600, clock=clock)


@pytest.fixture()
def mock_cache() -> AsyncMock:
    """Mock CachePort (always a miss)."""
    cache = AsyncMock()
    cache.get = AsyncMock(return_value=None)
    cache.set = AsyncMock()
    cache.delete = AsyncMock(return_value=True)
    cache.exists = AsyncMock(return_value=False)
    cache.clear = AsyncMock()
    cache.sweep = AsyncMock(return_value=0)
    cache.aclose = AsyncMock()
    return cache


@pytest.fixture()
def record_factory():
    """Factory fixture around make_record()."""
    return make_record
