"""Shared fixtures for integration tests.

These tests use real infrastructure components (NyaaClient, metadata
clients, MemoryCacheAdapter, load_config) with mocked HTTP via respx.
"""

from __future__ import annotations

import os

import httpx
import pytest
import respx


@pytest.fixture()
async def http_client() -> httpx.AsyncClient:
    """Real httpx.AsyncClient for use with respx mocking."""
    async with httpx.AsyncClient() as client:
        yield client


@pytest.fixture()
def respx_mock() -> respx.MockRouter:
    """Explicit respx mock router for request interception."""
    with respx.mock(assert_all_called=False) as router:
        yield router


@pytest.fixture(autouse=True)
def _clean_nyaarr_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep host NYAARR_* variables out of config precedence tests."""
    for name in list(os.environ):
        if name.startswith(("NYAARR_", "CACHE_")):
            monkeypatch.delenv(name, raising=False)
