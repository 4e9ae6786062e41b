"""Tests for RedisAdapter with a mocked redis.asyncio client."""

from __future__ import annotations

import pickle
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import RedisError

from nyaarr.domain.entities import TitleResolution
from nyaarr.infrastructure.cache.redis_adapter import RedisAdapter


@pytest.fixture()
def client() -> AsyncMock:
    mock = AsyncMock()
    mock.get.return_value = None
    mock.delete.return_value = 1
    mock.exists.return_value = 0
    return mock


@pytest.fixture()
def adapter(client: AsyncMock) -> RedisAdapter:
    cache = RedisAdapter(ttl_seconds=120)
    cache._client = client  # noqa: SLF001
    return cache


class TestGet:
    @pytest.mark.asyncio()
    async def test_miss(self, adapter: RedisAdapter, client: AsyncMock) -> None:
        assert await adapter.get("k") is None
        client.get.assert_awaited_once_with("nyaarr:k")

    @pytest.mark.asyncio()
    async def test_hit_unpickles_dataclass(self, adapter, client) -> None:
        value = TitleResolution(names=("Mushishi",), year=2005)
        client.get.return_value = pickle.dumps(value)
        assert await adapter.get("k") == value

    @pytest.mark.asyncio()
    async def test_redis_error_is_a_miss(self, adapter, client) -> None:
        client.get.side_effect = RedisError("down")
        assert await adapter.get("k") is None

    @pytest.mark.asyncio()
    async def test_uninitialized_raises(self) -> None:
        with pytest.raises(RuntimeError):
            await RedisAdapter().get("k")


class TestSet:
    @pytest.mark.asyncio()
    async def test_uses_explicit_ttl(self, adapter, client) -> None:
        await adapter.set("k", "v", ttl=30)
        client.setex.assert_awaited_once_with("nyaarr:k", 30, pickle.dumps("v"))

    @pytest.mark.asyncio()
    async def test_uses_default_ttl(self, adapter, client) -> None:
        await adapter.set("k", "v")
        assert client.setex.await_args.args[1] == 120

    @pytest.mark.asyncio()
    async def test_non_positive_ttl_deletes(self, adapter, client) -> None:
        await adapter.set("k", "v", ttl=0)
        client.setex.assert_not_awaited()
        client.delete.assert_awaited_once_with("nyaarr:k")


class TestSweep:
    @pytest.mark.asyncio()
    async def test_noop(self, adapter, client) -> None:
        assert await adapter.sweep() == 0
