"""Tests for RedisCache with a mocked client."""

import json
from unittest.mock import AsyncMock

import pytest
import redis.asyncio as redis

from chronicle.cache import RedisCache
from chronicle.db.errors import ConnectionError


@pytest.fixture
def client() -> AsyncMock:
    client = AsyncMock()
    client.get.return_value = None
    return client


class TestRedisCache:
    """Tests for key handling, encoding and error wrapping."""

    @pytest.mark.asyncio
    async def test_get_missing(self, client):
        assert await RedisCache(client).get("k") is None
        client.get.assert_awaited_once_with("k")

    @pytest.mark.asyncio
    async def test_get_decodes_json(self, client):
        client.get.return_value = b'{"a": 1}'

        assert await RedisCache(client).get("k") == {"a": 1}

    @pytest.mark.asyncio
    async def test_get_decodes_str_response(self, client):
        client.get.return_value = '["a", "b"]'

        assert await RedisCache(client).get("k") == ["a", "b"]

    @pytest.mark.asyncio
    async def test_set_encodes_json_with_ttl(self, client):
        await RedisCache(client, default_ttl=30).set("k", {"a": 1})

        client.set.assert_awaited_once_with("k", json.dumps({"a": 1}), ex=30)

    @pytest.mark.asyncio
    async def test_set_without_ttl(self, client):
        await RedisCache(client).set("k", 1)

        client.set.assert_awaited_once_with("k", "1", ex=None)

    @pytest.mark.asyncio
    async def test_explicit_ttl_overrides_default(self, client):
        await RedisCache(client, default_ttl=30).set("k", 1, ttl=5)

        assert client.set.await_args.kwargs["ex"] == 5

    @pytest.mark.asyncio
    async def test_key_prefix(self, client):
        cache = RedisCache(client, key_prefix="chronicle")

        await cache.get("audit:__index__")
        await cache.delete("audit:a1")

        client.get.assert_awaited_once_with("chronicle:audit:__index__")
        client.delete.assert_awaited_once_with("chronicle:audit:a1")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method,args", [
        ("get", ("k",)),
        ("set", ("k", 1)),
        ("delete", ("k",)),
    ])
    async def test_redis_errors_wrapped(self, client, method, args):
        error = redis.ConnectionError("connection refused")
        getattr(client, method).side_effect = error

        with pytest.raises(ConnectionError) as exc_info:
            await getattr(RedisCache(client), method)(*args)

        assert exc_info.value.cause is error

    @pytest.mark.asyncio
    async def test_health_check(self, client):
        client.ping.return_value = True
        assert await RedisCache(client).health_check() is True

        client.ping.side_effect = redis.ConnectionError("down")
        assert await RedisCache(client).health_check() is False
