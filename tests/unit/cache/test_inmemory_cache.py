"""Tests for InMemoryCache."""

import pytest

from chronicle.cache import InMemoryCache


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


class TestInMemoryCache:
    """Tests for get/set/delete and expiry."""

    @pytest.mark.asyncio
    async def test_missing_key(self):
        assert await InMemoryCache().get("missing") is None

    @pytest.mark.asyncio
    async def test_set_and_get(self):
        cache = InMemoryCache()
        await cache.set("k", {"a": [1, 2]})

        assert await cache.get("k") == {"a": [1, 2]}

    @pytest.mark.asyncio
    async def test_values_are_copied(self):
        cache = InMemoryCache()
        value = {"a": [1]}
        await cache.set("k", value)
        value["a"].append(2)

        stored = await cache.get("k")
        stored["a"].append(3)

        assert await cache.get("k") == {"a": [1]}

    @pytest.mark.asyncio
    async def test_delete(self):
        cache = InMemoryCache()
        await cache.set("k", 1)
        await cache.delete("k")
        await cache.delete("never-set")

        assert await cache.get("k") is None

    @pytest.mark.asyncio
    async def test_ttl_expiry(self, clock):
        cache = InMemoryCache(clock=clock)
        await cache.set("k", "v", ttl=10)

        clock.now += 9
        assert await cache.get("k") == "v"

        clock.now += 1
        assert await cache.get("k") is None
        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_default_ttl(self, clock):
        cache = InMemoryCache(default_ttl=5, clock=clock)
        await cache.set("k", "v")

        clock.now += 5

        assert await cache.get("k") is None

    @pytest.mark.asyncio
    async def test_explicit_ttl_overrides_default(self, clock):
        cache = InMemoryCache(default_ttl=5, clock=clock)
        await cache.set("k", "v", ttl=60)

        clock.now += 30

        assert await cache.get("k") == "v"

    @pytest.mark.asyncio
    async def test_set_refreshes_expiry(self, clock):
        cache = InMemoryCache(clock=clock)
        await cache.set("k", "v1", ttl=10)
        clock.now += 8
        await cache.set("k", "v2", ttl=10)
        clock.now += 8

        assert await cache.get("k") == "v2"

    @pytest.mark.asyncio
    async def test_clear(self):
        cache = InMemoryCache()
        await cache.set("a", 1)
        await cache.set("b", 2)

        cache.clear()

        assert len(cache) == 0
        assert await cache.get("a") is None
