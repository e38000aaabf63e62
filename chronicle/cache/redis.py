"""Redis implementation of Cache."""

import json
from typing import Any

import redis.asyncio as redis

from chronicle.cache.base import Cache
from chronicle.db.errors import ConnectionError
from chronicle.observability.logging import get_logger

logger = get_logger(__name__)


class RedisCache(Cache):
    """Redis-backed cache.

    Values are stored as JSON strings with `SET ... EX` when a TTL applies.
    Redis errors are logged and raised as ConnectionError.
    """

    def __init__(
        self,
        client: redis.Redis,
        key_prefix: str = "",
        default_ttl: int | None = None,
    ) -> None:
        """Initialize Redis cache.

        Args:
            client: Redis client instance
            key_prefix: Prepended to every key as "{prefix}:{key}"
            default_ttl: Seconds applied when set() is called without a ttl
        """
        self._client = client
        self._key_prefix = key_prefix
        self._default_ttl = default_ttl

    def _make_key(self, key: str) -> str:
        if not self._key_prefix:
            return key
        return f"{self._key_prefix}:{key}"

    async def get(self, key: str) -> Any | None:
        try:
            data = await self._client.get(self._make_key(key))
        except redis.RedisError as e:
            logger.error("redis_cache_get_error", key=key, error=str(e))
            raise ConnectionError(f"Failed to read cache key {key}: {e}", cause=e) from e

        if data is None:
            return None
        if isinstance(data, bytes):
            data = data.decode()
        return json.loads(data)

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        ttl = ttl if ttl is not None else self._default_ttl
        try:
            await self._client.set(self._make_key(key), json.dumps(value), ex=ttl)
        except redis.RedisError as e:
            logger.error("redis_cache_set_error", key=key, error=str(e))
            raise ConnectionError(f"Failed to write cache key {key}: {e}", cause=e) from e

    async def delete(self, key: str) -> None:
        try:
            await self._client.delete(self._make_key(key))
        except redis.RedisError as e:
            logger.error("redis_cache_delete_error", key=key, error=str(e))
            raise ConnectionError(f"Failed to delete cache key {key}: {e}", cause=e) from e

    async def health_check(self) -> bool:
        """Check if Redis is reachable."""
        try:
            return bool(await self._client.ping())
        except redis.RedisError as e:
            logger.warning("redis_cache_health_check_failed", error=str(e))
            return False
