"""Key/value cache backends."""

from chronicle.cache.base import Cache
from chronicle.cache.inmemory import InMemoryCache
from chronicle.cache.redis import RedisCache

__all__ = [
    "Cache",
    "InMemoryCache",
    "RedisCache",
]
