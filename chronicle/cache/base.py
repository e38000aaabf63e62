"""Cache interface shared by in-process and Redis backends."""

from abc import ABC, abstractmethod
from typing import Any


class Cache(ABC):
    """Abstract key/value cache with optional per-entry TTL.

    Values are JSON-compatible (dicts, lists, strings, numbers, booleans,
    None). A missing or expired key reads as None.
    """

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Return the value stored at key, or None if absent."""
        pass

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        """Store a value.

        Args:
            key: Cache key
            value: JSON-compatible value
            ttl: Seconds until expiry; None uses the cache default
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove a key; missing keys are ignored."""
        pass
