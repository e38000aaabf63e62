"""In-memory cache for testing and single-process deployments."""

import copy
import time
from collections.abc import Callable
from typing import Any

from chronicle.cache.base import Cache


class InMemoryCache(Cache):
    """Dict-backed cache with lazy expiry.

    Values are deep-copied on the way in and out so callers never share
    state with the cache.
    """

    def __init__(
        self,
        default_ttl: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize empty cache.

        Args:
            default_ttl: Seconds applied when set() is called without a ttl;
                None keeps entries until deleted
            clock: Monotonic time source in seconds
        """
        self._default_ttl = default_ttl
        self._clock = clock
        self._entries: dict[str, tuple[Any, float | None]] = {}

    async def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and self._clock() >= expires_at:
            del self._entries[key]
            return None
        return copy.deepcopy(value)

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        ttl = ttl if ttl is not None else self._default_ttl
        expires_at = self._clock() + ttl if ttl is not None else None
        self._entries[key] = (copy.deepcopy(value), expires_at)

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        """Clear all entries (test utility)."""
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
