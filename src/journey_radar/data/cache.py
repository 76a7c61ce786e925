"""Simple TTL-based cache for derived artifacts (e.g. the shapes collection)."""

import asyncio
import time
from collections.abc import Callable
from typing import Generic, TypeVar

T = TypeVar("T")


class TTLCache(Generic[T]):
    """Single-value TTL cache.

    Stores a single value with time-based expiration. The clock is injectable
    so expiry can be driven deterministically. Uses an async lock to prevent
    concurrent rebuilds.
    """

    def __init__(self, ttl: float = 300.0, clock: Callable[[], float] = time.monotonic):
        """Initialize the cache.

        Args:
            ttl: Time-to-live in seconds for cached values.
            clock: Monotonic clock returning seconds.
        """
        self._ttl = ttl
        self._clock = clock
        self._value: T | None = None
        self._expires_at: float = 0
        self._lock = asyncio.Lock()

    def get(self) -> T | None:
        """Get the cached value if it hasn't expired.

        Returns:
            The cached value if valid, None if expired or not set.
        """
        if self._value is not None and self._clock() < self._expires_at:
            return self._value
        return None

    def set(self, value: T) -> None:
        """Set a value in the cache with TTL."""
        self._value = value
        self._expires_at = self._clock() + self._ttl

    def clear(self) -> None:
        """Clear the cached value."""
        self._value = None
        self._expires_at = 0

    @property
    def lock(self) -> asyncio.Lock:
        """Get the async lock for coordinating rebuilds."""
        return self._lock
