"""In-process TTL cache for the active landing document."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from time import monotonic
from typing import Generic, TypeVar

from .metrics import LANDING_CACHE_EVENTS_TOTAL

T = TypeVar("T")


class LandingCache(Generic[T]):
    """Hold a single value for ``ttl_seconds``; a TTL of zero disables caching.

    Reads racing a concurrent invalidation may serve the previous value until
    the TTL lapses.
    """

    def __init__(self, ttl_seconds: float, *, clock: Callable[[], float] = monotonic) -> None:
        self._ttl = max(ttl_seconds, 0)
        self._clock = clock
        self._lock = asyncio.Lock()
        self._value: T | None = None
        self._stored_at: float | None = None

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def peek(self) -> T | None:
        if self._stored_at is None or self._clock() - self._stored_at >= self._ttl:
            return None
        return self._value

    async def get_or_load(self, loader: Callable[[], Awaitable[T]]) -> T:
        cached = self.peek()
        if cached is not None:
            LANDING_CACHE_EVENTS_TOTAL.labels(event="hit").inc()
            return cached

        async with self._lock:
            cached = self.peek()
            if cached is not None:
                LANDING_CACHE_EVENTS_TOTAL.labels(event="hit").inc()
                return cached
            LANDING_CACHE_EVENTS_TOTAL.labels(event="miss").inc()
            value = await loader()
            if self._ttl > 0:
                self._value = value
                self._stored_at = self._clock()
            return value

    def invalidate(self) -> None:
        self._value = None
        self._stored_at = None
        LANDING_CACHE_EVENTS_TOTAL.labels(event="invalidate").inc()
