"""
Async request pacing for third-party providers.

Nominatim's usage policy allows at most one request per second per client. The
limiter below hands out "slots" spaced `60 / requests_per_minute` seconds apart,
allowing an initial burst of `burst` requests.
"""

from __future__ import annotations

import asyncio
import time
from typing import Awaitable, Callable


class AsyncTokenBucketRateLimiter:
    """Token bucket refilled at `max_per_minute / 60` tokens per second."""

    def __init__(
        self,
        max_per_minute: float,
        burst: float | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if max_per_minute <= 0:
            raise ValueError("max_per_minute must be > 0")
        self.rate_per_second = float(max_per_minute) / 60.0
        self.capacity = float(burst) if burst is not None else float(max_per_minute)
        self._tokens = self.capacity
        self._clock = clock
        self._sleep = sleep
        self._updated_at = clock()
        self._lock = asyncio.Lock()

    def _take(self) -> float:
        """Take one token if available; otherwise return seconds until one is."""
        now = self._clock()
        self._tokens = min(self.capacity, self._tokens + (now - self._updated_at) * self.rate_per_second)
        self._updated_at = now
        if self._tokens >= 1.0:
            self._tokens -= 1.0
            return 0.0
        return (1.0 - self._tokens) / self.rate_per_second

    async def acquire(self) -> None:
        async with self._lock:
            wait = self._take()
            while wait > 0:
                await self._sleep(wait)
                wait = self._take()
