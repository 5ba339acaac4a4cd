"""
Retry wrapper for geocoding adapters.

Retries `Failed` outcomes flagged `retryable` (429/5xx/transport) with exponential
backoff, honouring a provider `Retry-After` hint. Non-retryable failures and
"address not found" are returned immediately.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from safezone.config.settings import RetrySettings
from safezone.domain.models import Failed, GeocodeResult
from safezone.geocoding.base import GeocodingAdapter

logger = logging.getLogger(__name__)


class RetryingGeocoder:
    """Wraps a `GeocodingAdapter` with simple retry/backoff."""

    def __init__(
        self,
        inner: GeocodingAdapter,
        retry: RetrySettings,
        *,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._inner = inner
        self._retry = retry
        self._sleep = sleep

    async def resolve(self, address: str) -> GeocodeResult:
        max_retries = int(self._retry.max_retries)
        base_delay_seconds = float(self._retry.base_delay_seconds)
        max_delay_seconds = float(self._retry.max_delay_seconds)

        result = await self._inner.resolve(address)
        for attempt in range(max_retries):
            if not isinstance(result, Failed) or not result.retryable:
                return result

            delay = min(max_delay_seconds, base_delay_seconds * (2**attempt))
            if result.retry_after_seconds is not None:
                delay = max(delay, result.retry_after_seconds)

            logger.warning(
                "Geocode failed (%s); retrying in %.2fs (retry %s/%s)",
                result.reason,
                delay,
                attempt + 1,
                max_retries,
            )
            await self._sleep(delay)
            result = await self._inner.resolve(address)
        return result
