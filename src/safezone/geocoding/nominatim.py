"""
Forward geocoding via OpenStreetMap Nominatim.

- No API key required.
- Sends a descriptive User-Agent as required by the Nominatim usage policy.
- Requests are spaced by a token-bucket limiter (one per second by default).
- Never raises: transport errors and non-2xx statuses become `Failed` outcomes,
  flagged `retryable` for 429/5xx/transport problems.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from safezone.config.settings import Settings
from safezone.core.http import get_json, parse_retry_after_seconds
from safezone.core.rate_limit import AsyncTokenBucketRateLimiter
from safezone.domain.errors import GeocodingError
from safezone.domain.models import Coordinate, Failed, GeocodeResult, Resolved

logger = logging.getLogger(__name__)

RETRYABLE_STATUSES = {429, 500, 502, 503, 504}


def _parse_first_match(payload: Any) -> Coordinate | None:
    """Return the coordinate of the first search hit, or None when there is none."""
    if not isinstance(payload, list):
        raise GeocodingError(f"unexpected Nominatim payload type: {type(payload).__name__}")
    if not payload:
        return None
    first = payload[0]
    if not isinstance(first, dict):
        raise GeocodingError("unexpected Nominatim search hit shape")
    try:
        return Coordinate(latitude=float(first["lat"]), longitude=float(first["lon"]))
    except (KeyError, TypeError, ValueError) as exc:
        raise GeocodingError(f"invalid coordinate in Nominatim hit: {exc}") from exc


class NominatimGeocoder:
    """Async Nominatim search client implementing `GeocodingAdapter`."""

    def __init__(
        self,
        settings: Settings,
        *,
        client: httpx.AsyncClient | None = None,
        rate_limiter: AsyncTokenBucketRateLimiter | None = None,
    ):
        self._settings = settings
        self._client = client
        self._rate_limiter = rate_limiter or AsyncTokenBucketRateLimiter(
            max_per_minute=settings.geocoding.requests_per_minute, burst=1
        )

    def _params(self, address: str) -> dict[str, Any]:
        params: dict[str, Any] = {"q": address, "format": "jsonv2", "limit": 1}
        codes = self._settings.geocoding.country_codes
        if codes:
            params["countrycodes"] = ",".join(codes)
        return params

    async def resolve(self, address: str) -> GeocodeResult:
        await self._rate_limiter.acquire()
        try:
            payload = await get_json(
                self._settings.geocoding.base_url,
                params=self._params(address),
                headers={"User-Agent": self._settings.geocoding.user_agent},
                timeout_seconds=self._settings.app.http_timeout_seconds,
                client=self._client,
            )
            coordinate = _parse_first_match(payload)
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            return Failed(
                reason=f"geocoder returned HTTP {status}",
                failure="provider_error",
                retryable=status in RETRYABLE_STATUSES,
                retry_after_seconds=parse_retry_after_seconds(exc.response.headers.get("Retry-After")),
            )
        except httpx.TransportError as exc:
            return Failed(
                reason=f"geocoder transport error: {exc.__class__.__name__}",
                failure="provider_error",
                retryable=True,
            )
        except httpx.HTTPError as exc:
            return Failed(reason=f"geocoder request error: {exc}", failure="provider_error")
        except (GeocodingError, ValueError) as exc:
            return Failed(reason=f"geocoder payload error: {exc}", failure="provider_error")

        if coordinate is None:
            logger.debug("No geocoding match for %r", address)
            return Failed(reason="address not found", failure="not_found")
        return Resolved(coordinate=coordinate)
