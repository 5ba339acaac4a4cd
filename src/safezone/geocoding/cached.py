"""
File-cache wrapper for geocoding adapters.

Resolved coordinates are memoised for `ttl_seconds`; "address not found" answers
for the shorter `not_found_ttl_seconds`. Provider errors are never cached, so a
transient outage does not pin an address as unplaceable.

Cache file reads and writes run in a worker thread (`asyncio.to_thread`), off the
event loop.
"""

from __future__ import annotations

import asyncio
from typing import Any

from safezone.core.cache import FileCache
from safezone.domain.models import Coordinate, Failed, GeocodeResult, Resolved
from safezone.geocoding.base import GeocodingAdapter

NAMESPACE = "geocode"


def _cache_key(address: str) -> str:
    return address.casefold()


def _decode(value: Any) -> GeocodeResult | None:
    if not isinstance(value, dict):
        return None
    if "lat" in value and "lon" in value:
        return Resolved(coordinate=Coordinate(latitude=value["lat"], longitude=value["lon"]))
    if value.get("not_found"):
        return Failed(reason="address not found", failure="not_found")
    return None


class CachedGeocoder:
    def __init__(
        self,
        inner: GeocodingAdapter,
        cache: FileCache,
        *,
        ttl_seconds: int,
        not_found_ttl_seconds: int,
    ):
        self._inner = inner
        self._cache = cache
        self._ttl_seconds = int(ttl_seconds)
        self._not_found_ttl_seconds = int(not_found_ttl_seconds)

    async def _store(self, key: str, value: dict[str, Any], ttl_seconds: int) -> None:
        await asyncio.to_thread(self._cache.set, NAMESPACE, key, value, ttl_seconds)

    async def resolve(self, address: str) -> GeocodeResult:
        key = _cache_key(address)
        cached = _decode(await asyncio.to_thread(self._cache.get, NAMESPACE, key))
        if cached is not None:
            # Not-found entries carry their own shorter TTL in the envelope.
            return cached

        result = await self._inner.resolve(address)
        if isinstance(result, Resolved):
            await self._store(
                key,
                {"lat": result.coordinate.latitude, "lon": result.coordinate.longitude},
                self._ttl_seconds,
            )
        elif result.failure == "not_found":
            await self._store(key, {"not_found": True}, self._not_found_ttl_seconds)
        return result
