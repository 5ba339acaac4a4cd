"""Forward geocoding adapters and the wrappers composed around them."""

from __future__ import annotations

import httpx

from safezone.config.settings import Settings
from safezone.core.cache import FileCache
from safezone.geocoding.base import EMPTY_ADDRESS, GeocodingAdapter, normalize_address, resolve_address
from safezone.geocoding.cached import CachedGeocoder
from safezone.geocoding.nominatim import NominatimGeocoder
from safezone.geocoding.retry import RetryingGeocoder


def build_geocoder(
    settings: Settings,
    cache: FileCache,
    *,
    client: httpx.AsyncClient | None = None,
) -> GeocodingAdapter:
    """Compose the production geocoder: cache -> retry -> Nominatim."""
    geo = settings.geocoding
    return CachedGeocoder(
        RetryingGeocoder(NominatimGeocoder(settings, client=client), geo.retry),
        cache,
        ttl_seconds=geo.cache_ttl_seconds,
        not_found_ttl_seconds=geo.not_found_cache_ttl_seconds,
    )


__all__ = [
    "EMPTY_ADDRESS",
    "CachedGeocoder",
    "GeocodingAdapter",
    "NominatimGeocoder",
    "RetryingGeocoder",
    "build_geocoder",
    "normalize_address",
    "resolve_address",
]
