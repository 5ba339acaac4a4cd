"""
Error taxonomy.

Only `CatalogUnavailable` (and a total geocoder outage) ends a discovery pass; the
other per-report problems are reported as diagnostics, never raised.
"""

from __future__ import annotations


class SafezoneError(Exception):
    """Base class for errors raised by this package."""


class CatalogUnavailable(SafezoneError):
    """The report catalog could not be fetched; the pass cannot continue."""


class GeocodingError(SafezoneError):
    """A provider call failed (transport, status or payload); never escapes an adapter."""


class InvalidDiscoveryConfig(SafezoneError, ValueError):
    """A `DiscoveryConfig` failed validation before the pass started."""
