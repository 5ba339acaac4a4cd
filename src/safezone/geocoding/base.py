"""
Geocoding contract.

A geocoding adapter turns a free-text address into a coordinate. Every call may do
network I/O, may be slow, and may fail; failures come back as a `Failed` outcome
instead of an exception so one bad address never aborts a batch.

Contract:
- Input: an address string (already known to be non-blank, see `resolve_address`).
- Output: `Resolved(coordinate)` or `Failed(reason, failure, retryable)`.
- `failure="not_found"` means the provider answered but had no match;
  `failure="provider_error"` means the provider itself could not be used.
"""

from __future__ import annotations

import logging
import re
from typing import Protocol

from safezone.domain.models import Failed, GeocodeResult

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")

EMPTY_ADDRESS = Failed(reason="empty address", failure="empty_address")


class GeocodingAdapter(Protocol):
    async def resolve(self, address: str) -> GeocodeResult: ...


def normalize_address(address: str | None) -> str:
    """Collapse whitespace; returns "" for missing or blank addresses."""
    if not address:
        return ""
    return _WHITESPACE_RE.sub(" ", address).strip()


async def resolve_address(adapter: GeocodingAdapter, address: str | None) -> GeocodeResult:
    """Resolve `address` through `adapter` with the blank-address pre-flight check.

    Blank addresses short-circuit to `EMPTY_ADDRESS` without any I/O. An adapter that
    breaks its contract by raising is downgraded to a `Failed` outcome here.
    """
    normalized = normalize_address(address)
    if not normalized:
        return EMPTY_ADDRESS
    try:
        return await adapter.resolve(normalized)
    except Exception as exc:
        logger.warning("Geocoding adapter raised for %r: %s", normalized, exc)
        return Failed(reason=f"adapter error: {exc}", failure="provider_error")
