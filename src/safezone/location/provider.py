"""
Device location contract.

Location is best-effort: a missing permission, a provider error or a timeout all
mean "distance unknown" for the pass, never a pass failure.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol

from safezone.domain.models import Coordinate

logger = logging.getLogger(__name__)


class LocationProvider(Protocol):
    async def last_known_coordinate(self) -> Coordinate | None: ...


class StaticLocationProvider:
    """Returns a fixed coordinate (e.g. one sent by the client with the request)."""

    def __init__(self, coordinate: Coordinate | None):
        self._coordinate = coordinate

    async def last_known_coordinate(self) -> Coordinate | None:
        return self._coordinate


async def acquire_location(
    provider: LocationProvider | None,
    *,
    timeout_seconds: float,
) -> Coordinate | None:
    """One-shot location read with a timeout; any failure yields None."""
    if provider is None:
        return None
    try:
        return await asyncio.wait_for(provider.last_known_coordinate(), timeout=timeout_seconds)
    except asyncio.TimeoutError:
        logger.info("Location lookup timed out after %.1fs; continuing without it", timeout_seconds)
    except PermissionError:
        logger.info("Location permission denied; continuing without it")
    except Exception as exc:
        logger.warning("Location provider failed; continuing without it: %s", exc)
    return None
