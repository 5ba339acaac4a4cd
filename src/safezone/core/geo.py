"""Great-circle distance between coordinates (spherical Earth, haversine)."""

from __future__ import annotations

from math import asin, cos, radians, sin, sqrt
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from safezone.domain.models import Coordinate

EARTH_RADIUS_KM = 6371.0


def distance_km(a: "Coordinate", b: "Coordinate") -> float:
    """Distance in kilometers; symmetric, zero for identical points."""
    phi1, phi2 = radians(a.latitude), radians(b.latitude)
    d_phi = phi2 - phi1
    d_lambda = radians(b.longitude - a.longitude)

    h = sin(d_phi / 2) ** 2 + cos(phi1) * cos(phi2) * sin(d_lambda / 2) ** 2
    # Float error can push h just outside [0, 1] near antipodes.
    h = min(1.0, max(0.0, h))
    return 2 * EARTH_RADIUS_KM * asin(sqrt(h))
