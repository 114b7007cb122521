"""Great-circle distance and the site geofence check."""
from __future__ import annotations

from dataclasses import dataclass
from math import atan2, cos, isfinite, nan, radians, sin, sqrt

from ..core.constants import EARTH_RADIUS_METERS


@dataclass(frozen=True)
class GeofenceResult:
    allowed: bool
    distance_meters: float


def calculate_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Haversine distance in meters between two WGS84 points.

    Non-finite input gives NaN rather than raising.
    """
    if not all(isfinite(v) for v in (lat1, lon1, lat2, lon2)):
        return nan
    d_lat = radians(lat2 - lat1)
    d_lon = radians(lon2 - lon1)
    a = sin(d_lat / 2) ** 2 + cos(radians(lat1)) * cos(radians(lat2)) * sin(d_lon / 2) ** 2
    # Rounding can push ``a`` a hair above 1 for antipodal points.
    a = min(a, 1.0)
    c = 2 * atan2(sqrt(a), sqrt(1 - a))
    return EARTH_RADIUS_METERS * c


def is_within_radius(
    user_lat: float,
    user_lon: float,
    site_lat: float,
    site_lon: float,
    radius_meters: float,
) -> GeofenceResult:
    """Admission check around the site.

    NaN coordinates yield a NaN distance; every comparison with NaN is false,
    so the result is never ``allowed``.
    """
    distance = calculate_distance(user_lat, user_lon, site_lat, site_lon)
    return GeofenceResult(allowed=distance <= radius_meters, distance_meters=distance)
