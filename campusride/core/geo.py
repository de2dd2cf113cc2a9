"""Great-circle distance helpers."""

import math

from campusride.core.schemas import GeoPoint

EARTH_RADIUS_KM = 6371.0


def distance_km(a: GeoPoint, b: GeoPoint) -> float:
    """Haversine distance between two points in kilometres."""
    d_lat = math.radians(b.lat - a.lat)
    d_lng = math.radians(b.lng - a.lng)
    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(a.lat)) * math.cos(math.radians(b.lat)) * math.sin(d_lng / 2) ** 2
    )
    # Rounding can push h a hair outside [0, 1] for antipodal points
    h = min(1.0, max(0.0, h))
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def format_distance(km: float) -> str:
    """Human-readable distance: metres below 1 km, one decimal above."""
    if km < 1.0:
        return f"{km * 1000:.0f}m"
    return f"{km:.1f}km"
