"""Great-circle distance between report locations."""

import math
from typing import Optional

from credibility_system.config.corroboration import EARTH_RADIUS_KM
from credibility_system.data_management.schemas import Report


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """
    Great-circle distance between two points using the haversine formula.

    Args:
        lat1, lng1: First point in decimal degrees
        lat2, lng2: Second point in decimal degrees

    Returns:
        Distance in kilometres on a sphere of radius EARTH_RADIUS_KM
    """
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    # Rounding can push a just past 1.0 for near-antipodal points
    a = min(1.0, a)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def distance_meters(a: Report, b: Report) -> Optional[float]:
    """Distance between two reports in metres, or None if either lacks coordinates."""
    if not (a.has_coordinates and b.has_coordinates):
        return None
    return haversine_km(a.lat, a.lng, b.lat, b.lng) * 1000.0
