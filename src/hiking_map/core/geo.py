"""Great-circle distance and bounding boxes."""

import math
from typing import Iterable, Optional

from hiking_map.models import LatLngBounds

EARTH_RADIUS_KM = 6371.0


def distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Haversine distance in kilometres between two lat/lon pairs (degrees)."""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def path_length_km(points: list[tuple[float, float]]) -> float:
    """Sum of distances between consecutive points."""
    return sum(
        distance_km(a[0], a[1], b[0], b[1])
        for a, b in zip(points, points[1:])
    )


def bounds_of(points: Iterable[tuple[float, float]]) -> Optional[LatLngBounds]:
    """Return the bounding box of `points`, or None when there are none."""
    south = west = math.inf
    north = east = -math.inf
    for lat, lon in points:
        south = min(south, lat)
        north = max(north, lat)
        west = min(west, lon)
        east = max(east, lon)
    if south == math.inf:
        return None
    return LatLngBounds(south=south, west=west, north=north, east=east)
