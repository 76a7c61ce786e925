"""Great-circle distance helpers."""

import math
from collections.abc import Iterable

from journey_radar.models.routing import Coordinate

# Earth's radius in meters for haversine calculation
EARTH_RADIUS_METERS = 6_371_000


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate the great-circle distance between two points in meters.

    Args:
        lat1, lon1: First point coordinates in degrees.
        lat2, lon2: Second point coordinates in degrees.

    Returns:
        Distance in meters.
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    delta_lat = math.radians(lat2 - lat1)
    delta_lon = math.radians(lon2 - lon1)

    a = (
        math.sin(delta_lat / 2) ** 2
        + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(delta_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_METERS * c


def distance_between(a: Coordinate, b: Coordinate) -> float:
    """Haversine distance between two coordinates in meters."""
    return haversine_distance(a.lat, a.lng, b.lat, b.lng)


def min_distance_to_geometry(point: Coordinate, geometry: Iterable[Coordinate]) -> float:
    """Distance from a point to the nearest vertex of a polyline.

    Vertices only, not segments: HERE polylines are dense enough for this.
    Returns ``math.inf`` for an empty geometry.
    """
    best = math.inf
    for vertex in geometry:
        distance = haversine_distance(vertex.lat, vertex.lng, point.lat, point.lng)
        if distance < best:
            best = distance
    return best


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positive values."""
    return math.floor(value + 0.5)
