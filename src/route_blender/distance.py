"""Fast distance calculations.

Haversine on a spherical Earth is accurate enough for comparing route
variants (< 0.5% error at typical distances) and needs no ellipsoid model.
"""

import math
from typing import Iterable, Sequence

from route_blender.models import Coordinate, TrackPoint

# Earth's mean radius in meters
EARTH_RADIUS_M = 6_371_000


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate distance between two points using Haversine formula.

    Args:
        lat1, lon1: First point coordinates in degrees
        lat2, lon2: Second point coordinates in degrees

    Returns:
        Distance in meters
    """
    if lat1 == lat2 and lon1 == lon2:
        return 0.0

    # Convert to radians
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    dlat = math.radians(lat2 - lat1)
    dlon = math.radians(lon2 - lon1)

    # Haversine formula
    a = math.sin(dlat / 2) ** 2 + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(dlon / 2) ** 2
    # Rounding can push a just past 1 for antipodal points
    c = 2 * math.asin(math.sqrt(min(1.0, max(0.0, a))))

    return EARTH_RADIUS_M * c


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Haversine distance in kilometers."""
    return haversine_distance(lat1, lon1, lat2, lon2) / 1000


def cumulative_distances(coordinates: Sequence[Sequence[float]]) -> list[float]:
    """Cumulative distance in km at each (lng, lat, ...) coordinate.

    Returns an empty list for empty input; otherwise the first entry is 0.
    """
    if not coordinates:
        return []

    distances = [0.0]
    for i in range(1, len(coordinates)):
        lng1, lat1 = coordinates[i - 1][0], coordinates[i - 1][1]
        lng2, lat2 = coordinates[i][0], coordinates[i][1]
        distances.append(distances[-1] + haversine_km(lat1, lng1, lat2, lng2))
    return distances


def coordinates_from_points(points: Iterable[TrackPoint]) -> list[Coordinate]:
    """Convert TrackPoints to (lng, lat, elevation) tuples."""
    return [(pt.lng, pt.lat, pt.elevation) for pt in points]


def points_from_coordinates(coordinates: Iterable[Sequence[float]]) -> list[TrackPoint]:
    """Convert (lng, lat, elevation?) tuples to TrackPoints; missing elevation is 0."""
    points = []
    for c in coordinates:
        elevation = c[2] if len(c) > 2 and c[2] is not None else 0.0
        points.append(TrackPoint(lat=c[1], lng=c[0], elevation=elevation))
    return points
