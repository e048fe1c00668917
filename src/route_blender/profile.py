"""Elevation profile and segment statistics for coordinate sequences."""

import math
from typing import Sequence

from route_blender.distance import haversine_distance
from route_blender.models import ElevationProfilePoint, RouteStats, SegmentStats

# Number of points averaged when smoothing grade (filters GPS noise)
DEFAULT_GRADE_WINDOW = 10


def _elevation(coordinate: Sequence[float]) -> float:
    if len(coordinate) > 2 and coordinate[2] is not None:
        return coordinate[2]
    return 0.0


def smooth_grades(grades: list[float], window: int = DEFAULT_GRADE_WINDOW) -> list[float]:
    """Centered moving average of grade values.

    The window covers [i - window // 2, i + ceil(window / 2)) and is clipped at
    the ends of the list, so edge points average over fewer values.
    """
    n = len(grades)
    if n == 0 or window <= 1:
        return list(grades)

    # Prefix sums keep this linear in the number of points
    prefix = [0.0]
    for g in grades:
        prefix.append(prefix[-1] + g)

    half_before = window // 2
    half_after = math.ceil(window / 2)
    smoothed = []
    for i in range(n):
        start = max(0, i - half_before)
        end = min(n, i + half_after)
        smoothed.append((prefix[end] - prefix[start]) / (end - start))
    return smoothed


def build_elevation_profile(
    coordinates: Sequence[Sequence[float]], window: int = DEFAULT_GRADE_WINDOW
) -> list[ElevationProfilePoint]:
    """Build a distance-indexed elevation profile from (lng, lat, elevation?) coordinates.

    One profile point is produced per coordinate, in input order. Grade is the
    slope of the edge ending at each point (0 for the first point and for
    zero-length edges), then smoothed with smooth_grades. Distance and
    elevation are left untouched by the smoothing.
    """
    if not coordinates:
        return []

    cumulative = 0.0
    distances = []
    raw_grades = []
    for i, coord in enumerate(coordinates):
        grade = 0.0
        if i > 0:
            prev = coordinates[i - 1]
            segment_m = haversine_distance(prev[1], prev[0], coord[1], coord[0])
            cumulative += segment_m
            if segment_m > 0:
                grade = (_elevation(coord) - _elevation(prev)) / segment_m * 100
        distances.append(cumulative / 1000)
        raw_grades.append(grade)

    grades = smooth_grades(raw_grades, window)
    return [
        ElevationProfilePoint(
            distance_km=distances[i],
            elevation=_elevation(coord),
            lat=coord[1],
            lng=coord[0],
            grade=grades[i],
        )
        for i, coord in enumerate(coordinates)
    ]


def calculate_route_stats(profile: list[ElevationProfilePoint]) -> RouteStats:
    """Summarise a profile: distance, unsigned gain/loss and elevation extrema."""
    if not profile:
        return RouteStats(distance=0.0, elevation_gain=0.0, elevation_loss=0.0,
                          max_elevation=0.0, min_elevation=0.0)

    elevation_gain = 0.0
    elevation_loss = 0.0
    for i in range(1, len(profile)):
        diff = profile[i].elevation - profile[i - 1].elevation
        if diff > 0:
            elevation_gain += diff
        else:
            elevation_loss += abs(diff)

    elevations = [p.elevation for p in profile]
    return RouteStats(
        distance=profile[-1].distance_km,
        elevation_gain=elevation_gain,
        elevation_loss=elevation_loss,
        max_elevation=max(elevations),
        min_elevation=min(elevations),
    )


def segment_stats(coordinates: Sequence[Sequence[float]]) -> SegmentStats:
    """Distance and elevation change along a coordinate list.

    Every positive elevation delta counts as gain and every negative one as
    loss; no noise threshold is applied.
    """
    distance_m = 0.0
    elevation_gain = 0.0
    elevation_loss = 0.0
    for i in range(1, len(coordinates)):
        prev, curr = coordinates[i - 1], coordinates[i]
        distance_m += haversine_distance(prev[1], prev[0], curr[1], curr[0])
        diff = _elevation(curr) - _elevation(prev)
        if diff > 0:
            elevation_gain += diff
        else:
            elevation_loss += abs(diff)

    return SegmentStats(
        coordinates=[(c[0], c[1], _elevation(c)) for c in coordinates],
        distance_km=distance_m / 1000,
        elevation_gain=elevation_gain,
        elevation_loss=elevation_loss,
    )
