"""Lookups over an elevation profile: by distance, by location, and downsampling."""

import math
from bisect import bisect_left

from route_blender.distance import haversine_distance
from route_blender.models import ElevationProfilePoint


def closest_index(values: list[float], target: float) -> int | None:
    """Index of the value closest to target in a non-decreasing list.

    Binary search finds the first value >= target, then compares it with the
    value just before. When both are equally close the later index wins.
    Returns None for an empty list.
    """
    if not values:
        return None

    idx = bisect_left(values, target)
    if idx >= len(values):
        return len(values) - 1
    if idx > 0:
        prev_diff = abs(values[idx - 1] - target)
        curr_diff = abs(values[idx] - target)
        if prev_diff < curr_diff:
            return idx - 1
    return idx


def find_point_at_distance(
    profile: list[ElevationProfilePoint], distance_km: float
) -> ElevationProfilePoint | None:
    """Profile point closest to a distance from the start (km)."""
    idx = closest_index([p.distance_km for p in profile], distance_km)
    if idx is None:
        return None
    return profile[idx]


def find_closest_point(
    profile: list[ElevationProfilePoint], lat: float, lng: float
) -> ElevationProfilePoint | None:
    """Profile point nearest to a location.

    Linear scan over every point; profiles hold a few thousand points so the
    O(n) cost is acceptable. The earliest point wins on ties.
    """
    if not profile:
        return None

    closest = profile[0]
    min_distance = math.inf
    for point in profile:
        d = haversine_distance(lat, lng, point.lat, point.lng)
        if d < min_distance:
            min_distance = d
            closest = point
    return closest


def downsample_profile(
    profile: list[ElevationProfilePoint], max_points: int
) -> list[ElevationProfilePoint]:
    """Keep every k-th point (k = ceil(n / max_points)) plus the final point.

    Profiles already within the limit are returned unchanged.
    """
    if max_points < 1:
        raise ValueError(f"max_points must be at least 1, got {max_points}")
    if len(profile) <= max_points:
        return profile

    step = math.ceil(len(profile) / max_points)
    downsampled = profile[::step]
    if downsampled[-1] is not profile[-1]:
        downsampled.append(profile[-1])
    return downsampled
