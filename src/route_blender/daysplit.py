"""Split a blended route into day stages at percentage breakpoints."""

import math

from route_blender.distance import cumulative_distances
from route_blender.models import BlendedRoute, Breakpoint, Coordinate, DaySplit
from route_blender.profile import segment_stats
from route_blender.query import closest_index


def percentage_to_coord_index(
    percentage: float, cumulative: list[float], total_distance: float
) -> int | None:
    """Coordinate index closest to a percentage of the total distance.

    0% and 100% map straight to the first and last index. Returns None when
    there are no coordinates.
    """
    if not cumulative:
        return None
    if percentage <= 0:
        return 0
    if percentage >= 100:
        return len(cumulative) - 1
    return closest_index(cumulative, percentage / 100 * total_distance)


def calculate_range_stats(
    coordinates: list[Coordinate], start_index: int, end_index: int
) -> tuple[float, float, float]:
    """(distance_km, elevation_gain, elevation_loss) over coordinates[start_index:end_index + 1]."""
    stats = segment_stats(coordinates[start_index:end_index + 1])
    return stats.distance_km, stats.elevation_gain, stats.elevation_loss


def generate_day_splits(route: BlendedRoute, breakpoints: list[float]) -> list[DaySplit]:
    """One DaySplit per stage between consecutive boundaries [0, *breakpoints, 100].

    Percentages are resolved against the distance measured along the route's
    own coordinates.
    """
    cumulative = cumulative_distances(route.coordinates)
    if not cumulative:
        return []
    total_distance = cumulative[-1]

    boundaries = [0.0, *sorted(breakpoints), 100.0]
    splits = []
    for i in range(len(boundaries) - 1):
        start_pct = boundaries[i]
        end_pct = boundaries[i + 1]
        start_idx = percentage_to_coord_index(start_pct, cumulative, total_distance)
        end_idx = percentage_to_coord_index(end_pct, cumulative, total_distance)
        distance_km, gain, loss = calculate_range_stats(route.coordinates, start_idx, end_idx)
        splits.append(DaySplit(
            day_number=i + 1,
            start_pct=start_pct,
            end_pct=end_pct,
            start_coord_index=start_idx,
            end_coord_index=end_idx,
            distance_km=distance_km,
            elevation_gain=gain,
            elevation_loss=loss,
        ))
    return splits


def get_breakpoint_coordinates(route: BlendedRoute, breakpoints: list[float]) -> list[Breakpoint]:
    """Resolve each breakpoint percentage to a coordinate for map markers."""
    cumulative = cumulative_distances(route.coordinates)
    if not cumulative:
        return []
    total_distance = cumulative[-1]

    markers = []
    for percentage in breakpoints:
        idx = percentage_to_coord_index(percentage, cumulative, total_distance)
        markers.append(Breakpoint(
            percentage=percentage,
            coord_index=idx,
            coordinates=route.coordinates[idx],
            cumulative_distance_km=cumulative[idx],
        ))
    return markers


def even_breakpoints(days: int) -> list[float]:
    """Breakpoints that split a route into `days` equal stages."""
    if days <= 1:
        return []
    return [(i + 1) / days * 100 for i in range(days - 1)]


def encode_breakpoints(breakpoints: list[float]) -> str:
    """Breakpoints as comma-separated whole percentages, e.g. '33,67'.

    Halves round up (12.5 -> 13), not to even.
    """
    return ",".join(str(math.floor(b + 0.5)) for b in breakpoints)


def decode_breakpoints(param: str | None) -> list[float]:
    """Parse comma-separated percentages, keeping values strictly between 0 and 100."""
    if not param:
        return []

    breakpoints = []
    for part in param.split(","):
        try:
            value = float(part)
        except ValueError:
            continue
        # NaN fails both comparisons
        if 0 < value < 100:
            breakpoints.append(value)
    return breakpoints
