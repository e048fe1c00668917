"""Divergence analysis between two variants of the same route.

Compares a primary track (gravel) with a secondary track (tarmac) and splits
the primary into alternating shared and diverging segments:

1. Annotate both tracks with cumulative distance.
2. Resample both at a fixed spacing to bound the all-pairs nearest search.
3. Mark each resampled primary point overlapping when the nearest secondary
   point is within the overlap threshold.
4. Record every change of overlap state as a transition.
5. Greedily merge spans shorter than the minimum segment length.
6. Cut each span out of the full-resolution primary track and look up the
   matching secondary range through nearest points at the span's ends.
7. Compute per-variant statistics and number the segments 1..N.

Steps 2, 5 and 6 are heuristics: boundaries are only as precise as the
resample interval, the merge is not globally optimal, and the nearest-point
lookup can pick a poor secondary range where the tracks cross each other.
"""

import logging
import math
from bisect import bisect_left, bisect_right
from dataclasses import dataclass

import numpy as np

from route_blender.distance import EARTH_RADIUS_M, haversine_distance
from route_blender.models import (
    DIVERGING,
    SHARED,
    RoutePoint,
    Segment,
    SegmentationParams,
    TrackPoint,
)
from route_blender.profile import segment_stats

logger = logging.getLogger(__name__)


@dataclass
class OverlapResult:
    """Overlap state of one resampled primary point."""
    point: RoutePoint
    is_overlapping: bool
    nearest_on_secondary: RoutePoint | None


@dataclass
class Transition:
    """Start of a span at `distance` meters along the primary track."""
    distance: float
    is_overlapping: bool


def add_distances(points: list[TrackPoint]) -> list[RoutePoint]:
    """Annotate points with cumulative distance from the start in meters."""
    route = []
    cumulative = 0.0
    for i, pt in enumerate(points):
        if i > 0:
            prev = points[i - 1]
            cumulative += haversine_distance(prev.lat, prev.lng, pt.lat, pt.lng)
        route.append(RoutePoint(lat=pt.lat, lng=pt.lng, elevation=pt.elevation,
                                distance_from_start=cumulative))
    return route


def sample_route(route: list[RoutePoint], interval_m: float) -> list[RoutePoint]:
    """Keep points at least interval_m apart along the route.

    The first and last points are always kept.
    """
    if not route:
        return []

    sampled = [route[0]]
    last_distance = route[0].distance_from_start
    for pt in route[1:]:
        if pt.distance_from_start - last_distance >= interval_m:
            sampled.append(pt)
            last_distance = pt.distance_from_start

    if sampled[-1] is not route[-1]:
        sampled.append(route[-1])
    return sampled


class _NearestIndex:
    """Vectorised nearest-point lookup over a fixed route.

    Holds the route's coordinates in radians so each query is a single numpy
    haversine pass instead of a Python loop.
    """

    def __init__(self, route: list[RoutePoint]):
        self.route = route
        self._lat = np.radians(np.array([p.lat for p in route], dtype=float))
        self._lng = np.radians(np.array([p.lng for p in route], dtype=float))
        self._cos_lat = np.cos(self._lat)

    def nearest(self, lat: float, lng: float) -> tuple[RoutePoint | None, float]:
        """Nearest route point and its distance in meters; first minimum wins."""
        if not self.route:
            return None, math.inf

        lat_rad = math.radians(lat)
        lng_rad = math.radians(lng)
        a = (
            np.sin((self._lat - lat_rad) / 2) ** 2
            + math.cos(lat_rad) * self._cos_lat * np.sin((self._lng - lng_rad) / 2) ** 2
        )
        distances = 2 * EARTH_RADIUS_M * np.arcsin(np.sqrt(np.clip(a, 0.0, 1.0)))
        idx = int(np.argmin(distances))
        return self.route[idx], float(distances[idx])


def find_nearest_point(
    point: TrackPoint | RoutePoint, route: list[RoutePoint]
) -> tuple[RoutePoint | None, float]:
    """Nearest point on route to point, with its distance in meters.

    Returns (None, inf) for an empty route.
    """
    return _NearestIndex(route).nearest(point.lat, point.lng)


def analyze_overlap(
    primary: list[RoutePoint], secondary: list[RoutePoint], threshold_m: float
) -> list[OverlapResult]:
    """Classify each primary point by its distance to the secondary route."""
    index = _NearestIndex(secondary)
    results = []
    for pt in primary:
        nearest, distance = index.nearest(pt.lat, pt.lng)
        results.append(OverlapResult(
            point=pt,
            is_overlapping=distance <= threshold_m,
            nearest_on_secondary=nearest,
        ))
    return results


def find_transitions(overlap: list[OverlapResult]) -> list[Transition]:
    """Turn per-point overlap states into span starts plus an end sentinel.

    The first transition is at distance 0; each later one marks where the
    overlap state flips. The final entry sits at the last point's distance
    and only closes the last span.
    """
    if not overlap:
        return []

    current = overlap[0].is_overlapping
    transitions = [Transition(distance=0.0, is_overlapping=current)]
    for result in overlap[1:]:
        if result.is_overlapping != current:
            current = result.is_overlapping
            transitions.append(Transition(
                distance=result.point.distance_from_start,
                is_overlapping=current,
            ))

    transitions.append(Transition(
        distance=overlap[-1].point.distance_from_start,
        is_overlapping=current,
    ))
    return transitions


def merge_small_segments(transitions: list[Transition], min_length_m: float) -> list[Transition]:
    """Remove spans shorter than min_length_m, scanning left to right.

    A short span is folded into the span before it by dropping both of its
    boundaries, so its neighbours (which share a type) join into one span.
    The end sentinel is always kept; a short final span is absorbed by its
    predecessor. The first span is never removed, so it may stay short.
    """
    if len(transitions) <= 2:
        return list(transitions)

    merged = [transitions[0]]
    for current in transitions[1:-1]:
        length = current.distance - merged[-1].distance
        if length < min_length_m and len(merged) > 1:
            merged.pop()
        else:
            merged.append(current)

    end = transitions[-1]
    if end.distance - merged[-1].distance < min_length_m and len(merged) > 1:
        merged.pop()
    merged.append(end)
    return merged


def extract_route_section(
    route: list[RoutePoint], start_distance: float, end_distance: float
) -> list[RoutePoint]:
    """Points whose distance from start lies within [start_distance, end_distance]."""
    distances = [p.distance_from_start for p in route]
    lo = bisect_left(distances, start_distance)
    hi = bisect_right(distances, end_distance)
    return route[lo:hi]


def _nearest_range(
    primary_section: list[RoutePoint], index: _NearestIndex
) -> tuple[float, float] | None:
    start, _ = index.nearest(primary_section[0].lat, primary_section[0].lng)
    end, _ = index.nearest(primary_section[-1].lat, primary_section[-1].lng)
    if start is None or end is None:
        return None
    if start.distance_from_start > end.distance_from_start:
        logger.debug(
            "Nearest secondary points run backwards (%.0f m -> %.0f m)",
            start.distance_from_start, end.distance_from_start,
        )
    return (
        min(start.distance_from_start, end.distance_from_start),
        max(start.distance_from_start, end.distance_from_start),
    )


def find_corresponding_section(
    primary_section: list[RoutePoint],
    secondary: list[RoutePoint],
    floor_m: float | None = None,
    index: _NearestIndex | None = None,
) -> list[RoutePoint]:
    """Section of the secondary route matching a primary section.

    Takes the secondary points nearest to the section's first and last points
    and returns everything between them (min/max, since nearest lookups do not
    keep direction).

    With floor_m set, the range start is clamped so it never reaches back
    before floor_m (where the previous segment's secondary section ended).
    If the whole range lies behind floor_m the lookup has jumped to an earlier
    pass of a self-crossing track; the unclamped range is used and a warning
    is logged.
    """
    if not primary_section or not secondary:
        return []

    if index is None:
        index = _NearestIndex(secondary)
    found = _nearest_range(primary_section, index)
    if found is None:
        return []
    start_distance, end_distance = found

    if floor_m is not None:
        if end_distance < floor_m:
            logger.warning(
                "Secondary range %.0f-%.0f m lies behind previous segment end %.0f m; "
                "keeping unclamped range",
                start_distance, end_distance, floor_m,
            )
        else:
            start_distance = max(start_distance, floor_m)

    return extract_route_section(secondary, start_distance, end_distance)


def analyze_segments(
    gravel: list[TrackPoint],
    tarmac: list[TrackPoint],
    params: SegmentationParams | None = None,
) -> list[Segment]:
    """Split the gravel track into shared and diverging segments against tarmac.

    Returns an empty list when either track is empty.
    """
    if params is None:
        params = SegmentationParams()

    if not gravel or not tarmac:
        logger.warning("Cannot analyze segments: gravel=%d points, tarmac=%d points",
                       len(gravel), len(tarmac))
        return []

    gravel_route = add_distances(gravel)
    tarmac_route = add_distances(tarmac)
    logger.info("Gravel route: %.1f km", gravel_route[-1].distance_from_start / 1000)
    logger.info("Tarmac route: %.1f km", tarmac_route[-1].distance_from_start / 1000)

    sampled_gravel = sample_route(gravel_route, params.resample_interval_m)
    sampled_tarmac = sample_route(tarmac_route, params.resample_interval_m)
    logger.debug("Sampled gravel: %d points, tarmac: %d points",
                 len(sampled_gravel), len(sampled_tarmac))

    overlap = analyze_overlap(sampled_gravel, sampled_tarmac, params.overlap_threshold_m)
    transitions = find_transitions(overlap)
    logger.debug("Found %d raw spans", len(transitions) - 1)

    merged = merge_small_segments(transitions, params.min_segment_length_m)
    logger.debug("After merging: %d spans", len(merged) - 1)

    tarmac_index = _NearestIndex(tarmac_route)
    floor = 0.0 if params.clamp_secondary else None
    segments: list[Segment] = []

    for i in range(len(merged) - 1):
        start_distance = merged[i].distance
        end_distance = merged[i + 1].distance

        gravel_section = extract_route_section(gravel_route, start_distance, end_distance)
        if not gravel_section:
            continue
        tarmac_section = find_corresponding_section(
            gravel_section, tarmac_route, floor_m=floor, index=tarmac_index
        )
        if params.clamp_secondary and tarmac_section:
            floor = max(floor, tarmac_section[-1].distance_from_start)

        order = len(segments) + 1
        segments.append(Segment(
            id=f"seg-{order}",
            type=SHARED if merged[i].is_overlapping else DIVERGING,
            order=order,
            gravel=segment_stats([(p.lng, p.lat, p.elevation) for p in gravel_section]),
            tarmac=segment_stats([(p.lng, p.lat, p.elevation) for p in tarmac_section]),
        ))

    summary = segmentation_summary(segments)
    logger.info(
        "Total segments: %d (shared: %d, diverging: %d)",
        summary["total"], summary["shared"], summary["diverging"],
    )
    return segments


def segmentation_summary(segments: list[Segment]) -> dict:
    """Counts and distances of shared and diverging segments."""
    shared = [s for s in segments if s.type == SHARED]
    diverging = [s for s in segments if s.type == DIVERGING]
    return {
        "total": len(segments),
        "shared": len(shared),
        "diverging": len(diverging),
        "shared_km": sum(s.gravel.distance_km for s in shared),
        "diverging_gravel_km": sum(s.gravel.distance_km for s in diverging),
        "diverging_tarmac_km": sum(s.tarmac.distance_km for s in diverging),
    }
