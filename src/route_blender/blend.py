"""Blend the two route variants into one track from per-segment choices.

Selections are shared as a compact token string, one token per diverging
segment in route order: the variant's first letter followed by the
segment's order number, joined with hyphens (e.g. ``g1-t2-g3``).
"""

import logging
import re

from route_blender.models import DIVERGING, GRAVEL, ROUTE_CHOICES, TARMAC, BlendedRoute, Segment

logger = logging.getLogger(__name__)

SELECTION_TOKEN_PATTERN = re.compile(r"^([gt])(\d+)$")

_CHOICE_PREFIX = {GRAVEL: "g", TARMAC: "t"}
_PREFIX_CHOICE = {prefix: choice for choice, prefix in _CHOICE_PREFIX.items()}


def diverging_segments(segments: list[Segment]) -> list[Segment]:
    """Diverging segments in route order."""
    return sorted((s for s in segments if s.type == DIVERGING), key=lambda s: s.order)


def missing_selections(segments: list[Segment], selections: dict[str, str]) -> list[str]:
    """Ids of diverging segments without a gravel or tarmac selection."""
    return [s.id for s in diverging_segments(segments) if selections.get(s.id) not in ROUTE_CHOICES]


def build_blended_route(segments: list[Segment], selections: dict[str, str]) -> BlendedRoute | None:
    """Splice the chosen variant of every segment into one continuous route.

    Returns None unless every diverging segment has a selection. Shared
    segments follow the gravel variant. The first coordinate of each segment
    after the first is dropped, since neighbouring segments share their
    boundary point. Totals are the sums of the per-segment stats.
    """
    if missing_selections(segments, selections):
        return None

    coordinates = []
    distance_km = 0.0
    elevation_gain = 0.0
    elevation_loss = 0.0

    for segment in sorted(segments, key=lambda s: s.order):
        stats = segment.stats_for(selections.get(segment.id))
        if coordinates and stats.coordinates:
            coordinates.extend(stats.coordinates[1:])
        else:
            coordinates.extend(stats.coordinates)

        distance_km += stats.distance_km
        elevation_gain += stats.elevation_gain
        elevation_loss += stats.elevation_loss

    return BlendedRoute(
        coordinates=coordinates,
        distance_km=distance_km,
        elevation_gain=elevation_gain,
        elevation_loss=elevation_loss,
        selections=dict(selections),
    )


def encode_selections(selections: dict[str, str], segments: list[Segment]) -> str:
    """Encode selections as hyphen-joined tokens, e.g. 'g1-t2-g3'.

    Segments without a selection are left out.
    """
    parts = []
    for segment in diverging_segments(segments):
        choice = selections.get(segment.id)
        if choice in _CHOICE_PREFIX:
            parts.append(f"{_CHOICE_PREFIX[choice]}{segment.order}")
    return "-".join(parts)


def decode_selections(param: str | None, segments: list[Segment]) -> dict[str, str]:
    """Parse a selection token string back into segment id -> choice.

    Tokens that are malformed, name an unknown order number, or point at a
    shared segment are skipped, so a damaged string yields fewer selections
    rather than an error.
    """
    selections: dict[str, str] = {}
    if not param:
        return selections

    segments_by_order = {s.order: s for s in segments}
    for part in param.split("-"):
        match = SELECTION_TOKEN_PATTERN.match(part.strip())
        if not match:
            logger.debug("Skipping malformed selection token %r", part)
            continue
        segment = segments_by_order.get(int(match.group(2)))
        if segment is None or segment.type != DIVERGING:
            logger.debug("Skipping selection token %r: no diverging segment", part)
            continue
        selections[segment.id] = _PREFIX_CHOICE[match.group(1)]
    return selections
