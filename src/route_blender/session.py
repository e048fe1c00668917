"""Interactive route-building state.

A RouteSession owns the only mutable state of the interactive path: the
saved selection map, a draft selection map edited while building, and the
day breakpoints. Everything else (blended route, day splits, breakpoint
markers, shareable query) is derived on access from the saved selections and
the read-only segment list, so in-progress edits never change them.

Editing follows a begin/commit/cancel cycle:

    session.begin_edit()        # draft starts as a copy of the saved map
    session.select("seg-2", "tarmac")
    session.commit()            # refused until every diverging segment is chosen

A session has a single owner; it does no locking.
"""

from route_blender.blend import (
    build_blended_route,
    decode_selections,
    diverging_segments,
    encode_selections,
    missing_selections,
)
from route_blender.daysplit import (
    decode_breakpoints,
    encode_breakpoints,
    even_breakpoints,
    generate_day_splits,
    get_breakpoint_coordinates,
)
from route_blender.models import ROUTE_CHOICES, BlendedRoute, Breakpoint, DaySplit, Segment


class IncompleteSelection(ValueError):
    """Commit attempted while some diverging segments have no choice."""

    def __init__(self, missing: list[str]):
        super().__init__(f"No selection for diverging segments: {', '.join(missing)}")
        self.missing = missing


class RouteSession:
    """Saved and draft selections plus day breakpoints for one user building a route."""

    def __init__(self, segments: list[Segment], selections: dict[str, str] | None = None):
        self.segments = segments
        self._diverging_ids = {s.id for s in diverging_segments(segments)}
        self._editing = False
        self._breakpoints: list[float] = []
        saved = {}
        for segment_id, choice in (selections or {}).items():
            self._check_choice(segment_id, choice)
            saved[segment_id] = choice
        self._saved: dict[str, str] = saved
        self._draft: dict[str, str] = dict(saved)

    @classmethod
    def from_query(cls, segments: list[Segment], route: str | None = None,
                   days: str | None = None) -> "RouteSession":
        """Restore a saved session from shareable link parameters.

        Breakpoints are restored when the route token yields at least one
        selection, or when there is nothing to select because no segment
        diverges.
        """
        session = cls(segments, decode_selections(route, segments))
        if session._saved or not session._diverging_ids:
            session.set_breakpoints(decode_breakpoints(days))
        return session

    def to_query(self) -> dict[str, str]:
        """Shareable link parameters for the saved route."""
        query = {}
        if self._saved:
            query["route"] = encode_selections(self._saved, self.segments)
        elif self._diverging_ids:
            return query
        if self._breakpoints:
            query["days"] = encode_breakpoints(self._breakpoints)
        return query

    def _check_choice(self, segment_id: str, choice: str) -> None:
        if segment_id not in self._diverging_ids:
            raise ValueError(f"Not a diverging segment: {segment_id!r}")
        if choice not in ROUTE_CHOICES:
            raise ValueError(f"Unknown route choice: {choice!r}")

    @property
    def selections(self) -> dict[str, str]:
        """Saved selections."""
        return dict(self._saved)

    @property
    def draft(self) -> dict[str, str]:
        """Selections being edited."""
        return dict(self._draft)

    @property
    def is_editing(self) -> bool:
        return self._editing

    @property
    def is_complete(self) -> bool:
        """Whether the draft has a choice for every diverging segment."""
        return not missing_selections(self.segments, self._draft)

    @property
    def missing(self) -> list[str]:
        """Diverging segment ids the draft has no choice for."""
        return missing_selections(self.segments, self._draft)

    def begin_edit(self) -> None:
        """Start editing from a copy of the saved selections."""
        self._draft = dict(self._saved)
        self._editing = True

    def select(self, segment_id: str, choice: str) -> None:
        """Choose a variant for a diverging segment in the draft.

        Raises:
            ValueError: If the segment is not diverging or the choice is unknown.
        """
        self._check_choice(segment_id, choice)
        self._draft[segment_id] = choice

    def clear_selection(self, segment_id: str) -> None:
        self._draft.pop(segment_id, None)

    def commit(self) -> None:
        """Save the draft and stop editing.

        Breakpoints are dropped when the saved route changes.

        Raises:
            IncompleteSelection: If a diverging segment has no choice; the
                session stays in edit mode with the draft untouched.
        """
        missing = self.missing
        if missing:
            raise IncompleteSelection(missing)
        if self._draft != self._saved:
            self._saved = dict(self._draft)
            # Stages no longer match a different route
            self._breakpoints = []
        self._editing = False

    def cancel(self) -> None:
        """Discard the draft and stop editing."""
        self._draft = dict(self._saved)
        self._editing = False

    def reset(self) -> None:
        self._saved = {}
        self._draft = {}
        self._breakpoints = []
        self._editing = False

    @property
    def blended_route(self) -> BlendedRoute | None:
        return build_blended_route(self.segments, self._saved)

    @property
    def breakpoints(self) -> list[float]:
        return list(self._breakpoints)

    @property
    def number_of_days(self) -> int:
        return len(self._breakpoints) + 1

    def set_breakpoints(self, breakpoints: list[float]) -> None:
        """Set stage boundaries; values outside (0, 100) are dropped."""
        self._breakpoints = sorted(b for b in breakpoints if 0 < b < 100)

    def set_number_of_days(self, days: int) -> None:
        """Split the route into `days` equal stages."""
        if days < 1:
            raise ValueError(f"days must be at least 1, got {days}")
        self._breakpoints = even_breakpoints(days)

    @property
    def day_splits(self) -> list[DaySplit]:
        route = self.blended_route
        if route is None:
            return []
        return generate_day_splits(route, self._breakpoints)

    @property
    def breakpoint_markers(self) -> list[Breakpoint]:
        route = self.blended_route
        if route is None:
            return []
        return get_breakpoint_coordinates(route, self._breakpoints)
