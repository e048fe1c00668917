import pytest

from route_blender.models import GRAVEL, SHARED, TARMAC
from route_blender.session import IncompleteSelection, RouteSession

from conftest import make_segment


@pytest.fixture
def shared_only_segments():
    return [make_segment(1, SHARED, [(10.0, 45.0, 100.0), (10.0, 45.01, 110.0), (10.0, 45.02, 105.0)])]


class TestSelections:
    def test_new_session_incomplete(self, blend_segments):
        session = RouteSession(blend_segments)
        assert not session.is_complete
        assert not session.is_editing
        assert session.missing == ["seg-2", "seg-4"]
        assert session.blended_route is None
        assert session.day_splits == []
        assert session.breakpoint_markers == []

    def test_initial_selections_are_saved(self, blend_segments):
        session = RouteSession(blend_segments, {"seg-2": GRAVEL, "seg-4": TARMAC})
        assert session.selections == {"seg-2": GRAVEL, "seg-4": TARMAC}
        assert session.draft == session.selections
        assert session.blended_route is not None

    def test_initial_selections_validated(self, blend_segments):
        with pytest.raises(ValueError, match="Unknown route choice"):
            RouteSession(blend_segments, {"seg-2": "paved"})

    def test_select_shared_segment_rejected(self, blend_segments):
        session = RouteSession(blend_segments)
        with pytest.raises(ValueError, match="Not a diverging segment"):
            session.select("seg-1", GRAVEL)

    def test_select_unknown_choice_rejected(self, blend_segments):
        session = RouteSession(blend_segments)
        with pytest.raises(ValueError, match="Unknown route choice"):
            session.select("seg-2", "mtb")

    def test_selections_is_a_copy(self, blend_segments):
        session = RouteSession(blend_segments, {"seg-2": GRAVEL})
        session.selections["seg-4"] = TARMAC
        assert session.selections == {"seg-2": GRAVEL}

    def test_reset(self, blend_segments):
        session = RouteSession(blend_segments, {"seg-2": GRAVEL, "seg-4": GRAVEL})
        session.set_breakpoints([50])
        session.begin_edit()
        session.reset()
        assert session.selections == {}
        assert session.draft == {}
        assert session.breakpoints == []
        assert not session.is_editing


class TestEditing:
    def test_draft_does_not_change_saved_route(self, blend_segments):
        session = RouteSession(blend_segments, {"seg-2": GRAVEL, "seg-4": GRAVEL})
        before = session.blended_route

        session.begin_edit()
        session.select("seg-2", TARMAC)

        assert session.is_editing
        assert session.draft == {"seg-2": TARMAC, "seg-4": GRAVEL}
        assert session.selections == {"seg-2": GRAVEL, "seg-4": GRAVEL}
        assert session.blended_route == before
        assert session.to_query() == {"route": "g2-g4"}

    def test_commit_saves_complete_draft(self, blend_segments):
        session = RouteSession(blend_segments)
        session.begin_edit()
        session.select("seg-2", TARMAC)
        session.select("seg-4", GRAVEL)
        assert session.is_complete

        session.commit()

        assert not session.is_editing
        assert session.selections == {"seg-2": TARMAC, "seg-4": GRAVEL}
        assert session.blended_route.selections == {"seg-2": TARMAC, "seg-4": GRAVEL}
        assert session.to_query() == {"route": "t2-g4"}

    def test_commit_refused_while_incomplete(self, blend_segments):
        session = RouteSession(blend_segments)
        session.begin_edit()
        session.select("seg-2", TARMAC)

        with pytest.raises(IncompleteSelection) as excinfo:
            session.commit()

        assert excinfo.value.missing == ["seg-4"]
        assert session.is_editing
        assert session.draft == {"seg-2": TARMAC}
        assert session.selections == {}
        assert session.blended_route is None

    def test_cancel_reverts_draft(self, blend_segments):
        session = RouteSession(blend_segments, {"seg-2": GRAVEL, "seg-4": GRAVEL})
        session.begin_edit()
        session.select("seg-4", TARMAC)
        session.clear_selection("seg-2")

        session.cancel()

        assert not session.is_editing
        assert session.draft == {"seg-2": GRAVEL, "seg-4": GRAVEL}
        assert session.selections == {"seg-2": GRAVEL, "seg-4": GRAVEL}

    def test_begin_edit_starts_from_saved(self, blend_segments):
        session = RouteSession(blend_segments, {"seg-2": GRAVEL, "seg-4": GRAVEL})
        session.select("seg-2", TARMAC)
        session.begin_edit()
        assert session.draft == {"seg-2": GRAVEL, "seg-4": GRAVEL}

    def test_clear_selection_only_touches_draft(self, blend_segments):
        session = RouteSession(blend_segments, {"seg-2": GRAVEL, "seg-4": GRAVEL})
        session.begin_edit()
        session.clear_selection("seg-4")
        assert session.missing == ["seg-4"]
        assert session.selections == {"seg-2": GRAVEL, "seg-4": GRAVEL}

    def test_commit_with_no_diverging_segments(self, shared_only_segments):
        session = RouteSession(shared_only_segments)
        session.begin_edit()
        session.commit()
        assert session.blended_route is not None


class TestBreakpoints:
    def test_set_breakpoints_sorted_and_filtered(self, blend_segments):
        session = RouteSession(blend_segments)
        session.set_breakpoints([70, 0, 30, 100, -5, 150])
        assert session.breakpoints == [30, 70]
        assert session.number_of_days == 3

    def test_committing_different_route_clears_breakpoints(self, blend_segments):
        session = RouteSession(blend_segments, {"seg-2": GRAVEL, "seg-4": GRAVEL})
        session.set_breakpoints([50])
        session.begin_edit()
        session.select("seg-2", TARMAC)
        assert session.breakpoints == [50]

        session.commit()
        assert session.breakpoints == []

    def test_committing_same_route_keeps_breakpoints(self, blend_segments):
        session = RouteSession(blend_segments, {"seg-2": GRAVEL, "seg-4": GRAVEL})
        session.set_breakpoints([50])
        session.begin_edit()
        session.select("seg-2", GRAVEL)
        session.commit()
        assert session.breakpoints == [50]

    def test_set_number_of_days(self, blend_segments):
        session = RouteSession(blend_segments, {"seg-2": GRAVEL, "seg-4": GRAVEL})
        session.set_number_of_days(4)
        assert session.breakpoints == pytest.approx([25, 50, 75])
        assert len(session.day_splits) == 4
        assert len(session.breakpoint_markers) == 3

    def test_set_number_of_days_invalid(self, blend_segments):
        session = RouteSession(blend_segments)
        with pytest.raises(ValueError):
            session.set_number_of_days(0)

    def test_single_day(self, blend_segments):
        session = RouteSession(blend_segments, {"seg-2": GRAVEL, "seg-4": GRAVEL})
        session.set_number_of_days(1)
        splits = session.day_splits
        assert len(splits) == 1
        assert splits[0].distance_km == pytest.approx(session.blended_route.distance_km)


class TestQuery:
    def test_empty_session_has_no_query(self, blend_segments):
        assert RouteSession(blend_segments).to_query() == {}

    def test_to_query(self, blend_segments):
        session = RouteSession(blend_segments, {"seg-2": TARMAC, "seg-4": GRAVEL})
        session.set_number_of_days(3)
        assert session.to_query() == {"route": "t2-g4", "days": "33,67"}

    def test_from_query(self, blend_segments):
        session = RouteSession.from_query(blend_segments, route="t2-g4", days="40,20")
        assert session.selections == {"seg-2": TARMAC, "seg-4": GRAVEL}
        assert session.breakpoints == [20, 40]

    def test_days_ignored_without_selections(self, blend_segments):
        session = RouteSession.from_query(blend_segments, route="g1-x9", days="50")
        assert session.selections == {}
        assert session.breakpoints == []

    def test_partial_route_keeps_days(self, blend_segments):
        session = RouteSession.from_query(blend_segments, route="t4", days="50")
        assert not session.is_complete
        assert session.breakpoints == [50]
        assert session.day_splits == []

    def test_query_round_trip(self, blend_segments):
        session = RouteSession(blend_segments, {"seg-2": GRAVEL, "seg-4": TARMAC})
        session.set_breakpoints([25, 60])
        restored = RouteSession.from_query(blend_segments, **session.to_query())
        assert restored.selections == session.selections
        assert restored.breakpoints == session.breakpoints

    def test_days_restored_when_nothing_diverges(self, shared_only_segments):
        session = RouteSession.from_query(shared_only_segments, days="50")
        assert session.breakpoints == [50]
        assert len(session.day_splits) == 2

    def test_days_only_query_when_nothing_diverges(self, shared_only_segments):
        session = RouteSession(shared_only_segments)
        session.set_number_of_days(2)
        assert session.to_query() == {"days": "50"}
        assert RouteSession.from_query(shared_only_segments, **session.to_query()).breakpoints == [50]
