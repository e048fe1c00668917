import pytest

from route_blender.daysplit import (
    calculate_range_stats,
    decode_breakpoints,
    encode_breakpoints,
    even_breakpoints,
    generate_day_splits,
    get_breakpoint_coordinates,
    percentage_to_coord_index,
)
from route_blender.distance import cumulative_distances
from route_blender.models import BlendedRoute

from conftest import make_line


def make_route(n_points=101, spacing_m=100.0):
    """Straight route climbing 1 m per point."""
    points = make_line(n_points, spacing_m=spacing_m, elevations=[float(i) for i in range(n_points)])
    coordinates = [(p.lng, p.lat, p.elevation) for p in points]
    total = cumulative_distances(coordinates)[-1]
    return BlendedRoute(
        coordinates=coordinates,
        distance_km=total,
        elevation_gain=float(n_points - 1),
        elevation_loss=0.0,
    )


class TestPercentageToCoordIndex:
    def test_empty(self):
        assert percentage_to_coord_index(50, [], 0.0) is None

    def test_ends(self):
        cumulative = [0.0, 1.0, 2.0]
        assert percentage_to_coord_index(0, cumulative, 2.0) == 0
        assert percentage_to_coord_index(-10, cumulative, 2.0) == 0
        assert percentage_to_coord_index(100, cumulative, 2.0) == 2

    def test_closest(self):
        cumulative = [0.0, 1.0, 2.0, 3.0, 4.0]
        assert percentage_to_coord_index(30, cumulative, 4.0) == 1
        assert percentage_to_coord_index(40, cumulative, 4.0) == 2


class TestGenerateDaySplits:
    def test_no_breakpoints_single_day(self):
        route = make_route()
        splits = generate_day_splits(route, [])
        assert len(splits) == 1
        split = splits[0]
        assert split.day_number == 1
        assert (split.start_pct, split.end_pct) == (0.0, 100.0)
        assert (split.start_coord_index, split.end_coord_index) == (0, 100)
        assert split.distance_km == pytest.approx(route.distance_km)
        assert split.elevation_gain == pytest.approx(100.0)

    def test_halves(self):
        route = make_route()
        first, second = generate_day_splits(route, [50])
        assert first.end_coord_index == 50
        assert second.start_coord_index == 50
        assert first.distance_km == pytest.approx(5.0, rel=1e-3)
        assert second.distance_km == pytest.approx(5.0, rel=1e-3)
        assert first.elevation_gain == pytest.approx(50.0)

    def test_three_days(self):
        route = make_route()
        splits = generate_day_splits(route, [33, 66])
        assert [s.day_number for s in splits] == [1, 2, 3]
        assert [(s.start_coord_index, s.end_coord_index) for s in splits] == [(0, 33), (33, 66), (66, 100)]
        assert [s.distance_km for s in splits] == pytest.approx([3.3, 3.3, 3.4], rel=1e-3)

    def test_unsorted_breakpoints(self):
        route = make_route()
        splits = generate_day_splits(route, [66, 33])
        assert [s.end_pct for s in splits] == [33, 66, 100.0]

    def test_days_cover_route(self):
        route = make_route()
        splits = generate_day_splits(route, [10, 45, 80])
        assert sum(s.distance_km for s in splits) == pytest.approx(route.distance_km)
        for a, b in zip(splits, splits[1:]):
            assert a.end_coord_index == b.start_coord_index

    def test_empty_route(self):
        route = BlendedRoute(coordinates=[], distance_km=0.0, elevation_gain=0.0, elevation_loss=0.0)
        assert generate_day_splits(route, [50]) == []

    def test_range_stats(self):
        route = make_route()
        distance_km, gain, loss = calculate_range_stats(route.coordinates, 10, 20)
        assert distance_km == pytest.approx(1.0, rel=1e-3)
        assert gain == pytest.approx(10.0)
        assert loss == 0.0


class TestBreakpointCoordinates:
    def test_markers(self):
        route = make_route()
        markers = get_breakpoint_coordinates(route, [25, 75])
        assert [m.coord_index for m in markers] == [25, 75]
        assert markers[0].coordinates == route.coordinates[25]
        assert markers[1].cumulative_distance_km == pytest.approx(7.5, rel=1e-3)

    def test_no_breakpoints(self):
        assert get_breakpoint_coordinates(make_route(), []) == []


class TestBreakpointTokens:
    def test_even_breakpoints(self):
        assert even_breakpoints(1) == []
        assert even_breakpoints(2) == [50.0]
        assert even_breakpoints(4) == pytest.approx([25.0, 50.0, 75.0])

    def test_encode_rounds(self):
        assert encode_breakpoints(even_breakpoints(3)) == "33,67"
        assert encode_breakpoints([]) == ""

    def test_encode_rounds_halves_up(self):
        assert encode_breakpoints(even_breakpoints(8)) == "13,25,38,50,63,75,88"
        assert encode_breakpoints([2.5, 49.5]) == "3,50"

    def test_decode(self):
        assert decode_breakpoints("33,67") == [33.0, 67.0]

    @pytest.mark.parametrize("param", [None, ""])
    def test_decode_empty(self, param):
        assert decode_breakpoints(param) == []

    def test_decode_filters_out_of_range_and_junk(self):
        assert decode_breakpoints("0,12.5,abc,100,-3,nan,99") == [12.5, 99.0]
