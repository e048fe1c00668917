import pytest

from route_blender.models import DIVERGING, SHARED, Segment, TrackPoint
from route_blender.profile import segment_stats

# Roughly 111 km per degree of latitude
METERS_PER_DEG_LAT = 111_195.0


def make_line(n_points: int, spacing_m: float = 100.0, base_lat: float = 45.0,
              lng: float = 10.0, elevations: list[float] | None = None) -> list[TrackPoint]:
    """Points heading due north, evenly spaced."""
    lat_delta = spacing_m / METERS_PER_DEG_LAT
    return [
        TrackPoint(
            lat=base_lat + i * lat_delta,
            lng=lng,
            elevation=elevations[i] if elevations is not None else 100.0,
        )
        for i in range(n_points)
    ]


def make_segment(order: int, segment_type: str, gravel_coords, tarmac_coords=None) -> Segment:
    if tarmac_coords is None:
        tarmac_coords = gravel_coords
    return Segment(
        id=f"seg-{order}",
        type=segment_type,
        order=order,
        gravel=segment_stats(gravel_coords),
        tarmac=segment_stats(tarmac_coords),
    )


@pytest.fixture
def blend_segments():
    """Shared / diverging / shared / diverging / shared along a northbound line.

    Consecutive segments share their boundary coordinate. Tarmac variants of the
    diverging segments detour 0.01 deg east and climb higher.
    """
    lat = [45.0 + i * 0.01 for i in range(5)]
    return [
        make_segment(1, SHARED, [(10.0, lat[0], 100.0), (10.0, lat[1], 110.0)]),
        make_segment(
            2, DIVERGING,
            [(10.0, lat[1], 110.0), (10.0, (lat[1] + lat[2]) / 2, 115.0), (10.0, lat[2], 120.0)],
            [(10.0, lat[1], 110.0), (10.01, (lat[1] + lat[2]) / 2, 150.0), (10.0, lat[2], 120.0)],
        ),
        make_segment(3, SHARED, [(10.0, lat[2], 120.0), (10.0, lat[3], 100.0)]),
        make_segment(
            4, DIVERGING,
            [(10.0, lat[3], 100.0), (10.0, lat[4], 130.0)],
            [(10.0, lat[3], 100.0), (10.01, (lat[3] + lat[4]) / 2, 90.0), (10.0, lat[4], 130.0)],
        ),
        make_segment(5, SHARED, [(10.0, lat[4], 130.0), (10.0, lat[4] + 0.01, 125.0)]),
    ]


@pytest.fixture
def no_config(tmp_path, monkeypatch):
    """Ensure no config files exist."""
    from route_blender import config
    monkeypatch.setattr(config, "LOCAL_CONFIG_PATH", tmp_path / "nonexistent" / "route-blender.json")
    monkeypatch.setattr(config, "CONFIG_PATH", tmp_path / "nonexistent" / "global.json")


def write_gpx(path, points: list[TrackPoint]) -> str:
    """Write TrackPoints to a minimal GPX file and return its path."""
    rows = "\n".join(
        f'      <trkpt lat="{p.lat}" lon="{p.lng}"><ele>{p.elevation}</ele></trkpt>'
        for p in points
    )
    path.write_text(
        '<?xml version="1.0"?>\n'
        '<gpx version="1.1" xmlns="http://www.topografix.com/GPX/1/1">\n'
        "  <trk><trkseg>\n"
        f"{rows}\n"
        "  </trkseg></trk>\n"
        "</gpx>\n"
    )
    return str(path)
