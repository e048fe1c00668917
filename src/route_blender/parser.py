import gpxpy

from route_blender.models import TrackPoint


def parse_gpx(filepath: str) -> list[TrackPoint]:
    """Parse a GPX file and return a list of TrackPoints.

    Track points of every track segment are concatenated in file order. Files
    without tracks fall back to their route points. Missing elevation is
    recorded as 0.
    """
    with open(filepath, "r") as f:
        gpx = gpxpy.parse(f)

    points: list[TrackPoint] = []
    for track in gpx.tracks:
        for segment in track.segments:
            for pt in segment.points:
                points.append(_to_track_point(pt))

    if not points:
        for route in gpx.routes:
            for pt in route.points:
                points.append(_to_track_point(pt))
    return points


def _to_track_point(pt) -> TrackPoint:
    return TrackPoint(
        lat=pt.latitude,
        lng=pt.longitude,
        elevation=pt.elevation if pt.elevation is not None else 0.0,
    )
