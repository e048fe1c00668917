"""GPX export of a blended route."""

from datetime import datetime, timezone

import gpxpy.gpx

from route_blender.models import BlendedRoute

DEFAULT_ROUTE_NAME = "Custom Blended Route"
GPX_CREATOR = "route-blender"


def blended_route_to_gpx(route: BlendedRoute, name: str = DEFAULT_ROUTE_NAME,
                         time: datetime | None = None) -> str:
    """Serialize a blended route as a GPX 1.1 document with a single track.

    Elevation is written with one decimal place.
    """
    gpx = gpxpy.gpx.GPX()
    gpx.creator = GPX_CREATOR
    gpx.name = name
    gpx.time = time or datetime.now(timezone.utc)

    track = gpxpy.gpx.GPXTrack(name=name)
    gpx.tracks.append(track)
    segment = gpxpy.gpx.GPXTrackSegment()
    track.segments.append(segment)

    for lng, lat, elevation in route.coordinates:
        segment.points.append(gpxpy.gpx.GPXTrackPoint(
            latitude=lat,
            longitude=lng,
            elevation=round(elevation, 1),
        ))

    return gpx.to_xml(version="1.1")
