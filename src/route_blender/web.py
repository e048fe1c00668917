"""JSON and GPX endpoints over the interactive route-building path."""

import logging
import os
from dataclasses import asdict

import gpxpy.gpx
from flask import Flask, Response, jsonify, request

from route_blender import __version__, __version_date__, get_git_hash
from route_blender.cache import DictCache, make_blend_cache_key, make_file_cache_key
from route_blender.config import get_setting, load_config
from route_blender.daysplit import encode_breakpoints
from route_blender.distance import coordinates_from_points
from route_blender.export import blended_route_to_gpx
from route_blender.models import ROUTE_CHOICES, ElevationProfilePoint, Segment
from route_blender.parser import parse_gpx
from route_blender.profile import build_elevation_profile, calculate_route_stats
from route_blender.query import downsample_profile, find_closest_point, find_point_at_distance
from route_blender.segmentation import segmentation_summary
from route_blender.session import RouteSession
from route_blender.store import SegmentFileError, load_segments

logger = logging.getLogger(__name__)

app = Flask(__name__)

_segments_cache = DictCache(max_size=4)
_profile_cache = DictCache(max_size=8)
_blend_cache = DictCache(max_size=200)


class DataUnavailable(Exception):
    """Configured data file is missing or unreadable."""


def _segments_path() -> str | None:
    return app.config.get("SEGMENTS_PATH") or load_config().get("segments_path")


def _track_path(variant: str) -> str | None:
    paths = app.config.get("TRACK_PATHS") or {}
    return paths.get(variant) or load_config().get(f"{variant}_gpx")


def get_segments() -> list[Segment]:
    """Load the configured segment list, reloading when the file changes."""
    path = _segments_path()
    if not path or not os.path.exists(path):
        raise DataUnavailable("No segment file configured")

    key = make_file_cache_key(path, os.path.getmtime(path))
    segments = _segments_cache.get(key)
    if segments is None:
        try:
            segments = load_segments(path)
        except (SegmentFileError, OSError) as e:
            logger.warning("Failed to load segments: %s", e)
            raise DataUnavailable(str(e)) from e
        _segments_cache.set(key, segments)
    return segments


def get_profile(variant: str) -> list[ElevationProfilePoint]:
    """Elevation profile of one configured track variant."""
    path = _track_path(variant)
    if not path or not os.path.exists(path):
        raise DataUnavailable(f"No {variant} track configured")

    key = make_file_cache_key(path, os.path.getmtime(path))
    profile = _profile_cache.get(key)
    if profile is None:
        window = int(get_setting(load_config(), "grade_window"))
        try:
            points = parse_gpx(path)
        except (gpxpy.gpx.GPXException, OSError) as e:
            logger.warning("Failed to parse %s track %s: %s", variant, path, e)
            raise DataUnavailable(f"Unreadable {variant} track") from e
        profile = build_elevation_profile(coordinates_from_points(points), window=window)
        _profile_cache.set(key, profile)
    return profile


def _max_points_arg() -> int:
    default = int(get_setting(load_config(), "profile_max_points"))
    return request.args.get("max_points", default, type=int)


def _float_arg(name: str) -> float | None:
    return request.args.get(name, None, type=float)


def _session_from_request(segments: list[Segment]) -> RouteSession:
    session = RouteSession.from_query(
        segments, route=request.args.get("route"), days=request.args.get("days")
    )
    num_days = request.args.get("num_days", None, type=int)
    if num_days is not None and num_days >= 1 and session.is_complete:
        session.set_number_of_days(num_days)
    return session


def _incomplete_response(session: RouteSession):
    return jsonify({"error": "Incomplete selection", "missing": session.missing}), 409


def _profile_json(profile: list[ElevationProfilePoint], max_points: int) -> dict:
    return {
        "stats": asdict(calculate_route_stats(profile)),
        "points": [asdict(p) for p in downsample_profile(profile, max_points)],
    }


@app.errorhandler(DataUnavailable)
def data_unavailable(e):
    return jsonify({"error": str(e)}), 503


@app.route("/api/version")
def version():
    return jsonify({"version": __version__, "date": __version_date__, "git": get_git_hash()})


@app.route("/api/segments")
def segments_index():
    segments = get_segments()
    return jsonify({
        "segments": [s.to_dict() for s in segments],
        "summary": segmentation_summary(segments),
    })


@app.route("/api/blended")
def blended():
    segments = get_segments()
    session = _session_from_request(segments)
    if not session.is_complete:
        return _incomplete_response(session)

    query = session.to_query()
    # Exact breakpoints, since the shareable days token is rounded
    days_key = ",".join(str(b) for b in session.breakpoints)
    key = make_blend_cache_key(_segments_path(), query.get("route", ""), days_key)
    result = _blend_cache.get(key)
    if result is None:
        route = session.blended_route
        result = {
            "route": query.get("route", ""),
            "days": encode_breakpoints(session.breakpoints),
            "distance_km": route.distance_km,
            "elevation_gain": route.elevation_gain,
            "elevation_loss": route.elevation_loss,
            "coordinates": [list(c) for c in route.coordinates],
            "day_splits": [d.to_dict() for d in session.day_splits],
            "breakpoints": [b.to_dict() for b in session.breakpoint_markers],
        }
        _blend_cache.set(key, result)
    return jsonify(result)


@app.route("/api/blended.gpx")
def blended_gpx():
    segments = get_segments()
    session = _session_from_request(segments)
    route = session.blended_route
    if route is None:
        return _incomplete_response(session)

    return Response(
        blended_route_to_gpx(route),
        mimetype="application/gpx+xml",
        headers={"Content-Disposition": "attachment; filename=custom-route.gpx"},
    )


@app.route("/api/blended/profile")
def blended_profile():
    segments = get_segments()
    session = _session_from_request(segments)
    route = session.blended_route
    if route is None:
        return _incomplete_response(session)

    max_points = _max_points_arg()
    if max_points < 1:
        return jsonify({"error": "max_points must be at least 1"}), 400
    window = int(get_setting(load_config(), "grade_window"))
    return jsonify(_profile_json(build_elevation_profile(route.coordinates, window=window), max_points))


@app.route("/api/profile/<variant>")
def variant_profile(variant: str):
    if variant not in ROUTE_CHOICES:
        return jsonify({"error": f"Unknown route variant: {variant}"}), 404
    max_points = _max_points_arg()
    if max_points < 1:
        return jsonify({"error": "max_points must be at least 1"}), 400
    return jsonify(_profile_json(get_profile(variant), max_points))


@app.route("/api/profile/<variant>/at")
def variant_point_at(variant: str):
    if variant not in ROUTE_CHOICES:
        return jsonify({"error": f"Unknown route variant: {variant}"}), 404
    distance_km = _float_arg("distance_km")
    if distance_km is None:
        return jsonify({"error": "distance_km is required"}), 400

    point = find_point_at_distance(get_profile(variant), distance_km)
    return jsonify({"point": asdict(point) if point else None})


@app.route("/api/profile/<variant>/nearest")
def variant_nearest(variant: str):
    if variant not in ROUTE_CHOICES:
        return jsonify({"error": f"Unknown route variant: {variant}"}), 404
    lat = _float_arg("lat")
    lng = _float_arg("lng")
    if lat is None or lng is None:
        return jsonify({"error": "lat and lng are required"}), 400

    point = find_closest_point(get_profile(variant), lat, lng)
    return jsonify({"point": asdict(point) if point else None})


@app.route("/cache-stats")
def cache_stats():
    return jsonify({
        "segments": _segments_cache.stats(),
        "profiles": _profile_cache.stats(),
        "blended": _blend_cache.stats(),
    })


@app.route("/cache-clear", methods=["GET", "POST"])
def cache_clear():
    return jsonify({
        "segments": _segments_cache.clear(),
        "profiles": _profile_cache.clear(),
        "blended": _blend_cache.clear(),
    })


if __name__ == "__main__":
    app.run(debug=True, port=5050)
