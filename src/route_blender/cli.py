import argparse
import logging
import sys

from route_blender.blend import decode_selections, encode_selections, missing_selections
from route_blender.config import DEFAULTS, get_setting, load_config, segmentation_params_from_config
from route_blender.daysplit import decode_breakpoints, encode_breakpoints
from route_blender.distance import coordinates_from_points
from route_blender.export import blended_route_to_gpx
from route_blender.parser import parse_gpx
from route_blender.profile import build_elevation_profile, calculate_route_stats
from route_blender.segmentation import analyze_segments, segmentation_summary
from route_blender.session import RouteSession
from route_blender.store import SegmentFileError, load_segments, save_segments

KM_TO_MILES = 0.621371
M_TO_FEET = 3.28084


def build_parser(config: dict | None = None) -> argparse.ArgumentParser:
    """Build argument parser with defaults from config file."""
    if config is None:
        config = {}

    parser = argparse.ArgumentParser(
        description="Compare two route variants and build a blended multi-day route."
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze = subparsers.add_parser("analyze", help="Find shared and diverging segments")
    analyze.add_argument("gravel_gpx", help="Path to the gravel variant GPX file")
    analyze.add_argument("tarmac_gpx", help="Path to the tarmac variant GPX file")
    analyze.add_argument(
        "-o", "--output",
        default=config.get("segments_path", "segments.json"),
        help="Where to write the segment list (default: segments.json)",
    )
    analyze.add_argument(
        "--resample-interval",
        type=float,
        default=get_setting(config, "resample_interval"),
        help=f"Resample spacing in meters (default: {DEFAULTS['resample_interval']})",
    )
    analyze.add_argument(
        "--overlap-threshold",
        type=float,
        default=get_setting(config, "overlap_threshold"),
        help=f"Max distance in meters for points to overlap (default: {DEFAULTS['overlap_threshold']})",
    )
    analyze.add_argument(
        "--min-segment-length",
        type=float,
        default=get_setting(config, "min_segment_length"),
        help=f"Shorter spans are merged, in meters (default: {DEFAULTS['min_segment_length']})",
    )
    analyze.add_argument(
        "--no-clamp",
        action="store_true",
        help="Do not force secondary sections to move forward along the tarmac track",
    )

    profile = subparsers.add_parser("profile", help="Show distance and elevation stats for a GPX file")
    profile.add_argument("gpx_file", help="Path to GPX file")

    build = subparsers.add_parser("build", help="Blend segments from a selection token")
    build.add_argument("segments", help="Segment list written by 'analyze'")
    build.add_argument("--route", required=True, help="Selection token, e.g. g1-t2-g3")
    days = build.add_mutually_exclusive_group()
    days.add_argument("--days", default=None, help="Day breakpoints in percent, e.g. 33,66")
    days.add_argument("--num-days", type=int, default=None, help="Split into N equal days")
    build.add_argument("--gpx", default=None, help="Write the blended route to this GPX file")
    return parser


def _fail(message: str) -> None:
    print(f"Error: {message}", file=sys.stderr)
    sys.exit(1)


def _load_track(path: str):
    try:
        points = parse_gpx(path)
    except FileNotFoundError:
        _fail(f"File not found: {path}")
    except Exception as e:
        _fail(f"Error parsing GPX file {path}: {e}")
    if len(points) < 2:
        _fail(f"{path} contains fewer than 2 track points.")
    return points


def run_analyze(args: argparse.Namespace, config: dict) -> None:
    gravel = _load_track(args.gravel_gpx)
    tarmac = _load_track(args.tarmac_gpx)
    params = segmentation_params_from_config({
        **config,
        "resample_interval": args.resample_interval,
        "overlap_threshold": args.overlap_threshold,
        "min_segment_length": args.min_segment_length,
    })
    if args.no_clamp:
        params.clamp_secondary = False

    segments = analyze_segments(gravel, tarmac, params)
    save_segments(segments, args.output)
    summary = segmentation_summary(segments)

    print("=== Segment Analysis ===")
    print(
        f"Config: resample={params.resample_interval_m}m overlap={params.overlap_threshold_m}m "
        f"min_segment={params.min_segment_length_m}m clamp={params.clamp_secondary}"
    )
    print(f"Total segments:     {summary['total']}")
    print(f"Shared segments:    {summary['shared']}")
    print(f"Diverging segments: {summary['diverging']}")
    print(f"Shared distance:    {summary['shared_km']:.1f} km")
    print(f"Diverging gravel:   {summary['diverging_gravel_km']:.1f} km")
    print(f"Diverging tarmac:   {summary['diverging_tarmac_km']:.1f} km")
    for s in segments:
        if s.is_diverging:
            print(
                f"  {s.id} (#{s.order}): Gravel {s.gravel.distance_km:.1f}km +{s.gravel.elevation_gain:.0f}m"
                f" | Tarmac {s.tarmac.distance_km:.1f}km +{s.tarmac.elevation_gain:.0f}m"
            )
    print(f"Saved {len(segments)} segments to {args.output}")


def run_profile(args: argparse.Namespace, config: dict) -> None:
    points = _load_track(args.gpx_file)
    profile = build_elevation_profile(
        coordinates_from_points(points), window=int(get_setting(config, "grade_window"))
    )
    stats = calculate_route_stats(profile)

    print("=== Route Profile ===")
    print(f"Points:         {len(profile)}")
    print(f"Distance:       {stats.distance:.2f} km ({stats.distance * KM_TO_MILES:.2f} mi)")
    print(f"Elevation Gain: {stats.elevation_gain:.0f} m ({stats.elevation_gain * M_TO_FEET:.0f} ft)")
    print(f"Elevation Loss: {stats.elevation_loss:.0f} m ({stats.elevation_loss * M_TO_FEET:.0f} ft)")
    print(f"Max Elevation:  {stats.max_elevation:.0f} m")
    print(f"Min Elevation:  {stats.min_elevation:.0f} m")
    print(f"Max Grade:      {max(p.grade for p in profile):.1f}%")


def run_build(args: argparse.Namespace) -> None:
    try:
        segments = load_segments(args.segments)
    except FileNotFoundError:
        _fail(f"File not found: {args.segments}")
    except SegmentFileError as e:
        _fail(str(e))

    selections = decode_selections(args.route, segments)
    missing = missing_selections(segments, selections)
    if missing:
        _fail(f"No selection for diverging segments: {', '.join(missing)}")

    session = RouteSession(segments, selections)
    if args.num_days is not None:
        if args.num_days < 1:
            _fail("--num-days must be at least 1")
        session.set_number_of_days(args.num_days)
    elif args.days:
        session.set_breakpoints(decode_breakpoints(args.days))

    route = session.blended_route
    print("=== Blended Route ===")
    print(f"Route:          {encode_selections(session.selections, segments)}")
    print(f"Points:         {len(route.coordinates)}")
    print(f"Distance:       {route.distance_km:.2f} km ({route.distance_km * KM_TO_MILES:.2f} mi)")
    print(f"Elevation Gain: {route.elevation_gain:.0f} m ({route.elevation_gain * M_TO_FEET:.0f} ft)")
    print(f"Elevation Loss: {route.elevation_loss:.0f} m ({route.elevation_loss * M_TO_FEET:.0f} ft)")

    if session.breakpoints:
        print(f"Days:           {encode_breakpoints(session.breakpoints)}")
    print("")
    print(f"{'Day':<5}{'From':>7}{'To':>7}{'Distance':>12}{'Gain':>9}{'Loss':>9}")
    for split in session.day_splits:
        print(
            f"{split.day_number:<5}{split.start_pct:>6.0f}%{split.end_pct:>6.0f}%"
            f"{split.distance_km:>9.1f} km{split.elevation_gain:>7.0f} m{split.elevation_loss:>7.0f} m"
        )

    if args.gpx:
        with open(args.gpx, "w") as f:
            f.write(blended_route_to_gpx(route))
        print(f"Saved GPX to {args.gpx}")


def main(argv: list[str] | None = None) -> None:
    config = load_config()
    parser = build_parser(config)
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command == "analyze":
        run_analyze(args, config)
    elif args.command == "profile":
        run_profile(args, config)
    elif args.command == "build":
        run_build(args)
