#!/usr/bin/env python3
"""
TrailNav - Turn-by-turn navigation guide

Usage:
    python -m trailnav DEST [options]

DEST is "lat,lon". Options:
    --origin LAT,LON   Start point (default: first GPS fix)
    --mode MODE        driving, walking, bicycling or transit
    --threshold M      Arrival radius in meters (default: 30)
    --route FILE       Navigate a saved route instead of fetching directions
    --save-route FILE  Save the fetched route to a JSON file
    --preview          Print the route and exit
    --playback FILE    Play back a recorded GPS trace
    --speed FACTOR     Playback speed multiplier (default: 1.0)
    --record FILE      Record the GPS trace to a JSON file
    --log FILE         Log file path (default: trailnav_TIMESTAMP.log)
    --api-key KEY      Directions API key (default: $TRAILNAV_DIRECTIONS_KEY)
    --quiet            Print audio prompts instead of speaking them
"""

import argparse
import json
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

from .app import Navigator, format_route_preview
from .audio import Audio
from .config import CONFIG
from .directions import DirectionsProvider
from .geo import retry_with_backoff
from .gps import GPSPlayback, GPSRecorder, PositionSource, TermuxGPS
from .guidance import ConsoleGuidance, LogGuidance, VoiceGuidance
from .logger import Logger
from .models import Coordinate, Route
from .session import InvalidRoute


def _coordinate(text: str) -> Coordinate:
    try:
        return Coordinate.parse(text)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="TrailNav - Turn-by-turn navigation guide"
    )
    parser.add_argument("destination", type=_coordinate, nargs="?",
                        help="Destination as lat,lon")
    parser.add_argument("--origin", type=_coordinate, metavar="LAT,LON",
                        help="Start point (default: first GPS fix)")
    parser.add_argument("--mode", default=CONFIG["default_travel_mode"],
                        choices=sorted(CONFIG["travel_modes"]),
                        help="Travel mode (default: %(default)s)")
    parser.add_argument("--threshold", type=float, default=CONFIG["arrival_threshold"],
                        help="Arrival radius in meters (default: %(default)s)")
    parser.add_argument("--route", metavar="FILE",
                        help="Navigate a saved route JSON file")
    parser.add_argument("--save-route", metavar="FILE",
                        help="Save the fetched route to a JSON file")
    parser.add_argument("--preview", action="store_true",
                        help="Print the route and exit")
    parser.add_argument("--playback", metavar="FILE",
                        help="Playback GPS trace from JSON file")
    parser.add_argument("--speed", type=float, default=1.0,
                        help="Playback speed multiplier (default: 1.0)")
    parser.add_argument("--record", metavar="FILE",
                        help="Record GPS trace to JSON file")
    parser.add_argument("--log", metavar="FILE",
                        help="Log file path (default: trailnav_TIMESTAMP.log)")
    parser.add_argument("--api-key", default=os.environ.get("TRAILNAV_DIRECTIONS_KEY"),
                        help="Directions API key")
    parser.add_argument("--quiet", action="store_true",
                        help="Print audio prompts instead of speaking them")
    return parser


def load_route(path: str) -> Route:
    with open(path) as f:
        return Route.from_dict(json.load(f))


def save_route(route: Route, path: str):
    with open(path, "w") as f:
        json.dump(route.to_dict(), f, indent=2)
    print(f"Route saved to {path}")


def resolve_origin(source: PositionSource, logger: Logger) -> Optional[Coordinate]:
    """First usable fix from the source, as a route origin"""
    if isinstance(source, GPSPlayback):
        fix = source.first_fix()
    else:
        print("Getting GPS fix...")

        def try_gps():
            fix = source.read_fix()
            if fix is None:
                logger.log("GPS attempt failed", {"status": source.get_status()})
            return fix

        fix = retry_with_backoff(try_gps, max_time=30.0, initial_delay=1.0,
                                 max_delay=8.0, description="GPS fix")
    if fix is None:
        return None
    try:
        return Coordinate(fix.lat, fix.lon)
    except ValueError:
        logger.log("GPS fix out of range", fix.to_dict())
        return None


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.route is None and args.destination is None:
        parser.error("a destination is required unless --route is given")
    if args.playback and args.record:
        parser.error("--playback and --record cannot be used together")
    if args.threshold <= 0:
        parser.error("--threshold must be positive")
    if args.speed <= 0:
        parser.error("--speed must be positive")

    # Set up GPS source
    if args.playback:
        if not Path(args.playback).exists():
            print(f"Playback file not found: {args.playback}")
            return 1
        source: PositionSource = GPSPlayback(args.playback, args.speed)
    elif args.record:
        source = GPSRecorder(TermuxGPS(), args.record)
    else:
        source = TermuxGPS()

    log_path = args.log
    if not log_path and not args.preview:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_path = f"trailnav_{timestamp}.log"
    logger = Logger(log_path)

    try:
        audio = Audio(muted=args.quiet)
        sinks = [ConsoleGuidance(), VoiceGuidance(audio, logger=logger), LogGuidance(logger)]
        directions = DirectionsProvider(api_key=args.api_key)
        navigator = Navigator(directions, source, sinks, logger,
                              arrival_threshold=args.threshold)

        if args.route:
            if not Path(args.route).exists():
                print(f"Route file not found: {args.route}")
                return 1
            try:
                route = load_route(args.route)
            except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
                print(f"Could not read route file: {e}")
                return 1
        else:
            origin = args.origin or resolve_origin(source, logger)
            if origin is None:
                print("Could not get GPS location")
                return 1
            route = navigator.plan(origin, args.destination, args.mode)
            if route is None:
                print(f"Could not get directions: {navigator.last_error}")
                return 1

        if args.save_route:
            save_route(route, args.save_route)

        if args.preview:
            print(format_route_preview(route))
            return 0

        try:
            arrived = navigator.run_route(route)
        except InvalidRoute as e:
            print(f"Cannot navigate this route: {e}")
            return 1
        return 0 if arrived else 2
    finally:
        logger.close()


if __name__ == "__main__":
    sys.exit(main())
