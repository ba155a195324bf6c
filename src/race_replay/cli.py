import argparse
import logging
import sys
from datetime import date, datetime, time

from race_replay.config import load_config
from race_replay.course import resample
from race_replay.elevation_api import attach_elevation
from race_replay.formatters import format_duration_long, format_snapshot, slider_to_speed
from race_replay.parser import load_route
from race_replay.simulation import (
    DEFAULT_FRAME_INTERVAL,
    SimulationDriver,
    StatusSampler,
    VirtualClock,
    run_realtime,
)
from race_replay.weather import load_weather_csv

# Default values for CLI options
DEFAULTS = {
    "pace": "12:00",
    "start_time": "07:20",
    "speed": 1.0,
    "interval": 0.1,
    "emit_interval": 0.25,
}


def build_parser(config: dict | None = None) -> argparse.ArgumentParser:
    """Build argument parser with defaults from config file."""
    if config is None:
        config = {}

    def get_default(key: str):
        return config.get(key, DEFAULTS[key])

    parser = argparse.ArgumentParser(
        description="Replay a run along a race course with historical weather."
    )
    parser.add_argument("route_file", help="Path to KML or GPX route file")
    parser.add_argument(
        "--weather",
        type=str,
        default=config.get("weather"),
        help="CSV file of weather observations (date, temperature, dew point, wind speed, wind direction)",
    )
    parser.add_argument(
        "--pace",
        type=str,
        default=get_default("pace"),
        help=f"Target pace as MM:SS per mile (default: {DEFAULTS['pace']})",
    )
    parser.add_argument(
        "--start-time",
        type=str,
        default=get_default("start_time"),
        help=f"Race start time as HH:MM (default: {DEFAULTS['start_time']})",
    )
    parser.add_argument(
        "--date",
        type=str,
        default=config.get("date"),
        help="Race date as YYYY-MM-DD (default: date of the first weather record, else today)",
    )
    speed = parser.add_mutually_exclusive_group()
    speed.add_argument(
        "--speed",
        type=float,
        default=get_default("speed"),
        help=f"Replay speed multiplier (default: {DEFAULTS['speed']})",
    )
    speed.add_argument(
        "--slider",
        type=int,
        default=None,
        help="Replay speed as a 0-100 slider position (25 = real time)",
    )
    parser.add_argument(
        "--interval",
        type=float,
        default=get_default("interval"),
        help=f"Course marker spacing in miles (default: {DEFAULTS['interval']})",
    )
    parser.add_argument(
        "--emit-interval",
        type=float,
        default=get_default("emit_interval"),
        help=f"Wall-clock seconds between status lines (default: {DEFAULTS['emit_interval']})",
    )
    parser.add_argument(
        "--no-elevation",
        action="store_true",
        help="Skip the elevation lookup and treat the course as flat",
    )
    parser.add_argument(
        "--fast",
        action="store_true",
        help="Replay without waiting between frames",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser


def parse_start(start_time: str, race_date: str | None, weather: list) -> datetime:
    """Combine the race date and HH:MM start time into a datetime.

    Raises:
        ValueError: If either value is malformed.
    """
    start = time.fromisoformat(start_time)
    if race_date:
        day = date.fromisoformat(race_date)
    elif weather:
        day = weather[0].date.date()
    else:
        day = date.today()
    return datetime.combine(day, start)


def main(argv: list[str] | None = None) -> None:
    config = load_config()
    parser = build_parser(config)
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.interval <= 0:
        print("Error: --interval must be positive.", file=sys.stderr)
        sys.exit(1)

    try:
        points = load_route(args.route_file)
    except FileNotFoundError:
        print(f"Error: File not found: {args.route_file}", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"Error parsing route file: {e}", file=sys.stderr)
        sys.exit(1)

    if len(points) < 2:
        print("Error: Route contains fewer than 2 points.", file=sys.stderr)
        sys.exit(1)

    table = resample(points, args.interval)
    if not args.no_elevation:
        table = attach_elevation(table)

    weather = []
    if args.weather:
        try:
            weather = load_weather_csv(args.weather)
        except FileNotFoundError:
            print(f"Error: File not found: {args.weather}", file=sys.stderr)
            sys.exit(1)
        except ValueError as e:
            print(f"Error reading weather data: {e}", file=sys.stderr)
            sys.exit(1)

    try:
        race_start = parse_start(args.start_time, args.date, weather)
    except ValueError as e:
        print(f"Error: Invalid start date or time: {e}", file=sys.stderr)
        sys.exit(1)

    speed = args.speed if args.slider is None else slider_to_speed(args.slider)
    if speed <= 0:
        print("Error: Replay speed must be positive.", file=sys.stderr)
        sys.exit(1)

    sampler = StatusSampler(lambda snapshot: print(format_snapshot(snapshot), flush=True), args.emit_interval)
    driver = SimulationDriver(table, weather=weather, race_start=race_start, sampler=sampler)

    print("=== Race Replay ===")
    print(
        f"Course: {table.course_length:.2f} mi ({len(table)} markers)  "
        f"Pace: {args.pace}/mi  Start: {race_start:%Y-%m-%d %H:%M}  Speed: {speed:.1f}x"
    )
    if not table.has_elevation:
        print("Elevation: unavailable, assuming flat course")

    if not driver.start(args.pace):
        print("Error: Cannot start simulation: no course loaded.", file=sys.stderr)
        sys.exit(1)

    try:
        if args.fast:
            clock = VirtualClock()
            run_realtime(driver, speed, DEFAULT_FRAME_INTERVAL, clock=clock, sleep=clock.sleep)
        else:
            run_realtime(driver, speed, DEFAULT_FRAME_INTERVAL)
    except KeyboardInterrupt:
        driver.pause()
        print("Paused.")

    print(f"Distance: {driver.state.total_distance:.2f} mi")
    print(f"Race Time: {format_duration_long(driver.state.race_time_elapsed)}")
