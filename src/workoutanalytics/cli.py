#!/usr/bin/env python3
"""
Command-line interface for workoutanalytics.

Usage:
    workoutanalytics whoami
    workoutanalytics workouts 2025-10-01 2025-10-31 --limit 20
    workoutanalytics best-power 20747700969 --durations 5 60 300 1200
    workoutanalytics compare 20747700969 20765123456 --min-power 250 --csv-dir data
    workoutanalytics peaks 20747700969
    workoutanalytics power-peaks 2025-09-01 2025-10-31
    workoutanalytics download 20747700969 --output-dir data/fit
    workoutanalytics parse data/samples/20747700969_ACTIVITY.fit
"""

import argparse
import asyncio
import contextlib
import logging
import sys
from typing import List, Optional

from garth.exc import GarthHTTPError

from workoutanalytics.client import GarminConnect, authenticate_garmin, create_identity_resolver
from workoutanalytics.config import Settings, load_settings
from workoutanalytics.constants import (
    ALIGN_BY_FILTERED,
    ALIGN_MODES,
    DEFAULT_POWER_DURATIONS,
    DEFAULT_WORKOUT_LIMIT,
)
from workoutanalytics.exceptions import AuthenticationError, WorkoutAnalyticsError
from workoutanalytics.export import save_best_power_csv, save_comparison_csv
from workoutanalytics.models import FilterCriteria
from workoutanalytics.tools import (
    build_best_power_report,
    build_interval_comparison,
    download_fit_file,
    get_power_peaks,
    get_user,
    get_workout_peaks,
    get_workouts,
    parse_fit_file,
    to_json,
)

__all__ = ["build_parser", "main"]

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser with one subcommand per tool."""
    parser = argparse.ArgumentParser(
        prog="workoutanalytics",
        description="Best power and interval comparison for Garmin Connect workouts",
    )
    parser.add_argument("--email", help="Garmin Connect email (or set GARMIN_EMAIL env var)")
    parser.add_argument(
        "--password", help="Garmin Connect password (or set GARMIN_PASSWORD env var)"
    )
    parser.add_argument("--token-store", help="Session token directory (default: ~/.garth)")
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default: WARNING)",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("whoami", help="Show the authenticated account profile")

    workouts = commands.add_parser("workouts", help="List workouts between two dates")
    workouts.add_argument("start_date", help="YYYY-MM-DD")
    workouts.add_argument("end_date", help="YYYY-MM-DD")
    workouts.add_argument("--limit", type=int, default=DEFAULT_WORKOUT_LIMIT)

    best = commands.add_parser("best-power", help="Best average power for target durations")
    best.add_argument("workout_id", type=int)
    best.add_argument(
        "--durations",
        type=int,
        nargs="+",
        default=list(DEFAULT_POWER_DURATIONS),
        help="Window lengths in seconds (default: 5 60 300 1200)",
    )
    best.add_argument("--csv-dir", help="Also write the report as CSV into this directory")

    compare = commands.add_parser("compare", help="Compare laps across workouts")
    compare.add_argument("workout_ids", type=int, nargs="+")
    compare.add_argument("--min-power", type=float, help="Keep laps averaging at least this")
    compare.add_argument("--target-duration", type=float, help="Keep laps near this length (s)")
    compare.add_argument(
        "--tolerance", type=float, help="Allowed deviation from --target-duration (default: 2)"
    )
    compare.add_argument(
        "--align-by",
        choices=ALIGN_MODES,
        default=ALIGN_BY_FILTERED,
        help="Pair laps by position after filtering (default) or by original lap number",
    )
    compare.add_argument("--csv-dir", help="Also write lap rows and summaries as CSV")

    peaks = commands.add_parser("peaks", help="Best power for every peak duration in a workout")
    peaks.add_argument("workout_id", type=int)

    power_peaks = commands.add_parser(
        "power-peaks", help="Best power per peak duration across a date range"
    )
    power_peaks.add_argument("start_date", help="YYYY-MM-DD")
    power_peaks.add_argument("end_date", help="YYYY-MM-DD")
    power_peaks.add_argument(
        "--limit", type=int, default=DEFAULT_WORKOUT_LIMIT, help="Most workouts to scan"
    )

    download = commands.add_parser("download", help="Save a workout's FIT file")
    download.add_argument("workout_id", type=int)
    download.add_argument("--output-dir", help="Target directory (default: system temp dir)")

    parse = commands.add_parser("parse", help="Summarize a local FIT file")
    parse.add_argument("fit_file")

    return parser


def _connect(args: argparse.Namespace, settings: Settings) -> GarminConnect:
    connect = GarminConnect()
    # Keep stdout for JSON output
    with contextlib.redirect_stdout(sys.stderr):
        authenticated = authenticate_garmin(
            args.email or settings.email,
            args.password or settings.password,
            token_store=args.token_store or settings.token_store,
            client=connect.client,
        )
    if not authenticated:
        raise AuthenticationError("Could not authenticate with Garmin Connect")
    return connect


def _run_command(args: argparse.Namespace, settings: Settings) -> int:
    if args.command == "parse":
        print(asyncio.run(parse_fit_file(args.fit_file)))
        return 0

    connect = _connect(args, settings)

    if args.command == "whoami":
        print(asyncio.run(get_user(create_identity_resolver(connect))))

    elif args.command == "workouts":
        print(asyncio.run(get_workouts(connect, args.start_date, args.end_date, args.limit)))

    elif args.command == "best-power":
        report = asyncio.run(build_best_power_report(connect, args.workout_id, args.durations))
        print(to_json(report.to_dict()))
        if args.csv_dir:
            csv_path = save_best_power_csv(report, args.csv_dir)
            print(f"✅ Created: {csv_path}", file=sys.stderr)

    elif args.command == "compare":
        tolerance = args.tolerance if args.tolerance is not None else settings.duration_tolerance
        criteria = FilterCriteria(
            min_power=args.min_power,
            target_duration=args.target_duration,
            duration_tolerance=tolerance,
            align_by=args.align_by,
        )
        result = asyncio.run(build_interval_comparison(connect, args.workout_ids, criteria))
        print(to_json(result.to_dict()))
        for warning in result.warnings:
            print(f"⚠️  {warning}", file=sys.stderr)
        if args.csv_dir:
            out_dir = save_comparison_csv(result, args.csv_dir)
            print(f"✅ Created: {out_dir / 'interval_laps.csv'}", file=sys.stderr)
            print(f"✅ Created: {out_dir / 'interval_summary.csv'}", file=sys.stderr)

    elif args.command == "peaks":
        print(asyncio.run(get_workout_peaks(connect, args.workout_id)))

    elif args.command == "power-peaks":
        print(asyncio.run(get_power_peaks(connect, args.start_date, args.end_date, args.limit)))

    elif args.command == "download":
        print(asyncio.run(download_fit_file(connect, args.workout_id, args.output_dir)))

    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the workoutanalytics command."""
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings()
    except WorkoutAnalyticsError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1

    logging.basicConfig(
        level=(args.log_level or settings.log_level).upper(),
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        return _run_command(args, settings)
    except (WorkoutAnalyticsError, GarthHTTPError) as e:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"❌ {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
