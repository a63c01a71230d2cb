#!/usr/bin/env python3
"""
Example script demonstrating how to use the workoutanalytics library.

This script shows how to:
1. Decode a local FIT file
2. Find best average power for standard durations
3. Compare the file's laps against a power filter
"""

import sys
from pathlib import Path

# Add src to path if running without installation
src_path = Path(__file__).parent.parent / "src"
if src_path.exists():
    sys.path.insert(0, str(src_path))

from workoutanalytics import (
    FilterCriteria,
    WorkoutDetail,
    compare_intervals,
    extract_power_series,
    get_best_power_report,
    load_recording,
)
from workoutanalytics.exceptions import RecordingError


def main():
    """Run example FIT file analysis."""
    data_dir = Path(__file__).parent.parent / "data" / "samples"

    if not data_dir.exists():
        print(f"Error: Data directory not found: {data_dir}")
        return 1

    fit_files = sorted(data_dir.glob("*.fit"))
    if not fit_files:
        print(f"No FIT files found in {data_dir}")
        return 1

    fit_file = fit_files[0]
    print(f"Analyzing: {fit_file.name}")
    print("=" * 60)

    try:
        recording = load_recording(fit_file)
    except RecordingError as e:
        print(f"❌ {e}")
        return 1

    series = extract_power_series(recording.records)
    print(f"\n⚡ Best power ({len(series)} records):")
    for result in get_best_power_report(series, [5, 60, 300, 1200]):
        if result.reachable:
            print(
                f"   {result.duration_seconds:>5} s: {result.best_average_power} W"
                f" (from {result.start_offset_seconds} s)"
            )
        else:
            print(f"   {result.duration_seconds:>5} s: longer than the recording")

    workout = WorkoutDetail(workout_id=0, title=fit_file.stem, laps=recording.laps)
    result = compare_intervals([workout], FilterCriteria(min_power=200))
    summary = result.summaries[0]
    print("\n🔁 Laps at or above 200 W:")
    print(f"   Count: {summary.lap_count}")
    print(f"   Avg Power: {summary.avg_power} W")
    print(f"   Range: {summary.power_range} W")
    for warning in result.warnings:
        print(f"   ⚠️  {warning}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
