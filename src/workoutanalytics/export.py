"""
Tabular export of analytics results.

Best power reports and interval comparisons are flattened into pandas
DataFrames and written as CSV files.
"""

from pathlib import Path
from typing import Union

import pandas as pd

from workoutanalytics.models import BestPowerReport, ComparisonResult

__all__ = [
    "best_power_frame",
    "lap_rows_frame",
    "summaries_frame",
    "save_best_power_csv",
    "save_comparison_csv",
]

LAP_ROW_COLUMNS = ["lap_number", "workout_id", "title", "date", "avg_power", "max_power", "duration"]


def best_power_frame(report: BestPowerReport) -> pd.DataFrame:
    """One row per duration; unreachable durations have empty power and offset."""
    return pd.DataFrame(
        [
            {
                "workout_id": report.workout_id,
                "date": report.workout_date,
                "title": report.workout_title,
                "duration_s": result.duration_seconds,
                "best_power_w": result.best_average_power,
                "start_offset_s": result.start_offset_seconds,
            }
            for result in report.results
        ],
        columns=["workout_id", "date", "title", "duration_s", "best_power_w", "start_offset_s"],
    ).astype({"best_power_w": "Int64", "start_offset_s": "Int64"})


def lap_rows_frame(result: ComparisonResult) -> pd.DataFrame:
    """Long format: one row per (lap number, workout) pair."""
    return pd.DataFrame(
        [
            {
                "lap_number": row.lap_number,
                "workout_id": value.workout_id,
                "title": value.title,
                "date": value.date,
                "avg_power": value.avg_power,
                "max_power": value.max_power,
                "duration": value.duration,
            }
            for row in result.lap_rows
            for value in row.values
        ],
        columns=LAP_ROW_COLUMNS,
    )


def summaries_frame(result: ComparisonResult) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "workout_id": s.workout_id,
                "title": s.title,
                "date": s.date,
                "lap_count": s.lap_count,
                "avg_power": s.avg_power,
                "min_power": s.min_power,
                "max_power": s.max_power,
                "power_range": s.power_range,
                "total_duration": s.total_duration,
            }
            for s in result.summaries
        ],
        columns=[
            "workout_id",
            "title",
            "date",
            "lap_count",
            "avg_power",
            "min_power",
            "max_power",
            "power_range",
            "total_duration",
        ],
    )


def save_best_power_csv(report: BestPowerReport, output_dir: Union[str, Path]) -> Path:
    """Write ``best_power_{workout_id}.csv`` and return its path."""
    csv_path = Path(output_dir) / f"best_power_{report.workout_id}.csv"
    csv_path.parent.mkdir(parents=True, exist_ok=True)
    best_power_frame(report).to_csv(csv_path, index=False)
    return csv_path


def save_comparison_csv(result: ComparisonResult, output_dir: Union[str, Path]) -> Path:
    """Write ``interval_laps.csv`` and ``interval_summary.csv``; return the directory."""
    out_dir = Path(output_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    lap_rows_frame(result).to_csv(out_dir / "interval_laps.csv", index=False)
    summaries_frame(result).to_csv(out_dir / "interval_summary.csv", index=False)
    return out_dir
