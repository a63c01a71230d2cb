"""
Workout Analytics - best power and interval comparison for Garmin Connect workouts.

This package provides tools for:
- Finding the best average power over target durations in a FIT recording
- Comparing laps across workouts with power and duration filters
- Named power peaks per workout and across a date range
- Resolving the authenticated account's identity once per session
- Exposing all of the above as JSON-returning async tools and a CLI
"""

from .credentials import create_env_file as setup_credentials
from .identity import IdentityResolver
from .intervals import compare_intervals, filter_laps, summarize_laps
from .models import (
    BestPowerReport,
    ComparisonResult,
    FilterCriteria,
    Lap,
    PowerPeak,
    UserIdentity,
    WindowResult,
    WorkoutDetail,
)
from .power import compute_best_window, extract_power_series, get_best_power_report
from .recording import decode_recording, load_recording

__version__ = "0.1.0"
__author__ = "Workout Analytics Contributors"

__all__ = [
    "compute_best_window",
    "get_best_power_report",
    "extract_power_series",
    "compare_intervals",
    "filter_laps",
    "summarize_laps",
    "IdentityResolver",
    "decode_recording",
    "load_recording",
    "BestPowerReport",
    "ComparisonResult",
    "FilterCriteria",
    "Lap",
    "PowerPeak",
    "UserIdentity",
    "WindowResult",
    "WorkoutDetail",
    "setup_credentials",
]
