"""
Tool functions exposing the account's workouts and analytics.

Each tool is a coroutine returning pretty-printed JSON text, ready to hand to
a tool-calling client. Blocking Garmin Connect calls run in worker threads so
several workouts can be fetched at once.
"""

import asyncio
import json
import logging
import tempfile
from datetime import date
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence

from workoutanalytics.client import GarminConnect, workout_overview
from workoutanalytics.constants import (
    ALIGN_BY_FILTERED,
    DATE_FORMATS,
    DEFAULT_CUSTOM_DATE_FORMAT,
    DEFAULT_DURATION_TOLERANCE,
    DEFAULT_WORKOUT_LIMIT,
    POWER_PEAK_DURATIONS,
)
from workoutanalytics.exceptions import (
    NoPowerDataError,
    RecordingError,
    RecordingNotFoundError,
    ValidationError,
)
from workoutanalytics.identity import IdentityResolver
from workoutanalytics.intervals import compare_intervals as compare_workout_intervals
from workoutanalytics.models import (
    BestPowerReport,
    ComparisonResult,
    FilterCriteria,
    PowerPeak,
    WorkoutDetail,
)
from workoutanalytics.power import extract_power_series, get_best_power_report
from workoutanalytics.recording import (
    decode_recording,
    extract_fit_from_zip,
    load_recording,
    summarize_recording,
)

__all__ = [
    "to_json",
    "get_current_date",
    "get_user",
    "get_athlete_id",
    "list_workouts",
    "get_workouts",
    "get_workout",
    "get_workout_details",
    "build_best_power_report",
    "get_best_power",
    "build_workout_peaks",
    "get_workout_peaks",
    "build_power_peaks",
    "get_power_peaks",
    "build_interval_comparison",
    "compare_intervals",
    "download_fit_file",
    "parse_fit_file",
]

logger = logging.getLogger(__name__)


def to_json(data: Any) -> str:
    # default=str covers datetimes coming out of decoded FIT messages
    return json.dumps(data, indent=2, default=str)


def _parse_date(value: str, field: str) -> date:
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{field} must be a YYYY-MM-DD date, got {value!r}") from e


def _check_search(start_date: str, end_date: str, limit: int) -> None:
    if _parse_date(start_date, "startDate") > _parse_date(end_date, "endDate"):
        raise ValidationError(f"startDate {start_date} is after endDate {end_date}")
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
        raise ValidationError(f"limit must be a positive integer, got {limit!r}")


async def _search_workouts(
    connect: GarminConnect, start_date: str, end_date: str, limit: int
) -> List[Dict[str, Any]]:
    _check_search(start_date, end_date, limit)
    return await asyncio.to_thread(connect.search_workouts, start_date, end_date, limit)


async def get_current_date(
    date_format: str = "iso", custom_format: Optional[str] = None, today: Optional[date] = None
) -> str:
    """Today's local date as ``{"date": ...}``.

    Args:
        date_format: ``iso`` (YYYY-MM-DD), ``us`` (MM/DD/YYYY), ``eu``
                     (DD/MM/YYYY) or ``custom``.
        custom_format: Pattern for ``custom``; the first YYYY, MM and DD are
                       replaced. Defaults to ``YYYY-MM-DD``.
        today: Date to format instead of the current one.
    """
    if date_format not in DATE_FORMATS:
        raise ValidationError(
            f"Unknown date format {date_format!r}, expected one of {', '.join(DATE_FORMATS)}"
        )

    today = today or date.today()
    year, month, day = f"{today.year:04d}", f"{today.month:02d}", f"{today.day:02d}"

    if date_format == "us":
        result = f"{month}/{day}/{year}"
    elif date_format == "eu":
        result = f"{day}/{month}/{year}"
    elif date_format == "custom":
        pattern = custom_format or DEFAULT_CUSTOM_DATE_FORMAT
        result = pattern.replace("YYYY", year, 1).replace("MM", month, 1).replace("DD", day, 1)
    else:
        result = f"{year}-{month}-{day}"
    return to_json({"date": result})


async def get_user(resolver: IdentityResolver) -> str:
    """Current user profile, including the athlete id."""
    identity = await resolver.get_identity()
    return to_json(identity.to_dict())


async def get_athlete_id(resolver: IdentityResolver) -> str:
    return to_json({"athleteId": await resolver.get_athlete_id()})


async def list_workouts(
    connect: GarminConnect,
    start_date: str,
    end_date: str,
    limit: int = DEFAULT_WORKOUT_LIMIT,
) -> List[Dict[str, Any]]:
    """Summaries of the workouts between two dates, newest first.

    Raises:
        ValidationError: If a date is not YYYY-MM-DD, the range is reversed
                         or ``limit`` is not a positive integer.
    """
    activities = await _search_workouts(connect, start_date, end_date, limit)
    return [workout_overview(activity) for activity in activities]


async def get_workouts(
    connect: GarminConnect,
    start_date: str,
    end_date: str,
    limit: int = DEFAULT_WORKOUT_LIMIT,
) -> str:
    """Workouts between two dates (YYYY-MM-DD, inclusive)."""
    return to_json(await list_workouts(connect, start_date, end_date, limit))


async def get_workout(connect: GarminConnect, workout_id: int) -> str:
    """Single workout summary."""
    activity = await asyncio.to_thread(connect.get_workout, workout_id)
    return to_json(workout_overview(activity))


async def get_workout_details(connect: GarminConnect, workout_id: int) -> str:
    """Workout with title, date and laps."""
    detail = await asyncio.to_thread(connect.get_workout_detail, workout_id)
    return to_json(detail.to_dict())


async def _load_power_series(connect: GarminConnect, workout_id: int) -> List[float]:
    data = await asyncio.to_thread(connect.download_recording, workout_id)
    if data is None:
        raise RecordingNotFoundError(f"No activity file available for workout {workout_id}")

    recording = decode_recording(data)
    if not recording.records:
        raise RecordingError("No record data found in FIT file")

    series = extract_power_series(recording.records)
    if not any(power > 0 for power in series):
        raise NoPowerDataError("No power data found in workout records")
    return series


async def build_best_power_report(
    connect: GarminConnect, workout_id: int, durations: Iterable[int]
) -> BestPowerReport:
    """Download a workout's recording and compute best power for each duration.

    Raises:
        RecordingNotFoundError: If the workout has no activity file.
        RecordingError: If the file has no record messages.
        NoPowerDataError: If no record carries power above zero.
    """
    activity, series = await asyncio.gather(
        asyncio.to_thread(connect.get_workout, workout_id),
        _load_power_series(connect, workout_id),
    )

    workout = WorkoutDetail.from_garmin(activity)
    logger.info("Best power for workout %s over %d records", workout_id, len(series))
    return BestPowerReport(
        workout_id=workout_id,
        workout_title=workout.title,
        workout_date=workout.date,
        total_records=len(series),
        results=tuple(get_best_power_report(series, durations)),
    )


async def get_best_power(
    connect: GarminConnect, workout_id: int, durations: Iterable[int]
) -> str:
    """Best average power for target durations (seconds), shortest first."""
    report = await build_best_power_report(connect, workout_id, durations)
    return to_json(report.to_dict())


def _peak_names() -> Dict[int, str]:
    return {seconds: name for name, seconds in POWER_PEAK_DURATIONS.items()}


async def build_workout_peaks(connect: GarminConnect, workout_id: int) -> Dict[str, Any]:
    """Best power for every named peak duration (power5sec .. power90min) in one workout."""
    names = _peak_names()
    report = await build_best_power_report(connect, workout_id, list(names))
    return {
        "workoutId": report.workout_id,
        "workoutDate": report.workout_date,
        "workoutTitle": report.workout_title,
        "totalRecords": report.total_records,
        "peaks": [
            PowerPeak.from_window(names[result.duration_seconds], result).to_dict()
            for result in report.results
        ],
    }


async def get_workout_peaks(connect: GarminConnect, workout_id: int) -> str:
    return to_json(await build_workout_peaks(connect, workout_id))


async def build_power_peaks(
    connect: GarminConnect,
    start_date: str,
    end_date: str,
    limit: int = DEFAULT_WORKOUT_LIMIT,
) -> Dict[str, Any]:
    """Account-wide best power per named peak duration over a date range.

    Up to ``limit`` workouts from the range are downloaded concurrently.
    Workouts without a usable power recording are skipped. On equal power the
    workout listed first (the most recent) is kept.
    """
    activities = await _search_workouts(connect, start_date, end_date, limit)
    workouts = [WorkoutDetail.from_garmin(activity) for activity in activities]
    outcomes = await asyncio.gather(
        *(_load_power_series(connect, workout.workout_id) for workout in workouts),
        return_exceptions=True,
    )

    names = _peak_names()
    best: Dict[int, PowerPeak] = {}
    analyzed = 0
    for workout, outcome in zip(workouts, outcomes):
        if isinstance(outcome, RecordingError):
            logger.info("Skipping workout %s: %s", workout.workout_id, outcome)
            continue
        if isinstance(outcome, BaseException):
            raise outcome

        analyzed += 1
        for result in get_best_power_report(outcome, list(names)):
            current = best.get(result.duration_seconds)
            if result.reachable and (
                current is None or result.best_average_power > current.best_average_power
            ):
                best[result.duration_seconds] = PowerPeak.from_window(
                    names[result.duration_seconds], result, workout.workout_id, workout.date
                )

    peaks = [
        best.get(seconds) or PowerPeak(name, seconds, None, None)
        for name, seconds in sorted(POWER_PEAK_DURATIONS.items(), key=lambda item: item[1])
    ]
    logger.info(
        "Power peaks %s..%s from %d of %d workouts", start_date, end_date, analyzed, len(workouts)
    )
    return {
        "startDate": start_date,
        "endDate": end_date,
        "workoutsAnalyzed": analyzed,
        "peaks": [peak.to_dict() for peak in peaks],
    }


async def get_power_peaks(
    connect: GarminConnect,
    start_date: str,
    end_date: str,
    limit: int = DEFAULT_WORKOUT_LIMIT,
) -> str:
    """Best power per peak duration across the workouts between two dates."""
    return to_json(await build_power_peaks(connect, start_date, end_date, limit))


async def build_interval_comparison(
    connect: GarminConnect, workout_ids: Sequence[int], criteria: FilterCriteria
) -> ComparisonResult:
    """Fetch all workouts concurrently, then compare their laps in request order."""
    details = await asyncio.gather(
        *(asyncio.to_thread(connect.get_workout_detail, workout_id) for workout_id in workout_ids)
    )
    return compare_workout_intervals(details, criteria)


async def compare_intervals(
    connect: GarminConnect,
    workout_ids: Sequence[int],
    min_power: Optional[float] = None,
    target_duration: Optional[float] = None,
    duration_tolerance: float = DEFAULT_DURATION_TOLERANCE,
    align_by: str = ALIGN_BY_FILTERED,
) -> str:
    """Compare laps across workouts, optionally filtered by power and duration."""
    criteria = FilterCriteria(
        min_power=min_power,
        target_duration=target_duration,
        duration_tolerance=duration_tolerance,
        align_by=align_by,
    )
    result = await build_interval_comparison(connect, workout_ids, criteria)
    return to_json(result.to_dict())


def _save_fit_file(directory: Path, workout_id: int, data: bytes) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"{workout_id}_ACTIVITY.fit"
    path.write_bytes(data)
    return path


async def download_fit_file(
    connect: GarminConnect, workout_id: int, output_dir: Optional[str] = None
) -> str:
    """Save a workout's FIT file to disk, unzipped.

    Args:
        output_dir: Target directory, created if missing. Defaults to the
                    system temp directory.

    Raises:
        RecordingNotFoundError: If the workout has no activity file.
        RecordingCorruptedError: If the downloaded archive holds no FIT file.
    """
    data = await asyncio.to_thread(connect.download_recording, workout_id)
    if data is None:
        raise RecordingNotFoundError(f"No activity file available for workout {workout_id}")

    fit_data = extract_fit_from_zip(data)
    directory = Path(output_dir).expanduser() if output_dir else Path(tempfile.gettempdir())
    path = await asyncio.to_thread(_save_fit_file, directory, workout_id, fit_data)
    logger.info("Saved FIT file for workout %s to %s", workout_id, path)
    return to_json(
        {
            "success": True,
            "filePath": str(path),
            "size": len(fit_data),
            "message": f"FIT file saved to {path}",
        }
    )


async def parse_fit_file(file_path: str) -> str:
    """Parse a local FIT file and summarize sessions, laps and records."""
    recording = await asyncio.to_thread(load_recording, file_path)
    return to_json(summarize_recording(recording))
