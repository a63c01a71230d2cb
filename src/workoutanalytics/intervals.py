"""
Cross-workout interval comparison.

Compares the laps of several workouts side by side: laps are filtered per
workout, lined up by position into rows, and summarized per workout. All
functions here are pure; fetching the workouts is the caller's job.
"""

from typing import Dict, List, Optional, Sequence, Tuple

from workoutanalytics.constants import ALIGN_BY_ORIGINAL, UNTITLED_WORKOUT
from workoutanalytics.models import (
    ComparisonResult,
    FilterCriteria,
    Lap,
    LapRow,
    LapValue,
    WorkoutDetail,
    WorkoutSummary,
)
from workoutanalytics.power import round_half_up

__all__ = [
    "lap_matches",
    "filter_laps",
    "align_laps",
    "summarize_laps",
    "collect_warnings",
    "compare_intervals",
]


def lap_matches(lap: Lap, criteria: FilterCriteria) -> bool:
    """Check a single lap against the power and duration filters.

    A lap without average power fails a ``min_power`` filter, and a lap
    without duration fails a ``target_duration`` filter.
    """
    if criteria.min_power is not None:
        if lap.average_power is None or lap.average_power < criteria.min_power:
            return False

    if criteria.target_duration is not None:
        if lap.duration_seconds is None:
            return False
        if abs(lap.duration_seconds - criteria.target_duration) > criteria.duration_tolerance:
            return False

    return True


def filter_laps(laps: Sequence[Lap], criteria: FilterCriteria) -> List[Lap]:
    """Keep the laps that pass the filters.

    With ``align_by="filtered"`` the survivors are renumbered 1..k in their
    original order; with ``align_by="original"`` they keep their ordinals.
    """
    kept = [lap for lap in laps if lap_matches(lap, criteria)]
    if criteria.align_by == ALIGN_BY_ORIGINAL:
        return kept
    return [lap.renumbered(i) for i, lap in enumerate(kept, start=1)]


def _lap_value(workout: WorkoutDetail, lap: Optional[Lap]) -> LapValue:
    if lap is None:
        return LapValue(workout.workout_id, workout.title, workout.date)
    return LapValue(
        workout_id=workout.workout_id,
        title=workout.title,
        date=workout.date,
        avg_power=lap.average_power,
        max_power=lap.max_power,
        duration=lap.duration_seconds,
    )


def align_laps(
    workouts: Sequence[WorkoutDetail], filtered: Sequence[Sequence[Lap]]
) -> Tuple[LapRow, ...]:
    """Line up laps from several workouts into rows keyed by lap ordinal.

    Args:
        workouts: The compared workouts, in request order.
        filtered: Surviving laps for each workout, same order as ``workouts``.

    Returns:
        One LapRow per ordinal, ascending. Every row has exactly one value per
        workout; a workout without a lap at that ordinal still contributes its
        id, title and date with no metrics.
    """
    by_ordinal: List[Dict[int, Lap]] = [{lap.ordinal: lap for lap in laps} for laps in filtered]
    ordinals = sorted({ordinal for laps in by_ordinal for ordinal in laps})

    return tuple(
        LapRow(
            lap_number=ordinal,
            values=tuple(
                _lap_value(workout, laps.get(ordinal))
                for workout, laps in zip(workouts, by_ordinal)
            ),
        )
        for ordinal in ordinals
    )


def summarize_laps(workout: WorkoutDetail, laps: Sequence[Lap]) -> WorkoutSummary:
    """Summarize a workout over the given (already filtered) laps.

    Power statistics use lap average power only; laps without it are left
    out of the mean, min and max. Undefined durations add nothing to the
    total.
    """
    powers = [lap.average_power for lap in laps if lap.average_power is not None]
    total_duration = sum(lap.duration_seconds or 0 for lap in laps)

    if powers:
        min_power = min(powers)
        max_power = max(powers)
        avg_power = round_half_up(sum(powers) / len(powers))
        power_range = max_power - min_power
    else:
        min_power = max_power = avg_power = power_range = None

    return WorkoutSummary(
        workout_id=workout.workout_id,
        title=workout.title,
        date=workout.date,
        lap_count=len(laps),
        avg_power=avg_power,
        min_power=min_power,
        max_power=max_power,
        power_range=power_range,
        total_duration=total_duration,
    )


def collect_warnings(workouts: Sequence[WorkoutDetail]) -> Tuple[str, ...]:
    """Warn about workouts that have no laps at all, before any filtering."""
    return tuple(
        f"Workout {workout.workout_id} ({workout.title or UNTITLED_WORKOUT}) has no laps"
        for workout in workouts
        if not workout.laps
    )


def compare_intervals(
    workouts: Sequence[WorkoutDetail], criteria: Optional[FilterCriteria] = None
) -> ComparisonResult:
    """Compare laps across workouts.

    Args:
        workouts: Workouts to compare. Output rows and summaries follow this
                  order.
        criteria: Lap filters and alignment mode. Defaults to no filtering.

    Returns:
        ComparisonResult with aligned lap rows, one summary per workout and a
        warning per workout that has no laps. Missing data never raises.

    Example:
        >>> a = WorkoutDetail(1, "Tuesday", "2025-10-21", (Lap(1, 1800, 210), Lap(2, 1800, 230)))
        >>> result = compare_intervals([a], FilterCriteria(min_power=220))
        >>> result.lap_rows[0].values[0].avg_power
        230
    """
    criteria = criteria or FilterCriteria()
    filtered = [filter_laps(workout.laps, criteria) for workout in workouts]

    return ComparisonResult(
        lap_rows=align_laps(workouts, filtered),
        summaries=tuple(
            summarize_laps(workout, laps) for workout, laps in zip(workouts, filtered)
        ),
        warnings=collect_warnings(workouts),
    )
