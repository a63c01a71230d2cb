"""
Best average power extraction for workout recordings.

This module turns decoded FIT ``record`` messages into a gap-free power
series and finds, for each requested window length, the highest average
power held over a contiguous window and where it started.
"""

import logging
import math
import numbers
from typing import Any, Iterable, List, Mapping, Sequence

import numpy as np

from workoutanalytics.exceptions import ValidationError
from workoutanalytics.models import WindowResult

__all__ = [
    "round_half_up",
    "extract_power_series",
    "compute_best_window",
    "get_best_power_report",
]

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, with .5 going up.

    Power and lap averages are never negative, so this is the same as rounding
    half away from zero. The built-in ``round`` rounds half to even and would
    report 2 for an average of 2.5. The fractional part is compared directly,
    because adding 0.5 first can round up values just below one half.
    """
    whole = math.floor(value)
    return int(whole) + (value - whole >= 0.5)


def extract_power_series(records: Iterable[Mapping[str, Any]]) -> List[float]:
    """Build a per-sample power series from decoded record messages.

    Args:
        records: Record messages as dicts (field name -> value), one per
                 sample, in recording order.

    Returns:
        List of power readings in watts. Records without a numeric ``power``
        field (missing, None, NaN, non-numeric) contribute a 0 so that the
        index of each reading stays equal to its sample offset. Values are
        ints when every reading is integral.

    Example:
        >>> extract_power_series([{"power": 210}, {"heart_rate": 140}, {"power": 250}])
        [210, 0, 250]
    """
    raw = []
    for record in records:
        value = record.get("power")
        numeric = isinstance(value, numbers.Real) and not isinstance(value, bool)
        raw.append(float(value) if numeric else np.nan)

    power = np.nan_to_num(np.asarray(raw, dtype=float), nan=0.0)
    if power.size and np.all(np.mod(power, 1) == 0):
        power = power.astype(np.int64)
    return power.tolist()


def _as_samples(series: Iterable[Any]) -> List[Any]:
    samples = []
    for value in series:
        if value is None or (isinstance(value, float) and math.isnan(value)):
            samples.append(0)
        else:
            samples.append(value)
    return samples


def _check_duration(duration_seconds: Any) -> None:
    if (
        isinstance(duration_seconds, bool)
        or not isinstance(duration_seconds, numbers.Integral)
        or duration_seconds < 1
    ):
        raise ValidationError(
            f"Window duration must be a positive whole number of seconds, got {duration_seconds!r}"
        )


def _best_window(samples: Sequence[Any], duration_seconds: int) -> WindowResult:
    if duration_seconds > len(samples):
        return WindowResult(duration_seconds, None, None)

    window_sum = sum(samples[:duration_seconds])
    best_sum = window_sum
    best_start = 0

    for i in range(duration_seconds, len(samples)):
        window_sum += samples[i] - samples[i - duration_seconds]
        # Strictly greater: ties keep the earliest window
        if window_sum > best_sum:
            best_sum = window_sum
            best_start = i - duration_seconds + 1

    return WindowResult(
        duration_seconds=int(duration_seconds),
        best_average_power=round_half_up(best_sum / duration_seconds),
        start_offset_seconds=best_start,
    )


def compute_best_window(series: Iterable[Any], duration_seconds: int) -> WindowResult:
    """Find the highest average power over any window of ``duration_seconds`` samples.

    Uses a running window sum (add the entering sample, drop the leaving one),
    so the cost is linear in the series length whatever the window size.

    Args:
        series: Power readings in watts at one-second offsets. None and NaN
                readings count as 0.
        duration_seconds: Window length in samples (seconds), at least 1.

    Returns:
        WindowResult with the rounded best average and the offset where that
        window starts. When several windows share the best sum the earliest
        one is reported. When the window is longer than the series both
        values are None; this is not an error.

    Raises:
        ValidationError: If ``duration_seconds`` is not a positive integer.

    Example:
        >>> compute_best_window([100, 100, 100, 200, 300, 400, 300, 200, 100, 100], 3)
        WindowResult(duration_seconds=3, best_average_power=333, start_offset_seconds=4)
    """
    _check_duration(duration_seconds)
    return _best_window(_as_samples(series), duration_seconds)


def get_best_power_report(series: Iterable[Any], durations: Iterable[int]) -> List[WindowResult]:
    """Compute best average power for several window lengths.

    Args:
        series: Power readings, as for compute_best_window.
        durations: Window lengths in seconds, in any order. Repeats are
                   reported once.

    Returns:
        One WindowResult per distinct duration, shortest first.
    """
    durations = list(durations)
    for duration in durations:
        _check_duration(duration)
    wanted = sorted(set(durations))

    samples = _as_samples(series)
    logger.debug("Computing best power for %d durations over %d samples", len(wanted), len(samples))
    return [_best_window(samples, duration) for duration in wanted]
