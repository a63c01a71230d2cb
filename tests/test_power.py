"""
Unit tests for best power extraction.
Tests the sliding window search, rounding and the record-to-series adapter.
"""

import math

import numpy as np
import pytest

from workoutanalytics.exceptions import ValidationError
from workoutanalytics.models import WindowResult
from workoutanalytics.power import (
    compute_best_window,
    extract_power_series,
    get_best_power_report,
    round_half_up,
)


def brute_force_best(series, duration):
    """Naive O(n*d) reference: best window sum and its earliest start."""
    best_sum, best_start = None, None
    for start in range(len(series) - duration + 1):
        window_sum = sum(series[start : start + duration])
        if best_sum is None or window_sum > best_sum:
            best_sum, best_start = window_sum, start
    return best_sum, best_start


class TestComputeBestWindow:
    """Tests for compute_best_window."""

    def test_matches_brute_force_on_random_series(self):
        rng = np.random.default_rng(20251021)
        for _ in range(200):
            length = int(rng.integers(1, 60))
            series = rng.integers(0, 1500, size=length).tolist()
            duration = int(rng.integers(1, length + 1))

            best_sum, best_start = brute_force_best(series, duration)
            result = compute_best_window(series, duration)

            assert result.best_average_power == round_half_up(best_sum / duration)
            assert result.start_offset_seconds == best_start
            assert 0 <= result.start_offset_seconds <= length - duration

    def test_earliest_window_wins_on_peak(self):
        series = [100, 100, 100, 200, 300, 400, 300, 200, 100, 100]

        result = compute_best_window(series, 3)

        assert result == WindowResult(3, 333, 4)

    def test_ties_keep_first_window(self):
        result = compute_best_window([250, 100, 250, 100], 1)

        assert result.best_average_power == 250
        assert result.start_offset_seconds == 0

    def test_duration_longer_than_series_is_unreachable(self):
        result = compute_best_window([200, 210, 220], 5)

        assert result.duration_seconds == 5
        assert result.best_average_power is None
        assert result.start_offset_seconds is None
        assert not result.reachable

    def test_duration_equal_to_series_length(self):
        result = compute_best_window([100, 200, 300], 3)

        assert result == WindowResult(3, 200, 0)

    def test_all_zero_series(self):
        result = compute_best_window([0, 0, 0, 0, 0], 3)

        assert result.best_average_power == 0
        assert result.start_offset_seconds == 0

    def test_half_rounds_up(self):
        # 2.5 would round to 2 with round-half-even
        result = compute_best_window([2, 3], 2)

        assert result.best_average_power == 3

    def test_missing_readings_count_as_zero(self):
        result = compute_best_window([None, 300, math.nan, 300], 2)

        assert result.best_average_power == 150
        assert result.start_offset_seconds == 0

    def test_float_readings(self):
        result = compute_best_window([100.4, 100.4, 300.6], 1)

        assert result.best_average_power == 301
        assert result.start_offset_seconds == 2

    @pytest.mark.parametrize("duration", [0, -5, 1.5, True, "60"])
    def test_invalid_duration_raises(self, duration):
        with pytest.raises(ValidationError):
            compute_best_window([100, 200, 300], duration)


class TestBestPowerReport:
    """Tests for get_best_power_report."""

    def test_results_sorted_by_duration(self):
        series = list(range(40))

        results = get_best_power_report(series, {30, 5, 15})

        assert [r.duration_seconds for r in results] == [5, 15, 30]

    def test_duplicate_durations_reported_once(self):
        results = get_best_power_report([100] * 10, [5, 1, 5])

        assert [r.duration_seconds for r in results] == [1, 5]

    def test_unreachable_durations_included(self):
        results = get_best_power_report([200] * 10, [1200, 5])

        assert results[0] == WindowResult(5, 200, 0)
        assert results[1] == WindowResult(1200, None, None)

    def test_invalid_duration_rejected_before_computing(self):
        with pytest.raises(ValidationError):
            get_best_power_report([100] * 10, [5, 0])

    def test_empty_durations(self):
        assert get_best_power_report([100, 200], []) == []


class TestRoundHalfUp:
    """Tests for round_half_up."""

    @pytest.mark.parametrize(
        "value,expected",
        [(0, 0), (2.5, 3), (3.5, 4), (332.5, 333), (220.49, 220), (219.5, 220), (7.0, 7),
         (0.49999999999999994, 0), (4503599627370495.5, 4503599627370496)],
    )
    def test_round_half_up(self, value, expected):
        assert round_half_up(value) == expected


class TestExtractPowerSeries:
    """Tests for extract_power_series."""

    def test_missing_power_becomes_zero(self):
        records = [{"power": 210}, {"heart_rate": 140}, {"power": 250}]

        assert extract_power_series(records) == [210, 0, 250]

    def test_integral_values_returned_as_ints(self):
        series = extract_power_series([{"power": 200.0}, {"power": None}, {"power": 305}])

        assert series == [200, 0, 305]
        assert all(isinstance(value, int) for value in series)

    def test_fractional_values_kept(self):
        series = extract_power_series([{"power": 200.5}, {"power": float("nan")}])

        assert series == [200.5, 0.0]

    def test_non_numeric_values_become_zero(self):
        series = extract_power_series([{"power": "n/a"}, {"power": True}, {"power": 180}])

        assert series == [0, 0, 180]

    def test_empty_records(self):
        assert extract_power_series([]) == []

    def test_series_feeds_best_window(self):
        records = [{"power": p} for p in [100, 100, 100, 200, 300, 400, 300, 200, 100, 100]]

        result = compute_best_window(extract_power_series(records), 3)

        assert result.best_average_power == 333
        assert result.start_offset_seconds == 4
