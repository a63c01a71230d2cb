"""Tests for custom exceptions."""

import pytest

from workoutanalytics.exceptions import (
    APIError,
    AuthenticationError,
    ConfigurationError,
    NoPowerDataError,
    RecordingCorruptedError,
    RecordingError,
    RecordingNotFoundError,
    ValidationError,
    WorkoutAnalyticsError,
)


def test_base_exception():
    """Test WorkoutAnalyticsError can be raised and caught."""
    with pytest.raises(WorkoutAnalyticsError):
        raise WorkoutAnalyticsError("Base error")


@pytest.mark.parametrize(
    "error_cls",
    [RecordingNotFoundError, RecordingCorruptedError, NoPowerDataError],
)
def test_recording_errors(error_cls):
    """Test recording errors are caught by their parents."""
    with pytest.raises(RecordingError):
        raise error_cls("Recording problem")

    with pytest.raises(WorkoutAnalyticsError):
        raise error_cls("Recording problem")


@pytest.mark.parametrize(
    "error_cls",
    [AuthenticationError, APIError, ConfigurationError, ValidationError],
)
def test_top_level_errors(error_cls):
    """Test remaining errors derive from the base exception only."""
    assert issubclass(error_cls, WorkoutAnalyticsError)
    assert not issubclass(error_cls, RecordingError)

    with pytest.raises(WorkoutAnalyticsError):
        raise error_cls("Failure")


def test_no_power_is_not_a_missing_file():
    """NoPowerDataError must not be mistaken for a missing recording."""
    with pytest.raises(NoPowerDataError):
        try:
            raise NoPowerDataError("No power data found in workout records")
        except RecordingNotFoundError:
            pytest.fail("caught by the wrong handler")


def test_exception_messages():
    """Test that exception messages are preserved."""
    msg = "No activity file available for workout 42"

    try:
        raise RecordingNotFoundError(msg)
    except WorkoutAnalyticsError as e:
        assert str(e) == msg

    try:
        raise ValidationError(msg)
    except ValidationError as e:
        assert str(e) == msg
