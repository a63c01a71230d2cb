"""
Custom exceptions for workoutanalytics.

Expected absence of data (unreachable durations, workouts without laps) is
reported through null values and warnings; these exceptions cover the cases
where a caller asked for something that cannot be produced.
"""


class WorkoutAnalyticsError(Exception):
    """Base exception for all workoutanalytics errors."""


class RecordingError(WorkoutAnalyticsError):
    """Exception raised when a workout recording cannot be used."""


class RecordingNotFoundError(RecordingError):
    """Exception raised when a workout has no activity file attached."""


class RecordingCorruptedError(RecordingError):
    """Exception raised when activity file data is not a readable FIT file."""


class NoPowerDataError(RecordingError):
    """Exception raised when a recording carries no usable power signal."""


class AuthenticationError(WorkoutAnalyticsError):
    """Exception raised for Garmin Connect authentication failures."""


class APIError(WorkoutAnalyticsError):
    """Exception raised for unexpected Garmin Connect API responses."""


class ConfigurationError(WorkoutAnalyticsError):
    """Exception raised for configuration errors."""


class ValidationError(WorkoutAnalyticsError):
    """Exception raised for data validation errors."""
