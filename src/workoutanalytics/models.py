"""
Data records shared by the analytics core and the Garmin Connect layer.

Garmin payloads are validated here, in the ``from_garmin``/``from_profile``
constructors, so the analytics functions can trust the records they receive.

Serialization keeps two kinds of absence apart: a value that was computed and
came out empty is written as ``None`` (JSON ``null``), while a value that was
never populated for an entry is left out of the mapping.
"""

import dataclasses
import math
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple

from dateutil import parser as date_parser

from workoutanalytics.constants import (
    ALIGN_BY_FILTERED,
    ALIGN_MODES,
    DEFAULT_DURATION_TOLERANCE,
    UNREACHABLE_DURATION_MESSAGE,
)
from workoutanalytics.exceptions import ValidationError

__all__ = [
    "WindowResult",
    "BestPowerReport",
    "PowerPeak",
    "Lap",
    "WorkoutDetail",
    "FilterCriteria",
    "LapValue",
    "LapRow",
    "WorkoutSummary",
    "ComparisonResult",
    "UserIdentity",
]


def _optional_number(value: Any, field: str) -> Optional[float]:
    """Return a numeric payload value, or None when it is missing or NaN."""
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{field} must be numeric, got {value!r}")
    if isinstance(value, float) and math.isnan(value):
        return None
    return value


def _to_iso_date(value: Any) -> Optional[str]:
    """Convert a Garmin local timestamp ("2025-10-20 07:30:00") to "2025-10-20"."""
    if not value:
        return None
    try:
        return date_parser.parse(str(value)).date().isoformat()
    except (ValueError, OverflowError) as e:
        raise ValidationError(f"Unparseable workout date: {value!r}") from e


def _compact(data: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in data.items() if value is not None}


@dataclass(frozen=True)
class WindowResult:
    """Best average power over one window length.

    Both values are None when the window is longer than the recording.
    """

    duration_seconds: int
    best_average_power: Optional[int]
    start_offset_seconds: Optional[int]

    @property
    def reachable(self) -> bool:
        return self.best_average_power is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "durationSeconds": self.duration_seconds,
            "bestAveragePower": self.best_average_power,
            "startOffsetSeconds": self.start_offset_seconds,
        }


@dataclass(frozen=True)
class BestPowerReport:
    """Best power results for one workout recording."""

    workout_id: int
    workout_title: Optional[str]
    workout_date: Optional[str]
    total_records: int
    results: Tuple[WindowResult, ...]

    def to_dict(self) -> Dict[str, Any]:
        results = []
        for result in self.results:
            entry = result.to_dict()
            if not result.reachable:
                entry["error"] = UNREACHABLE_DURATION_MESSAGE
            results.append(entry)
        return {
            "workoutId": self.workout_id,
            "workoutDate": self.workout_date,
            "workoutTitle": self.workout_title,
            "totalRecords": self.total_records,
            "results": results,
        }


@dataclass(frozen=True)
class PowerPeak:
    """Best average power for a named peak duration such as ``power5min``.

    ``workout_id`` and ``workout_date`` are set only for account-wide peaks,
    where the best effort may come from any workout in the range.
    """

    peak_type: str
    duration_seconds: int
    best_average_power: Optional[int]
    start_offset_seconds: Optional[int]
    workout_id: Optional[int] = None
    workout_date: Optional[str] = None

    @classmethod
    def from_window(
        cls,
        peak_type: str,
        window: WindowResult,
        workout_id: Optional[int] = None,
        workout_date: Optional[str] = None,
    ) -> "PowerPeak":
        return cls(
            peak_type=peak_type,
            duration_seconds=window.duration_seconds,
            best_average_power=window.best_average_power,
            start_offset_seconds=window.start_offset_seconds,
            workout_id=workout_id if window.reachable else None,
            workout_date=workout_date if window.reachable else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "type": self.peak_type,
            "durationSeconds": self.duration_seconds,
            "bestAveragePower": self.best_average_power,
            "startOffsetSeconds": self.start_offset_seconds,
        }
        data.update(_compact({"workoutId": self.workout_id, "workoutDate": self.workout_date}))
        return data


@dataclass(frozen=True)
class Lap:
    """One lap of a workout. Metrics are None when the source did not record them."""

    ordinal: int
    duration_seconds: Optional[float] = None
    average_power: Optional[float] = None
    max_power: Optional[float] = None

    @classmethod
    def from_garmin(cls, ordinal: int, split: Mapping[str, Any]) -> "Lap":
        """Build a Lap from an entry of the activity splits ``lapDTOs`` list."""
        return cls(
            ordinal=ordinal,
            duration_seconds=_optional_number(split.get("duration"), "duration"),
            average_power=_optional_number(split.get("averagePower"), "averagePower"),
            max_power=_optional_number(split.get("maxPower"), "maxPower"),
        )

    @classmethod
    def from_fit(cls, ordinal: int, message: Mapping[str, Any]) -> "Lap":
        """Build a Lap from a decoded FIT ``lap`` message (field name -> value)."""
        duration = message.get("total_elapsed_time")
        if duration is None:
            duration = message.get("total_timer_time")
        return cls(
            ordinal=ordinal,
            duration_seconds=_optional_number(duration, "total_elapsed_time"),
            average_power=_optional_number(message.get("avg_power"), "avg_power"),
            max_power=_optional_number(message.get("max_power"), "max_power"),
        )

    def renumbered(self, ordinal: int) -> "Lap":
        return dataclasses.replace(self, ordinal=ordinal)

    def to_dict(self) -> Dict[str, Any]:
        return _compact(
            {
                "ordinal": self.ordinal,
                "durationSeconds": self.duration_seconds,
                "averagePower": self.average_power,
                "maxPower": self.max_power,
            }
        )


@dataclass(frozen=True)
class WorkoutDetail:
    """A workout with its ordered laps."""

    workout_id: int
    title: Optional[str] = None
    date: Optional[str] = None
    laps: Tuple[Lap, ...] = ()

    @classmethod
    def from_garmin(
        cls, activity: Mapping[str, Any], splits: Optional[Mapping[str, Any]] = None
    ) -> "WorkoutDetail":
        """Build a WorkoutDetail from an activity payload and its splits payload.

        Args:
            activity: Response of ``/activity-service/activity/{id}``.
            splits: Response of ``/activity-service/activity/{id}/splits``.
                    None or a payload without ``lapDTOs`` means no laps.

        Raises:
            ValidationError: If the activity has no id or a malformed lap.
        """
        if not isinstance(activity, Mapping) or activity.get("activityId") is None:
            raise ValidationError("Activity payload has no activityId")

        summary = activity.get("summaryDTO") or {}
        start = summary.get("startTimeLocal") or activity.get("startTimeLocal")
        lap_dtos = (splits or {}).get("lapDTOs") or []

        return cls(
            workout_id=int(activity["activityId"]),
            title=activity.get("activityName") or None,
            date=_to_iso_date(start),
            laps=tuple(Lap.from_garmin(i, dto) for i, dto in enumerate(lap_dtos, start=1)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return _compact(
            {
                "workoutId": self.workout_id,
                "title": self.title,
                "date": self.date,
                "laps": [lap.to_dict() for lap in self.laps],
            }
        )


@dataclass(frozen=True)
class FilterCriteria:
    """Lap filters for interval comparison.

    ``align_by="filtered"`` numbers surviving laps 1..k per workout before
    aligning them; ``align_by="original"`` keeps each lap's source position.
    """

    min_power: Optional[float] = None
    target_duration: Optional[float] = None
    duration_tolerance: float = DEFAULT_DURATION_TOLERANCE
    align_by: str = ALIGN_BY_FILTERED

    def __post_init__(self):
        if self.align_by not in ALIGN_MODES:
            raise ValidationError(
                f"align_by must be one of {', '.join(ALIGN_MODES)}, got {self.align_by!r}"
            )
        if self.duration_tolerance < 0:
            raise ValidationError("duration_tolerance cannot be negative")


@dataclass(frozen=True)
class LapValue:
    """One workout's entry in a LapRow. Metrics stay None when the workout has no lap there."""

    workout_id: int
    title: Optional[str] = None
    date: Optional[str] = None
    avg_power: Optional[float] = None
    max_power: Optional[float] = None
    duration: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact(
            {
                "workoutId": self.workout_id,
                "title": self.title,
                "date": self.date,
                "avgPower": self.avg_power,
                "maxPower": self.max_power,
                "duration": self.duration,
            }
        )


@dataclass(frozen=True)
class LapRow:
    lap_number: int
    values: Tuple[LapValue, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {"lapNumber": self.lap_number, "values": [v.to_dict() for v in self.values]}


@dataclass(frozen=True)
class WorkoutSummary:
    """Statistics over a workout's surviving laps."""

    workout_id: int
    title: Optional[str]
    date: Optional[str]
    lap_count: int
    avg_power: Optional[int]
    min_power: Optional[float]
    max_power: Optional[float]
    power_range: Optional[float]
    total_duration: float

    def to_dict(self) -> Dict[str, Any]:
        data = {"workoutId": self.workout_id}
        data.update(_compact({"title": self.title, "date": self.date}))
        data.update(
            {
                "lapCount": self.lap_count,
                "avgPower": self.avg_power,
                "minPower": self.min_power,
                "maxPower": self.max_power,
                "powerRange": self.power_range,
                "totalDuration": self.total_duration,
            }
        )
        return data


@dataclass(frozen=True)
class ComparisonResult:
    lap_rows: Tuple[LapRow, ...]
    summaries: Tuple[WorkoutSummary, ...]
    warnings: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lapRows": [row.to_dict() for row in self.lap_rows],
            "summaries": [summary.to_dict() for summary in self.summaries],
            "warnings": list(self.warnings),
        }


@dataclass(frozen=True)
class UserIdentity:
    """The authenticated account's profile.

    ``athlete_id`` is the linked social profile id, or the user profile id for
    accounts without one.
    """

    id: int
    athlete_id: int
    email: Optional[str]
    first_name: Optional[str]
    last_name: Optional[str]
    date_of_birth: Optional[str] = None
    gender: Optional[str] = None
    country_code: Optional[str] = None
    timezone: Optional[str] = None
    is_premium: Optional[bool] = None

    @classmethod
    def from_profile(cls, profile: Mapping[str, Any]) -> "UserIdentity":
        """Build a UserIdentity from a Garmin social profile.

        The profile may carry a ``userData`` mapping taken from the user
        settings endpoint; birth date, gender and time zone are read from it.

        Raises:
            ValidationError: If the payload is not a profile mapping.
        """
        if not isinstance(profile, Mapping) or profile.get("profileId") is None:
            raise ValidationError("Invalid response from user profile API")

        user_id = int(profile["profileId"])
        linked_id = profile.get("id")
        first_name, _, last_name = (profile.get("fullName") or "").strip().partition(" ")
        user_data = profile.get("userData") or {}

        return cls(
            id=user_id,
            athlete_id=int(linked_id) if linked_id is not None else user_id,
            email=profile.get("emailAddress") or profile.get("userName"),
            first_name=first_name or None,
            last_name=last_name.strip() or None,
            date_of_birth=user_data.get("birthDate"),
            gender=user_data.get("gender"),
            country_code=profile.get("countryCode") or user_data.get("countryCode"),
            timezone=user_data.get("timeZone"),
            is_premium=profile.get("userPro"),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "athleteId": self.athlete_id,
            "email": self.email,
            "firstName": self.first_name,
            "lastName": self.last_name,
        }
        data.update(
            _compact(
                {
                    "dateOfBirth": self.date_of_birth,
                    "gender": self.gender,
                    "countryCode": self.country_code,
                    "timezone": self.timezone,
                    "isPremium": self.is_premium,
                }
            )
        )
        return data
