"""
FIT recording decoding.

Binary decoding is done by fitparse; this module only unpacks the archive
Garmin Connect wraps activity files in and reshapes the decoded messages into
record dicts, session dicts and Lap objects.
"""

import gzip
import io
import logging
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Tuple, Union

from fitparse import FitFile
from fitparse.utils import FitParseError

from workoutanalytics.exceptions import RecordingCorruptedError, RecordingNotFoundError
from workoutanalytics.models import Lap

__all__ = [
    "Recording",
    "extract_fit_from_zip",
    "decode_recording",
    "load_recording",
    "summarize_recording",
]

logger = logging.getLogger(__name__)

SESSION_FIELDS = (
    "sport",
    "sub_sport",
    "start_time",
    "total_elapsed_time",
    "total_timer_time",
    "total_distance",
    "total_calories",
    "avg_speed",
    "max_speed",
    "avg_heart_rate",
    "max_heart_rate",
    "avg_power",
    "max_power",
    "normalized_power",
    "avg_cadence",
    "max_cadence",
    "total_ascent",
    "total_descent",
)

LAP_FIELDS = (
    "start_time",
    "total_elapsed_time",
    "total_distance",
    "avg_speed",
    "max_speed",
    "avg_heart_rate",
    "max_heart_rate",
    "avg_power",
    "max_power",
    "avg_cadence",
)


@dataclass(frozen=True)
class Recording:
    """Decoded messages of one FIT file."""

    records: List[Dict[str, Any]] = field(default_factory=list)
    sessions: List[Dict[str, Any]] = field(default_factory=list)
    lap_messages: List[Dict[str, Any]] = field(default_factory=list)
    file_id: Dict[str, Any] = field(default_factory=dict)

    @property
    def laps(self) -> Tuple[Lap, ...]:
        return tuple(Lap.from_fit(i, m) for i, m in enumerate(self.lap_messages, start=1))


def extract_fit_from_zip(data: bytes) -> bytes:
    """Return raw FIT bytes from a downloaded activity file.

    Garmin Connect serves original activity files as ZIP archives; gzip
    payloads and bare FIT data are accepted as well.

    Raises:
        RecordingCorruptedError: If the archive is unreadable or holds no .fit file.
    """
    if data[:2] == b"\x1f\x8b":
        try:
            return gzip.decompress(data)
        except (OSError, EOFError) as e:
            raise RecordingCorruptedError(f"Invalid gzip activity file: {e}") from e

    if data[:2] != b"PK":
        return data

    try:
        with zipfile.ZipFile(io.BytesIO(data)) as zip_file:
            fit_files = [name for name in zip_file.namelist() if name.lower().endswith(".fit")]
            if not fit_files:
                raise RecordingCorruptedError("No .fit file found in activity archive")
            return zip_file.read(fit_files[0])
    except zipfile.BadZipFile as e:
        raise RecordingCorruptedError(f"Invalid activity archive: {e}") from e


def _messages(ff: FitFile, name: str) -> List[Dict[str, Any]]:
    return [{d.name: d.value for d in m} for m in ff.get_messages(name)]


def decode_recording(data: Union[bytes, bytearray]) -> Recording:
    """Decode FIT bytes into a Recording.

    Args:
        data: FIT file contents, or a ZIP/gzip archive holding one.

    Returns:
        Recording with record, session and lap messages in file order.

    Raises:
        RecordingCorruptedError: If fitparse rejects the data.
    """
    payload = extract_fit_from_zip(bytes(data))
    try:
        ff = FitFile(io.BytesIO(payload))
        file_ids = _messages(ff, "file_id")
        recording = Recording(
            records=_messages(ff, "record"),
            sessions=_messages(ff, "session"),
            lap_messages=_messages(ff, "lap"),
            file_id=file_ids[0] if file_ids else {},
        )
    except FitParseError as e:
        raise RecordingCorruptedError(f"Not a valid FIT file: {e}") from e

    logger.debug(
        "Decoded FIT file: %d records, %d laps, %d sessions",
        len(recording.records),
        len(recording.lap_messages),
        len(recording.sessions),
    )
    return recording


def load_recording(path: Union[str, Path]) -> Recording:
    """Decode a FIT file from disk.

    Raises:
        RecordingNotFoundError: If the file does not exist.
        RecordingCorruptedError: If it is not a valid FIT file.
    """
    fit_path = Path(path).expanduser()
    if not fit_path.is_file():
        raise RecordingNotFoundError(f"FIT file not found: {fit_path}")
    return decode_recording(fit_path.read_bytes())


def _pick(message: Dict[str, Any], fields: Tuple[str, ...]) -> Dict[str, Any]:
    return {name: message[name] for name in fields if message.get(name) is not None}


def summarize_recording(recording: Recording) -> Dict[str, Any]:
    """Condensed view of a recording: file id, sessions, laps and record count.

    Full record lists are too long to be useful, so only the first and last
    records are included.
    """
    summary: Dict[str, Any] = {}
    if recording.file_id:
        summary["fileId"] = recording.file_id
    if recording.sessions:
        summary["sessions"] = [_pick(s, SESSION_FIELDS) for s in recording.sessions]
    if recording.lap_messages:
        summary["laps"] = [_pick(lap, LAP_FIELDS) for lap in recording.lap_messages]
    if recording.records:
        summary["recordCount"] = len(recording.records)
        summary["recordSummary"] = {
            "firstRecord": recording.records[0],
            "lastRecord": recording.records[-1],
        }
    return summary
