"""
Runtime configuration loaded from environment variables.

Values are read from the process environment after an optional ``.env`` file
(see ``workoutanalytics-setup``) has been merged in. Variables already set in
the environment win over the file.
"""

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

from workoutanalytics.constants import (
    DEFAULT_DURATION_TOLERANCE,
    DEFAULT_LOG_LEVEL,
    DEFAULT_TOKEN_STORE,
)
from workoutanalytics.exceptions import ConfigurationError

__all__ = ["Settings", "load_settings"]


@dataclass(frozen=True)
class Settings:
    """Configuration for a workoutanalytics session."""

    email: Optional[str]
    password: Optional[str]
    token_store: str
    log_level: str
    duration_tolerance: float


def _parse_tolerance(raw: Optional[str]) -> float:
    if raw is None or not raw.strip():
        return float(DEFAULT_DURATION_TOLERANCE)
    try:
        value = float(raw)
    except ValueError as e:
        raise ConfigurationError(
            f"WORKOUTANALYTICS_DURATION_TOLERANCE must be a number, got {raw!r}"
        ) from e
    if value < 0:
        raise ConfigurationError("WORKOUTANALYTICS_DURATION_TOLERANCE cannot be negative")
    return value


def _parse_log_level(raw: Optional[str]) -> str:
    level = (raw or DEFAULT_LOG_LEVEL).strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ConfigurationError(f"Unknown log level: {raw!r}")
    return level


def load_settings(
    env_file: Optional[str] = ".env", environ: Optional[Mapping[str, str]] = None
) -> Settings:
    """Build Settings from the environment.

    Args:
        env_file: Path of a dotenv file to merge into ``os.environ`` first.
                  Pass None to skip reading a file.
        environ: Mapping to read instead of ``os.environ`` (mainly for tests).

    Returns:
        Settings instance.

    Raises:
        ConfigurationError: If a numeric or log level variable is malformed.
    """
    if env_file is not None and environ is None:
        load_dotenv(env_file, override=False)

    env = os.environ if environ is None else environ

    return Settings(
        email=env.get("GARMIN_EMAIL") or None,
        password=env.get("GARMIN_PASSWORD") or None,
        token_store=env.get("GARTH_HOME") or DEFAULT_TOKEN_STORE,
        log_level=_parse_log_level(env.get("WORKOUTANALYTICS_LOG_LEVEL")),
        duration_tolerance=_parse_tolerance(env.get("WORKOUTANALYTICS_DURATION_TOLERANCE")),
    )
