"""
Garmin Connect data access.

Authentication, account profile, workout details and activity file downloads,
all through the garth client. Everything here is blocking; the tool layer
moves calls onto worker threads.
"""

import asyncio
import getpass
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import garth
from garth.exc import GarthHTTPError

from workoutanalytics.constants import (
    ACTIVITY_DOWNLOAD_PATH,
    ACTIVITY_PATH,
    ACTIVITY_SEARCH_PATH,
    ACTIVITY_SPLITS_PATH,
    DEFAULT_TOKEN_STORE,
    DEFAULT_WORKOUT_LIMIT,
    SOCIAL_PROFILE_PATH,
    USER_SETTINGS_PATH,
)
from workoutanalytics.exceptions import APIError
from workoutanalytics.identity import IdentityResolver
from workoutanalytics.models import WorkoutDetail

__all__ = [
    "authenticate_garmin",
    "GarminConnect",
    "create_identity_resolver",
    "workout_overview",
]

logger = logging.getLogger(__name__)


def authenticate_garmin(
    email: Optional[str] = None,
    password: Optional[str] = None,
    token_store: str = DEFAULT_TOKEN_STORE,
    client: Optional[garth.Client] = None,
) -> bool:
    """Authenticate with Garmin Connect, reusing saved session tokens when possible.

    Args:
        email: Garmin Connect account email. Falls back to GARMIN_EMAIL, then
               an interactive prompt.
        password: Account password. Falls back to GARMIN_PASSWORD, then a
                  getpass prompt.
        token_store: Directory holding garth session tokens (``~`` expanded).
        client: garth client to authenticate. Defaults to the shared
                ``garth.client``.

    Returns:
        True if a saved session was resumed or a fresh login succeeded,
        False if the login failed.
    """
    client = client or garth.client
    token_path = Path(token_store).expanduser()

    if token_path.exists():
        try:
            client.load(str(token_path))
            # Touch the session so an expired token fails here
            _ = client.username
            print("✅ Resumed existing Garmin Connect session")
            return True
        except (OSError, RuntimeError, ValueError, AttributeError, GarthHTTPError) as e:
            print(f"⚠️  Saved session expired or invalid: {e}")
            print("   Need to re-authenticate...")

    email = email or os.getenv("GARMIN_EMAIL") or input("Garmin Connect email: ")
    password = (
        password or os.getenv("GARMIN_PASSWORD") or getpass.getpass("Garmin Connect password: ")
    )

    try:
        print("🔐 Authenticating with Garmin Connect...")
        client.login(email, password)
        token_path.mkdir(parents=True, exist_ok=True)
        client.dump(str(token_path))
        print("✅ Authentication successful! Session saved.")
        return True
    except (OSError, RuntimeError, ValueError, GarthHTTPError) as e:
        print(f"❌ Authentication failed: {e}")
        if "MFA" in str(e) or "verification" in str(e).lower():
            print("\n💡 If you have MFA enabled, you may need to:")
            print("   1. Generate an app-specific password in your Garmin account")
            print("   2. Or disable MFA temporarily during first setup")
        return False


def _status_code(error: GarthHTTPError) -> Optional[int]:
    response = getattr(getattr(error, "error", None), "response", None)
    return getattr(response, "status_code", None)


def workout_overview(activity: Dict[str, Any]) -> Dict[str, Any]:
    """Flatten an activity payload into the fields a workout listing needs.

    Accepts both the single-activity payload, where metrics sit under
    ``summaryDTO``, and the flat entries returned by the activity search.
    """
    summary = activity.get("summaryDTO") or activity
    activity_type = activity.get("activityTypeDTO") or activity.get("activityType") or {}
    overview = {
        "workoutId": activity.get("activityId"),
        "title": activity.get("activityName"),
        "startTimeLocal": summary.get("startTimeLocal"),
        "sport": activity_type.get("typeKey"),
        "durationSeconds": summary.get("duration"),
        "distanceMeters": summary.get("distance"),
        "averagePower": summary.get("averagePower"),
        "maxPower": summary.get("maxPower"),
        "normalizedPower": summary.get("normalizedPower"),
        "averageHeartRate": summary.get("averageHR"),
        "maxHeartRate": summary.get("maxHR"),
    }
    return {key: value for key, value in overview.items() if value is not None}


class GarminConnect:
    """Blocking accessors for the Garmin Connect endpoints this package uses."""

    def __init__(self, client: Optional[garth.Client] = None):
        self.client = client or garth.client

    def fetch_profile(self) -> Dict[str, Any]:
        """Fetch the social profile, with the user settings' ``userData`` merged in.

        Raises:
            APIError: If the profile endpoint returns something other than an object.
            GarthHTTPError: On HTTP failures, unchanged.
        """
        profile = self.client.connectapi(SOCIAL_PROFILE_PATH)
        if not isinstance(profile, dict):
            raise APIError("Invalid response from user profile API")

        settings = self.client.connectapi(USER_SETTINGS_PATH)
        user_data = settings.get("userData") if isinstance(settings, dict) else None
        return {**profile, "userData": user_data or {}}

    async def fetch_profile_async(self) -> Dict[str, Any]:
        return await asyncio.to_thread(self.fetch_profile)

    def search_workouts(
        self, start_date: str, end_date: str, limit: int = DEFAULT_WORKOUT_LIMIT
    ) -> List[Dict[str, Any]]:
        """List workouts started between two dates (inclusive), newest first.

        A single page of at most ``limit`` entries is requested.
        """
        activities = self.client.connectapi(
            ACTIVITY_SEARCH_PATH,
            params={"startDate": start_date, "endDate": end_date, "start": 0, "limit": limit},
        )
        if activities is None:
            return []
        if not isinstance(activities, list):
            raise APIError("Invalid response from activity search API")
        logger.debug(
            "Activity search %s..%s returned %d entries", start_date, end_date, len(activities)
        )
        return activities

    def get_workout(self, workout_id: int) -> Dict[str, Any]:
        """Fetch the raw activity payload for a workout."""
        activity = self.client.connectapi(ACTIVITY_PATH.format(activity_id=workout_id))
        if not isinstance(activity, dict):
            raise APIError(f"Invalid response for workout {workout_id}")
        return activity

    def get_workout_detail(self, workout_id: int) -> WorkoutDetail:
        """Fetch a workout with its laps (Garmin "splits")."""
        activity = self.get_workout(workout_id)
        splits = self.client.connectapi(ACTIVITY_SPLITS_PATH.format(activity_id=workout_id))
        return WorkoutDetail.from_garmin(activity, splits if isinstance(splits, dict) else None)

    def download_recording(self, workout_id: int) -> Optional[bytes]:
        """Download the original activity file.

        Returns:
            The downloaded bytes (usually a ZIP holding the FIT file), or None
            when the workout has no activity file.
        """
        try:
            data = self.client.download(ACTIVITY_DOWNLOAD_PATH.format(activity_id=workout_id))
        except GarthHTTPError as e:
            if _status_code(e) == 404:
                logger.info("Workout %s has no activity file", workout_id)
                return None
            raise
        return data or None


def create_identity_resolver(connect: GarminConnect) -> IdentityResolver:
    """IdentityResolver backed by the account's Garmin Connect profile."""
    return IdentityResolver(connect.fetch_profile_async)
