"""
Default values and Garmin Connect endpoint paths used across workoutanalytics.
"""

# Interval comparison
DEFAULT_DURATION_TOLERANCE = 2  # seconds either side of the target lap duration
UNTITLED_WORKOUT = "Untitled"
ALIGN_BY_FILTERED = "filtered"
ALIGN_BY_ORIGINAL = "original"
ALIGN_MODES = (ALIGN_BY_FILTERED, ALIGN_BY_ORIGINAL)

# Best power
DEFAULT_POWER_DURATIONS = (5, 60, 300, 1200)  # 5s, 1min, 5min, 20min
UNREACHABLE_DURATION_MESSAGE = "Duration exceeds recording length"

# Session handling
DEFAULT_TOKEN_STORE = "~/.garth"
DEFAULT_LOG_LEVEL = "WARNING"

# Garmin Connect API paths
SOCIAL_PROFILE_PATH = "/userprofile-service/socialProfile"
USER_SETTINGS_PATH = "/userprofile-service/userprofile/user-settings"
ACTIVITY_PATH = "/activity-service/activity/{activity_id}"
ACTIVITY_SPLITS_PATH = "/activity-service/activity/{activity_id}/splits"
ACTIVITY_DOWNLOAD_PATH = "/download-service/files/activity/{activity_id}"
ACTIVITY_SEARCH_PATH = "/activitylist-service/activities/search/activities"

# Workout listing
DEFAULT_WORKOUT_LIMIT = 100

# Named power peaks, seconds
POWER_PEAK_DURATIONS = {
    "power5sec": 5,
    "power10sec": 10,
    "power20sec": 20,
    "power30sec": 30,
    "power1min": 60,
    "power2min": 120,
    "power5min": 300,
    "power10min": 600,
    "power20min": 1200,
    "power30min": 1800,
    "power60min": 3600,
    "power90min": 5400,
}

# Current date formats; custom patterns use YYYY, MM and DD placeholders
DATE_FORMATS = ("iso", "us", "eu", "custom")
DEFAULT_CUSTOM_DATE_FORMAT = "YYYY-MM-DD"
