"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_HISTORY_LIMIT = 30
DEFAULT_LATE_GRACE_MINUTES = 5
DEFAULT_HALF_DAY_AFTER_MINUTES = 240
DEFAULT_TIMEZONE = "UTC"

LOG_KEY_SEPARATOR = "_"
CLOCK_FORMAT = "%H:%M:%S"
DATE_FORMAT = "%Y-%m-%d"

DEFAULT_RETRY_INTERVAL_SECONDS = 30
DEFAULT_OFFLINE_BUFFER_MAX = 1000
DEFAULT_HTTP_TIMEOUT_SECONDS = 10
DEFAULT_READER_TAP_TYPE = "checkin"
