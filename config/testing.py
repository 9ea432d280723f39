import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "nfc_attendance_test"),
}

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))

DISPATCH_MODE = "explicit"
TIMEZONE = "UTC"

NOMINAL_START = None
LATE_GRACE_MINUTES = 5
HALF_DAY_AFTER_MINUTES = 240
MIN_FULL_DAY_MINUTES = None

MIRROR_SECRET = "test-mirror-secret"
MIRROR_URL = None
MIRROR_PATH = "attendance"
MIRROR_AUTH = None

API_BASE_URL = "http://localhost:5000"
API_TOKEN = None
READER_ID = "test-reader"
READER_LOCATION = None
READER_TAP_TYPE = "checkin"
OFFLINE_BUFFER_FILE = os.getenv("OFFLINE_BUFFER_FILE", "offline_buffer.test.json")
OFFLINE_BUFFER_MAX = 100
RETRY_INTERVAL_SECONDS = 1
