import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "nfc_attendance"),
    "connect_timeout": int(os.getenv("DB_CONNECT_TIMEOUT", "10")),
}

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))

# explicit: checkin/checkout endpoints decide; toggle: one reader, state decides
DISPATCH_MODE = os.getenv("DISPATCH_MODE", "explicit")
TIMEZONE = os.getenv("TIMEZONE", "UTC")

NOMINAL_START = os.getenv("NOMINAL_START") or None
LATE_GRACE_MINUTES = int(os.getenv("LATE_GRACE_MINUTES", "5"))
HALF_DAY_AFTER_MINUTES = int(os.getenv("HALF_DAY_AFTER_MINUTES", "240"))
MIN_FULL_DAY_MINUTES = int(os.getenv("MIN_FULL_DAY_MINUTES", "0")) or None

MIRROR_SECRET = os.getenv("MIRROR_SECRET", "dev-mirror-secret")
MIRROR_URL = os.getenv("MIRROR_URL") or None
MIRROR_PATH = os.getenv("MIRROR_PATH", "attendance")
MIRROR_AUTH = os.getenv("MIRROR_AUTH") or None

# Reader agent (client side)
API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:5000")
API_TOKEN = os.getenv("API_TOKEN") or None
READER_ID = os.getenv("READER_ID", "reader-1")
READER_LOCATION = os.getenv("READER_LOCATION") or None
# checkin/checkout for an explicit-mode service, tap for a toggle-mode one
READER_TAP_TYPE = os.getenv("READER_TAP_TYPE", "checkin")
OFFLINE_BUFFER_FILE = os.getenv("OFFLINE_BUFFER_FILE", "offline_buffer.json")
OFFLINE_BUFFER_MAX = int(os.getenv("OFFLINE_BUFFER_MAX", "1000"))
RETRY_INTERVAL_SECONDS = int(os.getenv("RETRY_INTERVAL_SECONDS", "30"))
