import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "checkin_test"),
}

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

EVENT_ID = "test-event"

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))

PAGE_SIZE = 50

# Keep write retries fast under test.
WRITE_MAX_RETRIES = 3
WRITE_RETRY_BASE_DELAY = 0.0
WRITE_RETRY_BACKOFF = 2.0

SUBSCRIBE_TIMEOUT_SECONDS = 1.0
FALLBACK_POLL_SECONDS = 0.05
FEED_POLL_SECONDS = 0.01
RECONNECT_MAX_DELAY_SECONDS = 0.1
