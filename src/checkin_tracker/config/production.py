import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "checkin_db"),
}

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Required: create_app() refuses to start without it.
EVENT_ID = os.getenv("EVENT_ID")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))

PAGE_SIZE = int(os.getenv("PAGE_SIZE", "50"))

WRITE_MAX_RETRIES = int(os.getenv("WRITE_MAX_RETRIES", "3"))
WRITE_RETRY_BASE_DELAY = float(os.getenv("WRITE_RETRY_BASE_DELAY", "1.0"))
WRITE_RETRY_BACKOFF = float(os.getenv("WRITE_RETRY_BACKOFF", "2.0"))

SUBSCRIBE_TIMEOUT_SECONDS = float(os.getenv("SUBSCRIBE_TIMEOUT_SECONDS", "10"))
FALLBACK_POLL_SECONDS = float(os.getenv("FALLBACK_POLL_SECONDS", "15"))
FEED_POLL_SECONDS = float(os.getenv("FEED_POLL_SECONDS", "1.0"))
RECONNECT_MAX_DELAY_SECONDS = float(os.getenv("RECONNECT_MAX_DELAY_SECONDS", "30"))
