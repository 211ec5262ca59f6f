"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

PAGE_SIZE = 50
MAX_SEARCH_PATTERNS = 100
DEFAULT_CHECKIN_QUANTITY = 1

WRITE_MAX_RETRIES = 3
WRITE_RETRY_BASE_DELAY = 1.0
WRITE_RETRY_BACKOFF = 2.0
WRITE_RETRY_MAX_DELAY = 30.0

SUBSCRIBE_TIMEOUT_SECONDS = 10.0
FALLBACK_POLL_SECONDS = 15.0
FEED_POLL_SECONDS = 1.0
FEED_BATCH_SIZE = 500
RECONNECT_MAX_DELAY_SECONDS = 30.0

RUNTIME_CALL_TIMEOUT_SECONDS = 30.0

# Relations observed through the change feed.
CHECKIN_STATUS_TABLE = "attendee_field_status"
STATION_TABLE = "fields"
