"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_HISTORY_LIMIT = 30
MAX_HISTORY_LIMIT = 500
DEFAULT_REVIEW_LIMIT = 500

MIN_JUSTIFICATION_LENGTH = 10
MAX_JUSTIFICATION_LENGTH = 500
MAX_REVIEWER_RESPONSE_LENGTH = 300
MAX_NOTE_LENGTH = 500

DEFAULT_TOKEN_MAX_AGE = 7 * 24 * 3600

DEFAULT_PROBE_TIMEOUT = 3.0
DEFAULT_REQUEST_TIMEOUT = 10.0
DEFAULT_SYNC_INTERVAL = 60.0
HEALTH_PATH = "/health"
