"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

SESSION_DATE_FORMAT = "%Y-%m-%d"
SESSION_KEY_SEPARATOR = "_"

SESSIONS_PATH = "sessions"

DEFAULT_AUTO_LOCK_MINUTES = 20
DEFAULT_AUTO_LOCK_SWEEP_SECONDS = 60
DEFAULT_STREAM_KEEPALIVE_SECONDS = 15

MILLIS_PER_MINUTE = 60 * 1000
