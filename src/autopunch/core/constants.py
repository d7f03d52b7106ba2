"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_HISTORY_LIMIT = 30
DEFAULT_CLOCK_IN_TIME = "09:00"
DEFAULT_CLOCK_OUT_TIME = "18:00"
DEFAULT_TOLERANCE_MINUTES = 15
DEFAULT_WORKING_DAYS = (1, 2, 3, 4, 5)
MAX_TOLERANCE_MINUTES = 25
MINUTES_PER_DAY = 24 * 60

IV_LENGTH = 16
MIN_TOKEN_LENGTH = 50

# attendance_logs.message is VARCHAR(500)
MAX_MESSAGE_LENGTH = 500

USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
