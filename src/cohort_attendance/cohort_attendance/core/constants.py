"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from datetime import time

TIMEZONE_NAME = "Asia/Bangkok"

MORNING_START = time(9, 0)
AFTERNOON_START = time(13, 0)

PRESENT_WINDOW_MINUTES = 15
LATE_WINDOW_MINUTES = 90

DEFAULT_CODE_VALIDITY_MINUTES = 120
CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
CODE_SUFFIX_LENGTH = 4

RED_WARNING_ABSENT_DAYS = 7
YELLOW_WARNING_ABSENT_DAYS = 4

DEFAULT_STATS_DAYS = 7
DEFAULT_STATS_RANGE_DAYS = 30
ROSTER_LIMIT = 500
DEFAULT_LOG_PAGE_SIZE = 50
MAX_LOG_PAGE_SIZE = 500

ALL_COHORTS = 0
NO_STATUS = "-"
