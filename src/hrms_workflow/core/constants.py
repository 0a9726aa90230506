"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from datetime import time

DEFAULT_LATE_THRESHOLD = time(9, 15)
DEFAULT_MIN_SESSION_MINUTES = 1
DEFAULT_HISTORY_LIMIT = 10
DEFAULT_ADMIN_LIST_LIMIT = 20
DEFAULT_LEAVE_BALANCE = 15
DEFAULT_LOCATION = "Office"

SALARY_MONTH_DAYS = 30

REASON_MIN_LENGTH = 5
REASON_MAX_LENGTH = 500
NOTES_MAX_LENGTH = 500
