from __future__ import annotations

from enum import Enum


class UserType(str, Enum):
    """Who an attendance or leave record belongs to."""

    ADMIN = "admin"
    EMPLOYEE = "employee"


class AttendanceState(str, Enum):
    """Progress of a single attendance day, one step per punch."""

    NOT_STARTED = "NOT_STARTED"
    CHECKED_IN = "CHECKED_IN"
    CHECKED_OUT = "CHECKED_OUT"
    RE_CHECKED_IN = "RE_CHECKED_IN"
    RE_CHECKED_OUT = "RE_CHECKED_OUT"


class AttendanceStatus(str, Enum):
    """Descriptive status used for reporting and filtering only."""

    PRESENT = "present"
    LATE = "late"
    RE_CHECKED_IN = "re-checked-in"
    ABSENT = "absent"


class PunchSlot(str, Enum):
    """The four punches of a day, in the order they must happen."""

    CHECK_IN = "check_in"
    CHECK_OUT = "check_out"
    RE_CHECK_IN = "re_check_in"
    RE_CHECK_OUT = "re_check_out"


class LeaveStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class LeaveType(str, Enum):
    SICK = "sick"
    CASUAL = "casual"
    ANNUAL = "annual"
    MATERNITY = "maternity"
    PATERNITY = "paternity"
    BEREAVEMENT = "bereavement"
    OTHER = "other"


class HalfDayType(str, Enum):
    MORNING = "morning"
    AFTERNOON = "afternoon"


class DayCountRule(str, Enum):
    """How a leave window is turned into a day count."""

    CALENDAR = "calendar"
    BUSINESS = "business"
