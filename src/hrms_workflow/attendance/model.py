from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..common.datetime_utils import hours_between
from ..core.constants import DEFAULT_LOCATION
from ..core.enums import AttendanceState, AttendanceStatus, PunchSlot, UserType

PUNCH_ORDER = (PunchSlot.CHECK_IN, PunchSlot.CHECK_OUT, PunchSlot.RE_CHECK_IN, PunchSlot.RE_CHECK_OUT)

_STATE_BY_PUNCHES = {
    0: AttendanceState.NOT_STARTED,
    1: AttendanceState.CHECKED_IN,
    2: AttendanceState.CHECKED_OUT,
    3: AttendanceState.RE_CHECKED_IN,
    4: AttendanceState.RE_CHECKED_OUT,
}


@dataclass(frozen=True)
class Punch:
    """One timestamped check-in/out event with where it came from."""

    time: datetime
    location: str = DEFAULT_LOCATION
    ip_address: Optional[str] = None
    device_info: Optional[str] = None


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one attendance day for one user.

    Punches must be filled strictly in order (check-in, check-out, re-check-in,
    re-check-out) and must not go back in time; anything else is rejected at
    construction.
    """

    attendance_id: int
    user_id: int
    user_type: UserType
    work_date: date
    check_in: Optional[Punch] = None
    check_out: Optional[Punch] = None
    re_check_in: Optional[Punch] = None
    re_check_out: Optional[Punch] = None
    is_late: bool = False
    late_minutes: int = 0
    notes: Optional[str] = None

    def __post_init__(self):
        punches = [self.punch(slot) for slot in PUNCH_ORDER]
        seen_gap = False
        previous: Optional[Punch] = None
        for slot, punch in zip(PUNCH_ORDER, punches):
            if punch is None:
                seen_gap = True
                continue
            if seen_gap:
                raise ValueError(f"{slot.value} is set before the preceding punch")
            if previous is not None and punch.time < previous.time:
                raise ValueError(f"{slot.value} is earlier than the preceding punch")
            previous = punch

    def punch(self, slot: PunchSlot) -> Optional[Punch]:
        return getattr(self, slot.value)

    @property
    def state(self) -> AttendanceState:
        filled = sum(1 for slot in PUNCH_ORDER if self.punch(slot) is not None)
        return _STATE_BY_PUNCHES[filled]

    @property
    def first_session_hours(self) -> float:
        return hours_between(
            self.check_in.time if self.check_in else None,
            self.check_out.time if self.check_out else None,
        )

    @property
    def second_session_hours(self) -> float:
        return hours_between(
            self.re_check_in.time if self.re_check_in else None,
            self.re_check_out.time if self.re_check_out else None,
        )

    @property
    def total_hours(self) -> float:
        return self.first_session_hours + self.second_session_hours

    @property
    def check_in_count(self) -> int:
        return 2 if self.re_check_in else 1

    @property
    def status(self) -> AttendanceStatus:
        if self.check_in is None:
            return AttendanceStatus.ABSENT
        if self.state == AttendanceState.RE_CHECKED_IN:
            return AttendanceStatus.RE_CHECKED_IN
        if self.is_late:
            return AttendanceStatus.LATE
        return AttendanceStatus.PRESENT

    @property
    def can_check_in(self) -> bool:
        return self.state == AttendanceState.NOT_STARTED

    @property
    def can_check_out(self) -> bool:
        return self.state == AttendanceState.CHECKED_IN

    @property
    def can_re_check_in(self) -> bool:
        return self.state == AttendanceState.CHECKED_OUT

    @property
    def can_re_check_out(self) -> bool:
        return self.state == AttendanceState.RE_CHECKED_IN


@dataclass(frozen=True)
class AttendanceReportRow:
    """Read-model for reports and exports (joined with the user)."""

    record: AttendanceRecord
    full_name: str
    username: str
