from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus, PunchSlot, UserType
from .model import AttendanceRecord, AttendanceReportRow, Punch


class AttendanceRepository(Protocol):
    """Storage port for attendance days.

    Exactly one record may exist per (user_id, user_type, work_date); the
    mutating methods are conditional so concurrent punches cannot both win.
    """

    def get_for_user_and_date(self, user_id: int, user_type: UserType, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def create_checkin(
        self,
        *,
        user_id: int,
        user_type: UserType,
        work_date: date,
        punch: Punch,
        is_late: bool,
        late_minutes: int,
    ) -> int:
        """Insert today's record. Raises AlreadyCheckedIn if one already exists."""

        raise NotImplementedError

    def record_punch(self, *, attendance_id: int, slot: PunchSlot, punch: Punch) -> bool:
        """Set `slot` only if the preceding slot is set and `slot` is still empty."""

        raise NotImplementedError

    def list_for_user(
        self,
        *,
        user_id: int,
        user_type: UserType,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: int,
        offset: int = 0,
    ) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def count_for_user(
        self,
        *,
        user_id: int,
        user_type: UserType,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> int:
        raise NotImplementedError

    def list_records(
        self,
        *,
        user_type: UserType,
        work_date: Optional[date] = None,
        user_id: Optional[int] = None,
        status: Optional[AttendanceStatus] = None,
        limit: int,
        offset: int = 0,
    ) -> Sequence[AttendanceReportRow]:
        raise NotImplementedError

    def count_records(
        self,
        *,
        user_type: UserType,
        work_date: Optional[date] = None,
        user_id: Optional[int] = None,
        status: Optional[AttendanceStatus] = None,
    ) -> int:
        raise NotImplementedError

    def get_report_rows(
        self,
        *,
        start_date: date,
        end_date: date,
        user_type: UserType = UserType.EMPLOYEE,
        user_id: Optional[int] = None,
    ) -> Sequence[AttendanceReportRow]:
        raise NotImplementedError
