from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date, datetime, time, timedelta
from typing import Optional, Type

from ..common.datetime_utils import format_hours, now_local
from ..common.paging import Page
from ..core.constants import DEFAULT_LATE_THRESHOLD, DEFAULT_LOCATION, DEFAULT_MIN_SESSION_MINUTES
from ..core.enums import AttendanceStatus, PunchSlot, UserType
from ..core.exceptions import (
    AlreadyCheckedIn,
    AlreadyCheckedOut,
    AlreadyReCheckedOut,
    InvertedRange,
    NoCheckInFound,
    NoReCheckInFound,
    ReCheckInNotAllowed,
    SessionTooShort,
    StateConflictError,
)
from .factory import LatenessStrategyFactory
from .model import AttendanceRecord, AttendanceReportRow, Punch
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

PRESENT_STATUSES = frozenset({AttendanceStatus.PRESENT, AttendanceStatus.LATE, AttendanceStatus.RE_CHECKED_IN})


def _to_second(moment: datetime) -> datetime:
    # DATETIME columns keep whole seconds; decide on the value that gets stored
    return moment.replace(microsecond=0)


@dataclass(frozen=True)
class TodayAttendance:
    record: Optional[AttendanceRecord]
    can_check_in: bool
    can_check_out: bool
    can_re_check_in: bool
    can_re_check_out: bool


class AttendanceService:
    """Use cases: the daily check-in/out/re-check-in/re-check-out progression."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        *,
        strategy_factory: LatenessStrategyFactory | None = None,
        late_threshold: time = DEFAULT_LATE_THRESHOLD,
        min_session_minutes: int = DEFAULT_MIN_SESSION_MINUTES,
    ):
        self._attendance = attendance
        self._factory = strategy_factory or LatenessStrategyFactory()
        self._late_threshold = late_threshold
        self._min_session = timedelta(minutes=int(min_session_minutes))

    @staticmethod
    def _punch(now: datetime, location: Optional[str], ip_address: Optional[str], device_info: Optional[str]) -> Punch:
        return Punch(
            time=now,
            location=(location or "").strip() or DEFAULT_LOCATION,
            ip_address=ip_address,
            device_info=device_info,
        )

    def _ensure_min_session(self, opened_at: datetime, now: datetime, action: str) -> None:
        elapsed = now - opened_at
        if elapsed < timedelta(0) or elapsed < self._min_session:
            minutes = int(self._min_session.total_seconds() // 60)
            raise SessionTooShort(
                f"Please wait at least {minutes} minute(s) before {action}",
                timeElapsed=f"{max(int(elapsed.total_seconds()), 0)} seconds",
            )

    def _apply(
        self,
        record: AttendanceRecord,
        slot: PunchSlot,
        punch: Punch,
        lost_race: Type[StateConflictError],
    ) -> AttendanceRecord:
        if not self._attendance.record_punch(attendance_id=record.attendance_id, slot=slot, punch=punch):
            raise lost_race()
        updated = replace(record, **{slot.value: punch})
        logger.info(
            "attendance %s user=%s/%s record=%s at=%s",
            slot.value, record.user_id, record.user_type.value, record.attendance_id, punch.time.isoformat(),
        )
        return updated

    def check_in(
        self,
        user_id: int,
        user_type: UserType,
        *,
        location: Optional[str] = None,
        ip_address: Optional[str] = None,
        device_info: Optional[str] = None,
        now: datetime | None = None,
    ) -> AttendanceRecord:
        now = _to_second(now or now_local())
        today = now.date()

        existing = self._attendance.get_for_user_and_date(user_id, user_type, today)
        if existing and existing.check_in is not None:
            raise AlreadyCheckedIn(checkInTime=format_clock(existing.check_in.time))

        strategy = self._factory.for_checkin(now=now, threshold=self._late_threshold)
        decision = strategy.decide_checkin(now=now, threshold=self._late_threshold)
        punch = self._punch(now, location, ip_address, device_info)

        attendance_id = self._attendance.create_checkin(
            user_id=user_id,
            user_type=user_type,
            work_date=today,
            punch=punch,
            is_late=decision.is_late,
            late_minutes=decision.late_minutes,
        )
        logger.info(
            "attendance check_in user=%s/%s record=%s late=%s late_minutes=%s",
            user_id, user_type.value, attendance_id, decision.is_late, decision.late_minutes,
        )
        return AttendanceRecord(
            attendance_id=attendance_id,
            user_id=user_id,
            user_type=user_type,
            work_date=today,
            check_in=punch,
            is_late=decision.is_late,
            late_minutes=decision.late_minutes,
        )

    def check_out(
        self,
        user_id: int,
        user_type: UserType,
        *,
        location: Optional[str] = None,
        ip_address: Optional[str] = None,
        device_info: Optional[str] = None,
        now: datetime | None = None,
    ) -> AttendanceRecord:
        now = _to_second(now or now_local())

        record = self._attendance.get_for_user_and_date(user_id, user_type, now.date())
        if not record or record.check_in is None:
            raise NoCheckInFound()
        if record.check_out is not None:
            raise AlreadyCheckedOut(checkOutTime=format_clock(record.check_out.time))

        self._ensure_min_session(record.check_in.time, now, "checking out")
        punch = self._punch(now, location, ip_address, device_info)
        return self._apply(record, PunchSlot.CHECK_OUT, punch, AlreadyCheckedOut)

    def re_check_in(
        self,
        user_id: int,
        user_type: UserType,
        *,
        location: Optional[str] = None,
        ip_address: Optional[str] = None,
        device_info: Optional[str] = None,
        now: datetime | None = None,
    ) -> AttendanceRecord:
        now = _to_second(now or now_local())

        record = self._attendance.get_for_user_and_date(user_id, user_type, now.date())
        if not record or record.check_in is None:
            raise ReCheckInNotAllowed("No initial check-in found for today")
        if record.check_out is None:
            raise ReCheckInNotAllowed("Please check out from your first session before re-checking in")
        if record.re_check_in is not None:
            raise ReCheckInNotAllowed("Already re-checked in today")

        punch = self._punch(now, location, ip_address, device_info)
        if punch.time < record.check_out.time:
            raise ReCheckInNotAllowed("Re-check-in cannot be earlier than the first check-out")
        return self._apply(record, PunchSlot.RE_CHECK_IN, punch, ReCheckInNotAllowed)

    def re_check_out(
        self,
        user_id: int,
        user_type: UserType,
        *,
        location: Optional[str] = None,
        ip_address: Optional[str] = None,
        device_info: Optional[str] = None,
        now: datetime | None = None,
    ) -> AttendanceRecord:
        now = _to_second(now or now_local())

        record = self._attendance.get_for_user_and_date(user_id, user_type, now.date())
        if not record or record.re_check_in is None:
            raise NoReCheckInFound()
        if record.re_check_out is not None:
            raise AlreadyReCheckedOut(reCheckOutTime=format_clock(record.re_check_out.time))

        self._ensure_min_session(record.re_check_in.time, now, "re-checking out")
        punch = self._punch(now, location, ip_address, device_info)
        return self._apply(record, PunchSlot.RE_CHECK_OUT, punch, AlreadyReCheckedOut)

    def get_today(self, user_id: int, user_type: UserType, *, today: date | None = None) -> TodayAttendance:
        today = today or now_local().date()
        record = self._attendance.get_for_user_and_date(user_id, user_type, today)
        if not record:
            return TodayAttendance(None, True, False, False, False)
        return TodayAttendance(
            record=record,
            can_check_in=record.can_check_in,
            can_check_out=record.can_check_out,
            can_re_check_in=record.can_re_check_in,
            can_re_check_out=record.can_re_check_out,
        )

    def get_history(
        self,
        user_id: int,
        user_type: UserType,
        *,
        page: int = 1,
        limit: int = 10,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Page[AttendanceRecord]:
        if start_date and end_date and end_date < start_date:
            raise InvertedRange("End date cannot be before start date")

        items = self._attendance.list_for_user(
            user_id=user_id,
            user_type=user_type,
            start_date=start_date,
            end_date=end_date,
            limit=limit,
            offset=Page.offset_for(page, limit),
        )
        total = self._attendance.count_for_user(
            user_id=user_id, user_type=user_type, start_date=start_date, end_date=end_date
        )
        return Page(items=list(items), page=page, limit=limit, total=total)

    def list_all(
        self,
        *,
        page: int = 1,
        limit: int = 20,
        work_date: Optional[date] = None,
        user_id: Optional[int] = None,
        status: Optional[AttendanceStatus] = None,
    ) -> Page[AttendanceReportRow]:
        filters = dict(user_type=UserType.EMPLOYEE, work_date=work_date, user_id=user_id, status=status)
        items = self._attendance.list_records(limit=limit, offset=Page.offset_for(page, limit), **filters)
        total = self._attendance.count_records(**filters)
        return Page(items=list(items), page=page, limit=limit, total=total)

    def get_stats(self, *, work_date: date | None = None) -> dict:
        work_date = work_date or now_local().date()
        rows = self._attendance.get_report_rows(start_date=work_date, end_date=work_date, user_type=UserType.EMPLOYEE)

        total = len(rows)
        present = sum(1 for r in rows if r.record.status in PRESENT_STATUSES)
        late = sum(1 for r in rows if r.record.is_late)
        return {
            "date": work_date.isoformat(),
            "totalRecords": total,
            "presentRecords": present,
            "lateRecords": late,
            "absentRecords": total - present,
            "attendanceRate": round(present / total * 100) if total else 0,
        }


def format_clock(moment: Optional[datetime]) -> Optional[str]:
    return moment.strftime("%I:%M %p") if moment else None


def punch_payload(punch: Optional[Punch]) -> Optional[dict]:
    if punch is None:
        return None
    return {
        "time": punch.time.isoformat(),
        "location": punch.location,
        "ipAddress": punch.ip_address,
        "deviceInfo": punch.device_info,
    }


def record_payload(record: AttendanceRecord) -> dict:
    return {
        "id": record.attendance_id,
        "userId": record.user_id,
        "userType": record.user_type.value,
        "date": record.work_date.isoformat(),
        "checkIn": punch_payload(record.check_in),
        "checkOut": punch_payload(record.check_out),
        "reCheckIn": punch_payload(record.re_check_in),
        "reCheckOut": punch_payload(record.re_check_out),
        "checkInTime": format_clock(record.check_in.time if record.check_in else None),
        "checkOutTime": format_clock(record.check_out.time if record.check_out else None),
        "reCheckInTime": format_clock(record.re_check_in.time if record.re_check_in else None),
        "reCheckOutTime": format_clock(record.re_check_out.time if record.re_check_out else None),
        "firstSessionHours": record.first_session_hours,
        "firstSessionHoursFormatted": format_hours(record.first_session_hours),
        "secondSessionHours": record.second_session_hours,
        "secondSessionHoursFormatted": format_hours(record.second_session_hours),
        "totalHours": record.total_hours,
        "totalHoursFormatted": format_hours(record.total_hours),
        "isLate": record.is_late,
        "lateMinutes": record.late_minutes,
        "status": record.status.value,
        "state": record.state.value,
        "checkInCount": record.check_in_count,
    }


def today_payload(today: TodayAttendance) -> dict:
    return {
        "attendance": record_payload(today.record) if today.record else None,
        "canCheckIn": today.can_check_in,
        "canCheckOut": today.can_check_out,
        "canReCheckIn": today.can_re_check_in,
        "canReCheckOut": today.can_re_check_out,
    }
