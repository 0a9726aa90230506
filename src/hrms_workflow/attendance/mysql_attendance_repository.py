from __future__ import annotations

from datetime import date
from typing import Any, Dict, Optional, Sequence

import mysql.connector
from mysql.connector import errorcode

from ..core.enums import AttendanceStatus, PunchSlot, UserType
from ..core.exceptions import AlreadyCheckedIn
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, where_clause
from .model import PUNCH_ORDER, AttendanceRecord, AttendanceReportRow, Punch
from .repository import AttendanceRepository

_RECORD_COLUMNS = ", ".join(
    ["ar.attendance_id", "ar.user_id", "ar.user_type", "ar.work_date", "ar.is_late", "ar.late_minutes", "ar.notes"]
    + [f"ar.{slot.value}_{suffix}" for slot in PUNCH_ORDER for suffix in ("time", "location", "ip", "device")]
)

# Mirrors AttendanceRecord.status so admins can filter on it in SQL.
_STATUS_SQL = """
    CASE
        WHEN ar.check_in_time IS NULL THEN 'absent'
        WHEN ar.re_check_in_time IS NOT NULL AND ar.re_check_out_time IS NULL THEN 're-checked-in'
        WHEN ar.is_late = 1 THEN 'late'
        ELSE 'present'
    END
"""


def _punch_from_row(r: Dict[str, Any], slot: PunchSlot) -> Optional[Punch]:
    moment = r.get(f"{slot.value}_time")
    if moment is None:
        return None
    return Punch(
        time=moment,
        location=r.get(f"{slot.value}_location") or "Office",
        ip_address=r.get(f"{slot.value}_ip"),
        device_info=r.get(f"{slot.value}_device"),
    )


def _record_from_row(r: Dict[str, Any]) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        user_id=int(r["user_id"]),
        user_type=UserType(r["user_type"]),
        work_date=r["work_date"],
        check_in=_punch_from_row(r, PunchSlot.CHECK_IN),
        check_out=_punch_from_row(r, PunchSlot.CHECK_OUT),
        re_check_in=_punch_from_row(r, PunchSlot.RE_CHECK_IN),
        re_check_out=_punch_from_row(r, PunchSlot.RE_CHECK_OUT),
        is_late=bool(r.get("is_late")),
        late_minutes=int(r.get("late_minutes") or 0),
        notes=r.get("notes"),
    )


def _report_row(r: Dict[str, Any]) -> AttendanceReportRow:
    return AttendanceReportRow(record=_record_from_row(r), full_name=r["full_name"], username=r["username"])


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_for_user_and_date(self, user_id: int, user_type: UserType, work_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_RECORD_COLUMNS}
                FROM attendance_records ar
                WHERE ar.user_id=%s AND ar.user_type=%s AND ar.work_date=%s
                """,
                (int(user_id), user_type.value, work_date),
            )
            r = fetchone(cur)
            return _record_from_row(r) if r else None

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
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_records(
                        user_id, user_type, work_date,
                        check_in_time, check_in_location, check_in_ip, check_in_device,
                        is_late, late_minutes
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        int(user_id),
                        user_type.value,
                        work_date,
                        punch.time,
                        punch.location,
                        punch.ip_address,
                        punch.device_info,
                        int(bool(is_late)),
                        int(late_minutes),
                    ),
                )
                return int(cur.lastrowid)
        except mysql.connector.IntegrityError as e:
            if e.errno == errorcode.ER_DUP_ENTRY:
                raise AlreadyCheckedIn() from e
            raise

    def record_punch(self, *, attendance_id: int, slot: PunchSlot, punch: Punch) -> bool:
        index = PUNCH_ORDER.index(slot)
        prefix = slot.value
        conditions = [f"{prefix}_time IS NULL"]
        if index > 0:
            conditions.append(f"{PUNCH_ORDER[index - 1].value}_time IS NOT NULL")

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                UPDATE attendance_records
                SET {prefix}_time=%s, {prefix}_location=%s, {prefix}_ip=%s, {prefix}_device=%s
                WHERE attendance_id=%s AND {" AND ".join(conditions)}
                """,
                (punch.time, punch.location, punch.ip_address, punch.device_info, int(attendance_id)),
            )
            return cur.rowcount > 0

    @staticmethod
    def _user_filters(user_id, user_type, start_date, end_date) -> tuple[str, list[object]]:
        clauses = ["ar.user_id=%s", "ar.user_type=%s"]
        params: list[object] = [int(user_id), user_type.value]
        if start_date is not None:
            clauses.append("ar.work_date >= %s")
            params.append(start_date)
        if end_date is not None:
            clauses.append("ar.work_date <= %s")
            params.append(end_date)
        return where_clause(clauses), params

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
        where, params = self._user_filters(user_id, user_type, start_date, end_date)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_RECORD_COLUMNS}
                FROM attendance_records ar
                WHERE {where}
                ORDER BY ar.work_date DESC
                LIMIT %s OFFSET %s
                """,
                tuple(params + [int(limit), int(offset)]),
            )
            return [_record_from_row(r) for r in fetchall(cur)]

    def count_for_user(
        self,
        *,
        user_id: int,
        user_type: UserType,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> int:
        where, params = self._user_filters(user_id, user_type, start_date, end_date)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM attendance_records ar WHERE {where}", tuple(params))
            return int(fetchone(cur)["total"])

    @staticmethod
    def _admin_filters(user_type, work_date, user_id, status) -> tuple[str, list[object]]:
        clauses = ["ar.user_type=%s"]
        params: list[object] = [user_type.value]
        if work_date is not None:
            clauses.append("ar.work_date=%s")
            params.append(work_date)
        if user_id is not None:
            clauses.append("ar.user_id=%s")
            params.append(int(user_id))
        if status is not None:
            clauses.append(f"({_STATUS_SQL})=%s")
            params.append(status.value)
        return where_clause(clauses), params

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
        where, params = self._admin_filters(user_type, work_date, user_id, status)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_RECORD_COLUMNS}, u.full_name, u.username
                FROM attendance_records ar
                JOIN users u ON u.user_id = ar.user_id
                WHERE {where}
                ORDER BY ar.work_date DESC, ar.check_in_time DESC
                LIMIT %s OFFSET %s
                """,
                tuple(params + [int(limit), int(offset)]),
            )
            return [_report_row(r) for r in fetchall(cur)]

    def count_records(
        self,
        *,
        user_type: UserType,
        work_date: Optional[date] = None,
        user_id: Optional[int] = None,
        status: Optional[AttendanceStatus] = None,
    ) -> int:
        where, params = self._admin_filters(user_type, work_date, user_id, status)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM attendance_records ar WHERE {where}", tuple(params))
            return int(fetchone(cur)["total"])

    def get_report_rows(
        self,
        *,
        start_date: date,
        end_date: date,
        user_type: UserType = UserType.EMPLOYEE,
        user_id: Optional[int] = None,
    ) -> Sequence[AttendanceReportRow]:
        clauses = ["ar.work_date BETWEEN %s AND %s", "ar.user_type=%s"]
        params: list[object] = [start_date, end_date, user_type.value]
        if user_id is not None:
            clauses.append("ar.user_id=%s")
            params.append(int(user_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_RECORD_COLUMNS}, u.full_name, u.username
                FROM attendance_records ar
                JOIN users u ON u.user_id = ar.user_id
                WHERE {where_clause(clauses)}
                ORDER BY ar.work_date DESC, u.user_id ASC
                """,
                tuple(params),
            )
            return [_report_row(r) for r in fetchall(cur)]
