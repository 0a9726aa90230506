from __future__ import annotations

from datetime import date, datetime
from typing import Any, Collection, Dict, Optional, Sequence

from ..core.enums import HalfDayType, LeaveStatus, LeaveType, UserType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, where_clause
from .model import LeaveRequest, LeaveRow, LeaveSettlement
from .repository import LeaveRepository, SettleFn

_LEAVE_COLUMNS = """
    l.leave_id, l.user_id, l.user_type, l.leave_type, l.from_date, l.to_date, l.total_days,
    l.reason, l.status, l.created_at, l.is_half_day, l.half_day_type, l.approved_by,
    l.approved_at, l.rejection_reason, l.notes, l.salary_deduction, l.balance_deducted
"""


def _leave_from_row(r: Dict[str, Any]) -> LeaveRequest:
    return LeaveRequest(
        leave_id=int(r["leave_id"]),
        user_id=int(r["user_id"]),
        user_type=UserType(r["user_type"]),
        leave_type=LeaveType(r["leave_type"]),
        from_date=r["from_date"],
        to_date=r["to_date"],
        total_days=float(r["total_days"]),
        reason=r["reason"],
        status=LeaveStatus(r["status"]),
        created_at=r["created_at"],
        is_half_day=bool(r.get("is_half_day")),
        half_day_type=HalfDayType(r["half_day_type"]) if r.get("half_day_type") else None,
        approved_by=r.get("approved_by"),
        approved_at=r.get("approved_at"),
        rejection_reason=r.get("rejection_reason"),
        notes=r.get("notes"),
        salary_deduction=float(r.get("salary_deduction") or 0),
        balance_deducted=float(r.get("balance_deducted") or 0),
    )


def _leave_row(r: Dict[str, Any]) -> LeaveRow:
    return LeaveRow(leave=_leave_from_row(r), full_name=r["full_name"], username=r["username"])


class MySQLLeaveRepository(LeaveRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create_leave(
        self,
        *,
        user_id: int,
        user_type: UserType,
        leave_type: LeaveType,
        from_date: date,
        to_date: date,
        total_days: float,
        reason: str,
        is_half_day: bool,
        half_day_type: Optional[HalfDayType],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leave_requests(
                    user_id, user_type, leave_type, from_date, to_date, total_days,
                    reason, status, is_half_day, half_day_type
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(user_id),
                    user_type.value,
                    leave_type.value,
                    from_date,
                    to_date,
                    total_days,
                    reason,
                    LeaveStatus.PENDING.value,
                    int(bool(is_half_day)),
                    half_day_type.value if half_day_type else None,
                ),
            )
            return int(cur.lastrowid)

    def get_leave(self, leave_id: int) -> Optional[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_LEAVE_COLUMNS} FROM leave_requests l WHERE l.leave_id=%s", (int(leave_id),))
            r = fetchone(cur)
            return _leave_from_row(r) if r else None

    def find_overlapping(
        self,
        *,
        user_id: int,
        from_date: date,
        to_date: date,
        statuses: Collection[LeaveStatus],
    ) -> Sequence[LeaveRequest]:
        if not statuses:
            return []
        placeholders = ",".join(["%s"] * len(statuses))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_LEAVE_COLUMNS}
                FROM leave_requests l
                WHERE l.user_id=%s
                  AND l.status IN ({placeholders})
                  AND l.from_date <= %s
                  AND l.to_date >= %s
                ORDER BY l.from_date ASC
                """,
                tuple([int(user_id)] + [s.value for s in statuses] + [to_date, from_date]),
            )
            return [_leave_from_row(r) for r in fetchall(cur)]

    def approve(
        self,
        *,
        leave_id: int,
        approved_by: int,
        approved_at: datetime,
        notes: Optional[str],
        settle: SettleFn,
    ) -> Optional[LeaveSettlement]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_LEAVE_COLUMNS} FROM leave_requests l WHERE l.leave_id=%s FOR UPDATE",
                (int(leave_id),),
            )
            r = fetchone(cur)
            if not r or r["status"] != LeaveStatus.PENDING.value:
                return None
            leave = _leave_from_row(r)

            settlement = LeaveSettlement(balance_deducted=0.0, new_balance=0.0, salary_deduction=0.0)
            if leave.user_type == UserType.EMPLOYEE:
                cur.execute(
                    "SELECT leave_balance, monthly_salary FROM users WHERE user_id=%s FOR UPDATE",
                    (leave.user_id,),
                )
                user = fetchone(cur)
                if user:
                    settlement = settle(
                        leave.total_days,
                        float(user["leave_balance"] or 0),
                        float(user["monthly_salary"] or 0),
                    )
                    cur.execute(
                        "UPDATE users SET leave_balance=%s WHERE user_id=%s",
                        (settlement.new_balance, leave.user_id),
                    )

            cur.execute(
                """
                UPDATE leave_requests
                SET status=%s, approved_by=%s, approved_at=%s, notes=COALESCE(%s, notes),
                    salary_deduction=%s, balance_deducted=%s
                WHERE leave_id=%s AND status=%s
                """,
                (
                    LeaveStatus.APPROVED.value,
                    int(approved_by),
                    approved_at,
                    notes,
                    settlement.salary_deduction,
                    settlement.balance_deducted,
                    int(leave_id),
                    LeaveStatus.PENDING.value,
                ),
            )
            return settlement

    def reject(
        self,
        *,
        leave_id: int,
        rejected_by: int,
        rejected_at: datetime,
        rejection_reason: str,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_requests
                SET status=%s, approved_by=%s, approved_at=%s, rejection_reason=%s
                WHERE leave_id=%s AND status=%s
                """,
                (
                    LeaveStatus.REJECTED.value,
                    int(rejected_by),
                    rejected_at,
                    rejection_reason,
                    int(leave_id),
                    LeaveStatus.PENDING.value,
                ),
            )
            return cur.rowcount > 0

    def cancel(self, *, leave_id: int, expected_status: LeaveStatus) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_LEAVE_COLUMNS} FROM leave_requests l WHERE l.leave_id=%s FOR UPDATE",
                (int(leave_id),),
            )
            r = fetchone(cur)
            if not r or r["status"] != expected_status.value:
                return False
            leave = _leave_from_row(r)

            if leave.status == LeaveStatus.APPROVED and leave.balance_deducted > 0:
                cur.execute(
                    "UPDATE users SET leave_balance = leave_balance + %s WHERE user_id=%s",
                    (leave.balance_deducted, leave.user_id),
                )
            cur.execute(
                "UPDATE leave_requests SET status=%s WHERE leave_id=%s",
                (LeaveStatus.CANCELLED.value, int(leave_id)),
            )
            return True

    def list_for_user(
        self,
        *,
        user_id: int,
        status: Optional[LeaveStatus] = None,
        limit: int,
        offset: int = 0,
    ) -> Sequence[LeaveRequest]:
        clauses = ["l.user_id=%s"]
        params: list[object] = [int(user_id)]
        if status is not None:
            clauses.append("l.status=%s")
            params.append(status.value)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_LEAVE_COLUMNS}
                FROM leave_requests l
                WHERE {where_clause(clauses)}
                ORDER BY l.created_at DESC
                LIMIT %s OFFSET %s
                """,
                tuple(params + [int(limit), int(offset)]),
            )
            return [_leave_from_row(r) for r in fetchall(cur)]

    def count_for_user(self, *, user_id: int, status: Optional[LeaveStatus] = None) -> int:
        clauses = ["l.user_id=%s"]
        params: list[object] = [int(user_id)]
        if status is not None:
            clauses.append("l.status=%s")
            params.append(status.value)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM leave_requests l WHERE {where_clause(clauses)}", tuple(params))
            return int(fetchone(cur)["total"])

    @staticmethod
    def _admin_filters(status, leave_type, user_id) -> tuple[str, list[object]]:
        clauses: list[str] = []
        params: list[object] = []
        if status is not None:
            clauses.append("l.status=%s")
            params.append(status.value)
        if leave_type is not None:
            clauses.append("l.leave_type=%s")
            params.append(leave_type.value)
        if user_id is not None:
            clauses.append("l.user_id=%s")
            params.append(int(user_id))
        return where_clause(clauses), params

    def list_leaves(
        self,
        *,
        status: Optional[LeaveStatus] = None,
        leave_type: Optional[LeaveType] = None,
        user_id: Optional[int] = None,
        limit: int,
        offset: int = 0,
    ) -> Sequence[LeaveRow]:
        where, params = self._admin_filters(status, leave_type, user_id)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_LEAVE_COLUMNS}, u.full_name, u.username
                FROM leave_requests l
                JOIN users u ON u.user_id = l.user_id
                WHERE {where}
                ORDER BY l.created_at DESC
                LIMIT %s OFFSET %s
                """,
                tuple(params + [int(limit), int(offset)]),
            )
            return [_leave_row(r) for r in fetchall(cur)]

    def count_leaves(
        self,
        *,
        status: Optional[LeaveStatus] = None,
        leave_type: Optional[LeaveType] = None,
        user_id: Optional[int] = None,
    ) -> int:
        where, params = self._admin_filters(status, leave_type, user_id)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM leave_requests l WHERE {where}", tuple(params))
            return int(fetchone(cur)["total"])

    def list_pending(self) -> Sequence[LeaveRow]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_LEAVE_COLUMNS}, u.full_name, u.username
                FROM leave_requests l
                JOIN users u ON u.user_id = l.user_id
                WHERE l.status=%s
                ORDER BY l.created_at DESC
                """,
                (LeaveStatus.PENDING.value,),
            )
            return [_leave_row(r) for r in fetchall(cur)]

    def list_within_range(self, *, user_id: int, start_date: date, end_date: date) -> Sequence[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_LEAVE_COLUMNS}
                FROM leave_requests l
                WHERE l.user_id=%s AND l.from_date >= %s AND l.to_date <= %s
                ORDER BY l.from_date ASC
                """,
                (int(user_id), start_date, end_date),
            )
            return [_leave_from_row(r) for r in fetchall(cur)]

    def list_in_range(
        self,
        *,
        start_date: date,
        end_date: date,
        status: Optional[LeaveStatus] = None,
    ) -> Sequence[LeaveRow]:
        clauses = ["l.from_date <= %s", "l.to_date >= %s"]
        params: list[object] = [end_date, start_date]
        if status is not None:
            clauses.append("l.status=%s")
            params.append(status.value)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_LEAVE_COLUMNS}, u.full_name, u.username
                FROM leave_requests l
                JOIN users u ON u.user_id = l.user_id
                WHERE {where_clause(clauses)}
                ORDER BY l.from_date ASC
                """,
                tuple(params),
            )
            return [_leave_row(r) for r in fetchall(cur)]

    def list_created_between(
        self,
        *,
        user_type: UserType,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Sequence[LeaveRequest]:
        clauses = ["l.user_type=%s"]
        params: list[object] = [user_type.value]
        if start is not None:
            clauses.append("l.created_at >= %s")
            params.append(start)
        if end is not None:
            clauses.append("l.created_at < %s")
            params.append(end)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_LEAVE_COLUMNS} FROM leave_requests l WHERE {where_clause(clauses)}",
                tuple(params),
            )
            return [_leave_from_row(r) for r in fetchall(cur)]
