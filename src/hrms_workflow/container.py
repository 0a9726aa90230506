from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.factory import LatenessStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .common.datetime_utils import parse_clock
from .core.constants import DEFAULT_LEAVE_BALANCE, DEFAULT_MIN_SESSION_MINUTES
from .core.enums import DayCountRule
from .database.connection import DBConfig, DatabaseConnection
from .leaves.mysql_leave_repository import MySQLLeaveRepository
from .leaves.repository import LeaveRepository
from .leaves.service import LeaveService
from .reports.service import AttendanceReportService
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AuthService, UserService


@dataclass(frozen=True)
class Container:
    users_repo: UserRepository
    attendance_repo: AttendanceRepository
    leaves_repo: LeaveRepository

    auth_service: AuthService
    user_service: UserService
    attendance_service: AttendanceService
    leave_service: LeaveService
    report_service: AttendanceReportService

    conn: Optional[DatabaseConnection] = None


def wire(
    *,
    users_repo: UserRepository,
    attendance_repo: AttendanceRepository,
    leaves_repo: LeaveRepository,
    late_threshold: str = "09:15",
    min_session_minutes: int = DEFAULT_MIN_SESSION_MINUTES,
    leave_day_count_rule: str = DayCountRule.CALENDAR.value,
    default_leave_balance: float = DEFAULT_LEAVE_BALANCE,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    """Build services on top of the given repositories."""
    attendance_service = AttendanceService(
        attendance_repo,
        strategy_factory=LatenessStrategyFactory(),
        late_threshold=parse_clock(late_threshold),
        min_session_minutes=int(min_session_minutes),
    )
    leave_service = LeaveService(leaves_repo, day_count_rule=DayCountRule(leave_day_count_rule))

    return Container(
        users_repo=users_repo,
        attendance_repo=attendance_repo,
        leaves_repo=leaves_repo,
        auth_service=AuthService(users_repo),
        user_service=UserService(users_repo, default_leave_balance=default_leave_balance),
        attendance_service=attendance_service,
        leave_service=leave_service,
        report_service=AttendanceReportService(attendance_repo),
        conn=conn,
    )


def build_container(*, db_config: dict, **policy) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
    return wire(
        users_repo=MySQLUserRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        leaves_repo=MySQLLeaveRepository(conn),
        conn=conn,
        **policy,
    )
