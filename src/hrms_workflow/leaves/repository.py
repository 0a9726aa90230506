from __future__ import annotations

from datetime import date, datetime
from typing import Callable, Collection, Optional, Protocol, Sequence

from ..core.enums import HalfDayType, LeaveStatus, LeaveType, UserType
from .model import LeaveRequest, LeaveRow, LeaveSettlement

# (total_days, current_balance, monthly_salary) -> settlement
SettleFn = Callable[[float, float, float], LeaveSettlement]


class LeaveRepository(Protocol):
    """Storage port for leave requests and the balance they consume."""

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
        raise NotImplementedError

    def get_leave(self, leave_id: int) -> Optional[LeaveRequest]:
        raise NotImplementedError

    def find_overlapping(
        self,
        *,
        user_id: int,
        from_date: date,
        to_date: date,
        statuses: Collection[LeaveStatus],
    ) -> Sequence[LeaveRequest]:
        raise NotImplementedError

    def approve(
        self,
        *,
        leave_id: int,
        approved_by: int,
        approved_at: datetime,
        notes: Optional[str],
        settle: SettleFn,
    ) -> Optional[LeaveSettlement]:
        """Approve a pending leave and settle the owner's balance in one transaction.

        `settle` runs against the locked balance of employee owners; admins
        carry no balance and get a zero settlement. Returns None when the
        leave is no longer pending.
        """

        raise NotImplementedError

    def reject(
        self,
        *,
        leave_id: int,
        rejected_by: int,
        rejected_at: datetime,
        rejection_reason: str,
    ) -> bool:
        raise NotImplementedError

    def cancel(self, *, leave_id: int, expected_status: LeaveStatus) -> bool:
        """Cancel if still in `expected_status`, returning any balance taken at approval."""

        raise NotImplementedError

    def list_for_user(
        self,
        *,
        user_id: int,
        status: Optional[LeaveStatus] = None,
        limit: int,
        offset: int = 0,
    ) -> Sequence[LeaveRequest]:
        raise NotImplementedError

    def count_for_user(self, *, user_id: int, status: Optional[LeaveStatus] = None) -> int:
        raise NotImplementedError

    def list_leaves(
        self,
        *,
        status: Optional[LeaveStatus] = None,
        leave_type: Optional[LeaveType] = None,
        user_id: Optional[int] = None,
        limit: int,
        offset: int = 0,
    ) -> Sequence[LeaveRow]:
        raise NotImplementedError

    def count_leaves(
        self,
        *,
        status: Optional[LeaveStatus] = None,
        leave_type: Optional[LeaveType] = None,
        user_id: Optional[int] = None,
    ) -> int:
        raise NotImplementedError

    def list_pending(self) -> Sequence[LeaveRow]:
        """Pending requests, newest first."""

        raise NotImplementedError

    def list_within_range(self, *, user_id: int, start_date: date, end_date: date) -> Sequence[LeaveRequest]:
        """One user's requests lying wholly inside [start_date, end_date], by from_date ascending."""

        raise NotImplementedError

    def list_in_range(
        self,
        *,
        start_date: date,
        end_date: date,
        status: Optional[LeaveStatus] = None,
    ) -> Sequence[LeaveRow]:
        """Requests whose window overlaps [start_date, end_date], by from_date ascending."""

        raise NotImplementedError

    def list_created_between(
        self,
        *,
        user_type: UserType,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Sequence[LeaveRequest]:
        raise NotImplementedError
