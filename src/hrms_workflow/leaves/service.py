from __future__ import annotations

import logging
from collections import Counter
from dataclasses import replace
from datetime import date, datetime
from typing import Optional

from ..common.datetime_utils import day_window, now_local, parse_iso_date
from ..common.paging import Page
from ..common.validators import optional_max_length, require_choice, require_length_between
from ..core.constants import NOTES_MAX_LENGTH, REASON_MAX_LENGTH, REASON_MIN_LENGTH
from ..core.enums import DayCountRule, HalfDayType, LeaveStatus, LeaveType, UserType
from ..core.exceptions import (
    AuthorizationError,
    CancelNotAllowed,
    InvertedRange,
    LeaveNotFound,
    NotPending,
    OverlapConflict,
    PastDate,
    ValidationError,
)
from .calculator import count_days, settle_leave_balance
from .model import LeaveRequest, LeaveRow
from .repository import LeaveRepository

logger = logging.getLogger(__name__)

BLOCKING_STATUSES = (LeaveStatus.PENDING, LeaveStatus.APPROVED)
CANCELLABLE_STATUSES = (LeaveStatus.PENDING, LeaveStatus.APPROVED)


class LeaveService:
    """Use cases: submit, approve, reject and cancel leave requests."""

    def __init__(self, leaves: LeaveRepository, *, day_count_rule: DayCountRule = DayCountRule.CALENDAR):
        self._leaves = leaves
        self._day_count_rule = DayCountRule(day_count_rule)

    def _get_or_404(self, leave_id: int) -> LeaveRequest:
        leave = self._leaves.get_leave(int(leave_id))
        if not leave:
            raise LeaveNotFound()
        return leave

    def request_leave(
        self,
        *,
        user_id: int,
        user_type: UserType,
        leave_type,
        from_date,
        to_date,
        reason: str,
        is_half_day: bool = False,
        half_day_type=None,
        now: datetime | None = None,
    ) -> LeaveRequest:
        now = now or now_local()
        leave_type = require_choice(leave_type, LeaveType, "leave type")
        reason = require_length_between(reason, "Reason", REASON_MIN_LENGTH, REASON_MAX_LENGTH)
        is_half_day = bool(is_half_day)
        # a full-day request never carries a half day type
        half_day = None
        if is_half_day:
            if not half_day_type:
                raise ValidationError("Please select a valid half day type")
            half_day = require_choice(half_day_type, HalfDayType, "half day type")

        start = parse_iso_date(from_date, field_name="from date")
        end = parse_iso_date(to_date, field_name="to date")
        if start < now.date():
            raise PastDate()
        if end < start:
            raise InvertedRange()

        clashes = self._leaves.find_overlapping(
            user_id=int(user_id), from_date=start, to_date=end, statuses=BLOCKING_STATUSES
        )
        if clashes:
            raise OverlapConflict(
                conflicts=[
                    {
                        "id": c.leave_id,
                        "fromDate": c.from_date.isoformat(),
                        "toDate": c.to_date.isoformat(),
                        "status": c.status.value,
                    }
                    for c in clashes
                ]
            )

        total_days = count_days(self._day_count_rule, start, end, is_half_day)
        if total_days <= 0:
            raise ValidationError("Leave must cover at least one working day")

        leave_id = self._leaves.create_leave(
            user_id=int(user_id),
            user_type=user_type,
            leave_type=leave_type,
            from_date=start,
            to_date=end,
            total_days=total_days,
            reason=reason,
            is_half_day=is_half_day,
            half_day_type=half_day,
        )
        logger.info(
            "leave requested id=%s user=%s/%s %s..%s days=%s",
            leave_id, user_id, user_type.value, start.isoformat(), end.isoformat(), total_days,
        )
        return LeaveRequest(
            leave_id=leave_id,
            user_id=int(user_id),
            user_type=user_type,
            leave_type=leave_type,
            from_date=start,
            to_date=end,
            total_days=total_days,
            reason=reason,
            status=LeaveStatus.PENDING,
            created_at=now,
            is_half_day=is_half_day,
            half_day_type=half_day,
        )

    def approve(
        self,
        leave_id: int,
        approver_id: int,
        *,
        notes: Optional[str] = None,
        now: datetime | None = None,
    ) -> LeaveRequest:
        now = now or now_local()
        notes = optional_max_length(notes, "Notes", NOTES_MAX_LENGTH)

        leave = self._get_or_404(leave_id)
        if leave.status != LeaveStatus.PENDING:
            raise NotPending()

        settlement = self._leaves.approve(
            leave_id=leave.leave_id,
            approved_by=int(approver_id),
            approved_at=now,
            notes=notes,
            settle=settle_leave_balance,
        )
        if settlement is None:
            raise NotPending()

        logger.info(
            "leave approved id=%s by=%s balance_deducted=%s salary_deduction=%.2f",
            leave.leave_id, approver_id, settlement.balance_deducted, settlement.salary_deduction,
        )
        return replace(
            leave,
            status=LeaveStatus.APPROVED,
            approved_by=int(approver_id),
            approved_at=now,
            notes=notes or leave.notes,
            salary_deduction=settlement.salary_deduction,
            balance_deducted=settlement.balance_deducted,
        )

    def reject(
        self,
        leave_id: int,
        approver_id: int,
        rejection_reason: str,
        *,
        now: datetime | None = None,
    ) -> LeaveRequest:
        now = now or now_local()
        rejection_reason = require_length_between(
            rejection_reason, "Rejection reason", REASON_MIN_LENGTH, REASON_MAX_LENGTH
        )

        leave = self._get_or_404(leave_id)
        if leave.status != LeaveStatus.PENDING:
            raise NotPending()

        if not self._leaves.reject(
            leave_id=leave.leave_id,
            rejected_by=int(approver_id),
            rejected_at=now,
            rejection_reason=rejection_reason,
        ):
            raise NotPending()

        logger.info("leave rejected id=%s by=%s", leave.leave_id, approver_id)
        return replace(
            leave,
            status=LeaveStatus.REJECTED,
            approved_by=int(approver_id),
            approved_at=now,
            rejection_reason=rejection_reason,
        )

    def cancel(self, leave_id: int, user_id: int, *, now: datetime | None = None) -> LeaveRequest:
        """Owner withdraws a request; an approved one only before it starts."""
        now = now or now_local()

        leave = self._get_or_404(leave_id)
        if leave.user_id != int(user_id):
            raise AuthorizationError("You can only cancel your own leave requests")
        if leave.status not in CANCELLABLE_STATUSES:
            raise CancelNotAllowed(f"Leave request is already {leave.status.value}")
        if leave.status == LeaveStatus.APPROVED and leave.from_date <= now.date():
            raise CancelNotAllowed("Approved leave can only be cancelled before it starts")

        if not self._leaves.cancel(leave_id=leave.leave_id, expected_status=leave.status):
            raise CancelNotAllowed()

        logger.info(
            "leave cancelled id=%s user=%s restored=%s",
            leave.leave_id, user_id, leave.balance_deducted if leave.status == LeaveStatus.APPROVED else 0,
        )
        return replace(leave, status=LeaveStatus.CANCELLED)

    def get_pending_leaves(self) -> list[LeaveRow]:
        return list(self._leaves.list_pending())

    @staticmethod
    def _range(start_date, end_date) -> tuple[date, date]:
        start = parse_iso_date(start_date, field_name="start date")
        end = parse_iso_date(end_date, field_name="end date")
        if end < start:
            raise InvertedRange("End date cannot be before start date")
        return start, end

    def get_leaves_by_date_range(self, user_id: int, start_date, end_date) -> list[LeaveRequest]:
        """One user's requests lying entirely inside [start_date, end_date]."""
        start, end = self._range(start_date, end_date)
        return list(self._leaves.list_within_range(user_id=int(user_id), start_date=start, end_date=end))

    def get_leaves_overlapping_range(
        self,
        start_date,
        end_date,
        *,
        status: Optional[LeaveStatus] = None,
    ) -> list[LeaveRow]:
        """Everyone's requests touching any day of [start_date, end_date]."""
        start, end = self._range(start_date, end_date)
        return list(self._leaves.list_in_range(start_date=start, end_date=end, status=status))

    def list_my_leaves(
        self,
        user_id: int,
        *,
        status: Optional[LeaveStatus] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Page[LeaveRequest]:
        items = self._leaves.list_for_user(
            user_id=int(user_id), status=status, limit=limit, offset=Page.offset_for(page, limit)
        )
        total = self._leaves.count_for_user(user_id=int(user_id), status=status)
        return Page(items=list(items), page=page, limit=limit, total=total)

    def list_all(
        self,
        *,
        status: Optional[LeaveStatus] = None,
        leave_type: Optional[LeaveType] = None,
        user_id: Optional[int] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Page[LeaveRow]:
        filters = dict(status=status, leave_type=leave_type, user_id=user_id)
        items = self._leaves.list_leaves(limit=limit, offset=Page.offset_for(page, limit), **filters)
        total = self._leaves.count_leaves(**filters)
        return Page(items=list(items), page=page, limit=limit, total=total)

    def get_stats(self, *, start_date: Optional[date] = None, end_date: Optional[date] = None) -> dict:
        start = day_window(start_date)[0] if start_date else None
        end = day_window(end_date)[1] if end_date else None
        leaves = self._leaves.list_created_between(user_type=UserType.EMPLOYEE, start=start, end=end)

        by_status = Counter(l.status for l in leaves)
        by_type: dict[LeaveType, Counter] = {}
        for l in leaves:
            by_type.setdefault(l.leave_type, Counter())[l.status] += 1

        total = len(leaves)
        approved = by_status[LeaveStatus.APPROVED]
        type_stats = [
            {
                "type": leave_type.value,
                "total": sum(counts.values()),
                "approved": counts[LeaveStatus.APPROVED],
                "rejected": counts[LeaveStatus.REJECTED],
                "pending": counts[LeaveStatus.PENDING],
                "cancelled": counts[LeaveStatus.CANCELLED],
            }
            for leave_type, counts in by_type.items()
        ]
        type_stats.sort(key=lambda s: s["total"], reverse=True)

        return {
            "totalLeaves": total,
            "pendingLeaves": by_status[LeaveStatus.PENDING],
            "approvedLeaves": approved,
            "rejectedLeaves": by_status[LeaveStatus.REJECTED],
            "cancelledLeaves": by_status[LeaveStatus.CANCELLED],
            "approvalRate": round(approved / total * 100) if total else 0,
            "leaveTypeStats": type_stats,
        }


def leave_payload(leave: LeaveRequest) -> dict:
    return {
        "id": leave.leave_id,
        "userId": leave.user_id,
        "userType": leave.user_type.value,
        "leaveType": leave.leave_type.value,
        "fromDate": leave.from_date.isoformat(),
        "toDate": leave.to_date.isoformat(),
        "totalDays": leave.total_days,
        "reason": leave.reason,
        "status": leave.status.value,
        "isHalfDay": leave.is_half_day,
        "halfDayType": leave.half_day_type.value if leave.half_day_type else None,
        "approvedBy": leave.approved_by,
        "approvedAt": leave.approved_at.isoformat() if leave.approved_at else None,
        "rejectionReason": leave.rejection_reason,
        "notes": leave.notes,
        "salaryDeduction": round(leave.salary_deduction, 2),
        "createdAt": leave.created_at.isoformat() if leave.created_at else None,
    }


def leave_row_payload(row: LeaveRow) -> dict:
    payload = leave_payload(row.leave)
    payload["employeeName"] = row.full_name
    payload["username"] = row.username
    return payload
