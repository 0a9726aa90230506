from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import HalfDayType, LeaveStatus, LeaveType, UserType


@dataclass(frozen=True)
class LeaveRequest:
    """Domain entity: a leave request and its approval outcome."""

    leave_id: int
    user_id: int
    user_type: UserType
    leave_type: LeaveType
    from_date: date
    to_date: date
    total_days: float
    reason: str
    status: LeaveStatus
    created_at: datetime
    is_half_day: bool = False
    half_day_type: Optional[HalfDayType] = None
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    notes: Optional[str] = None
    salary_deduction: float = 0.0
    balance_deducted: float = 0.0


@dataclass(frozen=True)
class LeaveSettlement:
    """What approving a leave does to the owner's balance and pay."""

    balance_deducted: float
    new_balance: float
    salary_deduction: float


@dataclass(frozen=True)
class LeaveRow:
    """Read-model for admin lists (joined with the user)."""

    leave: LeaveRequest
    full_name: str
    username: str
