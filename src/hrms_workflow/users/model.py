from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import UserType


@dataclass(frozen=True)
class User:
    """Account that punches attendance and requests leave.

    Admins carry no leave balance; theirs is stored as 0 and never read.
    """

    user_id: int
    full_name: str
    username: str
    password_hash: str
    user_type: UserType
    leave_balance: float = 0.0
    monthly_salary: float = 0.0
    is_active: bool = True
