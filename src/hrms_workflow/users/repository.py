from __future__ import annotations

from typing import Optional, Protocol

from ..core.enums import UserType
from .model import User


class UserRepository(Protocol):
    """Storage port for accounts; services depend on this, not on MySQL."""

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_username(self, username: str) -> Optional[User]:
        raise NotImplementedError

    def create_user(
        self,
        *,
        full_name: str,
        username: str,
        password_hash: str,
        user_type: UserType,
        leave_balance: float,
        monthly_salary: float,
    ) -> int:
        raise NotImplementedError
