from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.validators import require_min_length, require_non_empty
from ..core.constants import DEFAULT_LEAVE_BALANCE
from ..core.enums import UserType
from ..core.exceptions import AuthenticationError, NotFoundError, ValidationError
from .model import User
from .repository import UserRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionUser:
    """What we store into the Flask session after login."""

    user_id: int
    full_name: str
    username: str
    user_type: UserType


class AuthService:
    """Use case: authenticate user (login)."""

    def __init__(self, users: UserRepository):
        self._users = users

    def authenticate(self, username: str, password: str) -> SessionUser:
        user = self._users.get_by_username((username or "").strip())
        if not user or not user.is_active:
            raise AuthenticationError()

        try:
            matched = check_password_hash(user.password_hash, password or "")
        except ValueError:
            # placeholder or corrupted hashes
            matched = False

        if not matched:
            raise AuthenticationError()

        logger.info("login user=%s/%s", user.user_id, user.user_type.value)
        return SessionUser(
            user_id=user.user_id,
            full_name=user.full_name,
            username=user.username,
            user_type=user.user_type,
        )


class UserService:
    """Use case: manage accounts."""

    def __init__(self, users: UserRepository, *, default_leave_balance: float = DEFAULT_LEAVE_BALANCE):
        self._users = users
        self._default_leave_balance = float(default_leave_balance)

    def get_profile(self, user_id: int) -> User:
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("User not found")
        return user

    def create_account(
        self,
        *,
        full_name: str,
        username: str,
        password: str,
        user_type: UserType = UserType.EMPLOYEE,
        monthly_salary: float = 0.0,
        leave_balance: Optional[float] = None,
    ) -> int:
        full_name = require_non_empty(full_name, "Full name")
        username = require_non_empty(username, "Username")
        require_min_length(password, "Password", 6)

        if self._users.get_by_username(username):
            raise ValidationError("Username already exists")
        if monthly_salary < 0:
            raise ValidationError("Monthly salary cannot be negative")

        if user_type == UserType.ADMIN:
            balance = 0.0
        else:
            balance = self._default_leave_balance if leave_balance is None else float(leave_balance)
        if balance < 0:
            raise ValidationError("Leave balance cannot be negative")

        user_id = self._users.create_user(
            full_name=full_name,
            username=username,
            password_hash=generate_password_hash(password),
            user_type=user_type,
            leave_balance=balance,
            monthly_salary=float(monthly_salary),
        )
        logger.info("account created user=%s/%s", user_id, user_type.value)
        return user_id


def user_payload(user: User) -> dict:
    payload = {
        "id": user.user_id,
        "fullName": user.full_name,
        "username": user.username,
        "userType": user.user_type.value,
    }
    if user.user_type == UserType.EMPLOYEE:
        payload["leaveBalance"] = user.leave_balance
    return payload
