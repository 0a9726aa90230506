from __future__ import annotations

from dataclasses import dataclass
from functools import wraps

from flask import session

from ..core.enums import UserType
from .http import fail


@dataclass(frozen=True)
class Identity:
    """Authenticated subject taken from the Flask session."""

    user_id: int
    user_type: UserType


def current_identity() -> Identity:
    return Identity(user_id=int(session["user_id"]), user_type=UserType(session["user_type"]))


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return fail("Please log in to continue", status=401, code="AUTHENTICATION_REQUIRED")
        return view(*args, **kwargs)

    return wrapper


def admin_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return fail("Please log in to continue", status=401, code="AUTHENTICATION_REQUIRED")
        if session.get("user_type") != UserType.ADMIN.value:
            return fail("Admin access required", status=403, code="AUTHORIZATION_ERROR")
        return view(*args, **kwargs)

    return wrapper
