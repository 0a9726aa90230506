from __future__ import annotations

from enum import Enum
from typing import Optional, Type, TypeVar

from ..core.exceptions import ValidationError

E = TypeVar("E", bound=Enum)


def require_non_empty(value: str, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value


def require_length_between(value: Optional[str], field_name: str, min_len: int, max_len: int) -> str:
    text = value.strip() if isinstance(value, str) else ""
    if len(text) < min_len or len(text) > max_len:
        raise ValidationError(f"{field_name} must be between {min_len} and {max_len} characters")
    return text


def optional_max_length(value: Optional[str], field_name: str, max_len: int) -> Optional[str]:
    text = value.strip() if isinstance(value, str) else ""
    if len(text) > max_len:
        raise ValidationError(f"{field_name} cannot exceed {max_len} characters")
    return text or None


def require_choice(value, enum_cls: Type[E], field_name: str) -> E:
    try:
        return enum_cls(value)
    except ValueError:
        raise ValidationError(f"Please select a valid {field_name}")


def require_positive_int(value, field_name: str, *, default: int) -> int:
    if value in (None, ""):
        return default
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a positive integer")
    if number < 1:
        raise ValidationError(f"{field_name} must be a positive integer")
    return number
