from __future__ import annotations

import math
from datetime import date, datetime, time, timedelta
from typing import Optional

from ..core.exceptions import InvalidDate


def parse_iso_date(value, *, field_name: str = "date") -> date:
    """Parse YYYY-MM-DD (or a full ISO timestamp) into a date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = (value or "").strip() if isinstance(value, str) else ""
    if not text:
        raise InvalidDate(f"Invalid {field_name} format")
    try:
        if len(text) == 10:
            return date.fromisoformat(text)
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        return datetime.fromisoformat(text).date()
    except ValueError:
        raise InvalidDate(f"Invalid {field_name} format")


def parse_optional_date(value, *, field_name: str = "date") -> Optional[date]:
    if value in (None, ""):
        return None
    return parse_iso_date(value, field_name=field_name)


def parse_clock(value: str) -> time:
    """Parse HH:MM into a time of day."""
    return datetime.strptime(value.strip(), "%H:%M").time()


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def day_window(day: date) -> tuple[datetime, datetime]:
    """Half-open [00:00, next day 00:00) range for a calendar day."""
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


def hours_between(start: Optional[datetime], end: Optional[datetime]) -> float:
    if start is None or end is None:
        return 0.0
    return (end - start).total_seconds() / 3600


def minutes_after(moment: datetime, threshold: time) -> int:
    """Whole minutes (rounded up) that `moment` lies after `threshold` on its own day."""
    delta = moment - datetime.combine(moment.date(), threshold)
    seconds = delta.total_seconds()
    if seconds <= 0:
        return 0
    return int(math.ceil(seconds / 60))


def format_hours(hours: float) -> str:
    total_minutes = int(round(hours * 60))
    return f"{total_minutes // 60}h {total_minutes % 60}m"
