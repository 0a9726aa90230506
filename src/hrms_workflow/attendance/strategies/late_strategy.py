from __future__ import annotations

from datetime import datetime, time

from ...common.datetime_utils import minutes_after
from .base import LatenessDecision, LatenessStrategy


class LateStrategy(LatenessStrategy):
    """Late check-in; minutes are rounded up so any lateness counts."""

    def decide_checkin(self, *, now: datetime, threshold: time) -> LatenessDecision:
        return LatenessDecision(is_late=True, late_minutes=minutes_after(now, threshold))
