from __future__ import annotations

from datetime import datetime, time

from .base import LatenessDecision, LatenessStrategy


class OnTimeStrategy(LatenessStrategy):
    """Check-in at or before the threshold."""

    def decide_checkin(self, *, now: datetime, threshold: time) -> LatenessDecision:
        return LatenessDecision(is_late=False)
