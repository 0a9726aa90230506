from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time

from .strategies.base import LatenessStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.on_time_strategy import OnTimeStrategy


@dataclass
class LatenessStrategyFactory:
    """Factory Pattern: choose appropriate strategy based on rules."""

    def for_checkin(self, *, now: datetime, threshold: time) -> LatenessStrategy:
        if now <= datetime.combine(now.date(), threshold):
            return OnTimeStrategy()
        return LateStrategy()
