from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, time


@dataclass(frozen=True)
class LatenessDecision:
    is_late: bool
    late_minutes: int = 0


class LatenessStrategy(ABC):
    """Strategy Pattern: encapsulate how a check-in is classified."""

    @abstractmethod
    def decide_checkin(self, *, now: datetime, threshold: time) -> LatenessDecision:
        raise NotImplementedError
