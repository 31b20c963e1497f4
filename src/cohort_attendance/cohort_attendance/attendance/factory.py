from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from ..core.constants import LATE_WINDOW_MINUTES, PRESENT_WINDOW_MINUTES
from .strategies.absent_strategy import AbsentStrategy
from .strategies.base import AttendanceStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.present_strategy import PresentStrategy


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose appropriate strategy based on elapsed time."""

    present_minutes: int = PRESENT_WINDOW_MINUTES
    late_minutes: int = LATE_WINDOW_MINUTES

    def for_submission(self, *, now: datetime, session_start: datetime) -> AttendanceStrategy:
        # Both window ends are inclusive
        elapsed = now - session_start
        if elapsed <= timedelta(minutes=self.present_minutes):
            return PresentStrategy()
        if elapsed <= timedelta(minutes=self.late_minutes):
            return LateStrategy()
        return AbsentStrategy()
