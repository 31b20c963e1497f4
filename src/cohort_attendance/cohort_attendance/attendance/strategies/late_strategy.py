from __future__ import annotations

from datetime import datetime

from ...core.enums import AttendanceStatus
from .base import AttendanceStrategy, StatusDecision


class LateStrategy(AttendanceStrategy):
    """Late submission."""

    def decide(self, *, now: datetime, session_start: datetime) -> StatusDecision:
        minutes = int((now - session_start).total_seconds() // 60)
        return StatusDecision(status=AttendanceStatus.LATE, note=f"{minutes} minutes after session start")
