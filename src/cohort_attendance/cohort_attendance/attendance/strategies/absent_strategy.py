from __future__ import annotations

from datetime import datetime

from ...core.enums import AttendanceStatus
from .base import AttendanceStrategy, StatusDecision


class AbsentStrategy(AttendanceStrategy):
    """Submitted after the late window closed; counted as absent."""

    def decide(self, *, now: datetime, session_start: datetime) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.ABSENT, note="Submitted after the late window")
