from __future__ import annotations

from datetime import datetime

from ...core.enums import AttendanceStatus
from .base import AttendanceStrategy, StatusDecision


class PresentStrategy(AttendanceStrategy):
    """Submitted within the grace window after session start."""

    def decide(self, *, now: datetime, session_start: datetime) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.PRESENT)
