from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import LeaveStatus
from .model import LeaveFilter, LeaveRequest


class LeaveRequestRepository(Protocol):
    def insert(self, leave: LeaveRequest) -> int:
        """Persist ``leave`` (its ``leave_id`` is ignored) and return the new id."""

        raise NotImplementedError

    def get_by_id(self, leave_id: int) -> Optional[LeaveRequest]:
        raise NotImplementedError

    def review(
        self,
        *,
        leave_id: int,
        status: LeaveStatus,
        reviewed_by: int,
        reviewed_by_name: str,
        review_notes: Optional[str],
        reviewed_at: datetime,
    ) -> bool:
        """Move a pending request to ``status``; False when it was no longer pending."""

        raise NotImplementedError

    def list_requests(self, leave_filter: LeaveFilter) -> Sequence[LeaveRequest]:
        """Newest first."""

        raise NotImplementedError
