from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.validators import require_date
from ..core.enums import AttendanceSession, LeaveStatus, LeaveType
from ..core.exceptions import (
    InvalidSessionError,
    LeaveAlreadyProcessedError,
    LeaveRequestNotFoundError,
    StudentNotFoundError,
    ValidationError,
)
from ..users.repository import UserRepository
from .model import LeaveFilter, LeaveRequest
from .reconciler import LeaveAttendanceReconciler
from .repository import LeaveRequestRepository

logger = logging.getLogger(__name__)


class LeaveService:
    def __init__(
        self,
        leaves: LeaveRequestRepository,
        users: UserRepository,
        reconciler: LeaveAttendanceReconciler,
        *,
        now_fn: Callable[[], datetime] = now_local,
    ):
        self._leaves = leaves
        self._users = users
        self._reconciler = reconciler
        self._now = now_fn

    def _build(
        self,
        *,
        user_id: int,
        leave_type: LeaveType,
        date: str,
        session: Optional[AttendanceSession],
        reason: str,
    ) -> LeaveRequest:
        date = require_date(date)
        if leave_type == LeaveType.HALF_DAY and session is None:
            raise InvalidSessionError()
        if leave_type == LeaveType.FULL_DAY:
            session = None

        user = self._users.get_by_id(int(user_id))
        if not user:
            raise StudentNotFoundError()

        return LeaveRequest(
            leave_id=0,
            user_id=user.user_id,
            jsd_number=user.jsd_number,
            first_name=user.first_name,
            last_name=user.last_name,
            cohort_number=user.cohort_number,
            leave_type=leave_type,
            date=date,
            session=session,
            reason=(reason or "").strip(),
            status=LeaveStatus.PENDING,
            created_at=self._now(),
        )

    def create_leave_request(
        self,
        *,
        user_id: int,
        leave_type: LeaveType,
        date: str,
        session: Optional[AttendanceSession] = None,
        reason: str = "",
    ) -> LeaveRequest:
        leave = self._build(user_id=user_id, leave_type=leave_type, date=date, session=session, reason=reason)
        leave = replace(leave, created_by=f"{leave.first_name} {leave.last_name}".strip())
        return replace(leave, leave_id=self._leaves.insert(leave))

    def admin_create_leave_request(
        self,
        *,
        user_id: int,
        leave_type: LeaveType,
        date: str,
        session: Optional[AttendanceSession] = None,
        reason: str = "",
        admin_id: int,
        admin_name: str,
    ) -> LeaveRequest:
        """Manual entry by an admin: stored as approved and reconciled right away."""
        leave = self._build(user_id=user_id, leave_type=leave_type, date=date, session=session, reason=reason)
        leave = replace(
            leave,
            status=LeaveStatus.APPROVED,
            created_by=admin_name,
            is_manual_entry=True,
            reviewed_by=int(admin_id),
            reviewed_by_name=admin_name,
            reviewed_at=leave.created_at,
        )
        leave = replace(leave, leave_id=self._leaves.insert(leave))
        self._reconcile(leave, admin_id)
        return leave

    def review_leave_request(
        self,
        *,
        leave_id: int,
        status: LeaveStatus,
        review_notes: Optional[str],
        admin_id: int,
        admin_name: str,
    ) -> LeaveRequest:
        if status not in (LeaveStatus.APPROVED, LeaveStatus.REJECTED):
            raise ValidationError("Status must be 'approved' or 'rejected'")

        leave = self._leaves.get_by_id(int(leave_id))
        if not leave:
            raise LeaveRequestNotFoundError()
        if leave.status != LeaveStatus.PENDING:
            raise LeaveAlreadyProcessedError()

        now = self._now()
        notes = (review_notes or "").strip() or None
        updated = self._leaves.review(
            leave_id=leave.leave_id,
            status=status,
            reviewed_by=int(admin_id),
            reviewed_by_name=admin_name,
            review_notes=notes,
            reviewed_at=now,
        )
        if not updated:
            # reviewed concurrently by someone else
            raise LeaveAlreadyProcessedError()

        leave = replace(
            leave,
            status=status,
            reviewed_by=int(admin_id),
            reviewed_by_name=admin_name,
            review_notes=notes,
            reviewed_at=now,
        )
        logger.info("Leave %s %s by admin=%s", leave.leave_id, status.value, admin_id)

        if status == LeaveStatus.APPROVED:
            self._reconcile(leave, admin_id)
        return leave

    def _reconcile(self, leave: LeaveRequest, admin_id: int) -> None:
        # the approval stands even when attendance could not be updated
        try:
            self._reconciler.apply(leave, approved_by=int(admin_id))
        except Exception:
            logger.exception("Failed to apply leave %s to attendance", leave.leave_id)

    def get_my_leave_requests(self, *, user_id: int) -> Sequence[LeaveRequest]:
        return self._leaves.list_requests(LeaveFilter(user_id=int(user_id)))

    def get_all_leave_requests(
        self,
        *,
        cohort_number: Optional[int] = None,
        status: Optional[str] = None,
        from_date: Optional[str] = None,
        to_date: Optional[str] = None,
    ) -> Sequence[LeaveRequest]:
        leave_status = None
        if status and status.lower() != "all":
            try:
                leave_status = LeaveStatus(status.lower())
            except ValueError:
                raise ValidationError("Invalid status. Use 'pending', 'approved', 'rejected' or 'all'")

        return self._leaves.list_requests(
            LeaveFilter(
                cohort_number=int(cohort_number) if cohort_number else None,
                status=leave_status,
                from_date=require_date(from_date, "From date") if from_date else None,
                to_date=require_date(to_date, "To date") if to_date else None,
            )
        )
