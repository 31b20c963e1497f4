from __future__ import annotations

import logging
from typing import List, Optional

from ..attendance.marking_service import AttendanceMarkingService
from ..attendance.model import AttendanceRecord
from ..core.enums import AttendanceSession, AttendanceStatus, LeaveType
from ..core.exceptions import InvalidSessionError
from .model import LeaveRequest

logger = logging.getLogger(__name__)


class LeaveAttendanceReconciler:
    """Turns an approved leave into excused attendance records.

    Writes go through manual marking, so they overwrite whatever is recorded
    for the same (user, date, session).
    """

    def __init__(self, marking: AttendanceMarkingService):
        self._marking = marking

    def apply(self, leave: LeaveRequest, *, approved_by: Optional[int]) -> List[AttendanceRecord]:
        if leave.leave_type == LeaveType.LATE:
            session = leave.session or AttendanceSession.MORNING
            return [self._mark(leave, session, AttendanceStatus.LATE_EXCUSED, approved_by)]

        if leave.leave_type == LeaveType.HALF_DAY:
            if leave.session is None:
                raise InvalidSessionError()
            return [self._mark(leave, leave.session, AttendanceStatus.ABSENT_EXCUSED, approved_by)]

        # full day: each session is written on its own; the first failure is raised afterwards
        marked: List[AttendanceRecord] = []
        first_error: Optional[Exception] = None
        for session in (AttendanceSession.MORNING, AttendanceSession.AFTERNOON):
            try:
                marked.append(self._mark(leave, session, AttendanceStatus.ABSENT_EXCUSED, approved_by))
            except Exception as e:
                logger.warning("Leave %s: could not mark %s: %s", leave.leave_id, session.value, e)
                if first_error is None:
                    first_error = e
        if first_error is not None:
            raise first_error
        return marked

    def _mark(
        self,
        leave: LeaveRequest,
        session: AttendanceSession,
        status: AttendanceStatus,
        approved_by: Optional[int],
    ) -> AttendanceRecord:
        return self._marking.manual_mark(
            user_id=leave.user_id,
            date=leave.date,
            session=session,
            status=status,
            marked_by=approved_by,
        )
