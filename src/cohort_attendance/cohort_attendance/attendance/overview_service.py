from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Callable, Dict, Optional

from ..common.datetime_utils import now_local, today_local
from ..common.validators import require_date, require_positive_int
from ..core.constants import ROSTER_LIMIT
from ..core.enums import AttendanceSession
from ..users.repository import UserRepository
from .model import AttendanceOverview, AttendanceRecord, RecordFilter, StudentAttendanceRow
from .repository import AttendanceCodeRepository, AttendanceRecordRepository


class AttendanceOverviewService:
    def __init__(
        self,
        records: AttendanceRecordRepository,
        codes: AttendanceCodeRepository,
        users: UserRepository,
        *,
        now_fn: Callable[[], datetime] = now_local,
    ):
        self._records = records
        self._codes = codes
        self._users = users
        self._now = now_fn

    def get_overview(
        self,
        *,
        cohort_number: int,
        session: Optional[AttendanceSession] = None,
        date: Optional[str] = None,
    ) -> AttendanceOverview:
        """Daily roster of a cohort: every active student, with ``-`` where nothing was recorded."""
        cohort = require_positive_int(cohort_number, "Cohort")
        now = self._now()
        today = today_local(now)
        target = require_date(date) if date else today

        records = self._records.list_records(RecordFilter(cohort_number=cohort, date=target, session=session))
        by_user: Dict[int, Dict[AttendanceSession, AttendanceRecord]] = {}
        for r in records:
            by_user.setdefault(r.user_id, {})[r.session] = r

        students = []
        for user in self._users.list_by_cohort(cohort, limit=ROSTER_LIMIT):
            sessions = by_user.get(user.user_id, {})
            morning = sessions.get(AttendanceSession.MORNING)
            afternoon = sessions.get(AttendanceSession.AFTERNOON)
            row = StudentAttendanceRow(
                user_id=user.user_id,
                jsd_number=user.jsd_number,
                first_name=user.first_name,
                last_name=user.last_name,
            )
            if morning:
                row = _with_session(row, "morning", morning)
            if afternoon:
                row = _with_session(row, "afternoon", afternoon)
            students.append(row)

        code = None
        if session is not None and target == today:
            code = self._codes.find_active(cohort, session, now=now)

        return AttendanceOverview(
            date=target,
            session=session,
            record_count=len(records),
            student_count=len(by_user),
            students=students,
            code=code.code if code else None,
            expires_at=code.expires_at if code else None,
        )


def _with_session(row: StudentAttendanceRow, name: str, record: AttendanceRecord) -> StudentAttendanceRow:
    return replace(row, **{name: record.status.value, f"{name}_record_id": record.record_id})
