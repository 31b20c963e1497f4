from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from ..common.datetime_utils import days_ago, now_local
from ..common.validators import require_date, require_positive_int
from ..core.constants import DEFAULT_LOG_PAGE_SIZE, MAX_LOG_PAGE_SIZE
from ..core.enums import AttendanceSession, AttendanceStatus, MarkedBy
from ..core.exceptions import DuplicateKeyError, RecordNotFoundError, StudentNotFoundError, ValidationError
from ..users.repository import UserRepository
from .model import AttendanceRecord, RecordFilter
from .repository import AttendanceRecordRepository

logger = logging.getLogger(__name__)


class AttendanceMarkingService:
    """Admin path: create-or-overwrite records keyed by (user, date, session)."""

    def __init__(
        self,
        records: AttendanceRecordRepository,
        users: UserRepository,
        *,
        now_fn: Callable[[], datetime] = now_local,
    ):
        self._records = records
        self._users = users
        self._now = now_fn

    def manual_mark(
        self,
        *,
        user_id: int,
        date: str,
        session: AttendanceSession,
        status: AttendanceStatus,
        marked_by: Optional[int],
    ) -> AttendanceRecord:
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise StudentNotFoundError()

        now = self._now()
        existing = self._records.find_for_key(user.user_id, date, session, include_deleted=True)
        if existing is None:
            record = AttendanceRecord(
                record_id=0,
                user_id=user.user_id,
                jsd_number=user.jsd_number,
                first_name=user.first_name,
                last_name=user.last_name,
                cohort_number=user.cohort_number,
                date=date,
                session=session,
                status=status,
                marked_by=MarkedBy.ADMIN,
                submitted_at=now,
                marked_by_user=marked_by,
                locked=False,
            )
            try:
                return replace(record, record_id=self._records.insert(record))
            except DuplicateKeyError:
                # a live row appeared since the lookup; overwrite it instead
                existing = self._records.find_for_key(user.user_id, date, session)
                if existing is None:
                    raise

        self._records.overwrite(
            record_id=existing.record_id,
            status=status,
            marked_by=MarkedBy.ADMIN,
            marked_by_user=marked_by,
            submitted_at=now,
        )
        return replace(
            existing,
            status=status,
            marked_by=MarkedBy.ADMIN,
            marked_by_user=marked_by,
            submitted_at=now,
            deleted=False,
            deleted_at=None,
            deleted_by=None,
        )

    def bulk_mark(
        self,
        *,
        user_ids: Iterable[int],
        date: str,
        session: AttendanceSession,
        status: AttendanceStatus,
        marked_by: Optional[int],
    ) -> List[AttendanceRecord]:
        """Best effort: users that fail are logged and left out of the result."""
        marked: List[AttendanceRecord] = []
        for user_id in user_ids:
            try:
                marked.append(
                    self.manual_mark(user_id=user_id, date=date, session=session, status=status, marked_by=marked_by)
                )
            except Exception as e:
                logger.warning("Bulk mark skipped user=%s date=%s session=%s: %s", user_id, date, session.value, e)
        return marked

    def delete_record(self, *, record_id: int, deleted_by: Optional[int]) -> AttendanceRecord:
        """Soft-delete; returns the record as it was before deletion."""
        record = self._records.get_by_id(int(record_id))
        if not record or record.deleted:
            raise RecordNotFoundError()

        self._records.soft_delete(record_id=record.record_id, deleted_by=deleted_by, deleted_at=self._now())
        logger.info("Record %s soft-deleted by user=%s", record.record_id, deleted_by)
        return record

    def get_logs(
        self,
        *,
        cohort_number: Optional[int] = None,
        date: Optional[str] = None,
        page: int = 1,
        limit: int = DEFAULT_LOG_PAGE_SIZE,
    ) -> Tuple[Sequence[AttendanceRecord], int]:
        page = require_positive_int(page, "Page")
        limit = require_positive_int(limit, "Limit")
        if limit > MAX_LOG_PAGE_SIZE:
            raise ValidationError(f"Limit must be at most {MAX_LOG_PAGE_SIZE}")

        record_filter = RecordFilter(
            cohort_number=int(cohort_number) if cohort_number else None,
            date=require_date(date) if date else None,
        )
        rows = self._records.list_records(record_filter, limit=limit, offset=(page - 1) * limit)
        return rows, self._records.count_records(record_filter)

    def get_student_history(self, *, user_id: int, days: Optional[int] = None) -> Sequence[AttendanceRecord]:
        if not self._users.get_by_id(int(user_id)):
            raise StudentNotFoundError()

        start_date = None
        if days is not None:
            start_date = days_ago(require_positive_int(days, "Days"), self._now())
        return self._records.list_records(RecordFilter(user_id=int(user_id), start_date=start_date))
