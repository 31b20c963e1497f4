from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceSession, AttendanceStatus, MarkedBy
from .model import AttendanceCode, AttendanceRecord, RecordFilter, SessionLock


class AttendanceCodeRepository(Protocol):
    def replace_active_code(
        self,
        *,
        cohort_number: int,
        session: AttendanceSession,
        code: str,
        generated_at: datetime,
        expires_at: datetime,
        generated_by: Optional[int],
    ) -> AttendanceCode:
        """Deactivate every active code for (cohort, session), then insert the new one."""

        raise NotImplementedError

    def find_active(self, cohort_number: int, session: AttendanceSession, *, now: datetime) -> Optional[AttendanceCode]:
        raise NotImplementedError

    def find_active_by_code(self, code: str, *, now: datetime) -> Optional[AttendanceCode]:
        raise NotImplementedError

    def find_latest(self, cohort_number: int, session: AttendanceSession) -> Optional[AttendanceCode]:
        """Most recently generated code regardless of state."""

        raise NotImplementedError


class AttendanceRecordRepository(Protocol):
    def get_by_id(self, record_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def find_for_key(
        self,
        user_id: int,
        date: str,
        session: AttendanceSession,
        *,
        include_deleted: bool = False,
    ) -> Optional[AttendanceRecord]:
        """Record at (user, date, session); a live row wins over deleted ones."""

        raise NotImplementedError

    def insert(self, record: AttendanceRecord) -> int:
        """Persist ``record`` (its ``record_id`` is ignored) and return the new id.

        Raises DuplicateKeyError when a live record already holds the key.
        """

        raise NotImplementedError

    def overwrite(
        self,
        *,
        record_id: int,
        status: AttendanceStatus,
        marked_by: MarkedBy,
        marked_by_user: Optional[int],
        submitted_at: datetime,
    ) -> bool:
        """Admin-only override; also clears the soft-delete fields."""

        raise NotImplementedError

    def soft_delete(self, *, record_id: int, deleted_by: Optional[int], deleted_at: datetime) -> bool:
        raise NotImplementedError

    def set_locked(self, *, date: str, session: AttendanceSession, cohort_number: Optional[int], locked: bool) -> int:
        raise NotImplementedError

    def list_records(
        self,
        record_filter: RecordFilter,
        *,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> Sequence[AttendanceRecord]:
        """Non-deleted records ordered by date desc, session asc."""

        raise NotImplementedError

    def count_records(self, record_filter: RecordFilter) -> int:
        raise NotImplementedError


class SessionLockRepository(Protocol):
    def upsert(self, lock: SessionLock) -> None:
        raise NotImplementedError

    def find(self, *, date: str, session: AttendanceSession, cohort_number: int) -> Optional[SessionLock]:
        raise NotImplementedError

    def set_all(
        self, *, date: str, session: AttendanceSession, locked: bool, updated_at: datetime, updated_by: Optional[int]
    ) -> int:
        """Overwrite the state of every lock row, any cohort, for (date, session)."""
        raise NotImplementedError
