from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from ..common.datetime_utils import now_local
from ..common.validators import require_date
from ..core.constants import ALL_COHORTS
from ..core.enums import AttendanceSession
from .model import SessionLock
from .repository import AttendanceRecordRepository, SessionLockRepository

logger = logging.getLogger(__name__)


class SessionLockService:
    """Per (date, session, cohort) gate on self-service submission.

    Cohort ``0`` stands for every cohort; a session counts as locked when either
    its own row or the all-cohorts row is locked. Locking or unlocking cohort
    ``0`` also overwrites every cohort row of that session.
    """

    def __init__(
        self,
        locks: SessionLockRepository,
        records: AttendanceRecordRepository,
        *,
        now_fn: Callable[[], datetime] = now_local,
    ):
        self._locks = locks
        self._records = records
        self._now = now_fn

    def lock_session(
        self,
        *,
        date: str,
        session: AttendanceSession,
        cohort_number: Optional[int],
        locked: bool,
        updated_by: Optional[int] = None,
    ) -> SessionLock:
        date = require_date(date)
        cohort = int(cohort_number or ALL_COHORTS)

        lock = SessionLock(
            date=date,
            session=session,
            cohort_number=cohort,
            locked=bool(locked),
            updated_at=self._now(),
            updated_by=updated_by,
        )
        if cohort == ALL_COHORTS:
            # an all-cohorts change overrides every cohort row for the session
            self._locks.set_all(
                date=date, session=session, locked=lock.locked, updated_at=lock.updated_at, updated_by=updated_by
            )
            self._locks.upsert(lock)
            effective = lock.locked
        else:
            self._locks.upsert(lock)
            effective = self.is_session_locked(date=date, session=session, cohort_number=cohort)
        # record payloads carry the state submission actually sees
        stamped = self._records.set_locked(date=date, session=session, cohort_number=cohort or None, locked=effective)

        logger.info(
            "Session %s %s cohort=%s %s by user=%s (%d records stamped)",
            date,
            session.value,
            cohort or "all",
            "locked" if lock.locked else "unlocked",
            updated_by,
            stamped,
        )
        return lock

    def is_session_locked(self, *, date: str, session: AttendanceSession, cohort_number: Optional[int]) -> bool:
        cohorts = {ALL_COHORTS, int(cohort_number or ALL_COHORTS)}
        for cohort in cohorts:
            lock = self._locks.find(date=date, session=session, cohort_number=cohort)
            if lock and lock.locked:
                return True
        return False

    def get_lock(self, *, date: str, session: AttendanceSession, cohort_number: Optional[int]) -> SessionLock:
        """Stored lock row, or an unlocked placeholder when none was ever written."""
        date = require_date(date)
        cohort = int(cohort_number or ALL_COHORTS)
        lock = self._locks.find(date=date, session=session, cohort_number=cohort)
        if lock:
            return lock
        return SessionLock(date=date, session=session, cohort_number=cohort, locked=False, updated_at=self._now())
