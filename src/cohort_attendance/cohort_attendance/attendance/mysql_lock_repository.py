from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..common.datetime_utils import format_date, from_db_datetime, to_db_datetime
from ..core.enums import AttendanceSession
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import SessionLock
from .repository import SessionLockRepository


class MySQLSessionLockRepository(SessionLockRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def upsert(self, lock: SessionLock) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_session_locks(lock_date, session, cohort_number, locked, updated_at, updated_by)
                VALUES(%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    locked=VALUES(locked), updated_at=VALUES(updated_at), updated_by=VALUES(updated_by)
                """,
                (
                    lock.date,
                    lock.session.value,
                    int(lock.cohort_number),
                    1 if lock.locked else 0,
                    to_db_datetime(lock.updated_at),
                    lock.updated_by,
                ),
            )

    def find(self, *, date: str, session: AttendanceSession, cohort_number: int) -> Optional[SessionLock]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT lock_date, session, cohort_number, locked, updated_at, updated_by
                FROM attendance_session_locks
                WHERE lock_date=%s AND session=%s AND cohort_number=%s
                """,
                (date, session.value, int(cohort_number)),
            )
            r = fetchone(cur)
            if not r:
                return None
            lock_date = r["lock_date"]
            return SessionLock(
                date=lock_date if isinstance(lock_date, str) else format_date(lock_date),
                session=AttendanceSession(r["session"]),
                cohort_number=int(r["cohort_number"]),
                locked=bool(r["locked"]),
                updated_at=from_db_datetime(r["updated_at"]),
                updated_by=int(r["updated_by"]) if r.get("updated_by") is not None else None,
            )

    def set_all(
        self, *, date: str, session: AttendanceSession, locked: bool, updated_at: datetime, updated_by: Optional[int]
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_session_locks
                SET locked=%s, updated_at=%s, updated_by=%s
                WHERE lock_date=%s AND session=%s
                """,
                (1 if locked else 0, to_db_datetime(updated_at), updated_by, date, session.value),
            )
            return int(cur.rowcount or 0)
