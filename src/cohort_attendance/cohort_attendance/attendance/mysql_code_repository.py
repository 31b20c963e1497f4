from __future__ import annotations

from datetime import datetime
from typing import Optional

from mysql.connector.errors import IntegrityError

from ..common.datetime_utils import from_db_datetime, to_db_datetime
from ..core.enums import AttendanceSession
from ..core.exceptions import DuplicateKeyError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone, is_duplicate_key
from .model import AttendanceCode
from .repository import AttendanceCodeRepository

_COLUMNS = "code_id, code, cohort_number, session, generated_at, expires_at, is_active, generated_by"


def _to_code(row: dict) -> AttendanceCode:
    return AttendanceCode(
        code_id=int(row["code_id"]),
        code=row["code"],
        cohort_number=int(row["cohort_number"]),
        session=AttendanceSession(row["session"]),
        generated_at=from_db_datetime(row["generated_at"]),
        expires_at=from_db_datetime(row["expires_at"]),
        is_active=bool(row["is_active"]),
        generated_by=int(row["generated_by"]) if row.get("generated_by") is not None else None,
    )


class MySQLAttendanceCodeRepository(AttendanceCodeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

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
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    UPDATE attendance_codes
                    SET is_active=0
                    WHERE cohort_number=%s AND session=%s AND is_active=1
                    """,
                    (int(cohort_number), session.value),
                )
                cur.execute(
                    """
                    INSERT INTO attendance_codes(code, cohort_number, session, generated_at, expires_at, is_active, generated_by)
                    VALUES(%s,%s,%s,%s,%s,1,%s)
                    """,
                    (
                        code,
                        int(cohort_number),
                        session.value,
                        to_db_datetime(generated_at),
                        to_db_datetime(expires_at),
                        generated_by,
                    ),
                )
                code_id = int(cur.lastrowid)
        except IntegrityError as e:
            if is_duplicate_key(e):
                raise DuplicateKeyError("Another code was generated at the same time") from e
            raise

        return AttendanceCode(
            code_id=code_id,
            code=code,
            cohort_number=int(cohort_number),
            session=session,
            generated_at=generated_at,
            expires_at=expires_at,
            is_active=True,
            generated_by=generated_by,
        )

    def find_active(self, cohort_number: int, session: AttendanceSession, *, now: datetime) -> Optional[AttendanceCode]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_codes
                WHERE cohort_number=%s AND session=%s AND is_active=1 AND expires_at > %s
                ORDER BY generated_at DESC
                LIMIT 1
                """,
                (int(cohort_number), session.value, to_db_datetime(now)),
            )
            row = fetchone(cur)
            return _to_code(row) if row else None

    def find_active_by_code(self, code: str, *, now: datetime) -> Optional[AttendanceCode]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_codes
                WHERE code=%s AND is_active=1 AND expires_at > %s
                ORDER BY generated_at DESC
                LIMIT 1
                """,
                (code, to_db_datetime(now)),
            )
            row = fetchone(cur)
            return _to_code(row) if row else None

    def find_latest(self, cohort_number: int, session: AttendanceSession) -> Optional[AttendanceCode]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_codes
                WHERE cohort_number=%s AND session=%s
                ORDER BY generated_at DESC, code_id DESC
                LIMIT 1
                """,
                (int(cohort_number), session.value),
            )
            row = fetchone(cur)
            return _to_code(row) if row else None
