from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence, Tuple

from mysql.connector.errors import IntegrityError

from ..common.datetime_utils import format_date, from_db_datetime, to_db_datetime
from ..core.enums import AttendanceSession, AttendanceStatus, MarkedBy
from ..core.exceptions import DuplicateKeyError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key
from .model import AttendanceRecord, RecordFilter
from .repository import AttendanceRecordRepository

_COLUMNS = (
    "record_id, user_id, jsd_number, first_name, last_name, cohort_number, attendance_date, session, "
    "status, marked_by, marked_by_user, submitted_at, locked, ip_address, deleted, deleted_at, deleted_by"
)


def _date_str(value) -> str:
    return format_date(value) if isinstance(value, date) else str(value)


def _opt_int(value) -> Optional[int]:
    return int(value) if value is not None else None


def _to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        record_id=int(r["record_id"]),
        user_id=int(r["user_id"]),
        jsd_number=r.get("jsd_number"),
        first_name=r["first_name"],
        last_name=r["last_name"],
        cohort_number=int(r["cohort_number"]),
        date=_date_str(r["attendance_date"]),
        session=AttendanceSession(r["session"]),
        status=AttendanceStatus(r["status"]),
        marked_by=MarkedBy(r["marked_by"]),
        submitted_at=from_db_datetime(r["submitted_at"]),
        marked_by_user=_opt_int(r.get("marked_by_user")),
        locked=bool(r.get("locked")),
        ip_address=r.get("ip_address"),
        deleted=bool(r.get("deleted")),
        deleted_at=from_db_datetime(r.get("deleted_at")),
        deleted_by=_opt_int(r.get("deleted_by")),
    )


def _where(record_filter: RecordFilter) -> Tuple[str, list]:
    clauses = ["deleted=0"]
    params: list[object] = []

    if record_filter.cohort_number is not None:
        clauses.append("cohort_number=%s")
        params.append(int(record_filter.cohort_number))
    if record_filter.user_id is not None:
        clauses.append("user_id=%s")
        params.append(int(record_filter.user_id))
    if record_filter.date is not None:
        clauses.append("attendance_date=%s")
        params.append(record_filter.date)
    if record_filter.session is not None:
        clauses.append("session=%s")
        params.append(record_filter.session.value)
    if record_filter.start_date is not None:
        clauses.append("attendance_date>=%s")
        params.append(record_filter.start_date)
    if record_filter.end_date is not None:
        clauses.append("attendance_date<=%s")
        params.append(record_filter.end_date)

    return " AND ".join(clauses), params


class MySQLAttendanceRecordRepository(AttendanceRecordRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, record_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_records WHERE record_id=%s", (int(record_id),))
            row = fetchone(cur)
            return _to_record(row) if row else None

    def find_for_key(
        self,
        user_id: int,
        date: str,
        session: AttendanceSession,
        *,
        include_deleted: bool = False,
    ) -> Optional[AttendanceRecord]:
        deleted_clause = "" if include_deleted else "AND deleted=0"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE user_id=%s AND attendance_date=%s AND session=%s {deleted_clause}
                ORDER BY deleted ASC, submitted_at DESC
                LIMIT 1
                """,
                (int(user_id), date, session.value),
            )
            row = fetchone(cur)
            return _to_record(row) if row else None

    def insert(self, record: AttendanceRecord) -> int:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_records(
                        user_id, jsd_number, first_name, last_name, cohort_number, attendance_date, session,
                        status, marked_by, marked_by_user, submitted_at, locked, ip_address
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        int(record.user_id),
                        record.jsd_number,
                        record.first_name,
                        record.last_name,
                        int(record.cohort_number),
                        record.date,
                        record.session.value,
                        record.status.value,
                        record.marked_by.value,
                        record.marked_by_user,
                        to_db_datetime(record.submitted_at),
                        1 if record.locked else 0,
                        record.ip_address,
                    ),
                )
                return int(cur.lastrowid)
        except IntegrityError as e:
            if is_duplicate_key(e):
                raise DuplicateKeyError("Attendance already recorded for this session") from e
            raise

    def overwrite(
        self,
        *,
        record_id: int,
        status: AttendanceStatus,
        marked_by: MarkedBy,
        marked_by_user: Optional[int],
        submitted_at: datetime,
    ) -> bool:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    UPDATE attendance_records
                    SET status=%s, marked_by=%s, marked_by_user=%s, submitted_at=%s,
                        deleted=0, deleted_at=NULL, deleted_by=NULL
                    WHERE record_id=%s
                    """,
                    (status.value, marked_by.value, marked_by_user, to_db_datetime(submitted_at), int(record_id)),
                )
                return cur.rowcount > 0
        except IntegrityError as e:
            # undeleting a row while another live row holds the same key
            if is_duplicate_key(e):
                raise DuplicateKeyError("Attendance already recorded for this session") from e
            raise

    def soft_delete(self, *, record_id: int, deleted_by: Optional[int], deleted_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET deleted=1, deleted_at=%s, deleted_by=%s
                WHERE record_id=%s
                """,
                (to_db_datetime(deleted_at), deleted_by, int(record_id)),
            )
            return cur.rowcount > 0

    def set_locked(self, *, date: str, session: AttendanceSession, cohort_number: Optional[int], locked: bool) -> int:
        clauses = ["attendance_date=%s", "session=%s"]
        params: list[object] = [1 if locked else 0, date, session.value]
        if cohort_number:
            clauses.append("cohort_number=%s")
            params.append(int(cohort_number))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE attendance_records SET locked=%s WHERE {' AND '.join(clauses)}",
                tuple(params),
            )
            return int(cur.rowcount)

    def list_records(
        self,
        record_filter: RecordFilter,
        *,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> Sequence[AttendanceRecord]:
        where, params = _where(record_filter)
        paging = ""
        if limit is not None:
            paging = "LIMIT %s OFFSET %s"
            params.extend([int(limit), int(offset)])

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE {where}
                ORDER BY attendance_date DESC, session ASC, submitted_at DESC
                {paging}
                """,
                tuple(params),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def count_records(self, record_filter: RecordFilter) -> int:
        where, params = _where(record_filter)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM attendance_records WHERE {where}", tuple(params))
            row = fetchone(cur)
            return int(row["total"]) if row else 0
