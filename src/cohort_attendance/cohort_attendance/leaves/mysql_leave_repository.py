from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..common.datetime_utils import format_date, from_db_datetime, to_db_datetime
from ..core.enums import AttendanceSession, LeaveStatus, LeaveType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import LeaveFilter, LeaveRequest
from .repository import LeaveRequestRepository

_COLUMNS = (
    "leave_id, user_id, jsd_number, first_name, last_name, cohort_number, leave_type, leave_date, session, "
    "reason, status, created_at, created_by, is_manual_entry, reviewed_by, reviewed_by_name, reviewed_at, review_notes"
)


def _to_leave(r: dict) -> LeaveRequest:
    leave_date = r["leave_date"]
    return LeaveRequest(
        leave_id=int(r["leave_id"]),
        user_id=int(r["user_id"]),
        jsd_number=r.get("jsd_number"),
        first_name=r["first_name"],
        last_name=r["last_name"],
        cohort_number=int(r["cohort_number"]),
        leave_type=LeaveType(r["leave_type"]),
        date=format_date(leave_date) if isinstance(leave_date, date) else str(leave_date),
        session=AttendanceSession(r["session"]) if r.get("session") else None,
        reason=r.get("reason") or "",
        status=LeaveStatus(r["status"]),
        created_at=from_db_datetime(r["created_at"]),
        created_by=r.get("created_by"),
        is_manual_entry=bool(r.get("is_manual_entry")),
        reviewed_by=int(r["reviewed_by"]) if r.get("reviewed_by") is not None else None,
        reviewed_by_name=r.get("reviewed_by_name"),
        reviewed_at=from_db_datetime(r.get("reviewed_at")),
        review_notes=r.get("review_notes"),
    )


class MySQLLeaveRequestRepository(LeaveRequestRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def insert(self, leave: LeaveRequest) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leave_requests(
                    user_id, jsd_number, first_name, last_name, cohort_number, leave_type, leave_date, session,
                    reason, status, created_at, created_by, is_manual_entry,
                    reviewed_by, reviewed_by_name, reviewed_at, review_notes
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(leave.user_id),
                    leave.jsd_number,
                    leave.first_name,
                    leave.last_name,
                    int(leave.cohort_number),
                    leave.leave_type.value,
                    leave.date,
                    leave.session.value if leave.session else None,
                    leave.reason,
                    leave.status.value,
                    to_db_datetime(leave.created_at),
                    leave.created_by,
                    1 if leave.is_manual_entry else 0,
                    leave.reviewed_by,
                    leave.reviewed_by_name,
                    to_db_datetime(leave.reviewed_at),
                    leave.review_notes,
                ),
            )
            return int(cur.lastrowid)

    def get_by_id(self, leave_id: int) -> Optional[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM leave_requests WHERE leave_id=%s", (int(leave_id),))
            row = fetchone(cur)
            return _to_leave(row) if row else None

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_requests
                SET status=%s, reviewed_by=%s, reviewed_by_name=%s, review_notes=%s, reviewed_at=%s
                WHERE leave_id=%s AND status=%s
                """,
                (
                    status.value,
                    int(reviewed_by),
                    reviewed_by_name,
                    review_notes,
                    to_db_datetime(reviewed_at),
                    int(leave_id),
                    LeaveStatus.PENDING.value,
                ),
            )
            return cur.rowcount > 0

    def list_requests(self, leave_filter: LeaveFilter) -> Sequence[LeaveRequest]:
        clauses = ["1=1"]
        params: list[object] = []

        if leave_filter.user_id is not None:
            clauses.append("user_id=%s")
            params.append(int(leave_filter.user_id))
        if leave_filter.cohort_number:
            clauses.append("cohort_number=%s")
            params.append(int(leave_filter.cohort_number))
        if leave_filter.status is not None:
            clauses.append("status=%s")
            params.append(leave_filter.status.value)
        if leave_filter.from_date:
            clauses.append("leave_date>=%s")
            params.append(leave_filter.from_date)
        if leave_filter.to_date:
            clauses.append("leave_date<=%s")
            params.append(leave_filter.to_date)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM leave_requests
                WHERE {' AND '.join(clauses)}
                ORDER BY created_at DESC, leave_id DESC
                """,
                tuple(params),
            )
            return [_to_leave(r) for r in fetchall(cur)]
