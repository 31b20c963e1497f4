from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import User
from .repository import UserRepository

_COLUMNS = "user_id, first_name, last_name, jsd_number, cohort_number, role, email, is_active"


def _to_user(row: dict) -> User:
    return User(
        user_id=int(row["user_id"]),
        first_name=row["first_name"],
        last_name=row["last_name"],
        jsd_number=row.get("jsd_number"),
        cohort_number=int(row.get("cohort_number") or 0),
        role=Role(row["role"]),
        email=row.get("email") or "",
        is_active=bool(row.get("is_active", True)),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE user_id=%s", (int(user_id),))
            row = fetchone(cur)
            return _to_user(row) if row else None

    def list_by_cohort(self, cohort_number: int, *, limit: int = 500) -> Sequence[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM users
                WHERE cohort_number=%s AND role=%s AND is_active=1
                ORDER BY first_name ASC, last_name ASC
                LIMIT %s
                """,
                (int(cohort_number), Role.STUDENT.value, int(limit)),
            )
            return [_to_user(r) for r in fetchall(cur)]
