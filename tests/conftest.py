from __future__ import annotations

import os
from dataclasses import replace
from datetime import datetime
from typing import Optional

import pytest

os.environ.setdefault("APP_ENV", "testing")

from src.cohort_attendance.cohort_attendance.attendance.model import AttendanceCode, AttendanceRecord, SessionLock
from src.cohort_attendance.cohort_attendance.common.datetime_utils import APP_TZ
from src.cohort_attendance.cohort_attendance.container import build_services
from src.cohort_attendance.cohort_attendance.core.enums import AttendanceSession, LeaveStatus, Role
from src.cohort_attendance.cohort_attendance.core.exceptions import DuplicateKeyError
from src.cohort_attendance.cohort_attendance.users.model import User

_SESSION_ORDER = {AttendanceSession.MORNING: 0, AttendanceSession.AFTERNOON: 1}


class FixedClock:
    """Mutable 'now' shared by every service under test."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def set(self, *args) -> None:
        self.now = datetime(*args, tzinfo=APP_TZ)


class InMemoryUsers:
    def __init__(self, users):
        self.users_by_id = {u.user_id: u for u in users}

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self.users_by_id.get(int(user_id))

    def list_by_cohort(self, cohort_number: int, *, limit: int = 500):
        rows = [
            u
            for u in self.users_by_id.values()
            if u.cohort_number == cohort_number and u.role == Role.STUDENT and u.is_active
        ]
        rows.sort(key=lambda u: (u.first_name, u.last_name))
        return rows[:limit]


class InMemoryCodes:
    def __init__(self):
        self.codes: dict[int, AttendanceCode] = {}
        self._next_id = 1

    def add(self, code: AttendanceCode) -> AttendanceCode:
        code = replace(code, code_id=self._next_id)
        self._next_id += 1
        self.codes[code.code_id] = code
        return code

    def replace_active_code(self, *, cohort_number, session, code, generated_at, expires_at, generated_by):
        for cid, c in list(self.codes.items()):
            if c.cohort_number == cohort_number and c.session == session and c.is_active:
                self.codes[cid] = replace(c, is_active=False)
        return self.add(
            AttendanceCode(
                code_id=0,
                code=code,
                cohort_number=cohort_number,
                session=session,
                generated_at=generated_at,
                expires_at=expires_at,
                is_active=True,
                generated_by=generated_by,
            )
        )

    def find_active(self, cohort_number, session, *, now):
        rows = [
            c
            for c in self.codes.values()
            if c.cohort_number == cohort_number and c.session == session and c.is_usable(now)
        ]
        return max(rows, key=lambda c: c.generated_at, default=None)

    def find_active_by_code(self, code, *, now):
        rows = [c for c in self.codes.values() if c.code == code and c.is_usable(now)]
        return max(rows, key=lambda c: c.generated_at, default=None)

    def find_latest(self, cohort_number, session):
        rows = [c for c in self.codes.values() if c.cohort_number == cohort_number and c.session == session]
        return max(rows, key=lambda c: (c.generated_at, c.code_id), default=None)


class InMemoryRecords:
    """Mirrors the MySQL unique key on (user, date, session) among live rows."""

    def __init__(self):
        self.records: dict[int, AttendanceRecord] = {}
        self._next_id = 1

    def _live(self, user_id, date, session, *, exclude=None):
        return [
            r
            for r in self.records.values()
            if r.user_id == user_id and r.date == date and r.session == session and not r.deleted and r.record_id != exclude
        ]

    def get_by_id(self, record_id):
        return self.records.get(int(record_id))

    def find_for_key(self, user_id, date, session, *, include_deleted=False):
        rows = [
            r
            for r in self.records.values()
            if r.user_id == user_id and r.date == date and r.session == session and (include_deleted or not r.deleted)
        ]
        rows.sort(key=lambda r: (r.deleted, -r.submitted_at.timestamp()))
        return rows[0] if rows else None

    def insert(self, record):
        if not record.deleted and self._live(record.user_id, record.date, record.session):
            raise DuplicateKeyError()
        rid = self._next_id
        self._next_id += 1
        self.records[rid] = replace(record, record_id=rid)
        return rid

    def overwrite(self, *, record_id, status, marked_by, marked_by_user, submitted_at):
        r = self.records.get(int(record_id))
        if not r:
            return False
        if self._live(r.user_id, r.date, r.session, exclude=r.record_id):
            raise DuplicateKeyError()
        self.records[r.record_id] = replace(
            r,
            status=status,
            marked_by=marked_by,
            marked_by_user=marked_by_user,
            submitted_at=submitted_at,
            deleted=False,
            deleted_at=None,
            deleted_by=None,
        )
        return True

    def soft_delete(self, *, record_id, deleted_by, deleted_at):
        r = self.records.get(int(record_id))
        if not r:
            return False
        self.records[r.record_id] = replace(r, deleted=True, deleted_at=deleted_at, deleted_by=deleted_by)
        return True

    def set_locked(self, *, date, session, cohort_number, locked):
        count = 0
        for rid, r in list(self.records.items()):
            if r.date == date and r.session == session and (not cohort_number or r.cohort_number == cohort_number):
                self.records[rid] = replace(r, locked=locked)
                count += 1
        return count

    def _matching(self, f):
        rows = [
            r
            for r in self.records.values()
            if not r.deleted
            and (f.cohort_number is None or r.cohort_number == f.cohort_number)
            and (f.user_id is None or r.user_id == f.user_id)
            and (f.date is None or r.date == f.date)
            and (f.session is None or r.session == f.session)
            and (f.start_date is None or r.date >= f.start_date)
            and (f.end_date is None or r.date <= f.end_date)
        ]
        rows.sort(key=lambda r: -r.submitted_at.timestamp())
        rows.sort(key=lambda r: _SESSION_ORDER[r.session])
        rows.sort(key=lambda r: r.date, reverse=True)
        return rows

    def list_records(self, record_filter, *, limit=None, offset=0):
        rows = self._matching(record_filter)
        if limit is None:
            return rows[offset:]
        return rows[offset : offset + limit]

    def count_records(self, record_filter):
        return len(self._matching(record_filter))

    def live(self):
        return [r for r in self.records.values() if not r.deleted]


class InMemoryLocks:
    def __init__(self):
        self.locks: dict[tuple, SessionLock] = {}

    def upsert(self, lock):
        self.locks[(lock.date, lock.session, lock.cohort_number)] = lock

    def find(self, *, date, session, cohort_number):
        return self.locks.get((date, session, cohort_number))

    def set_all(self, *, date, session, locked, updated_at, updated_by):
        keys = [k for k in self.locks if k[0] == date and k[1] == session]
        for key in keys:
            self.locks[key] = replace(self.locks[key], locked=locked, updated_at=updated_at, updated_by=updated_by)
        return len(keys)


class InMemoryLeaves:
    def __init__(self):
        self.leaves = {}
        self._next_id = 1

    def insert(self, leave):
        lid = self._next_id
        self._next_id += 1
        self.leaves[lid] = replace(leave, leave_id=lid)
        return lid

    def get_by_id(self, leave_id):
        return self.leaves.get(int(leave_id))

    def review(self, *, leave_id, status, reviewed_by, reviewed_by_name, review_notes, reviewed_at):
        leave = self.leaves.get(int(leave_id))
        if not leave or leave.status != LeaveStatus.PENDING:
            return False
        self.leaves[leave.leave_id] = replace(
            leave,
            status=status,
            reviewed_by=reviewed_by,
            reviewed_by_name=reviewed_by_name,
            review_notes=review_notes,
            reviewed_at=reviewed_at,
        )
        return True

    def list_requests(self, f):
        rows = [
            l
            for l in self.leaves.values()
            if (f.user_id is None or l.user_id == f.user_id)
            and (not f.cohort_number or l.cohort_number == f.cohort_number)
            and (f.status is None or l.status == f.status)
            and (not f.from_date or l.date >= f.from_date)
            and (not f.to_date or l.date <= f.to_date)
        ]
        rows.sort(key=lambda l: (l.created_at, l.leave_id), reverse=True)
        return rows


ADMIN_ID = 1


@pytest.fixture
def fixed_now():
    # Monday 2026-03-02, five minutes after the morning session opens
    return FixedClock(datetime(2026, 3, 2, 9, 5, tzinfo=APP_TZ))


@pytest.fixture
def users():
    return InMemoryUsers(
        [
            User(user_id=ADMIN_ID, first_name="Admin", last_name="Office", jsd_number=None, cohort_number=0, role=Role.ADMIN),
            User(user_id=2, first_name="Anong", last_name="Srisuk", jsd_number="JSD9-001", cohort_number=9, role=Role.STUDENT),
            User(user_id=3, first_name="Boonmee", last_name="Chaiyo", jsd_number="JSD9-002", cohort_number=9, role=Role.STUDENT),
            User(user_id=4, first_name="Chanida", last_name="Wongsa", jsd_number="JSD9-003", cohort_number=9, role=Role.STUDENT),
            User(user_id=5, first_name="Danai", last_name="Kittipong", jsd_number="JSD10-001", cohort_number=10, role=Role.STUDENT),
        ]
    )


@pytest.fixture
def codes_repo():
    return InMemoryCodes()


@pytest.fixture
def records_repo():
    return InMemoryRecords()


@pytest.fixture
def locks_repo():
    return InMemoryLocks()


@pytest.fixture
def leaves_repo():
    return InMemoryLeaves()


@pytest.fixture
def container(users, codes_repo, records_repo, locks_repo, leaves_repo, fixed_now):
    return build_services(
        users_repo=users,
        codes_repo=codes_repo,
        records_repo=records_repo,
        locks_repo=locks_repo,
        leaves_repo=leaves_repo,
        now_fn=fixed_now,
    )


@pytest.fixture
def app(container):
    from src.cohort_attendance.cohort_attendance.main import create_app

    return create_app(container)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def login_as(client):
    def _login(user_id: int, role: Role = Role.STUDENT, name: str = "Tester"):
        with client.session_transaction() as sess:
            sess["user_id"] = user_id
            sess["role"] = role.value
            sess["name"] = name
        return client

    return _login
