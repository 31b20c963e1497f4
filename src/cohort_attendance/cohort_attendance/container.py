from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from .attendance.code_service import AttendanceCodeService
from .attendance.factory import AttendanceStrategyFactory
from .attendance.lock_service import SessionLockService
from .attendance.marking_service import AttendanceMarkingService
from .attendance.mysql_attendance_repository import MySQLAttendanceRecordRepository
from .attendance.mysql_code_repository import MySQLAttendanceCodeRepository
from .attendance.mysql_lock_repository import MySQLSessionLockRepository
from .attendance.overview_service import AttendanceOverviewService
from .attendance.repository import AttendanceCodeRepository, AttendanceRecordRepository, SessionLockRepository
from .attendance.stats_service import AttendanceStatsService
from .common.datetime_utils import now_local
from .core.constants import DEFAULT_CODE_VALIDITY_MINUTES
from .database.connection import DBConfig, DatabaseConnection
from .leaves.mysql_leave_repository import MySQLLeaveRequestRepository
from .leaves.reconciler import LeaveAttendanceReconciler
from .leaves.repository import LeaveRequestRepository
from .leaves.service import LeaveService
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository


@dataclass(frozen=True)
class Container:
    users_repo: UserRepository
    codes_repo: AttendanceCodeRepository
    records_repo: AttendanceRecordRepository
    locks_repo: SessionLockRepository
    leaves_repo: LeaveRequestRepository

    code_service: AttendanceCodeService
    marking_service: AttendanceMarkingService
    lock_service: SessionLockService
    overview_service: AttendanceOverviewService
    stats_service: AttendanceStatsService
    leave_service: LeaveService


def build_services(
    *,
    users_repo: UserRepository,
    codes_repo: AttendanceCodeRepository,
    records_repo: AttendanceRecordRepository,
    locks_repo: SessionLockRepository,
    leaves_repo: LeaveRequestRepository,
    validity_minutes: int = DEFAULT_CODE_VALIDITY_MINUTES,
    now_fn: Callable[[], datetime] = now_local,
) -> Container:
    """Wire every service from the given repositories (tests pass in-memory ones)."""
    lock_service = SessionLockService(locks_repo, records_repo, now_fn=now_fn)
    marking_service = AttendanceMarkingService(records_repo, users_repo, now_fn=now_fn)
    code_service = AttendanceCodeService(
        codes_repo,
        records_repo,
        users_repo,
        lock_service,
        strategy_factory=AttendanceStrategyFactory(),
        validity_minutes=validity_minutes,
        now_fn=now_fn,
    )
    overview_service = AttendanceOverviewService(records_repo, codes_repo, users_repo, now_fn=now_fn)
    stats_service = AttendanceStatsService(records_repo, now_fn=now_fn)
    leave_service = LeaveService(
        leaves_repo,
        users_repo,
        LeaveAttendanceReconciler(marking_service),
        now_fn=now_fn,
    )

    return Container(
        users_repo=users_repo,
        codes_repo=codes_repo,
        records_repo=records_repo,
        locks_repo=locks_repo,
        leaves_repo=leaves_repo,
        code_service=code_service,
        marking_service=marking_service,
        lock_service=lock_service,
        overview_service=overview_service,
        stats_service=stats_service,
        leave_service=leave_service,
    )


def build_container(
    *,
    db_config: dict,
    connect_timeout: int = 10,
    query_timeout: int = 5,
    validity_minutes: int = DEFAULT_CODE_VALIDITY_MINUTES,
) -> Container:
    conn = DatabaseConnection(DBConfig.from_dict(db_config, connect_timeout=connect_timeout, query_timeout=query_timeout))

    return build_services(
        users_repo=MySQLUserRepository(conn),
        codes_repo=MySQLAttendanceCodeRepository(conn),
        records_repo=MySQLAttendanceRecordRepository(conn),
        locks_repo=MySQLSessionLockRepository(conn),
        leaves_repo=MySQLLeaveRequestRepository(conn),
        validity_minutes=validity_minutes,
    )
