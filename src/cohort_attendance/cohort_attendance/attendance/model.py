from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from ..core.constants import NO_STATUS
from ..core.enums import AttendanceSession, AttendanceStatus, MarkedBy, WarningLevel


@dataclass(frozen=True)
class AttendanceCode:
    """Domain entity: a short-lived code students redeem for one session."""

    code_id: int
    code: str
    cohort_number: int
    session: AttendanceSession
    generated_at: datetime
    expires_at: datetime
    is_active: bool
    generated_by: Optional[int] = None

    def is_usable(self, now: datetime) -> bool:
        return self.is_active and self.expires_at > now


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: the attendance outcome of one student in one session.

    Name, JSD number and cohort are a snapshot taken when the record was written.
    """

    record_id: int
    user_id: int
    jsd_number: Optional[str]
    first_name: str
    last_name: str
    cohort_number: int
    date: str
    session: AttendanceSession
    status: AttendanceStatus
    marked_by: MarkedBy
    submitted_at: datetime
    marked_by_user: Optional[int] = None
    locked: bool = False
    ip_address: Optional[str] = None
    deleted: bool = False
    deleted_at: Optional[datetime] = None
    deleted_by: Optional[int] = None


@dataclass(frozen=True)
class RecordFilter:
    """Query over non-deleted records; ``None`` fields do not filter."""

    cohort_number: Optional[int] = None
    date: Optional[str] = None
    session: Optional[AttendanceSession] = None
    user_id: Optional[int] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None


@dataclass(frozen=True)
class SessionLock:
    date: str
    session: AttendanceSession
    cohort_number: int
    locked: bool
    updated_at: datetime
    updated_by: Optional[int] = None


@dataclass(frozen=True)
class StudentAttendanceRow:
    user_id: int
    jsd_number: Optional[str]
    first_name: str
    last_name: str
    morning: str = NO_STATUS
    afternoon: str = NO_STATUS
    morning_record_id: Optional[int] = None
    afternoon_record_id: Optional[int] = None


@dataclass(frozen=True)
class AttendanceOverview:
    """Read-model: daily roster of a cohort."""

    date: str
    session: Optional[AttendanceSession]
    # session records found, and distinct students they belong to
    record_count: int
    student_count: int
    students: List[StudentAttendanceRow] = field(default_factory=list)
    code: Optional[str] = None
    expires_at: Optional[datetime] = None


@dataclass(frozen=True)
class AttendanceStats:
    """Read-model: per-student aggregate over a date range."""

    user_id: int
    jsd_number: Optional[str]
    first_name: str
    last_name: str
    cohort_number: int
    present: int = 0
    late: int = 0
    absent: int = 0
    late_excused: int = 0
    absent_excused: int = 0
    present_days: int = 0
    absent_days: int = 0
    warning_level: WarningLevel = WarningLevel.NORMAL


@dataclass(frozen=True)
class DailyAttendanceStats:
    date: str
    present: int = 0
    late: int = 0
    absent: int = 0
    late_excused: int = 0
    absent_excused: int = 0
    total: int = 0


@dataclass(frozen=True)
class UserAttendanceSummary:
    """Read-model: one student's lifetime counts, used by the student dashboard."""

    user_id: int
    present: int = 0
    late: int = 0
    absent: int = 0
    late_excused: int = 0
    absent_excused: int = 0
    total_sessions: int = 0
    present_days: int = 0
    absent_days: int = 0
    warning_level: WarningLevel = WarningLevel.NORMAL
