from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import AttendanceSession, LeaveStatus, LeaveType


@dataclass(frozen=True)
class LeaveRequest:
    """Domain entity: a student's request to be excused for a day or session.

    Name, JSD number and cohort are snapshotted from the user directory on creation.
    """

    leave_id: int
    user_id: int
    jsd_number: Optional[str]
    first_name: str
    last_name: str
    cohort_number: int
    leave_type: LeaveType
    date: str
    session: Optional[AttendanceSession]
    reason: str
    status: LeaveStatus
    created_at: datetime
    created_by: Optional[str] = None
    is_manual_entry: bool = False
    reviewed_by: Optional[int] = None
    reviewed_by_name: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    review_notes: Optional[str] = None


@dataclass(frozen=True)
class LeaveFilter:
    cohort_number: Optional[int] = None
    status: Optional[LeaveStatus] = None
    from_date: Optional[str] = None
    to_date: Optional[str] = None
    user_id: Optional[int] = None
