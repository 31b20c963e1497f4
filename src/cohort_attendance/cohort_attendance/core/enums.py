from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User role used for access control."""

    ADMIN = "admin"
    STUDENT = "student"


class AttendanceSession(str, Enum):
    MORNING = "morning"
    AFTERNOON = "afternoon"


class AttendanceStatus(str, Enum):
    """Final attendance outcome of one student in one session."""

    PRESENT = "present"
    LATE = "late"
    ABSENT = "absent"
    LATE_EXCUSED = "late_excused"
    ABSENT_EXCUSED = "absent_excused"


class MarkedBy(str, Enum):
    SELF = "self"
    ADMIN = "admin"


class LeaveType(str, Enum):
    LATE = "late"
    HALF_DAY = "half_day"
    FULL_DAY = "full_day"


class LeaveStatus(str, Enum):
    """Review workflow state of a leave request."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class WarningLevel(str, Enum):
    NORMAL = "normal"
    YELLOW = "yellow"
    RED = "red"
