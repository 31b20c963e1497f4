from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from ..core.enums import AttendanceSession, AttendanceStatus, LeaveType
from ..core.exceptions import InvalidLeaveTypeError, ValidationError
from .datetime_utils import DATE_FORMAT


def require_non_empty(value: Optional[str], field_name: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def require_positive_int(value: Any, field_name: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a positive number")
    if number <= 0:
        raise ValidationError(f"{field_name} must be a positive number")
    return number


def require_date(value: Optional[str], field_name: str = "Date") -> str:
    """Validate a YYYY-MM-DD string and return it unchanged."""
    value = require_non_empty(value, field_name)
    try:
        datetime.strptime(value, DATE_FORMAT)
    except ValueError:
        raise ValidationError(f"{field_name} must be in YYYY-MM-DD format")
    return value


def parse_session(value: Optional[str]) -> AttendanceSession:
    try:
        return AttendanceSession((value or "").strip().lower())
    except ValueError:
        raise ValidationError("Invalid session. Use 'morning' or 'afternoon'")


def parse_optional_session(value: Optional[str]) -> Optional[AttendanceSession]:
    if not value:
        return None
    return parse_session(value)


def parse_status(value: Optional[str]) -> AttendanceStatus:
    try:
        return AttendanceStatus((value or "").strip().lower())
    except ValueError:
        raise ValidationError("Invalid status")


def parse_leave_type(value: Optional[str]) -> LeaveType:
    try:
        return LeaveType((value or "").strip().lower())
    except ValueError:
        raise InvalidLeaveTypeError()
