from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from ..core.constants import AFTERNOON_START, MORNING_START, TIMEZONE_NAME
from ..core.enums import AttendanceSession

APP_TZ = ZoneInfo(TIMEZONE_NAME)
DATE_FORMAT = "%Y-%m-%d"


def format_date(value: date) -> str:
    return value.strftime(DATE_FORMAT)


def now_local() -> datetime:
    """Current time in the application timezone.

    Note: Wrapped so tests can patch/mock easier.
    """
    return datetime.now(APP_TZ)


def today_local(now: Optional[datetime] = None) -> str:
    """Civil date (YYYY-MM-DD) in the application timezone."""
    now = now or now_local()
    return format_date(now.astimezone(APP_TZ).date())


def days_ago(days: int, now: Optional[datetime] = None) -> str:
    now = now or now_local()
    return format_date((now.astimezone(APP_TZ) - timedelta(days=int(days))).date())


def session_start(day: date, session: AttendanceSession) -> datetime:
    start = MORNING_START if session == AttendanceSession.MORNING else AFTERNOON_START
    return datetime.combine(day, start, tzinfo=APP_TZ)


def to_db_datetime(value: Optional[datetime]) -> Optional[datetime]:
    """Aware datetime -> naive UTC for MySQL DATETIME columns."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=APP_TZ)
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def from_db_datetime(value: Optional[datetime]) -> Optional[datetime]:
    """Naive UTC from MySQL -> aware datetime in the application timezone."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(APP_TZ)
