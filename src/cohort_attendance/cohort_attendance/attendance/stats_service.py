from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from ..common.datetime_utils import days_ago, now_local, today_local
from ..common.validators import require_date, require_positive_int
from ..core.constants import (
    DEFAULT_STATS_DAYS,
    DEFAULT_STATS_RANGE_DAYS,
    RED_WARNING_ABSENT_DAYS,
    YELLOW_WARNING_ABSENT_DAYS,
)
from ..core.enums import AttendanceStatus, WarningLevel
from ..core.exceptions import ValidationError
from .model import AttendanceRecord, AttendanceStats, DailyAttendanceStats, RecordFilter, UserAttendanceSummary
from .repository import AttendanceRecordRepository

_ATTENDED = {AttendanceStatus.PRESENT, AttendanceStatus.LATE, AttendanceStatus.LATE_EXCUSED}


def warning_level_for(absent_days: int) -> WarningLevel:
    if absent_days >= RED_WARNING_ABSENT_DAYS:
        return WarningLevel.RED
    if absent_days >= YELLOW_WARNING_ABSENT_DAYS:
        return WarningLevel.YELLOW
    return WarningLevel.NORMAL


def collapse_days(records: Iterable[AttendanceRecord]) -> Tuple[int, int]:
    """Return (present_days, absent_days).

    A day is absent if any session that day was ``absent``; otherwise present if any
    session was attended. Days holding only excused absences count as neither.
    """
    by_date: Dict[str, set] = {}
    for r in records:
        by_date.setdefault(r.date, set()).add(r.status)

    present_days = absent_days = 0
    for statuses in by_date.values():
        if AttendanceStatus.ABSENT in statuses:
            absent_days += 1
        elif statuses & _ATTENDED:
            present_days += 1
    return present_days, absent_days


@dataclass
class _UserBucket:
    first: AttendanceRecord
    records: List[AttendanceRecord] = field(default_factory=list)


class AttendanceStatsService:
    def __init__(self, records: AttendanceRecordRepository, *, now_fn: Callable[[], datetime] = now_local):
        self._records = records
        self._now = now_fn

    def get_stats(
        self,
        *,
        cohort_number: Optional[int] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> List[AttendanceStats]:
        """Per-student aggregate over [start_date, end_date]; cohort 0/None means every cohort."""
        now = self._now()
        end = require_date(end_date, "End date") if end_date else today_local(now)
        start = require_date(start_date, "Start date") if start_date else days_ago(DEFAULT_STATS_RANGE_DAYS, now)
        if start > end:
            raise ValidationError("Start date must not be after end date")

        records = self._records.list_records(
            RecordFilter(cohort_number=int(cohort_number) if cohort_number else None, start_date=start, end_date=end)
        )
        return self._aggregate(records)

    def get_stats_by_days(self, *, cohort_number: Optional[int] = None, days: int = DEFAULT_STATS_DAYS) -> List[AttendanceStats]:
        days = require_positive_int(days, "Days")
        now = self._now()
        return self.get_stats(cohort_number=cohort_number, start_date=days_ago(days, now), end_date=today_local(now))

    def get_daily_stats(
        self,
        *,
        cohort_number: Optional[int] = None,
        days: int = DEFAULT_STATS_DAYS,
        user_id: Optional[int] = None,
    ) -> List[DailyAttendanceStats]:
        days = require_positive_int(days, "Days")
        now = self._now()
        records = self._records.list_records(
            RecordFilter(
                cohort_number=int(cohort_number) if cohort_number else None,
                user_id=int(user_id) if user_id is not None else None,
                start_date=days_ago(days, now),
                end_date=today_local(now),
            )
        )

        per_date: Dict[str, Counter] = {}
        for r in records:
            per_date.setdefault(r.date, Counter())[r.status] += 1

        return [
            DailyAttendanceStats(
                date=d,
                present=c[AttendanceStatus.PRESENT],
                late=c[AttendanceStatus.LATE],
                absent=c[AttendanceStatus.ABSENT],
                late_excused=c[AttendanceStatus.LATE_EXCUSED],
                absent_excused=c[AttendanceStatus.ABSENT_EXCUSED],
                total=sum(c.values()),
            )
            for d, c in sorted(per_date.items())
        ]

    def get_user_status(self, *, user_id: int) -> UserAttendanceSummary:
        records = self._records.list_records(RecordFilter(user_id=int(user_id)))
        counts = Counter(r.status for r in records)
        present_days, absent_days = collapse_days(records)
        return UserAttendanceSummary(
            user_id=int(user_id),
            present=counts[AttendanceStatus.PRESENT],
            late=counts[AttendanceStatus.LATE],
            absent=counts[AttendanceStatus.ABSENT],
            late_excused=counts[AttendanceStatus.LATE_EXCUSED],
            absent_excused=counts[AttendanceStatus.ABSENT_EXCUSED],
            total_sessions=len(records),
            present_days=present_days,
            absent_days=absent_days,
            warning_level=warning_level_for(absent_days),
        )

    @staticmethod
    def _aggregate(records: Iterable[AttendanceRecord]) -> List[AttendanceStats]:
        buckets: Dict[int, _UserBucket] = {}
        for r in records:
            # records arrive newest first, so the first one carries the latest name snapshot
            bucket = buckets.setdefault(r.user_id, _UserBucket(first=r))
            bucket.records.append(r)

        stats = []
        for user_id, bucket in buckets.items():
            counts = Counter(r.status for r in bucket.records)
            present_days, absent_days = collapse_days(bucket.records)
            snap = bucket.first
            stats.append(
                AttendanceStats(
                    user_id=user_id,
                    jsd_number=snap.jsd_number,
                    first_name=snap.first_name,
                    last_name=snap.last_name,
                    cohort_number=snap.cohort_number,
                    present=counts[AttendanceStatus.PRESENT],
                    late=counts[AttendanceStatus.LATE],
                    absent=counts[AttendanceStatus.ABSENT],
                    late_excused=counts[AttendanceStatus.LATE_EXCUSED],
                    absent_excused=counts[AttendanceStatus.ABSENT_EXCUSED],
                    present_days=present_days,
                    absent_days=absent_days,
                    warning_level=warning_level_for(absent_days),
                )
            )

        stats.sort(key=lambda s: (-s.absent_days, -s.absent, s.first_name, s.last_name))
        return stats
