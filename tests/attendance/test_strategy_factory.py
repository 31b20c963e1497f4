from datetime import date, timedelta

import pytest

from src.cohort_attendance.cohort_attendance.attendance.factory import AttendanceStrategyFactory
from src.cohort_attendance.cohort_attendance.attendance.strategies.absent_strategy import AbsentStrategy
from src.cohort_attendance.cohort_attendance.attendance.strategies.late_strategy import LateStrategy
from src.cohort_attendance.cohort_attendance.attendance.strategies.present_strategy import PresentStrategy
from src.cohort_attendance.cohort_attendance.common.datetime_utils import session_start
from src.cohort_attendance.cohort_attendance.core.enums import AttendanceSession, AttendanceStatus

START = session_start(date(2026, 3, 2), AttendanceSession.MORNING)


@pytest.mark.parametrize(
    "offset, expected",
    [
        (timedelta(minutes=-10), PresentStrategy),
        (timedelta(0), PresentStrategy),
        (timedelta(minutes=15), PresentStrategy),
        (timedelta(minutes=15, seconds=1), LateStrategy),
        (timedelta(minutes=90), LateStrategy),
        (timedelta(minutes=90, seconds=1), AbsentStrategy),
        (timedelta(hours=4), AbsentStrategy),
    ],
)
def test_factory_picks_strategy_by_elapsed_time(offset, expected):
    factory = AttendanceStrategyFactory()
    strategy = factory.for_submission(now=START + offset, session_start=START)

    assert isinstance(strategy, expected)


def test_afternoon_session_starts_at_one_pm():
    start = session_start(date(2026, 3, 2), AttendanceSession.AFTERNOON)

    assert (start.hour, start.minute) == (13, 0)
    assert start.utcoffset() == timedelta(hours=7)


def test_late_decision_notes_minutes_after_start():
    decision = LateStrategy().decide(now=START + timedelta(minutes=42), session_start=START)

    assert decision.status == AttendanceStatus.LATE
    assert decision.note == "42 minutes after session start"


def test_window_sizes_are_configurable():
    factory = AttendanceStrategyFactory(present_minutes=5, late_minutes=30)
    now = START + timedelta(minutes=6)

    assert isinstance(factory.for_submission(now=now, session_start=START), LateStrategy)
