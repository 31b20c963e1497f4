from __future__ import annotations

import re
from datetime import timedelta

import pytest

from src.cohort_attendance.cohort_attendance.attendance.code_service import parse_code
from src.cohort_attendance.cohort_attendance.core.enums import AttendanceSession, AttendanceStatus, MarkedBy
from src.cohort_attendance.cohort_attendance.core.exceptions import (
    AlreadySubmittedError,
    CodeExpiredError,
    CodeForWrongCohortError,
    InvalidCodeError,
    NoActiveCodeError,
    SessionLockedError,
    StudentNotFoundError,
    ValidationError,
)

MORNING = AttendanceSession.MORNING
AFTERNOON = AttendanceSession.AFTERNOON
CODE_PATTERN = re.compile(r"^MORNING-[ABCDEFGHJKLMNPQRSTUVWXYZ23456789]{4}$")


def put_code(codes_repo, clock, code, *, cohort=9, session=MORNING):
    return codes_repo.replace_active_code(
        cohort_number=cohort,
        session=session,
        code=code,
        generated_at=clock.now,
        expires_at=clock.now + timedelta(hours=2),
        generated_by=1,
    )


def test_generate_code_format_and_expiry(container, fixed_now):
    code = container.code_service.generate_code(cohort_number=9, session=MORNING, generated_by=1)

    assert CODE_PATTERN.match(code.code)
    assert code.is_active
    assert code.generated_at == fixed_now.now
    assert code.expires_at - code.generated_at == timedelta(minutes=120)
    assert code.generated_by == 1


def test_generate_code_rejects_non_positive_cohort(container):
    with pytest.raises(ValidationError):
        container.code_service.generate_code(cohort_number=0, session=MORNING)


def test_generate_code_deactivates_only_same_cohort_and_session(container, codes_repo):
    service = container.code_service
    first = service.generate_code(cohort_number=9, session=MORNING)
    afternoon = service.generate_code(cohort_number=9, session=AFTERNOON)
    other_cohort = service.generate_code(cohort_number=10, session=MORNING)
    second = service.generate_code(cohort_number=9, session=MORNING)

    active = {c.code_id for c in codes_repo.codes.values() if c.is_active}
    assert first.code_id not in active
    assert {second.code_id, afternoon.code_id, other_cohort.code_id} <= active
    assert service.get_active_code(cohort_number=9, session=MORNING).code_id == second.code_id


def test_get_active_code_hides_expired_code(container, fixed_now):
    service = container.code_service
    service.generate_code(cohort_number=9, session=MORNING)

    fixed_now.now = fixed_now.now + timedelta(minutes=120)

    assert service.get_active_code(cohort_number=9, session=MORNING) is None


def test_get_active_code_absent_is_not_an_error(container):
    assert container.code_service.get_active_code(cohort_number=9, session=AFTERNOON) is None


@pytest.mark.parametrize("raw", ["HELLO", "EVENING-ABCD", "MORNING-", "-ABCD", ""])
def test_parse_code_rejects_malformed_codes(raw):
    with pytest.raises(InvalidCodeError):
        parse_code(raw)


def test_parse_code_is_case_insensitive():
    assert parse_code(" morning-ab2c ") == ("MORNING-AB2C", MORNING)


def test_end_to_end_submit_then_duplicate_then_admin_override(container, fixed_now):
    code = container.code_service.generate_code(cohort_number=9, session=MORNING)
    fixed_now.set(2026, 3, 2, 9, 12)

    record = container.code_service.submit_attendance(
        user_id=2, code=code.code.lower(), cohort_number=9, ip_address="10.0.0.7"
    )

    assert record.record_id > 0
    assert record.status == AttendanceStatus.PRESENT
    assert record.marked_by == MarkedBy.SELF
    assert record.date == "2026-03-02"
    assert record.ip_address == "10.0.0.7"
    assert (record.first_name, record.jsd_number, record.cohort_number) == ("Anong", "JSD9-001", 9)
    assert record.locked is False

    with pytest.raises(AlreadySubmittedError):
        container.code_service.submit_attendance(user_id=2, code=code.code, cohort_number=9)

    updated = container.marking_service.manual_mark(
        user_id=2, date="2026-03-02", session=MORNING, status=AttendanceStatus.LATE, marked_by=1
    )
    assert updated.record_id == record.record_id
    assert (updated.status, updated.marked_by, updated.marked_by_user) == (AttendanceStatus.LATE, MarkedBy.ADMIN, 1)


@pytest.mark.parametrize(
    "clock, expected",
    [
        ((2026, 3, 2, 9, 15, 0), AttendanceStatus.PRESENT),
        ((2026, 3, 2, 9, 15, 1), AttendanceStatus.LATE),
        ((2026, 3, 2, 10, 30, 0), AttendanceStatus.LATE),
        ((2026, 3, 2, 10, 30, 1), AttendanceStatus.ABSENT),
    ],
)
def test_submission_classification_boundaries(container, fixed_now, clock, expected):
    code = container.code_service.generate_code(cohort_number=9, session=MORNING)
    fixed_now.set(*clock)

    record = container.code_service.submit_attendance(user_id=3, code=code.code, cohort_number=9)

    assert record.status == expected


def test_submission_uses_bangkok_civil_date(container, fixed_now):
    # 00:30 Bangkok is still the previous day in UTC
    fixed_now.set(2026, 3, 3, 0, 30)
    code = container.code_service.generate_code(cohort_number=9, session=MORNING)

    record = container.code_service.submit_attendance(user_id=2, code=code.code, cohort_number=9)

    assert record.date == "2026-03-03"
    assert record.status == AttendanceStatus.PRESENT


def test_submit_without_any_code_is_no_active_code(container):
    with pytest.raises(NoActiveCodeError):
        container.code_service.submit_attendance(user_id=2, code="MORNING-ABCD", cohort_number=9)


def test_submit_superseded_code_is_invalid(container, codes_repo, fixed_now):
    put_code(codes_repo, fixed_now, "MORNING-AAAA")
    put_code(codes_repo, fixed_now, "MORNING-BBBB")

    with pytest.raises(InvalidCodeError):
        container.code_service.submit_attendance(user_id=2, code="MORNING-AAAA", cohort_number=9)


def test_submit_wrong_suffix_is_invalid(container, codes_repo, fixed_now):
    put_code(codes_repo, fixed_now, "MORNING-AAAA")

    with pytest.raises(InvalidCodeError):
        container.code_service.submit_attendance(user_id=2, code="MORNING-2222", cohort_number=9)


def test_submit_expired_code(container, fixed_now):
    code = container.code_service.generate_code(cohort_number=9, session=MORNING)
    fixed_now.now = code.expires_at

    with pytest.raises(CodeExpiredError):
        container.code_service.submit_attendance(user_id=2, code=code.code, cohort_number=9)


def test_code_for_other_cohort_is_rejected_even_when_user_matches_submitted_cohort(container):
    code = container.code_service.generate_code(cohort_number=9, session=MORNING)

    # Danai is in cohort 10 and submits cohort 9's code claiming cohort 10
    with pytest.raises(CodeForWrongCohortError):
        container.code_service.submit_attendance(user_id=5, code=code.code, cohort_number=10)


def test_code_for_other_cohort_rejected_when_submitted_cohort_has_its_own_code(container, codes_repo, fixed_now):
    put_code(codes_repo, fixed_now, "MORNING-NINE", cohort=9)
    put_code(codes_repo, fixed_now, "MORNING-TENX", cohort=10)

    with pytest.raises(CodeForWrongCohortError):
        container.code_service.submit_attendance(user_id=5, code="MORNING-NINE", cohort_number=10)


def test_user_outside_submitted_cohort_is_rejected(container):
    code = container.code_service.generate_code(cohort_number=9, session=MORNING)

    with pytest.raises(CodeForWrongCohortError):
        container.code_service.submit_attendance(user_id=5, code=code.code, cohort_number=9)


def test_unknown_user_is_student_not_found(container):
    code = container.code_service.generate_code(cohort_number=9, session=MORNING)

    with pytest.raises(StudentNotFoundError):
        container.code_service.submit_attendance(user_id=99, code=code.code, cohort_number=9)


def test_validation_runs_before_store_access(container):
    with pytest.raises(ValidationError):
        container.code_service.submit_attendance(user_id=2, code="   ", cohort_number=9)
    with pytest.raises(ValidationError):
        container.code_service.submit_attendance(user_id=2, code="MORNING-ABCD", cohort_number=0)


@pytest.mark.parametrize("lock_cohort", [9, 0])
def test_locked_session_blocks_submission(container, lock_cohort):
    code = container.code_service.generate_code(cohort_number=9, session=MORNING)
    container.lock_service.lock_session(date="2026-03-02", session=MORNING, cohort_number=lock_cohort, locked=True)

    with pytest.raises(SessionLockedError):
        container.code_service.submit_attendance(user_id=2, code=code.code, cohort_number=9)


def test_lock_for_other_cohort_does_not_block(container):
    code = container.code_service.generate_code(cohort_number=9, session=MORNING)
    container.lock_service.lock_session(date="2026-03-02", session=MORNING, cohort_number=10, locked=True)

    record = container.code_service.submit_attendance(user_id=2, code=code.code, cohort_number=9)

    assert record.status == AttendanceStatus.PRESENT


def test_concurrent_duplicate_insert_reports_already_submitted(container, records_repo, monkeypatch):
    code = container.code_service.generate_code(cohort_number=9, session=MORNING)
    container.code_service.submit_attendance(user_id=2, code=code.code, cohort_number=9)

    # pretend the existence check raced ahead of the first insert
    monkeypatch.setattr(records_repo, "find_for_key", lambda *args, **kwargs: None)

    with pytest.raises(AlreadySubmittedError):
        container.code_service.submit_attendance(user_id=2, code=code.code, cohort_number=9)
    assert len(records_repo.live()) == 1


def test_deleted_submission_can_be_resubmitted(container, records_repo):
    code = container.code_service.generate_code(cohort_number=9, session=MORNING)
    first = container.code_service.submit_attendance(user_id=2, code=code.code, cohort_number=9)
    container.marking_service.delete_record(record_id=first.record_id, deleted_by=1)

    second = container.code_service.submit_attendance(user_id=2, code=code.code, cohort_number=9)

    assert second.record_id != first.record_id
    assert [r.record_id for r in records_repo.live()] == [second.record_id]
