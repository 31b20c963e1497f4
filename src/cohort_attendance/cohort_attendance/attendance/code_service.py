from __future__ import annotations

import logging
import random
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Callable, Optional, Tuple

from ..common.datetime_utils import APP_TZ, now_local, session_start
from ..common.validators import require_non_empty, require_positive_int
from ..core.constants import CODE_ALPHABET, CODE_SUFFIX_LENGTH, DEFAULT_CODE_VALIDITY_MINUTES
from ..core.enums import AttendanceSession, AttendanceStatus, MarkedBy
from ..core.exceptions import (
    AlreadySubmittedError,
    CodeExpiredError,
    CodeForWrongCohortError,
    DomainError,
    DuplicateKeyError,
    InvalidCodeError,
    NoActiveCodeError,
    SessionLockedError,
    StudentNotFoundError,
)
from ..users.repository import UserRepository
from .factory import AttendanceStrategyFactory
from .lock_service import SessionLockService
from .model import AttendanceCode, AttendanceRecord
from .repository import AttendanceCodeRepository, AttendanceRecordRepository

logger = logging.getLogger(__name__)


def parse_code(raw: str) -> Tuple[str, AttendanceSession]:
    """Normalize ``raw`` to upper case and read the session from its prefix.

    Raises InvalidCodeError when the code is not ``<SESSION>-<suffix>``.
    """
    code = (raw or "").strip().upper()
    prefix, sep, suffix = code.partition("-")
    if not sep or not suffix:
        raise InvalidCodeError()
    try:
        session = AttendanceSession(prefix.lower())
    except ValueError:
        raise InvalidCodeError()
    return code, session


class AttendanceCodeService:
    """Issues attendance codes and redeems them into self-marked records."""

    def __init__(
        self,
        codes: AttendanceCodeRepository,
        records: AttendanceRecordRepository,
        users: UserRepository,
        locks: SessionLockService,
        *,
        strategy_factory: AttendanceStrategyFactory | None = None,
        validity_minutes: int = DEFAULT_CODE_VALIDITY_MINUTES,
        now_fn: Callable[[], datetime] = now_local,
        rng: random.Random | None = None,
    ):
        self._codes = codes
        self._records = records
        self._users = users
        self._locks = locks
        self._factory = strategy_factory or AttendanceStrategyFactory()
        self._validity = timedelta(minutes=int(validity_minutes))
        self._now = now_fn
        self._rng = rng or random.SystemRandom()

    def _new_code(self, session: AttendanceSession) -> str:
        suffix = "".join(self._rng.choice(CODE_ALPHABET) for _ in range(CODE_SUFFIX_LENGTH))
        return f"{session.value.upper()}-{suffix}"

    def generate_code(
        self,
        *,
        cohort_number: int,
        session: AttendanceSession,
        generated_by: Optional[int] = None,
    ) -> AttendanceCode:
        cohort = require_positive_int(cohort_number, "Cohort")
        now = self._now()
        code = self._codes.replace_active_code(
            cohort_number=cohort,
            session=session,
            code=self._new_code(session),
            generated_at=now,
            expires_at=now + self._validity,
            generated_by=generated_by,
        )
        logger.info(
            "Generated code %s for cohort=%s session=%s (expires %s)",
            code.code,
            cohort,
            session.value,
            code.expires_at.isoformat(),
        )
        return code

    def get_active_code(self, *, cohort_number: int, session: AttendanceSession) -> Optional[AttendanceCode]:
        cohort = require_positive_int(cohort_number, "Cohort")
        return self._codes.find_active(cohort, session, now=self._now())

    def _resolve_code(self, code: str, session: AttendanceSession, cohort: int, now: datetime) -> AttendanceCode:
        active = self._codes.find_active(cohort, session, now=now)
        if active and active.code.upper() == code:
            return active

        # a live code owned by another cohort is a more useful answer than "invalid"
        elsewhere = self._codes.find_active_by_code(code, now=now)
        if elsewhere and elsewhere.cohort_number != cohort:
            raise CodeForWrongCohortError()

        if active is None:
            latest = self._codes.find_latest(cohort, session)
            if latest and latest.is_active and latest.code.upper() == code and latest.expires_at <= now:
                raise CodeExpiredError()
            raise NoActiveCodeError()

        raise InvalidCodeError()

    def submit_attendance(
        self,
        *,
        user_id: int,
        code: str,
        cohort_number: int,
        ip_address: Optional[str] = None,
    ) -> AttendanceRecord:
        try:
            return self._submit(user_id=user_id, code=code, cohort_number=cohort_number, ip_address=ip_address)
        except DomainError as e:
            logger.info("Rejected submission user=%s cohort=%s: %s", user_id, cohort_number, e.__class__.__name__)
            raise

    def _submit(self, *, user_id: int, code: str, cohort_number: int, ip_address: Optional[str]) -> AttendanceRecord:
        require_non_empty(code, "Code")
        cohort = require_positive_int(cohort_number, "Cohort")
        code, session = parse_code(code)

        now = self._now().astimezone(APP_TZ)
        today = now.date()
        today_str = today.isoformat()

        self._resolve_code(code, session, cohort, now)

        user = self._users.get_by_id(int(user_id))
        if not user:
            raise StudentNotFoundError()
        if user.cohort_number != cohort:
            raise CodeForWrongCohortError()

        if self._records.find_for_key(user.user_id, today_str, session):
            raise AlreadySubmittedError()

        if self._locks.is_session_locked(date=today_str, session=session, cohort_number=cohort):
            raise SessionLockedError()

        start = session_start(today, session)
        strategy = self._factory.for_submission(now=now, session_start=start)
        decision = strategy.decide(now=now, session_start=start)

        record = AttendanceRecord(
            record_id=0,
            user_id=user.user_id,
            jsd_number=user.jsd_number,
            first_name=user.first_name,
            last_name=user.last_name,
            cohort_number=user.cohort_number,
            date=today_str,
            session=session,
            status=decision.status,
            marked_by=MarkedBy.SELF,
            submitted_at=now,
            locked=False,
            ip_address=ip_address,
        )
        try:
            record_id = self._records.insert(record)
        except DuplicateKeyError:
            # lost the race against a concurrent submission for the same key
            raise AlreadySubmittedError()

        if decision.status != AttendanceStatus.PRESENT:
            logger.info("User %s submitted %s as %s: %s", user.user_id, session.value, decision.status.value, decision.note)
        return replace(record, record_id=record_id)
