from __future__ import annotations

from datetime import datetime, timezone

from src.cohort_attendance.cohort_attendance.common.serialization import to_json
from src.cohort_attendance.cohort_attendance.core.enums import AttendanceSession, Role
from src.cohort_attendance.cohort_attendance.users.model import User


def test_dataclass_serialises_every_field():
    user = User(user_id=2, first_name="Anong", last_name="S", jsd_number="JSD9-01", cohort_number=9, role=Role.STUDENT)

    assert to_json(user) == {
        "user_id": 2,
        "first_name": "Anong",
        "last_name": "S",
        "jsd_number": "JSD9-01",
        "cohort_number": 9,
        "role": "student",
        "email": "",
        "is_active": True,
    }


def test_nested_values_render_in_application_time():
    payload = {"when": datetime(2026, 3, 2, 2, 5, tzinfo=timezone.utc), "sessions": (AttendanceSession.MORNING,)}

    assert to_json(payload) == {"when": "2026-03-02T09:05:00+07:00", "sessions": ["morning"]}
