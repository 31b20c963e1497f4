from __future__ import annotations

from src.cohort_attendance.cohort_attendance.core.enums import Role


def test_student_creates_and_lists_leave_requests(login_as):
    client = login_as(2)

    resp = client.post(
        "/leave-requests",
        json={"type": "half_day", "date": "2026-03-04", "session": "morning", "reason": "Dentist"},
    )
    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert (data["status"], data["leave_type"], data["session"]) == ("pending", "half_day", "morning")

    mine = client.get("/leave-requests/me").get_json()["data"]
    assert [l["leave_id"] for l in mine] == [data["leave_id"]]


def test_create_leave_validation(login_as):
    client = login_as(2)

    bad_type = client.post("/leave-requests", json={"type": "holiday", "date": "2026-03-04"})
    no_session = client.post("/leave-requests", json={"type": "half_day", "date": "2026-03-04"})

    assert bad_type.status_code == 400
    assert "Invalid leave type" in bad_type.get_json()["message"]
    assert no_session.status_code == 400


def test_admin_reviews_leave_and_attendance_follows(container, login_as, records_repo):
    student = login_as(2)
    leave_id = student.post("/leave-requests", json={"type": "full_day", "date": "2026-03-04"}).get_json()["data"]["leave_id"]

    admin = login_as(1, Role.ADMIN, "Admin Office")
    resp = admin.put(f"/admin/leave-requests/{leave_id}", json={"status": "approved", "review_notes": "get well"})

    assert resp.status_code == 200
    assert resp.get_json()["data"]["reviewed_by_name"] == "Admin Office"
    assert len(records_repo.live()) == 2

    again = admin.put(f"/admin/leave-requests/{leave_id}", json={"status": "rejected"})
    assert again.status_code == 409
    assert admin.put("/admin/leave-requests/999", json={"status": "approved"}).status_code == 404
    assert admin.put(f"/admin/leave-requests/{leave_id}", json={"status": "later"}).status_code == 400


def test_admin_creates_and_filters_leave_requests(login_as):
    admin = login_as(1, Role.ADMIN, "Admin Office")

    created = admin.post(
        "/admin/leave-requests",
        json={"user_id": 5, "type": "late", "date": "2026-03-04", "session": "afternoon"},
    )
    assert created.status_code == 200
    assert created.get_json()["data"]["status"] == "approved"

    cohort10 = admin.get("/admin/leave-requests?cohort=10&status=approved").get_json()["data"]
    cohort9 = admin.get("/admin/leave-requests?cohort=9").get_json()["data"]
    assert len(cohort10) == 1
    assert cohort9 == []


def test_students_cannot_review(login_as):
    resp = login_as(2).put("/admin/leave-requests/1", json={"status": "approved"})

    assert resp.status_code == 403
