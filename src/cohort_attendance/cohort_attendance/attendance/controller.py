from __future__ import annotations

import io

import qrcode
from flask import Flask, request, send_file

from ..common.decorators import admin_required, current_user_id, login_required, student_required
from ..common.http import client_ip, json_body, query_int
from ..common.responses import send_error, send_response
from ..common.validators import parse_optional_session, parse_session, parse_status, require_date, require_positive_int
from ..core.constants import DEFAULT_LOG_PAGE_SIZE, DEFAULT_STATS_DAYS
from ..core.exceptions import ValidationError
from ..container import Container


def _cohort_and_session_from_query():
    cohort = query_int("cohort")
    session_name = request.args.get("session")
    if not cohort or not session_name:
        raise ValidationError("cohort and session are required")
    return require_positive_int(cohort, "Cohort"), parse_session(session_name)


def register(app: Flask, container: Container) -> None:
    codes = container.code_service
    marking = container.marking_service
    locks = container.lock_service
    overview = container.overview_service
    stats = container.stats_service

    # -------- Codes --------
    @app.route("/admin/attendance/generate-code", methods=["POST"], endpoint="attendance_generate_code")
    @admin_required
    def generate_code():
        body = json_body()
        if not body.get("cohort") or not body.get("session"):
            raise ValidationError("cohort and session are required")
        code = codes.generate_code(
            cohort_number=require_positive_int(body.get("cohort"), "Cohort"),
            session=parse_session(body.get("session")),
            generated_by=current_user_id(),
        )
        return send_response("Attendance code generated successfully", code)

    @app.route("/admin/attendance/active-code", methods=["GET"], endpoint="attendance_active_code_admin")
    @app.route("/attendance/code", methods=["GET"], endpoint="attendance_active_code")
    @login_required
    def active_code():
        cohort, session_ = _cohort_and_session_from_query()
        code = codes.get_active_code(cohort_number=cohort, session=session_)
        if code is None:
            return send_response("No active code", None)
        return send_response("Active code retrieved", code)

    @app.route("/admin/attendance/code/qr", methods=["GET"], endpoint="attendance_code_qr")
    @admin_required
    def active_code_qr():
        cohort, session_ = _cohort_and_session_from_query()
        code = codes.get_active_code(cohort_number=cohort, session=session_)
        if code is None:
            return send_error(404, "No active code for this session")

        qr = qrcode.QRCode(
            version=1,
            error_correction=qrcode.constants.ERROR_CORRECT_M,
            box_size=10,
            border=2,
        )
        qr.add_data(code.code)
        qr.make(fit=True)
        img = qr.make_image(fill_color="black", back_color="white")

        buf = io.BytesIO()
        img.save(buf, format="PNG")
        buf.seek(0)
        return send_file(buf, mimetype="image/png")

    # -------- Self-service --------
    @app.route("/attendance/submit", methods=["POST"], endpoint="attendance_submit")
    @student_required
    def submit():
        body = json_body()
        code = body.get("code")
        cohort = body.get("cohort")
        if not code or not cohort:
            raise ValidationError("Code and cohort are required")
        record = codes.submit_attendance(
            user_id=current_user_id(),
            code=str(code),
            cohort_number=require_positive_int(cohort, "Cohort"),
            ip_address=client_ip(),
        )
        return send_response("Attendance submitted successfully", record)

    @app.route("/attendance/my-history", methods=["GET"], endpoint="attendance_my_history")
    @login_required
    def my_history():
        records = marking.get_student_history(user_id=current_user_id(), days=query_int("days"))
        return send_response("Attendance history retrieved", records)

    @app.route("/attendance/my-status", methods=["GET"], endpoint="attendance_my_status")
    @login_required
    def my_status():
        return send_response("Attendance status retrieved", stats.get_user_status(user_id=current_user_id()))

    @app.route("/attendance/my-daily-stats", methods=["GET"], endpoint="attendance_my_daily_stats")
    @login_required
    def my_daily_stats():
        rows = stats.get_daily_stats(days=query_int("days", DEFAULT_STATS_DAYS), user_id=current_user_id())
        return send_response("Daily stats retrieved", rows)

    # -------- Admin marking --------
    @app.route("/admin/attendance/manual", methods=["POST"], endpoint="attendance_manual_mark")
    @admin_required
    def manual_mark():
        body = json_body()
        record = marking.manual_mark(
            user_id=require_positive_int(body.get("user_id"), "User ID"),
            date=require_date(body.get("date")),
            session=parse_session(body.get("session")),
            status=parse_status(body.get("status")),
            marked_by=current_user_id(),
        )
        return send_response("Attendance marked successfully", record)

    @app.route("/admin/attendance/bulk", methods=["POST"], endpoint="attendance_bulk_mark")
    @admin_required
    def bulk_mark():
        body = json_body()
        raw_ids = body.get("user_ids") or []
        if not isinstance(raw_ids, list):
            raise ValidationError("user_ids must be a list")

        user_ids = []
        for raw in raw_ids:
            try:
                user_ids.append(int(raw))
            except (TypeError, ValueError):
                continue
        if not user_ids:
            raise ValidationError("No valid user IDs provided")

        records = marking.bulk_mark(
            user_ids=user_ids,
            date=require_date(body.get("date")),
            session=parse_session(body.get("session")),
            status=parse_status(body.get("status")),
            marked_by=current_user_id(),
        )
        return send_response(
            f"Marked {len(records)} students",
            {"marked_count": len(records), "records": records},
        )

    @app.route("/admin/attendance/<int:record_id>", methods=["DELETE"], endpoint="attendance_delete_record")
    @admin_required
    def delete_record(record_id: int):
        record = marking.delete_record(record_id=record_id, deleted_by=current_user_id())
        return send_response("Attendance record deleted", record)

    # -------- Locks --------
    @app.route("/admin/attendance/lock", methods=["POST"], endpoint="attendance_lock_session")
    @admin_required
    def lock_session():
        body = json_body()
        if not body.get("date") or not body.get("session") or "locked" not in body:
            raise ValidationError("date, session and locked are required")
        if not isinstance(body.get("locked"), bool):
            raise ValidationError("locked must be true or false")

        cohort = body.get("cohort")
        lock = locks.lock_session(
            date=require_date(body.get("date")),
            session=parse_session(body.get("session")),
            cohort_number=require_positive_int(cohort, "Cohort") if cohort else 0,
            locked=body["locked"],
            updated_by=current_user_id(),
        )
        return send_response("Session locked" if lock.locked else "Session unlocked", lock)

    @app.route("/admin/attendance/lock", methods=["GET"], endpoint="attendance_lock_state")
    @admin_required
    def lock_state():
        lock = locks.get_lock(
            date=require_date(request.args.get("date")),
            session=parse_session(request.args.get("session")),
            cohort_number=query_int("cohort", 0),
        )
        return send_response("Lock state retrieved", lock)

    # -------- Overview & stats --------
    @app.route("/admin/attendance/today", methods=["GET"], endpoint="attendance_overview")
    @admin_required
    def today_overview():
        cohort = query_int("cohort")
        if not cohort:
            raise ValidationError("cohort is required")
        data = overview.get_overview(
            cohort_number=cohort,
            session=parse_optional_session(request.args.get("session")),
            date=request.args.get("date") or None,
        )
        return send_response("Attendance overview retrieved", data)

    @app.route("/admin/attendance/stats", methods=["GET"], endpoint="attendance_stats")
    @admin_required
    def attendance_stats():
        rows = stats.get_stats(
            cohort_number=query_int("cohort"),
            start_date=request.args.get("start_date") or None,
            end_date=request.args.get("end_date") or None,
        )
        return send_response("Attendance stats retrieved", rows)

    @app.route("/admin/attendance/stats-by-days", methods=["GET"], endpoint="attendance_stats_by_days")
    @admin_required
    def attendance_stats_by_days():
        rows = stats.get_stats_by_days(cohort_number=query_int("cohort"), days=query_int("days", DEFAULT_STATS_DAYS))
        return send_response("Attendance stats retrieved", rows)

    @app.route("/admin/attendance/daily-stats", methods=["GET"], endpoint="attendance_daily_stats")
    @admin_required
    def attendance_daily_stats():
        rows = stats.get_daily_stats(cohort_number=query_int("cohort"), days=query_int("days", DEFAULT_STATS_DAYS))
        return send_response("Daily stats retrieved", rows)

    @app.route("/admin/attendance/logs", methods=["GET"], endpoint="attendance_logs")
    @admin_required
    def attendance_logs():
        page = query_int("page", 1)
        limit = query_int("limit", DEFAULT_LOG_PAGE_SIZE)
        records, total = marking.get_logs(
            cohort_number=query_int("cohort"),
            date=request.args.get("date") or None,
            page=page,
            limit=limit,
        )
        return send_response(
            "Attendance logs retrieved",
            {"records": records, "total": total, "page": page, "limit": limit},
        )

    @app.route("/admin/attendance/student/<int:user_id>", methods=["GET"], endpoint="attendance_student_history")
    @admin_required
    def student_history(user_id: int):
        records = marking.get_student_history(user_id=user_id, days=query_int("days"))
        return send_response("Student attendance history retrieved", records)
