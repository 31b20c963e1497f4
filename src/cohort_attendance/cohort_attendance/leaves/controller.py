from __future__ import annotations

from flask import Flask, request

from ..common.decorators import admin_required, current_user_id, current_user_name, login_required
from ..common.http import json_body, query_int
from ..common.responses import send_response
from ..common.validators import parse_leave_type, parse_optional_session, require_date, require_positive_int
from ..core.enums import LeaveStatus
from ..core.exceptions import ValidationError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    leaves = container.leave_service

    @app.route("/leave-requests", methods=["POST"], endpoint="leave_create")
    @login_required
    def create_leave_request():
        body = json_body()
        leave = leaves.create_leave_request(
            user_id=current_user_id(),
            leave_type=parse_leave_type(body.get("type")),
            date=require_date(body.get("date")),
            session=parse_optional_session(body.get("session")),
            reason=body.get("reason") or "",
        )
        return send_response("Leave request submitted successfully", leave)

    @app.route("/leave-requests/me", methods=["GET"], endpoint="leave_list_mine")
    @login_required
    def my_leave_requests():
        return send_response("Leave requests retrieved", leaves.get_my_leave_requests(user_id=current_user_id()))

    @app.route("/admin/leave-requests", methods=["GET"], endpoint="leave_list_all")
    @admin_required
    def all_leave_requests():
        rows = leaves.get_all_leave_requests(
            cohort_number=query_int("cohort"),
            status=request.args.get("status") or None,
            from_date=request.args.get("from") or None,
            to_date=request.args.get("to") or None,
        )
        return send_response("Leave requests retrieved", rows)

    @app.route("/admin/leave-requests", methods=["POST"], endpoint="leave_admin_create")
    @admin_required
    def admin_create_leave_request():
        body = json_body()
        leave = leaves.admin_create_leave_request(
            user_id=require_positive_int(body.get("user_id"), "User ID"),
            leave_type=parse_leave_type(body.get("type")),
            date=require_date(body.get("date")),
            session=parse_optional_session(body.get("session")),
            reason=body.get("reason") or "",
            admin_id=current_user_id(),
            admin_name=current_user_name(),
        )
        return send_response("Leave request created and approved", leave)

    @app.route("/admin/leave-requests/<int:leave_id>", methods=["PUT"], endpoint="leave_review")
    @admin_required
    def review_leave_request(leave_id: int):
        body = json_body()
        try:
            status = LeaveStatus((body.get("status") or "").strip().lower())
        except ValueError:
            raise ValidationError("Status must be 'approved' or 'rejected'")

        leave = leaves.review_leave_request(
            leave_id=leave_id,
            status=status,
            review_notes=body.get("review_notes"),
            admin_id=current_user_id(),
            admin_name=current_user_name(),
        )
        return send_response(f"Leave request {status.value}", leave)
