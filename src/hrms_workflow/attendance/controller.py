from __future__ import annotations

from flask import Flask, request

from ..common.auth import admin_required, current_identity, login_required
from ..common.datetime_utils import parse_optional_date
from ..common.http import no_store, ok
from ..common.paging import page_limit
from ..common.validators import require_choice, require_positive_int
from ..container import Container
from ..core.constants import DEFAULT_ADMIN_LIST_LIMIT, DEFAULT_HISTORY_LIMIT
from ..core.enums import AttendanceStatus
from .service import record_payload, today_payload


def register(app: Flask, container: Container) -> None:
    def _punch_kwargs() -> dict:
        body = request.get_json(silent=True) or {}
        return {
            "location": body.get("location"),
            "ip_address": request.remote_addr,
            "device_info": request.headers.get("User-Agent"),
        }

    @app.route("/api/attendance/checkin", methods=["POST"], endpoint="api_checkin")
    @login_required
    def checkin():
        who = current_identity()
        record = container.attendance_service.check_in(who.user_id, who.user_type, **_punch_kwargs())
        message = "Checked in successfully"
        if record.is_late:
            message = f"Checked in successfully (late by {record.late_minutes} minutes)"
        return ok(record_payload(record), status=201, message=message)

    @app.route("/api/attendance/checkout", methods=["POST"], endpoint="api_checkout")
    @login_required
    def checkout():
        who = current_identity()
        record = container.attendance_service.check_out(who.user_id, who.user_type, **_punch_kwargs())
        return ok(record_payload(record), message="Checked out successfully")

    @app.route("/api/attendance/re-checkin", methods=["POST"], endpoint="api_re_checkin")
    @login_required
    def re_checkin():
        who = current_identity()
        record = container.attendance_service.re_check_in(who.user_id, who.user_type, **_punch_kwargs())
        return ok(record_payload(record), message="Re-checked in successfully")

    @app.route("/api/attendance/re-checkout", methods=["POST"], endpoint="api_re_checkout")
    @login_required
    def re_checkout():
        who = current_identity()
        record = container.attendance_service.re_check_out(who.user_id, who.user_type, **_punch_kwargs())
        return ok(record_payload(record), message="Re-checked out successfully")

    @app.route("/api/attendance/today", methods=["GET"], endpoint="api_attendance_today")
    @login_required
    def today():
        who = current_identity()
        return ok(today_payload(container.attendance_service.get_today(who.user_id, who.user_type)))

    @app.route("/api/attendance/history", methods=["GET"], endpoint="api_attendance_history")
    @login_required
    def history():
        who = current_identity()
        page, limit = page_limit(DEFAULT_HISTORY_LIMIT)
        result = container.attendance_service.get_history(
            who.user_id,
            who.user_type,
            page=page,
            limit=limit,
            start_date=parse_optional_date(request.args.get("startDate"), field_name="start date"),
            end_date=parse_optional_date(request.args.get("endDate"), field_name="end date"),
        )
        return ok([record_payload(r) for r in result.items], pagination=result.pagination())

    @app.route("/api/attendance/all", methods=["GET"], endpoint="api_attendance_all")
    @admin_required
    def all_records():
        page, limit = page_limit(DEFAULT_ADMIN_LIST_LIMIT)
        status = request.args.get("status")
        result = container.attendance_service.list_all(
            page=page,
            limit=limit,
            work_date=parse_optional_date(request.args.get("date")),
            user_id=require_positive_int(request.args.get("userId"), "userId", default=0) or None,
            status=require_choice(status, AttendanceStatus, "status") if status else None,
        )
        items = []
        for row in result.items:
            payload = record_payload(row.record)
            payload["employeeName"] = row.full_name
            payload["username"] = row.username
            items.append(payload)
        response, code = ok(items, pagination=result.pagination())
        return no_store(response), code

    @app.route("/api/attendance/stats", methods=["GET"], endpoint="api_attendance_stats")
    @admin_required
    def stats():
        work_date = parse_optional_date(request.args.get("date"))
        return ok(container.attendance_service.get_stats(work_date=work_date))
