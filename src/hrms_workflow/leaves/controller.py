from __future__ import annotations

from flask import Flask, request

from ..common.auth import admin_required, current_identity, login_required
from ..common.datetime_utils import parse_optional_date
from ..common.http import no_store, ok
from ..common.paging import page_limit
from ..common.validators import require_choice, require_positive_int
from ..container import Container
from ..core.constants import DEFAULT_ADMIN_LIST_LIMIT
from ..core.enums import LeaveStatus, LeaveType
from ..core.exceptions import ValidationError
from .service import leave_payload, leave_row_payload


def _optional_status(value):
    return require_choice(value, LeaveStatus, "status") if value else None


def register(app: Flask, container: Container) -> None:
    @app.route("/api/leaves/request", methods=["POST"], endpoint="api_leave_request")
    @login_required
    def request_leave():
        who = current_identity()
        body = request.get_json(silent=True) or {}
        is_half_day = body.get("isHalfDay", False)
        if not isinstance(is_half_day, bool):
            raise ValidationError("isHalfDay must be a boolean")

        leave = container.leave_service.request_leave(
            user_id=who.user_id,
            user_type=who.user_type,
            leave_type=body.get("leaveType"),
            from_date=body.get("fromDate"),
            to_date=body.get("toDate"),
            reason=body.get("reason"),
            is_half_day=is_half_day,
            half_day_type=body.get("halfDayType"),
        )
        return ok(leave_payload(leave), status=201, message="Leave request submitted successfully")

    @app.route("/api/leaves/my-leaves", methods=["GET"], endpoint="api_my_leaves")
    @login_required
    def my_leaves():
        who = current_identity()
        page, limit = page_limit(DEFAULT_ADMIN_LIST_LIMIT)
        result = container.leave_service.list_my_leaves(
            who.user_id,
            status=_optional_status(request.args.get("status")),
            page=page,
            limit=limit,
        )
        return ok([leave_payload(l) for l in result.items], pagination=result.pagination())

    @app.route("/api/leaves/my-leaves/range", methods=["GET"], endpoint="api_my_leaves_range")
    @login_required
    def my_leaves_range():
        leaves = container.leave_service.get_leaves_by_date_range(
            current_identity().user_id,
            request.args.get("startDate"),
            request.args.get("endDate"),
        )
        return ok([leave_payload(l) for l in leaves], count=len(leaves))

    @app.route("/api/leaves/<int:leave_id>/cancel", methods=["PUT"], endpoint="api_leave_cancel")
    @login_required
    def cancel(leave_id: int):
        leave = container.leave_service.cancel(leave_id, current_identity().user_id)
        return ok(leave_payload(leave), message="Leave request cancelled successfully")

    @app.route("/api/leaves/pending", methods=["GET"], endpoint="api_leaves_pending")
    @admin_required
    def pending():
        rows = container.leave_service.get_pending_leaves()
        response, code = ok([leave_row_payload(r) for r in rows], count=len(rows))
        return no_store(response), code

    @app.route("/api/leaves/all", methods=["GET"], endpoint="api_leaves_all")
    @admin_required
    def all_leaves():
        page, limit = page_limit(DEFAULT_ADMIN_LIST_LIMIT)
        leave_type = request.args.get("leaveType")
        result = container.leave_service.list_all(
            status=_optional_status(request.args.get("status")),
            leave_type=require_choice(leave_type, LeaveType, "leave type") if leave_type else None,
            user_id=require_positive_int(request.args.get("userId"), "userId", default=0) or None,
            page=page,
            limit=limit,
        )
        response, code = ok([leave_row_payload(r) for r in result.items], pagination=result.pagination())
        return no_store(response), code

    @app.route("/api/leaves/range", methods=["GET"], endpoint="api_leaves_range")
    @admin_required
    def by_range():
        rows = container.leave_service.get_leaves_overlapping_range(
            request.args.get("startDate"),
            request.args.get("endDate"),
            status=_optional_status(request.args.get("status")),
        )
        return ok([leave_row_payload(r) for r in rows], count=len(rows))

    @app.route("/api/leaves/stats", methods=["GET"], endpoint="api_leaves_stats")
    @admin_required
    def stats():
        return ok(
            container.leave_service.get_stats(
                start_date=parse_optional_date(request.args.get("startDate"), field_name="start date"),
                end_date=parse_optional_date(request.args.get("endDate"), field_name="end date"),
            )
        )

    @app.route("/api/leaves/<int:leave_id>/approve", methods=["PUT"], endpoint="api_leave_approve")
    @admin_required
    def approve(leave_id: int):
        body = request.get_json(silent=True) or {}
        leave = container.leave_service.approve(leave_id, current_identity().user_id, notes=body.get("notes"))
        return ok(leave_payload(leave), message="Leave request approved successfully")

    @app.route("/api/leaves/<int:leave_id>/reject", methods=["PUT"], endpoint="api_leave_reject")
    @admin_required
    def reject(leave_id: int):
        body = request.get_json(silent=True) or {}
        leave = container.leave_service.reject(
            leave_id, current_identity().user_id, body.get("rejectionReason")
        )
        return ok(leave_payload(leave), message="Leave request rejected successfully")
