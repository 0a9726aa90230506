from __future__ import annotations

import csv
import io

from flask import Flask, request

from ..common.auth import admin_required
from ..common.datetime_utils import now_local, parse_optional_date
from ..common.http import ok
from ..common.validators import require_positive_int
from ..container import Container
from .service import REPORT_FIELDS, ReportData


def register(app: Flask, container: Container) -> None:
    def _report_args():
        today = now_local().date()
        start = parse_optional_date(request.args.get("start"), field_name="start") or today.replace(day=1)
        end = parse_optional_date(request.args.get("end"), field_name="end") or today
        user_id = request.args.get("userId")
        return container.report_service.build_attendance_report(
            start=start,
            end=end,
            user_id=require_positive_int(user_id, "userId", default=0) or None,
        ), start, end

    def _write_report_csv(*, data: ReportData, filename: str):
        out = io.StringIO()
        writer = csv.DictWriter(out, fieldnames=REPORT_FIELDS)
        writer.writeheader()
        for row in data.rows:
            writer.writerow(row)

        # BOM so spreadsheet apps pick up UTF-8 names
        csv_bytes = out.getvalue().encode("utf-8-sig")
        return app.response_class(
            csv_bytes,
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    @app.route("/api/reports/attendance", methods=["GET"], endpoint="api_report_attendance")
    @admin_required
    def attendance_report():
        data, start, end = _report_args()
        return ok(
            {"rows": data.rows, "summary": data.summary},
            start=start.isoformat(),
            end=end.isoformat(),
        )

    @app.route("/api/reports/attendance.csv", methods=["GET"], endpoint="api_report_attendance_csv")
    @admin_required
    def attendance_report_csv():
        data, start, end = _report_args()
        return _write_report_csv(data=data, filename=f"attendance_{start:%Y%m%d}_{end:%Y%m%d}.csv")
