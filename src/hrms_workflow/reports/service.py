from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..attendance.repository import AttendanceRepository
from ..core.exceptions import InvertedRange

REPORT_FIELDS = [
    "work_date",
    "user_id",
    "full_name",
    "username",
    "check_in",
    "check_out",
    "re_check_in",
    "re_check_out",
    "first_session_hours",
    "second_session_hours",
    "worked_hours",
    "status",
    "late_minutes",
]


@dataclass(frozen=True)
class ReportData:
    rows: list[dict]
    summary: list[dict]


def _clock(moment: Optional[datetime]) -> str:
    return moment.strftime("%H:%M") if moment else "-"


def _hhmm(hours: float) -> str:
    minutes = int(round(hours * 60))
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


class AttendanceReportService:
    def __init__(self, attendance: AttendanceRepository):
        self._attendance = attendance

    def build_attendance_report(
        self,
        *,
        start: date,
        end: date,
        user_id: Optional[int] = None,
    ) -> ReportData:
        if end < start:
            raise InvertedRange("End date cannot be before start date")

        query_rows = self._attendance.get_report_rows(start_date=start, end_date=end, user_id=user_id)

        summary_map: dict[int, dict] = {}
        out_rows: list[dict] = []

        for r in query_rows:
            rec = r.record
            out_rows.append(
                {
                    "work_date": rec.work_date.strftime("%Y-%m-%d"),
                    "user_id": rec.user_id,
                    "full_name": r.full_name,
                    "username": r.username,
                    "check_in": _clock(rec.check_in.time if rec.check_in else None),
                    "check_out": _clock(rec.check_out.time if rec.check_out else None),
                    "re_check_in": _clock(rec.re_check_in.time if rec.re_check_in else None),
                    "re_check_out": _clock(rec.re_check_out.time if rec.re_check_out else None),
                    "first_session_hours": round(rec.first_session_hours, 2),
                    "second_session_hours": round(rec.second_session_hours, 2),
                    "worked_hours": _hhmm(rec.total_hours),
                    "status": rec.status.value,
                    "late_minutes": rec.late_minutes,
                }
            )

            s = summary_map.get(rec.user_id)
            if not s:
                s = {
                    "user_id": rec.user_id,
                    "full_name": r.full_name,
                    "username": r.username,
                    "hours": 0.0,
                    "days": 0,
                    "late_days": 0,
                }
                summary_map[rec.user_id] = s
            s["hours"] += rec.total_hours
            s["days"] += 1 if rec.check_in else 0
            s["late_days"] += 1 if rec.is_late else 0

        ranked = sorted(summary_map.values(), key=lambda x: x["hours"], reverse=True)
        summary = [
            {
                "user_id": s["user_id"],
                "full_name": s["full_name"],
                "username": s["username"],
                "days_present": s["days"],
                "late_days": s["late_days"],
                "total_hours": _hhmm(s["hours"]),
            }
            for s in ranked
        ]
        return ReportData(rows=out_rows, summary=summary)
