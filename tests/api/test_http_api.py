from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, timedelta

import pytest
from werkzeug.security import generate_password_hash

from hrms_workflow.attendance.model import PUNCH_ORDER, AttendanceRecord
from hrms_workflow.container import wire
from hrms_workflow.core.enums import LeaveStatus, UserType
from hrms_workflow.core.exceptions import AlreadyCheckedIn
from hrms_workflow.leaves.calculator import windows_overlap
from hrms_workflow.leaves.model import LeaveRequest, LeaveRow
from hrms_workflow.main import create_app
from hrms_workflow.users.model import User


class FakeUsers:
    def __init__(self, *users):
        self._by_id = {u.user_id: u for u in users}

    def get_by_id(self, user_id):
        return self._by_id.get(user_id)

    def get_by_username(self, username):
        return next((u for u in self._by_id.values() if u.username == username), None)

    def create_user(self, **kwargs):
        raise NotImplementedError


class FakeAttendance:
    def __init__(self):
        self.records: dict[int, AttendanceRecord] = {}

    def get_for_user_and_date(self, user_id, user_type, work_date):
        return next(
            (
                r
                for r in self.records.values()
                if (r.user_id, r.user_type, r.work_date) == (user_id, user_type, work_date)
            ),
            None,
        )

    def create_checkin(self, *, user_id, user_type, work_date, punch, is_late, late_minutes):
        if self.get_for_user_and_date(user_id, user_type, work_date):
            raise AlreadyCheckedIn()
        attendance_id = len(self.records) + 1
        self.records[attendance_id] = AttendanceRecord(
            attendance_id=attendance_id,
            user_id=user_id,
            user_type=user_type,
            work_date=work_date,
            check_in=punch,
            is_late=is_late,
            late_minutes=late_minutes,
        )
        return attendance_id

    def record_punch(self, *, attendance_id, slot, punch):
        record = self.records[attendance_id]
        index = PUNCH_ORDER.index(slot)
        if record.punch(slot) is not None or (index and record.punch(PUNCH_ORDER[index - 1]) is None):
            return False
        self.records[attendance_id] = replace(record, **{slot.value: punch})
        return True

    def get_report_rows(self, *, start_date, end_date, user_type=UserType.EMPLOYEE, user_id=None):
        return []


class FakeLeaves:
    def __init__(self):
        self.leaves: dict[int, LeaveRequest] = {}

    def create_leave(self, **fields):
        leave_id = len(self.leaves) + 1
        self.leaves[leave_id] = LeaveRequest(
            leave_id=leave_id, status=LeaveStatus.PENDING, created_at=datetime.now(), **fields
        )
        return leave_id

    def get_leave(self, leave_id):
        return self.leaves.get(leave_id)

    def find_overlapping(self, *, user_id, from_date, to_date, statuses):
        return [
            l
            for l in self.leaves.values()
            if l.user_id == user_id and l.status in statuses and windows_overlap(l.from_date, l.to_date, from_date, to_date)
        ]

    def approve(self, *, leave_id, approved_by, approved_at, notes, settle):
        leave = self.leaves[leave_id]
        if leave.status != LeaveStatus.PENDING:
            return None
        settlement = settle(leave.total_days, 15.0, 30000.0)
        self.leaves[leave_id] = replace(leave, status=LeaveStatus.APPROVED, approved_by=approved_by)
        return settlement

    def list_pending(self):
        return [
            LeaveRow(leave=l, full_name="Employee", username="emp")
            for l in self.leaves.values()
            if l.status == LeaveStatus.PENDING
        ]

    def list_within_range(self, *, user_id, start_date, end_date):
        rows = [
            l
            for l in self.leaves.values()
            if l.user_id == user_id and l.from_date >= start_date and l.to_date <= end_date
        ]
        return sorted(rows, key=lambda l: l.from_date)


EMPLOYEE = User(
    user_id=2,
    full_name="Employee",
    username="emp",
    password_hash=generate_password_hash("secret1"),
    user_type=UserType.EMPLOYEE,
    leave_balance=15.0,
)
ADMIN = User(
    user_id=1,
    full_name="Admin",
    username="admin",
    password_hash=generate_password_hash("admin123"),
    user_type=UserType.ADMIN,
)


@pytest.fixture
def app():
    container = wire(users_repo=FakeUsers(EMPLOYEE, ADMIN), attendance_repo=FakeAttendance(), leaves_repo=FakeLeaves())
    return create_app("hrms_workflow.config.testing", container=container)


def _login(app, username, password):
    client = app.test_client()
    resp = client.post("/api/auth/login", json={"username": username, "password": password})
    assert resp.status_code == 200
    return client


def test_protected_route_requires_login(app):
    resp = app.test_client().get("/api/attendance/today")

    assert resp.status_code == 401
    assert resp.get_json()["success"] is False


def test_bad_credentials_are_rejected(app):
    resp = app.test_client().post("/api/auth/login", json={"username": "emp", "password": "nope"})

    assert resp.status_code == 401
    assert resp.get_json()["error"]["code"] == "AUTHENTICATION_ERROR"


def test_me_reports_leave_balance(app):
    client = _login(app, "emp", "secret1")

    body = client.get("/api/auth/me").get_json()

    assert body["data"]["userType"] == "employee"
    assert body["data"]["leaveBalance"] == 15.0


def test_check_in_then_duplicate(app):
    client = _login(app, "emp", "secret1")

    first = client.post("/api/attendance/checkin", json={"location": "HQ"})
    assert first.status_code == 201
    assert first.get_json()["data"]["state"] == "CHECKED_IN"
    assert first.get_json()["data"]["checkIn"]["location"] == "HQ"

    again = client.post("/api/attendance/checkin", json={})
    assert again.status_code == 400
    assert again.get_json()["error"]["code"] == "ALREADY_CHECKED_IN"


def test_immediate_check_out_is_too_short(app):
    client = _login(app, "emp", "secret1")
    client.post("/api/attendance/checkin", json={})

    resp = client.post("/api/attendance/checkout", json={})

    assert resp.status_code == 400
    assert resp.get_json()["error"]["code"] == "SESSION_TOO_SHORT"


def test_today_gates_after_check_in(app):
    client = _login(app, "emp", "secret1")
    client.post("/api/attendance/checkin", json={})

    data = client.get("/api/attendance/today").get_json()["data"]

    assert data["canCheckIn"] is False
    assert data["canCheckOut"] is True
    assert data["canReCheckIn"] is False


def test_checkout_without_check_in(app):
    client = _login(app, "emp", "secret1")

    resp = client.post("/api/attendance/checkout", json={})

    assert resp.status_code == 400
    assert resp.get_json()["error"]["code"] == "NO_CHECK_IN_FOUND"


def test_employee_cannot_reach_admin_routes(app):
    client = _login(app, "emp", "secret1")

    assert client.get("/api/leaves/pending").status_code == 403
    assert client.put("/api/leaves/1/approve", json={}).status_code == 403


def test_leave_request_and_approval(app):
    start = date.today() + timedelta(days=10)
    employee = _login(app, "emp", "secret1")

    resp = employee.post(
        "/api/leaves/request",
        json={
            "leaveType": "annual",
            "fromDate": start.isoformat(),
            "toDate": (start + timedelta(days=2)).isoformat(),
            "reason": "Family trip",
        },
    )
    assert resp.status_code == 201
    leave = resp.get_json()["data"]
    assert leave["totalDays"] == 3.0
    assert leave["status"] == "pending"

    clash = employee.post(
        "/api/leaves/request",
        json={
            "leaveType": "sick",
            "fromDate": (start + timedelta(days=1)).isoformat(),
            "toDate": (start + timedelta(days=4)).isoformat(),
            "reason": "Feeling unwell",
        },
    )
    assert clash.status_code == 400
    assert clash.get_json()["error"]["code"] == "OVERLAP_CONFLICT"

    admin = _login(app, "admin", "admin123")
    pending = admin.get("/api/leaves/pending")
    assert pending.headers["Cache-Control"].startswith("no-store")
    assert [l["id"] for l in pending.get_json()["data"]] == [leave["id"]]

    approved = admin.put(f"/api/leaves/{leave['id']}/approve", json={"notes": "ok"})
    assert approved.status_code == 200
    assert approved.get_json()["data"]["status"] == "approved"

    again = admin.put(f"/api/leaves/{leave['id']}/approve", json={})
    assert again.get_json()["error"]["code"] == "NOT_PENDING"


def test_leave_request_with_bad_date(app):
    client = _login(app, "emp", "secret1")

    resp = client.post(
        "/api/leaves/request",
        json={"leaveType": "annual", "fromDate": "soon", "toDate": "2099-01-01", "reason": "Family trip"},
    )

    assert resp.status_code == 400
    assert resp.get_json()["error"]["code"] == "INVALID_DATE"


def test_my_leaves_range_returns_leaves_inside_window(app):
    start = date.today() + timedelta(days=10)
    employee = _login(app, "emp", "secret1")
    for offset in (0, 5):
        day = (start + timedelta(days=offset)).isoformat()
        resp = employee.post(
            "/api/leaves/request",
            json={"leaveType": "annual", "fromDate": day, "toDate": day, "reason": "Family trip"},
        )
        assert resp.status_code == 201

    resp = employee.get(
        "/api/leaves/my-leaves/range",
        query_string={"startDate": start.isoformat(), "endDate": (start + timedelta(days=3)).isoformat()},
    )

    assert resp.status_code == 200
    body = resp.get_json()
    assert [l["fromDate"] for l in body["data"]] == [start.isoformat()]
    assert body["meta"]["count"] == 1

    inverted = employee.get(
        "/api/leaves/my-leaves/range",
        query_string={"startDate": (start + timedelta(days=3)).isoformat(), "endDate": start.isoformat()},
    )
    assert inverted.status_code == 400


def test_half_day_request_needs_its_half(app):
    day = (date.today() + timedelta(days=10)).isoformat()
    client = _login(app, "emp", "secret1")

    resp = client.post(
        "/api/leaves/request",
        json={"leaveType": "annual", "fromDate": day, "toDate": day, "reason": "Clinic visit", "isHalfDay": True},
    )

    assert resp.status_code == 400
    assert resp.get_json()["error"]["message"] == "Please select a valid half day type"


def test_approve_unknown_leave(app):
    admin = _login(app, "admin", "admin123")

    resp = admin.put("/api/leaves/999/approve", json={})

    assert resp.status_code == 404
    assert resp.get_json()["error"]["code"] == "LEAVE_NOT_FOUND"


def test_attendance_csv_export(app):
    admin = _login(app, "admin", "admin123")

    resp = admin.get("/api/reports/attendance.csv?start=2026-01-01&end=2026-01-31")

    assert resp.status_code == 200
    assert resp.mimetype == "text/csv"
    assert resp.data.startswith(b"\xef\xbb\xbfwork_date,user_id,full_name")
    assert "attendance_20260101_20260131.csv" in resp.headers["Content-Disposition"]
