from __future__ import annotations

from dataclasses import replace
from datetime import datetime

import pytest

from hrms_workflow.core.enums import DayCountRule, HalfDayType, LeaveStatus, LeaveType, UserType
from hrms_workflow.core.exceptions import (
    AuthorizationError,
    CancelNotAllowed,
    InvalidDate,
    InvertedRange,
    LeaveNotFound,
    NotPending,
    OverlapConflict,
    PastDate,
    ValidationError,
)
from hrms_workflow.leaves.calculator import windows_overlap
from hrms_workflow.leaves.model import LeaveRequest, LeaveRow
from hrms_workflow.leaves.service import LeaveService, leave_payload

NOW = datetime(2025, 6, 1, 10, 0, 0)
EMP = UserType.EMPLOYEE


class FakeLeaveRepo:
    def __init__(self):
        self._next_id = 1
        self.leaves: dict[int, LeaveRequest] = {}
        self.balances: dict[int, float] = {}
        self.salaries: dict[int, float] = {}

    def add_user(self, user_id, *, balance=15.0, salary=30000.0):
        self.balances[user_id] = balance
        self.salaries[user_id] = salary

    def create_leave(self, *, user_id, user_type, leave_type, from_date, to_date, total_days, reason, is_half_day, half_day_type):
        leave_id = self._next_id
        self._next_id += 1
        self.leaves[leave_id] = LeaveRequest(
            leave_id=leave_id,
            user_id=user_id,
            user_type=user_type,
            leave_type=leave_type,
            from_date=from_date,
            to_date=to_date,
            total_days=total_days,
            reason=reason,
            status=LeaveStatus.PENDING,
            created_at=NOW,
            is_half_day=is_half_day,
            half_day_type=half_day_type,
        )
        return leave_id

    def get_leave(self, leave_id):
        return self.leaves.get(int(leave_id))

    def find_overlapping(self, *, user_id, from_date, to_date, statuses):
        return [
            l
            for l in self.leaves.values()
            if l.user_id == user_id and l.status in statuses and windows_overlap(l.from_date, l.to_date, from_date, to_date)
        ]

    def approve(self, *, leave_id, approved_by, approved_at, notes, settle):
        leave = self.leaves.get(leave_id)
        if not leave or leave.status != LeaveStatus.PENDING:
            return None
        settlement = settle(leave.total_days, self.balances.get(leave.user_id, 0.0), self.salaries.get(leave.user_id, 0.0))
        if leave.user_type == EMP:
            self.balances[leave.user_id] = settlement.new_balance
        else:
            settlement = replace(settlement, balance_deducted=0.0, new_balance=0.0, salary_deduction=0.0)
        self.leaves[leave_id] = replace(
            leave,
            status=LeaveStatus.APPROVED,
            approved_by=approved_by,
            approved_at=approved_at,
            notes=notes or leave.notes,
            salary_deduction=settlement.salary_deduction,
            balance_deducted=settlement.balance_deducted,
        )
        return settlement

    def reject(self, *, leave_id, rejected_by, rejected_at, rejection_reason):
        leave = self.leaves.get(leave_id)
        if not leave or leave.status != LeaveStatus.PENDING:
            return False
        self.leaves[leave_id] = replace(
            leave,
            status=LeaveStatus.REJECTED,
            approved_by=rejected_by,
            approved_at=rejected_at,
            rejection_reason=rejection_reason,
        )
        return True

    def cancel(self, *, leave_id, expected_status):
        leave = self.leaves.get(leave_id)
        if not leave or leave.status != expected_status:
            return False
        if leave.status == LeaveStatus.APPROVED:
            self.balances[leave.user_id] += leave.balance_deducted
        self.leaves[leave_id] = replace(leave, status=LeaveStatus.CANCELLED)
        return True

    def _row(self, leave):
        return LeaveRow(leave=leave, full_name=f"User {leave.user_id}", username=f"user{leave.user_id}")

    def list_for_user(self, *, user_id, status=None, limit, offset=0):
        rows = [l for l in self.leaves.values() if l.user_id == user_id and (status is None or l.status == status)]
        return sorted(rows, key=lambda l: l.leave_id, reverse=True)[offset : offset + limit]

    def count_for_user(self, *, user_id, status=None):
        return len([l for l in self.leaves.values() if l.user_id == user_id and (status is None or l.status == status)])

    def _filtered(self, status, leave_type, user_id):
        return [
            l
            for l in sorted(self.leaves.values(), key=lambda l: l.leave_id, reverse=True)
            if (status is None or l.status == status)
            and (leave_type is None or l.leave_type == leave_type)
            and (user_id is None or l.user_id == user_id)
        ]

    def list_leaves(self, *, status=None, leave_type=None, user_id=None, limit, offset=0):
        return [self._row(l) for l in self._filtered(status, leave_type, user_id)[offset : offset + limit]]

    def count_leaves(self, *, status=None, leave_type=None, user_id=None):
        return len(self._filtered(status, leave_type, user_id))

    def list_pending(self):
        return [self._row(l) for l in self._filtered(LeaveStatus.PENDING, None, None)]

    def list_within_range(self, *, user_id, start_date, end_date):
        rows = [
            l
            for l in self.leaves.values()
            if l.user_id == user_id and l.from_date >= start_date and l.to_date <= end_date
        ]
        return sorted(rows, key=lambda l: l.from_date)

    def list_in_range(self, *, start_date, end_date, status=None):
        rows = [
            l
            for l in self.leaves.values()
            if windows_overlap(l.from_date, l.to_date, start_date, end_date) and (status is None or l.status == status)
        ]
        return [self._row(l) for l in sorted(rows, key=lambda l: l.from_date)]

    def list_created_between(self, *, user_type, start=None, end=None):
        return [l for l in self.leaves.values() if l.user_type == user_type]


@pytest.fixture
def repo():
    r = FakeLeaveRepo()
    r.add_user(7, balance=15.0, salary=30000.0)
    r.add_user(8, balance=2.0, salary=30000.0)
    return r


@pytest.fixture
def service(repo):
    return LeaveService(repo)


def _request(service, *, user_id=7, from_date="2025-06-10", to_date="2025-06-12", leave_type="annual", **kwargs):
    kwargs.setdefault("reason", "Family trip")
    kwargs.setdefault("now", NOW)
    user_type = kwargs.pop("user_type", EMP)
    return service.request_leave(
        user_id=user_id,
        user_type=user_type,
        leave_type=leave_type,
        from_date=from_date,
        to_date=to_date,
        **kwargs,
    )


def test_request_creates_pending_leave_with_day_count(service):
    leave = _request(service)

    assert leave.status == LeaveStatus.PENDING
    assert leave.total_days == 3.0
    assert leave.leave_type == LeaveType.ANNUAL
    assert leave_payload(leave)["totalDays"] == 3.0


def test_overlapping_request_is_refused(service):
    _request(service)

    with pytest.raises(OverlapConflict) as exc:
        _request(service, from_date="2025-06-11", to_date="2025-06-13")

    assert exc.value.detail["conflicts"][0]["id"] == 1


def test_rejected_and_cancelled_leaves_do_not_block(service, repo):
    first = _request(service)
    service.reject(first.leave_id, 1, "Team is short that week", now=NOW)
    second = _request(service)
    service.cancel(second.leave_id, 7, now=NOW)

    third = _request(service)

    assert third.status == LeaveStatus.PENDING


def test_other_users_leave_does_not_block(service):
    _request(service, user_id=7)

    leave = _request(service, user_id=8)

    assert leave.user_id == 8


def test_half_day_counts_half(service):
    leave = _request(service, from_date="2025-06-10", to_date="2025-06-10", is_half_day=True, half_day_type="morning")

    assert leave.total_days == 0.5
    assert leave.half_day_type == HalfDayType.MORNING


def test_half_day_without_type_is_refused(service, repo):
    with pytest.raises(ValidationError, match="half day type"):
        _request(service, from_date="2025-06-10", to_date="2025-06-10", is_half_day=True)

    assert repo.leaves == {}


def test_full_day_leave_drops_half_day_type(service, repo):
    leave = _request(service, half_day_type="afternoon")

    assert leave.is_half_day is False
    assert leave.half_day_type is None
    assert repo.leaves[leave.leave_id].half_day_type is None
    assert leave.total_days == 3.0


def test_business_rule_skips_weekends(repo):
    service = LeaveService(repo, day_count_rule=DayCountRule.BUSINESS)

    leave = _request(service, from_date="2025-06-13", to_date="2025-06-16")

    assert leave.total_days == 2.0


def test_weekend_only_window_is_refused_under_business_rule(repo):
    service = LeaveService(repo, day_count_rule=DayCountRule.BUSINESS)

    with pytest.raises(ValidationError):
        _request(service, from_date="2025-06-14", to_date="2025-06-15")


@pytest.mark.parametrize(
    "from_date,to_date,error",
    [
        ("not-a-date", "2025-06-12", InvalidDate),
        ("2025-06-10junk", "2025-06-12", InvalidDate),
        ("2025-06-10", "2025-06-1", InvalidDate),
        ("2025-05-31", "2025-06-02", PastDate),
        ("2025-06-12", "2025-06-10", InvertedRange),
    ],
)
def test_request_date_validation(service, from_date, to_date, error):
    with pytest.raises(error):
        _request(service, from_date=from_date, to_date=to_date)


def test_request_accepts_full_timestamps(service):
    leave = _request(service, from_date="2025-06-10T08:00:00Z", to_date="2025-06-12T00:00:00.000+07:00")

    assert leave.from_date.isoformat() == "2025-06-10"
    assert leave.to_date.isoformat() == "2025-06-12"


def test_request_starting_today_is_allowed(service):
    leave = _request(service, from_date="2025-06-01", to_date="2025-06-01")

    assert leave.total_days == 1.0


@pytest.mark.parametrize("reason", ["", "   ", "abcd", "x" * 501])
def test_request_reason_length(service, reason):
    with pytest.raises(ValidationError):
        _request(service, reason=reason)


def test_request_unknown_leave_type(service):
    with pytest.raises(ValidationError):
        _request(service, leave_type="vacation")


def test_approve_within_balance(service, repo):
    leave = _request(service)

    approved = service.approve(leave.leave_id, 1, notes="Enjoy", now=NOW)

    assert approved.status == LeaveStatus.APPROVED
    assert approved.approved_by == 1
    assert approved.salary_deduction == 0.0
    assert approved.balance_deducted == 3.0
    assert repo.balances[7] == 12.0


def test_approve_beyond_balance_clamps_and_deducts_salary(service, repo):
    leave = _request(service, user_id=8, from_date="2025-06-10", to_date="2025-06-14")

    approved = service.approve(leave.leave_id, 1, now=NOW)

    assert repo.balances[8] == 0.0
    assert approved.balance_deducted == 2.0
    assert approved.salary_deduction == pytest.approx(3000.0)


def test_approve_admin_leave_touches_no_balance(service, repo):
    leave = _request(service, user_id=7, user_type=UserType.ADMIN)

    approved = service.approve(leave.leave_id, 1, now=NOW)

    assert approved.balance_deducted == 0.0
    assert repo.balances[7] == 15.0


def test_approve_twice_fails(service):
    leave = _request(service)
    service.approve(leave.leave_id, 1, now=NOW)

    with pytest.raises(NotPending):
        service.approve(leave.leave_id, 1, now=NOW)


def test_approve_missing_leave(service):
    with pytest.raises(LeaveNotFound):
        service.approve(99, 1, now=NOW)


def test_approve_notes_too_long(service):
    leave = _request(service)

    with pytest.raises(ValidationError):
        service.approve(leave.leave_id, 1, notes="x" * 501, now=NOW)


def test_reject_requires_reason(service):
    leave = _request(service)

    with pytest.raises(ValidationError):
        service.reject(leave.leave_id, 1, "no", now=NOW)

    rejected = service.reject(leave.leave_id, 1, "  Peak season  ", now=NOW)
    assert rejected.status == LeaveStatus.REJECTED
    assert rejected.rejection_reason == "Peak season"

    with pytest.raises(NotPending):
        service.reject(leave.leave_id, 1, "Peak season", now=NOW)


def test_cancel_pending_by_owner(service):
    leave = _request(service)

    cancelled = service.cancel(leave.leave_id, 7, now=NOW)

    assert cancelled.status == LeaveStatus.CANCELLED


def test_cancel_by_someone_else_is_forbidden(service):
    leave = _request(service)

    with pytest.raises(AuthorizationError):
        service.cancel(leave.leave_id, 8, now=NOW)


def test_cancel_approved_before_start_restores_balance(service, repo):
    leave = _request(service, user_id=8, from_date="2025-06-10", to_date="2025-06-14")
    service.approve(leave.leave_id, 1, now=NOW)
    assert repo.balances[8] == 0.0

    service.cancel(leave.leave_id, 8, now=NOW)

    assert repo.balances[8] == 2.0


def test_cancel_approved_after_start_is_refused(service):
    leave = _request(service)
    service.approve(leave.leave_id, 1, now=NOW)

    with pytest.raises(CancelNotAllowed):
        service.cancel(leave.leave_id, 7, now=datetime(2025, 6, 10, 8, 0))


def test_cancel_rejected_is_refused(service):
    leave = _request(service)
    service.reject(leave.leave_id, 1, "Peak season", now=NOW)

    with pytest.raises(CancelNotAllowed):
        service.cancel(leave.leave_id, 7, now=NOW)


def test_pending_list_is_newest_first(service):
    _request(service, from_date="2025-06-10", to_date="2025-06-10")
    _request(service, from_date="2025-06-20", to_date="2025-06-20")

    rows = service.get_pending_leaves()

    assert [r.leave.leave_id for r in rows] == [2, 1]


def test_overlapping_range_covers_all_users(service):
    _request(service, user_id=7, from_date="2025-06-10", to_date="2025-06-12")
    _request(service, user_id=7, from_date="2025-06-20", to_date="2025-06-21")
    _request(service, user_id=8, from_date="2025-06-14", to_date="2025-06-14")

    rows = service.get_leaves_overlapping_range("2025-06-12", "2025-06-15")

    assert [r.leave.leave_id for r in rows] == [1, 3]

    with pytest.raises(InvertedRange):
        service.get_leaves_overlapping_range("2025-06-15", "2025-06-12")


def test_date_range_keeps_only_own_leaves_inside_window(service):
    _request(service, user_id=7, from_date="2025-06-10", to_date="2025-06-12")
    _request(service, user_id=7, from_date="2025-06-13", to_date="2025-06-13")
    _request(service, user_id=8, from_date="2025-06-11", to_date="2025-06-11")

    assert [l.leave_id for l in service.get_leaves_by_date_range(7, "2025-06-12", "2025-06-15")] == [2]
    assert [l.leave_id for l in service.get_leaves_by_date_range(7, "2025-06-09", "2025-06-13")] == [1, 2]

    with pytest.raises(InvertedRange):
        service.get_leaves_by_date_range(7, "2025-06-15", "2025-06-12")


def test_my_leaves_paginated(service):
    for day in (10, 15, 20):
        _request(service, from_date=f"2025-06-{day}", to_date=f"2025-06-{day}")

    page = service.list_my_leaves(7, page=2, limit=2)

    assert [l.leave_id for l in page.items] == [1]
    assert page.pagination()["hasPrevPage"] is True
    assert page.pagination()["totalPages"] == 2


def test_stats_counts_by_status_and_type(service):
    a = _request(service, from_date="2025-06-10", to_date="2025-06-10")
    b = _request(service, from_date="2025-06-11", to_date="2025-06-11", leave_type="sick")
    _request(service, from_date="2025-06-12", to_date="2025-06-12", leave_type="sick")
    service.approve(a.leave_id, 1, now=NOW)
    service.reject(b.leave_id, 1, "Not this time", now=NOW)

    stats = service.get_stats()

    assert stats["totalLeaves"] == 3
    assert stats["approvedLeaves"] == 1
    assert stats["rejectedLeaves"] == 1
    assert stats["pendingLeaves"] == 1
    assert stats["approvalRate"] == 33
    assert stats["leaveTypeStats"][0]["type"] == "sick"
    assert stats["leaveTypeStats"][0]["total"] == 2
