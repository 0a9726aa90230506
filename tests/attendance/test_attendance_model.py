from datetime import date, datetime

import pytest

from hrms_workflow.attendance.model import AttendanceRecord, Punch
from hrms_workflow.core.enums import AttendanceState, AttendanceStatus, UserType

DAY = date(2025, 6, 2)


def _at(hour, minute=0):
    return Punch(time=datetime(2025, 6, 2, hour, minute))


def _record(**punches):
    return AttendanceRecord(attendance_id=1, user_id=7, user_type=UserType.EMPLOYEE, work_date=DAY, **punches)


def test_state_follows_filled_punches():
    assert _record().state == AttendanceState.NOT_STARTED
    assert _record(check_in=_at(9)).state == AttendanceState.CHECKED_IN
    assert _record(check_in=_at(9), check_out=_at(12)).state == AttendanceState.CHECKED_OUT
    assert _record(check_in=_at(9), check_out=_at(12), re_check_in=_at(13)).state == AttendanceState.RE_CHECKED_IN
    assert (
        _record(check_in=_at(9), check_out=_at(12), re_check_in=_at(13), re_check_out=_at(17)).state
        == AttendanceState.RE_CHECKED_OUT
    )


def test_punch_without_predecessor_is_rejected():
    with pytest.raises(ValueError):
        _record(check_out=_at(12))

    with pytest.raises(ValueError):
        _record(check_in=_at(9), re_check_in=_at(13))


def test_punches_cannot_go_back_in_time():
    with pytest.raises(ValueError):
        _record(check_in=_at(9), check_out=_at(8))

    with pytest.raises(ValueError):
        _record(check_in=_at(9), check_out=_at(12), re_check_in=_at(11, 30))


def test_session_hours_are_not_rounded():
    record = _record(check_in=_at(9), check_out=_at(10, 20))

    assert record.first_session_hours == pytest.approx(4 / 3)
    assert record.second_session_hours == 0.0
    assert record.total_hours == pytest.approx(4 / 3)


def test_total_hours_adds_both_sessions():
    record = _record(check_in=_at(9), check_out=_at(12), re_check_in=_at(13), re_check_out=_at(17, 30))

    assert record.first_session_hours == 3.0
    assert record.second_session_hours == 4.5
    assert record.total_hours == 7.5
    assert record.check_in_count == 2


def test_status_priority():
    assert _record().status == AttendanceStatus.ABSENT
    assert _record(check_in=_at(9)).status == AttendanceStatus.PRESENT
    assert _record(check_in=_at(10), is_late=True, late_minutes=45).status == AttendanceStatus.LATE

    open_second = _record(check_in=_at(10), check_out=_at(12), re_check_in=_at(13), is_late=True, late_minutes=45)
    assert open_second.status == AttendanceStatus.RE_CHECKED_IN

    closed = _record(
        check_in=_at(10), check_out=_at(12), re_check_in=_at(13), re_check_out=_at(15), is_late=True, late_minutes=45
    )
    assert closed.status == AttendanceStatus.LATE


def test_exactly_one_gate_open_per_state():
    records = [
        _record(),
        _record(check_in=_at(9)),
        _record(check_in=_at(9), check_out=_at(12)),
        _record(check_in=_at(9), check_out=_at(12), re_check_in=_at(13)),
    ]
    for record in records:
        gates = [record.can_check_in, record.can_check_out, record.can_re_check_in, record.can_re_check_out]
        assert gates.count(True) == 1

    done = _record(check_in=_at(9), check_out=_at(12), re_check_in=_at(13), re_check_out=_at(17))
    assert not any([done.can_check_in, done.can_check_out, done.can_re_check_in, done.can_re_check_out])
