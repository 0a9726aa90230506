from datetime import date

import pytest

from hrms_workflow.core.enums import DayCountRule
from hrms_workflow.leaves.calculator import (
    business_days,
    calculate_salary_deduction,
    calendar_days,
    count_days,
    settle_leave_balance,
    windows_overlap,
)


def test_calendar_days_include_both_ends():
    assert calendar_days(date(2025, 6, 10), date(2025, 6, 12)) == 3.0
    assert calendar_days(date(2025, 6, 10), date(2025, 6, 10)) == 1.0


def test_half_day_is_half_regardless_of_window():
    assert calendar_days(date(2025, 6, 10), date(2025, 6, 10), True) == 0.5


def test_business_days_skip_weekends():
    # Fri 2025-06-13 .. Mon 2025-06-16
    assert business_days(date(2025, 6, 13), date(2025, 6, 16)) == 2.0
    assert count_days(DayCountRule.BUSINESS, date(2025, 6, 14), date(2025, 6, 15)) == 0.0
    assert count_days(DayCountRule.CALENDAR, date(2025, 6, 14), date(2025, 6, 15)) == 2.0


def test_windows_overlap_is_inclusive():
    assert windows_overlap(date(2025, 6, 10), date(2025, 6, 12), date(2025, 6, 12), date(2025, 6, 14))
    assert not windows_overlap(date(2025, 6, 10), date(2025, 6, 12), date(2025, 6, 13), date(2025, 6, 14))


def test_no_deduction_within_balance():
    assert calculate_salary_deduction(3, 30000, 15) == 0.0
    assert calculate_salary_deduction(15, 30000, 15) == 0.0


def test_deduction_prices_days_beyond_balance():
    assert calculate_salary_deduction(5, 30000, 2) == pytest.approx(3000.0)


def test_settlement_clamps_balance_at_zero():
    settlement = settle_leave_balance(5, 2, 30000)

    assert settlement.new_balance == 0.0
    assert settlement.balance_deducted == 2.0
    assert settlement.salary_deduction == pytest.approx(3000.0)


def test_settlement_within_balance():
    settlement = settle_leave_balance(3, 15, 30000)

    assert settlement.new_balance == 12.0
    assert settlement.balance_deducted == 3.0
    assert settlement.salary_deduction == 0.0
