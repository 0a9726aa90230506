"""Day counting and pay arithmetic for leave requests.

Two counting rules exist. `calendar_days` counts every day of the window,
both endpoints included. `business_days` skips Saturdays and Sundays. Which
one applies is a deployment setting (`LEAVE_DAY_COUNT_RULE`).
"""

from __future__ import annotations

from datetime import date, timedelta

from ..core.constants import SALARY_MONTH_DAYS
from ..core.enums import DayCountRule
from .model import LeaveSettlement

SATURDAY = 5


def calendar_days(from_date: date, to_date: date, is_half_day: bool = False) -> float:
    if is_half_day:
        return 0.5
    return float((to_date - from_date).days + 1)


def business_days(from_date: date, to_date: date, is_half_day: bool = False) -> float:
    count = 0
    day = from_date
    while day <= to_date:
        if day.weekday() < SATURDAY:
            count += 1
        day += timedelta(days=1)
    return count * 0.5 if is_half_day else float(count)


def count_days(rule: DayCountRule, from_date: date, to_date: date, is_half_day: bool = False) -> float:
    if rule == DayCountRule.BUSINESS:
        return business_days(from_date, to_date, is_half_day)
    return calendar_days(from_date, to_date, is_half_day)


def windows_overlap(a_from: date, a_to: date, b_from: date, b_to: date) -> bool:
    return a_from <= b_to and a_to >= b_from


def calculate_salary_deduction(total_days: float, user_salary: float, leave_balance: float) -> float:
    """Unpaid days beyond the balance, priced at a fixed 30-day month."""
    if total_days <= leave_balance:
        return 0.0
    extra_days = total_days - leave_balance
    return extra_days * (user_salary / SALARY_MONTH_DAYS)


def settle_leave_balance(total_days: float, leave_balance: float, user_salary: float) -> LeaveSettlement:
    balance = max(float(leave_balance), 0.0)
    new_balance = max(0.0, balance - total_days)
    return LeaveSettlement(
        balance_deducted=balance - new_balance,
        new_balance=new_balance,
        salary_deduction=calculate_salary_deduction(total_days, user_salary, balance),
    )
