"""Working-day proration of monthly salary into a pay period."""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal

from app.core.errors import ValidationError

ZERO = Decimal("0.00")
Q2 = Decimal("0.01")
HUNDRED = Decimal("100")


@dataclass(frozen=True, slots=True)
class PayslipComputation:
    monthly_salary: Decimal
    pay_period_start: date
    pay_period_end: date
    worked_days: int
    month_working_days: int
    daily_rate: Decimal
    gross_salary: Decimal
    allowances: Decimal
    bonuses: Decimal
    tax_deduction: Decimal
    insurance_deduction: Decimal
    other_deductions: Decimal
    total_deductions: Decimal
    net_salary: Decimal


def _q2(value: Decimal) -> Decimal:
    return value.quantize(Q2, rounding=ROUND_HALF_UP)


def count_weekdays(start: date, end: date) -> int:
    """Monday-Friday days in the inclusive range; 0 when ``end < start``."""

    if end < start:
        return 0
    total_days = (end - start).days + 1
    full_weeks, remainder = divmod(total_days, 7)
    weekdays = full_weeks * 5
    for offset in range(remainder):
        if (start + timedelta(days=offset)).weekday() < 5:
            weekdays += 1
    return weekdays


def month_working_days(anchor: date) -> int:
    last_day = calendar.monthrange(anchor.year, anchor.month)[1]
    return count_weekdays(date(anchor.year, anchor.month, 1), date(anchor.year, anchor.month, last_day))


def _non_negative(value: Decimal | None, field_name: str) -> Decimal:
    if value is None:
        return ZERO
    amount = Decimal(value)
    if amount < ZERO:
        raise ValidationError(f"{field_name} must be greater or equal zero.")
    return amount


def compute_payslip(
    *,
    monthly_salary: Decimal,
    pay_period_start: date | None,
    pay_period_end: date | None,
    allowances: Decimal | None = None,
    bonuses: Decimal | None = None,
    other_deductions: Decimal | None = None,
    tax_rate: Decimal | None = None,
    insurance_deduction: Decimal | None = None,
) -> PayslipComputation:
    """Prorate ``monthly_salary`` by weekdays worked over weekdays in the start month.

    A period that crosses into the next month still divides by the start
    month's working-day count.
    """

    if pay_period_start is None or pay_period_end is None:
        raise ValidationError("pay_period_start and pay_period_end are required.")
    if pay_period_end < pay_period_start:
        raise ValidationError("pay_period_end must be greater than or equal to pay_period_start.")

    salary = _non_negative(monthly_salary, "monthly_salary")
    allowance_amount = _non_negative(allowances, "allowances")
    bonus_amount = _non_negative(bonuses, "bonuses")
    other_amount = _non_negative(other_deductions, "other_deductions")
    insurance_amount = _non_negative(insurance_deduction, "insurance_deduction")
    tax_percent = _non_negative(tax_rate, "tax_rate")

    worked = count_weekdays(pay_period_start, pay_period_end)
    divisor = month_working_days(pay_period_start)
    if divisor == 0:
        daily_rate = ZERO
        gross = ZERO
    else:
        daily_rate = _q2(salary / divisor)
        gross = _q2(salary * worked / divisor)

    tax_amount = _q2(gross * tax_percent / HUNDRED)
    total_deductions = _q2(tax_amount + insurance_amount + other_amount)
    net = _q2(gross + allowance_amount + bonus_amount - total_deductions)

    return PayslipComputation(
        monthly_salary=_q2(salary),
        pay_period_start=pay_period_start,
        pay_period_end=pay_period_end,
        worked_days=worked,
        month_working_days=divisor,
        daily_rate=daily_rate,
        gross_salary=gross,
        allowances=_q2(allowance_amount),
        bonuses=_q2(bonus_amount),
        tax_deduction=tax_amount,
        insurance_deduction=_q2(insurance_amount),
        other_deductions=_q2(other_amount),
        total_deductions=total_deductions,
        net_salary=net,
    )
