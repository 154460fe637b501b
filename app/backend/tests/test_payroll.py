from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from app.core.errors import ValidationError
from app.services.payroll import compute_payslip, count_weekdays, month_working_days


def test_weekday_counting() -> None:
    assert month_working_days(date(2024, 5, 15)) == 23
    assert month_working_days(date(2024, 2, 1)) == 21
    assert count_weekdays(date(2024, 5, 1), date(2024, 5, 7)) == 5
    assert count_weekdays(date(2024, 5, 4), date(2024, 5, 5)) == 0
    assert count_weekdays(date(2024, 5, 7), date(2024, 5, 1)) == 0


def test_full_month_pays_full_salary() -> None:
    result = compute_payslip(
        monthly_salary=Decimal("50000"),
        pay_period_start=date(2024, 5, 1),
        pay_period_end=date(2024, 5, 31),
    )

    assert result.worked_days == 23
    assert result.month_working_days == 23
    assert result.gross_salary == Decimal("50000.00")
    assert result.net_salary == Decimal("50000.00")


def test_partial_period_is_prorated() -> None:
    result = compute_payslip(
        monthly_salary=Decimal("50000"),
        pay_period_start=date(2024, 5, 1),
        pay_period_end=date(2024, 5, 7),
    )

    assert result.worked_days == 5
    assert result.daily_rate == Decimal("2173.91")
    assert result.gross_salary == Decimal("10869.57")


def test_month_spanning_period_uses_start_month_divisor() -> None:
    result = compute_payslip(
        monthly_salary=Decimal("23000"),
        pay_period_start=date(2024, 5, 27),
        pay_period_end=date(2024, 6, 7),
    )

    assert result.worked_days == 10
    assert result.month_working_days == 23
    assert result.gross_salary == Decimal("10000.00")


def test_net_applies_allowances_and_deductions() -> None:
    result = compute_payslip(
        monthly_salary=Decimal("10000"),
        pay_period_start=date(2024, 5, 1),
        pay_period_end=date(2024, 5, 31),
        allowances=Decimal("500"),
        bonuses=Decimal("1000"),
        other_deductions=Decimal("250"),
        tax_rate=Decimal("20"),
        insurance_deduction=Decimal("300"),
    )

    assert result.tax_deduction == Decimal("2000.00")
    assert result.total_deductions == Decimal("2550.00")
    assert result.net_salary == Decimal("8950.00")


@pytest.mark.parametrize(
    ("start", "end"),
    [
        (None, date(2024, 5, 31)),
        (date(2024, 5, 1), None),
        (date(2024, 5, 31), date(2024, 5, 1)),
    ],
)
def test_invalid_periods_are_rejected(start: date | None, end: date | None) -> None:
    with pytest.raises(ValidationError):
        compute_payslip(monthly_salary=Decimal("1000"), pay_period_start=start, pay_period_end=end)


def test_negative_amounts_are_rejected() -> None:
    with pytest.raises(ValidationError) as excinfo:
        compute_payslip(
            monthly_salary=Decimal("1000"),
            pay_period_start=date(2024, 5, 1),
            pay_period_end=date(2024, 5, 31),
            bonuses=Decimal("-1"),
        )

    assert excinfo.value.status_code == 422
    assert excinfo.value.detail == "bonuses must be greater or equal zero."
