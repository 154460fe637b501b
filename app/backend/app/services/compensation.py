"""Hourly billing rate derivation from a compensation profile."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

DEFAULT_TYPICAL_HOURS_PER_MONTH = 160
DEFAULT_OVERHEAD_MULTIPLIER = Decimal("2.5")

ZERO = Decimal("0.00")
Q2 = Decimal("0.01")


@dataclass(frozen=True, slots=True)
class CompensationProfile:
    monthly_salary: Decimal | None
    typical_hours_per_month: int | None = DEFAULT_TYPICAL_HOURS_PER_MONTH
    overhead_multiplier: Decimal | None = DEFAULT_OVERHEAD_MULTIPLIER


def resolve_hourly_rate(profile: CompensationProfile) -> Decimal:
    """Return ``(salary / hours) * multiplier`` rounded half-up to cents.

    Zero or missing hours fall back to 160 instead of dividing by zero.
    """

    salary = profile.monthly_salary if profile.monthly_salary is not None else ZERO
    hours = profile.typical_hours_per_month or DEFAULT_TYPICAL_HOURS_PER_MONTH
    multiplier = (
        profile.overhead_multiplier if profile.overhead_multiplier is not None else DEFAULT_OVERHEAD_MULTIPLIER
    )
    rate = Decimal(salary) / Decimal(hours) * Decimal(multiplier)
    return rate.quantize(Q2, rounding=ROUND_HALF_UP)
