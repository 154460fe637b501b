"""Production budget and burn-rate classification.

Everything here is a pure function of its inputs. Callers recompute a
snapshot on every read; nothing is cached.
"""

from __future__ import annotations

import enum
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

ZERO = Decimal("0.00")
Q2 = Decimal("0.01")
HUNDRED = Decimal("100")

HEALTHY_CEILING = Decimal("75")
WARNING_CEILING = Decimal("100")


class BurnStatus(str, enum.Enum):
    HEALTHY = "healthy"
    WARNING = "warning"
    CRITICAL = "critical"


@dataclass(frozen=True, slots=True)
class CostLine:
    billing_rate: Decimal
    planned_hours: int


@dataclass(frozen=True, slots=True)
class BurnSnapshot:
    total_fee: Decimal
    target_profit_margin: Decimal
    production_budget: Decimal
    current_burn: Decimal
    burn_percentage: Decimal
    status: BurnStatus
    assignment_count: int


def _q2(value: Decimal) -> Decimal:
    return value.quantize(Q2, rounding=ROUND_HALF_UP)


def production_budget(total_fee: Decimal, target_profit_margin: Decimal) -> Decimal:
    return _q2(Decimal(total_fee) * (Decimal("1") - Decimal(target_profit_margin)))


def planned_cost(lines: Iterable[CostLine]) -> Decimal:
    total = ZERO
    for line in lines:
        total += Decimal(line.billing_rate) * line.planned_hours
    return _q2(total)


def _raw_percentage(current_burn: Decimal, budget: Decimal) -> Decimal:
    if budget == ZERO:
        return ZERO
    return current_burn / budget * HUNDRED


def burn_percentage(current_burn: Decimal, budget: Decimal) -> Decimal:
    return _q2(_raw_percentage(current_burn, budget))


def classify_burn(percentage: Decimal) -> BurnStatus:
    """Step function: ``<=75`` healthy, ``<=100`` warning, above critical."""

    if percentage <= HEALTHY_CEILING:
        return BurnStatus.HEALTHY
    if percentage <= WARNING_CEILING:
        return BurnStatus.WARNING
    return BurnStatus.CRITICAL


def compute_burn_snapshot(
    *,
    total_fee: Decimal,
    target_profit_margin: Decimal,
    lines: Iterable[CostLine],
) -> BurnSnapshot:
    materialized = list(lines)
    budget = production_budget(total_fee, target_profit_margin)
    burn = planned_cost(materialized)
    # Status comes from the exact ratio; only the reported figure is rounded.
    raw_percentage = _raw_percentage(burn, budget)
    # No protected budget means any spend is unbounded overage.
    status = BurnStatus.CRITICAL if budget == ZERO else classify_burn(raw_percentage)
    return BurnSnapshot(
        total_fee=_q2(Decimal(total_fee)),
        target_profit_margin=Decimal(target_profit_margin),
        production_budget=budget,
        current_burn=burn,
        burn_percentage=_q2(raw_percentage),
        status=status,
        assignment_count=len(materialized),
    )
