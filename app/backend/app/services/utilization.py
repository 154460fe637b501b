"""Weekly utilization evaluation against a fixed 40 hour capacity."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, timedelta

WEEKLY_CAPACITY_HOURS = 40


@dataclass(frozen=True, slots=True)
class WeekWindow:
    start: date
    end: date


@dataclass(frozen=True, slots=True)
class UtilizationResult:
    week_start: date
    week_end: date
    total_hours_planned: int
    is_over_utilized: bool
    hours_over_limit: int
    capacity_hours: int = WEEKLY_CAPACITY_HOURS


def week_window(anchor: date) -> WeekWindow:
    """Monday-to-Sunday week containing ``anchor``."""

    start = anchor - timedelta(days=anchor.weekday())
    return WeekWindow(start=start, end=start + timedelta(days=6))


def overlaps_window(start_date: date | None, end_date: date | None, window: WeekWindow) -> bool:
    if start_date is not None and start_date > window.end:
        return False
    if end_date is not None and end_date < window.start:
        return False
    return True


def evaluate_utilization(
    window: WeekWindow,
    committed_hours: Iterable[int],
    proposed_hours: int = 0,
) -> UtilizationResult:
    """Total committed plus proposed hours for the week, compared to capacity.

    Over-utilization is judged on the total, so a single 45 hour proposal is
    over the limit even with nothing else booked.
    """

    total = sum(committed_hours) + proposed_hours
    over = max(0, total - WEEKLY_CAPACITY_HOURS)
    return UtilizationResult(
        week_start=window.start,
        week_end=window.end,
        total_hours_planned=total,
        is_over_utilized=over > 0,
        hours_over_limit=over,
    )
