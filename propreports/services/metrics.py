"""
Derived Metrics
Pure rate and ratio functions shared by every report.

Every function returns 0 when its denominator is 0, so a report never carries
NaN or infinity. Values above 100% are passed through unchanged.
"""
from __future__ import annotations

import math


def _ratio_pct(numerator: float, denominator: float) -> float:
    if not denominator:
        return 0.0
    return numerator / denominator * 100


def net_income(revenue: float, expenses: float = 0.0) -> float:
    # Expenses are not tracked yet; callers report expenses_tracked: False
    return revenue - expenses


def collection_rate(total_paid: float, total_due: float) -> float:
    return _ratio_pct(total_paid, total_due)


def occupancy_rate(occupied: int, total: int) -> float:
    return _ratio_pct(occupied, total)


def average_payment(total_paid: float, count: int) -> float:
    if not count:
        return 0.0
    return total_paid / count


def growth_percent(current: float, previous: float) -> float:
    """Period-over-period change; 0 when there is no previous value to grow from."""
    if not previous:
        return 0.0
    return (current - previous) / previous * 100


def retention_rate(retained: int, lost: int) -> float:
    return _ratio_pct(retained, retained + lost)


def turnover_rate(ended: int, total: int) -> float:
    return _ratio_pct(ended, total)


def on_time_rate(on_time: int, count: int) -> float:
    return _ratio_pct(on_time, count)


def percentage_of(part: float, whole: float) -> float:
    return _ratio_pct(part, whole)


def average_days(total_days: float, count: int) -> int:
    """Whole-day average, rounded down."""
    if not count:
        return 0
    return int(math.floor(total_days / count))
