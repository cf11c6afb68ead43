"""
Period Bucketing
Calendar-month buckets, month arithmetic and the named date-range presets.

Every report slices its period with month_buckets() so that the months shown
are identical across reports: one bucket per calendar month from the start
month through the end month inclusive, including months with no records.
"""
from __future__ import annotations

import calendar
from datetime import date, datetime
from typing import Dict, List, Optional, Tuple, Union

from propreports.core.config import settings
from propreports.schemas.reports import MonthBucket


# ═══════════════════════════════════════════════════════════════════════════════
# PRESETS
# ═══════════════════════════════════════════════════════════════════════════════

# Preset name → months to step back from today (None = start of the year)
PRESET_MONTHS: Dict[str, Optional[int]] = {
    "current_month": 0,
    "last_3_months": 3,
    "last_6_months": 6,
    "year_to_date": None,
    "last_year": 12,
    "last_2_years": 24,
}

PRESET_LABELS = {
    "current_month": "This Month",
    "last_3_months": "Last 3 Months",
    "last_6_months": "Last 6 Months",
    "year_to_date": "Year to Date",
    "last_year": "Last 12 Months",
    "last_2_years": "Last 2 Years",
}


class InvalidDateRangeError(ValueError):
    """Raised at the request boundary for a malformed reporting range."""


# ═══════════════════════════════════════════════════════════════════════════════
# MONTH ARITHMETIC
# ═══════════════════════════════════════════════════════════════════════════════

def month_key(value: Union[date, datetime, str]) -> str:
    """Truncate a date (or ISO date string) to its "YYYY-MM" bucket key."""
    if isinstance(value, str):
        return value[:7]
    return f"{value.year:04d}-{value.month:02d}"


def month_label(year: int, month: int) -> str:
    return f"{calendar.month_abbr[month]} {year}"


def month_end(value: date) -> date:
    return value.replace(day=calendar.monthrange(value.year, value.month)[1])


def add_months(value: date, months: int) -> date:
    """Step whole calendar months, clamping the day to the target month."""
    total = value.year * 12 + (value.month - 1) + months
    year, month = divmod(total, 12)
    month += 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def months_between(start: date, end: date) -> int:
    return (end.year - start.year) * 12 + (end.month - start.month)


def month_buckets(start_date: date, end_date: date) -> List[MonthBucket]:
    """
    One empty bucket per calendar month from start_date's month through
    end_date's month inclusive. An inverted range yields no buckets.
    """
    if end_date < start_date:
        return []

    buckets: List[MonthBucket] = []
    cursor = start_date.replace(day=1)
    last = end_date.replace(day=1)
    while cursor <= last:
        buckets.append(
            MonthBucket(
                key=month_key(cursor),
                label=month_label(cursor.year, cursor.month),
                period_start=cursor,
                period_end=month_end(cursor),
            )
        )
        cursor = add_months(cursor, 1)
    return buckets


# ═══════════════════════════════════════════════════════════════════════════════
# RANGES
# ═══════════════════════════════════════════════════════════════════════════════

def validate_date_range(start_date: date, end_date: date, max_span_days: Optional[int] = None) -> None:
    if end_date < start_date:
        raise InvalidDateRangeError("end_date must be on or after start_date")
    limit = max_span_days if max_span_days is not None else settings.REPORT_MAX_SPAN_DAYS
    if (end_date - start_date).days > limit:
        raise InvalidDateRangeError("Date range cannot exceed 5 years")


def resolve_preset(name: str, today: Optional[date] = None) -> Tuple[date, date]:
    """Return (start_date, end_date) for a named preset, ending today."""
    if name not in PRESET_MONTHS:
        raise InvalidDateRangeError(f"Unknown preset: {name}")
    today = today or date.today()
    months = PRESET_MONTHS[name]
    if months is None:
        return date(today.year, 1, 1), today
    if months == 0:
        return today.replace(day=1), today
    return add_months(today, -months), today


def presets(today: Optional[date] = None) -> List[dict]:
    today = today or date.today()
    result = []
    for name in PRESET_MONTHS:
        start, end = resolve_preset(name, today)
        result.append({
            "name": name,
            "label": PRESET_LABELS[name],
            "start_date": start.isoformat(),
            "end_date": end.isoformat(),
        })
    return result
