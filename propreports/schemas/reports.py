"""
Report Schemas
Month buckets, the validated date range and the flat export table.
"""
from __future__ import annotations

from datetime import date
from typing import List, Optional

from pydantic import BaseModel, model_validator


# ─────────────────── Buckets ───────────────────

class MonthBucket(BaseModel):
    """One calendar month of a reporting period; accumulators start at zero."""
    key: str                      # "YYYY-MM"
    label: str                    # "Mon YYYY"
    period_start: date
    period_end: date

    # Ledger sums
    revenue: float = 0.0
    collections: float = 0.0
    payment_count: int = 0
    amount_due: float = 0.0
    amount_paid: float = 0.0
    outstanding: float = 0.0
    expenses: float = 0.0

    # Tenancy events
    move_ins: int = 0
    move_outs: int = 0
    total_units: int = 0
    occupied_units: int = 0

    # Derived
    net_income: float = 0.0
    collection_rate: float = 0.0
    average_payment: float = 0.0
    occupancy_rate: float = 0.0


# ─────────────────── Date range ───────────────────

class DateRange(BaseModel):
    start_date: date
    end_date: date
    preset: Optional[str] = None

    @model_validator(mode="after")
    def _check_bounds(self) -> "DateRange":
        from propreports.services.periods import validate_date_range

        validate_date_range(self.start_date, self.end_date)
        return self

    def contains(self, value: Optional[date]) -> bool:
        return value is not None and self.start_date <= value <= self.end_date

    def as_dict(self) -> dict:
        return {
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "preset": self.preset,
        }


# ─────────────────── Export ───────────────────

class ReportTable(BaseModel):
    headers: List[str]
    rows: List[List[str]]
