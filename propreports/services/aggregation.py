"""
Month-Bucket Aggregation
Folds flat payment, invoice and tenancy-event records into month buckets.

A record lands in the bucket whose key equals its date truncated to YYYY-MM.
Records whose month has no bucket are dropped unless strict=True.
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple, TypeVar

from propreports.schemas.records import InvoiceRecord, PaymentRecord
from propreports.schemas.reports import MonthBucket
from propreports.services import metrics
from propreports.services.periods import month_key

logger = logging.getLogger(__name__)

T = TypeVar("T")


class UnbucketedRecordError(ValueError):
    """A record fell outside every bucket while aggregating in strict mode."""


def index_buckets(buckets: Sequence[MonthBucket]) -> Dict[str, MonthBucket]:
    return {b.key: b for b in buckets}


def _assign(
    buckets: Sequence[MonthBucket],
    records: Iterable[T],
    date_field: str,
    strict: bool,
) -> Iterator[Tuple[MonthBucket, T]]:
    by_key = index_buckets(buckets)
    dropped = 0
    for record in records:
        value: Optional[date] = getattr(record, date_field, None)
        bucket = by_key.get(month_key(value)) if value is not None else None
        if bucket is None:
            if strict:
                raise UnbucketedRecordError(
                    f"{type(record).__name__} dated {value} has no bucket in the reporting period"
                )
            dropped += 1
            continue
        yield bucket, record
    if dropped:
        logger.debug(f"Dropped {dropped} record(s) outside the bucketed months ({date_field})")


# ═══════════════════════════════════════════════════════════════════════════════
# LEDGER
# ═══════════════════════════════════════════════════════════════════════════════

def aggregate_payments(
    buckets: Sequence[MonthBucket],
    payments: Iterable[PaymentRecord],
    strict: bool = False,
) -> List[MonthBucket]:
    for bucket, payment in _assign(buckets, payments, "payment_date", strict):
        bucket.revenue += payment.amount_kes
        bucket.collections += payment.amount_kes
        bucket.payment_count += 1
    return list(buckets)


def aggregate_invoices(
    buckets: Sequence[MonthBucket],
    invoices: Iterable[InvoiceRecord],
    date_field: str = "period_start",
    strict: bool = False,
) -> List[MonthBucket]:
    for bucket, invoice in _assign(buckets, invoices, date_field, strict):
        bucket.amount_due += invoice.amount_due_kes
        bucket.amount_paid += invoice.amount_paid_kes
        # Overpaid invoices never reduce another invoice's outstanding
        bucket.outstanding += max(0.0, invoice.amount_due_kes - invoice.amount_paid_kes)
    return list(buckets)


# ═══════════════════════════════════════════════════════════════════════════════
# EVENTS
# ═══════════════════════════════════════════════════════════════════════════════

def count_events(
    buckets: Sequence[MonthBucket],
    records: Iterable[object],
    date_field: str,
    counter: str,
    strict: bool = False,
) -> List[MonthBucket]:
    """Increment bucket.<counter> once per record dated in that month."""
    for bucket, _record in _assign(buckets, records, date_field, strict):
        setattr(bucket, counter, getattr(bucket, counter) + 1)
    return list(buckets)


def apply_derived_metrics(buckets: Sequence[MonthBucket]) -> List[MonthBucket]:
    for bucket in buckets:
        bucket.net_income = metrics.net_income(bucket.revenue, bucket.expenses)
        bucket.collection_rate = metrics.collection_rate(bucket.amount_paid, bucket.amount_due)
        bucket.average_payment = metrics.average_payment(bucket.revenue, bucket.payment_count)
        bucket.occupancy_rate = metrics.occupancy_rate(bucket.occupied_units, bucket.total_units)
    return list(buckets)
