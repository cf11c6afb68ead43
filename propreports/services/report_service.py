"""
Report Service
Builds the financial, occupancy, tenant analytics and property reports.

Every report is recomputed from scratch on each call from the record source:
properties are the root query and must load; every other collection degrades
to empty on failure so the report still completes.
"""
from __future__ import annotations

import calendar
import logging
import uuid
from datetime import date
from typing import Any, Callable, Dict, Iterable, List, Optional

from propreports.core.config import settings
from propreports.schemas.records import (
    InvoiceRecord,
    MaintenanceRecord,
    PaymentRecord,
    PropertyRecord,
    TenancyRecord,
    TenantRecord,
    UnitRecord,
)
from propreports.schemas.reports import DateRange, MonthBucket
from propreports.services import metrics
from propreports.services.aggregation import (
    aggregate_invoices,
    aggregate_payments,
    apply_derived_metrics,
    count_events,
)
from propreports.services.periods import add_months, month_buckets, month_end
from propreports.services.ranking import (
    NO_PAYMENT_DAYS,
    rank_descending,
    risk_score,
    split_risk_tiers,
    top_n,
)
from propreports.services.record_source import RecordSource, RecordSourceError

logger = logging.getLogger(__name__)


# Expense categories shown on the P&L; expenses are not tracked yet so each is 0
PROFIT_LOSS_EXPENSE_CATEGORIES = (
    "Maintenance",
    "Utilities",
    "Insurance",
    "Property Tax",
    "Management Fees",
)

OPEN_MAINTENANCE_STATUSES = ("PENDING", "IN_PROGRESS")


class ReportUnavailableError(Exception):
    """The root query failed; the whole report can be retried."""
    retryable = True

    def __init__(self, message: str = "Report data is temporarily unavailable. Please try again."):
        self.message = message
        super().__init__(message)


# ═══════════════════════════════════════════════════════════════════════════════
# HELPERS
# ═══════════════════════════════════════════════════════════════════════════════

def _r(value: float) -> float:
    return round(value, 2)


def _iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value else None


def tenant_balances(invoices: Iterable[InvoiceRecord]) -> Dict[uuid.UUID, float]:
    """Σ(due − paid) over each tenant's open invoices; credits are kept."""
    balances: Dict[uuid.UUID, float] = {}
    for inv in invoices:
        if inv.tenant_id is None or not inv.is_open:
            continue
        balances[inv.tenant_id] = balances.get(inv.tenant_id, 0.0) + (inv.amount_due_kes - inv.amount_paid_kes)
    return balances


def last_payment_dates(payments: Iterable[PaymentRecord]) -> Dict[uuid.UUID, date]:
    latest: Dict[uuid.UUID, date] = {}
    for p in payments:
        if p.tenant_id not in latest or p.payment_date > latest[p.tenant_id]:
            latest[p.tenant_id] = p.payment_date
    return latest


def first_payment_by_invoice(payments: Iterable[PaymentRecord]) -> Dict[uuid.UUID, date]:
    earliest: Dict[uuid.UUID, date] = {}
    for p in payments:
        if p.invoice_id is None:
            continue
        if p.invoice_id not in earliest or p.payment_date < earliest[p.invoice_id]:
            earliest[p.invoice_id] = p.payment_date
    return earliest


def _covers(tenancy: TenancyRecord, day: date) -> bool:
    if tenancy.start_date is None or tenancy.start_date > day:
        return False
    return tenancy.end_date is None or tenancy.end_date >= day


def _completed_tenancy_days(tenancies: Iterable[TenancyRecord]) -> int:
    completed = [t for t in tenancies if t.start_date and t.end_date]
    total = sum((t.end_date - t.start_date).days for t in completed)
    return metrics.average_days(total, len(completed))


class Portfolio:
    """The landlord's properties, active units and tenants with lookups."""

    def __init__(
        self,
        properties: List[PropertyRecord],
        units: List[UnitRecord],
        tenants: List[TenantRecord],
    ):
        self.properties = properties
        self.units = [u for u in units if u.is_active]
        self.tenants = tenants

        self.property_by_id = {p.id: p for p in properties}
        self.unit_by_id = {u.id: u for u in self.units}
        self.tenant_by_id = {t.id: t for t in tenants}

        # First ACTIVE tenant per unit is the occupant
        self.occupant_by_unit: Dict[uuid.UUID, TenantRecord] = {}
        for t in tenants:
            if t.is_active and t.current_unit_id in self.unit_by_id:
                self.occupant_by_unit.setdefault(t.current_unit_id, t)

    @property
    def property_ids(self) -> List[uuid.UUID]:
        return [p.id for p in self.properties]

    @property
    def unit_ids(self) -> List[uuid.UUID]:
        return [u.id for u in self.units]

    @property
    def tenant_ids(self) -> List[uuid.UUID]:
        return [t.id for t in self.tenants]

    def units_of(self, property_id: uuid.UUID) -> List[UnitRecord]:
        return [u for u in self.units if u.property_id == property_id]

    def property_name(self, unit_id: Optional[uuid.UUID]) -> str:
        unit = self.unit_by_id.get(unit_id) if unit_id else None
        prop = self.property_by_id.get(unit.property_id) if unit else None
        return prop.name if prop else "Unknown"

    def unit_label(self, unit_id: Optional[uuid.UUID]) -> str:
        unit = self.unit_by_id.get(unit_id) if unit_id else None
        return unit.unit_label if unit else "Unknown"

    def property_of_tenant(self, tenant_id: uuid.UUID) -> Optional[uuid.UUID]:
        tenant = self.tenant_by_id.get(tenant_id)
        unit = self.unit_by_id.get(tenant.current_unit_id) if tenant and tenant.current_unit_id else None
        return unit.property_id if unit else None

    def is_occupied(self, unit_id: uuid.UUID) -> bool:
        return unit_id in self.occupant_by_unit

    def vacant_since(self, unit_id: uuid.UUID, tenancies: Iterable[TenancyRecord] = ()) -> Optional[date]:
        """Latest tenant or tenancy end date recorded for the unit."""
        ends = [t.end_date for t in self.tenants if t.current_unit_id == unit_id and t.end_date]
        ends += [t.end_date for t in tenancies if t.unit_id == unit_id and t.end_date]
        return max(ends) if ends else None


# ═══════════════════════════════════════════════════════════════════════════════
# SERVICE
# ═══════════════════════════════════════════════════════════════════════════════

class ReportService:
    def __init__(self, source: RecordSource, today: Optional[date] = None):
        self.source = source
        self.today = today or date.today()

    # ─── Loading ───

    def _fetch(self, label: str, loader: Callable[..., List[Any]], *args, **kwargs) -> List[Any]:
        """Run a non-root query; on failure log and continue with nothing."""
        try:
            return loader(*args, **kwargs)
        except RecordSourceError as e:
            logger.warning(f"[WARN] {label} unavailable, continuing without them: {e}")
            return []

    def _portfolio(self) -> Portfolio:
        try:
            properties = self.source.properties()
        except RecordSourceError as e:
            logger.error(f"Properties query failed for landlord {self.source.scope.landlord_id}: {e}")
            raise ReportUnavailableError() from e

        units = self._fetch("units", self.source.units, [p.id for p in properties])
        tenants = self._fetch("tenants", self.source.tenants, [u.id for u in units if u.is_active])
        return Portfolio(properties, units, tenants)

    def _days_since(self, value: Optional[date]) -> int:
        return (self.today - value).days if value else 0

    # ═══ FINANCIAL ═══

    def financial_report(self, date_range: DateRange, year: Optional[int] = None) -> Dict[str, Any]:
        portfolio = self._portfolio()
        year = year or date_range.end_date.year

        payments = self._fetch(
            "payments", self.source.payments,
            portfolio.tenant_ids, date_range.start_date, date_range.end_date,
        )
        invoices = self._fetch(
            "rent invoices", self.source.invoices,
            portfolio.unit_ids, date_range.start_date, date_range.end_date,
        )
        all_payments = self._fetch("payment history", self.source.payments, portfolio.tenant_ids)
        all_invoices = self._fetch("invoice history", self.source.invoices, portfolio.unit_ids)

        buckets = month_buckets(date_range.start_date, date_range.end_date)
        aggregate_payments(buckets, payments)
        aggregate_invoices(buckets, invoices)
        apply_derived_metrics(buckets)

        revenue = sum(b.revenue for b in buckets)
        due = sum(b.amount_due for b in buckets)
        paid = sum(b.amount_paid for b in buckets)
        totals = {
            "revenue": _r(revenue),
            "expenses": 0.0,
            "net_income": _r(metrics.net_income(revenue)),
            "collections": _r(sum(b.collections for b in buckets)),
            "outstanding": _r(sum(b.outstanding for b in buckets)),
            "payment_count": sum(b.payment_count for b in buckets),
            "collection_rate": _r(metrics.collection_rate(paid, due)),
        }

        return {
            "date_range": date_range.as_dict(),
            "currency": settings.CURRENCY,
            "expenses_tracked": False,
            "monthly_revenue": [self._financial_row(b) for b in buckets],
            "totals": totals,
            "year_to_date": self._year_to_date(year, all_payments, all_invoices),
            "rent_roll": self._rent_roll(portfolio, all_payments, all_invoices),
            "profit_loss": self._profit_loss(revenue),
        }

    @staticmethod
    def _financial_row(bucket: MonthBucket) -> Dict[str, Any]:
        return {
            "month": bucket.key,
            "label": bucket.label,
            "revenue": _r(bucket.revenue),
            "expenses": _r(bucket.expenses),
            "net_income": _r(bucket.net_income),
            "collections": _r(bucket.collections),
            "outstanding": _r(bucket.outstanding),
            "payment_count": bucket.payment_count,
            "amount_due": _r(bucket.amount_due),
            "amount_paid": _r(bucket.amount_paid),
            "collection_rate": _r(bucket.collection_rate),
            "average_payment": _r(bucket.average_payment),
        }

    def _year_to_date(
        self,
        year: int,
        payments: List[PaymentRecord],
        invoices: List[InvoiceRecord],
    ) -> Dict[str, Any]:
        revenue = sum(p.amount_kes for p in payments if p.payment_date.year == year)
        year_invoices = [i for i in invoices if i.period_start.year == year]
        due = sum(i.amount_due_kes for i in year_invoices)
        paid = sum(i.amount_paid_kes for i in year_invoices)
        outstanding = sum(max(0.0, i.amount_due_kes - i.amount_paid_kes) for i in invoices if i.is_open)
        return {
            "year": year,
            "total_revenue": _r(revenue),
            "total_expenses": 0.0,
            "net_income": _r(metrics.net_income(revenue)),
            "collection_rate": _r(metrics.collection_rate(paid, due)),
            "outstanding_amount": _r(outstanding),
        }

    def _rent_roll(
        self,
        portfolio: Portfolio,
        payments: List[PaymentRecord],
        invoices: List[InvoiceRecord],
    ) -> List[Dict[str, Any]]:
        balances = tenant_balances(invoices)
        last_paid = last_payment_dates(payments)
        rows = []
        for prop in portfolio.properties:
            for unit in portfolio.units_of(prop.id):
                tenant = portfolio.occupant_by_unit.get(unit.id)
                rows.append({
                    "property_name": prop.name,
                    "unit_label": unit.unit_label,
                    "tenant_name": tenant.full_name if tenant else "Vacant",
                    "monthly_rent": _r(unit.monthly_rent_kes),
                    "status": tenant.status if tenant else "VACANT",
                    "last_payment_date": _iso(last_paid.get(tenant.id)) if tenant else None,
                    "balance": _r(balances.get(tenant.id, 0.0)) if tenant else 0.0,
                })
        return rows

    @staticmethod
    def _profit_loss(revenue: float) -> Dict[str, Any]:
        income = [{
            "category": "Rental Income",
            "amount": _r(revenue),
            "percentage": _r(metrics.percentage_of(revenue, revenue)),
        }]
        expenses = [
            {"category": name, "amount": 0.0, "percentage": 0.0}
            for name in PROFIT_LOSS_EXPENSE_CATEGORIES
        ]
        net = metrics.net_income(revenue)
        return {
            "income": income,
            "expenses": expenses,
            "total_income": _r(revenue),
            "total_expenses": 0.0,
            "net_income": _r(net),
            "net_margin": _r(metrics.percentage_of(net, revenue)),
            "expenses_tracked": False,
        }

    # ═══ OCCUPANCY ═══

    def occupancy_report(self, date_range: DateRange) -> Dict[str, Any]:
        portfolio = self._portfolio()
        tenancies = self._fetch("tenancy agreements", self.source.tenancies, portfolio.unit_ids)

        return {
            "date_range": date_range.as_dict(),
            "overall_stats": self._occupancy_stats(portfolio),
            "property_breakdown": [self._property_occupancy(portfolio, p) for p in portfolio.properties],
            "occupancy_trends": self._occupancy_trends(portfolio, tenancies, date_range),
            "vacant_units": self._vacant_units(portfolio, tenancies),
            "tenancy_analysis": self._tenancy_analysis(tenancies, date_range),
        }

    def _occupancy_stats(self, portfolio: Portfolio) -> Dict[str, Any]:
        total = len(portfolio.units)
        occupied = len(portfolio.occupant_by_unit)

        lengths = [
            ((t.end_date or self.today) - t.start_date).days
            for t in portfolio.occupant_by_unit.values()
            if t.start_date
        ]
        return {
            "total_units": total,
            "occupied_units": occupied,
            "vacant_units": total - occupied,
            "occupancy_rate": _r(metrics.occupancy_rate(occupied, total)),
            "average_tenancy_length": metrics.average_days(sum(lengths), len(lengths)),
        }

    @staticmethod
    def _property_occupancy(portfolio: Portfolio, prop: PropertyRecord) -> Dict[str, Any]:
        units = portfolio.units_of(prop.id)
        occupied = [u for u in units if portfolio.is_occupied(u.id)]
        return {
            "property_id": str(prop.id),
            "property_name": prop.name,
            "total_units": len(units),
            "occupied_units": len(occupied),
            "vacant_units": len(units) - len(occupied),
            "occupancy_rate": _r(metrics.occupancy_rate(len(occupied), len(units))),
            "monthly_rent_potential": _r(sum(u.monthly_rent_kes for u in units)),
            "monthly_rent_actual": _r(sum(u.monthly_rent_kes for u in occupied)),
        }

    def _occupancy_trends(
        self,
        portfolio: Portfolio,
        tenancies: List[TenancyRecord],
        date_range: DateRange,
    ) -> List[Dict[str, Any]]:
        unit_ids = set(portfolio.unit_ids)
        in_scope = [t for t in tenancies if t.unit_id in unit_ids]

        buckets = month_buckets(date_range.start_date, date_range.end_date)
        count_events(buckets, in_scope, "start_date", "move_ins")
        count_events(buckets, in_scope, "end_date", "move_outs")
        for bucket in buckets:
            # Occupancy as of month end, or today for the running month
            as_of = min(bucket.period_end, self.today)
            bucket.total_units = len(unit_ids)
            bucket.occupied_units = len({t.unit_id for t in in_scope if _covers(t, as_of)})
        apply_derived_metrics(buckets)

        return [
            {
                "month": b.key,
                "label": b.label,
                "move_ins": b.move_ins,
                "move_outs": b.move_outs,
                "total_units": b.total_units,
                "occupied_units": b.occupied_units,
                "occupancy_rate": _r(b.occupancy_rate),
            }
            for b in buckets
        ]

    def _vacant_units(self, portfolio: Portfolio, tenancies: List[TenancyRecord]) -> List[Dict[str, Any]]:
        rows = []
        for prop in portfolio.properties:
            for unit in portfolio.units_of(prop.id):
                if portfolio.is_occupied(unit.id):
                    continue
                since = portfolio.vacant_since(unit.id, tenancies)
                rows.append({
                    "property_name": prop.name,
                    "unit_label": unit.unit_label,
                    "monthly_rent": _r(unit.monthly_rent_kes),
                    "vacant_since": _iso(since),
                    "days_vacant": self._days_since(since),
                })
        return rank_descending(rows, key=lambda r: r["days_vacant"])

    @staticmethod
    def _tenancy_analysis(tenancies: List[TenancyRecord], date_range: DateRange) -> Dict[str, Any]:
        total = len(tenancies)
        active = sum(1 for t in tenancies if t.status == "ACTIVE")

        seasonal = {m: {"move_ins": 0, "move_outs": 0} for m in range(1, 13)}
        for t in tenancies:
            if date_range.contains(t.start_date):
                seasonal[t.start_date.month]["move_ins"] += 1
            if date_range.contains(t.end_date):
                seasonal[t.end_date.month]["move_outs"] += 1

        return {
            "average_tenancy_length": _completed_tenancy_days(tenancies),
            "total_tenancies": total,
            "active_tenancies": active,
            "turnover_rate": _r(metrics.turnover_rate(total - active, total)),
            "retention_rate": _r(metrics.retention_rate(active, total - active)),
            "seasonal_trends": [
                {"month": calendar.month_abbr[m], **counts} for m, counts in seasonal.items()
            ],
        }

    # ═══ TENANT ANALYTICS ═══

    def tenant_report(self, date_range: DateRange) -> Dict[str, Any]:
        portfolio = self._portfolio()
        payments = self._fetch("payments", self.source.payments, portfolio.tenant_ids)
        invoices = self._fetch("rent invoices", self.source.invoices, portfolio.unit_ids)
        tenancies = self._fetch("tenancy agreements", self.source.tenancies, portfolio.unit_ids)

        balances = tenant_balances(invoices)
        return {
            "date_range": date_range.as_dict(),
            "summary": self._tenant_summary(portfolio, balances),
            "payment_behavior": self._payment_behavior(payments, invoices, date_range),
            "top_tenants": self._top_tenants(portfolio, payments, invoices, date_range),
            "risk_analysis": self._risk_analysis(portfolio, balances, last_payment_dates(payments)),
            "retention": self._tenant_retention(tenancies, date_range),
        }

    @staticmethod
    def _tenant_summary(portfolio: Portfolio, balances: Dict[uuid.UUID, float]) -> Dict[str, Any]:
        total = len(portfolio.tenants)
        active = sum(1 for t in portfolio.tenants if t.is_active)
        owing = [balances[t.id] for t in portfolio.tenants if balances.get(t.id, 0.0) > 0]
        outstanding = sum(owing)
        return {
            "total_tenants": total,
            "active_tenants": active,
            "inactive_tenants": total - active,
            "total_outstanding": _r(outstanding),
            "average_balance": _r(outstanding / len(owing)) if owing else 0.0,
        }

    @staticmethod
    def _payment_behavior(
        payments: List[PaymentRecord],
        invoices: List[InvoiceRecord],
        date_range: DateRange,
    ) -> Dict[str, Any]:
        first_paid = first_payment_by_invoice(payments)
        on_time = late = missed = delay_days = 0

        for inv in invoices:
            if not date_range.contains(inv.due_date):
                continue
            if inv.status == "PAID":
                paid_on = first_paid.get(inv.id)
                if paid_on is None:
                    continue
                if paid_on <= inv.due_date:
                    on_time += 1
                else:
                    late += 1
                    delay_days += (paid_on - inv.due_date).days
            elif inv.status == "OVERDUE":
                missed += 1

        return {
            "on_time_payments": on_time,
            "late_payments": late,
            "missed_payments": missed,
            "average_payment_delay": metrics.average_days(delay_days, late),
            "on_time_rate": _r(metrics.on_time_rate(on_time, on_time + late + missed)),
        }

    @staticmethod
    def _top_tenants(
        portfolio: Portfolio,
        payments: List[PaymentRecord],
        invoices: List[InvoiceRecord],
        date_range: DateRange,
    ) -> List[Dict[str, Any]]:
        invoice_by_id = {i.id: i for i in invoices}
        groups: Dict[uuid.UUID, Dict[str, Any]] = {}

        for p in payments:
            if not date_range.contains(p.payment_date):
                continue
            tenant = portfolio.tenant_by_id.get(p.tenant_id)
            if p.tenant_id not in groups:
                unit_id = tenant.current_unit_id if tenant else None
                groups[p.tenant_id] = {
                    "tenant_id": str(p.tenant_id),
                    "tenant_name": tenant.full_name if tenant else "Unknown",
                    "property_name": portfolio.property_name(unit_id),
                    "unit_label": portfolio.unit_label(unit_id),
                    "total_paid": 0.0,
                    "payment_count": 0,
                    "on_time_payments": 0,
                }
            group = groups[p.tenant_id]
            group["total_paid"] += p.amount_kes
            group["payment_count"] += 1

            # Payments not linked to a dated invoice count as on time
            inv = invoice_by_id.get(p.invoice_id) if p.invoice_id else None
            if inv is None or inv.due_date is None or p.payment_date <= inv.due_date:
                group["on_time_payments"] += 1

        ranked = top_n(groups.values(), key=lambda g: g["total_paid"])
        return [
            {
                **g,
                "total_paid": _r(g["total_paid"]),
                "average_payment": _r(metrics.average_payment(g["total_paid"], g["payment_count"])),
                "on_time_rate": _r(metrics.on_time_rate(g["on_time_payments"], g["payment_count"])),
            }
            for g in ranked
        ]

    def _risk_analysis(
        self,
        portfolio: Portfolio,
        balances: Dict[uuid.UUID, float],
        last_paid: Dict[uuid.UUID, date],
    ) -> Dict[str, Any]:
        scored = []
        for tenant in portfolio.tenants:
            if not tenant.is_active:
                continue
            balance = balances.get(tenant.id, 0.0)
            last = last_paid.get(tenant.id)
            days = (self.today - last).days if last else NO_PAYMENT_DAYS
            score = risk_score(balance, days)
            if score <= 0:
                continue
            scored.append({
                "tenant_id": str(tenant.id),
                "tenant_name": tenant.full_name,
                "property_name": portfolio.property_name(tenant.current_unit_id),
                "unit_label": portfolio.unit_label(tenant.current_unit_id),
                "balance": _r(balance),
                "days_since_last_payment": days,
                "risk_score": _r(score),
            })

        tiers = split_risk_tiers(scored)
        return {**tiers, "scored_tenants": len(scored)}

    @staticmethod
    def _tenant_retention(tenancies: List[TenancyRecord], date_range: DateRange) -> Dict[str, Any]:
        new = sum(1 for t in tenancies if date_range.contains(t.start_date))
        lost = sum(1 for t in tenancies if date_range.contains(t.end_date))
        retained = sum(1 for t in tenancies if t.status == "ACTIVE")
        return {
            "new_tenants": new,
            "retained_tenants": retained,
            "lost_tenants": lost,
            "retention_rate": _r(metrics.retention_rate(retained, lost)),
            "average_tenancy_length": _completed_tenancy_days(tenancies),
        }

    # ═══ PROPERTY ═══

    def property_report(self, date_range: DateRange) -> Dict[str, Any]:
        portfolio = self._portfolio()
        payments = self._fetch("payments", self.source.payments, portfolio.tenant_ids)
        invoices = self._fetch("rent invoices", self.source.invoices, portfolio.unit_ids)
        tenancies = self._fetch("tenancy agreements", self.source.tenancies, portfolio.unit_ids)

        return {
            "date_range": date_range.as_dict(),
            "performance": self._property_performance(portfolio, payments, invoices, date_range),
            "unit_analysis": self._unit_analysis(portfolio, payments, invoices, tenancies),
            "revenue_comparison": self._revenue_comparison(portfolio, payments),
            "maintenance_overview": self._maintenance_overview(portfolio),
        }

    def _revenue_by_property(
        self,
        portfolio: Portfolio,
        payments: Iterable[PaymentRecord],
        start: date,
        end: date,
    ) -> Dict[uuid.UUID, float]:
        totals: Dict[uuid.UUID, float] = {}
        for p in payments:
            if not start <= p.payment_date <= end:
                continue
            property_id = portfolio.property_of_tenant(p.tenant_id)
            if property_id is not None:
                totals[property_id] = totals.get(property_id, 0.0) + p.amount_kes
        return totals

    def _property_performance(
        self,
        portfolio: Portfolio,
        payments: List[PaymentRecord],
        invoices: List[InvoiceRecord],
        date_range: DateRange,
    ) -> List[Dict[str, Any]]:
        revenue = self._revenue_by_property(portfolio, payments, date_range.start_date, date_range.end_date)

        billed: Dict[uuid.UUID, List[float]] = {}
        for inv in invoices:
            unit = portfolio.unit_by_id.get(inv.unit_id)
            if unit is None or not date_range.contains(inv.period_start):
                continue
            due_paid = billed.setdefault(unit.property_id, [0.0, 0.0])
            due_paid[0] += inv.amount_due_kes
            due_paid[1] += inv.amount_paid_kes

        rows = []
        for prop in portfolio.properties:
            occupancy = self._property_occupancy(portfolio, prop)
            due, paid = billed.get(prop.id, [0.0, 0.0])
            potential = sum(u.monthly_rent_kes for u in portfolio.units_of(prop.id))
            rows.append({
                "property_id": occupancy["property_id"],
                "property_name": prop.name,
                "total_units": occupancy["total_units"],
                "occupied_units": occupancy["occupied_units"],
                "occupancy_rate": occupancy["occupancy_rate"],
                "monthly_rent_potential": occupancy["monthly_rent_potential"],
                "monthly_rent_actual": occupancy["monthly_rent_actual"],
                "collection_rate": _r(metrics.collection_rate(paid, due)),
                "average_rent": _r(metrics.average_payment(potential, occupancy["total_units"])),
                "total_revenue": _r(revenue.get(prop.id, 0.0)),
            })
        return rows

    def _unit_analysis(
        self,
        portfolio: Portfolio,
        payments: List[PaymentRecord],
        invoices: List[InvoiceRecord],
        tenancies: List[TenancyRecord],
    ) -> List[Dict[str, Any]]:
        balances = tenant_balances(invoices)
        last_paid = last_payment_dates(payments)
        rows = []
        for prop in portfolio.properties:
            for unit in portfolio.units_of(prop.id):
                tenant = portfolio.occupant_by_unit.get(unit.id)
                rows.append({
                    "property_name": prop.name,
                    "unit_label": unit.unit_label,
                    "monthly_rent": _r(unit.monthly_rent_kes),
                    "status": "OCCUPIED" if tenant else "VACANT",
                    "tenant_name": tenant.full_name if tenant else None,
                    "last_payment_date": _iso(last_paid.get(tenant.id)) if tenant else None,
                    "balance": _r(balances.get(tenant.id, 0.0)) if tenant else 0.0,
                    "days_vacant": 0 if tenant else self._days_since(portfolio.vacant_since(unit.id, tenancies)),
                })
        return rows

    def _revenue_comparison(self, portfolio: Portfolio, payments: List[PaymentRecord]) -> List[Dict[str, Any]]:
        month_start = self.today.replace(day=1)
        previous_start = add_months(month_start, -1)
        previous_end = month_end(previous_start)
        year_start = date(self.today.year, 1, 1)

        current = self._revenue_by_property(portfolio, payments, month_start, month_end(self.today))
        previous = self._revenue_by_property(portfolio, payments, previous_start, previous_end)
        ytd = self._revenue_by_property(portfolio, payments, year_start, self.today)

        rows = []
        for prop in portfolio.properties:
            cur = current.get(prop.id, 0.0)
            prev = previous.get(prop.id, 0.0)
            rows.append({
                "property_name": prop.name,
                "current_month": _r(cur),
                "previous_month": _r(prev),
                "growth": _r(metrics.growth_percent(cur, prev)),
                "year_to_date": _r(ytd.get(prop.id, 0.0)),
            })
        return rows

    def _maintenance_overview(self, portfolio: Portfolio) -> Dict[str, Any]:
        try:
            requests = self.source.maintenance(portfolio.property_ids)
        except RecordSourceError as e:
            logger.warning(f"[WARN] Maintenance requests unavailable: {e}")
            return {"available": False, "properties": []}

        by_property: Dict[uuid.UUID, List[MaintenanceRecord]] = {}
        for req in requests:
            by_property.setdefault(req.property_id, []).append(req)

        rows = []
        for prop in portfolio.properties:
            items = by_property.get(prop.id, [])
            resolved = [r for r in items if r.status == "COMPLETED" and r.completed_at]
            resolution_days = sum((r.completed_at - r.created_at).days for r in resolved)
            rows.append({
                "property_name": prop.name,
                "total_requests": len(items),
                "pending_requests": sum(1 for r in items if r.status in OPEN_MAINTENANCE_STATUSES),
                "completed_requests": sum(1 for r in items if r.status == "COMPLETED"),
                "average_resolution_time": metrics.average_days(resolution_days, len(resolved)),
                "maintenance_costs": _r(sum(r.cost_kes for r in items)),
            })
        return {"available": True, "properties": rows}

    # ─── Dispatch ───

    def build(self, report: str, date_range: DateRange, **options) -> Dict[str, Any]:
        if report == "financial":
            return self.financial_report(date_range, year=options.get("year"))
        if report == "occupancy":
            return self.occupancy_report(date_range)
        if report == "tenants":
            return self.tenant_report(date_range)
        if report == "properties":
            return self.property_report(date_range)
        raise ValueError(f"Unknown report: {report}")


REPORT_NAMES = ("financial", "occupancy", "tenants", "properties")
