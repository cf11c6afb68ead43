"""
Record Sources
Scope-restricted reads of the landlord's portfolio and ledger.

Two backends share one interface: SqlRecordSource reads through SQLAlchemy,
SupabaseRecordSource through the hosted PostgREST API. Both return the
normalised records from propreports.schemas.records and raise
RecordSourceError on any backend failure.
"""
from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import Any, Iterable, List, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from propreports.models import (
    MaintenanceRequest,
    Payment,
    Property,
    RentInvoice,
    TenancyAgreement,
    Tenant,
    Unit,
)
from propreports.schemas.records import (
    InvoiceRecord,
    MaintenanceRecord,
    PaymentRecord,
    PropertyRecord,
    TenancyRecord,
    TenantRecord,
    UnitRecord,
)

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=BaseModel)

INVOICE_DATE_FIELDS = ("period_start", "due_date")


class LandlordScope(BaseModel):
    """The tenancy boundary every query is restricted to."""
    model_config = ConfigDict(frozen=True)

    landlord_id: uuid.UUID
    property_id: Optional[uuid.UUID] = None


class RecordSourceError(Exception):
    """A backend read failed (network, database or API error) or returned an invalid row."""

    def __init__(self, table: str, cause: Exception):
        self.table = table
        self.cause = cause
        super().__init__(f"Failed to read {table}: {cause}")


class RecordSource:
    """Interface shared by the SQL and Supabase sources."""

    def __init__(self, scope: LandlordScope):
        self.scope = scope

    def properties(self) -> List[PropertyRecord]:
        raise NotImplementedError

    def units(self, property_ids: Sequence[uuid.UUID]) -> List[UnitRecord]:
        raise NotImplementedError

    def tenants(self, unit_ids: Sequence[uuid.UUID]) -> List[TenantRecord]:
        raise NotImplementedError

    def tenancies(self, unit_ids: Sequence[uuid.UUID]) -> List[TenancyRecord]:
        raise NotImplementedError

    def payments(
        self,
        tenant_ids: Sequence[uuid.UUID],
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[PaymentRecord]:
        raise NotImplementedError

    def invoices(
        self,
        unit_ids: Sequence[uuid.UUID],
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        date_field: str = "period_start",
    ) -> List[InvoiceRecord]:
        raise NotImplementedError

    def maintenance(self, property_ids: Sequence[uuid.UUID]) -> List[MaintenanceRecord]:
        raise NotImplementedError


def _validate(table: str, model: Type[R], rows: Iterable[Any]) -> List[R]:
    try:
        return [model.model_validate(row) for row in rows]
    except ValidationError as e:
        raise RecordSourceError(table, e) from e


def _check_date_field(date_field: str) -> None:
    if date_field not in INVOICE_DATE_FIELDS:
        raise ValueError(f"Invoices cannot be filtered on {date_field}")


# ═══════════════════════════════════════════════════════════════════════════════
# SQLALCHEMY
# ═══════════════════════════════════════════════════════════════════════════════

class SqlRecordSource(RecordSource):
    def __init__(self, db: Session, scope: LandlordScope):
        super().__init__(scope)
        self.db = db

    def _all(self, table: str, model: Type[R], query) -> List[R]:
        try:
            rows = query.all()
        except SQLAlchemyError as e:
            raise RecordSourceError(table, e) from e
        return _validate(table, model, rows)

    def properties(self) -> List[PropertyRecord]:
        q = self.db.query(Property).filter(Property.landlord_id == self.scope.landlord_id)
        if self.scope.property_id:
            q = q.filter(Property.id == self.scope.property_id)
        return self._all("properties", PropertyRecord, q.order_by(Property.name))

    def units(self, property_ids):
        if not property_ids:
            return []
        q = (
            self.db.query(Unit)
            .filter(Unit.property_id.in_(list(property_ids)))
            .order_by(Unit.unit_label)
        )
        return self._all("units", UnitRecord, q)

    def tenants(self, unit_ids):
        if not unit_ids:
            return []
        q = self.db.query(Tenant).filter(Tenant.current_unit_id.in_(list(unit_ids)))
        return self._all("tenants", TenantRecord, q)

    def tenancies(self, unit_ids):
        if not unit_ids:
            return []
        q = self.db.query(TenancyAgreement).filter(TenancyAgreement.unit_id.in_(list(unit_ids)))
        return self._all("tenancy_agreements", TenancyRecord, q)

    def payments(self, tenant_ids, start_date=None, end_date=None):
        if not tenant_ids:
            return []
        q = self.db.query(Payment).filter(Payment.tenant_id.in_(list(tenant_ids)))
        if start_date:
            q = q.filter(Payment.payment_date >= start_date)
        if end_date:
            q = q.filter(Payment.payment_date <= end_date)
        return self._all("payments", PaymentRecord, q.order_by(Payment.payment_date))

    def invoices(self, unit_ids, start_date=None, end_date=None, date_field="period_start"):
        _check_date_field(date_field)
        if not unit_ids:
            return []
        column = getattr(RentInvoice, date_field)
        q = self.db.query(RentInvoice).filter(RentInvoice.unit_id.in_(list(unit_ids)))
        if start_date:
            q = q.filter(column >= start_date)
        if end_date:
            q = q.filter(column <= end_date)
        return self._all("rent_invoices", InvoiceRecord, q.order_by(RentInvoice.period_start))

    def maintenance(self, property_ids):
        if not property_ids:
            return []
        q = self.db.query(MaintenanceRequest).filter(
            MaintenanceRequest.property_id.in_(list(property_ids))
        )
        return self._all("maintenance_requests", MaintenanceRecord, q)


# ═══════════════════════════════════════════════════════════════════════════════
# SUPABASE
# ═══════════════════════════════════════════════════════════════════════════════

class SupabaseRecordSource(RecordSource):
    """Reads the same tables through a supabase-py Client."""

    def __init__(self, client, scope: LandlordScope):
        super().__init__(scope)
        self.client = client

    def _select(self, table: str, model: Type[R], build) -> List[R]:
        try:
            response = build(self.client.table(table).select("*")).execute()
        except Exception as e:
            raise RecordSourceError(table, e) from e
        return _validate(table, model, response.data or [])

    @staticmethod
    def _ids(values: Iterable[uuid.UUID]) -> List[str]:
        return [str(v) for v in values]

    def properties(self):
        def build(q):
            q = q.eq("landlord_id", str(self.scope.landlord_id))
            if self.scope.property_id:
                q = q.eq("id", str(self.scope.property_id))
            return q.order("name")
        return self._select("properties", PropertyRecord, build)

    def units(self, property_ids):
        if not property_ids:
            return []
        return self._select(
            "units", UnitRecord,
            lambda q: q.in_("property_id", self._ids(property_ids)).order("unit_label"),
        )

    def tenants(self, unit_ids):
        if not unit_ids:
            return []
        return self._select(
            "tenants", TenantRecord,
            lambda q: q.in_("current_unit_id", self._ids(unit_ids)),
        )

    def tenancies(self, unit_ids):
        if not unit_ids:
            return []
        return self._select(
            "tenancy_agreements", TenancyRecord,
            lambda q: q.in_("unit_id", self._ids(unit_ids)),
        )

    def payments(self, tenant_ids, start_date=None, end_date=None):
        if not tenant_ids:
            return []

        def build(q):
            q = q.in_("tenant_id", self._ids(tenant_ids))
            if start_date:
                q = q.gte("payment_date", start_date.isoformat())
            if end_date:
                q = q.lte("payment_date", end_date.isoformat())
            return q.order("payment_date")
        return self._select("payments", PaymentRecord, build)

    def invoices(self, unit_ids, start_date=None, end_date=None, date_field="period_start"):
        _check_date_field(date_field)
        if not unit_ids:
            return []

        def build(q):
            q = q.in_("unit_id", self._ids(unit_ids))
            if start_date:
                q = q.gte(date_field, start_date.isoformat())
            if end_date:
                q = q.lte(date_field, end_date.isoformat())
            return q.order("period_start")
        return self._select("rent_invoices", InvoiceRecord, build)

    def maintenance(self, property_ids):
        if not property_ids:
            return []
        return self._select(
            "maintenance_requests", MaintenanceRecord,
            lambda q: q.in_("property_id", self._ids(property_ids)),
        )
