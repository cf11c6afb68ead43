"""
Record Schemas
Normalised, read-only copies of backend rows handed to the report library.
Both record sources (SQLAlchemy rows and Supabase JSON) validate into these.
"""
from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from propreports.models.payment import OPEN_INVOICE_STATUSES


def _enum_value(v: Any) -> Any:
    return v.value if hasattr(v, "value") else v


def _zero_if_none(v: Any) -> Any:
    return 0.0 if v is None else v


class _Record(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)


# ─────────────────── Portfolio ───────────────────

class PropertyRecord(_Record):
    id: uuid.UUID
    name: str
    landlord_id: Optional[uuid.UUID] = None


class UnitRecord(_Record):
    id: uuid.UUID
    property_id: uuid.UUID
    unit_label: str
    monthly_rent_kes: float = 0.0
    is_active: bool = True

    @field_validator("monthly_rent_kes", mode="before")
    @classmethod
    def _rent_default(cls, v: Any) -> Any:
        return _zero_if_none(v)


class TenantRecord(_Record):
    id: uuid.UUID
    full_name: str = "Unknown"
    status: str = "ACTIVE"
    current_unit_id: Optional[uuid.UUID] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @field_validator("status", mode="before")
    @classmethod
    def _status_value(cls, v: Any) -> Any:
        return _enum_value(v)

    @property
    def is_active(self) -> bool:
        return self.status == "ACTIVE"


class TenancyRecord(_Record):
    id: uuid.UUID
    unit_id: uuid.UUID
    tenant_id: Optional[uuid.UUID] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: str = "ACTIVE"

    @field_validator("status", mode="before")
    @classmethod
    def _status_value(cls, v: Any) -> Any:
        return _enum_value(v)


# ─────────────────── Ledger ───────────────────

class PaymentRecord(_Record):
    id: uuid.UUID
    tenant_id: uuid.UUID
    amount_kes: float = 0.0
    payment_date: date
    method: str = "MPESA"
    tx_ref: Optional[str] = None
    invoice_id: Optional[uuid.UUID] = None

    @field_validator("amount_kes", mode="before")
    @classmethod
    def _amount_default(cls, v: Any) -> Any:
        return _zero_if_none(v)

    @field_validator("method", mode="before")
    @classmethod
    def _method_value(cls, v: Any) -> Any:
        return _enum_value(v)


class InvoiceRecord(_Record):
    id: uuid.UUID
    unit_id: uuid.UUID
    tenant_id: Optional[uuid.UUID] = None
    period_start: date
    period_end: Optional[date] = None
    due_date: Optional[date] = None
    amount_due_kes: float = 0.0
    amount_paid_kes: float = 0.0
    status: str = "PENDING"

    @field_validator("amount_due_kes", "amount_paid_kes", mode="before")
    @classmethod
    def _amount_defaults(cls, v: Any) -> Any:
        return _zero_if_none(v)

    @field_validator("status", mode="before")
    @classmethod
    def _status_value(cls, v: Any) -> Any:
        return _enum_value(v)

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_INVOICE_STATUSES


# ─────────────────── Maintenance ───────────────────

class MaintenanceRecord(_Record):
    id: uuid.UUID
    property_id: uuid.UUID
    unit_id: Optional[uuid.UUID] = None
    title: str = ""
    status: str = "PENDING"
    cost_kes: float = 0.0
    created_at: datetime
    completed_at: Optional[datetime] = None

    @field_validator("cost_kes", mode="before")
    @classmethod
    def _cost_default(cls, v: Any) -> Any:
        return _zero_if_none(v)

    @field_validator("status", mode="before")
    @classmethod
    def _status_value(cls, v: Any) -> Any:
        # Backend rows may carry either case
        v = _enum_value(v)
        return v.upper() if isinstance(v, str) else v
