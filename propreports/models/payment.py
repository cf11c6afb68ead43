"""
Payment and Rent Invoice Models
Read-only copies of the backend's rent ledger
"""
from datetime import date
from enum import Enum
from sqlalchemy import String, Float, Date, ForeignKey, Enum as SQLEnum, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
import uuid

from propreports.db.base import Base, TimestampMixin


class PaymentMethod(str, Enum):
    """Payment method enum"""
    MPESA = "MPESA"
    CASH = "CASH"
    BANK_TRANSFER = "BANK_TRANSFER"
    CHEQUE = "CHEQUE"
    OTHER = "OTHER"


class InvoiceStatus(str, Enum):
    """Invoice status enum (derived by the backend)"""
    PENDING = "PENDING"
    PARTIAL = "PARTIAL"
    PAID = "PAID"
    OVERDUE = "OVERDUE"


# Statuses that still carry a balance
OPEN_INVOICE_STATUSES = (InvoiceStatus.PENDING, InvoiceStatus.PARTIAL, InvoiceStatus.OVERDUE)


class Payment(Base, TimestampMixin):
    """Recorded rent payment; never mutated once stored"""
    __tablename__ = "payments"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("tenants.id"), nullable=False, index=True)
    invoice_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("rent_invoices.id"), nullable=True, index=True)

    amount_kes: Mapped[float] = mapped_column(Float, nullable=False)
    payment_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    method: Mapped[PaymentMethod] = mapped_column(SQLEnum(PaymentMethod), default=PaymentMethod.MPESA, nullable=False)
    tx_ref: Mapped[str] = mapped_column(String(100), nullable=True)

    # Relationships
    tenant = relationship("Tenant", back_populates="payments")
    invoice = relationship("RentInvoice", back_populates="payments")


class RentInvoice(Base, TimestampMixin):
    """Monthly rent invoice for a unit"""
    __tablename__ = "rent_invoices"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    unit_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("units.id"), nullable=False, index=True)
    tenant_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("tenants.id"), nullable=True, index=True)

    period_start: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    period_end: Mapped[date] = mapped_column(Date, nullable=True)
    due_date: Mapped[date] = mapped_column(Date, nullable=True, index=True)

    amount_due_kes: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    amount_paid_kes: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    status: Mapped[InvoiceStatus] = mapped_column(SQLEnum(InvoiceStatus), default=InvoiceStatus.PENDING, nullable=False)

    payments = relationship("Payment", back_populates="invoice")
