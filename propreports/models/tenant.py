"""
Tenant and Tenancy Agreement Models
"""
from datetime import date
from enum import Enum
from sqlalchemy import String, Date, ForeignKey, Enum as SQLEnum, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
import uuid

from propreports.db.base import Base, TimestampMixin


class TenantStatus(str, Enum):
    """Tenant status enum"""
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class Tenant(Base, TimestampMixin):
    """
    Tenant currently or previously housed in one of the landlord's units
    """
    __tablename__ = "tenants"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    current_unit_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("units.id"), nullable=True, index=True)

    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[TenantStatus] = mapped_column(SQLEnum(TenantStatus), default=TenantStatus.ACTIVE, index=True)

    # Tenancy dates
    start_date: Mapped[date] = mapped_column(Date, nullable=True)
    end_date: Mapped[date] = mapped_column(Date, nullable=True)

    # Relationships
    unit = relationship("Unit", back_populates="tenants")
    payments = relationship("Payment", back_populates="tenant")


class TenancyAgreement(Base, TimestampMixin):
    """Signed tenancy for a unit; drives move-in/move-out reporting"""
    __tablename__ = "tenancy_agreements"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("tenants.id"), nullable=True, index=True)
    unit_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("units.id"), nullable=False, index=True)

    start_date: Mapped[date] = mapped_column(Date, nullable=True)
    end_date: Mapped[date] = mapped_column(Date, nullable=True)
    status: Mapped[str] = mapped_column(String(20), default="ACTIVE")  # ACTIVE, ENDED, TERMINATED
