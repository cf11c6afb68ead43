"""
Property and Unit Models
"""
from sqlalchemy import String, Float, Boolean, ForeignKey, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
import uuid

from propreports.db.base import Base, TimestampMixin


class Property(Base, TimestampMixin):
    """A landlord-owned property; the root of every landlord scope"""
    __tablename__ = "properties"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    landlord_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # Relationships
    units = relationship("Unit", back_populates="property", cascade="all, delete-orphan")


class Unit(Base, TimestampMixin):
    __tablename__ = "units"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    property_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("properties.id"), nullable=False, index=True)
    unit_label: Mapped[str] = mapped_column(String(50), nullable=False)
    monthly_rent_kes: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    property = relationship("Property", back_populates="units")
    tenants = relationship("Tenant", back_populates="unit")
