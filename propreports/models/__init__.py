# Import all models in correct order to avoid circular imports
from propreports.models.property import Property, Unit
from propreports.models.tenant import Tenant, TenantStatus, TenancyAgreement
from propreports.models.payment import (
    Payment,
    PaymentMethod,
    RentInvoice,
    InvoiceStatus,
    OPEN_INVOICE_STATUSES,
)
from propreports.models.maintenance import MaintenanceRequest, MaintenanceStatus

__all__ = [
    "Property",
    "Unit",
    "Tenant",
    "TenantStatus",
    "TenancyAgreement",
    "Payment",
    "PaymentMethod",
    "RentInvoice",
    "InvoiceStatus",
    "OPEN_INVOICE_STATUSES",
    "MaintenanceRequest",
    "MaintenanceStatus",
]
