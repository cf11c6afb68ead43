from propreports.schemas.records import (
    PropertyRecord,
    UnitRecord,
    TenantRecord,
    TenancyRecord,
    PaymentRecord,
    InvoiceRecord,
    MaintenanceRecord,
)
from propreports.schemas.reports import MonthBucket, DateRange, ReportTable

__all__ = [
    "PropertyRecord",
    "UnitRecord",
    "TenantRecord",
    "TenancyRecord",
    "PaymentRecord",
    "InvoiceRecord",
    "MaintenanceRecord",
    "MonthBucket",
    "DateRange",
    "ReportTable",
]
