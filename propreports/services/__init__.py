from propreports.services.record_source import (
    LandlordScope,
    RecordSource,
    RecordSourceError,
    SqlRecordSource,
    SupabaseRecordSource,
)
from propreports.services.report_service import ReportService, ReportUnavailableError

__all__ = [
    "LandlordScope",
    "RecordSource",
    "RecordSourceError",
    "SqlRecordSource",
    "SupabaseRecordSource",
    "ReportService",
    "ReportUnavailableError",
]
