"""
Report Routes
Landlord-scoped financial, occupancy, tenant and property reports.

Endpoints:
  GET /reports/presets                       – named date ranges
  GET /reports/financial                     – monthly revenue, YTD, rent roll, P&L
  GET /reports/occupancy                     – occupancy stats, trends, vacancies
  GET /reports/tenants                       – payment behaviour, top tenants, risk
  GET /reports/properties                    – performance, units, revenue, maintenance
  GET /reports/{report}/table?section=…      – one section as {headers, rows}
  GET /reports/{report}/export/csv?section=… – one section as CSV

Every report accepts start_date/end_date or a preset, an optional property_id,
and an optional X-Filter-Generation header. A request whose generation has
been overtaken by a newer one for the same report is answered with 409.
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Any, Callable, Dict, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, status
from fastapi.responses import JSONResponse, StreamingResponse

from propreports.core.config import settings
from propreports.core.deps import get_landlord_scope, get_report_service
from propreports.schemas.reports import DateRange
from propreports.services.export import (
    UnknownSectionError,
    section_names,
    to_csv,
    to_table,
)
from propreports.services.generations import GENERATION_HEADER, generation_registry
from propreports.services.periods import (
    InvalidDateRangeError,
    presets,
    resolve_preset,
    validate_date_range,
)
from propreports.services.record_source import LandlordScope
from propreports.services.report_service import REPORT_NAMES, ReportService

router = APIRouter(tags=["Reports"])
logger = logging.getLogger(__name__)


# ═══════════════════════ REQUEST HELPERS ═══════════════════════

def get_date_range(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    preset: Optional[str] = Query(None),
) -> DateRange:
    """Explicit dates win over a preset; neither falls back to DEFAULT_PRESET."""
    try:
        if start_date or end_date:
            if not (start_date and end_date):
                raise InvalidDateRangeError("start_date and end_date must be given together")
            validate_date_range(start_date, end_date)
            return DateRange(start_date=start_date, end_date=end_date)

        name = preset or settings.DEFAULT_PRESET
        start, end = resolve_preset(name)
        return DateRange(start_date=start, end_date=end, preset=name)
    except InvalidDateRangeError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))


def _check_report(report: str) -> None:
    if report not in REPORT_NAMES:
        raise HTTPException(status_code=404, detail=f"Unknown report: {report}")


def _guarded(
    report: str,
    scope: LandlordScope,
    generation: Optional[int],
    build: Callable[[], Dict[str, Any]],
):
    """Build a report; drop the response if a newer filter generation arrived meanwhile."""
    generation_registry.begin(scope.landlord_id, report, generation)
    data = build()
    if generation_registry.is_stale(scope.landlord_id, report, generation):
        logger.info(f"Discarding stale {report} report (generation {generation}) for {scope.landlord_id}")
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={
                "success": False,
                "stale": True,
                "generation": generation,
                "latest_generation": generation_registry.latest(scope.landlord_id, report),
            },
        )
    return data


def _respond(report: str, payload):
    if isinstance(payload, JSONResponse):
        return payload
    return {"success": True, "report_type": report, "report": payload}


# ═══════════════════════ PRESETS ═══════════════════════

@router.get("/presets")
def list_presets():
    return {
        "success": True,
        "default": settings.DEFAULT_PRESET,
        "max_span_days": settings.REPORT_MAX_SPAN_DAYS,
        "presets": presets(),
    }


# ═══════════════════════ REPORT ENDPOINTS ═══════════════════════

@router.get("/financial")
def financial_report(
    year: Optional[int] = Query(None, ge=1900, le=9999),
    date_range: DateRange = Depends(get_date_range),
    scope: LandlordScope = Depends(get_landlord_scope),
    service: ReportService = Depends(get_report_service),
    generation: Optional[int] = Header(None, alias=GENERATION_HEADER),
):
    payload = _guarded("financial", scope, generation, lambda: service.financial_report(date_range, year=year))
    return _respond("financial", payload)


@router.get("/occupancy")
def occupancy_report(
    date_range: DateRange = Depends(get_date_range),
    scope: LandlordScope = Depends(get_landlord_scope),
    service: ReportService = Depends(get_report_service),
    generation: Optional[int] = Header(None, alias=GENERATION_HEADER),
):
    payload = _guarded("occupancy", scope, generation, lambda: service.occupancy_report(date_range))
    return _respond("occupancy", payload)


@router.get("/tenants")
def tenant_report(
    date_range: DateRange = Depends(get_date_range),
    scope: LandlordScope = Depends(get_landlord_scope),
    service: ReportService = Depends(get_report_service),
    generation: Optional[int] = Header(None, alias=GENERATION_HEADER),
):
    payload = _guarded("tenants", scope, generation, lambda: service.tenant_report(date_range))
    return _respond("tenants", payload)


@router.get("/properties")
def property_report(
    date_range: DateRange = Depends(get_date_range),
    scope: LandlordScope = Depends(get_landlord_scope),
    service: ReportService = Depends(get_report_service),
    generation: Optional[int] = Header(None, alias=GENERATION_HEADER),
):
    payload = _guarded("properties", scope, generation, lambda: service.property_report(date_range))
    return _respond("properties", payload)


# ═══════════════════════ EXPORT ENDPOINTS ═══════════════════════

def _section_table(report: str, section: str, date_range: DateRange, year: Optional[int], service: ReportService):
    def build():
        data = service.build(report, date_range, year=year)
        try:
            return {"table": to_table(report, section, data)}
        except UnknownSectionError:
            raise HTTPException(
                status_code=404,
                detail={
                    "message": f"{report} report has no section '{section}'",
                    "sections": section_names(report),
                },
            )
    return build


@router.get("/{report}/table")
def report_table(
    report: str,
    section: str = Query(...),
    year: Optional[int] = Query(None, ge=1900, le=9999),
    date_range: DateRange = Depends(get_date_range),
    scope: LandlordScope = Depends(get_landlord_scope),
    service: ReportService = Depends(get_report_service),
    generation: Optional[int] = Header(None, alias=GENERATION_HEADER),
):
    _check_report(report)
    payload = _guarded(report, scope, generation, _section_table(report, section, date_range, year, service))
    if isinstance(payload, JSONResponse):
        return payload
    table = payload["table"]
    return {
        "success": True,
        "report_type": report,
        "section": section,
        "headers": table.headers,
        "rows": table.rows,
    }


@router.get("/{report}/export/csv")
def export_csv(
    report: str,
    section: str = Query(...),
    year: Optional[int] = Query(None, ge=1900, le=9999),
    date_range: DateRange = Depends(get_date_range),
    scope: LandlordScope = Depends(get_landlord_scope),
    service: ReportService = Depends(get_report_service),
    generation: Optional[int] = Header(None, alias=GENERATION_HEADER),
):
    _check_report(report)
    payload = _guarded(report, scope, generation, _section_table(report, section, date_range, year, service))
    if isinstance(payload, JSONResponse):
        return payload

    csv_text = to_csv(payload["table"])
    filename = f"{report}_{section}_{date_range.start_date.isoformat()}_{date_range.end_date.isoformat()}.csv"
    return StreamingResponse(
        iter([csv_text]),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
