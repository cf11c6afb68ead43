"""
Report Export
Display formatters and the flat {headers, rows} table every report section
renders to. CSV downloads are written from that table.
"""
from __future__ import annotations

import csv
import io
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

from propreports.core.config import settings
from propreports.schemas.reports import ReportTable


# ═══════════════════════════════════════════════════════════════════════════════
# FORMATTERS
# ═══════════════════════════════════════════════════════════════════════════════

def format_currency(amount: Optional[float], currency: Optional[str] = None) -> str:
    """Whole currency units with thousands separators, e.g. "KES 12,500"."""
    currency = currency or settings.CURRENCY
    value = Decimal(str(amount or 0)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    return f"{sign}{currency} {abs(value):,.0f}"


def format_percentage(value: Optional[float]) -> str:
    return f"{(value or 0.0):.1f}%"


def format_date(value: Union[date, datetime, str, None]) -> str:
    if not value:
        return "Unknown"
    if isinstance(value, str):
        value = date.fromisoformat(value[:10])
    return value.strftime("%d %b %Y")


def _text(value: Any) -> str:
    return "" if value is None else str(value)


# ═══════════════════════════════════════════════════════════════════════════════
# SECTIONS
# ═══════════════════════════════════════════════════════════════════════════════

Column = Tuple[str, str, Callable[[Any], str]]

# report → section → (path into the report dict, columns)
SECTIONS: Dict[str, Dict[str, Tuple[Tuple[str, ...], Sequence[Column]]]] = {
    "financial": {
        "monthly_revenue": (("monthly_revenue",), [
            ("Month", "label", _text),
            ("Revenue", "revenue", format_currency),
            ("Expenses", "expenses", format_currency),
            ("Net Income", "net_income", format_currency),
            ("Collections", "collections", format_currency),
            ("Outstanding", "outstanding", format_currency),
            ("Collection Rate", "collection_rate", format_percentage),
        ]),
        "rent_roll": (("rent_roll",), [
            ("Property", "property_name", _text),
            ("Unit", "unit_label", _text),
            ("Tenant", "tenant_name", _text),
            ("Monthly Rent", "monthly_rent", format_currency),
            ("Status", "status", _text),
            ("Last Payment", "last_payment_date", format_date),
            ("Balance", "balance", format_currency),
        ]),
        "profit_loss": (("profit_loss", "expenses"), [
            ("Category", "category", _text),
            ("Amount", "amount", format_currency),
            ("% of Revenue", "percentage", format_percentage),
        ]),
    },
    "occupancy": {
        "property_breakdown": (("property_breakdown",), [
            ("Property", "property_name", _text),
            ("Total Units", "total_units", _text),
            ("Occupied", "occupied_units", _text),
            ("Vacant", "vacant_units", _text),
            ("Occupancy Rate", "occupancy_rate", format_percentage),
            ("Rent Potential", "monthly_rent_potential", format_currency),
            ("Rent Actual", "monthly_rent_actual", format_currency),
        ]),
        "occupancy_trends": (("occupancy_trends",), [
            ("Month", "label", _text),
            ("Move Ins", "move_ins", _text),
            ("Move Outs", "move_outs", _text),
            ("Total Units", "total_units", _text),
            ("Occupancy Rate", "occupancy_rate", format_percentage),
        ]),
        "vacant_units": (("vacant_units",), [
            ("Property", "property_name", _text),
            ("Unit", "unit_label", _text),
            ("Monthly Rent", "monthly_rent", format_currency),
            ("Vacant Since", "vacant_since", format_date),
            ("Days Vacant", "days_vacant", _text),
        ]),
        "seasonal_trends": (("tenancy_analysis", "seasonal_trends"), [
            ("Month", "month", _text),
            ("Move Ins", "move_ins", _text),
            ("Move Outs", "move_outs", _text),
        ]),
    },
    "tenants": {
        "top_tenants": (("top_tenants",), [
            ("Tenant", "tenant_name", _text),
            ("Property", "property_name", _text),
            ("Unit", "unit_label", _text),
            ("Total Paid", "total_paid", format_currency),
            ("Payments", "payment_count", _text),
            ("Average Payment", "average_payment", format_currency),
            ("On-Time Rate", "on_time_rate", format_percentage),
        ]),
        "high_risk": (("risk_analysis", "high_risk"), [
            ("Tenant", "tenant_name", _text),
            ("Property", "property_name", _text),
            ("Unit", "unit_label", _text),
            ("Balance", "balance", format_currency),
            ("Days Since Payment", "days_since_last_payment", _text),
            ("Risk Score", "risk_score", _text),
        ]),
        "medium_risk": (("risk_analysis", "medium_risk"), [
            ("Tenant", "tenant_name", _text),
            ("Property", "property_name", _text),
            ("Unit", "unit_label", _text),
            ("Balance", "balance", format_currency),
            ("Days Since Payment", "days_since_last_payment", _text),
            ("Risk Score", "risk_score", _text),
        ]),
    },
    "properties": {
        "performance": (("performance",), [
            ("Property", "property_name", _text),
            ("Units", "total_units", _text),
            ("Occupancy", "occupancy_rate", format_percentage),
            ("Rent Potential", "monthly_rent_potential", format_currency),
            ("Rent Actual", "monthly_rent_actual", format_currency),
            ("Collection Rate", "collection_rate", format_percentage),
            ("Revenue", "total_revenue", format_currency),
        ]),
        "unit_analysis": (("unit_analysis",), [
            ("Property", "property_name", _text),
            ("Unit", "unit_label", _text),
            ("Monthly Rent", "monthly_rent", format_currency),
            ("Status", "status", _text),
            ("Tenant", "tenant_name", _text),
            ("Last Payment", "last_payment_date", format_date),
            ("Balance", "balance", format_currency),
            ("Days Vacant", "days_vacant", _text),
        ]),
        "revenue_comparison": (("revenue_comparison",), [
            ("Property", "property_name", _text),
            ("Current Month", "current_month", format_currency),
            ("Previous Month", "previous_month", format_currency),
            ("Growth", "growth", format_percentage),
            ("Year to Date", "year_to_date", format_currency),
        ]),
        "maintenance_overview": (("maintenance_overview", "properties"), [
            ("Property", "property_name", _text),
            ("Total Requests", "total_requests", _text),
            ("Pending", "pending_requests", _text),
            ("Completed", "completed_requests", _text),
            ("Avg Resolution (days)", "average_resolution_time", _text),
            ("Costs", "maintenance_costs", format_currency),
        ]),
    },
}


class UnknownSectionError(KeyError):
    pass


def section_names(report: str) -> List[str]:
    return list(SECTIONS.get(report, {}))


def to_table(report: str, section: str, data: Dict[str, Any]) -> ReportTable:
    """Flatten one section of a built report into headers and string rows."""
    try:
        path, columns = SECTIONS[report][section]
    except KeyError:
        raise UnknownSectionError(f"{report} report has no section '{section}'")

    rows: Any = data
    for key in path:
        rows = rows.get(key, []) if isinstance(rows, dict) else []

    # The P&L table lists income ahead of the expense lines
    if report == "financial" and section == "profit_loss":
        rows = list(data.get("profit_loss", {}).get("income", [])) + list(rows)

    return ReportTable(
        headers=[header for header, _key, _fmt in columns],
        rows=[[fmt(row.get(key)) for _header, key, fmt in columns] for row in rows],
    )


def to_csv(table: ReportTable) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(table.headers)
    writer.writerows(table.rows)
    return buf.getvalue()
