"""
CSV export of estimates and breakdowns.

Layout: a few free-text header lines describing the job, a blank line, then a
quoted table (Category, Product, Unit, Qty Needed, Qty to Order, Unit Price,
Total Cost, Notes) closed by a TOTAL row.
"""

import csv
import io
from datetime import date
from typing import List, Optional

from .breakdown import breakdown_totals, to_save_state
from .calculators.base import format_quantity
from .catalogs import load_system_catalog
from .config import settings
from .models import (
    BreakdownSaveState,
    CoatingEstimate,
    EstimateBreakdown,
    EstimateResult,
    SectionTotals,
    TaxProfit,
)

ESTIMATE_COLUMNS = [
    "Category", "Product", "Unit", "Qty Needed", "Qty to Order",
    "Unit Price", "Total Cost", "Notes",
]


def _header_lines(estimate: EstimateResult, on: date) -> List[str]:
    catalog = load_system_catalog(estimate.system)
    title = f"{catalog.name} Estimate - {on.strftime('%m/%d/%Y')}"
    lines = [title]
    if settings.COMPANY_NAME:
        lines.append(f"Prepared by: {settings.COMPANY_NAME}")

    if isinstance(estimate, CoatingEstimate):
        m = estimate.measurements
        lines += [
            f"Roof Area: {format_quantity(m.square_footage)} sq ft",
            f"Vertical Seams: {format_quantity(m.vertical_seams_lf)} LF",
            f"Horizontal Seams: {format_quantity(m.horizontal_seams_lf)} LF",
        ]
        return lines

    m = estimate.measurements
    summary = estimate.insulation
    if summary.active_layers:
        layers = " + ".join(f"Layer {i}: {layer.label}"
                            for i, layer in enumerate(summary.active_layers, start=1))
    else:
        layers = "None"
    lines += [
        f"Roof Area: {format_quantity(m.roof_area)} sq ft",
        f"Insulation: {layers} (Total: {summary.total_thickness:.1f}\" / "
        f"R-{summary.total_r_value:.1f})",
        f"Wall: {format_quantity(m.wall_linear_ft)} LF x {format_quantity(m.wall_height)} ft"
        f" = {format_quantity(estimate.wall_sq_ft)} sq ft",
        f"Base Flashing: {format_quantity(m.base_flashing_lf)} LF at 18\" height"
        f" = {estimate.base_flashing_sq_ft:.0f} sq ft",
    ]
    return lines


def estimate_to_csv(estimate: EstimateResult, on: Optional[date] = None) -> str:
    """Order list for one system estimate."""
    buf = io.StringIO()
    for line in _header_lines(estimate, on or date.today()):
        buf.write(line + "\n")
    buf.write("\n")

    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(ESTIMATE_COLUMNS)
    for item in estimate.line_items:
        writer.writerow([
            item.product.category,
            item.product.name,
            item.product.unit,
            f"{item.quantity_needed:.2f}",
            str(item.quantity_to_order),
            f"${item.unit_price:.2f}",
            f"${item.total_cost:.2f}",
            item.note,
        ])
    writer.writerow(["", "", "", "", "", "TOTAL", f"${estimate.total_material_cost:.2f}", ""])
    return buf.getvalue()


def _tax_profit_rows(totals: SectionTotals, tax_profit: TaxProfit, label: str) -> List[list]:
    rows = []
    if tax_profit.tax_enabled:
        rows.append(["", "", "", "", f"Tax ({tax_profit.tax_percent:g}%)", f"${totals.tax:.2f}", ""])
    if tax_profit.profit_enabled:
        rows.append(["", "", "", "", f"Profit ({tax_profit.profit_percent:g}%)",
                     f"${totals.profit:.2f}", ""])
    rows.append(["", "", "", "", f"{label} Total", f"${totals.total:.2f}", ""])
    return rows


def breakdown_to_csv(breakdown: EstimateBreakdown,
                     state: Optional[BreakdownSaveState] = None,
                     on: Optional[date] = None) -> str:
    """
    Full breakdown, one table section per non-empty section.

    `state` carries the editor's toggles and tax/profit settings; without it
    the breakdown's own items are used with tax and profit disabled.
    """
    state = state or to_save_state(breakdown)
    totals = breakdown_totals(state)
    on = on or date.today()

    buf = io.StringIO()
    buf.write(f"{breakdown.system_name} Estimate Breakdown - {on.strftime('%m/%d/%Y')}\n")
    for label, value in breakdown.measurements.items():
        buf.write(f"{label}: {value}\n")
    buf.write("\n")
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")

    header = ["Item", "Description", "Unit", "Quantity", "Unit Price", "Total", "Included"]
    sections = [
        ("Materials", state.materials, totals.materials, state.materials_tax_profit),
        ("Penetrations", state.penetrations, totals.penetrations, state.penetrations_tax_profit),
    ]
    for title, items, section, tax_profit in sections:
        if not items:
            continue
        writer.writerow([title])
        writer.writerow(header)
        for item in items:
            writer.writerow([
                item.name, item.description, item.unit, format_quantity(item.quantity),
                f"${item.unit_price:.2f}", f"${item.total_cost:.2f}",
                "Yes" if item.enabled else "No",
            ])
        writer.writerows(_tax_profit_rows(section, tax_profit, title))
        writer.writerow([])

    header = ["Item", "Description", "Rate Type", "Rate", "Quantity", "Total", "Included"]
    sections = [
        ("Labor", state.labor, totals.labor, state.labor_tax_profit),
        ("Equipment", state.equipment, totals.equipment, state.equipment_tax_profit),
    ]
    for title, items, section, tax_profit in sections:
        if not items:
            continue
        writer.writerow([title])
        writer.writerow(header)
        for item in items:
            writer.writerow([
                item.label, item.description, item.rate_type.value, f"${item.rate:.2f}",
                format_quantity(item.quantity), f"${item.computed_cost:.2f}",
                "Yes" if item.enabled else "No",
            ])
        writer.writerows(_tax_profit_rows(section, tax_profit, title))
        writer.writerow([])

    writer.writerow(["", "", "", "", "GRAND TOTAL", f"${totals.grand_total:.2f}", ""])
    return buf.getvalue()
