"""
Estimate breakdown: one common shape for every system's output.

serialize_breakdown() normalizes a system estimate, the penetration and
sheet-metal estimates and the labor/equipment state into four item lists
(materials, penetrations, labor, equipment). Every item carries an `enabled`
flag so an editor can drop it from the totals without deleting it.

Totals are per section: base (enabled items) + optional tax + optional profit,
both as a percentage of base. The grand total is the sum of the four sections.
"""

import json
import logging
from typing import Dict, List, Optional, Sequence

from pydantic import ValidationError

from .calculators.base import format_quantity
from .calculators.labor_equipment import item_cost
from .catalogs import load_system_catalog
from .models import (
    BreakdownLaborItem,
    BreakdownMaterialItem,
    BreakdownPenetrationItem,
    BreakdownSaveState,
    BreakdownTotals,
    CoatingEstimate,
    EstimateBreakdown,
    EstimateResult,
    LaborEquipmentState,
    LaborItem,
    MembraneEstimate,
    PenetrationEstimate,
    RateType,
    SectionTotals,
    SheetMetalEstimate,
    TaxProfit,
)

logger = logging.getLogger(__name__)

RATE_LABELS = {
    RateType.PER_AREA: "$/sq. ft.",
    RateType.PER_HOUR: "$/hr",
    RateType.PER_LINEAR_FOOT: "$/LF",
    RateType.PER_DAY: "$/day",
    RateType.FLAT: "flat",
}

QUANTITY_LABELS = {
    RateType.PER_HOUR: "Hours",
    RateType.PER_DAY: "Days",
}


def rate_label(rate_type) -> str:
    try:
        return RATE_LABELS[RateType(rate_type)]
    except ValueError:
        return "$"


def quantity_label(rate_type) -> str:
    try:
        return QUANTITY_LABELS.get(RateType(rate_type), "Qty")
    except ValueError:
        return "Qty"


# --- Serialization ---

def measurement_labels(estimate: EstimateResult) -> Dict[str, str]:
    """Human-readable measurement header for a breakdown."""
    if isinstance(estimate, CoatingEstimate):
        m = estimate.measurements
        return {
            "Roof Area": f"{format_quantity(m.square_footage)} sq. ft.",
            "Vertical Seams": f"{format_quantity(m.vertical_seams_lf)} lin. ft.",
            "Horizontal Seams": f"{format_quantity(m.horizontal_seams_lf)} lin. ft.",
        }
    m = estimate.measurements
    labels = {"Roof Area": f"{format_quantity(m.roof_area)} sq. ft."}
    if m.base_flashing_lf:
        labels["Base Flashing"] = f"{format_quantity(m.base_flashing_lf)} lin. ft."
    if m.wall_linear_ft:
        labels["Wall Flashing"] = f"{format_quantity(m.wall_linear_ft)} lin. ft."
    if m.wall_height:
        labels["Wall Height"] = f"{format_quantity(m.wall_height)} ft."
    return labels


def _material_items(estimate: EstimateResult) -> List[BreakdownMaterialItem]:
    return [
        BreakdownMaterialItem(
            id=item.product.id,
            name=item.product.name,
            description=item.product.description,
            category=item.product.category,
            unit=item.product.unit,
            quantity_needed=item.quantity_needed,
            quantity=item.quantity_to_order,
            unit_price=item.unit_price,
            total_cost=item.total_cost,
            enabled=item.quantity_to_order > 0,
        )
        for item in estimate.line_items
    ]


def _penetration_items(penetrations: Optional[PenetrationEstimate],
                       sheet_metal: Optional[SheetMetalEstimate]) -> List[BreakdownPenetrationItem]:
    items = []
    if penetrations:
        for idx, mat in enumerate(penetrations.materials):
            items.append(BreakdownPenetrationItem(
                id=f"pen-{idx}",
                name=mat.material_name,
                description=f"From: {mat.from_penetration}",
                unit=mat.unit,
                quantity=mat.quantity,
                unit_price=mat.unit_price,
                total_cost=mat.total_price,
            ))
    if sheet_metal:
        for line in sheet_metal.line_items:
            items.append(BreakdownPenetrationItem(
                id=f"sm-{line.flashing_id}",
                name=line.name,
                description=f"{sheet_metal.metal_type} {sheet_metal.gauge} sheet metal flashing",
                unit="LF",
                quantity=line.quantity,
                unit_price=line.unit_price,
                total_cost=line.total_cost,
            ))
    return items


def _labor_items(items: Sequence[LaborItem], roof_area: float,
                 flashing_lf: float) -> List[BreakdownLaborItem]:
    return [
        BreakdownLaborItem(
            id=item.id,
            label=item.label,
            description=item.description,
            rate_type=item.rate_type,
            rate=item.rate,
            quantity=item.quantity,
            computed_cost=item_cost(item, roof_area, flashing_lf).cost,
            enabled=item.enabled,
        )
        for item in items
    ]


def serialize_breakdown(estimate: EstimateResult,
                        labor_equipment: LaborEquipmentState,
                        penetrations: Optional[PenetrationEstimate] = None,
                        sheet_metal: Optional[SheetMetalEstimate] = None) -> EstimateBreakdown:
    catalog = load_system_catalog(estimate.system)
    roof_area = estimate.roof_area
    flashing_lf = (estimate.measurements.flashing_lf
                   if isinstance(estimate, MembraneEstimate) else 0.0)

    skipped = list(estimate.skipped_ids)
    for extra in (penetrations, sheet_metal):
        if extra:
            skipped.extend(i for i in extra.skipped_ids if i not in skipped)

    return EstimateBreakdown(
        system_name=catalog.name,
        system_slug=estimate.system,
        accent_color=catalog.accent,
        measurements=measurement_labels(estimate),
        roof_area=roof_area,
        materials=_material_items(estimate),
        penetrations=_penetration_items(penetrations, sheet_metal),
        labor=_labor_items(labor_equipment.labor_items, roof_area, flashing_lf),
        equipment=_labor_items(labor_equipment.equipment_items, roof_area, flashing_lf),
        skipped_ids=skipped,
    )


# --- Totals ---

def section_totals(items: Sequence, tax_profit: Optional[TaxProfit] = None) -> SectionTotals:
    tax_profit = tax_profit or TaxProfit()
    base = sum(item.cost for item in items if item.enabled)
    tax = base * tax_profit.tax_percent / 100 if tax_profit.tax_enabled else 0.0
    profit = base * tax_profit.profit_percent / 100 if tax_profit.profit_enabled else 0.0
    return SectionTotals(base=base, tax=tax, profit=profit, total=base + tax + profit)


def breakdown_totals(state: BreakdownSaveState) -> BreakdownTotals:
    materials = section_totals(state.materials, state.materials_tax_profit)
    penetrations = section_totals(state.penetrations, state.penetrations_tax_profit)
    labor = section_totals(state.labor, state.labor_tax_profit)
    equipment = section_totals(state.equipment, state.equipment_tax_profit)
    sections = (materials, penetrations, labor, equipment)
    return BreakdownTotals(
        materials=materials,
        penetrations=penetrations,
        labor=labor,
        equipment=equipment,
        grand_total=sum(s.total for s in sections),
        total_tax=sum(s.tax for s in sections),
        total_profit=sum(s.profit for s in sections),
    )


def to_save_state(breakdown: EstimateBreakdown, **tax_profit: TaxProfit) -> BreakdownSaveState:
    """
    Editable state for a freshly built breakdown.

    Keyword args set a section's tax/profit, e.g. labor_tax_profit=TaxProfit(...).
    Sections not given start with tax and profit disabled.
    """
    return BreakdownSaveState(
        materials=breakdown.materials,
        penetrations=breakdown.penetrations,
        labor=breakdown.labor,
        equipment=breakdown.equipment,
        **tax_profit,
    )


def serialize_breakdown_state(state: BreakdownSaveState) -> str:
    return state.model_dump_json()


def deserialize_breakdown_state(payload: str) -> Optional[BreakdownSaveState]:
    """Saved breakdown edits, or None if the payload is corrupt or lacks materials/labor."""
    try:
        return BreakdownSaveState.model_validate(json.loads(payload))
    except (ValueError, TypeError, ValidationError) as e:
        logger.warning("Rejected saved breakdown state: %s", e)
        return None
