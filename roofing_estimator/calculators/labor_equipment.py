"""
Labor & equipment totals.

Cost of an enabled item by rate type:
  per_sqft  rate x roof area
  per_hour  rate x hours (item quantity)
  per_lf    rate x flashing length
  per_day   rate x days (item quantity)
  flat      rate
Disabled items add nothing and are left out of the cost breakdown, but they
stay in the state with their rate and quantity so they can be switched back on.
The same calculator serves every system; only the default items differ.
"""

import logging
from typing import List

from .base import format_quantity
from ..models import CostLine, LaborEquipmentState, LaborEquipmentTotals, LaborItem, RateType

logger = logging.getLogger(__name__)


def item_cost(item: LaborItem, roof_area: float, flashing_lf: float = 0.0) -> CostLine:
    """Cost of one item as if enabled."""
    if item.rate_type == RateType.PER_AREA:
        cost = item.rate * roof_area
        detail = f"{format_quantity(roof_area)} sq. ft. × ${item.rate:.2f}/sq. ft."
    elif item.rate_type == RateType.PER_HOUR:
        cost = item.rate * item.quantity
        detail = f"{format_quantity(item.quantity)} hrs × ${item.rate:.2f}/hr"
    elif item.rate_type == RateType.PER_LINEAR_FOOT:
        cost = item.rate * flashing_lf
        detail = f"{format_quantity(flashing_lf)} LF × ${item.rate:.2f}/LF"
    elif item.rate_type == RateType.PER_DAY:
        cost = item.rate * item.quantity
        days = "day" if item.quantity == 1 else "days"
        detail = f"{format_quantity(item.quantity)} {days} × ${item.rate:.2f}/day"
    else:
        cost = item.rate
        detail = "Flat rate"
    return CostLine(id=item.id, label=item.label, cost=cost, detail=detail)


def _breakdown(items: List[LaborItem], roof_area: float, flashing_lf: float) -> List[CostLine]:
    return [item_cost(item, roof_area, flashing_lf) for item in items if item.enabled]


def calculate_labor_equipment_totals(state: LaborEquipmentState, roof_area: float,
                                     flashing_lf: float = 0.0) -> LaborEquipmentTotals:
    labor = _breakdown(state.labor_items, roof_area, flashing_lf)
    equipment = _breakdown(state.equipment_items, roof_area, flashing_lf)
    totals = LaborEquipmentTotals(
        labor_total=sum(line.cost for line in labor),
        equipment_total=sum(line.cost for line in equipment),
        labor_breakdown=labor,
        equipment_breakdown=equipment,
    )
    logger.debug("Labor $%.2f, equipment $%.2f", totals.labor_total, totals.equipment_total)
    return totals


def set_item_enabled(state: LaborEquipmentState, item_id: str, enabled: bool) -> LaborEquipmentState:
    """New state with one item toggled. Rate and quantity are untouched; unknown ids are a no-op."""
    def toggle(items):
        return [item.model_copy(update={"enabled": enabled}) if item.id == item_id else item
                for item in items]

    return LaborEquipmentState(
        labor_items=toggle(state.labor_items),
        equipment_items=toggle(state.equipment_items),
    )
