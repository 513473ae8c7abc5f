"""
Sheet-metal flashing calculator.

Price per linear foot = metal base price x gauge multiplier x (developed width / 8").
The base prices assume an 8" developed width, so price is linear in width.
All prices round to the cent. An unknown metal or gauge prices at $0 (and is
reported in skipped_ids) instead of failing.
"""

import logging
from typing import List, Mapping, Optional

from .base import round_cents, round_half_up
from ..catalogs import load_flashing_profiles, load_metal_types
from ..models import (
    FlashingProfile,
    MetalGauge,
    MetalType,
    SheetMetalEstimate,
    SheetMetalLineItem,
    SheetMetalSelection,
)

logger = logging.getLogger(__name__)

REFERENCE_WIDTH_INCHES = 8


def default_sheet_metal_selection() -> SheetMetalSelection:
    return SheetMetalSelection(metal_type_id="galvanized-steel", gauge_id="24ga", quantities={})


def get_metal_type(metal_type_id: str) -> Optional[MetalType]:
    return load_metal_types().get(metal_type_id)


def gauges_for_metal(metal_type_id: str) -> List[MetalGauge]:
    metal = get_metal_type(metal_type_id)
    return list(metal.gauges) if metal else []


def flashing_price_per_lf(metal_type_id: str, gauge_id: str, profile: FlashingProfile) -> float:
    metal = get_metal_type(metal_type_id)
    if metal is None:
        return 0.0
    gauge = metal.gauge(gauge_id)
    if gauge is None:
        return 0.0
    width_factor = profile.developed_width / REFERENCE_WIDTH_INCHES
    return round_cents(metal.base_price_per_lf * gauge.price_multiplier * width_factor)


class SheetMetalCalculator:

    def __init__(self, profiles: Optional[Mapping[str, FlashingProfile]] = None):
        self.profiles = profiles if profiles is not None else load_flashing_profiles()

    def estimate(self, selection: SheetMetalSelection) -> SheetMetalEstimate:
        skipped = []
        metal = get_metal_type(selection.metal_type_id)
        gauge = metal.gauge(selection.gauge_id) if metal else None
        if metal is None:
            skipped.append(selection.metal_type_id)
        elif gauge is None:
            skipped.append(selection.gauge_id)
        for bad_id in skipped:
            logger.warning("Unknown metal/gauge %r: flashing priced at $0", bad_id)

        line_items = []
        for flashing_id, quantity in selection.quantities.items():
            if quantity <= 0:
                continue
            profile = self.profiles.get(flashing_id)
            if profile is None:
                logger.warning("Unknown flashing profile %r skipped", flashing_id)
                skipped.append(flashing_id)
                continue
            unit_price = flashing_price_per_lf(selection.metal_type_id, selection.gauge_id, profile)
            line_items.append(SheetMetalLineItem(
                flashing_id=flashing_id,
                name=profile.name,
                quantity=quantity,
                unit_price=unit_price,
                total_cost=round_cents(unit_price * quantity),
                labor_minutes=int(round_half_up(profile.labor_minutes_per_lf * quantity)),
            ))

        line_items.sort(key=lambda item: item.total_cost, reverse=True)
        return SheetMetalEstimate(
            line_items=line_items,
            total_material_cost=round_cents(sum(item.total_cost for item in line_items)),
            total_labor_minutes=sum(item.labor_minutes for item in line_items),
            metal_type=metal.name if metal else "",
            gauge=gauge.label if gauge else "",
            skipped_ids=skipped,
        )
