"""
Penetration aggregator.

Sums the per-instance materials of every selected penetration type into one
material list. Different penetrations that need the same named material are
merged into a single line (first catalog occurrence sets unit and price), and
each merged quantity is rounded UP only after summing.

Selections are processed in catalog order, so the result does not depend on
the order the caller lists them in.
"""

import logging
import math
from typing import Dict, Iterable, List, Mapping, Optional

from ..catalogs import load_penetration_types
from ..models import AggregatedMaterial, PenetrationEstimate, PenetrationSelection, PenetrationType

logger = logging.getLogger(__name__)


class PenetrationAggregator:

    def __init__(self, penetration_types: Optional[Mapping[str, PenetrationType]] = None):
        self.penetration_types = (penetration_types if penetration_types is not None
                                  else load_penetration_types())

    def aggregate(self, selections: Iterable[PenetrationSelection]) -> PenetrationEstimate:
        counts: Dict[str, int] = {}
        skipped: List[str] = []
        for sel in selections:
            if sel.quantity <= 0:
                continue
            if sel.penetration_id not in self.penetration_types:
                if sel.penetration_id not in skipped:
                    logger.warning("Unknown penetration type %r skipped", sel.penetration_id)
                    skipped.append(sel.penetration_id)
                continue
            counts[sel.penetration_id] = counts.get(sel.penetration_id, 0) + sel.quantity

        merged: Dict[str, dict] = {}
        labor_minutes = 0.0
        for pen_id, pen_type in self.penetration_types.items():
            count = counts.get(pen_id)
            if not count:
                continue
            labor_minutes += pen_type.labor_minutes * count
            for material in pen_type.materials:
                entry = merged.setdefault(material.name, {
                    "unit": material.unit,
                    "unit_price": material.unit_price,
                    "quantity": 0.0,
                    "sources": [],
                })
                entry["quantity"] += material.quantity_per_unit * count
                if pen_type.name not in entry["sources"]:
                    entry["sources"].append(pen_type.name)

        materials = []
        for name, entry in merged.items():
            quantity = math.ceil(entry["quantity"])
            materials.append(AggregatedMaterial(
                material_name=name,
                unit=entry["unit"],
                quantity_needed=entry["quantity"],
                quantity=quantity,
                unit_price=entry["unit_price"],
                total_price=quantity * entry["unit_price"],
                from_penetration=", ".join(entry["sources"]),
            ))
        materials.sort(key=lambda m: m.total_price, reverse=True)

        return PenetrationEstimate(
            materials=materials,
            total_material_cost=sum(m.total_price for m in materials),
            total_labor_minutes=labor_minutes,
            skipped_ids=skipped,
        )

    def by_category(self) -> Dict[str, List[PenetrationType]]:
        grouped: Dict[str, List[PenetrationType]] = {}
        for pen_type in self.penetration_types.values():
            grouped.setdefault(pen_type.category, []).append(pen_type)
        return grouped


def selections_from_counts(counts: Mapping[str, object]) -> List[PenetrationSelection]:
    """{penetration id: count} (as persisted) -> selections; bad counts become 0."""
    return [PenetrationSelection(penetration_id=pen_id, quantity=qty)
            for pen_id, qty in counts.items()]


def penetrations_by_category() -> Dict[str, List[PenetrationType]]:
    return PenetrationAggregator().by_category()


def format_labor_time(minutes: float) -> str:
    """90 -> '1 hr 30 min', 120 -> '2 hr', 45 -> '45 min'."""
    total = int(math.floor(minutes + 0.5))
    hours, mins = divmod(total, 60)
    if hours == 0:
        return f"{mins} min"
    if mins == 0:
        return f"{hours} hr"
    return f"{hours} hr {mins} min"
