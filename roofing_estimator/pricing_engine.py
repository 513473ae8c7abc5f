"""
Pricing engine: saved estimator state in, priced breakdown out.

Runs every calculator a saved state needs (system materials, penetrations,
sheet metal, labor & equipment), normalizes the results into one breakdown
and totals it. Pure math, no I/O.
"""

import logging
from datetime import datetime, timezone
from typing import Optional, Union

from .breakdown import breakdown_totals, to_save_state
from .calculators.base import round_cents
from .models import BreakdownSaveState, EstimateBreakdown, TaxProfit
from .state import CoatingSaveState, MembraneSaveState, reconstruct_breakdown

logger = logging.getLogger(__name__)


class PricingEngine:
    """
    Assembles the final priced breakdown for one estimate.
    """

    def build_breakdown(self, state: Union[CoatingSaveState, MembraneSaveState],
                        tax_profit: Optional[TaxProfit] = None) -> dict:
        """
        Args:
            state: saved estimator state (measurements, assembly, prices,
                labor/equipment, penetrations)
            tax_profit: applied to every section; default is tax and profit off

        Returns:
            {
                "breakdown": EstimateBreakdown,
                "save_state": BreakdownSaveState,
                "totals": BreakdownTotals,
                "cost_per_sq_ft": float,
                "created_at": ISO timestamp,
            }
        """
        breakdown = reconstruct_breakdown(state)
        save_state = self._initial_save_state(breakdown, tax_profit)
        totals = breakdown_totals(save_state)

        logger.info("%s breakdown: %d materials, %d penetrations, grand total $%.2f",
                    breakdown.system_slug.value, len(breakdown.materials),
                    len(breakdown.penetrations), totals.grand_total)
        if breakdown.skipped_ids:
            logger.warning("Skipped catalog ids: %s", ", ".join(breakdown.skipped_ids))

        return {
            "breakdown": breakdown,
            "save_state": save_state,
            "totals": totals,
            "cost_per_sq_ft": self._cost_per_sq_ft(totals.grand_total, breakdown.roof_area),
            "created_at": datetime.now(timezone.utc).isoformat(),
        }

    def retotal(self, save_state: BreakdownSaveState, roof_area: float = 0.0) -> dict:
        """Totals for an edited breakdown (toggled items, tax/profit changes)."""
        totals = breakdown_totals(save_state)
        return {
            "totals": totals,
            "cost_per_sq_ft": self._cost_per_sq_ft(totals.grand_total, roof_area),
        }

    def _initial_save_state(self, breakdown: EstimateBreakdown,
                            tax_profit: Optional[TaxProfit]) -> BreakdownSaveState:
        if tax_profit is None:
            return to_save_state(breakdown)
        return to_save_state(
            breakdown,
            materials_tax_profit=tax_profit,
            penetrations_tax_profit=tax_profit,
            labor_tax_profit=tax_profit,
            equipment_tax_profit=tax_profit,
        )

    def _cost_per_sq_ft(self, grand_total: float, roof_area: float) -> float:
        if roof_area <= 0:
            return 0.0
        return round_cents(grand_total / roof_area)
