"""
Karnak Metal Kynar coating system: coverage-rate calculator.

Each product is driven by exactly one raw measurement:
  area                    -> square footage
  horizontal_seam(_fabric) -> horizontal seam lin. ft.
  vertical_seam           -> vertical seam lin. ft.
quantity needed = measurement / coverage rate. No waste factor; the published
coverage rates already allow for it.
"""

import logging
from typing import Optional

from .base import BaseCalculator, LineItemCollector, PriceOverrides
from ..catalogs import SystemCatalog, load_system_catalog
from ..models import CoatingEstimate, CoatingMeasurements, CoverageType, Product, RoofSystem

logger = logging.getLogger(__name__)


class CoverageRateCalculator(BaseCalculator):

    system = RoofSystem.KARNAK_METAL_KYNAR

    def __init__(self, catalog: Optional[SystemCatalog] = None):
        self.catalog = catalog if catalog is not None else load_system_catalog(self.system)

    def calculate(self, measurements: CoatingMeasurements,
                  price_overrides: Optional[PriceOverrides] = None) -> CoatingEstimate:
        if measurements.square_footage <= 0:
            return CoatingEstimate(system=self.system, measurements=measurements)

        collector = LineItemCollector(self, price_overrides)
        for product in self.catalog.products.values():
            collector.add(product, self.quantity_needed(product, measurements))

        logger.debug("Coating estimate: %d items, $%.2f",
                     len(collector.line_items), collector.total_cost)
        return CoatingEstimate(
            system=self.system,
            measurements=measurements,
            line_items=collector.line_items,
            total_material_cost=collector.total_cost,
            skipped_ids=collector.skipped_ids,
        )

    def quantity_needed(self, product: Product, measurements: CoatingMeasurements) -> float:
        """Exact (fractional) units for one product; 0 for an unmapped coverage type."""
        sources = {
            CoverageType.AREA: measurements.square_footage,
            CoverageType.HORIZONTAL_SEAM: measurements.horizontal_seams_lf,
            CoverageType.VERTICAL_SEAM: measurements.vertical_seams_lf,
            CoverageType.HORIZONTAL_SEAM_FABRIC: measurements.horizontal_seams_lf,
        }
        try:
            amount = sources[CoverageType(product.coverage_type)]
        except ValueError:
            logger.warning("Product %s has unmapped coverage type %r",
                           product.id, product.coverage_type)
            return 0.0
        return self.units_for(amount, product)
