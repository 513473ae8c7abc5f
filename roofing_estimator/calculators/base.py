"""
Abstract base class for all roofing-system calculators.

Input: a measurement set (+ assembly configuration for membrane systems)
       and an optional price override map
Output: an EstimateResult whose line items satisfy
        quantity_to_order == ceil(quantity_needed) >= 0
        total_cost == quantity_to_order * unit_price
"""

import logging
import math
from abc import ABC, abstractmethod
from typing import List, Mapping, Optional

from ..catalogs import SystemCatalog
from ..models import EstimateResult, LineItem, Product, RoofSystem

logger = logging.getLogger(__name__)

PriceOverrides = Mapping[str, float]


def round_half_up(value: float, digits: int = 0) -> float:
    """Round x.5 away from zero for positive values (banker's rounding would not)."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def round_cents(value: float) -> float:
    return round_half_up(value, 2)


def format_quantity(value: float) -> str:
    """Thousands separators, at most 3 decimals, trailing zeros dropped: 1234.5 -> '1,234.5'."""
    return f"{value:,.3f}".rstrip("0").rstrip(".")


class BaseCalculator(ABC):
    """All roofing-system calculators inherit from this."""

    system: RoofSystem
    catalog: SystemCatalog

    @abstractmethod
    def calculate(self, measurements, price_overrides: Optional[PriceOverrides] = None) -> EstimateResult:
        """
        Takes the measurement set for this system.
        Returns a fresh EstimateResult; never mutates its inputs.
        """
        pass

    # --- Helper methods for all calculators ---

    def resolve_price(self, product: Product, price_overrides: Optional[PriceOverrides]) -> float:
        """Override price if one is set for this product, else the catalog default."""
        if price_overrides and product.id in price_overrides:
            return float(price_overrides[product.id])
        return product.default_price

    def order_quantity(self, quantity_needed: float) -> int:
        """Whole purchase units to order. Always rounds UP, never negative."""
        return max(math.ceil(quantity_needed), 0)

    def units_for(self, amount: float, product: Product) -> float:
        """Exact purchase units covering `amount` (area or length). Zero coverage -> 0."""
        if product.coverage_rate <= 0:
            logger.warning("Product %s has no coverage rate; quantity set to 0", product.id)
            return 0.0
        return amount / product.coverage_rate

    def make_line_item(self, product: Product, quantity_needed: float,
                       price_overrides: Optional[PriceOverrides] = None,
                       note: str = "") -> LineItem:
        quantity_to_order = self.order_quantity(quantity_needed)
        unit_price = self.resolve_price(product, price_overrides)
        return LineItem(
            product=product,
            quantity_needed=quantity_needed,
            quantity_to_order=quantity_to_order,
            unit_price=unit_price,
            total_cost=quantity_to_order * unit_price,
            note=note,
        )

    def total_cost(self, line_items: List[LineItem]) -> float:
        return sum(item.total_cost for item in line_items)


class LineItemCollector:
    """
    Accumulates the line items of one calculation.

    Unknown product ids are recorded in `skipped_ids` and logged instead of
    raising, since the catalogs are maintained separately from the algorithms.
    """

    def __init__(self, calculator: BaseCalculator,
                 price_overrides: Optional[PriceOverrides] = None):
        self.calculator = calculator
        self.price_overrides = price_overrides
        self.line_items: List[LineItem] = []
        self.skipped_ids: List[str] = []

    def skip(self, catalog_id: str):
        if catalog_id not in self.skipped_ids:
            logger.warning("%s: unknown catalog id %r skipped",
                           self.calculator.system.value, catalog_id)
            self.skipped_ids.append(catalog_id)

    def lookup(self, product_id: str) -> Optional[Product]:
        product = self.calculator.catalog.get(product_id)
        if product is None:
            self.skip(product_id)
        return product

    def add(self, product: Product, quantity_needed: float, note: str = "") -> LineItem:
        item = self.calculator.make_line_item(product, quantity_needed, self.price_overrides, note)
        self.line_items.append(item)
        return item

    @property
    def total_cost(self) -> float:
        return self.calculator.total_cost(self.line_items)
