"""
Coating system (Karnak Metal Kynar) coverage-rate calculator tests.

Tests:
1-3.   Input normalization (numeric strings, bad input -> 0)
4-8.   Quantities and costs per coverage type
9-11.  Price overrides and purity
12-13. Zero-area estimates
14-15. Line-item invariants, injected catalog
16-17. Registry lookup
"""

import math

import pytest

from roofing_estimator.calculators.coverage import CoverageRateCalculator
from roofing_estimator.calculators.registry import (
    get_calculator,
    has_calculator,
    list_calculators,
)
from roofing_estimator.catalogs import SystemCatalog
from roofing_estimator.models import CoatingEstimate, CoatingMeasurements, RoofSystem, to_measure


def _items(estimate):
    return {item.product.id: item for item in estimate.line_items}


# --- Input normalization ---

def test_measure_accepts_thousands_separator():
    assert to_measure("1,600") == 1600.0
    assert to_measure(" 12.5 ") == 12.5


def test_measure_bad_input_is_zero():
    for bad in ("", "abc", None, "-5", -3, float("nan"), float("inf")):
        assert to_measure(bad) == 0.0


def test_coating_measurements_parse_strings():
    m = CoatingMeasurements(square_footage="2,000", vertical_seams_lf="x", horizontal_seams_lf="40")
    assert m.square_footage == 2000.0
    assert m.vertical_seams_lf == 0.0
    assert m.horizontal_seams_lf == 40.0


# --- Quantities ---

def test_exact_coverage_orders_one_unit():
    """1,600 sq ft at 1,600 sq ft/quart is exactly one quart."""
    estimate = CoverageRateCalculator().calculate(CoatingMeasurements(square_footage=1600))
    primer = _items(estimate)["799"]
    assert primer.quantity_needed == pytest.approx(1.0)
    assert primer.quantity_to_order == 1
    assert primer.total_cost == pytest.approx(10.65)


def test_area_products_round_up():
    estimate = CoverageRateCalculator().calculate(CoatingMeasurements(square_footage=1600))
    items = _items(estimate)
    assert items["702"].quantity_needed == pytest.approx(1.6)
    assert items["702"].quantity_to_order == 2
    assert items["404"].quantity_to_order == 5  # 1600 / 333 = 4.8
    assert items["501"].quantity_to_order == 5


def test_seam_products_use_their_own_measurement(coating_measurements):
    items = _items(CoverageRateCalculator().calculate(coating_measurements))
    assert items["505ms-v"].quantity_needed == pytest.approx(1.0)   # 800 / 800
    assert items["505ms-h"].quantity_needed == pytest.approx(1.5)   # 150 / 100
    assert items["505ms-h"].quantity_to_order == 2
    assert items["5540"].quantity_needed == pytest.approx(0.5)      # 150 / 300
    assert items["5540"].quantity_to_order == 1


def test_no_seams_lists_seam_products_at_zero():
    estimate = CoverageRateCalculator().calculate(CoatingMeasurements(square_footage=1600))
    items = _items(estimate)
    assert len(estimate.line_items) == 7
    for product_id in ("505ms-h", "505ms-v", "5540"):
        assert items[product_id].quantity_to_order == 0
        assert items[product_id].total_cost == 0


def test_total_is_sum_of_line_items():
    estimate = CoverageRateCalculator().calculate(CoatingMeasurements(square_footage=1600))
    # 10.65 + 2 x 175 + 5 x 186 + 5 x 186
    assert estimate.total_material_cost == pytest.approx(2220.65)
    assert estimate.total_material_cost == pytest.approx(
        sum(item.total_cost for item in estimate.line_items)
    )
    for item in estimate.line_items:
        assert item.quantity_to_order == max(math.ceil(item.quantity_needed), 0)


# --- Price overrides ---

def test_price_override_replaces_default():
    m = CoatingMeasurements(square_footage=1600)
    estimate = CoverageRateCalculator().calculate(m, {"702": 150.0})
    item = _items(estimate)["702"]
    assert item.unit_price == 150.0
    assert item.total_cost == pytest.approx(300.0)


def test_override_for_unknown_product_is_ignored():
    m = CoatingMeasurements(square_footage=1600)
    base = CoverageRateCalculator().calculate(m)
    with_override = CoverageRateCalculator().calculate(m, {"does-not-exist": 1.0})
    assert with_override.total_material_cost == base.total_material_cost


def test_calculation_is_repeatable(coating_measurements):
    calc = CoverageRateCalculator()
    first = calc.calculate(coating_measurements)
    second = calc.calculate(coating_measurements)
    assert first == second


# --- Zero area ---

def test_zero_area_is_empty():
    estimate = CoverageRateCalculator().calculate(CoatingMeasurements())
    assert isinstance(estimate, CoatingEstimate)
    assert estimate.line_items == ()
    assert estimate.total_material_cost == 0


def test_seams_without_area_is_empty():
    m = CoatingMeasurements(vertical_seams_lf=500, horizontal_seams_lf=500)
    assert CoverageRateCalculator().calculate(m).line_items == ()


# --- Line-item invariants ---

def test_every_line_item_orders_whole_units(coating_measurements):
    estimate = CoverageRateCalculator().calculate(coating_measurements)
    assert len(estimate.line_items) == 7
    for item in estimate.line_items:
        assert item.quantity_to_order >= 0
        assert item.quantity_to_order == math.ceil(item.quantity_needed)
        assert item.total_cost == item.quantity_to_order * item.unit_price
    assert estimate.total_material_cost == pytest.approx(
        sum(item.total_cost for item in estimate.line_items))


def test_empty_injected_catalog_is_used(coating_measurements):
    empty = SystemCatalog(RoofSystem.KARNAK_METAL_KYNAR,
                          {"name": "Empty", "manufacturer": "None", "products": []})
    calc = CoverageRateCalculator(catalog=empty)
    assert calc.catalog is empty
    assert calc.calculate(coating_measurements).line_items == ()


# --- Registry ---

def test_registry_covers_every_system():
    assert sorted(list_calculators()) == sorted(s.value for s in RoofSystem)
    assert isinstance(get_calculator("karnak-metal-kynar"), CoverageRateCalculator)
    assert has_calculator("gaf-tpo")


def test_registry_unknown_system_raises():
    assert not has_calculator("shingles")
    with pytest.raises(ValueError, match="No calculator registered"):
        get_calculator("shingles")
