"""
TPO membrane assembly calculator tests (Carlisle SynTec and GAF EverGuard).

Tests:
1-4.   Insulation summary (layers, order, unknown thickness)
5-9.   Fully adhered assembly line items
10-13. Mechanically attached fastening
14-16. Walls, base flashing, accessories
17-20. Options: vapor barrier, cover board, unknown ids
21-23. Edge cases: zero area, non-membrane system, overrides
24-26. Line-item invariants, immutable results, injected catalog
"""

import math

import pytest
from pydantic import ValidationError

from roofing_estimator.calculators.assembly import MembraneAssemblyCalculator, insulation_summary
from roofing_estimator.catalogs import SystemCatalog
from roofing_estimator.models import (
    AssemblyConfig,
    AttachmentMethod,
    InsulationLayer,
    MembraneEstimate,
    MembraneMeasurements,
    RoofSystem,
)


# --- Test fixtures ---

def _sample_roof():
    """Plain 10,000 sq ft roof, no walls."""
    return MembraneMeasurements(roof_area=10000)


def _layers(*thicknesses):
    layers = [InsulationLayer(thickness=t, enabled=True) for t in thicknesses]
    return layers + [InsulationLayer() for _ in range(4 - len(layers))]


def _mechanical(**kwargs):
    return AssemblyConfig(attachment_method=AttachmentMethod.MECHANICALLY_ATTACHED, **kwargs)


def _estimate(system=RoofSystem.CARLISLE_TPO, measurements=None, assembly=None, overrides=None):
    calc = MembraneAssemblyCalculator(system)
    return calc.calculate(measurements or _sample_roof(), overrides, assembly=assembly)


def _items(estimate):
    return {item.product.id: item for item in estimate.line_items}


# --- Insulation summary ---

def test_insulation_summary_single_layer():
    summary = insulation_summary(_layers("2.0"))
    assert summary.total_thickness == pytest.approx(2.0)
    assert summary.total_r_value == pytest.approx(11.4)
    assert [t.value for t in summary.active_layers] == ["2.0"]


def test_insulation_summary_sums_layers():
    summary = insulation_summary(_layers("2.0", "1.5"))
    assert summary.total_thickness == pytest.approx(3.5)
    assert summary.total_r_value == pytest.approx(20.0)


def test_insulation_summary_ignores_layer_order():
    a = insulation_summary(_layers("2.0", "1.5", "1.0"))
    b = insulation_summary(_layers("1.0", "2.0", "1.5"))
    assert a.total_thickness == pytest.approx(b.total_thickness)
    assert a.total_r_value == pytest.approx(b.total_r_value)


def test_insulation_summary_skips_disabled_none_and_unknown():
    layers = [
        InsulationLayer(thickness="2.0", enabled=True),
        InsulationLayer(thickness="3.0", enabled=False),
        InsulationLayer(thickness="none", enabled=True),
        InsulationLayer(thickness="9.9", enabled=True),
    ]
    summary = insulation_summary(layers)
    assert summary.total_thickness == pytest.approx(2.0)
    assert len(summary.active_layers) == 1


# --- Fully adhered ---

def test_default_assembly_line_items():
    estimate = _estimate()
    assert isinstance(estimate, MembraneEstimate)
    assert [item.product.id for item in estimate.line_items] == [
        "insulation-2.0",
        "adhesive-insulation",
        "cover-densdeck-half",
        "membrane-60mil",
        "adhesive-bonding",
    ]
    assert estimate.skipped_ids == ()


def test_boards_include_three_percent_waste():
    items = _items(_estimate())
    # 10,000 x 1.03 / 32 = 321.875
    assert items["insulation-2.0"].quantity_needed == pytest.approx(321.875)
    assert items["insulation-2.0"].quantity_to_order == 322
    assert items["cover-densdeck-half"].quantity_to_order == 322
    assert items["insulation-2.0"].total_cost == pytest.approx(322 * 52)


def test_membrane_includes_five_percent_waste():
    items = _items(_estimate())
    assert items["membrane-60mil"].quantity_needed == pytest.approx(10.5)
    assert items["membrane-60mil"].quantity_to_order == 11
    assert items["membrane-60mil"].total_cost == pytest.approx(11 * 987)


def test_insulation_adhesive_scales_with_layers():
    one = _items(_estimate(assembly=AssemblyConfig(insulation_layers=_layers("2.0"))))
    two = _items(_estimate(assembly=AssemblyConfig(insulation_layers=_layers("2.0", "1.5"))))
    assert one["adhesive-insulation"].quantity_to_order == 43   # 10,300 / 240
    assert two["adhesive-insulation"].quantity_to_order == 86   # 20,600 / 240
    assert "2 insulation layers" in two["adhesive-insulation"].note
    assert two["insulation-1.5"].note.startswith("Layer 2:")


def test_total_is_sum_of_line_items():
    estimate = _estimate()
    assert estimate.total_material_cost == pytest.approx(
        sum(item.total_cost for item in estimate.line_items)
    )


# --- Mechanically attached ---

def test_mechanical_replaces_adhesives_with_fasteners():
    items = _items(_estimate(assembly=_mechanical()))
    assert "adhesive-insulation" not in items
    assert "adhesive-bonding" not in items
    for product_id in ("fastener-screws-4in", "fastener-plates-3in", "fastener-plates-perimeter",
                       "fastener-screws-membrane-2in", "fastener-plates-barbed"):
        assert product_id in items


def test_mechanical_insulation_fastener_counts():
    items = _items(_estimate(assembly=_mechanical()))
    screws = items["fastener-screws-4in"]
    assert screws.quantity_needed == pytest.approx(1.725)   # 1,725 screws, boxes of 1,000
    assert screws.quantity_to_order == 2
    assert "Field: 875 / Perim: 550 / Corner: 300" in screws.note
    assert items["fastener-plates-perimeter"].quantity_needed == pytest.approx(1.7)  # 850 / 500


def test_mechanical_membrane_fastener_counts():
    items = _items(_estimate(assembly=_mechanical()))
    screws = items["fastener-screws-membrane-2in"]
    assert screws.quantity_needed == pytest.approx(1.19)
    assert "10 seam rows" in screws.note
    assert items["fastener-plates-barbed"].quantity_to_order == 2


def test_no_insulation_means_no_insulation_fasteners():
    estimate = _estimate(assembly=_mechanical(insulation_enabled=False))
    ids = [item.product.id for item in estimate.line_items]
    assert not any(i.startswith("insulation-") for i in ids)
    assert "fastener-plates-3in" not in ids
    assert "fastener-screws-membrane-2in" in ids
    assert estimate.insulation.total_thickness == 0


# --- Walls and flashing ---

def test_wall_and_base_flashing_items(membrane_measurements):
    estimate = _estimate(measurements=membrane_measurements)
    items = _items(estimate)
    assert estimate.wall_sq_ft == pytest.approx(600)
    assert estimate.base_flashing_sq_ft == pytest.approx(150)
    assert items["flash-membrane-24"].quantity_to_order == 2    # 100 / 50
    assert items["adhesive-primer"].quantity_needed == pytest.approx(0.3)  # 150 sq ft / 500
    assert items["flash-membrane-12"].quantity_to_order == 4    # 200 / 50
    assert items["acc-termbar"].quantity_to_order == 20
    assert items["acc-caulk"].quantity_to_order == 8
    assert items["acc-coverstrip"].quantity_to_order == 3       # (100 + 200) / 100


def test_corner_count_has_a_minimum():
    short = _items(_estimate(measurements=MembraneMeasurements(
        roof_area=10000, wall_linear_ft=200, wall_height=3)))
    long = _items(_estimate(measurements=MembraneMeasurements(
        roof_area=10000, wall_linear_ft=1000, wall_height=3)))
    assert short["acc-corners"].quantity_to_order == 8
    assert long["acc-corners"].quantity_to_order == 20


def test_wall_without_height_skips_wall_flashing():
    items = _items(_estimate(measurements=MembraneMeasurements(
        roof_area=10000, wall_linear_ft=200)))
    assert "flash-membrane-12" not in items
    assert "acc-termbar" not in items


# --- Options ---

def test_gaf_vapor_barrier_product():
    assembly = AssemblyConfig(vapor_barrier="gaf-vb-sa")
    items = _items(_estimate(system=RoofSystem.GAF_TPO, assembly=assembly))
    assert items["vb-gaf-sa"].quantity_needed == pytest.approx(10300 / items["vb-gaf-sa"].product.coverage_rate)


def test_foreign_vapor_barrier_is_skipped():
    """A GAF option on a Carlisle roof is reported, not raised."""
    estimate = _estimate(assembly=AssemblyConfig(vapor_barrier="gaf-vb-sa"))
    assert estimate.skipped_ids == ("gaf-vb-sa",)
    assert estimate.line_items[0].product.id == "insulation-2.0"


def test_cover_board_none_and_thinner_board():
    without = _items(_estimate(assembly=AssemblyConfig(cover_board="none")))
    assert not any(pid.startswith("cover-") for pid in without)
    quarter = _items(_estimate(assembly=_mechanical(
        cover_board="densdeck-prime-quarter", insulation_layers=_layers("1.5"))))
    # 1.5 + 0.25 + 1 = 2.75" -> 3" screw
    assert "fastener-screws-3in" in quarter


def test_unknown_membrane_thickness_is_skipped():
    estimate = _estimate(assembly=AssemblyConfig(membrane_thickness="100mil"))
    assert "membrane-100mil" in estimate.skipped_ids


# --- Edge cases ---

def test_zero_area_is_empty():
    m = MembraneMeasurements(wall_linear_ft=200, wall_height=3)
    estimate = _estimate(measurements=m)
    assert estimate.line_items == ()
    assert estimate.total_material_cost == 0
    assert estimate.wall_sq_ft == pytest.approx(600)


def test_coating_system_is_rejected():
    with pytest.raises(ValueError):
        MembraneAssemblyCalculator(RoofSystem.KARNAK_METAL_KYNAR)


def test_price_override():
    items = _items(_estimate(overrides={"membrane-60mil": 900}))
    assert items["membrane-60mil"].unit_price == 900
    assert items["membrane-60mil"].total_cost == pytest.approx(11 * 900)


# --- Line-item invariants ---

@pytest.mark.parametrize("system", [RoofSystem.CARLISLE_TPO, RoofSystem.GAF_TPO])
@pytest.mark.parametrize("method", list(AttachmentMethod))
def test_every_line_item_orders_whole_units(system, method, membrane_measurements):
    assembly = AssemblyConfig(attachment_method=method, insulation_layers=_layers("2.0", "1.5"))
    estimate = _estimate(system=system, measurements=membrane_measurements, assembly=assembly)
    assert estimate.line_items
    for item in estimate.line_items:
        assert item.quantity_to_order >= 0
        assert item.quantity_to_order == math.ceil(item.quantity_needed)
        assert item.total_cost == item.quantity_to_order * item.unit_price
    assert estimate.total_material_cost == pytest.approx(
        sum(item.total_cost for item in estimate.line_items))


def test_estimate_collections_are_immutable():
    estimate = _estimate()
    with pytest.raises(AttributeError):
        estimate.line_items.clear()
    with pytest.raises(TypeError):
        estimate.line_items[0] = estimate.line_items[1]
    with pytest.raises(ValidationError):
        estimate.line_items = ()
    assert len(estimate.line_items) == 5


# --- Injected catalog ---

def test_empty_injected_catalog_is_used():
    empty = SystemCatalog(RoofSystem.CARLISLE_TPO,
                          {"name": "Empty", "manufacturer": "None", "products": []})
    calc = MembraneAssemblyCalculator(RoofSystem.CARLISLE_TPO, catalog=empty)
    assert calc.catalog is empty
    estimate = calc.calculate(_sample_roof())
    assert estimate.line_items == ()
    assert estimate.total_material_cost == 0
    assert "insulation-2.0" in estimate.skipped_ids
    assert "membrane-60mil" in estimate.skipped_ids
