"""
Membrane-system assembly calculator (Carlisle SynTec TPO, GAF EverGuard TPO).

One algorithm serves every membrane manufacturer; only the catalog differs
(products + option-to-product maps + cover board thicknesses).

Single deterministic pass. Each step adds line items, and is a no-op when its
assembly choice is "none" or disabled:
  1. Vapor barrier          area x 1.03 / coverage
  2. Insulation, per layer  area x 1.03 / coverage
  3. Insulation attachment  zone fasteners + plates, or adhesive per layer
  4. Cover board            area x 1.03 / coverage
  5. Membrane               area x 1.05 / coverage (side-lap waste)
  6. Membrane attachment    bonding adhesive, or seam-row screws + plates
  7. Base flashing          18" high, primer on its square footage
  8. Wall flashing          termination bar + caulk along the wall
  9. Accessories            cover strip, corners
"""

import logging
import math
from typing import List, Optional

from .base import BaseCalculator, LineItemCollector, PriceOverrides, format_quantity
from .zones import (
    insulation_fasteners,
    membrane_fasteners,
    seam_layout,
    select_insulation_screw,
)
from ..catalogs import SystemCatalog, load_assembly_options, load_system_catalog
from ..models import (
    AssemblyConfig,
    AttachmentMethod,
    InsulationLayer,
    InsulationSummary,
    MembraneEstimate,
    MembraneMeasurements,
    NONE_OPTION,
    RoofSystem,
)

logger = logging.getLogger(__name__)

BOARD_WASTE_FACTOR = 1.03      # ~3% cut waste on boards and sheets
MEMBRANE_WASTE_FACTOR = 1.05   # ~6" side laps

MIN_CORNERS = 8                # 4 inside + 4 outside on a typical building
WALL_LF_PER_CORNER = 50


def insulation_summary(layers: List[InsulationLayer]) -> InsulationSummary:
    """
    Total thickness and R-value over the enabled, non-"none" layers.

    Unknown thickness values are ignored. Layer order only affects the order
    of `active_layers`, never the totals.
    """
    table = load_assembly_options().insulation_thicknesses
    active = []
    for layer in layers:
        if not layer.enabled or layer.thickness == NONE_OPTION:
            continue
        found = table.get(layer.thickness)
        if found is None:
            logger.warning("Unknown insulation thickness %r ignored", layer.thickness)
            continue
        active.append(found)
    return InsulationSummary(
        total_thickness=sum(t.inches for t in active),
        total_r_value=sum(t.r_value for t in active),
        active_layers=active,
    )


class MembraneAssemblyCalculator(BaseCalculator):

    def __init__(self, system: RoofSystem, catalog: Optional[SystemCatalog] = None):
        self.system = RoofSystem(system)
        if not self.system.is_membrane:
            raise ValueError(f"{self.system.value} is not a membrane system")
        self.catalog = catalog if catalog is not None else load_system_catalog(self.system)

    def calculate(self, measurements: MembraneMeasurements,
                  price_overrides: Optional[PriceOverrides] = None,
                  assembly: Optional[AssemblyConfig] = None) -> MembraneEstimate:
        assembly = assembly or AssemblyConfig()
        summary = (insulation_summary(assembly.insulation_layers)
                   if assembly.insulation_enabled else InsulationSummary())
        result = dict(
            system=self.system,
            measurements=measurements,
            assembly=assembly,
            insulation=summary,
            wall_sq_ft=measurements.wall_sq_ft,
            base_flashing_sq_ft=measurements.base_flashing_sq_ft,
        )
        if measurements.roof_area <= 0:
            return MembraneEstimate(**result)

        items = LineItemCollector(self, price_overrides)
        self._vapor_barrier(items, measurements, assembly)
        self._insulation(items, measurements, summary)
        self._insulation_attachment(items, measurements, assembly, summary)
        self._cover_board(items, measurements, assembly)
        self._membrane(items, measurements, assembly)
        self._membrane_attachment(items, measurements, assembly)
        self._base_flashing(items, measurements)
        self._wall_flashing(items, measurements)
        self._accessories(items, measurements)

        logger.debug("%s estimate: %d items, $%.2f, skipped=%s", self.system.value,
                     len(items.line_items), items.total_cost, items.skipped_ids)
        return MembraneEstimate(
            line_items=items.line_items,
            total_material_cost=items.total_cost,
            skipped_ids=items.skipped_ids,
            **result,
        )

    # --- 1. Vapor barrier ---

    def _vapor_barrier(self, items, m, assembly):
        if assembly.vapor_barrier == NONE_OPTION:
            return
        product_id = self.catalog.vapor_barrier_products.get(assembly.vapor_barrier)
        if product_id is None:
            items.skip(assembly.vapor_barrier)
            return
        product = items.lookup(product_id)
        if product:
            qty = self.units_for(m.roof_area * BOARD_WASTE_FACTOR, product)
            items.add(product, qty, f"Covers {format_quantity(m.roof_area)} sq ft roof area")

    # --- 2. Insulation ---

    def _insulation(self, items, m, summary):
        layer_count = len(summary.active_layers)
        for index, layer in enumerate(summary.active_layers, start=1):
            product = items.lookup(f"insulation-{layer.value}")
            if product is None:
                continue
            qty = self.units_for(m.roof_area * BOARD_WASTE_FACTOR, product)
            prefix = f"Layer {index}: " if layer_count > 1 else ""
            items.add(product, qty,
                      f"{prefix}{qty:.0f} boards for {format_quantity(m.roof_area)} sq ft")

    # --- 3. Insulation attachment ---

    def _insulation_attachment(self, items, m, assembly, summary):
        if summary.total_thickness <= 0:
            return
        if assembly.attachment_method == AttachmentMethod.MECHANICALLY_ATTACHED:
            self._insulation_fasteners(items, m, assembly, summary)
            return

        # Adhered: one adhesive application per insulation layer
        product = items.lookup("adhesive-insulation")
        if product:
            layers = len(summary.active_layers)
            qty = self.units_for(m.roof_area * BOARD_WASTE_FACTOR * layers, product)
            plural = "s" if layers > 1 else ""
            items.add(product, qty, f"Adhering {layers} insulation layer{plural} "
                                    f"over {format_quantity(m.roof_area)} sq ft")

    def _insulation_fasteners(self, items, m, assembly, summary):
        fasteners = insulation_fasteners(m.roof_area)
        cover_inches = self.catalog.cover_board_thickness.get(assembly.cover_board, 0.0)

        screw = items.lookup(select_insulation_screw(summary.total_thickness, cover_inches))
        if screw:
            items.add(
                screw,
                self.units_for(fasteners.total, screw),
                f"{fasteners.total:,} screws for {summary.total_thickness:.1f}\" insulation + "
                f"{format_quantity(cover_inches)}\" cover board "
                f"(Field: {fasteners.field:,} / Perim: {fasteners.perimeter:,} / "
                f"Corner: {fasteners.corner:,})",
            )

        plates = items.lookup("fastener-plates-3in")
        if plates:
            items.add(plates, self.units_for(fasteners.total, plates),
                      f"{fasteners.total:,} insulation stress plates (1:1 with screws)")

        if fasteners.edge > 0:
            hd_plates = items.lookup("fastener-plates-perimeter")
            if hd_plates:
                items.add(hd_plates, self.units_for(fasteners.edge, hd_plates),
                          f"{fasteners.edge:,} heavy-duty plates for perimeter & corner zones")

    # --- 4. Cover board ---

    def _cover_board(self, items, m, assembly):
        if assembly.cover_board == NONE_OPTION:
            return
        product_id = self.catalog.cover_board_products.get(assembly.cover_board)
        if product_id is None:
            items.skip(assembly.cover_board)
            return
        product = items.lookup(product_id)
        if product:
            qty = self.units_for(m.roof_area * BOARD_WASTE_FACTOR, product)
            items.add(product, qty, f"{qty:.0f} boards for {format_quantity(m.roof_area)} sq ft")

    # --- 5. Membrane ---

    def _membrane(self, items, m, assembly):
        product = items.lookup(f"membrane-{assembly.membrane_thickness}")
        if product:
            qty = self.units_for(m.roof_area * MEMBRANE_WASTE_FACTOR, product)
            items.add(product, qty, "Includes 5% for side-lap overlap waste")

    # --- 6. Membrane attachment ---

    def _membrane_attachment(self, items, m, assembly):
        if assembly.attachment_method == AttachmentMethod.FULLY_ADHERED:
            product = items.lookup("adhesive-bonding")
            if product:
                qty = self.units_for(m.roof_area * MEMBRANE_WASTE_FACTOR, product)
                items.add(product, qty,
                          f"Adhering membrane over {format_quantity(m.roof_area)} sq ft")
            return

        layout = seam_layout(m.roof_area)
        fasteners = membrane_fasteners(layout)
        screws = items.lookup("fastener-screws-membrane-2in")
        if screws:
            items.add(
                screws,
                self.units_for(fasteners.total, screws),
                f"{fasteners.total:,} membrane screws in {layout.seam_rows} seam rows "
                f"(Field: {fasteners.field:,} / Perim: {fasteners.perimeter:,} / "
                f"Corner: {fasteners.corner:,})",
            )
        plates = items.lookup("fastener-plates-barbed")
        if plates:
            items.add(plates, self.units_for(fasteners.total, plates),
                      f"{fasteners.total:,} barbed seam plates (1:1 with membrane screws)")

    # --- 7. Base flashing ---

    def _base_flashing(self, items, m):
        if m.base_flashing_lf <= 0:
            return
        flashing = items.lookup("flash-membrane-24")
        if flashing:
            items.add(flashing, self.units_for(m.base_flashing_lf, flashing),
                      f"{format_quantity(m.base_flashing_lf)} lin ft at 18\" height")
        primer = items.lookup("adhesive-primer")
        if primer:
            items.add(primer, self.units_for(m.base_flashing_sq_ft, primer),
                      f"Primer for {m.base_flashing_sq_ft:.0f} sq ft of base flashing area")

    # --- 8. Wall flashing ---

    def _wall_flashing(self, items, m):
        if m.wall_linear_ft <= 0 or m.wall_height <= 0:
            return
        wall_lf = format_quantity(m.wall_linear_ft)
        flashing = items.lookup("flash-membrane-12")
        if flashing:
            items.add(flashing, self.units_for(m.wall_linear_ft, flashing),
                      f"{wall_lf} lin ft wall termination")
        term_bar = items.lookup("acc-termbar")
        if term_bar:
            items.add(term_bar, self.units_for(m.wall_linear_ft, term_bar),
                      "Securing membrane at wall termination")
        caulk = items.lookup("acc-caulk")
        if caulk:
            items.add(caulk, self.units_for(m.wall_linear_ft, caulk),
                      f"Sealing termination bar at {wall_lf} lin ft")

    # --- 9. Accessories ---

    def _accessories(self, items, m):
        if m.flashing_lf > 0:
            cover_strip = items.lookup("acc-coverstrip")
            if cover_strip:
                items.add(cover_strip, self.units_for(m.flashing_lf, cover_strip),
                          f"Detail work for {format_quantity(m.flashing_lf)} lin ft of flashing")

        if m.wall_linear_ft > 0:
            corners = items.lookup("acc-corners")
            if corners:
                count = max(MIN_CORNERS, math.ceil(m.wall_linear_ft / WALL_LF_PER_CORNER))
                items.add(corners, count, f"Estimated {count} inside/outside corners")
