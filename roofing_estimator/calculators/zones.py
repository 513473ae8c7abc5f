"""
Wind-uplift zone apportionment and fastener selection for membrane systems.

A roof area (or total seam-row length) is split into field / perimeter / corner
zones at fixed 70 / 22 / 8 ratios. Fastener density rises toward the edges, and
every zone is rounded UP on its own before the zones are summed, so a small
corner zone still gets its fasteners.
"""

import math
from typing import Dict

from pydantic import BaseModel, ConfigDict


FIELD_ZONE_RATIO = 0.70
PERIMETER_ZONE_RATIO = 0.22
CORNER_ZONE_RATIO = 0.08

ZONE_RATIOS = {
    "field": FIELD_ZONE_RATIO,
    "perimeter": PERIMETER_ZONE_RATIO,
    "corner": CORNER_ZONE_RATIO,
}

BOARD_AREA_SQ_FT = 32  # 4' x 8' insulation board

# Per board: field 1 per 8 sq ft, perimeter 1 per 4 sq ft, corner 1 per 2.67 sq ft
INSULATION_FASTENERS_PER_BOARD = {"field": 4, "perimeter": 8, "corner": 12}

# Per lin. ft. of seam row: 12" / 8" / 6" o.c.
MEMBRANE_FASTENERS_PER_LF = {"field": 1, "perimeter": 1.5, "corner": 2}

MEMBRANE_ROLL_WIDTH_FT = 10

# Screw must pass through the whole assembly and bite 1" into the deck
DECK_PENETRATION_INCHES = 1.0

# (max total thickness in inches, screw product id), ascending
SCREW_LENGTHS = [
    (2, "fastener-screws-2in"),
    (3, "fastener-screws-3in"),
    (4, "fastener-screws-4in"),
    (5, "fastener-screws-5in"),
    (6, "fastener-screws-6in"),
    (7, "fastener-screws-7in"),
]
LONGEST_SCREW = "fastener-screws-8in"


class ZoneFasteners(BaseModel):
    model_config = ConfigDict(frozen=True)

    field: int = 0
    perimeter: int = 0
    corner: int = 0

    @property
    def total(self) -> int:
        return self.field + self.perimeter + self.corner

    @property
    def edge(self) -> int:
        """Perimeter + corner: the zones that get heavy-duty plates."""
        return self.perimeter + self.corner


class SeamLayout(BaseModel):
    """
    Approximate seam-row geometry for a roof of the given area.

    The roof is modelled as a square of equal area, with membrane rolls laid
    side by side across its width. This is not an as-built layout.
    """
    model_config = ConfigDict(frozen=True)

    roof_width: float = 0.0
    roof_length: float = 0.0
    seam_rows: int = 0

    @property
    def total_seam_lf(self) -> float:
        return self.roof_length * self.seam_rows


def apportion(total: float) -> Dict[str, float]:
    """Split an area or a length into its field / perimeter / corner shares."""
    return {zone: total * ratio for zone, ratio in ZONE_RATIOS.items()}


def insulation_fasteners(roof_area: float) -> ZoneFasteners:
    """Insulation screws per zone: ceil(zone boards x per-board density)."""
    if roof_area <= 0:
        return ZoneFasteners()
    zones = apportion(roof_area)
    return ZoneFasteners(**{
        zone: math.ceil(zone_area / BOARD_AREA_SQ_FT * INSULATION_FASTENERS_PER_BOARD[zone])
        for zone, zone_area in zones.items()
    })


def seam_layout(roof_area: float) -> SeamLayout:
    if roof_area <= 0:
        return SeamLayout()
    width = math.sqrt(roof_area)
    return SeamLayout(
        roof_width=width,
        roof_length=roof_area / width,
        seam_rows=math.ceil(width / MEMBRANE_ROLL_WIDTH_FT),
    )


def membrane_fasteners(layout: SeamLayout) -> ZoneFasteners:
    """Membrane screws per zone: ceil(zone seam length x per-foot density)."""
    zones = apportion(layout.total_seam_lf)
    return ZoneFasteners(**{
        zone: math.ceil(zone_lf * MEMBRANE_FASTENERS_PER_LF[zone])
        for zone, zone_lf in zones.items()
    })


def select_insulation_screw(insulation_inches: float, cover_board_inches: float) -> str:
    """Shortest screw product that spans insulation + cover board + deck engagement."""
    total_thickness = insulation_inches + cover_board_inches + DECK_PENETRATION_INCHES
    for max_thickness, product_id in SCREW_LENGTHS:
        if total_thickness <= max_thickness:
            return product_id
    return LONGEST_SCREW
