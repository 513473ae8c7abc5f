"""
Domain models for the estimation engine.

Reference records (Product, PenetrationType, MetalType, ...) are read from the
catalogs. Measurements, assembly choices and labor items are calculation inputs.
LineItem and the *Estimate models are calculation outputs.

Every model is frozen and result collections are tuples. A recalculation builds
a new result instead of patching an old one.
"""

import enum
import math
from typing import Annotated, Dict, List, Optional, Tuple

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

from .config import settings


BASE_FLASHING_HEIGHT_INCHES = 18
MAX_INSULATION_LAYERS = 4
NONE_OPTION = "none"


# --- Enums ---

class RoofSystem(str, enum.Enum):
    KARNAK_METAL_KYNAR = "karnak-metal-kynar"
    CARLISLE_TPO = "carlisle-tpo"
    GAF_TPO = "gaf-tpo"

    @property
    def is_membrane(self) -> bool:
        return self in MEMBRANE_SYSTEMS


MEMBRANE_SYSTEMS = frozenset({RoofSystem.CARLISLE_TPO, RoofSystem.GAF_TPO})


class CoverageType(str, enum.Enum):
    AREA = "area"
    HORIZONTAL_SEAM = "horizontal_seam"
    VERTICAL_SEAM = "vertical_seam"
    HORIZONTAL_SEAM_FABRIC = "horizontal_seam_fabric"


class AttachmentMethod(str, enum.Enum):
    FULLY_ADHERED = "fully-adhered"
    MECHANICALLY_ATTACHED = "mechanically-attached"


class RateType(str, enum.Enum):
    PER_AREA = "per_sqft"
    PER_HOUR = "per_hour"
    PER_LINEAR_FOOT = "per_lf"
    PER_DAY = "per_day"
    FLAT = "flat"


# --- Input normalization ---

def to_measure(value) -> float:
    """
    Coerce raw user input to a non-negative float.

    Accepts numbers and numeric strings ("1,600", " 12.5 "). Negative, NaN,
    infinite, empty and non-numeric input all become 0.0.
    """
    if value is None:
        return 0.0
    try:
        number = float(str(value).strip().replace(",", ""))
    except (ValueError, TypeError):
        return 0.0
    if math.isnan(number) or math.isinf(number) or number < 0:
        return 0.0
    return number


def to_count(value) -> int:
    """Whole non-negative count. Fractions are truncated."""
    return int(to_measure(value))


Measure = Annotated[float, BeforeValidator(to_measure)]
Count = Annotated[int, BeforeValidator(to_count)]


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


# --- Reference data ---

class Product(_Frozen):
    id: str
    name: str
    category: str
    unit: str
    coverage_rate: float
    coverage_unit: str = ""
    default_price: float
    description: str = ""
    short_name: Optional[str] = None
    unit_label: Optional[str] = None
    # Only coverage-rate (coating) products carry this
    coverage_type: Optional[str] = None


class Option(_Frozen):
    value: str
    label: str


class InsulationThickness(_Frozen):
    value: str
    label: str
    r_value: float
    price: float

    @property
    def inches(self) -> float:
        return float(self.value)


class PricingProduct(_Frozen):
    """Flat pricing-database row spanning every system's catalog."""
    product_id: str
    system: RoofSystem
    manufacturer: str
    category: str
    name: str
    unit: str
    unit_price: float


# --- Measurements & assembly ---

class CoatingMeasurements(_Frozen):
    square_footage: Measure = 0.0
    vertical_seams_lf: Measure = 0.0
    horizontal_seams_lf: Measure = 0.0


class MembraneMeasurements(_Frozen):
    roof_area: Measure = 0.0
    wall_linear_ft: Measure = 0.0
    wall_height: Measure = 0.0
    base_flashing_lf: Measure = 0.0

    @property
    def wall_sq_ft(self) -> float:
        return self.wall_linear_ft * self.wall_height

    @property
    def base_flashing_sq_ft(self) -> float:
        return self.base_flashing_lf * (BASE_FLASHING_HEIGHT_INCHES / 12)

    @property
    def flashing_lf(self) -> float:
        """Base + wall flashing length, used by per-linear-foot labor."""
        return self.base_flashing_lf + self.wall_linear_ft


class InsulationLayer(_Frozen):
    thickness: str = NONE_OPTION
    enabled: bool = False


def default_insulation_layers() -> List[InsulationLayer]:
    return [InsulationLayer(thickness="2.0", enabled=True)] + [
        InsulationLayer() for _ in range(MAX_INSULATION_LAYERS - 1)
    ]


class AssemblyConfig(_Frozen):
    deck_type: str = "steel-22ga"
    vapor_barrier: str = NONE_OPTION
    insulation_enabled: bool = True
    insulation_layers: List[InsulationLayer] = Field(
        default_factory=default_insulation_layers,
        max_length=MAX_INSULATION_LAYERS,
    )
    cover_board: str = "densdeck-prime-half"
    membrane_thickness: str = "60mil"
    attachment_method: AttachmentMethod = AttachmentMethod.FULLY_ADHERED


class InsulationSummary(_Frozen):
    total_thickness: float = 0.0
    total_r_value: float = 0.0
    active_layers: Tuple[InsulationThickness, ...] = ()


# --- Estimate results ---

class LineItem(_Frozen):
    product: Product
    quantity_needed: float
    quantity_to_order: int
    unit_price: float
    total_cost: float
    note: str = ""


class EstimateResult(_Frozen):
    system: RoofSystem
    line_items: Tuple[LineItem, ...] = ()
    total_material_cost: float = 0.0
    # Catalog ids that were referenced but not found
    skipped_ids: Tuple[str, ...] = ()

    def quantities_by_product(self) -> Dict[str, int]:
        return {item.product.id: item.quantity_to_order for item in self.line_items}


class CoatingEstimate(EstimateResult):
    measurements: CoatingMeasurements

    @property
    def roof_area(self) -> float:
        return self.measurements.square_footage


class MembraneEstimate(EstimateResult):
    measurements: MembraneMeasurements
    assembly: AssemblyConfig
    insulation: InsulationSummary = InsulationSummary()
    wall_sq_ft: float = 0.0
    base_flashing_sq_ft: float = 0.0

    @property
    def roof_area(self) -> float:
        return self.measurements.roof_area


# --- Penetrations ---

class PenetrationMaterial(_Frozen):
    name: str
    unit: str
    quantity_per_unit: float
    unit_price: float


class PenetrationType(_Frozen):
    id: str
    name: str
    category: str
    description: str = ""
    size_label: str = ""
    labor_minutes: float = 0.0
    materials: Tuple[PenetrationMaterial, ...] = ()


class PenetrationSelection(_Frozen):
    penetration_id: str
    quantity: Count = 0


class AggregatedMaterial(_Frozen):
    material_name: str
    unit: str
    quantity_needed: float
    quantity: int
    unit_price: float
    total_price: float
    # Comma-joined names of the penetrations that need this material
    from_penetration: str


class PenetrationEstimate(_Frozen):
    materials: Tuple[AggregatedMaterial, ...] = ()
    total_material_cost: float = 0.0
    total_labor_minutes: float = 0.0
    skipped_ids: Tuple[str, ...] = ()


# --- Sheet metal ---

class MetalGauge(_Frozen):
    id: str
    label: str
    value: str
    price_multiplier: float


class MetalType(_Frozen):
    id: str
    name: str
    base_price_per_lf: float
    default_gauge_id: str
    gauges: Tuple[MetalGauge, ...]

    def gauge(self, gauge_id: str) -> Optional[MetalGauge]:
        return next((g for g in self.gauges if g.id == gauge_id), None)


class FlashingProfile(_Frozen):
    id: str
    name: str
    description: str = ""
    unit: str = "LF"
    developed_width: float
    labor_minutes_per_lf: float


class SheetMetalSelection(_Frozen):
    metal_type_id: str = "galvanized-steel"
    gauge_id: str = "24ga"
    # flashing profile id -> linear feet
    quantities: Dict[str, Measure] = {}


class SheetMetalLineItem(_Frozen):
    flashing_id: str
    name: str
    quantity: float
    unit_price: float
    total_cost: float
    labor_minutes: int


class SheetMetalEstimate(_Frozen):
    line_items: Tuple[SheetMetalLineItem, ...] = ()
    total_material_cost: float = 0.0
    total_labor_minutes: int = 0
    metal_type: str = ""
    gauge: str = ""
    skipped_ids: Tuple[str, ...] = ()


# --- Labor & equipment ---

class LaborItem(_Frozen):
    id: str
    label: str
    description: str = ""
    rate_type: RateType
    rate: Measure = 0.0
    quantity: Measure = 1.0
    enabled: bool = True


class LaborEquipmentState(_Frozen):
    labor_items: List[LaborItem] = []
    equipment_items: List[LaborItem] = []


class CostLine(_Frozen):
    id: str
    label: str
    cost: float
    detail: str


class LaborEquipmentTotals(_Frozen):
    labor_total: float = 0.0
    equipment_total: float = 0.0
    labor_breakdown: Tuple[CostLine, ...] = ()
    equipment_breakdown: Tuple[CostLine, ...] = ()

    @property
    def total(self) -> float:
        return self.labor_total + self.equipment_total


# --- Breakdown ---

class BreakdownMaterialItem(_Frozen):
    id: str
    name: str
    description: str = ""
    category: str = ""
    unit: str = ""
    quantity_needed: float = 0.0
    quantity: float = 0.0
    unit_price: float = 0.0
    total_cost: float = 0.0
    enabled: bool = True

    @property
    def cost(self) -> float:
        return self.total_cost


class BreakdownPenetrationItem(_Frozen):
    id: str
    name: str
    description: str = ""
    unit: str = ""
    quantity: float = 0.0
    unit_price: float = 0.0
    total_cost: float = 0.0
    enabled: bool = True

    @property
    def cost(self) -> float:
        return self.total_cost


class BreakdownLaborItem(_Frozen):
    """One labor or equipment row. Disabled rows keep their cost for re-enabling."""
    id: str
    label: str
    description: str = ""
    rate_type: RateType
    rate: float = 0.0
    quantity: float = 0.0
    computed_cost: float = 0.0
    enabled: bool = True

    @property
    def cost(self) -> float:
        return self.computed_cost


class TaxProfit(_Frozen):
    tax_enabled: bool = False
    tax_percent: float = Field(default_factory=lambda: settings.DEFAULT_TAX_PERCENT)
    profit_enabled: bool = False
    profit_percent: float = Field(default_factory=lambda: settings.DEFAULT_PROFIT_PERCENT)


class EstimateBreakdown(_Frozen):
    system_name: str
    system_slug: RoofSystem
    accent_color: str
    measurements: Dict[str, str]
    roof_area: float
    materials: Tuple[BreakdownMaterialItem, ...] = ()
    penetrations: Tuple[BreakdownPenetrationItem, ...] = ()
    labor: Tuple[BreakdownLaborItem, ...] = ()
    equipment: Tuple[BreakdownLaborItem, ...] = ()
    skipped_ids: Tuple[str, ...] = ()


class BreakdownSaveState(_Frozen):
    """Editable breakdown as persisted: item lists plus per-section tax/profit."""
    materials: Tuple[BreakdownMaterialItem, ...]
    penetrations: Tuple[BreakdownPenetrationItem, ...] = ()
    labor: Tuple[BreakdownLaborItem, ...]
    equipment: Tuple[BreakdownLaborItem, ...] = ()
    materials_tax_profit: TaxProfit = Field(default_factory=TaxProfit)
    penetrations_tax_profit: TaxProfit = Field(default_factory=TaxProfit)
    labor_tax_profit: TaxProfit = Field(default_factory=TaxProfit)
    equipment_tax_profit: TaxProfit = Field(default_factory=TaxProfit)


class SectionTotals(_Frozen):
    base: float = 0.0
    tax: float = 0.0
    profit: float = 0.0
    total: float = 0.0


class BreakdownTotals(_Frozen):
    materials: SectionTotals
    penetrations: SectionTotals
    labor: SectionTotals
    equipment: SectionTotals
    grand_total: float
    total_tax: float
    total_profit: float
