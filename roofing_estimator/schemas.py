from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional

from .models import (
    AssemblyConfig,
    BreakdownSaveState,
    BreakdownTotals,
    CoatingMeasurements,
    EstimateBreakdown,
    InsulationThickness,
    LaborEquipmentState,
    Measure,
    MembraneMeasurements,
    Option,
    PenetrationSelection,
    PenetrationType,
    RoofSystem,
    TaxProfit,
)


# --- Requests ---

class CoatingEstimateRequest(BaseModel):
    measurements: CoatingMeasurements = Field(default_factory=CoatingMeasurements)
    custom_prices: Dict[str, Measure] = {}

class MembraneEstimateRequest(BaseModel):
    measurements: MembraneMeasurements = Field(default_factory=MembraneMeasurements)
    assembly: AssemblyConfig = Field(default_factory=AssemblyConfig)
    custom_prices: Dict[str, Measure] = {}

class PenetrationEstimateRequest(BaseModel):
    selections: List[PenetrationSelection] = []

class LaborEquipmentRequest(BaseModel):
    system: RoofSystem
    # None -> system family defaults
    state: Optional[LaborEquipmentState] = None
    roof_area: Measure = 0.0
    flashing_lf: Measure = 0.0

class BreakdownRequest(BaseModel):
    # raw saved estimator state, deserialized by the route
    state: Dict[str, Any]
    tax_profit: Optional[TaxProfit] = None

class RetotalRequest(BaseModel):
    save_state: BreakdownSaveState
    roof_area: Measure = 0.0


# --- Responses ---

class SystemSummary(BaseModel):
    system: RoofSystem
    name: str
    manufacturer: str
    accent: str
    product_count: int
    vapor_barriers: List[Option] = []
    cover_boards: List[Option] = []
    membrane_thicknesses: List[Option] = []
    attachment_methods: List[Option] = []

class AssemblyOptionsResponse(BaseModel):
    deck_types: List[Option]
    insulation_thicknesses: List[InsulationThickness]

class PenetrationCategory(BaseModel):
    category: str
    types: List[PenetrationType]

class BreakdownResponse(BaseModel):
    breakdown: EstimateBreakdown
    save_state: BreakdownSaveState
    totals: BreakdownTotals
    cost_per_sq_ft: float
    created_at: str

class TotalsResponse(BaseModel):
    totals: BreakdownTotals
    cost_per_sq_ft: float
