from fastapi import APIRouter, HTTPException, Response
from typing import Literal
import logging

from ..calculators.assembly import MembraneAssemblyCalculator
from ..calculators.labor_equipment import calculate_labor_equipment_totals
from ..calculators.penetrations import PenetrationAggregator
from ..calculators.registry import get_calculator
from ..calculators.sheet_metal import SheetMetalCalculator
from ..catalogs import default_labor_equipment
from ..export import breakdown_to_csv, estimate_to_csv
from ..models import (
    CoatingEstimate,
    LaborEquipmentTotals,
    MembraneEstimate,
    PenetrationEstimate,
    RoofSystem,
    SheetMetalEstimate,
    SheetMetalSelection,
)
from ..pricing_engine import PricingEngine
from ..schemas import (
    BreakdownRequest,
    BreakdownResponse,
    CoatingEstimateRequest,
    LaborEquipmentRequest,
    MembraneEstimateRequest,
    PenetrationEstimateRequest,
    RetotalRequest,
    TotalsResponse,
)
from ..state import deserialize_state, reconstruct_estimate
from .catalog import parse_system

router = APIRouter(prefix="/estimates", tags=["estimates"])
logger = logging.getLogger(__name__)

engine = PricingEngine()


def _load_state(payload: dict):
    state = deserialize_state(payload)
    if state is None:
        raise HTTPException(status_code=422, detail="Saved estimator state could not be read")
    return state


@router.post("/coating", response_model=CoatingEstimate)
def estimate_coating(req: CoatingEstimateRequest):
    calculator = get_calculator(RoofSystem.KARNAK_METAL_KYNAR)
    return calculator.calculate(req.measurements, req.custom_prices)


@router.post("/membrane/{system}", response_model=MembraneEstimate)
def estimate_membrane(system: str, req: MembraneEstimateRequest):
    roof_system = parse_system(system)
    if not roof_system.is_membrane:
        raise HTTPException(status_code=404, detail=f"{system} is not a membrane system")
    calculator = MembraneAssemblyCalculator(roof_system)
    return calculator.calculate(req.measurements, req.custom_prices, assembly=req.assembly)


@router.post("/penetrations", response_model=PenetrationEstimate)
def estimate_penetrations(req: PenetrationEstimateRequest):
    return PenetrationAggregator().aggregate(req.selections)


@router.post("/sheet-metal", response_model=SheetMetalEstimate)
def estimate_sheet_metal(selection: SheetMetalSelection):
    return SheetMetalCalculator().estimate(selection)


@router.post("/labor-equipment", response_model=LaborEquipmentTotals)
def estimate_labor_equipment(req: LaborEquipmentRequest):
    state = req.state or default_labor_equipment(req.system)
    return calculate_labor_equipment_totals(state, req.roof_area, req.flashing_lf)


@router.post("/breakdown", response_model=BreakdownResponse)
def build_breakdown(req: BreakdownRequest):
    """Full priced breakdown for a saved estimator state."""
    state = _load_state(req.state)
    return engine.build_breakdown(state, req.tax_profit)


@router.post("/breakdown/totals", response_model=TotalsResponse)
def retotal_breakdown(req: RetotalRequest):
    """Totals after the user toggles items or edits tax/profit."""
    return engine.retotal(req.save_state, req.roof_area)


@router.post("/export.csv")
def export_csv(req: BreakdownRequest, kind: Literal["breakdown", "materials"] = "breakdown"):
    """
    CSV download. kind=materials is the supplier order list for the system
    materials only; kind=breakdown is every section with totals.
    """
    state = _load_state(req.state)
    if kind == "materials":
        content = estimate_to_csv(reconstruct_estimate(state))
    else:
        result = engine.build_breakdown(state, req.tax_profit)
        content = breakdown_to_csv(result["breakdown"], result["save_state"])
    logger.info("Exported %s CSV for %s", kind, state.system)
    filename = f"{state.system}-{kind}.csv"
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
