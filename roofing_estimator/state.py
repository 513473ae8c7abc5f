"""
Saved estimator state: the persisted form of one estimate's inputs.

The payload is a tagged variant on `system`:
  "karnak-metal-kynar"       -> CoatingSaveState
  "carlisle-tpo" / "gaf-tpo" -> MembraneSaveState
Measurements are stored as the raw strings the user typed, and are parsed
(bad input -> 0) only when the estimate is reconstructed. Reconstruction re-runs
the calculators, so save -> reload yields the same quantities and totals.

Corrupt payloads are reported as None, never raised.
"""

import json
import logging
from typing import Annotated, Dict, Literal, Mapping, Optional, Union

from pydantic import BaseModel, BeforeValidator, Field, TypeAdapter, ValidationError

from .breakdown import serialize_breakdown
from .calculators.penetrations import PenetrationAggregator, selections_from_counts
from .calculators.registry import get_calculator
from .calculators.sheet_metal import SheetMetalCalculator
from .catalogs import default_labor_equipment
from .models import (
    AssemblyConfig,
    CoatingMeasurements,
    Count,
    EstimateBreakdown,
    EstimateResult,
    LaborEquipmentState,
    Measure,
    MembraneMeasurements,
    PenetrationEstimate,
    RoofSystem,
    SheetMetalEstimate,
    SheetMetalSelection,
)

logger = logging.getLogger(__name__)


def _raw(value) -> str:
    return "" if value is None else str(value)


RawMeasure = Annotated[str, BeforeValidator(_raw)]


class PenetrationsState(BaseModel):
    # penetration type id -> count
    line_items: Dict[str, Count] = {}
    sheet_metal: Optional[SheetMetalSelection] = None


class CoatingSaveState(BaseModel):
    system: Literal["karnak-metal-kynar"] = "karnak-metal-kynar"
    square_footage: RawMeasure = ""
    vertical_seams_lf: RawMeasure = ""
    horizontal_seams_lf: RawMeasure = ""
    custom_prices: Dict[str, Measure] = {}
    labor_equipment: Optional[LaborEquipmentState] = None
    penetrations: Optional[PenetrationsState] = None


class MembraneMeasurementInput(BaseModel):
    total_roof_area: RawMeasure = ""
    wall_linear_ft: RawMeasure = ""
    wall_height: RawMeasure = ""
    base_flashing: RawMeasure = ""


class MembraneSaveState(BaseModel):
    system: Literal["carlisle-tpo", "gaf-tpo"]
    measurements: MembraneMeasurementInput = Field(default_factory=MembraneMeasurementInput)
    # None -> default assembly
    assembly: Optional[AssemblyConfig] = None
    custom_prices: Dict[str, Measure] = {}
    labor_equipment: Optional[LaborEquipmentState] = None
    penetrations: Optional[PenetrationsState] = None


SavedEstimateState = Annotated[
    Union[CoatingSaveState, MembraneSaveState],
    Field(discriminator="system"),
]

_state_adapter = TypeAdapter(SavedEstimateState)


# --- Building states from typed inputs ---

def coating_save_state(measurements: CoatingMeasurements,
                       custom_prices: Optional[Mapping[str, float]] = None,
                       labor_equipment: Optional[LaborEquipmentState] = None,
                       penetrations: Optional[PenetrationsState] = None) -> CoatingSaveState:
    return CoatingSaveState(
        square_footage=str(measurements.square_footage),
        vertical_seams_lf=str(measurements.vertical_seams_lf),
        horizontal_seams_lf=str(measurements.horizontal_seams_lf),
        custom_prices=dict(custom_prices or {}),
        labor_equipment=labor_equipment,
        penetrations=penetrations,
    )


def membrane_save_state(system: RoofSystem,
                        measurements: MembraneMeasurements,
                        assembly: Optional[AssemblyConfig] = None,
                        custom_prices: Optional[Mapping[str, float]] = None,
                        labor_equipment: Optional[LaborEquipmentState] = None,
                        penetrations: Optional[PenetrationsState] = None) -> MembraneSaveState:
    return MembraneSaveState(
        system=RoofSystem(system).value,
        measurements=MembraneMeasurementInput(
            total_roof_area=str(measurements.roof_area),
            wall_linear_ft=str(measurements.wall_linear_ft),
            wall_height=str(measurements.wall_height),
            base_flashing=str(measurements.base_flashing_lf),
        ),
        assembly=assembly,
        custom_prices=dict(custom_prices or {}),
        labor_equipment=labor_equipment,
        penetrations=penetrations,
    )


# --- Serialization ---

def serialize_state(state: Union[CoatingSaveState, MembraneSaveState]) -> str:
    return state.model_dump_json()


def deserialize_state(payload) -> Optional[Union[CoatingSaveState, MembraneSaveState]]:
    """Parse a saved payload (JSON string or already-decoded dict). None if unusable."""
    try:
        if isinstance(payload, (str, bytes)):
            return _state_adapter.validate_json(payload)
        return _state_adapter.validate_python(payload)
    except (ValidationError, ValueError, TypeError) as e:
        logger.warning("Rejected saved estimator state: %s", e)
        return None


def detect_system(payload: str) -> Optional[RoofSystem]:
    try:
        data = json.loads(payload)
        return RoofSystem(data.get("system"))
    except (ValueError, TypeError, AttributeError):
        return None


# --- Reconstruction ---

def reconstruct_estimate(state: Union[CoatingSaveState, MembraneSaveState]) -> EstimateResult:
    """Re-run the system calculator on the saved inputs."""
    calculator = get_calculator(state.system)
    if isinstance(state, CoatingSaveState):
        measurements = CoatingMeasurements(
            square_footage=state.square_footage,
            vertical_seams_lf=state.vertical_seams_lf,
            horizontal_seams_lf=state.horizontal_seams_lf,
        )
        return calculator.calculate(measurements, state.custom_prices)

    m = state.measurements
    measurements = MembraneMeasurements(
        roof_area=m.total_roof_area,
        wall_linear_ft=m.wall_linear_ft,
        wall_height=m.wall_height,
        base_flashing_lf=m.base_flashing,
    )
    return calculator.calculate(measurements, state.custom_prices,
                                assembly=state.assembly or AssemblyConfig())


def labor_equipment_for(state) -> LaborEquipmentState:
    """Saved labor/equipment, else the system family defaults."""
    return state.labor_equipment or default_labor_equipment(RoofSystem(state.system))


def penetration_estimate_for(state) -> Optional[PenetrationEstimate]:
    if not state.penetrations:
        return None
    selections = selections_from_counts(state.penetrations.line_items)
    return PenetrationAggregator().aggregate(selections)


def sheet_metal_estimate_for(state) -> Optional[SheetMetalEstimate]:
    if not state.penetrations or not state.penetrations.sheet_metal:
        return None
    return SheetMetalCalculator().estimate(state.penetrations.sheet_metal)


def reconstruct_breakdown(state: Union[CoatingSaveState, MembraneSaveState]) -> EstimateBreakdown:
    """Full breakdown (materials, penetrations + sheet metal, labor, equipment) from a saved state."""
    return serialize_breakdown(
        reconstruct_estimate(state),
        labor_equipment_for(state),
        penetrations=penetration_estimate_for(state),
        sheet_metal=sheet_metal_estimate_for(state),
    )
