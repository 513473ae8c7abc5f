from fastapi import APIRouter, HTTPException
from typing import List, Optional

from ..calculators.penetrations import penetrations_by_category
from ..catalogs import (
    all_products,
    default_labor_equipment,
    load_assembly_options,
    load_flashing_profiles,
    load_metal_types,
    load_system_catalog,
)
from ..models import LaborEquipmentState, PricingProduct, RoofSystem
from ..schemas import AssemblyOptionsResponse, PenetrationCategory, SystemSummary

router = APIRouter(prefix="/catalog", tags=["catalog"])


def parse_system(system: str) -> RoofSystem:
    try:
        return RoofSystem(system)
    except ValueError:
        raise HTTPException(
            status_code=404,
            detail=f"Unknown roof system: {system}. Available: {[s.value for s in RoofSystem]}",
        )


@router.get("/systems", response_model=List[SystemSummary])
def list_systems():
    summaries = []
    for system in RoofSystem:
        catalog = load_system_catalog(system)
        summaries.append(SystemSummary(
            system=system,
            name=catalog.name,
            manufacturer=catalog.manufacturer,
            accent=catalog.accent,
            product_count=len(catalog),
            vapor_barriers=list(catalog.vapor_barriers),
            cover_boards=list(catalog.cover_boards),
            membrane_thicknesses=list(catalog.membrane_thicknesses),
            attachment_methods=list(catalog.attachment_methods),
        ))
    return summaries


@router.get("/products", response_model=List[PricingProduct])
def list_products(system: Optional[str] = None):
    """Flat product/price list, all systems unless `system` is given."""
    return all_products(parse_system(system) if system else None)


@router.get("/assembly-options", response_model=AssemblyOptionsResponse)
def assembly_options():
    options = load_assembly_options()
    return AssemblyOptionsResponse(
        deck_types=list(options.deck_types),
        insulation_thicknesses=list(options.insulation_thicknesses.values()),
    )


@router.get("/penetrations", response_model=List[PenetrationCategory])
def list_penetrations():
    return [
        PenetrationCategory(category=category, types=types)
        for category, types in penetrations_by_category().items()
    ]


@router.get("/sheet-metal")
def sheet_metal_catalog():
    return {
        "metal_types": list(load_metal_types().values()),
        "flashing_profiles": list(load_flashing_profiles().values()),
    }


@router.get("/labor-equipment/{system}", response_model=LaborEquipmentState)
def labor_equipment_defaults(system: str):
    return default_labor_equipment(parse_system(system))
