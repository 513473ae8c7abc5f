"""
Reference catalogs: products, assembly options, penetration types, sheet
metal, default labor/equipment.

Catalogs are JSON files in catalogs/data/ (or settings.CATALOG_DIR when set).
Each file is read once per process and handed out as a read-only mapping keyed
by stable string id. Calculators only look ids up; they never define catalog
contents.
"""

import json
import logging
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

from ..config import settings
from ..models import (
    FlashingProfile,
    InsulationThickness,
    LaborEquipmentState,
    LaborItem,
    MetalType,
    Option,
    PenetrationType,
    PricingProduct,
    Product,
    RoofSystem,
)

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).parent / "data"

SYSTEM_CATALOG_FILES = {
    RoofSystem.KARNAK_METAL_KYNAR: "karnak_metal_kynar.json",
    RoofSystem.CARLISLE_TPO: "carlisle_tpo.json",
    RoofSystem.GAF_TPO: "gaf_tpo.json",
}

# Product ids in the pricing database are namespaced per system
PRICING_ID_PREFIX = {
    RoofSystem.KARNAK_METAL_KYNAR: "karnak",
    RoofSystem.CARLISLE_TPO: RoofSystem.CARLISLE_TPO.value,
    RoofSystem.GAF_TPO: RoofSystem.GAF_TPO.value,
}


def _data_dir() -> Path:
    return Path(settings.CATALOG_DIR) if settings.CATALOG_DIR else DATA_DIR


def _read(filename: str):
    path = _data_dir() / filename
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    logger.info("Loaded catalog %s", path)
    return data


class SystemCatalog:
    """One roofing system's products plus its manufacturer-specific option maps."""

    def __init__(self, system: RoofSystem, data: dict):
        self.system = system
        self.name = data["name"]
        self.manufacturer = data["manufacturer"]
        self.accent = data.get("accent", "")
        self.products: Mapping[str, Product] = MappingProxyType(
            {p["id"]: Product(**p) for p in data["products"]}
        )

        # Membrane systems only: option lists shown to the user ...
        self.vapor_barriers = _options(data.get("vapor_barriers"))
        self.cover_boards = _options(data.get("cover_boards"))
        self.membrane_thicknesses = _options(data.get("membrane_thicknesses"))
        self.attachment_methods = _options(data.get("attachment_methods"))
        # ... and how those options resolve to products
        self.vapor_barrier_products: Mapping[str, str] = MappingProxyType(
            dict(data.get("vapor_barrier_products", {}))
        )
        self.cover_board_products: Mapping[str, str] = MappingProxyType(
            dict(data.get("cover_board_products", {}))
        )
        self.cover_board_thickness: Mapping[str, float] = MappingProxyType(
            {k: float(v) for k, v in data.get("cover_board_thickness", {}).items()}
        )

    def get(self, product_id: str) -> Optional[Product]:
        return self.products.get(product_id)

    def __len__(self) -> int:
        return len(self.products)


def _options(raw) -> Tuple[Option, ...]:
    return tuple(Option(**o) for o in raw or [])


@lru_cache(maxsize=None)
def load_system_catalog(system: RoofSystem) -> SystemCatalog:
    """Catalog for one system. Raises ValueError for an unknown system."""
    system = RoofSystem(system)
    catalog = SystemCatalog(system, _read(SYSTEM_CATALOG_FILES[system]))
    logger.info("%s catalog: %d products", catalog.name, len(catalog))
    return catalog


class AssemblyOptions:
    def __init__(self, data: dict):
        self.deck_types = _options(data["deck_types"])
        self.insulation_thicknesses: Mapping[str, InsulationThickness] = MappingProxyType(
            {t["value"]: InsulationThickness(**t) for t in data["insulation_thicknesses"]}
        )


@lru_cache(maxsize=None)
def load_assembly_options() -> AssemblyOptions:
    """Deck types and the polyiso thickness / R-value table shared by membrane systems."""
    return AssemblyOptions(_read("assembly_options.json"))


@lru_cache(maxsize=None)
def _penetration_data() -> dict:
    return _read("penetrations.json")


@lru_cache(maxsize=None)
def load_penetration_types() -> Mapping[str, PenetrationType]:
    types = {p["id"]: PenetrationType(**p) for p in _penetration_data()["types"]}
    return MappingProxyType(types)


def penetration_categories() -> Tuple[str, ...]:
    return tuple(_penetration_data()["categories"])


@lru_cache(maxsize=None)
def _sheet_metal_data() -> dict:
    return _read("sheet_metal.json")


@lru_cache(maxsize=None)
def load_metal_types() -> Mapping[str, MetalType]:
    return MappingProxyType(
        {m["id"]: MetalType(**m) for m in _sheet_metal_data()["metal_types"]}
    )


@lru_cache(maxsize=None)
def load_flashing_profiles() -> Mapping[str, FlashingProfile]:
    return MappingProxyType(
        {p["id"]: FlashingProfile(**p) for p in _sheet_metal_data()["flashing_profiles"]}
    )


@lru_cache(maxsize=None)
def _labor_equipment_data() -> dict:
    return _read("labor_equipment.json")


def default_labor_equipment(system: RoofSystem) -> LaborEquipmentState:
    """
    Default labor and equipment items for a system family.

    The coating system and the membrane systems carry different defaults.
    A fresh state is built on every call so callers may edit it freely.
    """
    family = "membrane" if RoofSystem(system).is_membrane else "coating"
    data = _labor_equipment_data()[family]
    return LaborEquipmentState(
        labor_items=[LaborItem(**item) for item in data["labor"]],
        equipment_items=[LaborItem(**item) for item in data["equipment"]],
    )


def all_products(system: Optional[RoofSystem] = None) -> List[PricingProduct]:
    """Flat pricing-database view of every system's products, optionally filtered."""
    systems = [RoofSystem(system)] if system else list(RoofSystem)
    rows = []
    for sys in systems:
        catalog = load_system_catalog(sys)
        for product in catalog.products.values():
            rows.append(PricingProduct(
                product_id=f"{PRICING_ID_PREFIX[sys]}-{product.id}",
                system=sys,
                manufacturer=catalog.manufacturer,
                category=product.category or "General",
                name=product.name,
                unit=product.unit_label or product.unit or "each",
                unit_price=product.default_price,
            ))
    return rows


def catalog_counts() -> Dict[str, int]:
    """Entry counts per catalog, reported by /health."""
    counts = {sys.value: len(load_system_catalog(sys)) for sys in RoofSystem}
    counts["penetrations"] = len(load_penetration_types())
    counts["metal_types"] = len(load_metal_types())
    counts["flashing_profiles"] = len(load_flashing_profiles())
    return counts
