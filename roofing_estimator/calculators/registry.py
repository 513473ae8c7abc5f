"""
Calculator registry: maps each RoofSystem to the calculator that estimates it.

Every RoofSystem member must be registered; a missing one fails at import.
"""

from functools import partial

from .assembly import MembraneAssemblyCalculator
from .base import BaseCalculator
from .coverage import CoverageRateCalculator
from ..models import RoofSystem

CALCULATOR_REGISTRY = {
    RoofSystem.KARNAK_METAL_KYNAR: CoverageRateCalculator,
    RoofSystem.CARLISLE_TPO: partial(MembraneAssemblyCalculator, RoofSystem.CARLISLE_TPO),
    RoofSystem.GAF_TPO: partial(MembraneAssemblyCalculator, RoofSystem.GAF_TPO),
}

_unregistered = set(RoofSystem) - set(CALCULATOR_REGISTRY)
if _unregistered:
    raise RuntimeError(f"No calculator registered for: {sorted(s.value for s in _unregistered)}")


def get_calculator(system) -> BaseCalculator:
    """Returns a calculator instance for a system, or raises ValueError."""
    try:
        system = RoofSystem(system)
    except ValueError:
        raise ValueError(
            f"No calculator registered for system: {system}. "
            f"Available: {list_calculators()}"
        )
    return CALCULATOR_REGISTRY[system]()


def has_calculator(system) -> bool:
    """Check if a calculator exists for a system."""
    return system in {s.value for s in CALCULATOR_REGISTRY}


def list_calculators() -> list[str]:
    """List all registered system slugs."""
    return [s.value for s in CALCULATOR_REGISTRY]
