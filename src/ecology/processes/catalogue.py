"""Registry of process identifiers accepted in a process sequence."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import partial
from typing import Callable, Dict, List, Sequence

from ..cell import ProcessKind
from ..errors import InvalidConfiguration
from ..process import EcologyProcess
from .grazing import ZooplanktonLargeGrow
from .mass_balance import MassBalance
from .mortality import (
    DinoflagellateDielMortality,
    DinoflagellateMortality,
    LinearMortality,
    TrichodesmiumMortality,
)
from .physics import TemperatureFactor, Viscosity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcessSpec:
    """Descriptor for a catalogued process."""

    factory: Callable[..., EcologyProcess]
    kind: ProcessKind
    description: str = ""

    def create(self, name: str) -> EcologyProcess:
        return self.factory(name, self.kind)


PROCESS_REGISTRY: Dict[str, ProcessSpec] = {
    "tfactor_wc": ProcessSpec(TemperatureFactor, ProcessKind.WC, "Q10 temperature factor"),
    "tfactor_sed": ProcessSpec(TemperatureFactor, ProcessKind.SED, "Q10 temperature factor"),
    "viscosity_wc": ProcessSpec(Viscosity, ProcessKind.WC, "seawater kinematic viscosity"),
    "viscosity_sed": ProcessSpec(Viscosity, ProcessKind.SED, "pore water kinematic viscosity"),
    "mass_balance_wc": ProcessSpec(MassBalance, ProcessKind.WC, "mass-balance totals"),
    "mass_balance_sed": ProcessSpec(MassBalance, ProcessKind.SED, "mass-balance totals"),
    "phytoplankton_large_mortality_wc": ProcessSpec(
        partial(LinearMortality, pool="PhyL"), ProcessKind.WC, "large phytoplankton mortality"
    ),
    "phytoplankton_small_mortality_wc": ProcessSpec(
        partial(LinearMortality, pool="PhyS"), ProcessKind.WC, "small phytoplankton mortality"
    ),
    "dinoflagellate_mortality_wc": ProcessSpec(
        DinoflagellateMortality, ProcessKind.WC, "dinoflagellate mortality"
    ),
    "dinoflagellate_diel_mortality_sed": ProcessSpec(
        DinoflagellateDielMortality, ProcessKind.SED, "dinoflagellate mortality in sediment"
    ),
    "trichodesmium_mortality_sed": ProcessSpec(
        TrichodesmiumMortality, ProcessKind.SED, "Trichodesmium mortality in sediment"
    ),
    "zooplankton_large_grow_wc": ProcessSpec(
        ZooplanktonLargeGrow, ProcessKind.WC, "large zooplankton grazing and growth"
    ),
}


def create_processes(kind: ProcessKind, names: Sequence[str] | None) -> List[EcologyProcess]:
    """Instantiate the configured processes of one kind, preserving order."""

    kind = ProcessKind(kind)
    processes: List[EcologyProcess] = []
    seen: set[str] = set()
    for raw in names or ():
        name = str(raw).strip()
        spec = PROCESS_REGISTRY.get(name)
        if spec is None:
            raise InvalidConfiguration(
                f"Unknown process '{name}'. Available: {', '.join(sorted(PROCESS_REGISTRY))}"
            )
        if spec.kind is not kind:
            raise InvalidConfiguration(
                f"process '{name}' is a {spec.kind.value} process and cannot run in the {kind.value} sequence"
            )
        if name in seen:
            raise InvalidConfiguration(f"process '{name}' listed twice in the {kind.value} sequence")
        seen.add(name)
        processes.append(spec.create(name))
    logger.debug("%s processes resolved: %s", kind.value, [process.name for process in processes])
    return processes


def available_processes(kind: ProcessKind | None = None) -> List[str]:
    if kind is None:
        return sorted(PROCESS_REGISTRY)
    kind = ProcessKind(kind)
    return sorted(name for name, spec in PROCESS_REGISTRY.items() if spec.kind is kind)


__all__ = ["PROCESS_REGISTRY", "ProcessSpec", "available_processes", "create_processes"]
