"""Catalogue of ecological processes."""

from .catalogue import PROCESS_REGISTRY, ProcessSpec, available_processes, create_processes
from .grazing import ZooplanktonLargeGrow
from .mass_balance import MassBalance, MassTrackingProcess
from .mortality import (
    DinoflagellateDielMortality,
    DinoflagellateMortality,
    LinearMortality,
    TrichodesmiumMortality,
)
from .physics import TemperatureFactor, Viscosity

__all__ = [
    "DinoflagellateDielMortality",
    "DinoflagellateMortality",
    "LinearMortality",
    "MassBalance",
    "MassTrackingProcess",
    "PROCESS_REGISTRY",
    "ProcessSpec",
    "TemperatureFactor",
    "TrichodesmiumMortality",
    "Viscosity",
    "ZooplanktonLargeGrow",
    "available_processes",
    "create_processes",
]
