"""Public exports for the ecology process engine."""

from .cell import CellContext, ProcessKind
from .config import RunConfig, build_cells, build_ecology, load_run_config
from .engine import Ecology
from .errors import EcologyError, InvalidConfiguration, MissingParameter, NumericsError, UnknownIdentifier
from .massbalance import MassBalanceAuditor, MassBalanceReport
from .parameters import ParameterStore, load_parameter_store
from .process import EcologyProcess, ProcessBinder
from .registry import NameRegistry, Namespace, OptionalSlot, TracerSpec
from .stiff_ode import SolverConfig, integrate_cell

__all__ = [
    "CellContext",
    "Ecology",
    "EcologyError",
    "EcologyProcess",
    "InvalidConfiguration",
    "MassBalanceAuditor",
    "MassBalanceReport",
    "MissingParameter",
    "NameRegistry",
    "Namespace",
    "NumericsError",
    "OptionalSlot",
    "ParameterStore",
    "ProcessBinder",
    "ProcessKind",
    "RunConfig",
    "SolverConfig",
    "TracerSpec",
    "UnknownIdentifier",
    "build_cells",
    "build_ecology",
    "integrate_cell",
    "load_parameter_store",
    "load_run_config",
]
