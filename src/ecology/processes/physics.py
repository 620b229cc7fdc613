"""Per-cell physical factors shared by the biological processes."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..cell import CellContext
from ..ecofunct import seawater_viscosity, temperature_factor
from ..process import EcologyProcess, ProcessBinder

logger = logging.getLogger(__name__)

DEFAULT_Q10 = 2.0


@dataclass(frozen=True)
class TfactorWorkspace:
    q10: float
    tref: float
    temp_i: int
    tfactor_i: int


class TemperatureFactor(EcologyProcess):
    """Writes the ``Tfactor`` cell variable, ``Q10^((temp - Tref)/10)``."""

    def setup(self, binder: ProcessBinder) -> TfactorWorkspace:
        q10 = binder.try_parameter("Q10")
        if q10 is None:
            q10 = DEFAULT_Q10
            logger.info("%s: Q10 not configured, using %g", self.name, q10)
        return TfactorWorkspace(
            q10=q10,
            tref=binder.parameter("Tref"),
            temp_i=binder.tracer("temp"),
            tfactor_i=binder.add_cell_variable("Tfactor"),
        )

    def precalc(self, cell: CellContext) -> None:
        ws: TfactorWorkspace = self.workspace
        cell.cv[ws.tfactor_i] = temperature_factor(cell.y[ws.temp_i], ws.q10, ws.tref)


@dataclass(frozen=True)
class ViscosityWorkspace:
    temp_i: int
    salt_i: int
    vis_i: int


class Viscosity(EcologyProcess):
    """Writes the kinematic ``viscosity`` cell variable from temperature and salinity."""

    def setup(self, binder: ProcessBinder) -> ViscosityWorkspace:
        return ViscosityWorkspace(
            temp_i=binder.tracer("temp"),
            salt_i=binder.tracer("salt"),
            vis_i=binder.add_cell_variable("viscosity"),
        )

    def precalc(self, cell: CellContext) -> None:
        ws: ViscosityWorkspace = self.workspace
        cell.cv[ws.vis_i] = seawater_viscosity(cell.y[ws.temp_i], cell.y[ws.salt_i])


__all__ = ["TemperatureFactor", "TfactorWorkspace", "Viscosity", "ViscosityWorkspace"]
