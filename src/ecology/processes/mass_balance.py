"""Run-wide mass-balance process and the base class for participants."""

from __future__ import annotations

import logging
from abc import ABCMeta, abstractmethod
from dataclasses import dataclass, replace
from typing import Tuple

import numpy as np

from ..cell import CellContext
from ..constants import C_O_W, red_W_C, red_W_P
from ..errors import InvalidConfiguration
from ..massbalance import MassBalanceSlots, MassContent, mass_balance_flag, snapshot_name
from ..process import EcologyProcess, ProcessBinder
from ..registry import OptionalSlot

logger = logging.getLogger(__name__)


class MassTrackingProcess(EcologyProcess, metaclass=ABCMeta):
    """Process that adds its pools to the totals tracers when auditing is on.

    Workspaces of subclasses carry ``do_mb`` and ``totals`` fields; ``do_mb``
    is resolved in :meth:`postsetup` from the run-wide flag.  Subclasses
    implement :meth:`mass_content` for the pools they own.
    """

    tracks_mass = True

    def postsetup(self, ecology) -> None:
        self.workspace = replace(self.workspace, do_mb=ecology.mass_balance_enabled(self.kind))

    @abstractmethod
    def mass_content(self, y: np.ndarray) -> MassContent:
        """TN/TP/TC/BOD held in this process's own pools for state *y*."""

    def add_mass(self, cell: CellContext) -> None:
        ws = self.workspace
        if ws.do_mb:
            ws.totals.add(cell.y, self.mass_content(cell.y))

    def postcalc(self, cell: CellContext) -> None:
        self.add_mass(cell)


@dataclass(frozen=True)
class MassBalanceWorkspace:
    flag_i: int
    totals: MassBalanceSlots
    snapshots: Tuple[Tuple[int, int], ...]
    NH4: OptionalSlot
    NO3: OptionalSlot
    DON: OptionalSlot
    DIP: OptionalSlot
    DOP: OptionalSlot
    DIC: OptionalSlot
    DOC: OptionalSlot
    Oxygen: OptionalSlot
    COD: OptionalSlot
    DetPL_N: OptionalSlot
    DetR_N: OptionalSlot
    DetR_P: OptionalSlot
    DetR_C: OptionalSlot


class MassBalance(EcologyProcess):
    """Announces mass-balance auditing and accounts inorganic and detrital pools.

    Must run before every process that tracks mass in the same sequence:
    its ``precalc`` resets the totals that the others then add to.
    """

    def setup(self, binder: ProcessBinder) -> MassBalanceWorkspace:
        totals = MassBalanceSlots(
            tn=OptionalSlot(binder.tracer("TN"), True),
            tp=OptionalSlot(binder.tracer("TP"), True),
            tc=OptionalSlot(binder.tracer("TC"), True),
            bod=binder.try_tracer("BOD"),
        )
        snapshots = tuple(
            (slot.index, binder.add_cell_variable(snapshot_name(currency)))
            for currency, slot in totals.items()
            if slot
        )
        return MassBalanceWorkspace(
            flag_i=binder.add_model_variable(mass_balance_flag(self.kind)),
            totals=totals,
            snapshots=snapshots,
            NH4=binder.try_tracer("NH4"),
            NO3=binder.try_tracer("NO3"),
            DON=binder.try_tracer("DON"),
            DIP=binder.try_tracer("DIP"),
            DOP=binder.try_tracer("DOP"),
            DIC=binder.try_tracer("DIC"),
            DOC=binder.try_tracer("DOC"),
            Oxygen=binder.try_tracer("Oxygen"),
            COD=binder.try_tracer("COD"),
            DetPL_N=binder.try_tracer("DetPL_N"),
            DetR_N=binder.try_tracer("DetR_N"),
            DetR_P=binder.try_tracer("DetR_P"),
            DetR_C=binder.try_tracer("DetR_C"),
        )

    def postsetup(self, ecology) -> None:
        sequence = ecology.processes(self.kind)
        position = sequence.index(self)
        early = [process.name for process in sequence[:position] if process.tracks_mass]
        if early:
            raise InvalidConfiguration(
                f"{self.name} must run before the processes it audits; found {early} ahead of it"
            )
        ecology.set_model_variable(mass_balance_flag(self.kind), 1.0)
        logger.info("%s: mass balance auditing enabled", self.name)

    def _content(self, cell: CellContext) -> MassContent:
        ws: MassBalanceWorkspace = self.workspace
        y = cell.y
        phi = cell.porosity
        DetPL_N = ws.DetPL_N.value(y)
        organic_c = DetPL_N * red_W_C + ws.DetR_C.value(y) + ws.DOC.value(y) * phi
        return MassContent(
            n=(ws.NH4.value(y) + ws.NO3.value(y) + ws.DON.value(y)) * phi
            + DetPL_N
            + ws.DetR_N.value(y),
            p=(ws.DIP.value(y) + ws.DOP.value(y)) * phi + DetPL_N * red_W_P + ws.DetR_P.value(y),
            c=ws.DIC.value(y) * phi + organic_c,
            bod=organic_c * C_O_W + (ws.COD.value(y) - ws.Oxygen.value(y)) * phi,
        )

    def precalc(self, cell: CellContext) -> None:
        ws: MassBalanceWorkspace = self.workspace
        ws.totals.reset(cell.y)
        ws.totals.add(cell.y, self._content(cell))

    def postcalc(self, cell: CellContext) -> None:
        ws: MassBalanceWorkspace = self.workspace
        for total_i, snapshot_i in ws.snapshots:
            cell.cv[snapshot_i] = cell.y[total_i]
        ws.totals.reset(cell.y)
        ws.totals.add(cell.y, self._content(cell))


__all__ = ["MassBalance", "MassBalanceWorkspace", "MassTrackingProcess"]
