"""Linear mortality processes.

Structural biomass is released to detritus at Redfield ratio; reserve pools
are returned to their own inorganic pools or lost, depending on the organism.
Rates are temperature scaled once per cell in ``precalc`` and the scaled rate
is kept in a cell variable for ``calc``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from ..cell import CellContext
from ..constants import C_O_W, ENERGY_TO_CARBON_W, SEC_PER_DAY, red_W_C, red_W_P
from ..ecofunct import e_max, partition
from ..massbalance import MassBalanceSlots, MassContent
from ..process import ProcessBinder
from ..registry import OptionalSlot
from .mass_balance import MassTrackingProcess

logger = logging.getLogger(__name__)

# Fraction of structural nitrogen routed to detritus on death
DETRITUS_FRACTION = 1.0


def _scaled_rate(cell: CellContext, base: float, tfactor: OptionalSlot) -> float:
    return base * tfactor.value(cell.cv, 1.0)


@dataclass(frozen=True)
class LinearMortalityWorkspace:
    mL_t0: float
    Phy_N_i: int
    DetPL_N_i: int
    Phy_Chl: OptionalSlot
    tfactor: OptionalSlot
    mL_i: int
    totals: MassBalanceSlots
    do_mb: bool = False


class LinearMortality(MassTrackingProcess):
    """Water-column mortality of a Redfield phytoplankton pool into ``DetPL_N``.

    The pigment pool, when present, is lost without a nutrient return.
    """

    def __init__(self, name: str, kind, pool: str) -> None:
        super().__init__(name, kind)
        self.pool = pool

    def setup(self, binder: ProcessBinder) -> LinearMortalityWorkspace:
        return LinearMortalityWorkspace(
            mL_t0=binder.parameter(f"{self.pool}_mL"),
            Phy_N_i=binder.tracer(f"{self.pool}_N"),
            DetPL_N_i=binder.tracer("DetPL_N"),
            Phy_Chl=binder.try_tracer(f"{self.pool}_Chl"),
            tfactor=binder.try_cell_variable("Tfactor"),
            mL_i=binder.add_cell_variable(f"{self.pool}_mL"),
            totals=MassBalanceSlots.resolve(binder),
        )

    def mass_content(self, y: np.ndarray) -> MassContent:
        Phy_N = y[self.workspace.Phy_N_i]
        return MassContent(
            n=Phy_N,
            p=Phy_N * red_W_P,
            c=Phy_N * red_W_C,
            bod=Phy_N * red_W_C * C_O_W,
        )

    def precalc(self, cell: CellContext) -> None:
        ws: LinearMortalityWorkspace = self.workspace
        cell.cv[ws.mL_i] = _scaled_rate(cell, ws.mL_t0, ws.tfactor)
        self.add_mass(cell)

    def calc(self, cell: CellContext) -> None:
        ws: LinearMortalityWorkspace = self.workspace
        y, y1 = cell.y, cell.y1
        mL = cell.cv[ws.mL_i]
        mortality = y[ws.Phy_N_i] * mL

        y1[ws.Phy_N_i] -= mortality
        y1[ws.DetPL_N_i] += mortality * DETRITUS_FRACTION
        if ws.Phy_Chl:
            y1[ws.Phy_Chl.index] -= y[ws.Phy_Chl.index] * mL


@dataclass(frozen=True)
class DinoflagellateMortalityWorkspace:
    mL_t0: float
    PhyD_N_i: int
    PhyD_C_i: int
    DetPL_N_i: int
    DIC_i: int
    Oxygen: OptionalSlot
    tfactor: OptionalSlot
    mL_i: int
    totals: MassBalanceSlots
    do_mb: bool = False


class DinoflagellateMortality(MassTrackingProcess):
    """Water-column dinoflagellate mortality.

    Nitrogen goes to detritus with Redfield carbon; carbon held above the
    Redfield ratio is respired to ``DIC``, drawing down ``Oxygen`` when that
    tracer exists.
    """

    def setup(self, binder: ProcessBinder) -> DinoflagellateMortalityWorkspace:
        return DinoflagellateMortalityWorkspace(
            mL_t0=binder.parameter("PD_mL"),
            PhyD_N_i=binder.tracer("PhyD_N"),
            PhyD_C_i=binder.tracer("PhyD_C"),
            DetPL_N_i=binder.tracer("DetPL_N"),
            DIC_i=binder.tracer("DIC"),
            Oxygen=binder.try_tracer("Oxygen"),
            tfactor=binder.try_cell_variable("Tfactor"),
            mL_i=binder.add_cell_variable("PD_mL"),
            totals=MassBalanceSlots.resolve(binder),
        )

    def mass_content(self, y: np.ndarray) -> MassContent:
        ws: DinoflagellateMortalityWorkspace = self.workspace
        PhyD_N = y[ws.PhyD_N_i]
        PhyD_C = y[ws.PhyD_C_i]
        return MassContent(n=PhyD_N, p=PhyD_N * red_W_P, c=PhyD_C, bod=PhyD_C * C_O_W)

    def precalc(self, cell: CellContext) -> None:
        ws: DinoflagellateMortalityWorkspace = self.workspace
        cell.cv[ws.mL_i] = _scaled_rate(cell, ws.mL_t0, ws.tfactor)
        self.add_mass(cell)

    def calc(self, cell: CellContext) -> None:
        ws: DinoflagellateMortalityWorkspace = self.workspace
        y, y1 = cell.y, cell.y1
        mL = cell.cv[ws.mL_i]
        PhyD_N = y[ws.PhyD_N_i]
        PhyD_C = y[ws.PhyD_C_i]
        excess_c = (PhyD_C - PhyD_N * red_W_C) * mL

        y1[ws.PhyD_N_i] -= PhyD_N * mL
        y1[ws.PhyD_C_i] -= PhyD_C * mL
        y1[ws.DetPL_N_i] += PhyD_N * mL * DETRITUS_FRACTION
        y1[ws.DIC_i] += excess_c
        ws.Oxygen.add(y1, -excess_c * C_O_W)


@dataclass(frozen=True)
class DielMortalityWorkspace:
    mL_t0: float
    Phy_N_i: int
    Phy_NR_i: int
    Phy_I_i: int
    NH4_i: int
    DIP_i: int
    DetPL_N_i: int
    NH4_pr: OptionalSlot
    tfactor: OptionalSlot
    mL_i: int
    totals: MassBalanceSlots
    do_mb: bool = False


class DinoflagellateDielMortality(MassTrackingProcess):
    """Sediment dinoflagellate mortality.

    ``PhyD_N`` is structural and goes to detritus at Redfield.  ``PhyD_NR`` is
    excess nutrient and returns to ``NH4`` and ``DIP`` in pore water; the
    energy reserve ``PhyD_I`` is lost.
    """

    def setup(self, binder: ProcessBinder) -> DielMortalityWorkspace:
        return DielMortalityWorkspace(
            mL_t0=binder.parameter("PD_mL"),
            Phy_N_i=binder.tracer("PhyD_N"),
            Phy_NR_i=binder.tracer("PhyD_NR"),
            Phy_I_i=binder.tracer("PhyD_I"),
            NH4_i=binder.tracer("NH4"),
            DIP_i=binder.tracer("DIP"),
            DetPL_N_i=binder.tracer("DetPL_N"),
            NH4_pr=binder.try_tracer("NH4_pr"),
            tfactor=binder.try_cell_variable("Tfactor"),
            mL_i=binder.add_cell_variable("PD_mL"),
            totals=MassBalanceSlots.resolve(binder),
        )

    def mass_content(self, y: np.ndarray) -> MassContent:
        ws: DielMortalityWorkspace = self.workspace
        Phy_N = y[ws.Phy_N_i]
        Phy_NR = y[ws.Phy_NR_i]
        return MassContent(
            n=Phy_N + Phy_NR,
            p=(Phy_N + Phy_NR) * red_W_P,
            c=Phy_N * red_W_C,
            bod=Phy_N * red_W_C * C_O_W,
        )

    def precalc(self, cell: CellContext) -> None:
        ws: DielMortalityWorkspace = self.workspace
        cell.cv[ws.mL_i] = _scaled_rate(cell, ws.mL_t0, ws.tfactor)
        self.add_mass(cell)

    def calc(self, cell: CellContext) -> None:
        ws: DielMortalityWorkspace = self.workspace
        y, y1 = cell.y, cell.y1
        mL = cell.cv[ws.mL_i]
        porosity = cell.porosity
        mortality1 = y[ws.Phy_N_i] * mL
        mortality2 = y[ws.Phy_NR_i] * mL
        mortality3 = y[ws.Phy_I_i] * mL

        y1[ws.Phy_N_i] -= mortality1
        y1[ws.Phy_NR_i] -= mortality2
        y1[ws.Phy_I_i] -= mortality3
        y1[ws.DetPL_N_i] += mortality1 * DETRITUS_FRACTION
        y1[ws.NH4_i] += mortality2 / porosity
        y1[ws.DIP_i] += mortality2 * red_W_P / porosity
        ws.NH4_pr.add(y1, mortality2 * SEC_PER_DAY * cell.dz * porosity)


@dataclass(frozen=True)
class TrichodesmiumMortalityWorkspace:
    mL_t0: float
    KO_aer: float
    Tricho_N_i: int
    Tricho_NR_i: int
    Tricho_PR_i: int
    Tricho_I_i: int
    Tricho_Chl_i: int
    NH4_i: int
    DIP_i: int
    DIC_i: int
    DetPL_N_i: int
    Oxygen_i: int
    COD: OptionalSlot
    NH4_pr: OptionalSlot
    tfactor: OptionalSlot
    mL_i: int
    totals: MassBalanceSlots
    do_mb: bool = False


class TrichodesmiumMortality(MassTrackingProcess):
    """Sediment Trichodesmium mortality.

    Structural ``Tricho_N`` goes to detritus at Redfield.  Reserves go to
    their own pools: ``Tricho_NR`` to ``NH4``, ``Tricho_PR`` to ``DIP``, the
    energy reserve ``Tricho_I`` to ``DIC``; pigment is lost.  Remineralising
    the energy reserve consumes oxygen in proportion to the aerobic fraction
    and produces chemical oxygen demand (``COD``, when present) for the rest.
    """

    def setup(self, binder: ProcessBinder) -> TrichodesmiumMortalityWorkspace:
        mL_t0 = binder.try_parameter("Tricho_mL_sed")
        if mL_t0 is None:
            mL_t0 = binder.parameter("Tricho_mL")
            logger.info("%s: Tricho_mL_sed not configured, using Tricho_mL = %e", self.name, mL_t0)
        return TrichodesmiumMortalityWorkspace(
            mL_t0=mL_t0,
            KO_aer=binder.parameter("KO_aer"),
            Tricho_N_i=binder.tracer("Tricho_N"),
            Tricho_NR_i=binder.tracer("Tricho_NR"),
            Tricho_PR_i=binder.tracer("Tricho_PR"),
            Tricho_I_i=binder.tracer("Tricho_I"),
            Tricho_Chl_i=binder.tracer("Tricho_Chl"),
            NH4_i=binder.tracer("NH4"),
            DIP_i=binder.tracer("DIP"),
            DIC_i=binder.tracer("DIC"),
            DetPL_N_i=binder.tracer("DetPL_N"),
            Oxygen_i=binder.tracer("Oxygen"),
            COD=binder.try_tracer("COD"),
            NH4_pr=binder.try_tracer("NH4_pr"),
            tfactor=binder.try_cell_variable("Tfactor"),
            mL_i=binder.add_cell_variable("Tricho_mL"),
            totals=MassBalanceSlots.resolve(binder),
        )

    def mass_content(self, y: np.ndarray) -> MassContent:
        ws: TrichodesmiumMortalityWorkspace = self.workspace
        Tricho_N = y[ws.Tricho_N_i]
        carbon = Tricho_N * red_W_C + y[ws.Tricho_I_i] * ENERGY_TO_CARBON_W
        return MassContent(
            n=Tricho_N + y[ws.Tricho_NR_i],
            p=Tricho_N * red_W_P + y[ws.Tricho_PR_i],
            c=carbon,
            bod=carbon * C_O_W,
        )

    def precalc(self, cell: CellContext) -> None:
        ws: TrichodesmiumMortalityWorkspace = self.workspace
        cell.cv[ws.mL_i] = _scaled_rate(cell, ws.mL_t0, ws.tfactor)
        self.add_mass(cell)

    def calc(self, cell: CellContext) -> None:
        ws: TrichodesmiumMortalityWorkspace = self.workspace
        y, y1 = cell.y, cell.y1
        mL = cell.cv[ws.mL_i]
        porosity = cell.porosity
        mortality1 = y[ws.Tricho_N_i] * mL
        mortality2 = y[ws.Tricho_NR_i] * mL
        mortality3 = y[ws.Tricho_I_i] * mL
        mortality4 = y[ws.Tricho_PR_i] * mL

        y1[ws.Tricho_N_i] -= mortality1
        y1[ws.Tricho_NR_i] -= mortality2
        y1[ws.Tricho_I_i] -= mortality3
        y1[ws.Tricho_PR_i] -= mortality4
        y1[ws.Tricho_Chl_i] -= y[ws.Tricho_Chl_i] * mL

        y1[ws.DetPL_N_i] += mortality1 * DETRITUS_FRACTION
        y1[ws.NH4_i] += mortality2 / porosity
        y1[ws.DIP_i] += mortality4 / porosity
        carbon_release = mortality3 * ENERGY_TO_CARBON_W
        y1[ws.DIC_i] += carbon_release / porosity

        aerobic, anaerobic = partition(e_max(y[ws.Oxygen_i]), ws.KO_aer)
        y1[ws.Oxygen_i] -= carbon_release * C_O_W * aerobic / porosity
        ws.COD.add(y1, carbon_release * C_O_W * anaerobic / porosity)

        ws.NH4_pr.add(y1, mortality2 * SEC_PER_DAY * cell.dz * porosity)


__all__ = [
    "DETRITUS_FRACTION",
    "DinoflagellateDielMortality",
    "DinoflagellateMortality",
    "LinearMortality",
    "TrichodesmiumMortality",
]
