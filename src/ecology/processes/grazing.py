"""Large zooplankton grazing on phytoplankton, microphytobenthos and dinoflagellates."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace

import numpy as np

from ..cell import CellContext
from ..constants import C_O_W, SEC_PER_DAY, mgN2molN, red_A_N, red_W_C, red_W_O, red_W_P
from ..ecofunct import (
    check_encounter_method,
    e_max,
    e_min,
    encounter_rate,
    nonnegative,
    sinking_speed,
    zooplankton_cell_mass,
)
from ..errors import InvalidConfiguration
from ..massbalance import MassBalanceSlots, MassContent
from ..process import ProcessBinder
from ..registry import OptionalSlot
from .mass_balance import MassTrackingProcess

logger = logging.getLogger(__name__)

# Dinoflagellate growth is not catalogued, so its mortality marks the pools as
# modelled in the water column
DINOFLAGELLATE_PROCESS = "dinoflagellate_mortality_wc"


@dataclass(frozen=True)
class ZooplanktonWorkspace:
    umax_t0: float
    rad: float
    meth: str
    swim_t0: float
    TKEeps: float
    PLrad: float
    MBrad: float
    DFrad: float
    m: float
    E: float
    FDG: float
    KO_aer: float

    ZooL_N_i: int
    PhyL_N_i: int
    MPB_N_i: int
    PhyD_N: OptionalSlot
    PhyD_C: OptionalSlot
    NH4_i: int
    DetPL_N_i: int
    DIC_i: int
    Oxygen_i: int
    DIP_i: int
    temp_i: int
    ZooL_N_gr: OptionalSlot
    ZooL_N_rm: OptionalSlot
    NH4_pr: OptionalSlot
    Oxy_pr: OptionalSlot

    tfactor: OptionalSlot
    vis_i: int
    umax_i: int
    phi_PL_ZL_i: int
    phi_MB_ZL_i: int
    phi_DF_ZL_i: int

    totals: MassBalanceSlots
    with_df: bool = False
    do_mb: bool = False


class ZooplanktonLargeGrow(MassTrackingProcess):
    """Encounter-limited grazing of large zooplankton.

    Ingestion per predator is the lesser of the physiological maximum and the
    encounter supply summed over prey classes; the ingested nitrogen is split
    into growth, excretion to ``NH4``/``DIP`` and faecal detritus.  Carbon
    ingested above Redfield (from dinoflagellates) is respired to ``DIC``.

    Dinoflagellates are grazed only when their pools exist and
    ``dinoflagellate_mortality_wc`` is configured.  No dinoflagellate growth
    process is catalogued, so the mortality process is the one that marks the
    pools as actively modelled.
    """

    def setup(self, binder: ProcessBinder) -> ZooplanktonWorkspace:
        PhyD_N = binder.try_tracer("PhyD_N")
        PhyD_C = binder.try_tracer("PhyD_C")
        with_df = bool(PhyD_N and PhyD_C)

        rad = binder.parameter("ZLrad")
        m = binder.try_parameter("ZLm")
        if m is None:
            m = zooplankton_cell_mass(rad)
            logger.info("%s: ZLm not configured, using cell mass %e from ZLrad", self.name, m)
        E = binder.parameter("ZL_E")
        if m <= 0.0 or E <= 0.0:
            raise InvalidConfiguration(f"{self.name}: ZLm and ZL_E must be positive (got {m}, {E})")
        DFrad = binder.parameter("DFrad") if with_df else binder.try_parameter("DFrad")

        return ZooplanktonWorkspace(
            umax_t0=binder.parameter("ZLumax"),
            rad=rad,
            meth=check_encounter_method(binder.string_parameter("ZLmeth")),
            swim_t0=binder.parameter("ZLswim"),
            TKEeps=binder.parameter("TKEeps"),
            PLrad=binder.parameter("PLrad"),
            MBrad=binder.parameter("MBrad"),
            DFrad=DFrad if DFrad is not None else 0.0,
            m=m,
            E=E,
            FDG=binder.parameter("ZL_FDG"),
            KO_aer=binder.parameter("KO_aer"),
            ZooL_N_i=binder.tracer("ZooL_N"),
            PhyL_N_i=binder.tracer("PhyL_N"),
            MPB_N_i=binder.tracer("MPB_N"),
            PhyD_N=PhyD_N,
            PhyD_C=PhyD_C,
            NH4_i=binder.tracer("NH4"),
            DetPL_N_i=binder.tracer("DetPL_N"),
            DIC_i=binder.tracer("DIC"),
            Oxygen_i=binder.tracer("Oxygen"),
            DIP_i=binder.tracer("DIP"),
            temp_i=binder.tracer("temp"),
            ZooL_N_gr=binder.try_tracer("ZooL_N_gr"),
            ZooL_N_rm=binder.try_tracer("ZooL_N_rm"),
            NH4_pr=binder.try_tracer("NH4_pr"),
            Oxy_pr=binder.try_tracer("Oxy_pr"),
            tfactor=binder.try_cell_variable("Tfactor"),
            vis_i=binder.cell_variable("viscosity"),
            umax_i=binder.add_cell_variable("ZLumax"),
            phi_PL_ZL_i=binder.add_cell_variable("phi_PL_ZL"),
            phi_MB_ZL_i=binder.add_cell_variable("phi_MB_ZL"),
            phi_DF_ZL_i=binder.add_cell_variable("phi_DF_ZL"),
            totals=MassBalanceSlots.resolve(binder),
            with_df=with_df,
        )

    def postsetup(self, ecology) -> None:
        super().postsetup(ecology)
        ws: ZooplanktonWorkspace = self.workspace
        if ws.with_df:
            present = ecology.process_present(self.kind, DINOFLAGELLATE_PROCESS)
            self.workspace = replace(ws, with_df=present)
        logger.info(
            "%s: %scalculating consumption of dinoflagellates",
            self.name,
            "" if self.workspace.with_df else "NOT ",
        )

    def mass_content(self, y: np.ndarray) -> MassContent:
        ZooL_N = y[self.workspace.ZooL_N_i]
        return MassContent(
            n=ZooL_N,
            p=ZooL_N * red_W_P,
            c=ZooL_N * red_W_C,
            bod=ZooL_N * red_W_C * C_O_W,
        )

    def _phi(self, cell: CellContext, prey_radius: float, swim: float) -> float:
        ws: ZooplanktonWorkspace = self.workspace
        return encounter_rate(
            ws.meth,
            prey_radius,
            sinking_speed(prey_radius),
            ws.rad,
            swim,
            ws.TKEeps,
            cell.cv[ws.vis_i],
            cell.y[ws.temp_i],
        )

    def precalc(self, cell: CellContext) -> None:
        ws: ZooplanktonWorkspace = self.workspace
        cv = cell.cv
        tfactor = ws.tfactor.value(cv, 1.0)
        swim = ws.swim_t0 * tfactor

        cv[ws.umax_i] = ws.umax_t0 * tfactor
        cv[ws.phi_PL_ZL_i] = self._phi(cell, ws.PLrad, swim)
        cv[ws.phi_MB_ZL_i] = self._phi(cell, ws.MBrad, swim)
        cv[ws.phi_DF_ZL_i] = self._phi(cell, ws.DFrad, swim) if ws.with_df else 0.0
        self.add_mass(cell)

    def calc(self, cell: CellContext) -> None:
        ws: ZooplanktonWorkspace = self.workspace
        y, y1, cv = cell.y, cell.y1, cell.cv

        # Negative concentrations from the integrator are treated as empty pools
        ZooL_N = nonnegative(y[ws.ZooL_N_i])
        PhyL_N = nonnegative(y[ws.PhyL_N_i])
        MPB_N = nonnegative(y[ws.MPB_N_i])
        PhyD_N = nonnegative(y[ws.PhyD_N.index]) if ws.with_df else 0.0
        PhyD_C = nonnegative(y[ws.PhyD_C.index]) if ws.with_df else 0.0
        Oxygen = nonnegative(y[ws.Oxygen_i])

        phi_PL_ZL = cv[ws.phi_PL_ZL_i]
        phi_MB_ZL = cv[ws.phi_MB_ZL_i]
        phi_DF_ZL = cv[ws.phi_DF_ZL_i]

        cells = ZooL_N * mgN2molN / ws.m / red_A_N
        max_enc = PhyL_N * phi_PL_ZL + MPB_N * phi_MB_ZL + PhyD_N * phi_DF_ZL
        max_ing = cv[ws.umax_i] * ws.m * red_A_N / mgN2molN / ws.E
        graze = cells * e_min(max_ing, max_enc)
        if graze == 0.0 or max_enc <= 0.0:
            return

        NH4_release = graze * (1.0 - ws.E) * (1.0 - ws.FDG)
        growth = graze * ws.E
        DF_graze = graze * PhyD_N * phi_DF_ZL / max_enc if ws.with_df else 0.0
        DF_ratio = PhyD_C / e_max(PhyD_N)
        DIC_release = NH4_release * red_W_C + DF_graze * (DF_ratio - red_W_C)
        Oxy_pr = -DIC_release * red_W_O / red_W_C * Oxygen / (ws.KO_aer + e_max(Oxygen))

        y1[ws.ZooL_N_i] += growth
        y1[ws.PhyL_N_i] -= graze * PhyL_N * phi_PL_ZL / max_enc
        y1[ws.MPB_N_i] -= graze * MPB_N * phi_MB_ZL / max_enc
        if ws.with_df:
            y1[ws.PhyD_N.index] -= DF_graze
            y1[ws.PhyD_C.index] -= DF_graze * DF_ratio
        y1[ws.NH4_i] += NH4_release
        y1[ws.DIP_i] += NH4_release * red_W_P
        y1[ws.DIC_i] += DIC_release
        y1[ws.Oxygen_i] += Oxy_pr
        y1[ws.DetPL_N_i] += graze * (1.0 - ws.E) * ws.FDG

        ws.Oxy_pr.add(y1, Oxy_pr * SEC_PER_DAY)
        ws.NH4_pr.add(y1, NH4_release * SEC_PER_DAY)
        ws.ZooL_N_rm.add(y1, graze * red_W_C * SEC_PER_DAY)
        ws.ZooL_N_gr.add(y1, growth * SEC_PER_DAY)


__all__ = ["DINOFLAGELLATE_PROCESS", "ZooplanktonLargeGrow", "ZooplanktonWorkspace"]
