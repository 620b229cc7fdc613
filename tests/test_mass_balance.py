from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import numpy as np
import pytest

from src.ecology.cell import ProcessKind
from src.ecology.constants import C_O_W, red_W_C, red_W_P
from src.ecology.engine import Ecology
from src.ecology.errors import InvalidConfiguration
from src.ecology.massbalance import MassBalanceAuditor, MassBalanceSlots, MassContent
from src.ecology.parameters import ParameterStore
from src.ecology.process import ProcessBinder
from src.ecology.processes import MassBalance, MassTrackingProcess
from src.ecology.registry import NameRegistry, Namespace
from src.ecology.stiff_ode import SolverConfig, integrate_cell

TRACERS = ["PhyL_N", "DetPL_N", "NH4", "DIP", "DIC", "Oxygen", "TN", "TP", "TC", "BOD"]


@dataclass(frozen=True)
class _LeakyWorkspace:
    pool_i: int
    totals: MassBalanceSlots
    do_mb: bool = False


class _Leaky(MassTrackingProcess):
    """Reports more nitrogen after the pass than before it."""

    calls = 0

    def setup(self, binder: ProcessBinder) -> _LeakyWorkspace:
        return _LeakyWorkspace(binder.tracer("PhyL_N"), MassBalanceSlots.resolve(binder))

    def mass_content(self, y: np.ndarray) -> MassContent:
        self.calls += 1
        return MassContent(n=y[self.workspace.pool_i] * self.calls)

    def precalc(self, cell) -> None:
        self.add_mass(cell)


def _mortality(wc=("mass_balance_wc", "phytoplankton_large_mortality_wc"), mL=0.1) -> Ecology:
    return Ecology.build(TRACERS, {"PhyL_mL": mL}, wc=list(wc))


def _y(ecology: Ecology, cell, name: str) -> float:
    return float(cell.y[ecology.registry.require(Namespace.TRACER, name)])


def test_totals_bracket_a_single_evaluation() -> None:
    ecology = _mortality()
    cell = ecology.new_cell(
        ProcessKind.WC,
        {"PhyL_N": 5.0, "DetPL_N": 1.0, "NH4": 2.0, "DIP": 0.5, "DIC": 100.0, "Oxygen": 30.0},
        label="surface",
    )
    report = MassBalanceAuditor(ecology).audit(cell)
    assert report.consistent()
    before = {entry.currency: entry.before for entry in report.balances}
    assert before["TN"] == pytest.approx(5.0 + 1.0 + 2.0)
    assert before["TP"] == pytest.approx(0.5 + 6.0 * red_W_P)
    assert before["TC"] == pytest.approx(100.0 + 6.0 * red_W_C)
    assert before["BOD"] == pytest.approx(6.0 * red_W_C * C_O_W - 30.0)
    assert _y(ecology, cell, "TN") == pytest.approx(8.0)

    frame = report.to_frame()
    assert list(frame.columns) == ["currency", "before", "after", "discrepancy"]
    assert frame["currency"].tolist() == ["TN", "TP", "TC", "BOD"]
    assert frame.attrs["label"] == "surface"


def test_sediment_dissolved_pools_are_weighted_by_porosity() -> None:
    ecology = Ecology.build(["NH4", "DetPL_N", "TN", "TP", "TC"], {}, sed=["mass_balance_sed"])
    cell = ecology.new_cell(ProcessKind.SED, {"NH4": 4.0, "DetPL_N": 1.0}, porosity=0.5)
    ecology.evaluate(cell)
    assert _y(ecology, cell, "TN") == pytest.approx(4.0 * 0.5 + 1.0)


def test_without_mass_balance_totals_are_left_alone() -> None:
    ecology = _mortality(wc=("phytoplankton_large_mortality_wc",))
    process = ecology.processes(ProcessKind.WC)[0]
    assert not process.workspace.do_mb
    cell = ecology.new_cell(ProcessKind.WC, {"PhyL_N": 5.0, "TN": 42.0})
    report = MassBalanceAuditor(ecology).audit(cell)
    assert report.balances == ()
    assert report.consistent()
    assert _y(ecology, cell, "TN") == 42.0


def test_mass_balance_must_precede_participants() -> None:
    with pytest.raises(InvalidConfiguration):
        _mortality(wc=("phytoplankton_large_mortality_wc", "mass_balance_wc"))


def test_mass_balance_requires_totals_tracers() -> None:
    with pytest.raises(KeyError):
        Ecology.build(["TN", "TP"], {}, wc=["mass_balance_wc"])


def test_inconsistent_pass_is_reported_not_raised(caplog) -> None:
    registry = NameRegistry.from_tracers(["PhyL_N", "TN", "TP", "TC"])
    ecology = Ecology(
        registry,
        ParameterStore(),
        {ProcessKind.WC: [MassBalance("mass_balance_wc", ProcessKind.WC), _Leaky("leaky", ProcessKind.WC)]},
    )
    ecology.setup()
    cell = ecology.new_cell(ProcessKind.WC, {"PhyL_N": 1.0}, label="leaky-cell")
    with caplog.at_level(logging.WARNING, logger="src.ecology.massbalance"):
        report = MassBalanceAuditor(ecology).audit(cell)
    assert not report.consistent()
    assert report.discrepancies()["TN"] == pytest.approx(1.0)
    assert "mass balance mismatch" in caplog.text
    assert "leaky-cell" in caplog.text


def test_integrated_step_conserves_every_currency() -> None:
    rate = 1e-5
    ecology = _mortality(mL=rate)
    cell = ecology.new_cell(ProcessKind.WC, {"PhyL_N": 5.0, "NH4": 2.0, "DIC": 100.0, "Oxygen": 30.0})
    integrate_cell(ecology, cell, 0.0, 86400.0, SolverConfig(method="BDF", rtol=1e-10, atol=1e-12))

    assert _y(ecology, cell, "PhyL_N") == pytest.approx(5.0 * math.exp(-rate * 86400.0), rel=1e-6)
    assert _y(ecology, cell, "PhyL_N") + _y(ecology, cell, "DetPL_N") == pytest.approx(5.0)
    report = MassBalanceAuditor(ecology).report(cell)
    assert len(report.balances) == 4
    assert report.consistent(rtol=1e-9, atol=1e-9)


def test_participant_must_report_its_mass_content() -> None:
    class _Silent(MassTrackingProcess):
        pass

    with pytest.raises(TypeError):
        _Silent("silent", ProcessKind.WC)
