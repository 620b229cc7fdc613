from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np
import pytest

from src.ecology.cell import ProcessKind
from src.ecology.engine import Ecology
from src.ecology.errors import NumericsError
from src.ecology.parameters import ParameterStore
from src.ecology.process import EcologyProcess
from src.ecology.registry import NameRegistry
from src.ecology.stiff_ode import SolverConfig, integrate_cell, solve_stiff_ivp


def _make_solver() -> SolverConfig:
    return SolverConfig(method="BDF", rtol=1e-6, atol=1e-9, max_step=0.5)


@dataclass(frozen=True)
class _Index:
    i: int


class _Blowup(EcologyProcess):
    def setup(self, binder) -> _Index:
        return _Index(binder.tracer("A"))

    def calc(self, cell) -> None:
        cell.y1[self.workspace.i] += math.nan


def test_solve_stiff_ivp_matches_linear_system_solution() -> None:
    fast_rate = 75.0
    slow_rate = 0.1
    span = 1.25
    y0 = np.array([2.0, 4.0])

    def rhs(_: float, y: np.ndarray) -> np.ndarray:
        return np.array([-fast_rate * y[0], -slow_rate * y[1]])

    result = solve_stiff_ivp(rhs, (0.0, span), y0, _make_solver())

    assert result.success
    expected = np.array([y0[0] * math.exp(-fast_rate * span), y0[1] * math.exp(-slow_rate * span)])
    assert result.y[:, -1] == pytest.approx(expected, rel=1e-4, abs=1e-9)


def test_integrate_cell_zero_span_runs_only_the_bracket() -> None:
    ecology = Ecology.build(
        ["PhyL_N", "DetPL_N", "TN", "TP", "TC"],
        {"PhyL_mL": 1e-5},
        wc=["mass_balance_wc", "phytoplankton_large_mortality_wc"],
    )
    cell = ecology.new_cell(ProcessKind.WC, {"PhyL_N": 5.0})
    integrate_cell(ecology, cell, 10.0, 10.0)
    assert cell.y[0] == 5.0
    assert cell.y[2] == pytest.approx(5.0)
    assert not cell.y1.any()


def test_integrate_cell_decays_linear_mortality() -> None:
    ecology = Ecology.build(["PhyL_N", "DetPL_N"], {"PhyL_mL": 2e-5}, wc=["phytoplankton_large_mortality_wc"])
    cell = ecology.new_cell(ProcessKind.WC, {"PhyL_N": 5.0})
    integrate_cell(ecology, cell, 0.0, 43200.0, SolverConfig(rtol=1e-9, atol=1e-12))
    assert cell.y[0] == pytest.approx(5.0 * math.exp(-2e-5 * 43200.0), rel=1e-6)


def test_integrate_cell_rejects_backwards_steps() -> None:
    ecology = Ecology.build(["PhyL_N", "DetPL_N"], {"PhyL_mL": 1e-5}, wc=["phytoplankton_large_mortality_wc"])
    cell = ecology.new_cell(ProcessKind.WC, {"PhyL_N": 5.0})
    with pytest.raises(NumericsError):
        integrate_cell(ecology, cell, 10.0, 0.0)


def test_integrate_cell_surfaces_solver_failure() -> None:
    ecology = Ecology(
        NameRegistry.from_tracers(["A"]),
        ParameterStore(),
        {ProcessKind.WC: [_Blowup("blowup", ProcessKind.WC)]},
    )
    ecology.setup()
    cell = ecology.new_cell(ProcessKind.WC, {"A": 1.0})
    with pytest.raises(NumericsError):
        integrate_cell(ecology, cell, 0.0, 1.0)
