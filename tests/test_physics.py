from __future__ import annotations

import logging

import pytest

from src.ecology.cell import ProcessKind
from src.ecology.ecofunct import seawater_viscosity
from src.ecology.engine import Ecology
from src.ecology.registry import Namespace


def _cv(ecology: Ecology, cell, name: str) -> float:
    return cell.cv[ecology.registry.require(Namespace.CELL, name)]


def test_tfactor_and_viscosity_fill_the_cell_cache() -> None:
    ecology = Ecology.build(
        ["temp", "salt"],
        {"Tref": 20.0, "Q10": 3.0},
        sed=["tfactor_sed", "viscosity_sed"],
    )
    cell = ecology.new_cell(ProcessKind.SED, {"temp": 30.0, "salt": 35.0}, porosity=0.4)
    y1 = ecology.evaluate(cell)
    assert _cv(ecology, cell, "Tfactor") == pytest.approx(3.0)
    assert _cv(ecology, cell, "viscosity") == pytest.approx(seawater_viscosity(30.0, 35.0))
    assert not y1.any()


def test_q10_defaults_with_a_log_message(caplog) -> None:
    with caplog.at_level(logging.INFO, logger="src.ecology.processes.physics"):
        ecology = Ecology.build(["temp"], {"Tref": 10.0}, wc=["tfactor_wc"])
    assert "Q10 not configured" in caplog.text
    cell = ecology.new_cell(ProcessKind.WC, {"temp": 20.0})
    ecology.precalc(cell)
    assert _cv(ecology, cell, "Tfactor") == pytest.approx(2.0)
