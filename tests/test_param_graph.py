from __future__ import annotations

import pytest

from src.ecology.errors import InvalidConfiguration
from src.ecology.param_graph import ParameterGraph
from src.ecology.units import convert_parameter_value


def test_parameter_graph_evaluates_dependencies() -> None:
    graph = ParameterGraph(lambda value, unit: value)
    graph.add_base("PhyL_mL", 0.2, "")
    graph.add_base("Q10", 2.0, "")
    graph.add_spec("PhyS_mL", unit="", expression="p(1)/p(2)", dependencies=["PhyL_mL", "Q10"])
    values = graph.evaluate()
    assert values["PhyS_mL"] == pytest.approx(0.1)
    meta = graph.metadata["PhyS_mL"]
    assert meta["type"] == "derived"
    assert meta["dependencies"] == ["PhyL_mL", "Q10"]


def test_parameter_graph_derives_from_canonical_values() -> None:
    graph = ParameterGraph(convert_parameter_value)
    graph.add_base("ZLrad", 320.0, "um")
    graph.add_spec("ZLdiam", unit="m", expression="2*p(1)", dependencies=["ZLrad"])
    values = graph.evaluate()
    assert values["ZLrad"] == pytest.approx(3.2e-4)
    assert values["ZLdiam"] == pytest.approx(6.4e-4)


def test_parameter_graph_supports_caret_power() -> None:
    graph = ParameterGraph(lambda value, unit: value)
    graph.add_base("r", 3.0, "")
    graph.add_spec("r3", expression="p(1)^3", dependencies=["r"])
    assert graph.evaluate()["r3"] == pytest.approx(27.0)


def test_parameter_graph_detects_unresolved_cycle() -> None:
    graph = ParameterGraph(lambda value, unit: value)
    graph.add_spec("A", unit="", expression="p(1)", dependencies=["B"])
    graph.add_spec("B", unit="", expression="p(1)", dependencies=["A"])
    with pytest.raises(InvalidConfiguration):
        graph.evaluate()


def test_parameter_graph_rejects_bad_expression() -> None:
    graph = ParameterGraph(lambda value, unit: value)
    graph.add_base("a", 1.0, "")
    graph.add_spec("b", expression="p(2)", dependencies=["a"])
    with pytest.raises(InvalidConfiguration):
        graph.evaluate()
