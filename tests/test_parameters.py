from __future__ import annotations

import json

import pytest

from src.ecology.constants import SEC_PER_DAY
from src.ecology.errors import InvalidConfiguration, MissingParameter
from src.ecology.parameters import (
    ParameterStore,
    combine_parameter_stores,
    load_parameter_store,
    parameter_store_from_entries,
)


def _write(path, payload) -> None:
    path.write_text(json.dumps(payload), encoding="utf8")


def test_catalogue_converts_units_and_keeps_raw_value(tmp_path) -> None:
    path = tmp_path / "params.json"
    _write(path, [{"name": "PhyL_mL", "value": 0.864, "units": "d-1", "description": "mortality"}])
    store = load_parameter_store(path)
    assert store["PhyL_mL"] == pytest.approx(1e-5)
    meta = store.metadata("PhyL_mL")
    assert meta.raw_value == pytest.approx(0.864)
    assert meta.units == "d-1"
    assert meta.description == "mortality"


def test_catalogue_accepts_mapping_form(tmp_path) -> None:
    path = tmp_path / "params.json"
    _write(path, {"Tref": 20.0, "ZLmeth": {"value": "sum"}})
    store = load_parameter_store(path)
    assert store.require_float("Tref") == 20.0
    assert store.require_string("ZLmeth") == "sum"


def test_derived_entries_resolve_through_the_graph() -> None:
    store = parameter_store_from_entries(
        [
            {"name": "PD_mL", "value": 1.0, "units": "d-1"},
            {"name": "Tricho_mL", "expression": "p(1)*2", "derived_from": ["PD_mL"]},
        ]
    )
    assert store["Tricho_mL"] == pytest.approx(2.0 / SEC_PER_DAY)


def test_entry_without_value_or_recipe_is_rejected() -> None:
    with pytest.raises(InvalidConfiguration):
        parameter_store_from_entries([{"name": "orphan"}])


def test_missing_and_mistyped_parameters() -> None:
    store = ParameterStore.from_values({"Tref": 20.0, "ZLmeth": "rect"})
    with pytest.raises(MissingParameter):
        store.require("Q10")
    with pytest.raises(KeyError):
        store.require("Q10")
    assert store.lookup_optional("Q10") is None
    with pytest.raises(InvalidConfiguration):
        store.require_float("ZLmeth")
    with pytest.raises(InvalidConfiguration):
        store.require_string("Tref")


def test_later_catalogues_override_earlier_ones(tmp_path) -> None:
    base = tmp_path / "base.json"
    site = tmp_path / "site.json"
    _write(base, [{"name": "Tref", "value": 20.0}, {"name": "Q10", "value": 2.0}])
    _write(site, [{"name": "Q10", "value": 3.0}])
    store = combine_parameter_stores([base, site])
    assert store["Tref"] == 20.0
    assert store["Q10"] == 3.0
