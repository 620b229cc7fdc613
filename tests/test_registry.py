from __future__ import annotations

import numpy as np
import pytest

from src.ecology.errors import InvalidConfiguration, UnknownIdentifier
from src.ecology.registry import ABSENT, NameRegistry, Namespace, OptionalSlot, TracerSpec, tracer_vector


def _registry() -> NameRegistry:
    return NameRegistry.from_tracers(["NH4", "PhyL_N", TracerSpec("NH4_pr", diagnostic=True)])


def test_tracers_get_declaration_order_indices() -> None:
    registry = _registry()
    assert registry.require(Namespace.TRACER, "NH4") == 0
    assert registry.require(Namespace.TRACER, "PhyL_N") == 1
    assert registry.require(Namespace.TRACER, "NH4_pr") == 2
    assert registry.names(Namespace.TRACER) == ("NH4", "PhyL_N", "NH4_pr")
    assert registry.diagnostic_tracers() == ["NH4_pr"]
    assert not registry.is_diagnostic("NH4")


def test_duplicate_tracer_declaration_is_rejected() -> None:
    with pytest.raises(InvalidConfiguration):
        NameRegistry.from_tracers(["NH4", "NH4"])


def test_require_unknown_name_raises() -> None:
    registry = _registry()
    with pytest.raises(UnknownIdentifier) as excinfo:
        registry.require(Namespace.TRACER, "COD")
    assert "COD" in str(excinfo.value)
    assert isinstance(excinfo.value, KeyError)


def test_lookup_optional_never_allocates() -> None:
    registry = _registry()
    slot = registry.lookup_optional(Namespace.TRACER, "COD")
    assert not slot
    assert slot == ABSENT
    assert registry.size(Namespace.TRACER) == 3
    assert (Namespace.TRACER, "COD") not in registry
    assert not registry.lookup_optional(Namespace.CELL, "Tfactor")
    assert registry.size(Namespace.CELL) == 0


def test_register_is_idempotent_and_namespaces_are_independent() -> None:
    registry = _registry()
    first = registry.register(Namespace.CELL, "Tfactor")
    again = registry.register(Namespace.CELL, "Tfactor")
    other = registry.register(Namespace.CELL, "viscosity")
    flag = registry.register(Namespace.MODEL, "massbalance_wc")
    assert first == again == 0
    assert other == 1
    assert flag == 0
    assert registry.size(Namespace.TRACER) == 3
    assert (Namespace.CELL, "Tfactor") in registry


def test_optional_slot_helpers_skip_absent_slots() -> None:
    vector = np.array([1.0, 2.0])
    present = OptionalSlot(index=1, present=True)
    assert present.value(vector) == 2.0
    present.add(vector, 0.5)
    assert vector[1] == 2.5
    assert ABSENT.value(vector, default=7.0) == 7.0
    ABSENT.add(vector, 100.0)
    assert vector.tolist() == [1.0, 2.5]


def test_tracer_vector_places_values_by_index() -> None:
    registry = _registry()
    vector = tracer_vector(registry, {"PhyL_N": 5.0})
    assert vector.tolist() == [0.0, 5.0, 0.0]
    with pytest.raises(UnknownIdentifier):
        tracer_vector(registry, {"DIC": 1.0})
