"""Name registry mapping identifiers to stable slot indices."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Tuple, Union

import numpy as np

from .errors import InvalidConfiguration, UnknownIdentifier


class Namespace(str, Enum):
    TRACER = "tracer"
    CELL = "cell"
    MODEL = "model"


@dataclass(frozen=True)
class TracerSpec:
    """Declared tracer; ``diagnostic`` marks write-only rate accumulators."""

    name: str
    diagnostic: bool = False


@dataclass(frozen=True)
class OptionalSlot:
    """Slot reference that may be absent.

    Absent slots are falsy and every vector helper is a no-op for them, so a
    process never has to thread a sentinel index through its arithmetic.
    """

    index: int = -1
    present: bool = False

    def __bool__(self) -> bool:
        return self.present

    def value(self, vector: np.ndarray, default: float = 0.0) -> float:
        if not self.present:
            return default
        return float(vector[self.index])

    def add(self, vector: np.ndarray, amount: float) -> None:
        if self.present:
            vector[self.index] += amount


ABSENT = OptionalSlot()

TracerLike = Union[str, TracerSpec]


class NameRegistry:
    """Three independent name -> index tables (tracers, per-cell, per-model)."""

    def __init__(self) -> None:
        self._slots: Dict[Namespace, Dict[str, int]] = {ns: {} for ns in Namespace}
        self._diagnostic: set[str] = set()

    @classmethod
    def from_tracers(cls, tracers: Iterable[TracerLike]) -> "NameRegistry":
        registry = cls()
        for tracer in tracers:
            spec = tracer if isinstance(tracer, TracerSpec) else TracerSpec(str(tracer))
            if spec.name in registry._slots[Namespace.TRACER]:
                raise InvalidConfiguration(f"Tracer '{spec.name}' declared more than once")
            registry.register(Namespace.TRACER, spec.name)
            if spec.diagnostic:
                registry._diagnostic.add(spec.name)
        return registry

    def register(self, namespace: Namespace, name: str) -> int:
        table = self._slots[Namespace(namespace)]
        index = table.get(name)
        if index is None:
            index = len(table)
            table[name] = index
        return index

    def require(self, namespace: Namespace, name: str) -> int:
        table = self._slots[Namespace(namespace)]
        index = table.get(name)
        if index is None:
            raise UnknownIdentifier(f"{Namespace(namespace).value} variable '{name}' is not registered")
        return index

    def lookup_optional(self, namespace: Namespace, name: str) -> OptionalSlot:
        index = self._slots[Namespace(namespace)].get(name)
        if index is None:
            return ABSENT
        return OptionalSlot(index=index, present=True)

    def names(self, namespace: Namespace) -> Tuple[str, ...]:
        table = self._slots[Namespace(namespace)]
        return tuple(sorted(table, key=table.__getitem__))

    def size(self, namespace: Namespace) -> int:
        return len(self._slots[Namespace(namespace)])

    def is_diagnostic(self, name: str) -> bool:
        return name in self._diagnostic

    def diagnostic_tracers(self) -> List[str]:
        return [name for name in self.names(Namespace.TRACER) if name in self._diagnostic]

    def __contains__(self, item: object) -> bool:
        if isinstance(item, tuple) and len(item) == 2:
            namespace, name = item
            return name in self._slots[Namespace(namespace)]
        return False


def tracer_vector(registry: NameRegistry, values: Dict[str, float] | None = None) -> np.ndarray:
    """Return a state vector laid out by *registry* with the given tracer values."""
    vector = np.zeros(registry.size(Namespace.TRACER), dtype=float)
    for name, value in (values or {}).items():
        vector[registry.require(Namespace.TRACER, name)] = float(value)
    return vector


__all__ = [
    "ABSENT",
    "NameRegistry",
    "Namespace",
    "OptionalSlot",
    "TracerSpec",
    "tracer_vector",
]
