r"""Parameter store and JSON catalogue loading.

Catalogues are JSON lists.  Each entry either carries a literal ``value``
(a number, or a short string selecting an algorithm variant) with optional
``units``, or a derivation recipe made of an ``expression`` and the
``derived_from`` list its ``p(i)`` placeholders refer to.  Numeric values are
converted to the engine's canonical units (seconds, metres) on load.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Iterator, Mapping, Optional, Union

from .errors import InvalidConfiguration, MissingParameter
from .param_graph import ParameterGraph
from .units import convert_parameter_value

logger = logging.getLogger(__name__)

ParameterValue = Union[float, str]


@dataclass(frozen=True)
class Parameter:
    """Container describing a resolved parameter entry."""

    name: str
    value: ParameterValue
    units: str = ""
    description: str = ""
    raw_value: Optional[ParameterValue] = None


class ParameterStore(Mapping[str, ParameterValue]):
    """Read-only mapping from parameter names to scalar or string values."""

    def __init__(self, parameters: Mapping[str, Parameter] | None = None):
        self._parameters: Dict[str, Parameter] = dict(parameters or {})

    @classmethod
    def from_values(cls, values: Mapping[str, ParameterValue]) -> "ParameterStore":
        """Build a store from already-canonical values (no unit conversion)."""
        entries = {}
        for name, value in values.items():
            if not isinstance(value, str):
                value = float(value)
            entries[name] = Parameter(name=name, value=value, raw_value=value)
        return cls(entries)

    def __getitem__(self, key: str) -> ParameterValue:  # type: ignore[override]
        return self._parameters[key].value

    def __iter__(self) -> Iterator[str]:  # type: ignore[override]
        return iter(self._parameters)

    def __len__(self) -> int:  # type: ignore[override]
        return len(self._parameters)

    def metadata(self, name: str) -> Parameter:
        return self._parameters[name]

    def require(self, name: str) -> ParameterValue:
        entry = self._parameters.get(name)
        if entry is None:
            raise MissingParameter(f"Parameter '{name}' is required but not configured")
        return entry.value

    def lookup_optional(self, name: str) -> Optional[ParameterValue]:
        entry = self._parameters.get(name)
        return None if entry is None else entry.value

    def require_float(self, name: str) -> float:
        value = self.require(name)
        if isinstance(value, str):
            raise InvalidConfiguration(f"Parameter '{name}' must be numeric, got string '{value}'")
        return float(value)

    def require_string(self, name: str) -> str:
        value = self.require(name)
        if not isinstance(value, str):
            raise InvalidConfiguration(f"Parameter '{name}' must be a string, got {value!r}")
        return value

    def merged(self, other: "ParameterStore") -> "ParameterStore":
        """Return a new store where entries of *other* take precedence."""
        combined = dict(self._parameters)
        for name in other:
            combined[name] = other.metadata(name)
        return ParameterStore(combined)


def read_catalogue_entries(path: Path) -> list:
    with Path(path).open("r", encoding="utf8") as handle:
        data = json.load(handle)
    if isinstance(data, dict):
        data = [dict(entry, name=name) if isinstance(entry, dict) else {"name": name, "value": entry}
                for name, entry in data.items()]
    if not isinstance(data, list):
        raise InvalidConfiguration(f"Unsupported JSON structure in {path}")
    return data


def parameter_store_from_entries(entries: Iterable[Mapping[str, object]]) -> ParameterStore:
    """Resolve literal, string and derived catalogue entries into a store."""

    graph = ParameterGraph(convert_parameter_value)
    strings: Dict[str, Parameter] = {}
    details: Dict[str, Mapping[str, object]] = {}
    for entry in entries:
        if "name" not in entry:
            raise InvalidConfiguration(f"Parameter entry without a name: {dict(entry)!r}")
        name = str(entry["name"])
        units = str(entry.get("units", "") or "")
        details[name] = entry
        value = entry.get("value")
        if isinstance(value, str):
            strings[name] = Parameter(
                name=name,
                value=value.strip(),
                units=units,
                description=str(entry.get("description", "") or ""),
                raw_value=value,
            )
            continue
        strings.pop(name, None)
        if value is not None:
            graph.add_base(name, float(value), units)
            continue
        expression = entry.get("expression")
        derived_from = entry.get("derived_from") or []
        if not expression:
            raise InvalidConfiguration(
                f"Parameter {name} is missing both an explicit value and a derivation recipe"
            )
        graph.add_spec(
            name,
            units,
            expression=str(expression),
            dependencies=[str(dep) for dep in derived_from],
        )

    resolved: Dict[str, Parameter] = {}
    for name, value in graph.evaluate().items():
        entry = details[name]
        meta = graph.metadata[name]
        resolved[name] = Parameter(
            name=name,
            value=float(value),
            units=str(entry.get("units", "") or ""),
            description=str(entry.get("description", "") or ""),
            raw_value=meta.get("raw_value"),  # type: ignore[arg-type]
        )
    resolved.update(strings)
    return ParameterStore(resolved)


def load_parameter_store(path: Path | str) -> ParameterStore:
    """Load a JSON parameter catalogue into a :class:`ParameterStore`."""
    store = parameter_store_from_entries(read_catalogue_entries(Path(path)))
    logger.info("loaded %d parameters from %s", len(store), path)
    return store


def combine_parameter_stores(
    paths: Iterable[Path | str],
    entries: Iterable[Mapping[str, object]] = (),
) -> ParameterStore:
    """Merge several catalogues and optional inline *entries* into one store.

    Later files override earlier ones and inline entries override every file.
    Derived parameters are resolved once over the merged set, so a derivation
    may depend on parameters declared in any of the sources.
    """

    merged: Dict[str, Mapping[str, object]] = {}
    for path in paths:
        catalogue = read_catalogue_entries(Path(path))
        logger.info("read %d parameter entries from %s", len(catalogue), path)
        for entry in catalogue:
            merged[str(entry.get("name"))] = entry
    for entry in entries:
        merged[str(entry.get("name"))] = entry
    return parameter_store_from_entries(merged.values())


__all__ = [
    "Parameter",
    "ParameterStore",
    "ParameterValue",
    "combine_parameter_stores",
    "load_parameter_store",
    "parameter_store_from_entries",
    "read_catalogue_entries",
]
