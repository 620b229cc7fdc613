"""Parameter dependency graph for derived ecology parameters."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Mapping, Optional, Sequence

from .errors import InvalidConfiguration

_SAFE_MATH_NAMESPACE: Dict[str, object] = {
    name: getattr(math, name)
    for name in dir(math)
    if not name.startswith("_")
}


def _evaluate_expression(expr: str, values: Sequence[float]) -> float:
    """Evaluate a ``p(i)`` expression against the ordered dependency values."""

    def _positional(index: float) -> float:
        idx = int(index) - 1
        if idx < 0 or idx >= len(values):
            raise IndexError(
                f"Expression requested p({index}) but only {len(values)} arguments available"
            )
        return values[idx]

    safe_locals: Dict[str, object] = dict(_SAFE_MATH_NAMESPACE)
    safe_locals["p"] = _positional
    safe_locals["abs"] = abs
    safe_locals["min"] = min
    safe_locals["max"] = max
    translated = (expr or "").replace("^", "**")
    try:
        return float(eval(translated, {"__builtins__": {}}, safe_locals))  # noqa: S307
    except Exception as exc:
        raise InvalidConfiguration(f"Failed to evaluate expression '{expr}': {exc}") from exc


@dataclass
class ParameterSpec:
    name: str
    unit: str = ""
    expression: str = ""
    dependencies: Sequence[str] = field(default_factory=list)
    value: Optional[float] = None


class ParameterGraph:
    """Manages base and derived parameters with dependency resolution."""

    def __init__(self, converter: Callable[[float, str], float]):
        self._convert = converter
        self._values: Dict[str, float] = {}
        self._metadata: Dict[str, Dict[str, object]] = {}
        self._specs: Dict[str, ParameterSpec] = {}

    def add_base(self, name: str, value: float, unit: str) -> None:
        canonical = self._convert(value, unit)
        self._values[name] = canonical
        self._specs.pop(name, None)
        self._metadata[name] = {
            "type": "base",
            "unit": unit,
            "raw_value": value,
            "canonical_value": canonical,
        }

    def add_spec(
        self,
        name: str,
        unit: str = "",
        *,
        expression: str = "",
        dependencies: Optional[Sequence[str]] = None,
        value: Optional[float] = None,
    ) -> None:
        self._values.pop(name, None)
        self._specs[name] = ParameterSpec(
            name=name,
            unit=unit,
            expression=expression or "",
            dependencies=list(dependencies or []),
            value=value,
        )

    def evaluate(self) -> Mapping[str, float]:
        # Derived expressions operate on canonical (converted) dependency values.
        remaining = dict(self._specs)
        while remaining:
            progress = False
            for name, spec in list(remaining.items()):
                deps = spec.dependencies
                if any(dep not in self._values for dep in deps):
                    continue
                if spec.expression:
                    dep_values = [self._values[dep] for dep in deps]
                    raw_value = _evaluate_expression(spec.expression, dep_values)
                    canonical = raw_value
                elif spec.value is not None:
                    raw_value = float(spec.value)
                    canonical = self._convert(raw_value, spec.unit)
                else:
                    raise InvalidConfiguration(f"Derived parameter '{name}' lacks expression/value")
                self._values[name] = canonical
                self._metadata[name] = {
                    "type": "derived",
                    "unit": spec.unit,
                    "raw_value": raw_value,
                    "canonical_value": canonical,
                    "expression": spec.expression,
                    "dependencies": list(spec.dependencies),
                }
                remaining.pop(name)
                progress = True
            if not progress:
                unresolved: List[str] = sorted(remaining.keys())
                raise InvalidConfiguration(
                    "Unable to resolve derived parameters: " + ", ".join(unresolved)
                )
        return dict(self._values)

    @property
    def metadata(self) -> Mapping[str, Dict[str, object]]:
        return self._metadata


__all__ = ["ParameterGraph", "ParameterSpec"]
