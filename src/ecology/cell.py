"""Per-cell evaluation context."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

import numpy as np


class ProcessKind(str, Enum):
    WC = "wc"
    SED = "sed"


@dataclass
class CellContext:
    """State, derivative and cache vectors for one spatial unit.

    ``y`` is the current state, ``y1`` accumulates the derivative and ``cv``
    holds the per-cell cache, valid for a single evaluation.  ``model_cache``
    is shared between cells and read-only once the engine is set up.
    Dissolved tracers in sediment cells are per pore-water volume, particulate
    ones per total volume; ``porosity`` converts between the two.
    """

    kind: ProcessKind
    y: np.ndarray
    y1: np.ndarray
    cv: np.ndarray
    model_cache: np.ndarray
    porosity: float = 1.0
    dz: float = 1.0
    label: str = ""

    def __post_init__(self) -> None:
        self.kind = ProcessKind(self.kind)
        if self.y.shape != self.y1.shape:
            raise ValueError(
                f"state and derivative vectors differ in shape: {self.y.shape} != {self.y1.shape}"
            )
        if not self.porosity > 0.0:
            raise ValueError(f"porosity must be positive, got {self.porosity}")

    def reset_derivative(self) -> None:
        self.y1[:] = 0.0

    def with_state(self, y: np.ndarray, y1: Optional[np.ndarray] = None) -> "CellContext":
        """Return a context sharing caches and geometry but using another state."""
        return CellContext(
            kind=self.kind,
            y=y,
            y1=np.zeros_like(y) if y1 is None else y1,
            cv=self.cv,
            model_cache=self.model_cache,
            porosity=self.porosity,
            dz=self.dz,
            label=self.label,
        )


__all__ = ["CellContext", "ProcessKind"]
