"""Host-side time stepping of a single cell with scipy's stiff solvers."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Dict, Optional, Tuple

import numpy as np
from scipy.integrate import solve_ivp

from .cell import CellContext
from .errors import NumericsError

if TYPE_CHECKING:  # pragma: no cover
    from .engine import Ecology

logger = logging.getLogger(__name__)

StateVector = np.ndarray
RhsFn = Callable[[float, StateVector], StateVector]


@dataclass(frozen=True)
class SolverConfig:
    """Configuration driving scipy's solve_ivp."""

    method: str = "BDF"
    rtol: float = 1e-8
    atol: float = 1e-10
    max_step: float = math.inf

    def as_dict(self) -> Dict[str, object]:
        return {
            "method": self.method,
            "rtol": self.rtol,
            "atol": self.atol,
            "max_step": self.max_step,
        }


def _looks_like_step_failure(message: str) -> bool:
    text = (message or "").lower()
    return ("step size" in text) or ("strictly increasing" in text)


def solve_stiff_ivp(
    rhs: RhsFn,
    span: Tuple[float, float],
    y0: StateVector,
    solver: SolverConfig,
    *,
    first_step: Optional[float] = None,
    allow_shrink: bool = True,
    max_attempts: int = 8,
):
    """solve_ivp with the step cap halved after step-size failures."""

    t0, t1 = float(span[0]), float(span[1])
    state0 = np.asarray(y0, dtype=float)
    total_span = abs(t1 - t0)
    attempt_first = None if first_step is None or first_step <= 0.0 else float(first_step)
    attempt_max = float(solver.max_step or 0.0)
    if attempt_max <= 0.0 or not math.isfinite(attempt_max):
        attempt_max = total_span if total_span > 0.0 else math.inf
    min_cap = max(total_span * 1e-6, 1e-12)

    result = None
    for attempt in range(max_attempts):
        result = solve_ivp(
            rhs,
            (t0, t1),
            state0,
            method=solver.method,
            rtol=solver.rtol,
            atol=solver.atol,
            max_step=attempt_max,
            first_step=attempt_first,
        )
        if result.success or not allow_shrink:
            return result
        if not _looks_like_step_failure(result.message or ""):
            return result
        attempt_max = max(attempt_max * 0.5, min_cap)
        if attempt_first is not None:
            attempt_first = min(attempt_first, attempt_max)
        logger.debug("solver retry %d with max_step=%g: %s", attempt + 1, attempt_max, result.message)
    return result


def integrate_cell(
    ecology: "Ecology",
    cell: CellContext,
    t0: float,
    t1: float,
    solver: Optional[SolverConfig] = None,
) -> CellContext:
    """Advance *cell* from ``t0`` to ``t1`` (seconds) in place.

    ``precalc`` runs once at the start and its cache values are held for the
    whole step; ``calc`` is the right-hand side; ``postcalc`` runs on the
    advanced state, so the mass-balance snapshots bracket the step.
    """

    solver = solver or SolverConfig()
    span = float(t1) - float(t0)
    if span < 0.0:
        raise NumericsError(f"cannot integrate backwards from {t0} to {t1}")
    ecology.precalc(cell)
    if span > 0.0 and cell.y.size:

        def rhs(t: float, y: StateVector) -> StateVector:
            probe = cell.with_state(np.array(y, dtype=float))
            ecology.calc(probe)
            if not np.all(np.isfinite(probe.y1)):
                raise NumericsError(f"non-finite derivative in cell '{cell.label}' at t={t}")
            return probe.y1

        sol = solve_stiff_ivp(rhs, (t0, t1), cell.y, solver)
        if sol is None or not sol.success or not sol.y.size:
            message = "no result" if sol is None else sol.message
            raise NumericsError(f"integration of cell '{cell.label}' failed: {message}")
        final = np.asarray(sol.y[:, -1], dtype=float)
        if not np.all(np.isfinite(final)):
            raise NumericsError(f"integration of cell '{cell.label}' produced non-finite values")
        cell.y[:] = final
    cell.reset_derivative()
    ecology.postcalc(cell)
    return cell


__all__ = ["SolverConfig", "integrate_cell", "solve_stiff_ivp"]
