"""Mass-balance bookkeeping shared by participating processes.

Totals tracers (``TN``, ``TP``, ``TC`` and optionally ``BOD``) are reset by
the mass-balance process at the start of ``precalc``.  Each participating
process adds the elemental content of its own pools once in ``precalc`` and
again, with the same formula, in ``postcalc``.  Between the two rounds the
mass-balance process stores the "before" totals in the per-cell cache and
resets the totals, so that after ``postcalc`` the auditor can compare both
snapshots.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, NamedTuple, Tuple

import numpy as np
import pandas as pd

from .cell import CellContext, ProcessKind
from .registry import Namespace, OptionalSlot

logger = logging.getLogger(__name__)

CURRENCIES: Tuple[str, ...] = ("TN", "TP", "TC", "BOD")


def snapshot_name(currency: str) -> str:
    return f"{currency}_pre"


def mass_balance_flag(kind: ProcessKind) -> str:
    """Name of the per-model flag announcing mass-balance auditing for *kind*."""
    return f"massbalance_{ProcessKind(kind).value}"


class MassContent(NamedTuple):
    """Elemental content of a pool: nitrogen, phosphorus, carbon, oxygen demand."""

    n: float = 0.0
    p: float = 0.0
    c: float = 0.0
    bod: float = 0.0


@dataclass(frozen=True)
class MassBalanceSlots:
    """Totals tracers as resolved by one process."""

    tn: OptionalSlot
    tp: OptionalSlot
    tc: OptionalSlot
    bod: OptionalSlot

    @classmethod
    def resolve(cls, binder) -> "MassBalanceSlots":
        return cls(
            tn=binder.try_tracer("TN"),
            tp=binder.try_tracer("TP"),
            tc=binder.try_tracer("TC"),
            bod=binder.try_tracer("BOD"),
        )

    def add(self, y: np.ndarray, content: MassContent) -> None:
        self.tn.add(y, content.n)
        self.tp.add(y, content.p)
        self.tc.add(y, content.c)
        self.bod.add(y, content.bod)

    def reset(self, y: np.ndarray) -> None:
        for slot in (self.tn, self.tp, self.tc, self.bod):
            if slot:
                y[slot.index] = 0.0

    def items(self) -> List[Tuple[str, OptionalSlot]]:
        return list(zip(CURRENCIES, (self.tn, self.tp, self.tc, self.bod)))


@dataclass(frozen=True)
class CurrencyBalance:
    currency: str
    before: float
    after: float

    @property
    def discrepancy(self) -> float:
        return self.after - self.before


@dataclass(frozen=True)
class MassBalanceReport:
    """Before/after totals for one audited cell evaluation."""

    label: str
    kind: ProcessKind
    balances: Tuple[CurrencyBalance, ...]

    def consistent(self, rtol: float = 1e-9, atol: float = 1e-12) -> bool:
        return all(
            math.isclose(entry.before, entry.after, rel_tol=rtol, abs_tol=atol)
            for entry in self.balances
        )

    def discrepancies(self) -> Dict[str, float]:
        return {entry.currency: entry.discrepancy for entry in self.balances}

    def to_frame(self) -> pd.DataFrame:
        frame = pd.DataFrame(
            {
                "currency": [entry.currency for entry in self.balances],
                "before": [entry.before for entry in self.balances],
                "after": [entry.after for entry in self.balances],
                "discrepancy": [entry.discrepancy for entry in self.balances],
            }
        )
        frame.attrs["label"] = self.label
        frame.attrs["kind"] = self.kind.value
        return frame


class MassBalanceAuditor:
    """Compares the pre-pass totals snapshot with the post-pass totals."""

    def __init__(self, ecology) -> None:
        self.ecology = ecology

    def report(self, cell: CellContext) -> MassBalanceReport:
        if not self.ecology.mass_balance_enabled(cell.kind):
            return MassBalanceReport(label=cell.label, kind=cell.kind, balances=())
        registry = self.ecology.registry
        balances = []
        for currency in CURRENCIES:
            total = registry.lookup_optional(Namespace.TRACER, currency)
            before = registry.lookup_optional(Namespace.CELL, snapshot_name(currency))
            if not total or not before:
                continue
            balances.append(
                CurrencyBalance(
                    currency=currency,
                    before=before.value(cell.cv),
                    after=total.value(cell.y),
                )
            )
        return MassBalanceReport(label=cell.label, kind=cell.kind, balances=tuple(balances))

    def audit(self, cell: CellContext, rtol: float = 1e-9, atol: float = 1e-12) -> MassBalanceReport:
        """Evaluate *cell* and report its conservation bracket."""
        self.ecology.evaluate(cell)
        report = self.report(cell)
        if not report.consistent(rtol=rtol, atol=atol):
            logger.warning(
                "mass balance mismatch in %s cell %s: %s",
                cell.kind.value,
                cell.label or "<unnamed>",
                report.discrepancies(),
            )
        return report


__all__ = [
    "CURRENCIES",
    "CurrencyBalance",
    "MassBalanceAuditor",
    "MassBalanceReport",
    "MassBalanceSlots",
    "MassContent",
    "mass_balance_flag",
    "snapshot_name",
]
