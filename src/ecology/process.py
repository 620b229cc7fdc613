"""Process lifecycle contract and the setup-time binder."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Iterable, Optional, Set

from .cell import CellContext, ProcessKind
from .errors import InvalidConfiguration
from .parameters import ParameterStore
from .registry import ABSENT, NameRegistry, Namespace, OptionalSlot

if TYPE_CHECKING:  # pragma: no cover
    from .engine import Ecology

logger = logging.getLogger(__name__)


class ProcessBinder:
    """Setup-time view of the registries handed to :meth:`EcologyProcess.setup`.

    Besides resolving names it records which per-cell cache slots a process
    reads and which it writes; the engine uses those sets to check that
    every reader runs after the writers of its inputs.

    ``available`` holds the per-cell names written by earlier processes of
    the same sequence.  When given, an optional per-cell input outside that
    set resolves to absent even if another sequence registered it.
    """

    def __init__(
        self,
        registry: NameRegistry,
        parameters: ParameterStore,
        process_name: str,
        available: Optional[Iterable[str]] = None,
    ):
        self.registry = registry
        self.parameters = parameters
        self.process_name = process_name
        self.available = None if available is None else frozenset(available)
        self.cell_reads: Set[str] = set()
        self.cell_optional_reads: Set[str] = set()
        self.cell_writes: Set[str] = set()

    # --- tracers -----------------------------------------------------------------

    def tracer(self, name: str) -> int:
        return self.registry.require(Namespace.TRACER, name)

    def try_tracer(self, name: str) -> OptionalSlot:
        return self.registry.lookup_optional(Namespace.TRACER, name)

    # --- parameters --------------------------------------------------------------

    def parameter(self, name: str) -> float:
        return self.parameters.require_float(name)

    def try_parameter(self, name: str) -> Optional[float]:
        if self.parameters.lookup_optional(name) is None:
            return None
        return self.parameters.require_float(name)

    def string_parameter(self, name: str) -> str:
        return self.parameters.require_string(name)

    # --- cache variables ---------------------------------------------------------

    def cell_variable(self, name: str) -> int:
        index = self.registry.require(Namespace.CELL, name)
        self.cell_reads.add(name)
        return index

    def try_cell_variable(self, name: str) -> OptionalSlot:
        self.cell_optional_reads.add(name)
        if self.available is not None and name not in self.available and name not in self.cell_writes:
            if self.registry.lookup_optional(Namespace.CELL, name):
                logger.info(
                    "%s: cell variable %s not written earlier in this sequence, ignoring it",
                    self.process_name,
                    name,
                )
            return ABSENT
        slot = self.registry.lookup_optional(Namespace.CELL, name)
        if slot:
            self.cell_reads.add(name)
        return slot

    def add_cell_variable(self, name: str) -> int:
        self.cell_writes.add(name)
        return self.registry.register(Namespace.CELL, name)

    def add_model_variable(self, name: str) -> int:
        return self.registry.register(Namespace.MODEL, name)


class EcologyProcess:
    """Base class for a pluggable reaction process.

    Lifecycle, driven by :class:`~src.ecology.engine.Ecology`:

    1. ``setup(binder)`` once; resolve every index and parameter into a
       frozen workspace.  Missing mandatory names raise and abort setup.
    2. ``postsetup(ecology)`` once all processes are set up; resolve flags
       that depend on other processes (mass balance, companion pools).
    3. ``precalc(cell)`` per cell; refresh per-cell cache and add the
       "before" half of the mass-balance bracket.
    4. ``calc(cell)`` per cell; add signed contributions into ``cell.y1``.
    5. ``postcalc(cell)`` per cell; add the "after" half of the bracket.
    6. ``teardown()`` once; drop the workspace.

    Subclasses set ``name`` and ``kind`` and implement the hooks they need;
    the defaults do nothing.
    """

    name = ""
    kind = ProcessKind.WC
    # True for processes that add their pools to the mass-balance totals
    tracks_mass = False

    def __init__(self, name: Optional[str] = None, kind: Optional[ProcessKind] = None) -> None:
        if name is not None:
            self.name = name
        if kind is not None:
            self.kind = ProcessKind(kind)
        self.workspace: Any = None
        self.cell_reads: frozenset[str] = frozenset()
        self.cell_optional_reads: frozenset[str] = frozenset()
        self.cell_writes: frozenset[str] = frozenset()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"

    def bind(self, binder: ProcessBinder) -> None:
        self.workspace = self.setup(binder)
        self.cell_reads = frozenset(binder.cell_reads)
        self.cell_optional_reads = frozenset(binder.cell_optional_reads)
        self.cell_writes = frozenset(binder.cell_writes)

    def setup(self, binder: ProcessBinder) -> Any:
        return None

    def postsetup(self, ecology: "Ecology") -> None:
        return None

    def precalc(self, cell: CellContext) -> None:
        return None

    def calc(self, cell: CellContext) -> None:
        return None

    def postcalc(self, cell: CellContext) -> None:
        return None

    def teardown(self) -> None:
        self.workspace = None

    def require_workspace(self) -> Any:
        if self.workspace is None:
            raise InvalidConfiguration(f"process '{self.name}' has no workspace; setup() not run or torn down")
        return self.workspace


__all__ = ["EcologyProcess", "ProcessBinder"]
