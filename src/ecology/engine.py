"""Process sequencer: owns registries, caches and ordered process lists."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

import numpy as np

from .cell import CellContext, ProcessKind
from .errors import InvalidConfiguration
from .massbalance import mass_balance_flag
from .parameters import ParameterStore, ParameterValue
from .process import EcologyProcess, ProcessBinder
from .registry import NameRegistry, Namespace, TracerLike, tracer_vector

logger = logging.getLogger(__name__)


class Ecology:
    """Composition engine for one simulation run.

    Processes are set up against a shared :class:`NameRegistry` and
    :class:`ParameterStore`, then evaluated in their configured order on each
    :class:`CellContext`.  Within one cell the phases run as rounds: every
    ``precalc``, then every ``calc``, then every ``postcalc``.
    """

    def __init__(
        self,
        registry: NameRegistry,
        parameters: ParameterStore,
        processes: Mapping[ProcessKind, Sequence[EcologyProcess]],
    ) -> None:
        self.registry = registry
        self.parameters = parameters
        self._processes: Dict[ProcessKind, Tuple[EcologyProcess, ...]] = {
            kind: tuple(processes.get(kind, ())) for kind in ProcessKind
        }
        for kind, sequence in self._processes.items():
            for process in sequence:
                if process.kind != kind:
                    raise InvalidConfiguration(
                        f"process '{process.name}' is a {process.kind.value} process "
                        f"but was configured in the {kind.value} sequence"
                    )
        self.model_cache = np.zeros(0, dtype=float)
        self._state = "new"

    @classmethod
    def build(
        cls,
        tracers: Iterable[TracerLike],
        parameters: ParameterStore | Mapping[str, ParameterValue],
        *,
        wc: Sequence[str] = (),
        sed: Sequence[str] = (),
        setup: bool = True,
    ) -> "Ecology":
        """Resolve configured process identifiers and (by default) set them up."""
        from .processes import create_processes

        registry = NameRegistry.from_tracers(tracers)
        if not isinstance(parameters, ParameterStore):
            parameters = ParameterStore.from_values(parameters)
        ecology = cls(
            registry,
            parameters,
            {
                ProcessKind.WC: create_processes(ProcessKind.WC, wc),
                ProcessKind.SED: create_processes(ProcessKind.SED, sed),
            },
        )
        if setup:
            ecology.setup()
        return ecology

    # --- lifecycle -------------------------------------------------------------------

    def processes(self, kind: ProcessKind) -> Tuple[EcologyProcess, ...]:
        return self._processes[ProcessKind(kind)]

    def process_present(self, kind: ProcessKind, name: str) -> bool:
        return any(process.name == name for process in self.processes(kind))

    def mass_balance_enabled(self, kind: ProcessKind) -> bool:
        return bool(self.registry.lookup_optional(Namespace.MODEL, mass_balance_flag(kind)))

    @property
    def is_ready(self) -> bool:
        return self._state == "ready"

    def setup(self) -> None:
        if self._state != "new":
            raise InvalidConfiguration(f"setup() called on an engine in state '{self._state}'")
        for kind, sequence in self._processes.items():
            written: Set[str] = set()
            for process in sequence:
                binder = ProcessBinder(self.registry, self.parameters, process.name, available=written)
                process.bind(binder)
                written |= process.cell_writes
            self._validate_cache_order(kind, sequence)

        self.model_cache = np.zeros(self.registry.size(Namespace.MODEL), dtype=float)
        for sequence in self._processes.values():
            for process in sequence:
                process.postsetup(self)
        self.model_cache.setflags(write=False)
        self._state = "ready"
        for kind, sequence in self._processes.items():
            if sequence:
                logger.info(
                    "%s processes: %s", kind.value, ", ".join(process.name for process in sequence)
                )

    def _validate_cache_order(self, kind: ProcessKind, sequence: Sequence[EcologyProcess]) -> None:
        """Every per-cell value a process reads must be written earlier in its own sequence.

        Optional inputs count too: one that a later process writes is an
        ordering error rather than a silently disabled feature.
        """
        written: Set[str] = set()
        for position, reader in enumerate(sequence):
            pending = (reader.cell_reads | reader.cell_optional_reads) - written - reader.cell_writes
            for later in sequence[position + 1 :]:
                clash = pending & later.cell_writes
                if clash:
                    raise InvalidConfiguration(
                        f"{kind.value} process '{reader.name}' reads cell variable(s) "
                        f"{sorted(clash)} written by later process '{later.name}'"
                    )
            missing = reader.cell_reads - written - reader.cell_writes
            if missing:
                raise InvalidConfiguration(
                    f"{kind.value} process '{reader.name}' reads cell variable(s) {sorted(missing)} "
                    f"that no earlier {kind.value} process writes"
                )
            written |= reader.cell_writes

    def set_model_variable(self, name: str, value: float) -> None:
        """Write a per-model cache value; only allowed during late setup."""
        if not self.model_cache.flags.writeable:
            raise InvalidConfiguration(f"model variable '{name}' written after setup completed")
        self.model_cache[self.registry.require(Namespace.MODEL, name)] = float(value)

    def teardown(self) -> None:
        for sequence in self._processes.values():
            for process in sequence:
                process.teardown()
        self._state = "closed"

    # --- evaluation ------------------------------------------------------------------

    def new_cell(
        self,
        kind: ProcessKind = ProcessKind.WC,
        state: Optional[Mapping[str, float]] = None,
        *,
        porosity: float = 1.0,
        dz: float = 1.0,
        cell_variables: Optional[Mapping[str, float]] = None,
        label: str = "",
    ) -> CellContext:
        y = tracer_vector(self.registry, dict(state or {}))
        cv = np.zeros(self.registry.size(Namespace.CELL), dtype=float)
        for name, value in (cell_variables or {}).items():
            cv[self.registry.require(Namespace.CELL, name)] = float(value)
        return CellContext(
            kind=ProcessKind(kind),
            y=y,
            y1=np.zeros_like(y),
            cv=cv,
            model_cache=self.model_cache,
            porosity=porosity,
            dz=dz,
            label=label,
        )

    def _sequence_for(self, cell: CellContext) -> Tuple[EcologyProcess, ...]:
        if self._state != "ready":
            raise InvalidConfiguration(f"engine is not ready for evaluation (state '{self._state}')")
        return self._processes[cell.kind]

    def precalc(self, cell: CellContext) -> None:
        for process in self._sequence_for(cell):
            process.precalc(cell)

    def calc(self, cell: CellContext) -> None:
        for process in self._sequence_for(cell):
            process.calc(cell)

    def postcalc(self, cell: CellContext) -> None:
        for process in self._sequence_for(cell):
            process.postcalc(cell)

    def evaluate(self, cell: CellContext) -> np.ndarray:
        """Run all three rounds on *cell* and return its derivative vector."""
        self.precalc(cell)
        self.calc(cell)
        self.postcalc(cell)
        return cell.y1

    def derivative_table(self, cell: CellContext, *, nonzero_only: bool = True) -> List[Tuple[str, float]]:
        rows = []
        for name in self.registry.names(Namespace.TRACER):
            value = float(cell.y1[self.registry.require(Namespace.TRACER, name)])
            if nonzero_only and value == 0.0:
                continue
            rows.append((name, value))
        return rows


__all__ = ["Ecology"]
