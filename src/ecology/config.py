"""Run configuration: tracers, parameters, process sequences and cells."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from .cell import CellContext, ProcessKind
from .engine import Ecology
from .errors import InvalidConfiguration
from .parameters import ParameterStore, combine_parameter_stores
from .registry import TracerSpec

logger = logging.getLogger(__name__)


class TracerEntry(BaseModel):
    name: str
    diagnostic: bool = False


class ParameterEntry(BaseModel):
    value: Optional[Union[float, str]] = None
    units: str = ""
    description: str = ""
    expression: Optional[str] = None
    derived_from: List[str] = Field(default_factory=list)


class ProcessSequences(BaseModel):
    wc: List[str] = Field(default_factory=list)
    sed: List[str] = Field(default_factory=list)


class CellConfig(BaseModel):
    label: str = ""
    kind: ProcessKind = ProcessKind.WC
    porosity: float = 1.0
    dz: float = 1.0
    state: Dict[str, float] = Field(default_factory=dict)
    cell_variables: Dict[str, float] = Field(default_factory=dict)

    @field_validator("porosity", "dz")
    def positive(cls, value: float) -> float:
        if not value > 0.0:
            raise ValueError("must be positive")
        return value


class RunConfig(BaseModel):
    tracers: List[Union[str, TracerEntry]]
    parameters: Dict[str, Union[float, str, ParameterEntry]] = Field(default_factory=dict)
    parameter_files: List[Path] = Field(default_factory=list)
    processes: ProcessSequences = Field(default_factory=ProcessSequences)
    cells: List[CellConfig] = Field(default_factory=list)

    @model_validator(mode="after")
    def cells_use_declared_tracers(self) -> "RunConfig":
        declared = set(self.tracer_names())
        for position, cell in enumerate(self.cells):
            unknown = sorted(set(cell.state) - declared)
            if unknown:
                raise ValueError(f"cell {cell.label or position} sets undeclared tracers {unknown}")
        return self

    def tracer_names(self) -> List[str]:
        return [entry if isinstance(entry, str) else entry.name for entry in self.tracers]

    def tracer_specs(self) -> List[TracerSpec]:
        return [
            TracerSpec(entry) if isinstance(entry, str) else TracerSpec(entry.name, entry.diagnostic)
            for entry in self.tracers
        ]

    def parameter_store(self) -> ParameterStore:
        """Catalogue files first, inline parameters override them."""
        entries = []
        for name, entry in self.parameters.items():
            if isinstance(entry, ParameterEntry):
                entries.append(dict(entry.model_dump(), name=name))
            else:
                entries.append({"name": name, "value": entry})
        return combine_parameter_stores(self.parameter_files, entries)


def parse_run_config(data: Dict[str, object], base_dir: Optional[Path] = None) -> RunConfig:
    try:
        config = RunConfig.model_validate(data)
    except ValidationError as exc:
        raise InvalidConfiguration(f"invalid run configuration: {exc}") from exc
    if base_dir is not None:
        config.parameter_files = [
            path if path.is_absolute() else base_dir / path for path in config.parameter_files
        ]
    return config


def load_run_config(path: Path | str) -> RunConfig:
    """Read a JSON run configuration; relative catalogue paths resolve against its folder."""
    path = Path(path)
    try:
        with path.open("r", encoding="utf8") as handle:
            data = json.load(handle)
    except json.JSONDecodeError as exc:
        raise InvalidConfiguration(f"{path} is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise InvalidConfiguration(f"{path}: run configuration must be a JSON object")
    config = parse_run_config(data, base_dir=path.parent)
    logger.info(
        "run configuration %s: %d tracers, %d wc and %d sed processes, %d cells",
        path,
        len(config.tracers),
        len(config.processes.wc),
        len(config.processes.sed),
        len(config.cells),
    )
    return config


def build_ecology(config: RunConfig) -> Ecology:
    return Ecology.build(
        config.tracer_specs(),
        config.parameter_store(),
        wc=config.processes.wc,
        sed=config.processes.sed,
    )


def build_cells(ecology: Ecology, config: RunConfig) -> List[CellContext]:
    return [
        ecology.new_cell(
            cell.kind,
            cell.state,
            porosity=cell.porosity,
            dz=cell.dz,
            cell_variables=cell.cell_variables,
            label=cell.label or f"cell{position}",
        )
        for position, cell in enumerate(config.cells)
    ]


__all__ = [
    "CellConfig",
    "ParameterEntry",
    "ProcessSequences",
    "RunConfig",
    "TracerEntry",
    "build_cells",
    "build_ecology",
    "load_run_config",
    "parse_run_config",
]
