"""Unit conversion helpers for ecology parameter catalogues.

The engine integrates in seconds and metres; catalogues are usually written
with per-day rates and micrometre radii.
"""

from __future__ import annotations

from .constants import SEC_PER_DAY


def _normalize(unit: str) -> str:
    return (unit or "").strip().lower().replace(" ", "")


_RATE_FACTORS = {
    "s-1": 1.0,
    "1/s": 1.0,
    "1/second": 1.0,
    "min-1": 1.0 / 60.0,
    "1/minute": 1.0 / 60.0,
    "h-1": 1.0 / 3600.0,
    "1/h": 1.0 / 3600.0,
    "1/hour": 1.0 / 3600.0,
    "d-1": 1.0 / SEC_PER_DAY,
    "1/d": 1.0 / SEC_PER_DAY,
    "1/day": 1.0 / SEC_PER_DAY,
}


def convert_rate(value: float, unit: str) -> float:
    """Convert a first-order rate into s-1."""
    factor = _RATE_FACTORS.get(_normalize(unit))
    if factor is not None:
        return value * factor
    return value


_LENGTH_FACTORS = {
    "m": 1.0,
    "meter": 1.0,
    "metre": 1.0,
    "cm": 1e-2,
    "centimeter": 1e-2,
    "centimetre": 1e-2,
    "mm": 1e-3,
    "millimeter": 1e-3,
    "millimetre": 1e-3,
    "um": 1e-6,
    "µm": 1e-6,
    "micrometer": 1e-6,
    "micrometre": 1e-6,
}


def convert_length(value: float, unit: str) -> float:
    factor = _LENGTH_FACTORS.get(_normalize(unit))
    if factor is not None:
        return value * factor
    return value


_SPEED_SUFFIXES = {
    "/s": 1.0,
    "s-1": 1.0,
    "/d": 1.0 / SEC_PER_DAY,
    "/day": 1.0 / SEC_PER_DAY,
    "d-1": 1.0 / SEC_PER_DAY,
}


def convert_speed(value: float, unit: str) -> float:
    """Convert a velocity such as ``mm/d`` or ``um s-1`` into m s-1."""
    norm = _normalize(unit)
    for suffix, time_factor in _SPEED_SUFFIXES.items():
        if norm.endswith(suffix):
            length = norm[: -len(suffix)]
            if length in _LENGTH_FACTORS:
                return value * _LENGTH_FACTORS[length] * time_factor
    return value


def convert_parameter_value(value: float, unit: str) -> float:
    norm = _normalize(unit)
    if not norm or norm == "dimensionless" or norm == "none":
        return value
    if norm in _RATE_FACTORS:
        return convert_rate(value, unit)
    if norm in _LENGTH_FACTORS:
        return convert_length(value, unit)
    if any(norm.endswith(suffix) for suffix in _SPEED_SUFFIXES):
        return convert_speed(value, unit)
    return value


__all__ = [
    "convert_length",
    "convert_parameter_value",
    "convert_rate",
    "convert_speed",
]
