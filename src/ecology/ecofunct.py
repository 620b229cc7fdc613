"""Shared numerics for the process library."""

from __future__ import annotations

import math
from typing import Callable, Dict, Tuple

from .constants import (
    ATOMIC_WEIGHT_C,
    BOLTZMANN,
    KELVIN_OFFSET,
    ZOO_CARBON_DENSITY,
    red_A_C,
)
from .errors import InvalidConfiguration

TINY = 1.0e-10


def e_max(value: float, floor: float = TINY) -> float:
    """Floor a concentration used as a divisor or reaction input."""
    return value if value > floor else floor


def e_min(a: float, b: float) -> float:
    return a if a < b else b


def nonnegative(value: float) -> float:
    return value if value > 0.0 else 0.0


def aerobic_fraction(oxygen: float, half_saturation: float) -> float:
    """Saturating ``O^2 / (K^2 + O^2)`` split; negative oxygen counts as zero."""
    oxygen2 = nonnegative(oxygen) ** 2
    denom = half_saturation * half_saturation + oxygen2
    if denom <= 0.0:
        return 0.0
    return oxygen2 / denom


def partition(oxygen: float, half_saturation: float) -> Tuple[float, float]:
    """Return the (aerobic, anaerobic) fractions; they always sum to one."""
    aerobic = aerobic_fraction(oxygen, half_saturation)
    return aerobic, 1.0 - aerobic


def temperature_factor(temp: float, q10: float, tref: float) -> float:
    return q10 ** ((temp - tref) / 10.0)


def seawater_viscosity(temp: float, salt: float) -> float:
    """Kinematic viscosity of seawater (m2 s-1), empirical fit for 0-30 degC."""
    centistokes = 1.7915 - 0.0538 * temp + 0.000700 * temp * temp + 0.0023 * salt
    return max(centistokes, 0.1) * 1.0e-6


def zooplankton_cell_mass(radius: float) -> float:
    """Mass of one zooplankter (mol of Redfield units) from its radius (m)."""
    volume = 4.0 / 3.0 * math.pi * radius ** 3
    return volume * ZOO_CARBON_DENSITY / ATOMIC_WEIGHT_C / red_A_C


def sinking_speed(radius: float) -> float:
    """Allometric swimming/sinking speed (m s-1) used for prey cells."""
    return 0.004 * radius ** 0.26


# --- encounter kernels (m3 s-1) ------------------------------------------------------


def diffusion_kernel(
    prey_radius: float, predator_radius: float, viscosity: float, temp: float, density: float
) -> float:
    """Brownian encounter kernel from Stokes-Einstein diffusivities."""
    mu = viscosity * density
    if mu <= 0.0:
        return 0.0
    kt = BOLTZMANN * (temp + KELVIN_OFFSET)
    diffusivity = kt / (6.0 * math.pi * mu) * (1.0 / prey_radius + 1.0 / predator_radius)
    return 4.0 * math.pi * diffusivity * (prey_radius + predator_radius)


def motion_kernel(
    prey_radius: float, prey_speed: float, predator_radius: float, predator_speed: float
) -> float:
    """Relative-motion kernel for randomly oriented swimming or sinking."""
    return math.pi * (prey_radius + predator_radius) ** 2 * math.sqrt(
        prey_speed * prey_speed + predator_speed * predator_speed
    )


def shear_kernel(prey_radius: float, predator_radius: float, tke_eps: float, viscosity: float) -> float:
    """Turbulent shear kernel."""
    if viscosity <= 0.0 or tke_eps <= 0.0:
        return 0.0
    return 1.3 * (prey_radius + predator_radius) ** 3 * math.sqrt(tke_eps / viscosity)


def _combine_sum(diffusion: float, motion: float, shear: float) -> float:
    return diffusion + motion + shear


def _combine_rect(diffusion: float, motion: float, shear: float) -> float:
    return math.sqrt(diffusion * diffusion + motion * motion + shear * shear)


ENCOUNTER_METHODS: Dict[str, Callable[[float, float, float], float]] = {
    "sum": _combine_sum,
    "rect": _combine_rect,
}


def check_encounter_method(method: str) -> str:
    key = (method or "").strip().lower()
    if key not in ENCOUNTER_METHODS:
        raise InvalidConfiguration(
            f"Unknown encounter method '{method}'. Available: {', '.join(sorted(ENCOUNTER_METHODS))}"
        )
    return key


def encounter_rate(
    method: str,
    prey_radius: float,
    prey_speed: float,
    predator_radius: float,
    predator_speed: float,
    tke_eps: float,
    viscosity: float,
    temp: float,
    density: float = 1000.0,
) -> float:
    """Volume swept clear per predator per second for one prey class."""
    combine = ENCOUNTER_METHODS[check_encounter_method(method)]
    return combine(
        diffusion_kernel(prey_radius, predator_radius, viscosity, temp, density),
        motion_kernel(prey_radius, prey_speed, predator_radius, predator_speed),
        shear_kernel(prey_radius, predator_radius, tke_eps, viscosity),
    )


__all__ = [
    "ENCOUNTER_METHODS",
    "TINY",
    "aerobic_fraction",
    "check_encounter_method",
    "diffusion_kernel",
    "e_max",
    "e_min",
    "encounter_rate",
    "motion_kernel",
    "nonnegative",
    "partition",
    "seawater_viscosity",
    "shear_kernel",
    "sinking_speed",
    "temperature_factor",
    "zooplankton_cell_mass",
]
