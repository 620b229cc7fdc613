"""Stoichiometric and unit constants shared by the process library."""

from __future__ import annotations

SEC_PER_DAY = 86400.0

# Redfield atomic ratios C:N:P:O2
red_A_C = 106.0
red_A_N = 16.0
red_A_P = 1.0
red_A_O = 138.0

ATOMIC_WEIGHT_C = 12.01
ATOMIC_WEIGHT_N = 14.01
ATOMIC_WEIGHT_P = 30.97
MOLECULAR_WEIGHT_O2 = 32.00

# Weight ratios relative to nitrogen (mg X per mg N)
red_W_C = red_A_C * ATOMIC_WEIGHT_C / (red_A_N * ATOMIC_WEIGHT_N)
red_W_N = 1.0
red_W_P = red_A_P * ATOMIC_WEIGHT_P / (red_A_N * ATOMIC_WEIGHT_N)
red_W_O = red_A_O * MOLECULAR_WEIGHT_O2 / (red_A_N * ATOMIC_WEIGHT_N)

# mg O2 consumed per mg C respired
C_O_W = MOLECULAR_WEIGHT_O2 / ATOMIC_WEIGHT_C

# mg N to mol N
mgN2molN = 1.0e-3 / ATOMIC_WEIGHT_N

# mg C per unit of energy reserve (mmol photons equivalent)
ENERGY_TO_CARBON_W = 106.0 / 1060.0 * ATOMIC_WEIGHT_C

# Zooplankton carbon per unit biovolume (g C m-3)
ZOO_CARBON_DENSITY = 1.0e5

BOLTZMANN = 1.380649e-23
KELVIN_OFFSET = 273.15

__all__ = [
    "SEC_PER_DAY",
    "red_A_C",
    "red_A_N",
    "red_A_P",
    "red_A_O",
    "red_W_C",
    "red_W_N",
    "red_W_P",
    "red_W_O",
    "C_O_W",
    "mgN2molN",
    "ENERGY_TO_CARBON_W",
    "ZOO_CARBON_DENSITY",
    "BOLTZMANN",
    "KELVIN_OFFSET",
]
