from __future__ import annotations

import pytest

from src.ecology.constants import SEC_PER_DAY
from src.ecology.units import convert_length, convert_parameter_value, convert_rate, convert_speed


def test_convert_rate_from_per_day_and_per_hour() -> None:
    assert convert_rate(0.864, "d-1") == pytest.approx(1e-5)
    assert convert_rate(0.864, "1/day") == pytest.approx(1e-5)
    assert convert_rate(3.6, "h-1") == pytest.approx(1e-3)


def test_convert_length_handles_micrometres() -> None:
    assert convert_length(320.0, "um") == pytest.approx(3.2e-4)
    assert convert_length(2.0, "cm") == pytest.approx(0.02)


def test_convert_speed_splits_length_and_time() -> None:
    assert convert_speed(86.4, "mm/d") == pytest.approx(1e-6)
    assert convert_speed(3.0, "mm s-1") == pytest.approx(3e-3)


def test_convert_parameter_value_dispatches_on_unit() -> None:
    assert convert_parameter_value(1.0, "d-1") == pytest.approx(1.0 / SEC_PER_DAY)
    assert convert_parameter_value(4.0, "um") == pytest.approx(4e-6)
    assert convert_parameter_value(256.0, "mg O m-3") == 256.0
    assert convert_parameter_value(0.5, "dimensionless") == 0.5
    assert convert_parameter_value(20.0, "") == 20.0
