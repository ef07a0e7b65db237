from __future__ import annotations

import pytest

from resize_studio.engine.units import convert_dimensions, effective_dpi, from_pixels, to_pixels

_PER_INCH = {"in": 1.0, "cm": 2.54, "mm": 25.4}


def test_to_pixels_physical_units() -> None:
    assert to_pixels(2, "in", 300) == 600
    assert to_pixels(2.54, "cm", 300) == 300
    assert to_pixels(25.4, "mm", 96) == 96
    assert to_pixels(1234, "px", 300) == 1234


def test_from_pixels_rounds_to_two_decimals() -> None:
    assert from_pixels(1000, "in", 300) == 3.33
    assert from_pixels(1000, "cm", 96) == 26.46
    assert from_pixels(1000, "mm", 96) == 264.58
    assert from_pixels(1000.4, "px", 96) == 1000


@pytest.mark.parametrize("value", ["", None, "abc", float("nan")])
def test_malformed_input_counts_as_zero(value) -> None:
    assert to_pixels(value, "in", 300) == 0
    assert from_pixels(value, "cm", 300) == 0


@pytest.mark.parametrize("unit", ["in", "cm", "mm"])
@pytest.mark.parametrize("dpi", [72, 96, 150, 300, 600])
@pytest.mark.parametrize("pixels", [1, 37, 640, 1080, 1920, 4000])
def test_pixels_survive_round_trip(unit: str, dpi: int, pixels: int) -> None:
    physical = from_pixels(pixels, unit, dpi)
    back = to_pixels(physical, unit, dpi)
    # Physical values carry 2 decimals: at most 0.005 units of drift, plus pixel rounding.
    tolerance = 0.005 * dpi / _PER_INCH[unit] + 0.5
    assert abs(back - pixels) <= tolerance
    # Converting again without edits is stable.
    assert from_pixels(back, unit, dpi) == pytest.approx(physical, abs=0.01)


@pytest.mark.parametrize("unit", ["in", "cm", "mm"])
@pytest.mark.parametrize("pixels", [1, 99, 1000, 1920])
def test_screen_dpi_round_trip_is_exact(unit: str, pixels: int) -> None:
    assert to_pixels(from_pixels(pixels, unit, 96), unit, 96) == pixels


def test_effective_dpi_auto_and_fixed() -> None:
    assert effective_dpi("px", "auto", 150) == 96
    assert effective_dpi("in", "auto", 150) == 300
    assert effective_dpi("mm", "fixed", 150) == 150
    assert effective_dpi("px", "fixed", 72) == 72


def test_switch_px_to_inches_uses_incoming_unit_dpi_under_auto() -> None:
    # 1920px at the outgoing 96 dpi stays 1920px, then 1920 / 300 in.
    assert convert_dimensions(1920, 1080, "px", "in", "auto", 300) == (6.4, 3.6)


def test_switch_inches_to_px_uses_outgoing_unit_dpi_under_auto() -> None:
    assert convert_dimensions(6.4, 3.6, "in", "px", "auto", 300) == (1920, 1080)


def test_switch_between_physical_units_with_fixed_dpi() -> None:
    assert convert_dimensions(10, 5, "cm", "mm", "fixed", 150) == (100.0, 50.0)
    assert convert_dimensions(8.5, 11, "in", "cm", "fixed", 200) == (21.59, 27.94)


def test_switch_with_empty_dimension() -> None:
    assert convert_dimensions("", 1080, "px", "in", "auto", 300) == (0.0, 3.6)
