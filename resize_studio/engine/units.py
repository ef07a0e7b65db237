"""Pixel <-> physical unit conversion.

All functions are pure. Pixel results are integral; physical results are
rounded to 2 decimal places. Malformed input counts as 0.
"""

from __future__ import annotations

from typing import Any

UNITS = ("px", "in", "cm", "mm")
PHYSICAL_UNITS = frozenset({"in", "cm", "mm"})

AUTO_PRINT_DPI = 300
AUTO_SCREEN_DPI = 96

# Physical length per inch.
_PER_INCH = {"in": 1.0, "cm": 2.54, "mm": 25.4}


def _as_number(value: Any) -> float:
    try:
        num = float(value)
    except (TypeError, ValueError):
        return 0.0
    if num != num or num in (float("inf"), float("-inf")):
        return 0.0
    return num


def _round_half_up(value: float, ndigits: int = 0) -> float:
    # round() is banker's rounding; UI values round half away from zero.
    factor = 10**ndigits
    scaled = abs(value) * factor
    out = int(scaled + 0.5) / factor
    return out if value >= 0 else -out


def to_pixels(value: Any, unit: str, dpi: Any) -> int:
    v = _as_number(value)
    d = _as_number(dpi)
    if unit in _PER_INCH:
        v = (v / _PER_INCH[unit]) * d
    return int(_round_half_up(v))


def from_pixels(pixels: Any, unit: str, dpi: Any) -> float | int:
    px = _as_number(pixels)
    if unit not in _PER_INCH:
        return int(_round_half_up(px))
    d = _as_number(dpi)
    if d <= 0:
        return 0.0
    return _round_half_up((px / d) * _PER_INCH[unit], 2)


def effective_dpi(unit: str, resolution_mode: str, dpi: Any) -> int:
    """DPI implied by the unit under the resolution mode."""
    if resolution_mode == "fixed":
        return int(_as_number(dpi))
    return AUTO_PRINT_DPI if unit in PHYSICAL_UNITS else AUTO_SCREEN_DPI


def convert_dimensions(
    width: Any,
    height: Any,
    from_unit: str,
    to_unit: str,
    resolution_mode: str,
    dpi: Any,
) -> tuple[float | int, float | int]:
    """Re-express (width, height) when the active unit switches.

    The outgoing values go to pixels with the outgoing unit's DPI, then to the
    incoming unit with the incoming unit's DPI. Under ``auto`` these differ
    when crossing between px and a physical unit.
    """
    base_dpi = effective_dpi(from_unit, resolution_mode, dpi)
    target_dpi = effective_dpi(to_unit, resolution_mode, dpi)

    def _convert(value: Any) -> float | int:
        v = _as_number(value)
        if from_unit in _PER_INCH:
            px = (v / _PER_INCH[from_unit]) * base_dpi
        else:
            px = v
        return from_pixels(px, to_unit, target_dpi)

    return _convert(width), _convert(height)
