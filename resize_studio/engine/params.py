"""Transform parameters, crop region, and preview handle types."""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields, replace
from typing import Any

from PySide6.QtGui import QColor, QImage

from resize_studio.engine.errors import ValidationError
from resize_studio.engine.units import UNITS

MODES = ("stretch", "blur", "color")
FORMATS = ("jpeg", "png", "webp", "pdf")
RESOLUTION_MODES = ("auto", "fixed")

# Wire/UI names accepted by TransformParameters.with_field().
FIELD_ALIASES = {
    "backgroundColor": "background_color",
    "maxSizeKB": "max_size_kb",
    "resolutionMode": "resolution_mode",
    "rotate": "rotation",
}

FULL_PERCENT = 100.0


def normalize_rotation(rotation: Any) -> int:
    r = int(rotation or 0)
    return ((r % 360) + 360) % 360


@dataclass(frozen=True, slots=True)
class CropRegion:
    """Crop rect in percent of the source image (0..100) in (x, y, width, height) form."""

    x: float
    y: float
    width: float
    height: float

    @property
    def is_effective(self) -> bool:
        """False for degenerate regions and for regions covering the whole image."""
        if self.width <= 0 or self.height <= 0:
            return False
        full = self.x <= 0 and self.y <= 0 and self.width >= FULL_PERCENT and self.height >= FULL_PERCENT
        return not full

    def to_json(self) -> str:
        return json.dumps({"x": self.x, "y": self.y, "width": self.width, "height": self.height})

    @classmethod
    def from_value(cls, value: Any) -> CropRegion | None:
        """Accept a CropRegion, a mapping with x/y/width/height, a 4-sequence, or None."""
        if value is None or isinstance(value, CropRegion):
            return value
        try:
            if isinstance(value, dict):
                return cls(float(value["x"]), float(value["y"]), float(value["width"]), float(value["height"]))
            x, y, w, h = value
            return cls(float(x), float(y), float(w), float(h))
        except (KeyError, TypeError, ValueError) as e:
            raise ValidationError(f"invalid crop region: {value!r}") from e


def _coerce_dimension(value: Any) -> float | int | None:
    # Empty while the user is typing.
    if value is None or value == "":
        return None
    try:
        num = float(value)
    except (TypeError, ValueError):
        return None
    return int(num) if num.is_integer() else num


def _coerce_choice(name: str, value: Any, choices: tuple[str, ...]) -> str:
    v = str(value or "").strip().lower()
    if name == "format" and v == "jpg":
        v = "jpeg"
    if v not in choices:
        raise ValidationError(f"{name} must be one of {', '.join(choices)} (got {value!r})")
    return v


def _coerce_positive_int(name: str, value: Any, *, optional: bool = False) -> int | None:
    if optional and (value is None or value == "" or value == 0):
        return None
    try:
        v = int(float(value))
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{name} must be a positive integer (got {value!r})") from e
    if v <= 0:
        if optional:
            return None
        raise ValidationError(f"{name} must be a positive integer (got {value!r})")
    return v


@dataclass(frozen=True, slots=True)
class TransformParameters:
    width: float | int | None = 1920
    height: float | int | None = 1080
    unit: str = "px"
    mode: str = "stretch"
    format: str = "jpeg"
    quality: int = 90
    background_color: str = "#FFFFFF"
    max_size_kb: int | None = None
    resolution_mode: str = "auto"
    dpi: int = 300
    crop: CropRegion | None = None
    rotation: int = 0

    @property
    def has_valid_dimensions(self) -> bool:
        return bool(self.width and self.height and self.width > 0 and self.height > 0)

    @property
    def normalized_rotation(self) -> int:
        return normalize_rotation(self.rotation)

    @property
    def size_budget_active(self) -> bool:
        """Size-budget mode: quality selection is delegated to the service."""
        return self.max_size_kb is not None

    @property
    def preview_format(self) -> str:
        return "jpeg" if self.format == "pdf" else self.format

    def with_field(self, name: str, value: Any) -> TransformParameters:
        key = FIELD_ALIASES.get(name, name)
        if key not in _FIELD_NAMES:
            raise ValidationError(f"unknown parameter: {name!r}")
        return replace(self, **{key: _coerce(key, value)})

    def with_fields(self, **changes: Any) -> TransformParameters:
        params = self
        for name, value in changes.items():
            params = params.with_field(name, value)
        return params


_FIELD_NAMES = frozenset(f.name for f in fields(TransformParameters))


def _coerce(key: str, value: Any) -> Any:
    if key in ("width", "height"):
        return _coerce_dimension(value)
    if key == "unit":
        return _coerce_choice(key, value, UNITS)
    if key == "mode":
        return _coerce_choice(key, value, MODES)
    if key == "format":
        return _coerce_choice(key, value, FORMATS)
    if key == "resolution_mode":
        return _coerce_choice(key, value, RESOLUTION_MODES)
    if key == "quality":
        try:
            q = int(float(value))
        except (TypeError, ValueError) as e:
            raise ValidationError(f"quality must be an integer (got {value!r})") from e
        return max(1, min(100, q))
    if key == "max_size_kb":
        return _coerce_positive_int(key, value, optional=True)
    if key == "dpi":
        return _coerce_positive_int(key, value)
    if key == "background_color":
        color = QColor(str(value))
        if not color.isValid():
            raise ValidationError(f"invalid color: {value!r}")
        return color.name().upper()
    if key == "crop":
        return CropRegion.from_value(value)
    if key == "rotation":
        try:
            r = int(value or 0)
        except (TypeError, ValueError) as e:
            raise ValidationError(f"rotation must be an integer (got {value!r})") from e
        if r % 90 != 0:
            raise ValidationError(f"rotation must be a multiple of 90 degrees (got {value!r})")
        return r
    return value


class PreviewHandle:
    """Displayable preview image backed by response bytes.

    The QImage is decoded lazily. ``release()`` drops both the bytes and the
    decoded image; a released handle must not be displayed again.
    """

    def __init__(self, data: bytes) -> None:
        self._data: bytes | None = bytes(data)
        self._image: QImage | None = None
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    @property
    def data(self) -> bytes:
        return self._data or b""

    def image(self) -> QImage:
        if self._released or not self._data:
            return QImage()
        if self._image is None:
            self._image = QImage.fromData(self._data)
        return self._image

    def release(self) -> None:
        self._released = True
        self._data = None
        self._image = None


@dataclass(frozen=True, slots=True)
class PreviewState:
    handle: PreviewHandle | None = field(default=None, compare=False)
    byte_size: int = 0
    generation: int = 0

    @property
    def size_kb(self) -> float:
        return round(self.byte_size / 1024, 1)
