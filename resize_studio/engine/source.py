"""Source image acceptance.

The source image is immutable once accepted. Natural dimensions are read
from the image header with pyvips (no full decode).
"""

from __future__ import annotations

import contextlib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from resize_studio.engine.errors import ValidationError
from resize_studio.logger import get_logger

_logger = get_logger("source")

MAX_SOURCE_BYTES = 4 * 1024 * 1024

MIME_BY_SUFFIX = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".webp": "image/webp",
    ".gif": "image/gif",
}
ALLOWED_MIME_TYPES = frozenset(MIME_BY_SUFFIX.values())

_pyvips: Any | None = None


def _get_pyvips_module() -> Any:
    global _pyvips
    if _pyvips is None:
        import pyvips  # type: ignore

        _pyvips = pyvips
    return _pyvips


def probe_dimensions(data: bytes) -> tuple[int, int]:
    """Return (width, height) from the encoded image header."""
    pyvips = _get_pyvips_module()
    with contextlib.suppress(Exception):
        pyvips.cache_set_max(0)
    try:
        image = pyvips.Image.new_from_buffer(data, "", access="sequential")
    except pyvips.Error as e:
        raise ValidationError(f"failed to read image dimensions: {e}") from e
    return int(image.width), int(image.height)


@dataclass(frozen=True, slots=True)
class SourceImage:
    data: bytes
    name: str
    mime_type: str
    byte_size: int
    natural_width: int
    natural_height: int

    @classmethod
    def from_bytes(
        cls,
        data: bytes,
        name: str,
        *,
        mime_type: str | None = None,
        dimensions: tuple[int, int] | None = None,
    ) -> SourceImage:
        mime = mime_type or MIME_BY_SUFFIX.get(Path(name).suffix.lower(), "")
        if mime == "image/jpg":
            mime = "image/jpeg"
        if mime not in ALLOWED_MIME_TYPES:
            raise ValidationError(f"unsupported image type for {name!r}; use JPEG, PNG, WEBP, or GIF")
        size = len(data)
        if size > MAX_SOURCE_BYTES:
            raise ValidationError(f"{name!r} is {size} bytes; the maximum is {MAX_SOURCE_BYTES} bytes (4 MB)")
        if size == 0:
            raise ValidationError(f"{name!r} is empty")
        w, h = dimensions if dimensions is not None else probe_dimensions(data)
        _logger.debug("source accepted: name=%s mime=%s size=%d dims=%dx%d", name, mime, size, w, h)
        return cls(bytes(data), name, mime, size, int(w), int(h))

    @classmethod
    def from_file(cls, path: str | Path) -> SourceImage:
        p = Path(path)
        try:
            data = p.read_bytes()
        except OSError as e:
            raise ValidationError(f"cannot read {p}: {e}") from e
        return cls.from_bytes(data, p.name)
