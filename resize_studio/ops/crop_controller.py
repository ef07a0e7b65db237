from __future__ import annotations

from resize_studio.engine.params import FULL_PERCENT, CropRegion

DEFAULT_MIN_SIZE = (1.0, 1.0)


def _clamp(v: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, v))


def _normalized(r: CropRegion) -> CropRegion:
    x, y, w, h = float(r.x), float(r.y), float(r.width), float(r.height)
    if w < 0:
        x = x + w
        w = -w
    if h < 0:
        y = y + h
        h = -h
    return CropRegion(x, y, w, h)


def _anchor_flags(anchor: str) -> tuple[bool, bool, bool, bool]:
    """Return (fix_left, fix_right, fix_top, fix_bottom) for a dragged handle."""
    known = {
        "tl": (False, True, False, True),
        "tr": (True, False, False, True),
        "bl": (False, True, True, False),
        "br": (True, False, True, False),
        "l": (False, True, False, False),
        "r": (True, False, False, False),
        "t": (False, False, False, True),
        "b": (False, False, True, False),
    }
    return known.get(anchor, (False, False, False, False))


def _apply_aspect(w: float, h: float, cur: CropRegion, ratio: float) -> tuple[float, float]:
    if ratio <= 0:
        return w, h
    # Follow the dominant drag direction.
    if abs(w - cur.width) >= abs(h - cur.height):
        return w, w / ratio
    return h * ratio, h


def clamp_crop(
    *,
    current: CropRegion | None,
    proposed: CropRegion,
    anchor: str = "move",
    aspect_ratio: float = 0.0,
    min_size: tuple[float, float] = DEFAULT_MIN_SIZE,
) -> CropRegion:
    """Clamp a proposed crop region (percent of the source image).

    - The region stays within 0..100 on both axes.
    - Width/height never drop below ``min_size``.
    - ``aspect_ratio`` (width/height in percent space, 0 = free) is enforced
      along the dominant change direction.

    ``anchor`` names the dragged handle (tl,tr,bl,br,l,r,t,b); the opposite
    edges stay fixed. ``move`` keeps the current size and shifts the region
    back inside the bounds.
    """
    min_w, min_h = float(min_size[0]), float(min_size[1])
    cur = _normalized(current) if current is not None else CropRegion(0.0, 0.0, FULL_PERCENT, FULL_PERCENT)
    prop = _normalized(proposed)
    a = (anchor or "move").lower()

    if a in {"move", "center", "c"}:
        w = _clamp(max(cur.width, min_w), min_w, FULL_PERCENT)
        h = _clamp(max(cur.height, min_h), min_h, FULL_PERCENT)
        x = _clamp(prop.x, 0.0, FULL_PERCENT - w)
        y = _clamp(prop.y, 0.0, FULL_PERCENT - h)
        return CropRegion(x, y, w, h)

    fix_left, fix_right, fix_top, fix_bottom = _anchor_flags(a)
    w, h = _apply_aspect(max(prop.width, min_w), max(prop.height, min_h), cur, aspect_ratio)

    # Room available from the fixed edge.
    if fix_left:
        w = min(w, FULL_PERCENT - cur.x)
    elif fix_right:
        w = min(w, cur.x + cur.width)
    if fix_top:
        h = min(h, FULL_PERCENT - cur.y)
    elif fix_bottom:
        h = min(h, cur.y + cur.height)
    w = _clamp(w, min_w, FULL_PERCENT)
    h = _clamp(h, min_h, FULL_PERCENT)

    if fix_left:
        x = cur.x
    elif fix_right:
        x = cur.x + cur.width - w
    else:
        x = cur.x if a in {"t", "b"} else prop.x
    if fix_top:
        y = cur.y
    elif fix_bottom:
        y = cur.y + cur.height - h
    else:
        y = cur.y if a in {"l", "r"} else prop.y

    if a in {"t", "b"}:
        w = cur.width if aspect_ratio <= 0 else w
    if a in {"l", "r"}:
        h = cur.height if aspect_ratio <= 0 else h

    x = _clamp(x, 0.0, max(0.0, FULL_PERCENT - w))
    y = _clamp(y, 0.0, max(0.0, FULL_PERCENT - h))
    return CropRegion(round(x, 4), round(y, 4), round(w, 4), round(h, 4))
