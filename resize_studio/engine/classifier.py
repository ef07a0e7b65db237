"""Decide whether a parameter change needs a new remote preview render.

Crop and rotation are not part of the preview snapshot: dragging a crop
handle or clicking rotate must not re-render the live preview. Both are
still applied at export time.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from resize_studio.engine.params import TransformParameters


@dataclass(frozen=True, slots=True)
class Classification:
    relevant: bool


def _dimension(value: float | int | None) -> float | int | None:
    # 6.0 and 6 produce the same request body.
    if value is None:
        return None
    v = float(value)
    return int(v) if v.is_integer() else v


def preview_snapshot(params: TransformParameters) -> dict[str, Any]:
    return {
        "width": _dimension(params.width),
        "height": _dimension(params.height),
        "unit": params.unit,
        "mode": params.mode,
        "format": params.preview_format,
        "quality": params.quality,
        "backgroundColor": params.background_color,
        "maxSizeKB": params.max_size_kb,
        "resolutionMode": params.resolution_mode,
        "dpi": params.dpi,
    }


def _serialize(snapshot: dict[str, Any]) -> str:
    return json.dumps(snapshot, sort_keys=True)


def classify(previous: dict[str, Any] | None, nxt: dict[str, Any]) -> Classification:
    if previous is None:
        return Classification(relevant=True)
    return Classification(relevant=_serialize(previous) != _serialize(nxt))


class ChangeClassifier:
    """Holds the last applied preview snapshot for one editing session."""

    def __init__(self) -> None:
        self._applied: dict[str, Any] | None = None

    @property
    def applied(self) -> dict[str, Any] | None:
        return self._applied

    def evaluate(self, params: TransformParameters) -> Classification:
        return classify(self._applied, preview_snapshot(params))

    def mark_applied(self, params: TransformParameters) -> None:
        self._applied = preview_snapshot(params)

    def reset(self) -> None:
        """Forget the applied snapshot so the next evaluation is relevant."""
        self._applied = None
