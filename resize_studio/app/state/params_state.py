from __future__ import annotations

from PySide6.QtCore import Property, QObject, Signal

from resize_studio.engine.params import TransformParameters


class ParamsState(QObject):
    """Bindable view of the session's transform parameters.

    Design:
    - The session is authoritative; this object only mirrors the current
      TransformParameters and source presence.
    - Rotation is exposed normalized to [0, 360).
    """

    parametersChanged = Signal(object)
    hasSourceChanged = Signal(bool)

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._params: TransformParameters | None = None
        self._has_source = False

    @property
    def params(self) -> TransformParameters | None:
        return self._params

    # ---- read-only properties (mutate via session) ----
    def _get_has_source(self) -> bool:
        return bool(self._has_source)

    hasSource = Property(bool, _get_has_source, notify=hasSourceChanged)  # type: ignore[arg-type]

    def _get_width(self) -> float:
        return float(self._params.width or 0) if self._params else 0.0

    width = Property(float, _get_width, notify=parametersChanged)  # type: ignore[arg-type]

    def _get_height(self) -> float:
        return float(self._params.height or 0) if self._params else 0.0

    height = Property(float, _get_height, notify=parametersChanged)  # type: ignore[arg-type]

    def _get_unit(self) -> str:
        return self._params.unit if self._params else "px"

    unit = Property(str, _get_unit, notify=parametersChanged)  # type: ignore[arg-type]

    def _get_format(self) -> str:
        return self._params.format if self._params else "jpeg"

    format = Property(str, _get_format, notify=parametersChanged)  # type: ignore[arg-type]

    def _get_rotation(self) -> int:
        return self._params.normalized_rotation if self._params else 0

    rotation = Property(int, _get_rotation, notify=parametersChanged)  # type: ignore[arg-type]

    def _get_has_crop(self) -> bool:
        crop = self._params.crop if self._params else None
        return bool(crop is not None and crop.is_effective)

    hasCrop = Property(bool, _get_has_crop, notify=parametersChanged)  # type: ignore[arg-type]

    def _get_quality_enabled(self) -> bool:
        # Size-budget mode supersedes the fixed quality control.
        return bool(self._params is not None and not self._params.size_budget_active)

    qualityEnabled = Property(bool, _get_quality_enabled, notify=parametersChanged)  # type: ignore[arg-type]

    # ---- internal mutation helpers (called by session) ----
    def _set_params(self, params: TransformParameters | None) -> None:
        if params == self._params:
            return
        self._params = params
        self.parametersChanged.emit(params)

    def _set_has_source(self, value: bool) -> None:
        v = bool(value)
        if v == self._has_source:
            return
        self._has_source = v
        self.hasSourceChanged.emit(v)
