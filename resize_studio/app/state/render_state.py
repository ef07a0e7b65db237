from __future__ import annotations

from PySide6.QtCore import Property, QObject, Signal


class RenderState(QObject):
    """State for the live preview and export activity.

    Busy flags are practical for enabling/disabling UI controls; results
    themselves travel through the session signals.
    """

    previewBusyChanged = Signal(bool)
    previewSizeChanged = Signal(int)
    previewErrorChanged = Signal(str)
    exportRunningChanged = Signal(bool)

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._preview_busy = False
        self._preview_size = 0
        self._preview_error = ""
        self._exports_running = 0

    def _get_preview_busy(self) -> bool:
        return bool(self._preview_busy)

    previewBusy = Property(bool, _get_preview_busy, notify=previewBusyChanged)  # type: ignore[arg-type]

    def _get_preview_size(self) -> int:
        return int(self._preview_size)

    previewSize = Property(int, _get_preview_size, notify=previewSizeChanged)  # type: ignore[arg-type]

    def _get_estimated_kb(self) -> float:
        return round(self._preview_size / 1024, 1)

    estimatedSizeKB = Property(float, _get_estimated_kb, notify=previewSizeChanged)  # type: ignore[arg-type]

    def _get_preview_error(self) -> str:
        return str(self._preview_error)

    previewError = Property(str, _get_preview_error, notify=previewErrorChanged)  # type: ignore[arg-type]

    def _get_export_running(self) -> bool:
        return self._exports_running > 0

    exportRunning = Property(bool, _get_export_running, notify=exportRunningChanged)  # type: ignore[arg-type]

    def _set_preview_busy(self, busy: bool) -> None:
        v = bool(busy)
        if v == self._preview_busy:
            return
        self._preview_busy = v
        self.previewBusyChanged.emit(v)

    def _set_preview_size(self, size: int) -> None:
        s = max(0, int(size))
        if s == self._preview_size:
            return
        self._preview_size = s
        self.previewSizeChanged.emit(s)

    def _set_preview_error(self, message: str) -> None:
        m = str(message)
        if m == self._preview_error:
            return
        self._preview_error = m
        self.previewErrorChanged.emit(m)

    def _export_started(self) -> None:
        self._exports_running += 1
        if self._exports_running == 1:
            self.exportRunningChanged.emit(True)

    def _export_ended(self) -> None:
        if self._exports_running == 0:
            return
        self._exports_running -= 1
        if self._exports_running == 0:
            self.exportRunningChanged.emit(False)
