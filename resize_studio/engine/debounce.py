from __future__ import annotations

from PySide6.QtCore import QObject, QTimer, Signal

DEFAULT_QUIESCENCE_MS = 500


class DebounceScheduler(QObject):
    """Trailing-edge debounce with a single timer slot.

    Every ``notify()`` restarts the quiescence window; ``fired`` is emitted
    once the window elapses without another notify.
    """

    fired = Signal()

    def __init__(self, interval_ms: int = DEFAULT_QUIESCENCE_MS, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.setInterval(max(0, int(interval_ms)))
        self._timer.timeout.connect(self.fired)

    @property
    def interval_ms(self) -> int:
        return int(self._timer.interval())

    @property
    def pending(self) -> bool:
        return self._timer.isActive()

    def notify(self) -> None:
        self._timer.start()

    def cancel(self) -> None:
        self._timer.stop()

    def flush(self) -> bool:
        """Fire now if armed. Returns True when an evaluation was fired."""
        if not self._timer.isActive():
            return False
        self._timer.stop()
        self.fired.emit()
        return True
