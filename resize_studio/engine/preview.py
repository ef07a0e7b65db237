"""Live preview fetching with single-flight cancellation.

At most one preview request is outstanding. Issuing a new one aborts the
previous one first, and every request is tagged with a generation token:
a reply is applied only while its generation is still the expected one, so
an older render can never replace a newer one regardless of arrival order.
"""

from __future__ import annotations

from functools import partial

from PySide6.QtCore import QObject, Signal

from resize_studio.engine.client import PendingReply, ProcessClient
from resize_studio.engine.errors import ProcessError
from resize_studio.engine.form_fields import preview_fields
from resize_studio.engine.metrics import metrics
from resize_studio.engine.params import PreviewHandle, PreviewState, TransformParameters
from resize_studio.engine.source import SourceImage
from resize_studio.logger import get_logger

_logger = get_logger("preview")


class PreviewPipeline(QObject):
    preview_ready = Signal(object)  # PreviewState
    preview_failed = Signal(object)  # ProcessError
    busy_changed = Signal(bool)

    def __init__(self, client: ProcessClient, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._client = client
        self._generation = 0
        self._inflight: PendingReply | None = None
        self._state = PreviewState()
        self._busy = False

    # ---- read-only state ---------------------------------------------
    @property
    def current(self) -> PreviewState:
        return self._state

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def in_flight(self) -> bool:
        return self._inflight is not None

    @property
    def busy(self) -> bool:
        return self._busy

    # ---- commands ----------------------------------------------------
    def request_preview(self, params: TransformParameters, source: SourceImage | None) -> int | None:
        """Issue a preview render; returns its generation, or None if nothing was sent."""
        if source is None or not params.has_valid_dimensions:
            metrics.inc("preview.skipped_invalid")
            _logger.debug("preview skipped: source=%s size=%sx%s", source is not None, params.width, params.height)
            return None

        self._abort_inflight()
        self._generation += 1
        gen = self._generation

        reply = self._client.post(preview_fields(params), source)
        self._inflight = reply
        reply.succeeded.connect(partial(self._on_succeeded, gen, reply))
        reply.failed.connect(partial(self._on_failed, gen, reply))
        reply.cancelled.connect(partial(self._on_cancelled, gen, reply))

        metrics.inc("preview.issued")
        _logger.debug(
            "preview issued: gen=%d %sx%s %s fmt=%s q=%s budget=%s",
            gen,
            params.width,
            params.height,
            params.unit,
            params.preview_format,
            params.quality,
            params.max_size_kb,
        )
        self._set_busy(True)
        return gen

    def clear(self) -> None:
        """Abort work and release the displayed preview (source removed/replaced)."""
        self._abort_inflight()
        # Anything still on the wire is stale from here on.
        self._generation += 1
        previous = self._state.handle
        self._state = PreviewState()
        if previous is not None:
            previous.release()
        self._set_busy(False)

    # ---- internals ---------------------------------------------------
    def _abort_inflight(self) -> None:
        reply = self._inflight
        if reply is None:
            return
        self._inflight = None
        reply.abort()

    def _set_busy(self, busy: bool) -> None:
        if busy == self._busy:
            return
        self._busy = busy
        self.busy_changed.emit(busy)

    def _is_current(self, gen: int) -> bool:
        return gen == self._generation

    def _on_succeeded(self, gen: int, reply: PendingReply, data: bytes) -> None:
        reply.deleteLater()
        if not self._is_current(gen):
            metrics.inc("preview.stale_dropped")
            _logger.debug("preview stale: gen=%d expected=%d (dropped)", gen, self._generation)
            return
        self._inflight = None
        metrics.record("preview.roundtrip", reply.elapsed_ms / 1000.0)

        previous = self._state.handle
        self._state = PreviewState(PreviewHandle(data), len(data), gen)
        if previous is not None:
            previous.release()
        _logger.debug("preview applied: gen=%d bytes=%d in %d ms", gen, len(data), reply.elapsed_ms)
        self._set_busy(False)
        self.preview_ready.emit(self._state)

    def _on_failed(self, gen: int, reply: PendingReply, err: ProcessError) -> None:
        reply.deleteLater()
        if not self._is_current(gen):
            metrics.inc("preview.stale_dropped")
            return
        self._inflight = None
        metrics.inc("preview.failed")
        _logger.warning("preview update failed: %s", err)
        self._set_busy(False)
        self.preview_failed.emit(err)

    def _on_cancelled(self, gen: int, reply: PendingReply) -> None:
        reply.deleteLater()
        metrics.inc("preview.cancelled")
        _logger.debug("preview cancelled: gen=%d", gen)
