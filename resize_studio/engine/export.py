"""One-shot export of the final image.

Exports are user initiated, never debounced, and independent of the preview
generation scheme; two exports may run at the same time.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from PySide6.QtCore import QObject, Signal

from resize_studio.engine.client import PendingReply, ProcessClient
from resize_studio.engine.errors import ExportError, ProcessError, ValidationError
from resize_studio.engine.form_fields import export_fields
from resize_studio.engine.metrics import metrics
from resize_studio.engine.params import TransformParameters
from resize_studio.engine.source import SourceImage
from resize_studio.logger import get_logger

_logger = get_logger("export")

ARTIFACT_STEM = "processed-image"


def extension_for(fmt: str) -> str:
    """File extension for an output format (the format name itself, e.g. jpeg, pdf)."""
    return fmt


@dataclass(frozen=True, slots=True)
class Artifact:
    data: bytes
    format: str
    elapsed_ms: int = 0

    @property
    def extension(self) -> str:
        return extension_for(self.format)

    @property
    def filename(self) -> str:
        return f"{ARTIFACT_STEM}.{self.extension}"

    @property
    def byte_size(self) -> int:
        return len(self.data)

    @property
    def size_kb(self) -> int:
        return round(self.byte_size / 1024)

    def save(self, directory: str | Path) -> Path:
        out_dir = Path(directory)
        out_dir.mkdir(parents=True, exist_ok=True)
        path = out_dir / self.filename
        path.write_bytes(self.data)
        return path


class ExportJob(QObject):
    finished = Signal(object)  # Artifact
    failed = Signal(object)  # ExportError

    def __init__(self, reply: PendingReply, params: TransformParameters, source: SourceImage) -> None:
        super().__init__()
        self._reply = reply
        self._format = params.format
        self._attempted_bytes = source.byte_size
        self._result: Artifact | ExportError | None = None
        reply.succeeded.connect(self._on_succeeded)
        reply.failed.connect(self._on_failed)
        reply.cancelled.connect(self._on_cancelled)

    @property
    def done(self) -> bool:
        return self._result is not None

    @property
    def result(self) -> Artifact | ExportError | None:
        return self._result

    def abort(self) -> None:
        self._reply.abort()

    def _on_succeeded(self, data: bytes) -> None:
        self._reply.deleteLater()
        elapsed = self._reply.elapsed_ms
        metrics.record("export.duration", elapsed / 1000.0)
        artifact = Artifact(bytes(data), self._format, elapsed)
        self._result = artifact
        _logger.info("export processed in %d ms: %s (%d KB)", elapsed, artifact.filename, artifact.size_kb)
        self.finished.emit(artifact)

    def _on_failed(self, err: ProcessError) -> None:
        self._reply.deleteLater()
        metrics.inc("export.failed")
        error = ExportError.from_process_error(err, byte_size=self._attempted_bytes)
        self._result = error
        _logger.error("export failed: %s", error.diagnostics())
        self.failed.emit(error)

    def _on_cancelled(self) -> None:
        # Only an explicit abort() of this job gets here.
        self._reply.deleteLater()
        error = ExportError("export cancelled", elapsed_ms=self._reply.elapsed_ms, byte_size=self._attempted_bytes)
        self._result = error
        _logger.info("export cancelled after %d ms", error.elapsed_ms)
        self.failed.emit(error)


class ExportOrchestrator(QObject):
    def __init__(self, client: ProcessClient, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._client = client

    def export_image(self, params: TransformParameters | None, source: SourceImage | None) -> ExportJob:
        if source is None or params is None:
            raise ValidationError("Please upload an image first")
        if not params.has_valid_dimensions:
            raise ValidationError("width and height must be positive")

        fields = export_fields(params)
        _logger.info("starting export: format=%s fields=%s", params.format, [name for name, _ in fields])
        metrics.inc("export.started")
        reply = self._client.post(fields, source)
        return ExportJob(reply, params, source)
