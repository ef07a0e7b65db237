"""Editing session: one preview synchronization engine per open source image.

Data flow: a mutation updates the parameters and restarts the debounce; when
the quiescence window elapses the classifier decides whether the preview
snapshot changed, and only then the pipeline cancels any in-flight render and
issues a new one. Exports read the same parameters on explicit request.
"""

from __future__ import annotations

from dataclasses import replace
from functools import partial
from typing import Any

from PySide6.QtCore import QObject, Signal

from resize_studio.app.state.params_state import ParamsState
from resize_studio.app.state.render_state import RenderState
from resize_studio.engine.classifier import ChangeClassifier
from resize_studio.engine.client import ProcessClient
from resize_studio.engine.debounce import DEFAULT_QUIESCENCE_MS, DebounceScheduler
from resize_studio.engine.errors import ExportError, ProcessError, ValidationError
from resize_studio.engine.export import Artifact, ExportJob, ExportOrchestrator
from resize_studio.engine.params import CropRegion, PreviewState, TransformParameters
from resize_studio.engine.preview import PreviewPipeline
from resize_studio.engine.source import SourceImage
from resize_studio.engine.units import convert_dimensions
from resize_studio.logger import get_logger
from resize_studio.ops.crop_controller import clamp_crop
from resize_studio.settings_manager import SettingsManager

_logger = get_logger("session")

ROTATE_STEP = 90


class EditingSession(QObject):
    previewChanged = Signal(object)  # PreviewState
    previewFailed = Signal(object)  # ProcessError
    evaluated = Signal(bool)  # whether the fired evaluation was preview-relevant
    exportFinished = Signal(object)  # Artifact
    exportFailed = Signal(object)  # ExportError

    def __init__(
        self,
        client: ProcessClient,
        *,
        debounce_ms: int = DEFAULT_QUIESCENCE_MS,
        default_background: str = "#FFFFFF",
        adopt_source_dimensions: bool = False,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self.params_state = ParamsState(self)
        self.render = RenderState(self)

        self._source: SourceImage | None = None
        self._params: TransformParameters | None = None
        self._default_background = default_background
        self._adopt_source_dimensions = adopt_source_dimensions

        self._classifier = ChangeClassifier()
        self._debounce = DebounceScheduler(debounce_ms, self)
        self._debounce.fired.connect(self._evaluate)

        self._preview = PreviewPipeline(client, self)
        self._preview.preview_ready.connect(self._on_preview_ready)
        self._preview.preview_failed.connect(self._on_preview_failed)
        self._preview.busy_changed.connect(self.render._set_preview_busy)

        self._exporter = ExportOrchestrator(client, self)
        self._exports: set[ExportJob] = set()

    @classmethod
    def from_settings(cls, settings: SettingsManager, client: ProcessClient | None = None) -> EditingSession:
        return cls(
            client or ProcessClient(settings.api_url),
            debounce_ms=settings.debounce_ms,
            default_background=settings.determine_background_color(),
            adopt_source_dimensions=settings.adopt_source_dimensions,
        )

    # ---- read-only state ---------------------------------------------
    @property
    def source(self) -> SourceImage | None:
        return self._source

    @property
    def params(self) -> TransformParameters | None:
        return self._params

    @property
    def current_preview(self) -> PreviewState:
        return self._preview.current

    @property
    def preview_pipeline(self) -> PreviewPipeline:
        return self._preview

    @property
    def evaluation_pending(self) -> bool:
        return self._debounce.pending

    # ---- source image ------------------------------------------------
    def set_source_image(self, source: SourceImage) -> None:
        """Accept a new source; parameters start over and the next evaluation re-renders."""
        self._debounce.cancel()
        self._preview.clear()
        params = TransformParameters(background_color=self._default_background)
        if self._adopt_source_dimensions and source.natural_width > 0 and source.natural_height > 0:
            params = replace(params, width=source.natural_width, height=source.natural_height)
        self._source = source
        self._params = None
        self._classifier.reset()
        _logger.info(
            "source image: %s %dx%d (%d KB)",
            source.name,
            source.natural_width,
            source.natural_height,
            round(source.byte_size / 1024),
        )
        self.params_state._set_has_source(True)
        self.render._set_preview_size(0)
        self.render._set_preview_error("")
        self._commit(params)

    def remove_source_image(self) -> None:
        self._debounce.cancel()
        self._preview.clear()
        self._source = None
        self._params = None
        self._classifier.reset()
        self.params_state._set_params(None)
        self.params_state._set_has_source(False)
        self.render._set_preview_size(0)
        self.render._set_preview_error("")
        _logger.debug("source image removed")

    # ---- parameter mutations -----------------------------------------
    def update_parameter(self, name: str, value: Any) -> None:
        self._commit(self._require_params().with_field(name, value))

    def update_parameters(self, **changes: Any) -> None:
        self._commit(self._require_params().with_fields(**changes))

    def switch_unit(self, unit: str) -> None:
        """Change the active unit, re-expressing width/height in it."""
        params = self._require_params()
        target = params.with_field("unit", unit).unit
        if target == params.unit:
            return
        width, height = convert_dimensions(
            params.width, params.height, params.unit, target, params.resolution_mode, params.dpi
        )
        self._commit(params.with_fields(unit=target, width=width, height=height))

    def rotate_left(self) -> None:
        params = self._require_params()
        self._commit(replace(params, rotation=params.rotation - ROTATE_STEP))

    def rotate_right(self) -> None:
        params = self._require_params()
        self._commit(replace(params, rotation=params.rotation + ROTATE_STEP))

    def set_crop(self, region: CropRegion | Any | None) -> None:
        self.update_parameter("crop", region)

    def drag_crop(self, proposed: CropRegion | Any, anchor: str = "move", aspect_ratio: float = 0.0) -> None:
        """Apply an interactive crop edit, clamped to the image bounds."""
        params = self._require_params()
        region = CropRegion.from_value(proposed)
        if region is None:
            return
        self._commit(
            replace(
                params,
                crop=clamp_crop(current=params.crop, proposed=region, anchor=anchor, aspect_ratio=aspect_ratio),
            )
        )

    def cancel_evaluation(self) -> None:
        """Drop a pending evaluation without rendering (e.g. headless export)."""
        self._debounce.cancel()

    def flush(self) -> bool:
        """Run a pending evaluation now instead of waiting for the window to elapse."""
        return self._debounce.flush()

    # ---- export ------------------------------------------------------
    def request_export(self) -> ExportJob:
        job = self._exporter.export_image(self._params, self._source)
        self._exports.add(job)
        self.render._export_started()
        job.finished.connect(partial(self._on_export_finished, job))
        job.failed.connect(partial(self._on_export_failed, job))
        return job

    def shutdown(self) -> None:
        self._debounce.cancel()
        self._preview.clear()
        for job in list(self._exports):
            job.abort()
        self._exports.clear()

    # ---- internals ---------------------------------------------------
    def _require_params(self) -> TransformParameters:
        if self._params is None:
            raise ValidationError("Please upload an image first")
        return self._params

    def _commit(self, params: TransformParameters) -> None:
        if params == self._params:
            return
        self._params = params
        self.params_state._set_params(params)
        self._debounce.notify()

    def _evaluate(self) -> None:
        params = self._params
        if params is None or self._source is None:
            return
        relevant = self._classifier.evaluate(params).relevant
        self.evaluated.emit(relevant)
        if not relevant:
            _logger.debug("evaluation: no preview-relevant change")
            return
        if self._preview.request_preview(params, self._source) is not None:
            self._classifier.mark_applied(params)

    def _on_preview_ready(self, state: PreviewState) -> None:
        self.render._set_preview_size(state.byte_size)
        self.render._set_preview_error("")
        self.previewChanged.emit(state)

    def _on_preview_failed(self, err: ProcessError) -> None:
        # Let an unchanged snapshot render again on the next evaluation.
        self._classifier.reset()
        self.render._set_preview_error(str(err))
        self.previewFailed.emit(err)

    def _on_export_finished(self, job: ExportJob, artifact: Artifact) -> None:
        self._exports.discard(job)
        self.render._export_ended()
        self.exportFinished.emit(artifact)

    def _on_export_failed(self, job: ExportJob, err: ExportError) -> None:
        self._exports.discard(job)
        self.render._export_ended()
        self.exportFailed.emit(err)
