"""Preview synchronization engine.

This package owns everything between a parameter edit and a rendered image:
- Unit conversion (units)
- Transform parameters and preview handles (params)
- Change classification and debouncing (classifier, debounce)
- Remote processing client (client, form_fields)
- Preview and export pipelines (preview, export)

Usage:
    from resize_studio.engine import PreviewPipeline, ProcessClient

    client = ProcessClient("http://localhost:5000/api")
    pipeline = PreviewPipeline(client)
    pipeline.preview_ready.connect(on_preview)
    pipeline.request_preview(params, source)
"""

from .client import PendingReply, ProcessClient, parse_error_payload
from .errors import ExportError, ProcessError, ResizeStudioError, ValidationError
from .export import Artifact, ExportJob, ExportOrchestrator
from .params import CropRegion, PreviewHandle, PreviewState, TransformParameters, normalize_rotation
from .preview import PreviewPipeline
from .source import SourceImage

__all__ = [
    "Artifact",
    "CropRegion",
    "ExportError",
    "ExportJob",
    "ExportOrchestrator",
    "PendingReply",
    "PreviewHandle",
    "PreviewPipeline",
    "PreviewState",
    "ProcessClient",
    "ProcessError",
    "ResizeStudioError",
    "SourceImage",
    "TransformParameters",
    "ValidationError",
    "normalize_rotation",
    "parse_error_payload",
]
