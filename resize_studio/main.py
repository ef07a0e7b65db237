from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any

from PySide6.QtCore import QCoreApplication, QEventLoop, SignalInstance

from resize_studio.app.session import EditingSession
from resize_studio.engine.client import ProcessClient
from resize_studio.engine.errors import ExportError, ProcessError, ValidationError
from resize_studio.engine.export import Artifact
from resize_studio.engine.params import CropRegion, PreviewState
from resize_studio.engine.source import SourceImage
from resize_studio.logger import apply_cli_logging_options, get_logger
from resize_studio.settings_manager import SettingsManager, default_settings_path

logger = get_logger("cli")

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2

# argparse dest -> parameter name
_PARAM_OPTIONS = {
    "unit": "unit",
    "width": "width",
    "height": "height",
    "mode": "mode",
    "format": "format",
    "quality": "quality",
    "background": "background_color",
    "max_size_kb": "max_size_kb",
    "resolution_mode": "resolution_mode",
    "dpi": "dpi",
}


def _add_param_options(p: argparse.ArgumentParser) -> None:
    p.add_argument("image", help="Source image (JPEG, PNG, WEBP or GIF, up to 4 MB)")
    p.add_argument("--width", type=float)
    p.add_argument("--height", type=float)
    p.add_argument("--unit", choices=["px", "in", "cm", "mm"])
    p.add_argument("--mode", choices=["stretch", "blur", "color"])
    p.add_argument("--format", choices=["jpeg", "jpg", "png", "webp", "pdf"])
    p.add_argument("--quality", type=int)
    p.add_argument("--background", help="Fill color for --mode color, e.g. #FFFFFF")
    p.add_argument("--max-size-kb", type=int, help="Target size budget; quality is chosen by the service")
    p.add_argument("--resolution-mode", choices=["auto", "fixed"])
    p.add_argument("--dpi", type=int)
    p.add_argument("--api-url", help="Processing service base URL (overrides settings)")
    p.add_argument("--settings", help="Settings JSON path")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="resize-studio", description="Resize and convert images remotely")
    sub = parser.add_subparsers(dest="command", required=True)

    preview = sub.add_parser("preview", help="Render a single preview image")
    _add_param_options(preview)
    preview.add_argument("--out", help="Output file (default: preview.<format>)")

    export = sub.add_parser("export", help="Export the final image")
    _add_param_options(export)
    export.add_argument("--crop", help="Crop region in percent: x,y,width,height")
    export.add_argument("--rotate", type=int, default=0, help="Rotation in degrees (multiple of 90)")
    export.add_argument("--out-dir", help="Directory for the exported file")
    return parser


def _parse_crop(text: str | None) -> CropRegion | None:
    if not text:
        return None
    parts = [p.strip() for p in text.split(",")]
    if len(parts) != 4:
        raise ValidationError(f"--crop expects x,y,width,height (got {text!r})")
    return CropRegion.from_value(parts)


def _param_changes(args: argparse.Namespace) -> dict[str, Any]:
    changes: dict[str, Any] = {}
    for dest, name in _PARAM_OPTIONS.items():
        value = getattr(args, dest, None)
        if value is not None:
            changes[name] = value
    return changes


def _wait_for(*signals: SignalInstance) -> tuple[Any, ...]:
    """Run a local event loop until one of the signals fires; return its arguments."""
    loop = QEventLoop()
    received: list[tuple[Any, ...]] = []

    def _done(*values: Any) -> None:
        received.append(values)
        loop.quit()

    for sig in signals:
        sig.connect(_done)
    loop.exec()
    return received[0] if received else ()


def _run_preview(session: EditingSession, args: argparse.Namespace) -> int:
    # Evaluate now instead of waiting out the debounce window.
    session.flush()
    if not session.preview_pipeline.in_flight:
        logger.error("no preview request was issued; check width/height")
        return EXIT_USAGE
    (result,) = _wait_for(session.previewChanged, session.previewFailed)
    if isinstance(result, ProcessError):
        logger.error("preview failed: %s", result)
        return EXIT_FAILED
    if not isinstance(result, PreviewState):
        logger.error("preview ended without a result")
        return EXIT_FAILED
    params = session.params
    fmt = params.preview_format if params else "jpeg"
    out = Path(args.out or f"preview.{fmt}")
    out.write_bytes(result.handle.data if result.handle else b"")
    logger.info("preview written: %s (%.1f KB)", out, result.size_kb)
    return EXIT_OK


def _run_export(session: EditingSession, args: argparse.Namespace, settings: SettingsManager) -> int:
    crop = _parse_crop(args.crop)
    if crop is not None:
        session.set_crop(crop)
    if args.rotate:
        session.update_parameter("rotation", args.rotate)
    session.cancel_evaluation()
    job = session.request_export()
    result = job.result if job.done else _wait_for(job.finished, job.failed)[0]
    if isinstance(result, ExportError):
        logger.error("download failed: %s", result.diagnostics())
        return EXIT_FAILED
    if not isinstance(result, Artifact):
        logger.error("export ended without a result")
        return EXIT_FAILED
    out_dir = args.out_dir or settings.export_dir or "."
    path = result.save(out_dir)
    logger.info("download complete: %s (%d KB)", path, result.size_kb)
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    argv = apply_cli_logging_options(list(sys.argv[1:] if argv is None else argv))
    args = build_parser().parse_args(argv)

    app = QCoreApplication.instance() or QCoreApplication([sys.argv[0]])  # noqa: F841
    settings = SettingsManager(args.settings or default_settings_path())
    client = ProcessClient(args.api_url) if args.api_url else None
    session = EditingSession.from_settings(settings, client)

    try:
        session.set_source_image(SourceImage.from_file(args.image))
        session.update_parameters(**_param_changes(args))
        if args.command == "preview":
            return _run_preview(session, args)
        return _run_export(session, args, settings)
    except ValidationError as e:
        logger.error("%s", e)
        return EXIT_USAGE
    finally:
        session.shutdown()


if __name__ == "__main__":
    raise SystemExit(main())
