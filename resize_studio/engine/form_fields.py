"""Multipart field sets for POST /process.

Preview and export share one endpoint with different fields: previews never
carry crop/rotate and never ask for PDF; exports carry the real format plus
crop/rotate when they change the image.
"""

from __future__ import annotations

from resize_studio.engine.params import TransformParameters

FormFields = list[tuple[str, str]]


def _num(value: float | int | None) -> str:
    if value is None:
        return "0"
    v = float(value)
    return str(int(v)) if v.is_integer() else str(v)


def _common_fields(params: TransformParameters) -> FormFields:
    out: FormFields = [
        ("width", _num(params.width)),
        ("height", _num(params.height)),
        ("unit", params.unit or "px"),
        ("mode", params.mode or "stretch"),
    ]
    return out


def _tail_fields(params: TransformParameters, fmt: str) -> FormFields:
    out: FormFields = [
        ("format", fmt),
        ("quality", str(int(params.quality or 90))),
    ]
    if params.mode == "color" and params.background_color:
        out.append(("backgroundColor", params.background_color))
    if params.max_size_kb:
        out.append(("maxSizeKB", str(int(params.max_size_kb))))
    if params.resolution_mode:
        out.append(("resolutionMode", params.resolution_mode))
    if params.dpi:
        out.append(("dpi", str(int(params.dpi))))
    return out


def preview_fields(params: TransformParameters) -> FormFields:
    fmt = params.preview_format
    return [*_common_fields(params), ("isPreview", "true"), *_tail_fields(params, fmt)]


def export_fields(params: TransformParameters) -> FormFields:
    out = [*_common_fields(params), *_tail_fields(params, params.format)]
    if params.crop is not None and params.crop.is_effective:
        out.append(("crop", params.crop.to_json()))
    rotation = params.normalized_rotation
    if rotation:
        out.append(("rotate", str(rotation)))
    return out
