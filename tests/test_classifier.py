from __future__ import annotations

from resize_studio.engine.classifier import ChangeClassifier, classify, preview_snapshot
from resize_studio.engine.params import CropRegion, TransformParameters


def test_snapshot_has_exactly_the_preview_fields() -> None:
    snap = preview_snapshot(TransformParameters(crop=CropRegion(1, 1, 5, 5), rotation=90))
    assert set(snap) == {
        "width",
        "height",
        "unit",
        "mode",
        "format",
        "quality",
        "backgroundColor",
        "maxSizeKB",
        "resolutionMode",
        "dpi",
    }


def test_first_evaluation_is_relevant() -> None:
    assert classify(None, preview_snapshot(TransformParameters())).relevant


def test_crop_and_rotation_are_not_relevant() -> None:
    base = TransformParameters()
    prev = preview_snapshot(base)
    assert not classify(prev, preview_snapshot(base.with_field("crop", (10, 10, 50, 50)))).relevant
    assert not classify(prev, preview_snapshot(base.with_field("rotation", -90))).relevant


def test_relevant_field_changes() -> None:
    base = TransformParameters()
    prev = preview_snapshot(base)
    assert classify(prev, preview_snapshot(base.with_field("width", 1000))).relevant
    assert classify(prev, preview_snapshot(base.with_field("max_size_kb", 100))).relevant
    assert classify(prev, preview_snapshot(base.with_field("dpi", 150))).relevant


def test_pdf_and_jpeg_share_a_preview_snapshot() -> None:
    jpeg = TransformParameters(format="jpeg")
    pdf = TransformParameters(format="pdf")
    assert not classify(preview_snapshot(jpeg), preview_snapshot(pdf)).relevant


def test_change_classifier_tracks_applied_snapshot() -> None:
    clf = ChangeClassifier()
    params = TransformParameters()
    assert clf.evaluate(params).relevant

    clf.mark_applied(params)
    assert not clf.evaluate(params).relevant
    assert not clf.evaluate(params.with_field("rotation", 180)).relevant
    assert clf.evaluate(params.with_field("quality", 80)).relevant

    clf.reset()
    assert clf.applied is None
    assert clf.evaluate(params).relevant


def test_integral_float_dimensions_match_integers() -> None:
    converted = TransformParameters(width=6.0, height=3.6, unit="in")
    typed = TransformParameters(unit="in").with_fields(width="6", height="3.6")
    assert preview_snapshot(converted) == preview_snapshot(typed)
    assert not classify(preview_snapshot(converted), preview_snapshot(typed)).relevant
