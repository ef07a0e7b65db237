from __future__ import annotations

from conftest import FakeClient

from resize_studio.engine.metrics import metrics
from resize_studio.engine.params import CropRegion, PreviewState, TransformParameters
from resize_studio.engine.preview import PreviewPipeline


def _params(**kw) -> TransformParameters:
    return TransformParameters().with_fields(**kw)


def test_success_replaces_preview_and_releases_previous(fake_client, source_image) -> None:
    pipeline = PreviewPipeline(fake_client)
    ready: list[PreviewState] = []
    pipeline.preview_ready.connect(ready.append)

    pipeline.request_preview(_params(width=1000, height=500), source_image)
    fake_client.last.resolve(b"first")
    first = pipeline.current
    assert first.handle is not None
    assert first.byte_size == len(b"first")

    pipeline.request_preview(_params(width=800, height=400), source_image)
    fake_client.last.resolve(b"second-render")

    assert pipeline.current.handle is not None
    assert pipeline.current.handle.data == b"second-render"
    assert pipeline.current.byte_size == len(b"second-render")
    assert first.handle.released
    assert [s.generation for s in ready] == [1, 2]


def test_new_request_aborts_the_outstanding_one(fake_client, source_image) -> None:
    pipeline = PreviewPipeline(fake_client)
    failures: list[object] = []
    pipeline.preview_failed.connect(failures.append)

    pipeline.request_preview(_params(width=100), source_image)
    first = fake_client.last
    pipeline.request_preview(_params(width=200), source_image)

    assert first.aborted
    assert first.done
    assert pipeline.in_flight
    # Cancellation is silent.
    assert failures == []
    assert pipeline.current.handle is None
    assert metrics.counter("preview.cancelled") == 1


def test_stale_response_never_overwrites_newer_one(source_image) -> None:
    # Transport ignores abort: both responses arrive, older one last.
    client = FakeClient(honor_abort=False)
    pipeline = PreviewPipeline(client)

    gen_a = pipeline.request_preview(_params(width=100), source_image)
    reply_a = client.last
    gen_b = pipeline.request_preview(_params(width=200), source_image)
    reply_b = client.last
    assert reply_a.abort_requested
    assert (gen_a, gen_b) == (1, 2)

    reply_b.resolve(b"B")
    reply_a.resolve(b"A")

    assert pipeline.current.handle is not None
    assert pipeline.current.handle.data == b"B"
    assert pipeline.current.generation == gen_b
    assert metrics.counter("preview.stale_dropped") == 1


def test_stale_failure_is_ignored(source_image) -> None:
    client = FakeClient(honor_abort=False)
    pipeline = PreviewPipeline(client)
    failures: list[object] = []
    pipeline.preview_failed.connect(failures.append)

    pipeline.request_preview(_params(width=100), source_image)
    reply_a = client.last
    pipeline.request_preview(_params(width=200), source_image)
    reply_a.reject({"error": "boom"})

    assert failures == []
    assert pipeline.in_flight


def test_failure_keeps_last_good_preview(fake_client, source_image) -> None:
    pipeline = PreviewPipeline(fake_client)
    failures: list[object] = []
    pipeline.preview_failed.connect(failures.append)

    pipeline.request_preview(_params(width=100), source_image)
    fake_client.last.resolve(b"good")
    good = pipeline.current

    pipeline.request_preview(_params(width=300), source_image)
    fake_client.last.reject({"error": "Image too large"}, status=413)

    assert pipeline.current is good
    assert good.handle is not None and not good.handle.released
    assert len(failures) == 1
    assert failures[0].message == "Image too large"
    assert failures[0].status == 413
    assert not pipeline.busy


def test_invalid_dimensions_do_not_issue(fake_client, source_image) -> None:
    pipeline = PreviewPipeline(fake_client)
    pipeline.request_preview(_params(width=100), source_image)
    fake_client.last.resolve(b"kept")
    kept = pipeline.current

    assert pipeline.request_preview(_params(width=""), source_image) is None
    assert pipeline.request_preview(_params(height=0), source_image) is None
    assert pipeline.request_preview(_params(width=100), None) is None
    assert len(fake_client.replies) == 1
    assert pipeline.current is kept
    assert metrics.counter("preview.skipped_invalid") == 3


def test_preview_request_body(fake_client, source_image) -> None:
    pipeline = PreviewPipeline(fake_client)
    params = _params(width=1000, height=500, format="pdf", crop=CropRegion(5, 5, 20, 20), rotation=90)
    pipeline.request_preview(params, source_image)
    form = fake_client.forms()[0]
    assert form["format"] == "jpeg"
    assert form["isPreview"] == "true"
    assert "crop" not in form and "rotate" not in form
    assert fake_client.last.source is source_image


def test_busy_flag_follows_request_lifecycle(fake_client, source_image) -> None:
    pipeline = PreviewPipeline(fake_client)
    states: list[bool] = []
    pipeline.busy_changed.connect(states.append)

    pipeline.request_preview(_params(width=100), source_image)
    pipeline.request_preview(_params(width=200), source_image)
    fake_client.last.resolve(b"x")

    assert states == [True, False]


def test_clear_aborts_and_releases(source_image) -> None:
    client = FakeClient(honor_abort=False)
    pipeline = PreviewPipeline(client)
    pipeline.request_preview(_params(width=100), source_image)
    client.last.resolve(b"shown")
    shown = pipeline.current.handle

    pipeline.request_preview(_params(width=200), source_image)
    late = client.last
    pipeline.clear()

    assert shown is not None and shown.released
    assert pipeline.current.handle is None
    late.resolve(b"late")
    assert pipeline.current.handle is None
