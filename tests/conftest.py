"""Pytest configuration.

The engine is built on Qt objects (QTimer, signals, QNetworkAccessManager).
We create a single `QApplication` for the entire session as early as possible
and cleanly shut it down at the end.

The processing service is replaced by `FakeClient`, whose replies stay pending
until a test resolves, rejects, or aborts them.
"""

from __future__ import annotations

import json
import os
from typing import Any

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

_APP: Any | None = None


def pytest_configure(config) -> None:  # noqa: ARG001
    """Ensure a QApplication exists before collecting/running tests."""

    from PySide6.QtWidgets import QApplication

    global _APP

    app = QApplication.instance()
    # Keep a strong ref so it isn't GC'd mid-session.
    _APP = app if app is not None else QApplication([])


def pytest_sessionfinish(session, exitstatus) -> None:  # noqa: ARG001
    """Attempt a clean Qt shutdown to avoid lingering threads at interpreter exit."""

    from PySide6.QtWidgets import QApplication

    app = QApplication.instance()
    if app is None:
        return
    app.quit()
    app.processEvents()


from PySide6.QtCore import QObject, QTimer  # noqa: E402

from resize_studio.engine.client import PendingReply  # noqa: E402
from resize_studio.engine.errors import ProcessError  # noqa: E402
from resize_studio.engine.metrics import metrics  # noqa: E402
from resize_studio.engine.source import SourceImage  # noqa: E402


class FakeReply(PendingReply):
    def __init__(self, fields: list[tuple[str, str]], source: SourceImage, *, honor_abort: bool = True) -> None:
        super().__init__()
        self.fields = fields
        self.source = source
        self.honor_abort = honor_abort
        self.abort_requested = False
        self.delete_requested = False

    @property
    def form(self) -> dict[str, str]:
        return dict(self.fields)

    def deleteLater(self) -> None:  # noqa: N802
        self.delete_requested = True
        super().deleteLater()

    def abort(self) -> None:
        self.abort_requested = True
        if self.honor_abort:
            super().abort()

    def resolve(self, data: bytes = b"\xff\xd8preview") -> None:
        self._finish_success(data)

    def reject(self, payload: Any = None, *, status: int = 500) -> None:
        if isinstance(payload, dict):
            message = payload.get("error") or json.dumps(payload)
        else:
            message = str(payload or "Internal Server Error")
        self._finish_failure(ProcessError(message, status=status, elapsed_ms=self.elapsed_ms))


class FakeClient(QObject):
    """Records posted forms; replies resolve only when the test says so.

    With ``auto_resolve`` set, each reply succeeds with that payload on the next
    event-loop turn.
    """

    def __init__(self, *, honor_abort: bool = True, auto_resolve: bytes | None = None) -> None:
        super().__init__()
        self.honor_abort = honor_abort
        self.auto_resolve = auto_resolve
        self.replies: list[FakeReply] = []
        self.posted: list[dict[str, str]] = []

    def post(self, fields: list[tuple[str, str]], source: SourceImage) -> FakeReply:
        reply = FakeReply(list(fields), source, honor_abort=self.honor_abort)
        self.replies.append(reply)
        self.posted.append(dict(fields))
        if self.auto_resolve is not None:
            payload = self.auto_resolve
            QTimer.singleShot(0, lambda: reply.resolve(payload))
        return reply

    @property
    def last(self) -> FakeReply:
        return self.replies[-1]

    def forms(self) -> list[dict[str, str]]:
        return list(self.posted)


@pytest.fixture
def fake_client() -> FakeClient:
    return FakeClient()


@pytest.fixture
def source_image() -> SourceImage:
    return SourceImage.from_bytes(b"\x89PNG fake image bytes", "photo.png", dimensions=(2000, 1000))


@pytest.fixture(autouse=True)
def _reset_metrics():
    metrics.reset()
    yield
    metrics.reset()
