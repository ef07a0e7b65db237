"""HTTP client for the remote processing endpoint (POST {base_url}/process).

Replies are QObjects with three terminal signals; exactly one of
``succeeded``, ``failed`` or ``cancelled`` is emitted per reply.
"""

from __future__ import annotations

import json

from PySide6.QtCore import QByteArray, QElapsedTimer, QObject, QUrl, Signal
from PySide6.QtNetwork import QHttpMultiPart, QHttpPart, QNetworkAccessManager, QNetworkReply, QNetworkRequest

from resize_studio.engine.errors import ProcessError
from resize_studio.engine.form_fields import FormFields
from resize_studio.engine.source import SourceImage
from resize_studio.logger import get_logger

_logger = get_logger("client")

HTTP_ERROR_MIN = 400


def parse_error_payload(data: bytes, fallback: str = "") -> str:
    """Extract a human readable message from an error body.

    JSON bodies yield their ``error``/``message``/``detail`` field (or the raw
    JSON text); anything else is surfaced as plain text.
    """
    text = bytes(data or b"").decode("utf-8", errors="replace").strip()
    if not text:
        return fallback or "request failed"
    try:
        payload = json.loads(text)
    except ValueError:
        _logger.debug("error payload (text): %s", text)
        return text
    _logger.debug("error payload (json): %s", payload)
    if isinstance(payload, dict):
        for key in ("error", "message", "detail"):
            value = payload.get(key)
            if isinstance(value, str) and value:
                return value
    return text


class PendingReply(QObject):
    """An outstanding /process call."""

    succeeded = Signal(object)  # bytes
    failed = Signal(object)  # ProcessError
    cancelled = Signal()

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._clock = QElapsedTimer()
        self._clock.start()
        self._done = False
        self._aborted = False

    @property
    def done(self) -> bool:
        return self._done

    @property
    def aborted(self) -> bool:
        return self._aborted

    @property
    def elapsed_ms(self) -> int:
        return int(self._clock.elapsed())

    def abort(self) -> None:
        if self._done or self._aborted:
            return
        self._aborted = True
        self._abort_transport()
        if not self._done:
            self._finish_cancelled()

    def _abort_transport(self) -> None:
        """Stop the underlying transfer; subclasses override."""

    def _finish_success(self, data: bytes) -> None:
        if self._done:
            return
        self._done = True
        self.succeeded.emit(bytes(data))

    def _finish_failure(self, error: ProcessError) -> None:
        if self._done:
            return
        self._done = True
        self.failed.emit(error)

    def _finish_cancelled(self) -> None:
        if self._done:
            return
        self._done = True
        self.cancelled.emit()


class ProcessReply(PendingReply):
    """PendingReply backed by a QNetworkReply."""

    def __init__(self, reply: QNetworkReply, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._reply: QNetworkReply | None = reply
        reply.finished.connect(self._on_finished)

    def _abort_transport(self) -> None:
        if self._reply is not None:
            # QNetworkReply.abort() emits finished synchronously.
            self._reply.abort()

    def _on_finished(self) -> None:
        reply = self._reply
        if reply is None:
            return
        self._reply = None
        try:
            err = reply.error()
            if self._aborted or err == QNetworkReply.NetworkError.OperationCanceledError:
                self._finish_cancelled()
                return
            status = reply.attribute(QNetworkRequest.Attribute.HttpStatusCodeAttribute)
            status = int(status) if status is not None else None
            data = bytes(reply.readAll().data())
            if err != QNetworkReply.NetworkError.NoError or (status is not None and status >= HTTP_ERROR_MIN):
                message = parse_error_payload(data, reply.errorString())
                self._finish_failure(
                    ProcessError(message, status=status, elapsed_ms=self.elapsed_ms, byte_size=len(data))
                )
                return
            self._finish_success(data)
        finally:
            reply.deleteLater()


class ProcessClient(QObject):
    """Posts multipart form bodies to ``{base_url}/process``."""

    def __init__(
        self,
        base_url: str,
        manager: QNetworkAccessManager | None = None,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._base_url = base_url.rstrip("/")
        self._manager = manager or QNetworkAccessManager(self)

    @property
    def endpoint(self) -> str:
        return f"{self._base_url}/process"

    def post(self, fields: FormFields, source: SourceImage) -> PendingReply:
        multi = QHttpMultiPart(QHttpMultiPart.ContentType.FormDataType)

        image_part = QHttpPart()
        image_part.setHeader(
            QNetworkRequest.KnownHeaders.ContentDispositionHeader,
            f'form-data; name="image"; filename="{source.name}"',
        )
        image_part.setHeader(QNetworkRequest.KnownHeaders.ContentTypeHeader, source.mime_type)
        image_part.setBody(QByteArray(source.data))
        multi.append(image_part)

        for name, value in fields:
            part = QHttpPart()
            part.setHeader(QNetworkRequest.KnownHeaders.ContentDispositionHeader, f'form-data; name="{name}"')
            part.setBody(QByteArray(str(value).encode("utf-8")))
            multi.append(part)

        request = QNetworkRequest(QUrl(self.endpoint))
        reply = self._manager.post(request, multi)
        multi.setParent(reply)
        _logger.debug("POST %s fields=%s image=%s (%d bytes)", self.endpoint, fields, source.name, source.byte_size)
        return ProcessReply(reply, parent=self)
