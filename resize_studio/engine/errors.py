from __future__ import annotations


class ResizeStudioError(Exception):
    """Base class for recoverable errors raised by the engine."""


class ValidationError(ResizeStudioError):
    """Local precondition failed before any network call was attempted."""


class ProcessError(ResizeStudioError):
    """The processing service could not be reached or rejected the request."""

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        elapsed_ms: int = 0,
        byte_size: int = 0,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.elapsed_ms = int(elapsed_ms)
        self.byte_size = int(byte_size)

    def __str__(self) -> str:
        if self.status:
            return f"{self.message} (HTTP {self.status})"
        return self.message


class ExportError(ProcessError):
    """Export failed; carries the attempted upload size and elapsed time."""

    @classmethod
    def from_process_error(cls, err: ProcessError, *, byte_size: int) -> ExportError:
        return cls(err.message, status=err.status, elapsed_ms=err.elapsed_ms, byte_size=byte_size)

    def diagnostics(self) -> str:
        return f"{self} after {self.elapsed_ms} ms, {round(self.byte_size / 1024)} KB sent"
