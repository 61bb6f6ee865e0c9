"""Typed failures raised by the voice client."""

from __future__ import annotations


class ApiError(RuntimeError):
    """Base class for failures talking to the proxy."""

    kind = "api"


class NetworkError(ApiError):
    """The proxy could not be reached."""

    kind = "network"


class RequestTimeoutError(NetworkError):
    """The request exceeded its time budget and was aborted."""

    kind = "timeout"


class HttpStatusError(ApiError):
    """The proxy answered with a non-2xx status."""

    kind = "http"

    def __init__(self, status_code: int, message: str, details: str | None = None) -> None:
        self.status_code = status_code
        self.message = message
        self.details = details
        super().__init__(f"{message} ({status_code})" if not details else f"{message} ({status_code}): {details}")

    @property
    def rate_limited(self) -> bool:
        return self.status_code == 429


class ResponseFormatError(ApiError):
    """The proxy answered 2xx with a body that does not match the contract."""

    kind = "format"


class MicrophonePermissionError(RuntimeError):
    """Microphone access was denied or no input device is available."""

    kind = "permission"


class EmptyTranscriptError(ApiError):
    """Transcription succeeded but recognized no speech."""

    kind = "empty"
