"""HTTP client used to talk to the voice chat proxy."""

from __future__ import annotations

import asyncio
from typing import Any, Iterable

import httpx

from ..config.settings import DEFAULT_BACKEND_URL, AppSettings
from ..state.rate_limits import RateLimitTracker
from .errors import HttpStatusError, NetworkError, RequestTimeoutError, ResponseFormatError
from .schemas import ChatMessage, HealthStatus

HEALTH_TIMEOUT_SEC = 5.0
REQUEST_TIMEOUT_SEC = 30.0


class VoiceChatAPI:
    """Async client for the proxy's /api/* endpoints."""

    def __init__(
        self,
        base_url: str = DEFAULT_BACKEND_URL,
        *,
        tracker: RateLimitTracker | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.tracker = tracker
        self._client = httpx.AsyncClient(transport=transport)

    @classmethod
    def from_settings(cls, settings: AppSettings, **kwargs: Any) -> "VoiceChatAPI":
        return cls(settings.resolved_backend_url(), **kwargs)

    def set_base_url(self, base_url: str) -> None:
        self.base_url = base_url.rstrip("/")

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    async def health(self) -> HealthStatus:
        """Probe /api/health. Any failure counts as unreachable."""
        try:
            response = await asyncio.wait_for(
                self._client.get(self._url("/api/health"), timeout=HEALTH_TIMEOUT_SEC),
                HEALTH_TIMEOUT_SEC,
            )
        except (httpx.HTTPError, asyncio.TimeoutError):
            return HealthStatus.unreachable()
        if response.status_code != 200:
            return HealthStatus.unreachable()
        try:
            payload = response.json()
        except ValueError:
            return HealthStatus.unreachable()
        return HealthStatus.from_payload(payload)

    async def transcribe(self, audio_b64: str) -> str:
        """Send base64 audio and return the recognized text."""
        data = await self._post("/api/transcribe", {"audio": audio_b64}, endpoint="transcribe")
        text = data.get("text")
        if not isinstance(text, str):
            raise ResponseFormatError("Transcription response has no text field")
        return text

    async def chat(self, messages: Iterable[ChatMessage], persona: str) -> str:
        """Send the conversation history and return the assistant's reply."""
        payload = {"messages": [m.to_payload() for m in messages], "persona": persona}
        data = await self._post("/api/chat", payload, endpoint="chat")
        message = data.get("message")
        if not isinstance(message, str):
            raise ResponseFormatError("Chat response has no message field")
        return message

    async def _post(self, path: str, payload: dict[str, Any], *, endpoint: str) -> dict[str, Any]:
        try:
            # httpx bounds each phase; wait_for bounds the whole exchange.
            response = await asyncio.wait_for(
                self._client.post(self._url(path), json=payload, timeout=REQUEST_TIMEOUT_SEC),
                REQUEST_TIMEOUT_SEC,
            )
        except (httpx.TimeoutException, asyncio.TimeoutError) as exc:
            raise RequestTimeoutError(f"Request to {path} timed out after {REQUEST_TIMEOUT_SEC:g}s") from exc
        except httpx.RequestError as exc:
            raise NetworkError(f"Could not reach the server: {exc}") from exc

        if self.tracker is not None:
            self.tracker.update(endpoint, response.headers)

        if not response.is_success:
            message, details = _error_fields(response)
            raise HttpStatusError(response.status_code, message, details)
        try:
            data = response.json()
        except ValueError as exc:
            raise ResponseFormatError(f"Non-JSON response from {path}: {response.text[:200]}") from exc
        if not isinstance(data, dict):
            raise ResponseFormatError(f"Unexpected response body from {path}")
        return data

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()


def _error_fields(response: httpx.Response) -> tuple[str, str | None]:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and isinstance(body.get("error"), str):
        details = body.get("details")
        return body["error"], str(details) if details is not None else None
    return response.reason_phrase or "Request failed", None
