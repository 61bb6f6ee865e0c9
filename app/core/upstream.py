from __future__ import annotations

from typing import Any, Sequence

import httpx

from app.core.config import Settings, get_settings
from app.core.errors import UpstreamError
from app.core.logger import get_logger

logger = get_logger("proxy")

NO_RESPONSE_PLACEHOLDER = "No response"


def _extract_content(payload: Any) -> str:
    if not isinstance(payload, dict):
        raise UpstreamError("Chat request failed", details="Upstream returned a non-object body")
    choices = payload.get("choices") or []
    if not choices:
        return NO_RESPONSE_PLACEHOLDER
    choice = choices[0] if isinstance(choices[0], dict) else {}
    message = choice.get("message") or {}
    content = message.get("content") if isinstance(message, dict) else None
    return str(content) if content else NO_RESPONSE_PLACEHOLDER


class UpstreamClient:
    """Forwards speech and chat requests to the provider with the service credential."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        self.timeout = float(self.settings.upstream_timeout_sec)

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.settings.scaleway_api_key}",
            "Content-Type": "application/json",
        }

    async def _post(self, url: str | None, payload: dict[str, Any], *, failure: str) -> Any:
        if not url:
            raise UpstreamError(failure, details="Upstream endpoint is not configured")
        async with httpx.AsyncClient(timeout=httpx.Timeout(self.timeout)) as client:
            try:
                resp = await client.post(url, json=payload, headers=self._headers())
                resp.raise_for_status()
            except httpx.HTTPStatusError as exc:
                status = exc.response.status_code
                reason = exc.response.reason_phrase or "HTTP error"
                logger.warning("Upstream answered %s %s", status, reason, extra={"url": url})
                raise UpstreamError(
                    failure,
                    details=f"Upstream API error: {status} {reason}",
                    upstream_status=status,
                ) from exc
            except httpx.TimeoutException as exc:
                raise UpstreamError(failure, details=f"Upstream API timeout after {self.timeout:g}s") from exc
            except httpx.RequestError as exc:
                raise UpstreamError(failure, details=f"Upstream API unreachable: {exc}") from exc
            try:
                return resp.json()
            except ValueError as exc:
                raise UpstreamError(failure, details="Upstream returned malformed JSON") from exc

    async def transcribe(self, audio: str) -> str:
        data = await self._post(
            self.settings.scaleway_stt_endpoint,
            {"model": self.settings.stt_model, "audio": audio},
            failure="Transcription failed",
        )
        if not isinstance(data, dict) or not isinstance(data.get("text"), str):
            raise UpstreamError("Transcription failed", details="Upstream response has no text field")
        return data["text"]

    async def chat(self, messages: Sequence[Any]) -> str:
        data = await self._post(
            self.settings.scaleway_chat_endpoint,
            {
                "model": self.settings.chat_model,
                "messages": list(messages),
                "max_tokens": self.settings.chat_max_tokens,
                "temperature": self.settings.chat_temperature,
            },
            failure="Chat request failed",
        )
        return _extract_content(data)
