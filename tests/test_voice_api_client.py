import asyncio
import json

import httpx
import pytest

from desktop.voice_client.services import api as api_module
from desktop.voice_client.services.api import VoiceChatAPI
from desktop.voice_client.services.errors import (
    HttpStatusError,
    NetworkError,
    RequestTimeoutError,
    ResponseFormatError,
)
from desktop.voice_client.services.schemas import ChatMessage
from desktop.voice_client.state.rate_limits import RateLimitTracker

_LIMIT_HEADERS = {"RateLimit-Limit": "100", "RateLimit-Remaining": "10", "RateLimit-Reset": "120"}


def _api(handler, tracker: RateLimitTracker | None = None) -> VoiceChatAPI:
    return VoiceChatAPI("http://backend.test/", tracker=tracker, transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_chat_sends_history_and_persona() -> None:
    seen: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"message": "Hallo!"}, headers=_LIMIT_HEADERS)

    tracker = RateLimitTracker(clock=lambda: 0.0)
    api = _api(handler, tracker)
    reply = await api.chat([ChatMessage("user", "Hi")], "comedian")
    await api.close()

    assert reply == "Hallo!"
    assert seen["url"] == "http://backend.test/api/chat"
    assert seen["body"] == {"messages": [{"role": "user", "content": "Hi"}], "persona": "comedian"}
    assert tracker.get("chat").remaining == 10
    assert tracker.get("chat").reset_epoch == 120


@pytest.mark.asyncio
async def test_error_response_raises_status_error_and_updates_tracker() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            429,
            json={"error": "Too many requests from this IP, please try again later."},
            headers={"RateLimit-Limit": "100", "RateLimit-Remaining": "0", "RateLimit-Reset": "30"},
        )

    tracker = RateLimitTracker(clock=lambda: 0.0)
    api = _api(handler, tracker)
    with pytest.raises(HttpStatusError) as exc:
        await api.transcribe("UklGRg==")

    assert exc.value.status_code == 429
    assert exc.value.rate_limited
    assert exc.value.message.startswith("Too many requests")
    assert tracker.get("transcribe").remaining == 0


@pytest.mark.asyncio
async def test_server_error_details_are_kept() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"error": "Chat request failed", "details": "Upstream API error: 401"})

    api = _api(handler)
    with pytest.raises(HttpStatusError) as exc:
        await api.chat([], "general")
    assert exc.value.details == "Upstream API error: 401"


@pytest.mark.asyncio
async def test_transport_failures_are_typed() -> None:
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    def slow(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(NetworkError) as network:
        await _api(refuse).transcribe("UklGRg==")
    assert not isinstance(network.value, RequestTimeoutError)

    with pytest.raises(RequestTimeoutError):
        await _api(slow).chat([], "general")


@pytest.mark.asyncio
async def test_unexpected_body_is_a_format_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"transcript": "wrong field"})

    with pytest.raises(ResponseFormatError):
        await _api(handler).transcribe("UklGRg==")


@pytest.mark.asyncio
async def test_health_probe_results() -> None:
    def ok(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/health"
        return httpx.Response(200, json={"status": "ok", "capabilityConfigured": True, "version": "1.0.0"})

    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    status = await _api(ok).health()
    assert status.reachable and status.capability_configured
    assert status.version == "1.0.0"

    down = await _api(refuse).health()
    assert not down.reachable
    assert not down.capability_configured


@pytest.mark.asyncio
async def test_set_base_url_switches_target() -> None:
    urls: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        urls.append(str(request.url))
        return httpx.Response(200, json={"text": "ok"})

    api = _api(handler)
    api.set_base_url("http://other.test:3000/")
    await api.transcribe("UklGRg==")
    assert urls == ["http://other.test:3000/api/transcribe"]


@pytest.mark.asyncio
async def test_slow_response_is_bounded_by_total_timeout(monkeypatch) -> None:
    monkeypatch.setattr(api_module, "REQUEST_TIMEOUT_SEC", 0.05)

    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(1)
        return httpx.Response(200, json={"message": "too late"})

    api = _api(handler)
    with pytest.raises(RequestTimeoutError):
        await api.chat([ChatMessage("user", "Hi")], "general")
    await api.close()


@pytest.mark.asyncio
async def test_slow_health_probe_counts_as_unreachable(monkeypatch) -> None:
    monkeypatch.setattr(api_module, "HEALTH_TIMEOUT_SEC", 0.05)

    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(1)
        return httpx.Response(200, json={"status": "ok", "capabilityConfigured": True})

    api = _api(handler)
    status = await api.health()
    await api.close()

    assert not status.reachable
