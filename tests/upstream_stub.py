"""Stand-in for httpx.AsyncClient used by the upstream forwarding tests."""

from __future__ import annotations

import json
from typing import Any

import httpx


class DummyResponse:
    def __init__(self, status_code: int = 200, payload: Any = None, *, text: str | None = None) -> None:
        self.status_code = status_code
        self.reason_phrase = "OK" if status_code < 400 else "Internal Server Error"
        self._payload = payload
        self._text = text

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            request = httpx.Request("POST", "https://upstream.test")
            response = httpx.Response(self.status_code, request=request)
            raise httpx.HTTPStatusError("upstream failed", request=request, response=response)

    def json(self) -> Any:
        if self._text is not None:
            return json.loads(self._text)
        return self._payload

    @property
    def text(self) -> str:
        return self._text if self._text is not None else json.dumps(self._payload)


def install_dummy_client(monkeypatch, response: DummyResponse | None = None, *, error: Exception | None = None) -> dict[str, Any]:
    """Replace httpx.AsyncClient; returns the dict capturing the last request."""
    captured: dict[str, Any] = {"calls": 0}

    class DummyClient:
        def __init__(self, *args, **kwargs):
            captured["timeout"] = kwargs.get("timeout")

        async def __aenter__(self):
            return self

        async def __aexit__(self, exc_type, exc, tb):
            return False

        async def post(self, url: str, *, json: dict[str, Any] | None = None, headers: dict[str, str] | None = None):
            captured["calls"] += 1
            captured["url"] = url
            captured["payload"] = json or {}
            captured["headers"] = headers or {}
            if error is not None:
                raise error
            return response or DummyResponse()

    monkeypatch.setattr(httpx, "AsyncClient", lambda *args, **kwargs: DummyClient(*args, **kwargs))
    return captured
