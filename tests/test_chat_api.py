from fastapi.testclient import TestClient

from app.core.config import Settings
from app.core.personas import SYSTEM_PROMPTS
from app.main import create_app
from upstream_stub import DummyResponse, install_dummy_client

_REPLY = {"choices": [{"message": {"content": "Es war einmal..."}}]}


def test_chat_requires_messages_array(settings: Settings, monkeypatch) -> None:
    captured = install_dummy_client(monkeypatch)
    client = TestClient(create_app(settings))

    for body in ({}, {"messages": "hello"}, {"messages": {"role": "user"}}):
        response = client.post("/api/chat", json=body)
        assert response.status_code == 400
        assert response.json() == {"error": "Messages array is required"}
    assert captured["calls"] == 0


def test_chat_prepends_persona_system_prompt(settings: Settings, monkeypatch) -> None:
    captured = install_dummy_client(monkeypatch, DummyResponse(200, _REPLY))
    client = TestClient(create_app(settings))
    history = [{"role": "user", "content": "Erzähl mir was"}]

    response = client.post("/api/chat", json={"messages": history, "persona": "storyteller"})

    assert response.status_code == 200
    assert response.json() == {"message": "Es war einmal..."}
    payload = captured["payload"]
    system_messages = [m for m in payload["messages"] if m["role"] == "system"]
    assert len(system_messages) == 1
    assert payload["messages"][0]["role"] == "system"
    assert "Geschichtenerzähler" in payload["messages"][0]["content"]
    assert payload["messages"][1:] == history
    assert payload["max_tokens"] == 500
    assert payload["temperature"] == 0.7
    assert payload["model"] == settings.chat_model


def test_chat_unknown_persona_uses_general_prompt(settings: Settings, monkeypatch) -> None:
    captured = install_dummy_client(monkeypatch, DummyResponse(200, _REPLY))
    client = TestClient(create_app(settings))

    client.post("/api/chat", json={"messages": [], "persona": "pirate"})
    system_prompt = captured["payload"]["messages"][0]["content"]

    assert system_prompt == SYSTEM_PROMPTS["general"]


def test_chat_without_choices_returns_placeholder(settings: Settings, monkeypatch) -> None:
    install_dummy_client(monkeypatch, DummyResponse(200, {"choices": []}))
    client = TestClient(create_app(settings))

    response = client.post("/api/chat", json={"messages": [{"role": "user", "content": "Hi"}]})

    assert response.status_code == 200
    assert response.json() == {"message": "No response"}


def test_chat_upstream_failure(settings: Settings, monkeypatch) -> None:
    install_dummy_client(monkeypatch, DummyResponse(401, {"error": "unauthorized"}))
    client = TestClient(create_app(settings))

    response = client.post("/api/chat", json={"messages": [{"role": "user", "content": "Hi"}]})

    assert response.status_code == 500
    data = response.json()
    assert data["error"] == "Chat request failed"
    assert "401" in data["details"]


def test_chat_truncated_json_body_is_a_400(settings: Settings, monkeypatch) -> None:
    captured = install_dummy_client(monkeypatch)
    client = TestClient(create_app(settings))

    response = client.post(
        "/api/chat",
        content=b'{"messages": [',
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid JSON body"}
    assert captured["calls"] == 0
