from pathlib import Path

from fastapi.testclient import TestClient

from app.api.routes_static import _asset
from app.core.config import Settings
from app.main import create_app


def test_unknown_route_serves_placeholder_shell(settings: Settings) -> None:
    client = TestClient(create_app(settings))

    response = client.get("/some/client/route")

    assert response.status_code == 200
    assert 'class="container"' in response.text
    assert response.headers["Cache-Control"] == "no-cache"


def test_index_html_is_served_when_present(settings: Settings) -> None:
    static_dir = Path(settings.static_dir)
    static_dir.mkdir(parents=True)
    (static_dir / "index.html").write_text("<html><body>frontend</body></html>", encoding="utf-8")
    (static_dir / "app.js").write_text("console.log('hi')", encoding="utf-8")
    client = TestClient(create_app(settings))

    assert "frontend" in client.get("/").text
    assert "frontend" in client.get("/settings").text
    assert client.get("/static/app.js").text == "console.log('hi')"


def test_root_level_assets_are_served_from_static_dir(settings: Settings) -> None:
    static_dir = Path(settings.static_dir)
    (static_dir / "icons").mkdir(parents=True)
    (static_dir / "index.html").write_text("<html><script src='app.js'></script></html>", encoding="utf-8")
    (static_dir / "app.js").write_text("console.log('app')", encoding="utf-8")
    (static_dir / "style.css").write_text("body { margin: 0 }", encoding="utf-8")
    (static_dir / "icons" / "mic.svg").write_text("<svg/>", encoding="utf-8")
    client = TestClient(create_app(settings))

    script = client.get("/app.js")
    assert script.status_code == 200
    assert script.text == "console.log('app')"
    assert "javascript" in script.headers["content-type"]
    assert client.get("/style.css").text == "body { margin: 0 }"
    assert client.get("/icons/mic.svg").text == "<svg/>"
    assert "<script src='app.js'>" in client.get("/missing.js").text


def test_asset_lookup_stays_inside_static_dir(settings: Settings, tmp_path: Path) -> None:
    static_dir = Path(settings.static_dir)
    static_dir.mkdir(parents=True)
    (tmp_path / "secret.txt").write_text("nope", encoding="utf-8")

    assert _asset(static_dir, "../secret.txt") is None
    assert _asset(static_dir, "") is None


def test_unknown_api_route_is_not_the_app_shell(settings: Settings) -> None:
    client = TestClient(create_app(settings))

    response = client.get("/api/unknown")

    assert response.status_code == 404
    assert response.json() == {"error": "Not found"}
