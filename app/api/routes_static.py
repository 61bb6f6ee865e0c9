from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse, HTMLResponse, JSONResponse, Response

from app.api.deps import get_app_settings
from app.core.config import Settings
from app.core.errors import error_response

router = APIRouter(tags=["static"])

_PLACEHOLDER_SHELL = """<!DOCTYPE html>
<html lang="de">
<head><meta charset="UTF-8"><title>Voice Chat</title></head>
<body>
<div class="container">
<h1>Voice Chat</h1>
<p>Der Server läuft. Die Weboberfläche wurde nicht gefunden: legen Sie die
gebauten Dateien im konfigurierten Verzeichnis ab oder verwenden Sie den
Desktop-Client (<code>voicechat client</code>).</p>
</div>
</body>
</html>
"""


def _asset(static_dir: Path, path: str) -> Path | None:
    """Existing file under ``static_dir`` for ``path``; never escapes the directory."""
    if not path:
        return None
    root = static_dir.resolve()
    candidate = (root / path).resolve()
    if candidate.is_file() and candidate.is_relative_to(root):
        return candidate
    return None


@router.get("/{path:path}", include_in_schema=False)
async def app_shell(path: str, settings: Settings = Depends(get_app_settings)) -> Response:
    """Serve frontend assets by path and index.html for every other non-API route."""
    if path == "api" or path.startswith("api/"):
        return JSONResponse(status_code=404, content=error_response("Not found"))
    static_dir = Path(settings.static_dir)
    asset = _asset(static_dir, path)
    if asset is not None:
        return FileResponse(str(asset))
    index = static_dir / "index.html"
    if index.is_file():
        return FileResponse(str(index), headers={"Cache-Control": "no-cache"})
    return HTMLResponse(_PLACEHOLDER_SHELL, headers={"Cache-Control": "no-cache"})
