"""Locally generated page shown when the frontend cannot be displayed."""

from __future__ import annotations

import html
from dataclasses import dataclass
from enum import Enum
from importlib.metadata import PackageNotFoundError, version
from urllib.parse import urlsplit

# Chromium net error codes that mean "the server could not be reached".
UNREACHABLE_ERROR_CODES = frozenset(
    {
        -7,  # ERR_TIMED_OUT
        -102,  # ERR_CONNECTION_REFUSED
        -104,  # ERR_CONNECTION_FAILED
        -105,  # ERR_NAME_NOT_RESOLVED
        -106,  # ERR_INTERNET_DISCONNECTED
        -109,  # ERR_ADDRESS_UNREACHABLE
        -118,  # ERR_CONNECTION_TIMED_OUT
        -137,  # ERR_NAME_RESOLUTION_FAILED
    }
)

UNKNOWN_ERROR = "Unbekannter Fehler"


class FailureKind(str, Enum):
    UNREACHABLE = "unreachable"
    HTTP = "http"
    BLANK = "blank"
    OTHER = "other"


@dataclass(slots=True, frozen=True)
class LoadFailure:
    kind: FailureKind
    description: str = UNKNOWN_ERROR
    code: int | None = None


def network_failure(error_code: int, description: str | None) -> LoadFailure:
    code = -abs(error_code) if error_code else error_code
    kind = FailureKind.UNREACHABLE if code in UNREACHABLE_ERROR_CODES else FailureKind.OTHER
    return LoadFailure(kind, description or UNKNOWN_ERROR, error_code)


def http_failure(status_code: int, reason: str | None = None) -> LoadFailure:
    description = f"HTTP {status_code} {reason}".strip() if reason else f"HTTP {status_code}"
    return LoadFailure(FailureKind.HTTP, description, status_code)


def blank_page_failure() -> LoadFailure:
    return LoadFailure(FailureKind.BLANK, "Die Seite wurde geladen, ist aber leer oder unvollständig")


def app_version() -> str:
    try:
        return version("voicechat")
    except PackageNotFoundError:  # pragma: no cover - depends on installation
        return "unknown"


def reload_target(server_url: str) -> str:
    """Link target for the retry button; only http(s) URLs are linked."""
    if urlsplit(server_url).scheme in ("http", "https"):
        return server_url
    return "#"


def _troubleshooting(failure: LoadFailure, server_url: str, *, debug: bool) -> tuple[str, str, list[str]]:
    """Title, details and steps. Steps are trusted markup; details are escaped here."""
    if failure.kind is FailureKind.UNREACHABLE:
        if debug:
            return (
                "Server nicht erreichbar",
                f"Verbindung zu {html.escape(server_url)} fehlgeschlagen",
                [
                    "Starten Sie den Backend-Server mit <code>voicechat serve</code>",
                    "Überprüfen Sie die Server-URL in den Einstellungen",
                    "Stellen Sie sicher, dass Ihr Rechner mit dem Netzwerk verbunden ist",
                    "Für andere Geräte: Verwenden Sie die lokale IP-Adresse (z.B. 192.168.1.100:3000)",
                ],
            )
        return (
            "Server nicht erreichbar",
            "Die Verbindung zum Server konnte nicht hergestellt werden",
            [
                "Stellen Sie sicher, dass der Server gestartet ist",
                "Überprüfen Sie Ihre Internetverbindung",
                "Die Server-URL könnte falsch konfiguriert sein",
            ],
        )
    steps = ["Versuchen Sie es erneut", "Überprüfen Sie Ihre Internetverbindung"]
    if debug:
        steps.append("Prüfen Sie die Logs der Anwendung (Menü: Logs)")
    return "Fehler beim Laden", html.escape(failure.description), steps


def build_fallback_page(failure: LoadFailure, *, server_url: str, debug: bool = False, app_version_text: str | None = None) -> str:
    """Render the fallback page; every interpolated value is HTML-escaped."""
    title, details, steps = _troubleshooting(failure, server_url, debug=debug)
    items = "\n".join(f"<li>{step}</li>" for step in steps)
    safe_title = html.escape(title)
    safe_version = html.escape(app_version_text or app_version())
    safe_target = html.escape(reload_target(server_url), quote=True)
    return f"""<!DOCTYPE html>
<html lang="de">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>Verbindungsfehler</title>
<style>
* {{ margin: 0; padding: 0; box-sizing: border-box; }}
body {{
  font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
  background: linear-gradient(135deg, #667eea 0%, #764ba2 100%);
  min-height: 100vh; display: flex; align-items: center; justify-content: center;
  padding: 20px; color: #333;
}}
.container {{
  background: white; border-radius: 16px; padding: 30px; max-width: 500px; width: 100%;
  box-shadow: 0 10px 40px rgba(0, 0, 0, 0.2);
}}
h1 {{ font-size: 24px; margin-bottom: 10px; text-align: center; color: #667eea; }}
.error-details {{
  background: #f5f5f5; padding: 15px; border-radius: 8px; margin-bottom: 20px;
  font-size: 14px; color: #666; word-break: break-word;
}}
.steps {{ margin-bottom: 20px; }}
.steps h2 {{ font-size: 16px; margin-bottom: 10px; color: #555; }}
.steps ul {{ padding-left: 20px; line-height: 1.6; }}
.steps li {{ margin-bottom: 8px; color: #666; font-size: 14px; }}
.steps code {{ background: #f0f0f0; padding: 2px 6px; border-radius: 4px; font-family: 'Courier New', monospace; font-size: 12px; }}
.button {{
  display: block; text-align: center; text-decoration: none; padding: 14px;
  background: linear-gradient(135deg, #667eea 0%, #764ba2 100%); color: white;
  border-radius: 8px; font-size: 16px; font-weight: 600;
}}
.footer {{ margin-top: 20px; text-align: center; font-size: 12px; color: #999; }}
</style>
</head>
<body>
<div class="container">
<h1>{safe_title}</h1>
<div class="error-details">{details}</div>
<div class="steps">
<h2>Was Sie tun können:</h2>
<ul>
{items}
</ul>
</div>
<a class="button" href="{safe_target}">Erneut versuchen</a>
<div class="footer">Voice Chat v{safe_version}</div>
</div>
</body>
</html>
"""
