from __future__ import annotations

import json
from typing import Optional

import typer
import uvicorn

from app.core.config import ConfigurationError, Settings, get_settings, validate_required_settings


cli = typer.Typer(name="voicechat", help="Voice chat proxy and clients")
config_cli = typer.Typer(help="Configuration")

cli.add_typer(config_cli, name="config")

_SENSITIVE_KEYS = {"scaleway_api_key"}


def _check_or_exit(settings: Settings) -> None:
    try:
        validate_required_settings(settings)
    except ConfigurationError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc


@cli.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host"),
    port: Optional[int] = typer.Option(None, "--port"),
) -> None:
    """Start the proxy server."""
    settings = get_settings()
    _check_or_exit(settings)
    uvicorn.run(
        "app.main:create_app",
        factory=True,
        host=host or settings.host,
        port=port or settings.port,
    )


@cli.command()
def client() -> None:
    """Start the desktop voice client."""
    from desktop.voice_client import run

    run()


@cli.command()
def shell(
    url: Optional[str] = typer.Option(None, "--url", help="Backend origin to load"),
    debug: bool = typer.Option(False, "--debug", help="Developer troubleshooting hints"),
) -> None:
    """Open the web frontend in the embedded browser shell."""
    from desktop.web_shell import run

    run(url=url, debug=debug)


@config_cli.command("check")
def config_check() -> None:
    """Validate required deployment settings."""
    settings = Settings()
    _check_or_exit(settings)
    status = "configured" if settings.capability_configured else "not configured"
    typer.echo(f"All required environment variables are configured (API {status})")


@config_cli.command("print")
def config_print() -> None:
    s = Settings()
    data = s.model_dump()
    for key in _SENSITIVE_KEYS:
        if data.get(key):
            data[key] = "***"
    typer.echo(json.dumps(data, ensure_ascii=False, default=str))


if __name__ == "__main__":
    cli()
