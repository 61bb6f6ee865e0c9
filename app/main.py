from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from app.api import chat_router, health_router, static_router, voice_router
from app.core.config import Settings, get_settings, validate_required_settings
from app.core.errors import ProxyError, proxy_error_handler, request_validation_handler
from app.core.logger import get_logger
from app.core.rate_limit import rate_limit_middleware
from app.core.trace import trace_middleware
from app.core.upstream import UpstreamClient

logger = get_logger("server")


@asynccontextmanager
async def _lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    logger.info(
        "Voice chat proxy started",
        extra={"capability_configured": settings.capability_configured, "port": settings.port},
    )
    yield
    logger.info("Voice chat proxy stopped")


def create_app(settings: Settings | None = None, *, validate_config: bool = True) -> FastAPI:
    """Build the proxy application.

    Configuration is checked here, before any request is served, so a
    deployment with missing credentials refuses to start.
    """
    settings = settings or get_settings()
    if validate_config:
        validate_required_settings(settings)

    app = FastAPI(title="Voice Chat Proxy", lifespan=_lifespan)
    app.state.settings = settings
    app.state.upstream = UpstreamClient(settings)

    app.add_exception_handler(ProxyError, proxy_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, request_validation_handler)  # type: ignore[arg-type]

    app.middleware("http")(rate_limit_middleware(settings))
    app.middleware("http")(trace_middleware)

    # Adjust credentials for wildcard origins
    allow_credentials = settings.cors_origins != ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router)
    app.include_router(voice_router)
    app.include_router(chat_router)

    static_dir = Path(settings.static_dir)
    if static_dir.is_dir():
        app.mount("/static", StaticFiles(directory=str(static_dir), html=False), name="static")

    # Must stay last: catch-all for the app shell
    app.include_router(static_router)
    return app
