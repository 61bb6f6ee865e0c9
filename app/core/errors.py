from __future__ import annotations

from typing import Any, Dict

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core.logger import get_logger

logger = get_logger("server")


class ProxyError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500

    def __init__(self, message: str, *, details: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(ProxyError):
    """Missing or malformed caller input. Never retried."""

    status_code = 400


class UpstreamError(ProxyError):
    """The upstream provider failed (transport error, non-2xx or bad body)."""

    status_code = 500

    def __init__(self, message: str, *, details: str | None = None, upstream_status: int | None = None) -> None:
        super().__init__(message, details=details)
        self.upstream_status = upstream_status


def error_response(message: str, *, details: Any | None = None) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"error": message}
    if details is not None:
        payload["details"] = details
    return payload


async def proxy_error_handler(request: Request, exc: ProxyError) -> JSONResponse:
    if isinstance(exc, UpstreamError):
        logger.error(
            "%s %s failed: %s",
            request.method,
            request.url.path,
            exc.details,
            extra={"upstream_status": exc.upstream_status},
        )
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(exc.message, details=exc.details),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Bodies FastAPI cannot parse get the same 400 shape as ValidationError."""
    logger.warning("%s %s rejected: invalid request body", request.method, request.url.path)
    return JSONResponse(status_code=400, content=error_response("Invalid JSON body"))
