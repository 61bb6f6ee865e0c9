from __future__ import annotations

import uuid
from contextvars import ContextVar

from starlette.requests import Request


TRACE_HEADER = "X-Trace-Id"

_trace_id: ContextVar[str | None] = ContextVar("trace_id", default=None)


def new_trace_id() -> str:
    tid = uuid.uuid4().hex
    _trace_id.set(tid)
    return tid


def set_trace_id(tid: str | None) -> None:
    _trace_id.set(tid)


def get_trace_id() -> str | None:
    return _trace_id.get()


async def trace_middleware(request: Request, call_next):
    """Bind a trace id to the request context and echo it on the response."""
    tid = request.headers.get(TRACE_HEADER) or new_trace_id()
    set_trace_id(tid)
    try:
        response = await call_next(request)
    finally:
        set_trace_id(None)
    response.headers[TRACE_HEADER] = tid
    return response
