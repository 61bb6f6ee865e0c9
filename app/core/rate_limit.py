from __future__ import annotations

import math
import threading
from collections import deque
from dataclasses import dataclass
from time import monotonic
from typing import Callable, Deque

from fastapi import Request, status
from fastapi.responses import JSONResponse

from app.core.config import Settings
from app.core.errors import error_response
from app.core.logger import get_logger

audit = get_logger("audit")

TOO_MANY_REQUESTS_MESSAGE = "Too many requests from this IP, please try again later."


@dataclass(slots=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    reset_after: int

    def headers(self) -> dict[str, str]:
        return {
            "RateLimit-Limit": str(self.limit),
            "RateLimit-Remaining": str(self.remaining),
            "RateLimit-Reset": str(self.reset_after),
        }


class SlidingWindowLimiter:
    """Per-key request ceiling over a rolling window."""

    def __init__(self, limit: int, window_sec: float, clock: Callable[[], float] = monotonic) -> None:
        self.limit = limit
        self.window_sec = window_sec
        self._clock = clock
        self._calls: dict[str, Deque[float]] = {}
        self._lock = threading.Lock()

    def hit(self, key: str) -> RateLimitDecision:
        now = self._clock()
        with self._lock:
            calls = self._calls.setdefault(key, deque())
            while calls and now - calls[0] >= self.window_sec:
                calls.popleft()
            allowed = len(calls) < self.limit
            if allowed:
                calls.append(now)
            remaining = max(0, self.limit - len(calls))
            oldest = calls[0] if calls else now
            reset_after = max(0, math.ceil(self.window_sec - (now - oldest)))
            self._prune(now)
        return RateLimitDecision(allowed, self.limit, remaining, reset_after)

    def reset(self) -> None:
        with self._lock:
            self._calls.clear()

    def _prune(self, now: float) -> None:
        stale = [k for k, calls in self._calls.items() if not calls or now - calls[-1] >= self.window_sec]
        for key in stale:
            del self._calls[key]


class RateLimiter:
    """HTTP middleware applying the API ceiling to /api/* and the static ceiling elsewhere."""

    def __init__(
        self,
        *,
        api_limit: int,
        static_limit: int,
        window_sec: float,
        api_prefix: str = "/api/",
        clock: Callable[[], float] = monotonic,
    ) -> None:
        self.api_prefix = api_prefix
        self.api = SlidingWindowLimiter(api_limit, window_sec, clock)
        self.static = SlidingWindowLimiter(static_limit, window_sec, clock)

    @staticmethod
    def client_key(request: Request) -> str:
        return request.client.host if request.client else "?"

    async def __call__(self, request: Request, call_next):
        path = request.url.path
        is_api = path.startswith(self.api_prefix) or path == self.api_prefix.rstrip("/")
        limiter = self.api if is_api else self.static
        key = self.client_key(request)
        decision = limiter.hit(key)
        if not decision.allowed:
            audit.warning("Rate limit exceeded", extra={"client": key, "path": path})
            headers = decision.headers()
            headers["Retry-After"] = str(decision.reset_after)
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content=error_response(TOO_MANY_REQUESTS_MESSAGE),
                headers=headers,
            )
        response = await call_next(request)
        for name, value in decision.headers().items():
            response.headers[name] = value
        return response


def rate_limit_middleware(settings: Settings, clock: Callable[[], float] = monotonic) -> RateLimiter:
    return RateLimiter(
        api_limit=settings.rate_limit_api_max,
        static_limit=settings.rate_limit_static_max,
        window_sec=settings.rate_limit_window_sec,
        clock=clock,
    )
