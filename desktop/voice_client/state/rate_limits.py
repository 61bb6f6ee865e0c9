"""Quota tracking from the proxy's RateLimit-* response headers."""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Mapping


ENDPOINTS: tuple[str, ...] = ("transcribe", "chat")
ENDPOINT_LABELS: dict[str, str] = {"transcribe": "STT", "chat": "Chat"}

WARNING_PERCENT = 70.0
CRITICAL_PERCENT = 90.0


class UsageTier(str, Enum):
    NOMINAL = "nominal"
    WARNING = "warning"
    CRITICAL = "critical"


@dataclass(slots=True)
class RateLimitState:
    """Quota of one endpoint as last reported by the server (zero means no data)."""

    limit: int = 0
    remaining: int = 0
    reset_epoch: int = 0

    @property
    def has_data(self) -> bool:
        return self.limit > 0

    @property
    def usage_percent(self) -> float:
        if self.limit <= 0:
            return 0.0
        return (self.limit - self.remaining) / self.limit * 100

    @property
    def tier(self) -> UsageTier:
        return tier_for(self.usage_percent)


def tier_for(usage_percent: float) -> UsageTier:
    if usage_percent >= CRITICAL_PERCENT:
        return UsageTier.CRITICAL
    if usage_percent >= WARNING_PERCENT:
        return UsageTier.WARNING
    return UsageTier.NOMINAL


def _header_int(headers: Mapping[str, str], name: str) -> int | None:
    value = headers.get(name)
    if value is None:
        value = headers.get(name.lower())
    if value is None:
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        return None


class RateLimitTracker:
    """Per-endpoint quota state, updated only from response headers."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._states: dict[str, RateLimitState] = {name: RateLimitState() for name in ENDPOINTS}

    def update(self, endpoint: str, headers: Mapping[str, str]) -> bool:
        """Overwrite the endpoint's state when limit and remaining are both present."""
        limit = _header_int(headers, "RateLimit-Limit")
        remaining = _header_int(headers, "RateLimit-Remaining")
        if limit is None or remaining is None:
            return False
        reset = _header_int(headers, "RateLimit-Reset")
        reset_epoch = int(self._clock()) + reset if reset is not None else 0
        self._states[endpoint] = RateLimitState(limit=limit, remaining=remaining, reset_epoch=reset_epoch)
        return True

    def get(self, endpoint: str) -> RateLimitState:
        return self._states.setdefault(endpoint, RateLimitState())

    def displayable(self) -> list[tuple[str, RateLimitState]]:
        """(label, state) for every endpoint that has data."""
        return [
            (ENDPOINT_LABELS.get(name, name), state)
            for name, state in self._states.items()
            if state.has_data
        ]

    def reset(self) -> None:
        self._states = {name: RateLimitState() for name in ENDPOINTS}
