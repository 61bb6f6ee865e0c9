"""Shared state model for the voice client."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from ..config.settings import AppSettings
from ..services.schemas import ChatMessage
from .rate_limits import RateLimitTracker

Phase = Literal["idle", "capturing", "processing"]


@dataclass(slots=True)
class AppState:
    """Global state for the client. Mutated only on the controller's loop thread."""

    settings: AppSettings = field(default_factory=AppSettings)
    history: list[ChatMessage] = field(default_factory=list)
    rate_limits: RateLimitTracker = field(default_factory=RateLimitTracker)
    phase: Phase = "idle"
    last_transcript: str | None = None

    def reset(self) -> None:
        """Drop conversation and quota state, keeping the settings."""
        self.history.clear()
        self.rate_limits.reset()
        self.phase = "idle"
        self.last_transcript = None
