"""Local configuration models for the voice client."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal, get_args


Persona = Literal["general", "storyteller", "comedian", "bible"]

PERSONAS: tuple[str, ...] = get_args(Persona)
DEFAULT_PERSONA: Persona = "general"

SPEECH_MIN = 0.5
SPEECH_MAX = 2.0

DEFAULT_BACKEND_URL = os.environ.get("VOICECHAT_BACKEND_URL", "http://127.0.0.1:3000")


def clamp_speech(value: float) -> float:
    return max(SPEECH_MIN, min(SPEECH_MAX, float(value)))


@dataclass(slots=True)
class AppSettings:
    """User preferences of the voice client."""

    speech_rate: float = 1.0
    speech_pitch: float = 1.0
    persona: Persona = DEFAULT_PERSONA
    autoplay_reply: bool = True
    backend_endpoint: str = ""

    def resolved_backend_url(self) -> str:
        """Configured endpoint, or the default origin when left empty."""
        return (self.backend_endpoint.strip() or DEFAULT_BACKEND_URL).rstrip("/")

    def normalized(self) -> "AppSettings":
        persona = self.persona if self.persona in PERSONAS else DEFAULT_PERSONA
        return AppSettings(
            speech_rate=clamp_speech(self.speech_rate),
            speech_pitch=clamp_speech(self.speech_pitch),
            persona=persona,
            autoplay_reply=bool(self.autoplay_reply),
            backend_endpoint=str(self.backend_endpoint or "").strip(),
        )
