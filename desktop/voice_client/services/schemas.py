"""Data schemas exchanged with the proxy."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal


Role = Literal["user", "assistant"]


@dataclass(slots=True, frozen=True)
class ChatMessage:
    """Conversation message."""

    role: Role
    content: str

    def to_payload(self) -> dict[str, Any]:
        return {"role": self.role, "content": self.content}


@dataclass(slots=True, frozen=True)
class HealthStatus:
    """Result of one health probe. Never persisted."""

    reachable: bool
    capability_configured: bool
    version: str | None = None

    @classmethod
    def unreachable(cls) -> "HealthStatus":
        return cls(reachable=False, capability_configured=False)

    @classmethod
    def from_payload(cls, payload: Any) -> "HealthStatus":
        if not isinstance(payload, dict) or payload.get("status") != "ok":
            return cls(reachable=True, capability_configured=False)
        configured = payload.get("capabilityConfigured", payload.get("apiConfigured", False))
        version = payload.get("version")
        return cls(
            reachable=True,
            capability_configured=bool(configured),
            version=str(version) if version is not None else None,
        )
