from __future__ import annotations

from .routes_chat import router as chat_router
from .routes_health import router as health_router
from .routes_static import router as static_router
from .routes_voice import router as voice_router

__all__ = [
    "chat_router",
    "health_router",
    "static_router",
    "voice_router",
]
