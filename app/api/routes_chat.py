from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends

from app.api.deps import get_upstream
from app.core.errors import ValidationError
from app.core.logger import get_logger
from app.core.personas import build_chat_messages
from app.core.upstream import UpstreamClient

router = APIRouter(prefix="/api/chat", tags=["chat"])
logger = get_logger("proxy")


@router.post("")
async def chat(
    body: Any = Body(default=None),
    upstream: UpstreamClient = Depends(get_upstream),
) -> dict[str, str]:
    raw = body if isinstance(body, dict) else {}
    messages = raw.get("messages")
    if not isinstance(messages, list):
        raise ValidationError("Messages array is required")
    persona = raw.get("persona")
    payload = build_chat_messages(messages, persona)
    logger.info("Chat request", extra={"persona": persona, "messages": len(messages)})
    reply = await upstream.chat(payload)
    return {"message": reply}
