from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends

from app.api.deps import get_upstream
from app.core.errors import ValidationError
from app.core.logger import get_logger
from app.core.upstream import UpstreamClient

router = APIRouter(prefix="/api/transcribe", tags=["voice"])
logger = get_logger("proxy")


@router.post("")
async def transcribe(
    body: Any = Body(default=None),
    upstream: UpstreamClient = Depends(get_upstream),
) -> dict[str, str]:
    """Forward base64 audio to the speech API and return its transcript."""
    raw = body if isinstance(body, dict) else {}
    audio = raw.get("audio")
    if not audio or not isinstance(audio, str):
        raise ValidationError("Audio data is required")
    logger.info("Transcription request", extra={"kilobytes": round(len(audio) * 3 / 4 / 1024, 2)})
    text = await upstream.transcribe(audio)
    return {"text": text}
