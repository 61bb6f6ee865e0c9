from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

from fastapi import APIRouter, Depends

from app.api.deps import get_app_settings
from app.core.config import Settings

router = APIRouter(prefix="/api/health", tags=["health"])


def _package_version() -> str:
    try:
        return version("voicechat")
    except PackageNotFoundError:  # pragma: no cover - depends on installation
        return "unknown"


@router.get("")
async def get_health(settings: Settings = Depends(get_app_settings)) -> dict[str, object]:
    """Report liveness and whether the upstream credential is usable."""
    return {
        "status": "ok",
        "capabilityConfigured": settings.capability_configured,
        "version": _package_version(),
    }
