from __future__ import annotations

from fastapi import Request

from app.core.config import Settings
from app.core.upstream import UpstreamClient


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_upstream(request: Request) -> UpstreamClient:
    return request.app.state.upstream
