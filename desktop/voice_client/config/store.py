"""Persistence helpers for voice client settings."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, fields
from pathlib import Path
from typing import Any

from .paths import config_dir
from .settings import AppSettings

LOGGER = logging.getLogger(__name__)

_FIELD_TYPES: dict[str, tuple[type, ...]] = {
    "speech_rate": (int, float),
    "speech_pitch": (int, float),
    "persona": (str,),
    "autoplay_reply": (bool,),
    "backend_endpoint": (str,),
}


def settings_path() -> Path:
    """Primary path for persisted settings."""
    return config_dir() / "voice_settings.json"


def _merge(stored: dict[str, Any]) -> AppSettings:
    """Overlay stored values on the defaults, one field at a time."""
    merged = asdict(AppSettings())
    for f in fields(AppSettings):
        if f.name not in stored:
            continue
        value = stored[f.name]
        expected = _FIELD_TYPES[f.name]
        if isinstance(value, bool) and bool not in expected:
            LOGGER.warning("Ignoring stored %s: unexpected boolean", f.name)
            continue
        if not isinstance(value, expected):
            LOGGER.warning("Ignoring stored %s: unexpected type %s", f.name, type(value).__name__)
            continue
        merged[f.name] = value
    return AppSettings(**merged).normalized()


def load_settings(path: Path | None = None) -> AppSettings:
    """Load settings from disk (defaults when missing or unreadable)."""
    path = path or settings_path()
    if not path.exists():
        return AppSettings()
    try:
        raw_text = path.read_text(encoding="utf-8").lstrip("\ufeff")
        data = json.loads(raw_text)
    except (OSError, ValueError) as exc:
        LOGGER.error("Failed to load settings from %s: %s", path, exc)
        return AppSettings()
    if not isinstance(data, dict):
        LOGGER.error("Failed to load settings from %s: not an object", path)
        return AppSettings()
    return _merge(data)


def save_settings(settings: AppSettings, path: Path | None = None) -> AppSettings:
    """Persist settings synchronously and return the normalized copy written."""
    normalized = settings.normalized()
    path = path or settings_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(asdict(normalized), indent=2), encoding="utf-8")
    return normalized


def reset_settings(path: Path | None = None) -> AppSettings:
    """Restore defaults and persist them."""
    return save_settings(AppSettings(), path)
