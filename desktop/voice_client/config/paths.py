"""Filesystem helpers for the voice client."""

from __future__ import annotations

import os
from pathlib import Path


CONFIG_DIR_ENV = "VOICECHAT_CONFIG_DIR"


def config_dir() -> Path:
    """Directory storing the persisted client settings."""
    override = os.environ.get(CONFIG_DIR_ENV)
    root = Path(override) if override else Path.home() / ".voicechat"
    root.mkdir(parents=True, exist_ok=True)
    return root


def tts_models_dir() -> Path:
    """Directory storing Piper voices."""
    root = config_dir() / "voices"
    root.mkdir(parents=True, exist_ok=True)
    return root
