"""Embedded browser shell for the voice chat web frontend."""

from __future__ import annotations

from typing import Any

__all__ = ["run"]


def run(*args: Any, **kwargs: Any) -> Any:
    """Open the shell window (lazy import keeps QtWebEngine out of non-UI imports)."""
    from .app import run as _run

    return _run(*args, **kwargs)
