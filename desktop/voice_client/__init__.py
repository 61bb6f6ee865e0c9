"""Desktop voice client for the voice chat proxy."""

from __future__ import annotations

from typing import Any

__all__ = ["run"]


def run(*args: Any, **kwargs: Any) -> Any:
    """Start the voice client (lazy import keeps Qt out of non-UI imports)."""
    from .app import run as _run

    return _run(*args, **kwargs)
