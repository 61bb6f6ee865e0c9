"""URL handling and the blank-page check for the embedded frontend."""

from __future__ import annotations

from typing import Any
from urllib.parse import urlsplit

MIN_PAGE_CONTENT_LENGTH = 100

BLANK_CHECK_SCRIPT = (
    "(function() {"
    " var container = document.querySelector('.container');"
    f" return !!container && container.innerHTML.trim().length > {MIN_PAGE_CONTENT_LENGTH};"
    " })();"
)


def is_valid_backend_url(url: str) -> bool:
    parts = urlsplit(url.strip())
    return parts.scheme in ("http", "https") and bool(parts.netloc)


def _normalize(url: str) -> str:
    parts = urlsplit(url.strip())
    path = parts.path.rstrip("/")
    return f"{parts.scheme.lower()}://{parts.netloc.lower()}{path}"


def should_check_blank(loaded_url: str, configured_url: str) -> bool:
    """Only the configured URL is checked, never the fallback page or other navigations."""
    if not loaded_url:
        return False
    return _normalize(loaded_url) == _normalize(configured_url)


def is_blank_result(result: Any) -> bool:
    """Interpret the value returned by BLANK_CHECK_SCRIPT."""
    return result is not True
