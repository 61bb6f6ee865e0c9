"""In-memory log records for the in-app log viewer."""

from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Literal

LogLevel = Literal["info", "warn", "error"]

DEFAULT_CAPACITY = 100


@dataclass(slots=True, frozen=True)
class LogEntry:
    timestamp: datetime
    level: LogLevel
    message: str
    details: str | None = None

    def format(self) -> str:
        stamp = self.timestamp.astimezone().strftime("%H:%M:%S")
        line = f"[{stamp}] {self.level.upper()}: {self.message}"
        return f"{line}\n  {self.details}" if self.details else line


def _level_name(levelno: int) -> LogLevel:
    if levelno >= logging.ERROR:
        return "error"
    if levelno >= logging.WARNING:
        return "warn"
    return "info"


class RingBufferHandler(logging.Handler):
    """Keeps the most recent records; the oldest entry is evicted past capacity."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY, level: int = logging.INFO) -> None:
        super().__init__(level)
        self._entries: deque[LogEntry] = deque(maxlen=capacity)
        self._guard = threading.Lock()
        self._listeners: list[Callable[[LogEntry], None]] = []

    @property
    def capacity(self) -> int:
        return self._entries.maxlen or 0

    def emit(self, record: logging.LogRecord) -> None:
        try:
            details = None
            if record.exc_info and record.exc_info[1] is not None:
                details = repr(record.exc_info[1])
            elif getattr(record, "details", None) is not None:
                details = str(record.details)
            entry = LogEntry(
                timestamp=datetime.fromtimestamp(record.created, tz=timezone.utc),
                level=_level_name(record.levelno),
                message=record.getMessage(),
                details=details,
            )
        except Exception:  # noqa: BLE001
            self.handleError(record)
            return
        with self._guard:
            self._entries.append(entry)
            listeners = list(self._listeners)
        for listener in listeners:
            listener(entry)

    def entries(self) -> list[LogEntry]:
        with self._guard:
            return list(self._entries)

    def clear(self) -> None:
        with self._guard:
            self._entries.clear()

    def subscribe(self, listener: Callable[[LogEntry], None]) -> None:
        with self._guard:
            self._listeners.append(listener)


def install(logger_name: str = "desktop", capacity: int = DEFAULT_CAPACITY) -> RingBufferHandler:
    """Attach a ring buffer to the named logger and return it."""
    handler = RingBufferHandler(capacity)
    target = logging.getLogger(logger_name)
    target.addHandler(handler)
    if target.level == logging.NOTSET or target.level > logging.INFO:
        target.setLevel(logging.INFO)
    return handler
