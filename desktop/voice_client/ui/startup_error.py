"""Full-window error shown when the client fails to start."""

from __future__ import annotations

import traceback
from typing import Callable

from PySide6.QtCore import Qt
from PySide6.QtWidgets import QLabel, QPlainTextEdit, QPushButton, QVBoxLayout, QWidget


def format_exception(exc: BaseException) -> str:
    return "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)).strip()


class StartupErrorWidget(QWidget):
    """Replaces the main window content with diagnostics and a restart button."""

    def __init__(self, exc: BaseException, on_restart: Callable[[], None], parent: QWidget | None = None) -> None:
        super().__init__(parent)
        layout = QVBoxLayout(self)
        layout.setContentsMargins(32, 32, 32, 32)
        layout.setSpacing(16)

        title = QLabel("The voice client could not start")
        title.setStyleSheet("font-size: 20px; font-weight: 600;")
        title.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(title)

        summary = QLabel(f"{type(exc).__name__}: {exc}")
        summary.setWordWrap(True)
        summary.setTextInteractionFlags(Qt.TextInteractionFlag.TextSelectableByMouse)
        layout.addWidget(summary)

        details = QPlainTextEdit(format_exception(exc))
        details.setReadOnly(True)
        layout.addWidget(details, 1)

        restart = QPushButton("Restart")
        restart.clicked.connect(on_restart)
        layout.addWidget(restart)
