"""Dialog listing the in-memory log records."""

from __future__ import annotations

from PySide6.QtWidgets import (
    QDialog,
    QDialogButtonBox,
    QPlainTextEdit,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from ..state.log_buffer import RingBufferHandler


class LogViewerDialog(QDialog):
    def __init__(self, buffer: RingBufferHandler, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.setWindowTitle("Logs")
        self.setMinimumSize(640, 400)
        self._buffer = buffer

        layout = QVBoxLayout(self)
        self._text = QPlainTextEdit()
        self._text.setReadOnly(True)
        layout.addWidget(self._text)

        buttons = QDialogButtonBox(QDialogButtonBox.StandardButton.Close)
        clear_btn = QPushButton("Clear")
        buttons.addButton(clear_btn, QDialogButtonBox.ButtonRole.ActionRole)
        clear_btn.clicked.connect(self._clear)
        buttons.rejected.connect(self.reject)
        layout.addWidget(buttons)
        self.refresh()

    def refresh(self) -> None:
        entries = self._buffer.entries()
        if not entries:
            self._text.setPlainText("No log entries.")
            return
        # Newest first
        self._text.setPlainText("\n".join(entry.format() for entry in reversed(entries)))

    def _clear(self) -> None:
        self._buffer.clear()
        self.refresh()
