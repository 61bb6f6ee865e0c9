"""Entry point for the web shell."""

from __future__ import annotations

import logging

from PySide6.QtWidgets import QApplication

from desktop.voice_client.state import log_buffer

from .window import WebShellWindow


def run(url: str | None = None, debug: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = QApplication.instance() or QApplication([])
    window = WebShellWindow(log_buffer.install("desktop"), url=url, debug=debug)
    window.show()
    app.exec()
