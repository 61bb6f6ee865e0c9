"""Entry point for the PySide6 voice client."""

from __future__ import annotations

import logging

from PySide6.QtCore import QObject, Signal, Slot
from PySide6.QtWidgets import QApplication, QMainWindow

from .config.store import load_settings
from .runtime.controller import VoiceController
from .state import log_buffer
from .state.app_state import AppState
from .ui.main_window import VoiceMainWindow
from .ui.startup_error import StartupErrorWidget

logger = logging.getLogger(__name__)


class ClientLauncher(QObject):
    """Builds the main window and swaps in an error screen when startup fails."""

    failed = Signal(object)

    def __init__(self, logs: log_buffer.RingBufferHandler) -> None:
        super().__init__()
        self.logs = logs
        self.window: QMainWindow | None = None
        self.controller: VoiceController | None = None
        self.failed.connect(self._show_error)

    def start(self) -> None:
        try:
            state = AppState(settings=load_settings())
            self.controller = VoiceController(state)
            self.controller.set_error_callback(self.failed.emit)
            window: QMainWindow = VoiceMainWindow(state, self.controller, self.logs)
        except Exception as exc:  # noqa: BLE001
            logger.error("Voice client failed to start", exc_info=exc)
            self._show_error(exc)
            return
        self._replace_window(window)

    @Slot(object)
    def _show_error(self, exc: BaseException) -> None:
        if self.controller is not None:
            self.controller.set_error_callback(None)
        window = QMainWindow()
        window.setWindowTitle("Voice Chat")
        window.setCentralWidget(StartupErrorWidget(exc, self.restart))
        self._replace_window(window)
        window.showMaximized()

    def restart(self) -> None:
        logger.info("Restarting voice client")
        if self.controller is not None:
            self.controller.shutdown()
            self.controller = None
        self.start()

    def _replace_window(self, window: QMainWindow) -> None:
        previous, self.window = self.window, window
        if previous is not None and previous is not window:
            previous.hide()
            previous.deleteLater()
        window.show()


def run() -> None:
    """Start the voice UI."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    app = QApplication.instance() or QApplication([])
    launcher = ClientLauncher(log_buffer.install("desktop"))
    launcher.start()
    app.exec()
