"""QtWebEngine window hosting the web frontend."""

from __future__ import annotations

import logging
from dataclasses import replace

from PySide6.QtCore import QUrl, Slot
from PySide6.QtGui import QAction
from PySide6.QtWebEngineCore import QWebEngineLoadingInfo, QWebEnginePage
from PySide6.QtWebEngineWidgets import QWebEngineView
from PySide6.QtWidgets import (
    QDialog,
    QDialogButtonBox,
    QLabel,
    QLineEdit,
    QMainWindow,
    QMessageBox,
    QVBoxLayout,
    QWidget,
)

from desktop.voice_client.audio.capture import has_input_device
from desktop.voice_client.config.settings import DEFAULT_BACKEND_URL
from desktop.voice_client.config.store import load_settings, save_settings
from desktop.voice_client.state.log_buffer import RingBufferHandler
from desktop.voice_client.ui.log_viewer import LogViewerDialog

from .fallback import LoadFailure, blank_page_failure, build_fallback_page, http_failure, network_failure
from .navigation import BLANK_CHECK_SCRIPT, is_blank_result, is_valid_backend_url, should_check_blank
from .permissions import MICROPHONE_NOTICE, PermissionDecision, decide, needs_notice

logger = logging.getLogger(__name__)

_MICROPHONE_FEATURES = {
    QWebEnginePage.Feature.MediaAudioCapture,
    QWebEnginePage.Feature.MediaAudioVideoCapture,
}

_CONSOLE_LEVELS = {
    QWebEnginePage.JavaScriptConsoleMessageLevel.InfoMessageLevel: logging.INFO,
    QWebEnginePage.JavaScriptConsoleMessageLevel.WarningMessageLevel: logging.WARNING,
    QWebEnginePage.JavaScriptConsoleMessageLevel.ErrorMessageLevel: logging.ERROR,
}


class ShellPage(QWebEnginePage):
    """Page that forwards console output to the logging module."""

    def javaScriptConsoleMessage(self, level, message, line_number, source_id) -> None:  # noqa: ANN001
        logger.log(_CONSOLE_LEVELS.get(level, logging.INFO), "Console: %s (%s:%s)", message, source_id, line_number)


class WebShellWindow(QMainWindow):
    def __init__(self, logs: RingBufferHandler, *, url: str | None = None, debug: bool = False) -> None:
        super().__init__()
        self.setWindowTitle("Voice Chat")
        self.resize(480, 860)
        self.logs = logs
        self.debug = debug
        self._url_override = url
        self._showing_fallback = False

        self.view = QWebEngineView(self)
        self.page = ShellPage(self.view)
        self.view.setPage(self.page)
        self.page.featurePermissionRequested.connect(self._on_permission_requested)
        self.page.loadingChanged.connect(self._on_loading_changed)
        self.page.loadFinished.connect(self._on_load_finished)
        self.setCentralWidget(self.view)
        self._build_menu()

        self.load_app()

    # ------------------------------------------------------------------ #
    # Navigation
    # ------------------------------------------------------------------ #
    def server_url(self) -> str:
        if self._url_override:
            return self._url_override.rstrip("/")
        return load_settings().resolved_backend_url()

    def load_app(self) -> None:
        url = self.server_url()
        logger.info("Loading %s", url)
        self._showing_fallback = False
        self.view.setUrl(QUrl(url))

    def show_fallback(self, failure: LoadFailure) -> None:
        if self._showing_fallback:
            return
        self._showing_fallback = True
        server_url = self.server_url()
        if self.debug:
            logger.error("Error loading %s: %s (%s)", server_url, failure.description, failure.code)
        else:
            logger.error("Error loading server: %s (%s)", failure.kind.value, failure.code)
        page = build_fallback_page(failure, server_url=server_url, debug=self.debug)
        self.view.setHtml(page, QUrl("about:blank"))

    @Slot(QWebEngineLoadingInfo)
    def _on_loading_changed(self, info: QWebEngineLoadingInfo) -> None:
        status = info.status()
        if status == QWebEngineLoadingInfo.LoadStatus.LoadStartedStatus:
            # Retry link on the fallback page navigates straight to the server.
            if should_check_blank(info.url().toString(), self.server_url()):
                self._showing_fallback = False
            return
        if status != QWebEngineLoadingInfo.LoadStatus.LoadFailedStatus or info.isErrorPage():
            return
        if info.errorDomain() == QWebEngineLoadingInfo.ErrorDomain.HttpStatusCodeDomain:
            self.show_fallback(http_failure(info.errorCode()))
        else:
            self.show_fallback(network_failure(info.errorCode(), info.errorString()))

    @Slot(bool)
    def _on_load_finished(self, ok: bool) -> None:
        url = self.view.url().toString()
        if not ok or not should_check_blank(url, self.server_url()):
            return
        self.page.runJavaScript(BLANK_CHECK_SCRIPT, 0, self._on_blank_check)

    def _on_blank_check(self, result: object) -> None:
        if is_blank_result(result):
            logger.warning("Page loaded but appears blank or incomplete")
            self.show_fallback(blank_page_failure())

    # ------------------------------------------------------------------ #
    # Permissions
    # ------------------------------------------------------------------ #
    @Slot(QUrl, QWebEnginePage.Feature)
    def _on_permission_requested(self, origin: QUrl, feature: QWebEnginePage.Feature) -> None:
        wants_microphone = feature in _MICROPHONE_FEATURES
        decision = decide(wants_microphone=wants_microphone, host_has_microphone=has_input_device())
        policy = (
            QWebEnginePage.PermissionPolicy.PermissionGrantedByUser
            if decision is PermissionDecision.GRANT
            else QWebEnginePage.PermissionPolicy.PermissionDeniedByUser
        )
        self.page.setFeaturePermission(origin, feature, policy)
        logger.info("Permission %s for %s: %s", feature.name, origin.toString(), decision.value)
        if needs_notice(wants_microphone=wants_microphone, decision=decision):
            self.statusBar().showMessage(MICROPHONE_NOTICE, 5000)

    # ------------------------------------------------------------------ #
    # Menu
    # ------------------------------------------------------------------ #
    def _build_menu(self) -> None:
        menu = self.menuBar().addMenu("Optionen")
        reload_action = QAction("Neu laden", self)
        reload_action.triggered.connect(self.load_app)
        menu.addAction(reload_action)
        settings_action = QAction("Server-URL...", self)
        settings_action.triggered.connect(self._open_settings_dialog)
        menu.addAction(settings_action)
        logs_action = QAction("Logs...", self)
        logs_action.triggered.connect(lambda: LogViewerDialog(self.logs, parent=self).exec())
        menu.addAction(logs_action)

    def _open_settings_dialog(self) -> None:
        settings = load_settings()
        dialog = _ServerUrlDialog(settings.backend_endpoint or DEFAULT_BACKEND_URL, parent=self)
        result = dialog.exec()
        if dialog.reset_requested:
            save_settings(replace(settings, backend_endpoint=""))
            logger.info("Server URL reset to default")
        elif result == QDialog.DialogCode.Accepted:
            url = dialog.url()
            if not is_valid_backend_url(url):
                QMessageBox.warning(self, "Server-URL", "Bitte eine gültige http(s)-URL eingeben.")
                return
            save_settings(replace(settings, backend_endpoint=url))
            logger.info("Server URL changed to %s", url)
        else:
            return
        self._url_override = None
        self.load_app()


class _ServerUrlDialog(QDialog):
    def __init__(self, current: str, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.setWindowTitle("Server-URL")
        self.reset_requested = False
        layout = QVBoxLayout(self)
        layout.addWidget(QLabel("Adresse des Backend-Servers:"))
        self._edit = QLineEdit(current)
        self._edit.setPlaceholderText(DEFAULT_BACKEND_URL)
        layout.addWidget(self._edit)
        buttons = QDialogButtonBox(
            QDialogButtonBox.StandardButton.Save
            | QDialogButtonBox.StandardButton.Cancel
            | QDialogButtonBox.StandardButton.Reset
        )
        buttons.accepted.connect(self.accept)
        buttons.rejected.connect(self.reject)
        buttons.button(QDialogButtonBox.StandardButton.Reset).clicked.connect(self._on_reset)
        layout.addWidget(buttons)

    def _on_reset(self) -> None:
        self.reset_requested = True
        self.reject()

    def url(self) -> str:
        return self._edit.text().strip().rstrip("/")
