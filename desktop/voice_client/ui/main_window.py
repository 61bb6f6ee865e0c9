"""Main window for the voice chat client."""

from __future__ import annotations

from dataclasses import replace

from PySide6.QtCore import QObject, Qt, Signal, Slot
from PySide6.QtGui import QAction, QColor, QKeySequence, QShortcut
from PySide6.QtNetwork import QNetworkInformation
from PySide6.QtWidgets import (
    QCheckBox,
    QComboBox,
    QDialog,
    QDialogButtonBox,
    QDoubleSpinBox,
    QFormLayout,
    QFrame,
    QGraphicsDropShadowEffect,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QListWidget,
    QListWidgetItem,
    QMainWindow,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from ..config.settings import DEFAULT_BACKEND_URL, PERSONAS, SPEECH_MAX, SPEECH_MIN, AppSettings
from ..runtime.controller import VoiceController
from ..runtime.orchestrator import StatusUpdate
from ..services.schemas import ChatMessage
from ..state.app_state import AppState, Phase
from ..state.health import AvailabilityMonitor
from ..state.log_buffer import RingBufferHandler
from ..state.rate_limits import UsageTier
from .log_viewer import LogViewerDialog

PERSONA_LABELS: dict[str, str] = {
    "general": "General assistant",
    "storyteller": "Storyteller",
    "comedian": "Comedian",
    "bible": "Bible stories",
}

_STATUS_COLORS = {
    "info": "#ced8ff",
    "success": "#7ee2a8",
    "warning": "#ffd37a",
    "error": "#ff8a8a",
}

_TIER_COLORS = {
    UsageTier.NOMINAL: "#7ee2a8",
    UsageTier.WARNING: "#ffd37a",
    UsageTier.CRITICAL: "#ff8a8a",
}


class _UiBridge(QObject):
    """Carries loop-thread events to the Qt thread."""

    status = Signal(object)
    message = Signal(object)
    phase = Signal(str)
    availability = Signal()
    settings_saved = Signal(object)
    history_cleared = Signal()


class _ChatBubble(QWidget):
    """Small widget used to render a chat entry."""

    def __init__(self, role: str, text: str, *, align_right: bool = False) -> None:
        super().__init__()
        outer = QHBoxLayout(self)
        outer.setContentsMargins(0, 0, 0, 0)
        outer.setSpacing(8)
        frame = QFrame()
        frame.setObjectName("chatBubble")
        frame.setProperty("bubbleRole", "user" if align_right else "assistant")
        frame_layout = QVBoxLayout(frame)
        frame_layout.setContentsMargins(12, 8, 12, 8)
        frame_layout.setSpacing(6)

        header = QLabel(role)
        header.setStyleSheet("font-weight: 600; font-size: 14px; letter-spacing: 0.04em;")
        frame_layout.addWidget(header)

        self._text_label = QLabel(text)
        self._text_label.setWordWrap(True)
        self._text_label.setTextInteractionFlags(Qt.TextInteractionFlag.TextSelectableByMouse)
        frame_layout.addWidget(self._text_label)

        if align_right:
            outer.addStretch(1)
            outer.addWidget(frame, 0, Qt.AlignmentFlag.AlignRight)
        else:
            outer.addWidget(frame, 0, Qt.AlignmentFlag.AlignLeft)
            outer.addStretch(1)

    def text(self) -> str:
        return self._text_label.text()


class VoiceMainWindow(QMainWindow):
    """Window driving the push-to-talk conversation."""

    def __init__(self, state: AppState, controller: VoiceController, logs: RingBufferHandler) -> None:
        super().__init__()
        self.setWindowTitle("Voice Chat")
        self.setMinimumSize(720, 600)

        self.state = state
        self.controller = controller
        self.logs = logs
        self._bridge = _UiBridge(self)
        self._network_info: QNetworkInformation | None = None

        self._status_label = QLabel("Starting...")
        self._status_label.setObjectName("statusLabel")
        self._status_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._api_label = QLabel("Checking server...")
        self._api_label.setObjectName("apiLabel")
        self._quota_label = QLabel("")
        self._quota_label.setObjectName("quotaLabel")
        self._quota_label.setTextFormat(Qt.TextFormat.RichText)

        self._persona_combo = QComboBox()
        for persona in PERSONAS:
            self._persona_combo.addItem(PERSONA_LABELS.get(persona, persona), userData=persona)
        self._persona_combo.setCurrentIndex(max(0, self._persona_combo.findData(state.settings.persona)))
        self._persona_combo.currentIndexChanged.connect(self._on_persona_changed)

        self._chat_list = QListWidget()
        self._chat_list.setObjectName("chatList")
        self._chat_list.setSpacing(6)
        self._chat_list.setSelectionMode(QListWidget.SelectionMode.NoSelection)
        self._chat_list.setMinimumHeight(260)

        self._record_button = QPushButton("Start recording")
        self._record_button.clicked.connect(self._on_record_clicked)
        self._record_button.setEnabled(False)
        self._shortcut_record = QShortcut(QKeySequence("Ctrl+Space"), self)
        self._shortcut_record.setContext(Qt.ShortcutContext.ApplicationShortcut)
        self._shortcut_record.activated.connect(self._on_record_clicked)

        self._build_layout()
        self._build_menu()
        self._apply_theme()
        self._connect_controller()
        self._watch_connectivity()
        self._refresh_quota()
        self.controller.probe()

    # ------------------------------------------------------------------ #
    # UI construction
    # ------------------------------------------------------------------ #
    def _build_layout(self) -> None:
        container = QWidget()
        layout = QVBoxLayout(container)
        layout.setContentsMargins(24, 24, 24, 24)
        layout.setSpacing(14)

        header = QHBoxLayout()
        header.addWidget(self._api_label, 1)
        header.addWidget(self._quota_label, 0, Qt.AlignmentFlag.AlignRight)
        layout.addLayout(header)

        layout.addWidget(self._status_label)

        persona_row = QHBoxLayout()
        persona_row.addWidget(QLabel("Persona:"))
        persona_row.addWidget(self._persona_combo, 1)
        layout.addLayout(persona_row)

        layout.addWidget(self._chat_list, 1)
        layout.addWidget(self._record_button)
        self.setCentralWidget(container)

    def _build_menu(self) -> None:
        menu = self.menuBar().addMenu("Options")
        settings_action = QAction("Settings...", self)
        settings_action.triggered.connect(self._open_settings_dialog)
        menu.addAction(settings_action)
        logs_action = QAction("Logs...", self)
        logs_action.triggered.connect(self._open_logs_dialog)
        menu.addAction(logs_action)
        refresh_action = QAction("Check server", self)
        refresh_action.triggered.connect(self.controller.probe)
        menu.addAction(refresh_action)
        menu.addSeparator()
        self._clear_action = QAction("Clear chat", self)
        self._clear_action.triggered.connect(self._on_clear_chat)
        menu.addAction(self._clear_action)

    def _apply_theme(self) -> None:
        self.setStyleSheet(
            """
            QWidget {
                background-color: #060710;
                color: #e9edff;
                font-family: 'Segoe UI', 'Inter', sans-serif;
            }
            QLabel {
                font-size: 15px;
            }
            QLabel#statusLabel {
                font-size: 17px;
                font-weight: 600;
                padding: 12px;
                border-radius: 16px;
                background: rgba(92, 124, 250, 0.16);
                border: 1px solid rgba(92, 124, 250, 0.35);
            }
            QLabel#apiLabel, QLabel#quotaLabel {
                font-size: 13px;
            }
            QListWidget#chatList {
                background: rgba(12, 18, 38, 0.5);
                border: 1px solid rgba(255, 255, 255, 0.05);
                border-radius: 12px;
                padding: 6px;
            }
            QFrame#chatBubble {
                border-radius: 16px;
                padding: 12px 14px;
                border: 1px solid rgba(255, 255, 255, 0.05);
            }
            QFrame#chatBubble[bubbleRole="assistant"] {
                background: rgba(90, 124, 250, 0.12);
                border-color: rgba(90, 124, 250, 0.3);
            }
            QFrame#chatBubble[bubbleRole="user"] {
                background: rgba(76, 201, 240, 0.12);
                border-color: rgba(76, 201, 240, 0.28);
            }
            QPushButton {
                border: none;
                border-radius: 18px;
                padding: 12px 24px;
                font-size: 15px;
                font-weight: 600;
                color: #eef2ff;
                background: rgba(92, 124, 250, 0.9);
            }
            QPushButton:disabled {
                background: rgba(255, 255, 255, 0.08);
                color: rgba(255, 255, 255, 0.45);
            }
            """
        )
        shadow = QGraphicsDropShadowEffect(self)
        shadow.setBlurRadius(36)
        shadow.setYOffset(12)
        shadow.setXOffset(0)
        shadow.setColor(QColor(92, 124, 250, 90))
        self._record_button.setGraphicsEffect(shadow)

    # ------------------------------------------------------------------ #
    # Controller wiring
    # ------------------------------------------------------------------ #
    def _connect_controller(self) -> None:
        orchestrator = self.controller.orchestrator
        # Listeners fire on the loop thread; the signals queue them onto Qt.
        orchestrator.on_status(self._bridge.status.emit)
        orchestrator.on_message(self._bridge.message.emit)
        orchestrator.on_phase(self._bridge.phase.emit)
        self.controller.monitor.subscribe(lambda _monitor: self._bridge.availability.emit())

        self._bridge.status.connect(self._apply_status)
        self._bridge.message.connect(self._append_message)
        self._bridge.phase.connect(self._apply_phase)
        self._bridge.availability.connect(self._apply_availability)
        self._bridge.settings_saved.connect(self._apply_saved_settings)
        self._bridge.history_cleared.connect(self._chat_list.clear)

    def _watch_connectivity(self) -> None:
        if not QNetworkInformation.loadDefaultBackend():
            return
        info = QNetworkInformation.instance()
        if info is None:
            return
        self._network_info = info
        info.reachabilityChanged.connect(self._on_reachability_changed)

    @Slot(QNetworkInformation.Reachability)
    def _on_reachability_changed(self, reachability: QNetworkInformation.Reachability) -> None:
        online = reachability in (
            QNetworkInformation.Reachability.Online,
            QNetworkInformation.Reachability.Unknown,
        )
        self.controller.set_online(online)

    # ------------------------------------------------------------------ #
    # Slots (Qt thread)
    # ------------------------------------------------------------------ #
    @Slot(object)
    def _apply_status(self, update: StatusUpdate) -> None:
        color = _STATUS_COLORS.get(update.level, _STATUS_COLORS["info"])
        self._status_label.setText(update.text)
        self._status_label.setStyleSheet(f"color: {color};")
        self._refresh_quota()

    @Slot(object)
    def _append_message(self, message: ChatMessage) -> None:
        is_user = message.role == "user"
        bubble = _ChatBubble("You" if is_user else "Assistant", message.content, align_right=is_user)
        item = QListWidgetItem()
        item.setSizeHint(bubble.sizeHint())
        self._chat_list.addItem(item)
        self._chat_list.setItemWidget(item, bubble)
        self._chat_list.scrollToBottom()

    @Slot(str)
    def _apply_phase(self, phase: Phase) -> None:
        if phase == "capturing":
            self._record_button.setText("Stop recording")
        elif phase == "processing":
            self._record_button.setText("Processing...")
        else:
            self._record_button.setText("Start recording")
        self._clear_action.setEnabled(phase == "idle")
        self._refresh_record_button()

    @Slot()
    def _apply_availability(self) -> None:
        monitor: AvailabilityMonitor = self.controller.monitor
        status = monitor.status
        text = monitor.describe()
        if status.version and status.reachable:
            text = f"{text} (server {status.version})"
        self._api_label.setText(text)
        self._refresh_record_button()
        if monitor.capture_enabled and self.state.phase == "idle":
            self._apply_status(StatusUpdate("Ready", "success"))

    @Slot(object)
    def _apply_saved_settings(self, settings: AppSettings) -> None:
        index = self._persona_combo.findData(settings.persona)
        if index >= 0 and index != self._persona_combo.currentIndex():
            self._persona_combo.blockSignals(True)
            self._persona_combo.setCurrentIndex(index)
            self._persona_combo.blockSignals(False)
        self._refresh_quota()

    def _refresh_record_button(self) -> None:
        phase = self.state.phase
        if phase == "capturing":
            self._record_button.setEnabled(True)
        elif phase == "processing":
            self._record_button.setEnabled(False)
        else:
            enabled = self.controller.monitor.capture_enabled and self.controller.orchestrator.microphone_error is None
            self._record_button.setEnabled(enabled)

    def _refresh_quota(self) -> None:
        parts = []
        for label, limit_state in self.state.rate_limits.displayable():
            color = _TIER_COLORS[limit_state.tier]
            parts.append(
                f"<span style='color:{color}'>&#9679;</span> {label}: "
                f"{limit_state.remaining}/{limit_state.limit}"
            )
        self._quota_label.setText("&nbsp;&nbsp;".join(parts))

    # ------------------------------------------------------------------ #
    # User actions
    # ------------------------------------------------------------------ #
    def _on_record_clicked(self) -> None:
        phase = self.state.phase
        if phase == "idle":
            self.controller.start_capture()
        elif phase == "capturing":
            self.controller.stop_capture()

    def _on_persona_changed(self, _index: int) -> None:
        persona = self._persona_combo.currentData()
        if not persona or persona == self.state.settings.persona:
            return
        self._save(replace(self.state.settings, persona=persona))

    def _on_clear_chat(self) -> None:
        self.controller.clear_history().add_done_callback(self._emit_cleared)

    def _emit_cleared(self, future) -> None:  # noqa: ANN001
        if future.cancelled() or future.exception() is not None:
            return
        if future.result():
            self._bridge.history_cleared.emit()

    def _open_settings_dialog(self) -> None:
        dialog = _SettingsDialog(self.state.settings, parent=self)
        result = dialog.exec()
        if dialog.reset_requested:
            future = self.controller.reset_settings()
        elif result == QDialog.DialogCode.Accepted:
            future = self.controller.save_settings(dialog.collect(self.state.settings))
        else:
            return
        future.add_done_callback(self._emit_saved)

    def _open_logs_dialog(self) -> None:
        LogViewerDialog(self.logs, parent=self).exec()

    def _save(self, settings: AppSettings) -> None:
        self.controller.save_settings(settings).add_done_callback(self._emit_saved)

    def _emit_saved(self, future) -> None:  # noqa: ANN001
        if future.cancelled() or future.exception() is not None:
            return
        self._bridge.settings_saved.emit(future.result())

    def closeEvent(self, event) -> None:  # type: ignore[override]  # noqa: ANN001
        self.controller.shutdown()
        super().closeEvent(event)


class _SettingsDialog(QDialog):
    def __init__(self, settings: AppSettings, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.setWindowTitle("Settings")
        self.setModal(True)
        self.reset_requested = False

        layout = QVBoxLayout(self)
        form = QFormLayout()

        self._rate_spin = self._speech_spin(settings.speech_rate)
        form.addRow("Speech rate:", self._rate_spin)
        self._pitch_spin = self._speech_spin(settings.speech_pitch)
        form.addRow("Speech pitch:", self._pitch_spin)

        self._persona_combo = QComboBox()
        for persona in PERSONAS:
            self._persona_combo.addItem(PERSONA_LABELS.get(persona, persona), userData=persona)
        self._persona_combo.setCurrentIndex(max(0, self._persona_combo.findData(settings.persona)))
        form.addRow("Persona:", self._persona_combo)

        self._autoplay_checkbox = QCheckBox("Read replies aloud")
        self._autoplay_checkbox.setChecked(settings.autoplay_reply)
        form.addRow("", self._autoplay_checkbox)

        self._endpoint_edit = QLineEdit(settings.backend_endpoint)
        self._endpoint_edit.setPlaceholderText(DEFAULT_BACKEND_URL)
        form.addRow("Backend URL:", self._endpoint_edit)
        layout.addLayout(form)

        buttons = QDialogButtonBox(
            QDialogButtonBox.StandardButton.Save
            | QDialogButtonBox.StandardButton.Cancel
            | QDialogButtonBox.StandardButton.RestoreDefaults
        )
        buttons.accepted.connect(self.accept)
        buttons.rejected.connect(self.reject)
        buttons.button(QDialogButtonBox.StandardButton.RestoreDefaults).clicked.connect(self._on_reset)
        layout.addWidget(buttons)

    @staticmethod
    def _speech_spin(value: float) -> QDoubleSpinBox:
        spin = QDoubleSpinBox()
        spin.setRange(SPEECH_MIN, SPEECH_MAX)
        spin.setSingleStep(0.1)
        spin.setDecimals(1)
        spin.setValue(value)
        return spin

    def _on_reset(self) -> None:
        self.reset_requested = True
        self.reject()

    def collect(self, current: AppSettings) -> AppSettings:
        return replace(
            current,
            speech_rate=round(float(self._rate_spin.value()), 2),
            speech_pitch=round(float(self._pitch_spin.value()), 2),
            persona=self._persona_combo.currentData() or current.persona,
            autoplay_reply=self._autoplay_checkbox.isChecked(),
            backend_endpoint=self._endpoint_edit.text().strip(),
        )
