"""Conversation turn: record, transcribe, chat, speak."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Literal, Protocol, Sequence

from ..audio.speech import SpeechResult
from ..services.errors import (
    ApiError,
    EmptyTranscriptError,
    HttpStatusError,
    MicrophonePermissionError,
    NetworkError,
    RequestTimeoutError,
)
from ..services.schemas import ChatMessage
from ..state.app_state import AppState, Phase
from ..state.health import AvailabilityMonitor

logger = logging.getLogger(__name__)

StatusLevel = Literal["info", "success", "warning", "error"]


@dataclass(slots=True, frozen=True)
class StatusUpdate:
    text: str
    level: StatusLevel = "info"


class ConversationAPI(Protocol):
    async def transcribe(self, audio_b64: str) -> str: ...

    async def chat(self, messages: Sequence[ChatMessage], persona: str) -> str: ...


class Recorder(Protocol):
    def start(self) -> None: ...

    def stop_as_wav_base64(self) -> str: ...


class Speaker(Protocol):
    async def speak(self, text: str, *, rate: float = 1.0, pitch: float = 1.0) -> SpeechResult: ...


StatusListener = Callable[[StatusUpdate], None]
MessageListener = Callable[[ChatMessage], None]
PhaseListener = Callable[[Phase], None]


def describe_error(exc: Exception) -> str:
    """User-facing text for a failed turn."""
    if isinstance(exc, RequestTimeoutError):
        return "The server took too long to answer. Please try again."
    if isinstance(exc, NetworkError):
        return "Connection to the server failed. Check your network."
    if isinstance(exc, HttpStatusError):
        if exc.rate_limited:
            return "Too many requests. Please wait a moment."
        return f"Server error: {exc.message}"
    if isinstance(exc, EmptyTranscriptError):
        return "No speech recognized. Please try again."
    if isinstance(exc, MicrophonePermissionError):
        return f"Microphone unavailable: {exc}"
    return f"Error: {exc}"


class ConversationOrchestrator:
    """Runs one turn at a time against the proxy.

    Every method runs on the controller's event loop thread, so history
    mutations are serialized. Clearing is refused outside ``idle`` and a
    failed reply removes exactly the user message it appended.
    """

    def __init__(
        self,
        state: AppState,
        *,
        api: ConversationAPI,
        monitor: AvailabilityMonitor,
        recorder: Recorder,
        speaker: Speaker,
    ) -> None:
        self.state = state
        self.api = api
        self.monitor = monitor
        self.recorder = recorder
        self.speaker = speaker
        self.microphone_error: str | None = None
        self._status_listeners: list[StatusListener] = []
        self._message_listeners: list[MessageListener] = []
        self._phase_listeners: list[PhaseListener] = []

    # ---- listeners ---- #
    def on_status(self, listener: StatusListener) -> None:
        self._status_listeners.append(listener)

    def on_message(self, listener: MessageListener) -> None:
        self._message_listeners.append(listener)

    def on_phase(self, listener: PhaseListener) -> None:
        self._phase_listeners.append(listener)

    def _publish(self, text: str, level: StatusLevel = "info") -> None:
        update = StatusUpdate(text, level)
        for listener in list(self._status_listeners):
            listener(update)

    def _show(self, message: ChatMessage) -> None:
        for listener in list(self._message_listeners):
            listener(message)

    def _set_phase(self, phase: Phase) -> None:
        if self.state.phase == phase:
            return
        self.state.phase = phase
        for listener in list(self._phase_listeners):
            listener(phase)

    # ---- capture ---- #
    @property
    def can_capture(self) -> bool:
        return self.monitor.capture_enabled and self.microphone_error is None and self.state.phase == "idle"

    def start_capture(self) -> bool:
        """Begin recording. Returns False when capture is not possible right now."""
        if self.state.phase != "idle":
            return False
        if not self.monitor.capture_enabled:
            self._publish(f"Recording unavailable: {self.monitor.describe()}", "warning")
            return False
        if self.microphone_error is not None:
            self._publish(self.microphone_error, "error")
            return False
        try:
            self.recorder.start()
        except MicrophonePermissionError as exc:
            self.microphone_error = describe_error(exc)
            logger.error("Microphone access failed: %s", exc)
            self._publish(self.microphone_error, "error")
            self._set_phase("idle")
            return False
        self._set_phase("capturing")
        self._publish("Listening...")
        return True

    async def stop_capture(self) -> str | None:
        """Finish recording and run the turn. Returns the reply on success."""
        if self.state.phase != "capturing":
            return None
        self._set_phase("processing")
        try:
            try:
                payload = self.recorder.stop_as_wav_base64()
            except MicrophonePermissionError as exc:
                self.microphone_error = describe_error(exc)
                logger.error("Microphone release failed: %s", exc)
                self._publish(self.microphone_error, "error")
                return None
            return await self.run_turn(payload)
        finally:
            self._set_phase("idle")

    def allow_microphone_retry(self) -> None:
        self.microphone_error = None

    # ---- turn ---- #
    async def transcribe(self, audio_b64: str) -> str:
        text = (await self.api.transcribe(audio_b64)).strip()
        if not text:
            raise EmptyTranscriptError("Transcription returned no text")
        return text

    async def request_reply(self, text: str, persona: str) -> str:
        """Append the user turn, ask for a reply, and roll back if that fails."""
        history = self.state.history
        pending = ChatMessage(role="user", content=text)
        history.append(pending)
        try:
            reply = await self.api.chat(list(history), persona)
        except BaseException:
            _discard(history, pending)
            raise
        history.append(ChatMessage(role="assistant", content=reply))
        return reply

    async def speak(self, text: str) -> SpeechResult:
        settings = self.state.settings
        if not settings.autoplay_reply:
            return SpeechResult("skipped", "autoplay disabled")
        return await self.speaker.speak(text, rate=settings.speech_rate, pitch=settings.speech_pitch)

    async def run_turn(self, audio_b64: str) -> str | None:
        """Transcribe, reply and speak. Errors end up as a status update."""
        try:
            self._publish("Transcribing...")
            text = await self.transcribe(audio_b64)
            self.state.last_transcript = text
            self._show(ChatMessage(role="user", content=text))

            self._publish("Thinking...")
            reply = await self.request_reply(text, self.state.settings.persona)
            self._show(ChatMessage(role="assistant", content=reply))
        except NetworkError as exc:
            logger.error("Turn failed: %s", exc)
            self.monitor.mark_unreachable()
            self._publish(describe_error(exc), "error")
            return None
        except ApiError as exc:
            logger.error("Turn failed: %s", exc, extra={"details": getattr(exc, "details", None)})
            self._publish(describe_error(exc), "error")
            return None

        if self.state.settings.autoplay_reply:
            self._publish("Speaking...")
        result = await self.speak(reply)
        if result.outcome == "failed":
            self._publish(f"Reply received (speech unavailable: {result.detail})", "warning")
        else:
            self._publish("Ready", "success")
        return reply

    def clear_history(self) -> bool:
        """Empty the conversation. Refused while a turn is in flight."""
        if self.state.phase != "idle":
            self._publish("Wait for the current reply before clearing the chat.", "warning")
            return False
        self.state.history.clear()
        self.state.last_transcript = None
        logger.info("Conversation cleared")
        return True

    def report_failure(self, exc: BaseException) -> None:
        """Turn an unexpected background error into a status update."""
        self._publish(f"Unexpected error: {exc}", "error")


def _discard(history: list[ChatMessage], message: ChatMessage) -> None:
    # Identity match: an equal message from an earlier turn must survive.
    for index in range(len(history) - 1, -1, -1):
        if history[index] is message:
            del history[index]
            return
