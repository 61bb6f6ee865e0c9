"""Owns the asyncio loop thread and wires the client services together."""

from __future__ import annotations

import asyncio
import logging
import threading
from concurrent.futures import CancelledError as FutureCancelledError
from concurrent.futures import Future
from typing import Any, Callable, Coroutine, Optional

from ..audio.speech import SpeechSynthesizer
from ..config.settings import AppSettings
from ..config.store import reset_settings, save_settings
from ..services.api import VoiceChatAPI
from ..services.schemas import HealthStatus
from ..state.app_state import AppState
from ..state.health import AvailabilityMonitor
from .orchestrator import ConversationOrchestrator, Recorder

logger = logging.getLogger(__name__)

ErrorCallback = Callable[[BaseException], None]


class VoiceController:
    """High-level coordinator for the voice client.

    Qt calls the public methods from the UI thread; the work is scheduled
    onto the controller's loop with ``run_coroutine_threadsafe`` so all
    state changes happen on one thread.
    """

    def __init__(
        self,
        state: AppState,
        *,
        api: VoiceChatAPI | None = None,
        recorder: Recorder | None = None,
        speaker: SpeechSynthesizer | None = None,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        self.state = state
        if loop is not None:
            self.loop = loop
            self._owns_loop = False
            self._loop_thread: Optional[threading.Thread] = None
        else:
            self.loop = asyncio.new_event_loop()
            self._owns_loop = True
            self._loop_thread = threading.Thread(target=self._run_loop, name="voice-loop", daemon=True)
            self._loop_thread.start()

        self.api = api or VoiceChatAPI.from_settings(state.settings, tracker=state.rate_limits)
        self.monitor = AvailabilityMonitor(self.api)
        self.speaker = speaker or SpeechSynthesizer()
        if recorder is None:
            from ..audio.capture import MicrophoneCapture

            recorder = MicrophoneCapture()
        self.orchestrator = ConversationOrchestrator(
            state,
            api=self.api,
            monitor=self.monitor,
            recorder=recorder,
            speaker=self.speaker,
        )
        self._error_callback: Optional[ErrorCallback] = None

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #
    def set_error_callback(self, callback: Optional[ErrorCallback]) -> None:
        """Receive exceptions no other layer handled while starting up.

        The callback is dropped once the first health probe completes;
        later failures are logged and shown as a status update instead.
        """
        self._error_callback = callback
        self.loop.call_soon_threadsafe(self.loop.set_exception_handler, self._loop_exception_handler)

    def submit(self, coro: Coroutine[Any, Any, Any]) -> Future:
        future = asyncio.run_coroutine_threadsafe(coro, self.loop)
        future.add_done_callback(self._check_future)
        return future

    def probe(self) -> Future:
        return self.submit(self._probe())

    def set_online(self, online: bool) -> Future:
        return self.submit(self.monitor.set_online(online))

    def start_capture(self) -> Future:
        return self.submit(self._start_capture())

    def stop_capture(self) -> Future:
        return self.submit(self.orchestrator.stop_capture())

    def clear_history(self) -> Future:
        return self.submit(self._clear_history())

    def save_settings(self, settings: AppSettings) -> Future:
        return self.submit(self._apply_settings(settings, reset=False))

    def reset_settings(self) -> Future:
        return self.submit(self._apply_settings(AppSettings(), reset=True))

    def stop_speaking(self) -> None:
        self.speaker.stop()

    def shutdown(self) -> None:
        """Release audio and network resources and stop the loop."""
        self.speaker.stop()
        if self.loop.is_running():
            future = asyncio.run_coroutine_threadsafe(self.api.close(), self.loop)
            try:
                future.result(timeout=2)
            except Exception as exc:  # noqa: BLE001
                logger.warning("Closing the HTTP client failed: %s", exc)
        if self._owns_loop and self._loop_thread:
            self.loop.call_soon_threadsafe(self.loop.stop)
            self._loop_thread.join(timeout=1)
            self._loop_thread = None

    # ------------------------------------------------------------------ #
    # Coroutines (loop thread)
    # ------------------------------------------------------------------ #
    async def _probe(self) -> HealthStatus:
        self.orchestrator.allow_microphone_retry()
        status = await self.monitor.probe()
        if self._error_callback is not None:
            logger.info("Voice client started")
            self._error_callback = None
        return status

    async def _start_capture(self) -> bool:
        return self.orchestrator.start_capture()

    async def _clear_history(self) -> bool:
        return self.orchestrator.clear_history()

    async def _apply_settings(self, settings: AppSettings, *, reset: bool) -> AppSettings:
        previous_url = self.state.settings.resolved_backend_url()
        saved = reset_settings() if reset else save_settings(settings)
        self.state.settings = saved
        new_url = saved.resolved_backend_url()
        if new_url != previous_url:
            logger.info("Backend endpoint changed to %s", new_url)
            self.api.set_base_url(new_url)
            self.state.rate_limits.reset()
            await self.monitor.probe()
        return saved

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #
    def _check_future(self, future: Future) -> None:
        try:
            future.result()
        except (asyncio.CancelledError, FutureCancelledError):
            return
        except Exception as exc:  # noqa: BLE001
            logger.error("Background task failed", exc_info=exc)
            self._report(exc)

    def _loop_exception_handler(self, loop: asyncio.AbstractEventLoop, context: dict[str, Any]) -> None:
        exc = context.get("exception")
        logger.error("Unhandled error in event loop: %s", context.get("message"), exc_info=exc)
        if exc is not None:
            self._report(exc)

    def _report(self, exc: BaseException) -> None:
        callback = self._error_callback
        if callback is not None:
            callback(exc)
        else:
            self.orchestrator.report_failure(exc)

    def _run_loop(self) -> None:
        """Run the owned asyncio loop in a dedicated thread."""
        asyncio.set_event_loop(self.loop)
        self.loop.run_forever()
