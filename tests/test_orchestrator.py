import asyncio
from typing import Sequence

import pytest

from desktop.voice_client.audio.speech import SpeechResult
from desktop.voice_client.config.settings import AppSettings
from desktop.voice_client.runtime.orchestrator import ConversationOrchestrator, StatusUpdate
from desktop.voice_client.services.errors import HttpStatusError, MicrophonePermissionError, NetworkError
from desktop.voice_client.services.schemas import ChatMessage, HealthStatus
from desktop.voice_client.state.app_state import AppState
from desktop.voice_client.state.health import AvailabilityMonitor


class FakeAPI:
    def __init__(self, *, transcript: str = "Hallo", reply: str = "Hi there", chat_error: Exception | None = None,
                 transcribe_error: Exception | None = None) -> None:
        self.transcript = transcript
        self.reply = reply
        self.chat_error = chat_error
        self.transcribe_error = transcribe_error
        self.chat_calls: list[tuple[list[ChatMessage], str]] = []

    async def health(self) -> HealthStatus:
        return HealthStatus(reachable=True, capability_configured=True)

    async def transcribe(self, audio_b64: str) -> str:
        if self.transcribe_error:
            raise self.transcribe_error
        return self.transcript

    async def chat(self, messages: Sequence[ChatMessage], persona: str) -> str:
        self.chat_calls.append((list(messages), persona))
        if self.chat_error:
            raise self.chat_error
        return self.reply


class SlowChatAPI(FakeAPI):
    """Chat blocks until the test releases it."""

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self.chat_started = asyncio.Event()
        self.release = asyncio.Event()

    async def chat(self, messages: Sequence[ChatMessage], persona: str) -> str:
        self.chat_started.set()
        await self.release.wait()
        return await super().chat(messages, persona)


class FakeRecorder:
    def __init__(self, error: Exception | None = None, stop_error: Exception | None = None) -> None:
        self.error = error
        self.stop_error = stop_error
        self.started = 0

    def start(self) -> None:
        if self.error:
            raise self.error
        self.started += 1

    def stop_as_wav_base64(self) -> str:
        if self.stop_error:
            raise self.stop_error
        return "UklGRg=="


class FakeSpeaker:
    def __init__(self) -> None:
        self.spoken: list[tuple[str, float, float]] = []

    async def speak(self, text: str, *, rate: float = 1.0, pitch: float = 1.0) -> SpeechResult:
        self.spoken.append((text, rate, pitch))
        return SpeechResult("spoken")


async def _orchestrator(api: FakeAPI, *, recorder: FakeRecorder | None = None, settings: AppSettings | None = None):
    state = AppState(settings=settings or AppSettings())
    monitor = AvailabilityMonitor(api)
    await monitor.probe()
    speaker = FakeSpeaker()
    orchestrator = ConversationOrchestrator(
        state, api=api, monitor=monitor, recorder=recorder or FakeRecorder(), speaker=speaker
    )
    updates: list[StatusUpdate] = []
    orchestrator.on_status(updates.append)
    return orchestrator, speaker, updates


@pytest.mark.asyncio
async def test_successful_turn_appends_user_and_assistant() -> None:
    api = FakeAPI()
    orchestrator, speaker, updates = await _orchestrator(api, settings=AppSettings(persona="storyteller", speech_rate=1.5))
    phases: list[str] = []
    orchestrator.on_phase(phases.append)

    assert orchestrator.start_capture()
    reply = await orchestrator.stop_capture()

    assert reply == "Hi there"
    assert orchestrator.state.history == [ChatMessage("user", "Hallo"), ChatMessage("assistant", "Hi there")]
    assert api.chat_calls[0] == ([ChatMessage("user", "Hallo")], "storyteller")
    assert speaker.spoken == [("Hi there", 1.5, 1.0)]
    assert phases == ["capturing", "processing", "idle"]
    assert updates[-1] == StatusUpdate("Ready", "success")


@pytest.mark.asyncio
async def test_failed_chat_rolls_back_user_message() -> None:
    api = FakeAPI(chat_error=HttpStatusError(500, "Chat request failed"))
    orchestrator, speaker, updates = await _orchestrator(api)
    orchestrator.state.history.extend([ChatMessage("user", "a"), ChatMessage("assistant", "b")])

    assert await orchestrator.run_turn("UklGRg==") is None

    assert orchestrator.state.history == [ChatMessage("user", "a"), ChatMessage("assistant", "b")]
    assert speaker.spoken == []
    assert updates[-1].level == "error"
    assert "Chat request failed" in updates[-1].text


@pytest.mark.asyncio
async def test_request_reply_reraises_after_rollback() -> None:
    api = FakeAPI(chat_error=NetworkError("offline"))
    orchestrator, _, _ = await _orchestrator(api)

    with pytest.raises(NetworkError):
        await orchestrator.request_reply("Hallo", "general")
    assert orchestrator.state.history == []


@pytest.mark.asyncio
async def test_network_error_marks_backend_unreachable() -> None:
    api = FakeAPI(chat_error=NetworkError("offline"))
    orchestrator, _, updates = await _orchestrator(api)

    await orchestrator.run_turn("UklGRg==")

    assert not orchestrator.monitor.capture_enabled
    assert orchestrator.state.history == []
    assert "Connection to the server failed" in updates[-1].text


@pytest.mark.asyncio
async def test_transcription_failure_leaves_history_untouched() -> None:
    api = FakeAPI(transcribe_error=HttpStatusError(500, "Transcription failed"))
    orchestrator, _, _ = await _orchestrator(api)

    await orchestrator.run_turn("UklGRg==")

    assert orchestrator.state.history == []
    assert api.chat_calls == []


@pytest.mark.asyncio
async def test_empty_transcript_counts_as_failure() -> None:
    api = FakeAPI(transcript="   ")
    orchestrator, _, updates = await _orchestrator(api)

    assert await orchestrator.run_turn("UklGRg==") is None
    assert api.chat_calls == []
    assert updates[-1].text.startswith("No speech recognized")


@pytest.mark.asyncio
async def test_autoplay_off_skips_speech() -> None:
    orchestrator, speaker, _ = await _orchestrator(FakeAPI(), settings=AppSettings(autoplay_reply=False))

    result = await orchestrator.speak("Hi")

    assert result.outcome == "skipped"
    assert speaker.spoken == []


@pytest.mark.asyncio
async def test_microphone_denied_disables_capture() -> None:
    recorder = FakeRecorder(error=MicrophonePermissionError("No microphone is available"))
    orchestrator, _, updates = await _orchestrator(FakeAPI(), recorder=recorder)

    assert not orchestrator.start_capture()
    assert orchestrator.state.phase == "idle"
    assert orchestrator.microphone_error is not None
    assert not orchestrator.can_capture
    assert updates[-1].level == "error"

    orchestrator.allow_microphone_retry()
    assert orchestrator.can_capture


@pytest.mark.asyncio
async def test_capture_requires_availability() -> None:
    api = FakeAPI()
    orchestrator, _, updates = await _orchestrator(api)
    await orchestrator.monitor.set_online(False)

    assert not orchestrator.start_capture()
    assert orchestrator.recorder.started == 0
    assert updates[-1].level == "warning"


@pytest.mark.asyncio
async def test_clear_history() -> None:
    orchestrator, _, _ = await _orchestrator(FakeAPI())
    await orchestrator.run_turn("UklGRg==")
    orchestrator.clear_history()
    assert orchestrator.state.history == []
    assert orchestrator.clear_history() is True


@pytest.mark.asyncio
async def test_clear_is_refused_while_reply_is_pending() -> None:
    api = SlowChatAPI(chat_error=NetworkError("offline"))
    orchestrator, _, updates = await _orchestrator(api)
    earlier = ChatMessage("user", "Hallo")
    orchestrator.state.history.extend([earlier, ChatMessage("assistant", "Hi")])

    assert orchestrator.start_capture()
    turn = asyncio.create_task(orchestrator.stop_capture())
    await api.chat_started.wait()

    assert orchestrator.clear_history() is False
    assert updates[-1].level == "warning"
    assert len(orchestrator.state.history) == 3

    api.release.set()
    assert await turn is None

    assert orchestrator.state.history == [ChatMessage("user", "Hallo"), ChatMessage("assistant", "Hi")]
    assert orchestrator.state.history[0] is earlier
    assert orchestrator.state.phase == "idle"


@pytest.mark.asyncio
async def test_successful_reply_after_refused_clear_keeps_turn_pair() -> None:
    api = SlowChatAPI()
    orchestrator, _, _ = await _orchestrator(api)

    assert orchestrator.start_capture()
    turn = asyncio.create_task(orchestrator.stop_capture())
    await api.chat_started.wait()
    assert orchestrator.clear_history() is False
    api.release.set()

    assert await turn == "Hi there"
    assert orchestrator.state.history == [ChatMessage("user", "Hallo"), ChatMessage("assistant", "Hi there")]


@pytest.mark.asyncio
async def test_microphone_failure_on_stop_returns_to_idle() -> None:
    recorder = FakeRecorder(stop_error=MicrophonePermissionError("stream vanished"))
    orchestrator, _, updates = await _orchestrator(FakeAPI(), recorder=recorder)

    assert orchestrator.start_capture()
    assert await orchestrator.stop_capture() is None

    assert orchestrator.state.phase == "idle"
    assert orchestrator.microphone_error is not None
    assert updates[-1].level == "error"
    assert orchestrator.state.history == []
