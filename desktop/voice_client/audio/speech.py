"""Awaitable speech output: Piper synthesis followed by playback."""

from __future__ import annotations

import asyncio
import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Literal, Protocol

from ..config.paths import tts_models_dir
from ..config.settings import clamp_speech

LOGGER = logging.getLogger(__name__)

SpeechOutcome = Literal["spoken", "skipped", "failed"]


@dataclass(slots=True, frozen=True)
class SpeechResult:
    outcome: SpeechOutcome
    detail: str | None = None

    @property
    def spoken(self) -> bool:
        return self.outcome == "spoken"


class SpeechEngine(Protocol):
    def synthesize(self, text: str, *, length_scale: float = 1.0) -> tuple[bytes, int]: ...


class AudioSink(Protocol):
    def play(self, pcm_data: bytes, sample_rate: int, *, pitch: float = 1.0) -> None: ...

    def stop(self) -> None: ...


def _load_piper(root: Path) -> SpeechEngine:
    from .tts import PiperTTS, find_voice

    return PiperTTS(find_voice(root))


class SpeechSynthesizer:
    """Speaks replies; a missing voice model makes speak() fail softly."""

    def __init__(
        self,
        *,
        engine_factory: Callable[[], SpeechEngine] | None = None,
        sink: AudioSink | None = None,
        models_dir: Path | None = None,
    ) -> None:
        self._engine_factory = engine_factory or (lambda: _load_piper(models_dir or tts_models_dir()))
        if sink is None:
            from .playback import SpeechPlayback

            sink = SpeechPlayback()
        self._sink = sink
        self._engine: SpeechEngine | None = None
        self._engine_lock = threading.Lock()

    def _ensure_engine(self) -> SpeechEngine:
        with self._engine_lock:
            if self._engine is None:
                self._engine = self._engine_factory()
            return self._engine

    def _speak_blocking(self, text: str, rate: float, pitch: float) -> None:
        engine = self._ensure_engine()
        # Playback at sample_rate * pitch shortens the audio by pitch; length_scale
        # compensates so only rate changes the duration.
        length_scale = pitch / rate
        pcm, sample_rate = engine.synthesize(text, length_scale=length_scale)
        self._sink.play(pcm, sample_rate, pitch=pitch)

    async def speak(self, text: str, *, rate: float = 1.0, pitch: float = 1.0) -> SpeechResult:
        """Synthesize and play text. Never raises; failures come back as a result."""
        if not text.strip():
            return SpeechResult("skipped", "nothing to say")
        rate, pitch = clamp_speech(rate), clamp_speech(pitch)
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, self._speak_blocking, text, rate, pitch)
        except FileNotFoundError as exc:
            LOGGER.warning("Speech output unavailable: %s", exc)
            return SpeechResult("failed", str(exc))
        except Exception as exc:  # noqa: BLE001
            LOGGER.error("Speech output failed", exc_info=exc)
            return SpeechResult("failed", str(exc))
        return SpeechResult("spoken")

    def stop(self) -> None:
        self._sink.stop()

    def reload_voice(self) -> None:
        """Forget the loaded voice so the next speak() loads it again."""
        with self._engine_lock:
            self._engine = None
