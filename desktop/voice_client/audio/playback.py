"""Blocking speech playback through sounddevice."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable

import sounddevice as sd

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class PlaybackConfig:
    """Playback configuration."""

    channels: int = 1
    device_name: str | None = None


class SpeechPlayback:
    """Plays one PCM buffer at a time; stop() aborts the current one."""

    def __init__(
        self,
        config: PlaybackConfig | None = None,
        *,
        stream_factory: Callable[..., Any] | None = None,
    ) -> None:
        self.config = config or PlaybackConfig()
        self._stream_factory = stream_factory or sd.RawOutputStream
        self._lock = threading.Lock()
        self._stream: Any = None

    def play(self, pcm_data: bytes, sample_rate: int, *, pitch: float = 1.0) -> None:
        """Play int16 PCM and return once it has been written out.

        Pitch is applied by resampling on output: the buffer is played at
        ``sample_rate * pitch``, which raises or lowers the voice.
        """
        if not pcm_data or sample_rate <= 0:
            return
        stream = self._stream_factory(
            samplerate=int(round(sample_rate * pitch)),
            channels=self.config.channels,
            dtype="int16",
            device=self.config.device_name,
        )
        with self._lock:
            self._stream = stream
        try:
            stream.start()
            stream.write(pcm_data)
        finally:
            with self._lock:
                if self._stream is stream:
                    self._stream = None
            stream.close()

    def stop(self) -> None:
        """Abort the buffer currently playing."""
        with self._lock:
            stream = self._stream
        if stream is not None:
            LOGGER.debug("Aborting speech playback.")
            stream.abort()
