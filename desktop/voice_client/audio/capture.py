"""Microphone capture for one push-to-talk turn."""

from __future__ import annotations

import base64
import io
import logging
import wave
from dataclasses import dataclass
from threading import Lock
from typing import Any, Callable, Iterable

import sounddevice as sd

from ..services.errors import MicrophonePermissionError

LOGGER = logging.getLogger(__name__)

StreamFactory = Callable[..., Any]


@dataclass(slots=True)
class CaptureConfig:
    """Microphone capture configuration."""

    sample_rate: int = 16_000
    channels: int = 1
    frame_duration_ms: int = 20
    device_name: str | None = None


def input_devices() -> list[str]:
    """Names of the available input devices (empty when none or on audio errors)."""
    try:
        devices = sd.query_devices()
    except sd.PortAudioError as exc:
        LOGGER.warning("Could not query audio devices: %s", exc)
        return []
    return [
        device["name"]
        for device in devices
        if int(device.get("max_input_channels", 0)) > 0
    ]


def has_input_device() -> bool:
    return bool(input_devices())


def encode_wav(pcm: bytes, sample_rate: int, channels: int = 1) -> bytes:
    """Wrap signed 16-bit PCM in a WAV container."""
    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as wav:
        wav.setnchannels(channels)
        wav.setsampwidth(2)
        wav.setframerate(sample_rate)
        wav.writeframes(pcm)
    return buffer.getvalue()


class MicrophoneCapture:
    """Holds the microphone exclusively between start() and stop()."""

    def __init__(
        self,
        config: CaptureConfig | None = None,
        *,
        stream_factory: StreamFactory | None = None,
        device_probe: Callable[[], Iterable[str]] = input_devices,
    ) -> None:
        self.config = config or CaptureConfig()
        self._stream_factory = stream_factory or sd.RawInputStream
        self._device_probe = device_probe
        self._stream: Any = None
        self._frames: list[bytes] = []
        self._lock = Lock()

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #
    @property
    def active(self) -> bool:
        return self._stream is not None

    def start(self) -> None:
        """Open the input stream and begin buffering frames."""
        with self._lock:
            if self._stream is not None:
                return
            if not list(self._device_probe()):
                raise MicrophonePermissionError("No microphone is available")
            self._frames = []
            frame_size = int(self.config.sample_rate * self.config.frame_duration_ms / 1000)
            try:
                stream = self._stream_factory(
                    samplerate=self.config.sample_rate,
                    channels=self.config.channels,
                    dtype="int16",
                    blocksize=frame_size,
                    callback=self._on_frame,
                    device=self.config.device_name,
                )
                stream.start()
            except sd.PortAudioError as exc:
                raise MicrophonePermissionError(f"Microphone access failed: {exc}") from exc
            self._stream = stream
            LOGGER.debug("Microphone capture started.")

    def stop(self) -> bytes:
        """Release the microphone and return the buffered PCM."""
        with self._lock:
            stream, self._stream = self._stream, None
            frames, self._frames = self._frames, []
        if stream is not None:
            try:
                stream.stop()
            except sd.PortAudioError as exc:
                raise MicrophonePermissionError(f"Microphone release failed: {exc}") from exc
            finally:
                stream.close()
            LOGGER.debug("Microphone capture stopped (%d frames).", len(frames))
        return b"".join(frames)

    def stop_as_wav_base64(self) -> str:
        """Release the microphone and return the recording as a base64 WAV payload."""
        pcm = self.stop()
        wav_bytes = encode_wav(pcm, self.config.sample_rate, self.config.channels)
        return base64.b64encode(wav_bytes).decode("ascii")

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #
    def _on_frame(self, indata: bytes, frames: int, time, status) -> None:  # noqa: ANN001
        if status:  # pragma: no cover
            LOGGER.warning("Microphone status: %s", status)
        with self._lock:
            self._frames.append(bytes(indata))
