"""Text-to-speech helpers using Piper."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

from piper import PiperVoice, SynthesisConfig


@dataclass(slots=True)
class PiperConfig:
    """Piper model configuration."""

    model_path: Path
    config_path: Path
    speaker_id: int | None = None
    noise_scale: float = 0.667


def find_voice(root: Path) -> PiperConfig:
    """Locate the first Piper model (``.onnx`` with its ``.onnx.json``) below root."""
    for model_path in sorted(root.rglob("*.onnx")):
        config_path = model_path.with_name(model_path.name + ".json")
        if config_path.exists():
            return PiperConfig(model_path=model_path, config_path=config_path)
    raise FileNotFoundError(f"No Piper voice found under {root}")


class PiperTTS:
    """Thin wrapper around PiperVoice."""

    def __init__(self, config: PiperConfig) -> None:
        self.config = config
        self._voice = self._load_voice(config)

    def synthesize(self, text: str, *, length_scale: float = 1.0) -> tuple[bytes, int]:
        """Generate PCM audio for the given text."""
        chunks: list[bytes] = []
        sample_rate = 0
        for chunk, rate, _channels in self.synthesize_stream(text, length_scale=length_scale):
            sample_rate = rate
            chunks.append(chunk)
        return b"".join(chunks), sample_rate

    def synthesize_stream(self, text: str, *, length_scale: float = 1.0) -> Iterator[tuple[bytes, int, int]]:
        """Yield audio chunks (bytes, sample_rate, channels)."""
        text = self.sanitize_text(text)
        if not text:
            return
        kwargs: dict[str, float | int] = {"length_scale": length_scale}
        if self.config.speaker_id is not None:
            kwargs["speaker_id"] = self.config.speaker_id
        if self.config.noise_scale > 0:
            kwargs["noise_scale"] = self.config.noise_scale
        syn_config = SynthesisConfig(**kwargs)
        for chunk in self._voice.synthesize(text, syn_config=syn_config):
            yield chunk.audio_int16_bytes, chunk.sample_rate, chunk.sample_channels or 1

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #
    @staticmethod
    def _load_voice(config: PiperConfig) -> PiperVoice:
        if not config.model_path.exists():
            raise FileNotFoundError(f"Piper model not found: {config.model_path}")
        if not config.config_path.exists():
            raise FileNotFoundError(f"Piper config not found: {config.config_path}")
        return PiperVoice.load(str(config.model_path), str(config.config_path))

    @staticmethod
    def sanitize_text(text: str) -> str:
        """Drop markdown markers the voice would read out literally."""
        cleaned = re.sub(r"[*_`#<>]", " ", text)
        return re.sub(r"\s+", " ", cleaned).strip()
