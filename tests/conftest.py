import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))
from app.core.config import Settings  # noqa: E402


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        scaleway_api_key="test-key",
        scaleway_stt_endpoint="https://stt.example.test/v1/audio/transcriptions",
        scaleway_chat_endpoint="https://chat.example.test/v1/chat/completions",
        static_dir=str(tmp_path / "web"),
    )


@pytest.fixture
def voice_config_dir(tmp_path: Path, monkeypatch) -> Path:
    target = tmp_path / "voicechat"
    monkeypatch.setenv("VOICECHAT_CONFIG_DIR", str(target))
    return target
