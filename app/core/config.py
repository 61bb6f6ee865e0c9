"""Unified configuration of the proxy service."""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


PLACEHOLDER_VALUES: dict[str, str] = {
    "scaleway_api_key": "your_scaleway_api_key_here",
}

REQUIRED_SETTINGS: tuple[str, ...] = (
    "scaleway_api_key",
    "scaleway_stt_endpoint",
    "scaleway_chat_endpoint",
)


class ConfigurationError(RuntimeError):
    """Raised when required deployment settings are missing or placeholders."""

    def __init__(self, missing: list[str], placeholders: list[str]) -> None:
        self.missing = missing
        self.placeholders = placeholders
        super().__init__(self._build_message())

    def _build_message(self) -> str:
        lines = ["Required environment variables are not properly configured:"]
        if self.missing:
            lines.append("")
            lines.append("Missing variables:")
            lines.extend(f"  - {name}" for name in self.missing)
        if self.placeholders:
            lines.append("")
            lines.append("Placeholder values detected (need real values):")
            lines.extend(f"  - {name}" for name in self.placeholders)
        lines.append("")
        lines.append("Please copy .env.example to .env and configure all required variables.")
        lines.append("Get your Scaleway API key from: https://console.scaleway.com/project/credentials")
        return "\n".join(lines)


class Settings(BaseSettings):
    """Global settings of the proxy service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="allow",
    )

    # HTTP server
    host: str = "0.0.0.0"
    port: int = 3000
    cors_origins: list[str] = ["*"]
    static_dir: str = "web"

    # Upstream provider
    scaleway_api_key: str | None = None
    scaleway_stt_endpoint: str | None = None
    scaleway_chat_endpoint: str | None = None
    stt_model: str = "whisper-large-v3"
    chat_model: str = "mistral-nemo-instruct-2407"
    chat_max_tokens: int = 500
    chat_temperature: float = 0.7
    upstream_timeout_sec: float = 30.0

    # Rate limiting
    rate_limit_window_sec: int = 15 * 60
    rate_limit_api_max: int = 100
    rate_limit_static_max: int = 1000

    # Logs
    log_rotate_mb: int = 5
    log_retention_days: int = 7

    @property
    def capability_configured(self) -> bool:
        """True when the upstream credential is set to a real value."""
        key = self.scaleway_api_key
        return bool(key) and key != PLACEHOLDER_VALUES["scaleway_api_key"]

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            cls.json_config_settings_source,
            file_secret_settings,
        )

    @staticmethod
    def json_config_settings_source() -> dict[str, object]:
        """Load config.json from the repository root when present."""
        config_path = Path(__file__).resolve().parents[2] / "config.json"
        if config_path.is_file():
            try:
                return json.loads(config_path.read_text())
            except ValueError:
                return {}
        return {}


def validate_required_settings(settings: Settings) -> None:
    """Raise ConfigurationError listing every missing or placeholder setting."""
    missing: list[str] = []
    placeholders: list[str] = []
    for name in REQUIRED_SETTINGS:
        value = getattr(settings, name, None)
        if not value:
            missing.append(name.upper())
        elif PLACEHOLDER_VALUES.get(name) == value:
            placeholders.append(name.upper())
    if missing or placeholders:
        raise ConfigurationError(missing, placeholders)


@lru_cache()
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()
