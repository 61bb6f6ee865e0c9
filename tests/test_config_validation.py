import pytest

from app.core.config import ConfigurationError, Settings, validate_required_settings
from app.main import create_app


def test_valid_settings_pass(settings: Settings) -> None:
    validate_required_settings(settings)
    assert settings.capability_configured is True


def test_missing_and_placeholder_values_are_all_reported() -> None:
    settings = Settings(
        scaleway_api_key="your_scaleway_api_key_here",
        scaleway_stt_endpoint=None,
        scaleway_chat_endpoint="",
    )
    with pytest.raises(ConfigurationError) as exc:
        validate_required_settings(settings)

    err = exc.value
    assert err.missing == ["SCALEWAY_STT_ENDPOINT", "SCALEWAY_CHAT_ENDPOINT"]
    assert err.placeholders == ["SCALEWAY_API_KEY"]
    message = str(err)
    assert "Missing variables:" in message
    assert "Placeholder values detected" in message
    assert ".env.example" in message


def test_app_construction_fails_fast(settings: Settings) -> None:
    settings.scaleway_api_key = None
    with pytest.raises(ConfigurationError) as exc:
        create_app(settings)
    assert exc.value.missing == ["SCALEWAY_API_KEY"]


def test_env_variables_are_read(monkeypatch) -> None:
    monkeypatch.setenv("SCALEWAY_API_KEY", "from-env")
    monkeypatch.setenv("RATE_LIMIT_API_MAX", "42")
    settings = Settings()
    assert settings.scaleway_api_key == "from-env"
    assert settings.rate_limit_api_max == 42
