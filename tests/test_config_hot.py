from __future__ import annotations

import json

from app.core.config import get_settings


def test_config_hot_reload(tmp_path, monkeypatch):
    # use temp config.json
    cfg = tmp_path / "config.json"
    cfg.write_text(json.dumps({"rate_limit_api_max": 5}), encoding="utf-8")
    from app.core import config as config_module

    def _custom_source() -> dict[str, object]:
        try:
            return json.loads(cfg.read_text())
        except ValueError:
            return {}

    monkeypatch.delenv("RATE_LIMIT_API_MAX", raising=False)
    monkeypatch.setattr(config_module.Settings, "json_config_settings_source", staticmethod(_custom_source))
    get_settings.cache_clear()  # type: ignore[attr-defined]
    s = get_settings()
    assert s.rate_limit_api_max == 5
    # Update file
    cfg.write_text(json.dumps({"rate_limit_api_max": 7}), encoding="utf-8")
    get_settings.cache_clear()  # type: ignore[attr-defined]
    s2 = get_settings()
    assert s2.rate_limit_api_max == 7
    get_settings.cache_clear()  # type: ignore[attr-defined]
