"""Tests for configuration loading and validation."""

from __future__ import annotations

import os
from pathlib import Path

import pytest
from pydantic import ValidationError

from poof.config.settings import (
    PollingConfig,
    ScreenshotConfig,
    Settings,
    load_settings,
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep a developer's POOF_* variables and .env out of these tests."""
    for key in list(os.environ):
        if key.startswith("POOF_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)


class TestSettings:
    """Test configuration models and loading."""

    def test_default_settings(self) -> None:
        """Default Settings should be valid."""
        settings = Settings()
        assert settings.automation.terminal_app == "Terminal"
        assert settings.registry.binary == "zmx"
        assert settings.polling.poll_interval_ms == 100
        assert settings.polling.default_timeout_ms == 5000
        assert settings.polling.default_stable_ms == 500
        assert settings.screenshot.format == "png"
        assert settings.server.name == "poof-mcp"
        assert settings.logging.level == "INFO"

    def test_screenshot_config_defaults(self) -> None:
        config = ScreenshotConfig()
        assert config.max_dimension is None
        assert config.jpeg_quality == 85

    def test_polling_rejects_zero_interval(self) -> None:
        with pytest.raises(ValidationError):
            PollingConfig(poll_interval_ms=0)

    def test_screenshot_rejects_unknown_format(self) -> None:
        with pytest.raises(ValidationError):
            ScreenshotConfig(format="gif")

    def test_load_settings_missing_file(self, tmp_path: Path) -> None:
        """load_settings with missing file should return defaults."""
        settings = load_settings(tmp_path / "nonexistent.yaml")
        assert settings.registry.binary == "zmx"

    def test_load_settings_from_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "poof.yaml"
        path.write_text(
            "registry:\n"
            "  binary: /opt/zmx/bin/zmx\n"
            "polling:\n"
            "  poll_interval_ms: 50\n"
            "screenshot:\n"
            "  format: jpeg\n"
            "  max_dimension: 1280\n"
        )
        settings = load_settings(path)
        assert settings.registry.binary == "/opt/zmx/bin/zmx"
        assert settings.polling.poll_interval_ms == 50
        assert settings.polling.default_stable_ms == 500
        assert settings.screenshot.format == "jpeg"
        assert settings.screenshot.max_dimension == 1280

    def test_empty_yaml_is_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_settings(path).polling.poll_interval_ms == 100

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv("POOF_POLLING__POLL_INTERVAL_MS", "250")
        monkeypatch.setenv("POOF_AUTOMATION__TERMINAL_APP", "iTerm")
        settings = load_settings(tmp_path / "nonexistent.yaml")
        assert settings.polling.poll_interval_ms == 250
        assert settings.automation.terminal_app == "iTerm"

    def test_invalid_yaml_value(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("polling:\n  default_timeout_ms: -5\n")
        with pytest.raises(ValidationError):
            load_settings(path)
