"""Tests for configuration loading and validation."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from codeflow.config.settings import (
    ServerConfig,
    Settings,
    TerminalConfig,
    load_settings,
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    # Keep a stray .env or CODEFLOW_* variable from leaking into these tests
    monkeypatch.chdir(tmp_path)
    for key in ("CODEFLOW_SERVER__PORT", "CODEFLOW_SERVER__HOST", "CODEFLOW_TERMINAL__SHELL_NAME"):
        monkeypatch.delenv(key, raising=False)


class TestSettings:
    """Test configuration models and loading."""

    def test_default_settings(self) -> None:
        settings = Settings()
        assert settings.server.host == "127.0.0.1"
        assert settings.server.port == 3001
        assert settings.server.websocket_path == "/terminal"
        assert settings.terminal.shell_name == "bash"
        assert settings.terminal.forward_interrupt is False
        assert settings.logging.level == "INFO"

    def test_terminal_config_defaults(self) -> None:
        config = TerminalConfig()
        assert config.banner_enabled is True
        assert config.banner_delay == 0.1
        assert config.default_cwd is None
        assert config.extra_env == {}

    def test_invalid_values_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ServerConfig(port=0)
        with pytest.raises(ValidationError):
            ServerConfig(websocket_path="terminal")
        with pytest.raises(ValidationError):
            TerminalConfig(banner_delay=-1)

    def test_load_settings_missing_file(self, tmp_path: Path) -> None:
        settings = load_settings(tmp_path / "nonexistent.yaml")
        assert settings.server.port == 3001

    def test_load_settings_from_yaml(self, tmp_path: Path) -> None:
        config = tmp_path / "codeflow.yaml"
        config.write_text(
            "server:\n"
            "  port: 4000\n"
            "terminal:\n"
            "  shell_name: zsh\n"
            "  banner_enabled: false\n"
            "  extra_env:\n"
            "    CLAUDE_CODE_AVAILABLE: \"1\"\n"
        )
        settings = load_settings(config)
        assert settings.server.port == 4000
        assert settings.server.host == "127.0.0.1"
        assert settings.terminal.shell_name == "zsh"
        assert settings.terminal.banner_enabled is False
        assert settings.terminal.extra_env == {"CLAUDE_CODE_AVAILABLE": "1"}

    def test_empty_yaml_gives_defaults(self, tmp_path: Path) -> None:
        config = tmp_path / "empty.yaml"
        config.write_text("")
        assert load_settings(config).server.port == 3001

    def test_env_overrides_yaml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        config = tmp_path / "codeflow.yaml"
        config.write_text("server:\n  port: 4000\n  host: 0.0.0.0\n")
        monkeypatch.setenv("CODEFLOW_SERVER__PORT", "5000")
        settings = load_settings(config)
        assert settings.server.port == 5000
        assert settings.server.host == "0.0.0.0"
