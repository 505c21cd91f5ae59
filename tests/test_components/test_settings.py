"""Tests for the configuration handlers."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest
import typer

from botctl.components.settings import Settings
from botctl.config import load_global_config, save_global_config
from botctl.exit_codes import EXIT_INVALID_USAGE
from botctl.models import GlobalConfig, RequestConfig


@pytest.fixture
def settings(isolated_config: Path, json_output) -> Settings:
    return Settings(GlobalConfig(base_url="https://manage.example.com"))


class TestShow:
    def test_prints_effective_config(self, settings: Settings, capsys) -> None:
        settings.show({})

        captured = capsys.readouterr()
        data = json.loads(captured.out)
        assert data["base_url"] == "https://manage.example.com"
        assert data["request"]["timeout"] == 30
        assert "Config file:" in captured.err


class TestSet:
    def test_string_value(self, settings: Settings, capsys) -> None:
        settings.set("base_url", "https://other.example.com", {})

        assert load_global_config().base_url == "https://other.example.com"
        assert "Set base_url = https://other.example.com" in capsys.readouterr().err

    def test_int_coercion(self, settings: Settings) -> None:
        settings.set("request.timeout", "60", {})
        assert load_global_config().request.timeout == 60

    def test_bool_coercion(self, settings: Settings) -> None:
        settings.set("request.verify_ssl", "no", {})
        assert load_global_config().request.verify_ssl is False

    def test_keeps_other_values(self, settings: Settings) -> None:
        save_global_config(GlobalConfig(current_bot="b1", request=RequestConfig(max_retries=1)))
        settings.set("output.format", "json", {})

        config = load_global_config()
        assert config.current_bot == "b1"
        assert config.request.max_retries == 1
        assert config.output.format == "json"

    @pytest.mark.parametrize(
        "key, value, message",
        [
            ("request.timeout", "soon", "Expected integer"),
            ("nope.timeout", "1", "Invalid config key"),
            ("request.nope", "1", "Unknown config key"),
            ("request", "1", "Unknown config key"),
        ],
    )
    def test_rejected(self, settings: Settings, capsys, key: str, value: str, message: str) -> None:
        with pytest.raises(typer.Exit) as exc_info:
            settings.set(key, value, {})

        assert exc_info.value.exit_code == EXIT_INVALID_USAGE
        assert message in capsys.readouterr().err
        assert load_global_config() == GlobalConfig()


class TestReset:
    def test_force(self, settings: Settings) -> None:
        save_global_config(GlobalConfig(current_bot="b1"))
        settings.reset({"force": True})
        assert load_global_config() == GlobalConfig()

    def test_declined(self, settings: Settings, capsys) -> None:
        save_global_config(GlobalConfig(current_bot="b1"))

        with patch("botctl.components.settings.typer.confirm", return_value=False):
            settings.reset({"force": False})

        assert load_global_config().current_bot == "b1"
        assert "Cancelled." in capsys.readouterr().err

    def test_confirmed(self, settings: Settings) -> None:
        save_global_config(GlobalConfig(current_bot="b1"))

        with patch("botctl.components.settings.typer.confirm", return_value=True):
            settings.reset({"force": False})

        assert load_global_config().current_bot is None


class TestUseBot:
    def test_saves_and_updates_running_config(self, settings: Settings, capsys) -> None:
        settings.use_bot("bot-42", {})

        assert load_global_config().current_bot == "bot-42"
        assert settings.config.current_bot == "bot-42"
        assert "Using bot bot-42" in capsys.readouterr().err
