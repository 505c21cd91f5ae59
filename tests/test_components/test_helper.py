"""Tests for the bot lookup helper and argument middleware."""

from __future__ import annotations

from pathlib import Path

import pytest
import typer

from botctl.components.helper import Helper, report_errors
from botctl.exceptions import ConfigError, NotFoundError
from botctl.exit_codes import EXIT_INVALID_USAGE, EXIT_NOT_FOUND
from botctl.models import GlobalConfig


class TestGetBotId:
    def test_reads_bot_yml(self, tmp_path: Path) -> None:
        (tmp_path / "bot.yml").write_text("id: bot-from-file\nname: demo\n", encoding="utf-8")
        helper = Helper(GlobalConfig(current_bot="configured"), workdir=tmp_path)
        assert helper.get_bot_id() == "bot-from-file"

    def test_falls_back_to_current_bot(self, tmp_path: Path) -> None:
        helper = Helper(GlobalConfig(current_bot="configured"), workdir=tmp_path)
        assert helper.get_bot_id() == "configured"

    def test_bot_yml_without_id(self, tmp_path: Path) -> None:
        (tmp_path / "bot.yml").write_text("name: demo\n", encoding="utf-8")
        helper = Helper(GlobalConfig(current_bot="configured"), workdir=tmp_path)
        assert helper.get_bot_id() == "configured"

    def test_uses_cwd_by_default(self, isolated_config: Path) -> None:
        (isolated_config / "bot.yml").write_text("id: cwd-bot\n", encoding="utf-8")
        assert Helper(GlobalConfig()).get_bot_id() == "cwd-bot"

    def test_no_bot(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="No bot selected"):
            Helper(GlobalConfig(), workdir=tmp_path).get_bot_id()

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        (tmp_path / "bot.yml").write_text("id: [broken\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            Helper(GlobalConfig(), workdir=tmp_path).get_bot_id()


class TestInjectBotId:
    def test_prepends_bot_id(self, tmp_path: Path) -> None:
        helper = Helper(GlobalConfig(current_bot="b1"), workdir=tmp_path)
        assert helper.inject_bot_id("prod", {"force": True}) == ("b1", "prod", {"force": True})

    def test_missing_bot_exits(self, tmp_path: Path, quiet_output) -> None:
        helper = Helper(GlobalConfig(), workdir=tmp_path)
        with pytest.raises(typer.Exit) as exc_info:
            helper.inject_bot_id({})
        assert exc_info.value.exit_code == ConfigError.exit_code


class TestParseData:
    def _helper(self) -> Helper:
        return Helper(GlobalConfig())

    def test_decodes_json(self) -> None:
        options = {"data": '{"type": "line"}', "url": None}
        result = self._helper().parse_data("b1", "prod", "fb", options)

        assert result == ("b1", "prod", "fb", {"data": {"type": "line"}, "url": None})
        assert options["data"] == '{"type": "line"}'

    def test_no_data(self) -> None:
        args = ("b1", {"data": None})
        assert self._helper().parse_data(*args) == args

    def test_no_options_mapping(self) -> None:
        assert self._helper().parse_data("a", "b") == ("a", "b")

    @pytest.mark.parametrize("raw", ["{broken", "[1, 2]", True])
    def test_invalid(self, raw: object, quiet_output) -> None:
        with pytest.raises(typer.Exit) as exc_info:
            self._helper().parse_data({"data": raw})
        assert exc_info.value.exit_code == EXIT_INVALID_USAGE


class TestReportErrors:
    def test_maps_error_to_exit(self, capsys: pytest.CaptureFixture[str]) -> None:
        @report_errors
        def fail() -> None:
            raise NotFoundError("Deployment 'x' not found")

        with pytest.raises(typer.Exit) as exc_info:
            fail()

        assert exc_info.value.exit_code == EXIT_NOT_FOUND
        assert "Deployment 'x' not found" in capsys.readouterr().err

    def test_passes_return_value(self) -> None:
        @report_errors
        def ok(value: int) -> int:
            return value * 2

        assert ok(2) == 4
        assert ok.__name__ == "ok"
