"""Shared test fixtures for botctl.

Provides fixtures for isolated config environments, output state, fake
management API transports, and running compiled CLI commands. They are
discovered by pytest and available to all test modules without imports.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable

import httpx
import pytest

from botctl.models import GlobalConfig, RequestConfig
from botctl.output import OutputFormat, OutputManager, reset_output, set_output

BASE_URL = "https://manage.example.com"
BOT_ID = "739b5e9f-d5e1-44b1-93a8-954d291df170"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When CliRunner redirects those streams and the test
    finishes, the cached references become stale. Resetting forces a fresh
    manager on next use.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME and XDG_DATA_HOME to subdirectories of tmp_path so
    that tests never touch real user config. Clears all BOTCTL_* environment
    variables and changes the working directory to tmp_path.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    for var in ["BOTCTL_BASE_URL", "BOTCTL_TOKEN", "BOTCTL_BOT", "BOTCTL_COMMANDS"]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def api_config() -> GlobalConfig:
    """A config pointing at a fake management API, with retries disabled."""
    return GlobalConfig(
        base_url=BASE_URL,
        current_bot=BOT_ID,
        request=RequestConfig(timeout=5, max_retries=0),
    )


# ---------------------------------------------------------------------------
# Fake management API
# ---------------------------------------------------------------------------


class FakeManagementServer:
    """In-memory management API served through :class:`httpx.MockTransport`.

    Records every request in :attr:`requests` as ``(method, path, body)``.
    """

    def __init__(self, versions: list[str] | None = None) -> None:
        self.versions = versions if versions is not None else ["1.0.0", "1.0.5"]
        self.deployments: dict[str, dict[str, Any]] = {}
        self.requests: list[tuple[str, str, Any]] = []
        self._next_id = 0

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def add_deployment(self, name: str, version: str = "1.0.5", **channels: str) -> None:
        self.deployments[name] = {
            "id": f"dep-{name}",
            "name": name,
            "botId": BOT_ID,
            "botVersion": version,
            "channels": dict(channels),
        }

    def handle(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else None
        parts = [p for p in request.url.path.split("/") if p]
        self.requests.append((request.method, request.url.path, body))

        # /bots/{bot}/versions
        if parts[2:] == ["versions"]:
            latest = self.versions[-1] if self.versions else None
            return httpx.Response(200, json={"versions": self.versions, "latest": latest})

        # /bots/{bot}/deployments[/{name}[/channels[/{id}]]]
        rest = parts[3:]
        if not rest:
            if request.method == "GET":
                return httpx.Response(200, json=list(self.deployments.values()))
            record = {"id": self._new_id("dep"), "botId": BOT_ID, **body}
            self.deployments[body["name"]] = record
            return httpx.Response(201, json=record)

        name = rest[0]
        record = self.deployments.get(name)
        if record is None:
            return httpx.Response(404, json={"message": "Deployment not found."})

        if len(rest) == 1:
            if request.method == "GET":
                return httpx.Response(200, json=record)
            if request.method == "PUT":
                record.update(body)
                return httpx.Response(200, json=record)
            del self.deployments[name]
            return httpx.Response(204)

        if request.method == "POST":
            channel = {"id": body.get("id") or self._new_id("chan"), **body}
            record["channels"][body["name"]] = channel["id"]
            return httpx.Response(201, json=channel)
        record["channels"] = {
            k: v for k, v in record["channels"].items() if v != rest[2]
        }
        return httpx.Response(204)

    def _new_id(self, prefix: str) -> str:
        self._next_id += 1
        return f"{prefix}-{self._next_id}"


@pytest.fixture
def fake_server() -> FakeManagementServer:
    return FakeManagementServer()


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def json_output() -> OutputManager:
    """Install a JSON-format OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.JSON, no_color=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Click CLI test runner for the compiled root group."""
    from click.testing import CliRunner

    return CliRunner()


@pytest.fixture
def write_commands(tmp_path: Path) -> Callable[[str], Path]:
    """Write a YAML command tree to a temporary file and return its path."""

    def _write(text: str) -> Path:
        path = tmp_path / "commands.yml"
        path.write_text(text, encoding="utf-8")
        return path

    return _write
