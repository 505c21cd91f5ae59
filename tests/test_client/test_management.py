"""Tests for the typed management API operations."""

from __future__ import annotations

import httpx
import pytest

from botctl.client import ManagementApi
from botctl.client.management import extract_response_data
from botctl.exceptions import NotFoundError
from botctl.models import GlobalConfig


@pytest.fixture
def api(api_config: GlobalConfig, fake_server) -> ManagementApi:
    return ManagementApi(api_config, transport=fake_server.transport)


class TestVersions:
    def test_bot_versions(self, api: ManagementApi, fake_server) -> None:
        versions = api.bot_versions("bot-1")

        assert versions.versions == ["1.0.0", "1.0.5"]
        assert versions.latest == "1.0.5"
        assert fake_server.requests[0][:2] == ("GET", "/bots/bot-1/versions")

    def test_bare_list_response(self, api_config: GlobalConfig) -> None:
        transport = httpx.MockTransport(lambda r: httpx.Response(200, json=["0.1", "0.2"]))
        versions = ManagementApi(api_config, transport=transport).bot_versions("b")
        assert versions.latest == "0.2"

    def test_latest_defaults_to_last(self, api_config: GlobalConfig) -> None:
        transport = httpx.MockTransport(lambda r: httpx.Response(200, json={"versions": ["1", "2"]}))
        assert ManagementApi(api_config, transport=transport).bot_versions("b").latest == "2"


class TestDeployments:
    def test_get(self, api: ManagementApi, fake_server) -> None:
        fake_server.add_deployment("prod", fb="chan-fb")

        dep = api.get_deployment("bot-1", "prod")

        assert dep.name == "prod"
        assert dep.channels == {"fb": "chan-fb"}

    def test_get_missing(self, api: ManagementApi) -> None:
        with pytest.raises(NotFoundError, match="Deployment not found"):
            api.get_deployment("bot-1", "nope")

    def test_list(self, api: ManagementApi, fake_server) -> None:
        fake_server.add_deployment("prod")
        fake_server.add_deployment("staging")
        assert [d.name for d in api.list_deployments("bot-1")] == ["prod", "staging"]

    def test_list_wrapped(self, api_config: GlobalConfig) -> None:
        transport = httpx.MockTransport(
            lambda r: httpx.Response(200, json={"deployments": [{"name": "a"}]})
        )
        assert [d.name for d in ManagementApi(api_config, transport=transport).list_deployments("b")] == ["a"]

    def test_create_update_delete(self, api: ManagementApi, fake_server) -> None:
        created = api.create_deployment("bot-1", {"name": "prod", "botVersion": "1.0.0", "channels": {}})
        assert created.id is not None

        updated = api.update_deployment("bot-1", "prod", {"name": "prod", "botVersion": "1.0.5"})
        assert updated.bot_version == "1.0.5"

        api.delete_deployment("bot-1", "prod")
        assert "prod" not in fake_server.deployments
        assert [r[0] for r in fake_server.requests] == ["POST", "PUT", "DELETE"]

    def test_path_segments_are_quoted(self, api_config: GlobalConfig) -> None:
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.url.raw_path.decode())
            return httpx.Response(204)

        ManagementApi(api_config, transport=httpx.MockTransport(handler)).delete_deployment("b", "a/b")

        assert seen == ["/bots/b/deployments/a%2Fb"]


class TestChannels:
    def test_create_and_delete(self, api: ManagementApi, fake_server) -> None:
        fake_server.add_deployment("prod")

        channel = api.create_channel("bot-1", "prod", {"name": "fb", "type": "messenger", "options": {}})
        assert channel.id == "chan-1"
        assert fake_server.deployments["prod"]["channels"] == {"fb": "chan-1"}

        api.delete_channel("bot-1", "prod", "chan-1")
        assert fake_server.deployments["prod"]["channels"] == {}
        assert fake_server.requests[-1][:2] == ("DELETE", "/bots/bot-1/deployments/prod/channels/chan-1")


class TestExtractResponseData:
    def test_empty(self) -> None:
        assert extract_response_data(httpx.Response(204)) is None

    def test_text(self) -> None:
        assert extract_response_data(httpx.Response(200, text="ok")) == "ok"

    def test_json(self) -> None:
        assert extract_response_data(httpx.Response(200, json={"a": 1})) == {"a": 1}
