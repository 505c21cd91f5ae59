"""Typed operations on the deployment management API.

Every method opens a :class:`~botctl.client.sync_client.SyncClient`, makes
one request, and returns a pydantic record from :mod:`botctl.models`.

Endpoints::

    GET    /bots/{bot}/versions
    GET    /bots/{bot}/deployments
    POST   /bots/{bot}/deployments
    GET    /bots/{bot}/deployments/{name}
    PUT    /bots/{bot}/deployments/{name}
    DELETE /bots/{bot}/deployments/{name}
    POST   /bots/{bot}/deployments/{name}/channels
    DELETE /bots/{bot}/deployments/{name}/channels/{channel_id}
"""

from __future__ import annotations

from typing import Any, Optional
from urllib.parse import quote

import httpx

from botctl.client.sync_client import SyncClient
from botctl.models import BotVersions, Channel, Deployment, GlobalConfig


class ManagementApi:
    """Client for bots, deployments and channels.

    Args:
        config: The resolved :class:`~botctl.models.GlobalConfig`. The
            injector passes the ``config`` component here.
        transport: Optional httpx transport, forwarded to every
            :class:`SyncClient`.
    """

    def __init__(
        self,
        config: GlobalConfig,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.config = config
        self.transport = transport

    def bot_versions(self, bot_id: str) -> BotVersions:
        data = self._call("GET", f"{_bot(bot_id)}/versions")
        if isinstance(data, list):
            # Some servers return a bare list, newest last.
            return BotVersions(versions=data, latest=data[-1] if data else None)
        versions = BotVersions.model_validate(data or {})
        if versions.latest is None and versions.versions:
            versions.latest = versions.versions[-1]
        return versions

    def list_deployments(self, bot_id: str) -> list[Deployment]:
        data = self._call("GET", f"{_bot(bot_id)}/deployments")
        if isinstance(data, dict):
            data = data.get("deployments", [])
        return [Deployment.model_validate(item) for item in data or []]

    def get_deployment(self, bot_id: str, name: str) -> Deployment:
        """Fetch one deployment.

        Raises:
            NotFoundError: If the bot has no deployment called *name*.
        """
        return Deployment.model_validate(self._call("GET", _deployment(bot_id, name)))

    def create_deployment(self, bot_id: str, payload: dict[str, Any]) -> Deployment:
        data = self._call("POST", f"{_bot(bot_id)}/deployments", json_body=payload)
        return Deployment.model_validate(data or payload)

    def update_deployment(
        self, bot_id: str, name: str, payload: dict[str, Any]
    ) -> Deployment:
        data = self._call("PUT", _deployment(bot_id, name), json_body=payload)
        return Deployment.model_validate(data or payload)

    def delete_deployment(self, bot_id: str, name: str) -> None:
        self._call("DELETE", _deployment(bot_id, name))

    def create_channel(
        self, bot_id: str, deployment: str, payload: dict[str, Any]
    ) -> Channel:
        data = self._call(
            "POST", f"{_deployment(bot_id, deployment)}/channels", json_body=payload
        )
        return Channel.model_validate(data or payload)

    def delete_channel(self, bot_id: str, deployment: str, channel_id: str) -> None:
        self._call(
            "DELETE",
            f"{_deployment(bot_id, deployment)}/channels/{quote(channel_id, safe='')}",
        )

    # ------------------------------------------------------------------ #

    def _call(self, method: str, path: str, json_body: Optional[Any] = None) -> Any:
        with SyncClient(self.config, transport=self.transport) as client:
            response = client.request(method, path, json_body=json_body)
        return extract_response_data(response)


def extract_response_data(response: httpx.Response) -> Any:
    """Return the decoded JSON body, the raw text, or ``None`` when empty."""
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


def _bot(bot_id: str) -> str:
    return f"/bots/{quote(bot_id, safe='')}"


def _deployment(bot_id: str, name: str) -> str:
    return f"{_bot(bot_id)}/deployments/{quote(name, safe='')}"
