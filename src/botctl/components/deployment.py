"""Deployment and channel handlers.

Every handler receives the bot ID first (injected by the
``helper.inject_bot_id`` middleware), then the command's positional
arguments, then the options mapping. Records are printed to stdout through
:func:`~botctl.output.format_response`; status lines go to stderr.
"""

from __future__ import annotations

from typing import Any, Optional

import typer

from botctl.client import ManagementApi
from botctl.components.helper import report_errors
from botctl.exceptions import InvalidUsageError, NotFoundError
from botctl.output import format_response, info, print_table, success, suggest

CHANNEL_OPTION_KEYS = ("token", "refreshToken", "secret")


class DeploymentHandlers:
    """Handlers for the ``deployment-*`` commands.

    Args:
        api: The management API client (the ``api`` component).
    """

    def __init__(self, api: ManagementApi) -> None:
        self.api = api

    @report_errors
    def deploy(
        self,
        bot_id: str,
        name: str,
        version: Optional[str],
        options: dict[str, Any],
    ) -> None:
        """Point deployment *name* at *version*, creating the deployment if needed.

        Without *version* the bot's latest version is used.
        """
        versions = self.api.bot_versions(bot_id)
        version = version or versions.latest
        if not version or version not in versions.versions:
            raise InvalidUsageError(
                f"Invalid version '{version}' for bot {bot_id}"
                if version
                else f"Bot {bot_id} has no published versions"
            )

        try:
            self.api.get_deployment(bot_id, name)
        except NotFoundError:
            deployment = self.api.create_deployment(
                bot_id, {"name": name, "botVersion": version, "channels": {}}
            )
            success("Deployment created successfully")
        else:
            deployment = self.api.update_deployment(
                bot_id, name, {"name": name, "botVersion": version}
            )
            success("Deployment updated successfully")

        format_response(deployment.to_payload())

    @report_errors
    def list_deployments(self, bot_id: str, options: dict[str, Any]) -> None:
        deployments = self.api.list_deployments(bot_id)
        if not deployments:
            info(f"No deployments for bot {bot_id}")
            suggest("Create one with 'botctl deploy <name>'")
            return

        rows = [
            [d.name, d.bot_version or "", ", ".join(sorted(d.channels))]
            for d in deployments
        ]
        print_table(["name", "version", "channels"], rows, title="Deployments")

    @report_errors
    def show(self, bot_id: str, name: str, options: dict[str, Any]) -> None:
        format_response(self.api.get_deployment(bot_id, name).to_payload())

    @report_errors
    def drop(self, bot_id: str, name: str, options: dict[str, Any]) -> None:
        """Delete deployment *name*, asking first unless ``--force``."""
        if not options.get("force"):
            if not typer.confirm(f"Delete deployment '{name}'?"):
                info("Cancelled.")
                return

        self.api.delete_deployment(bot_id, name)
        success(f"Deployment '{name}' deleted")

    @report_errors
    def add_channel(
        self,
        bot_id: str,
        name: str,
        channel_name: str,
        options: dict[str, Any],
    ) -> None:
        """Create channel *channel_name* on deployment *name*.

        The channel is described by ``--data`` (a JSON object, decoded by the
        ``helper.parse_data`` middleware) and/or the individual ``--type``,
        ``--url``, ``--token``, ``--refreshToken`` and ``--secret`` flags.
        Flags override keys of ``--data``.
        """
        deployment = self.api.get_deployment(bot_id, name)
        if channel_name in deployment.channels:
            raise InvalidUsageError(
                f"Channel name '{channel_name}' is already used in deployment '{name}'"
            )

        payload = build_channel_payload(channel_name, options)
        channel = self.api.create_channel(bot_id, name, payload)
        if channel.id is None:
            raise InvalidUsageError(f"Server returned no ID for channel '{channel_name}'")

        deployment.channels[channel_name] = channel.id
        success("Channel added successfully")
        format_response(deployment.to_payload())

    @report_errors
    def remove_channel(
        self,
        bot_id: str,
        name: str,
        channel_name: str,
        options: dict[str, Any],
    ) -> None:
        deployment = self.api.get_deployment(bot_id, name)
        channel_id = deployment.channels.get(channel_name)
        if channel_id is None:
            raise NotFoundError(
                f"Channel '{channel_name}' not found in deployment '{name}'"
            )

        self.api.delete_channel(bot_id, name, channel_id)
        del deployment.channels[channel_name]
        success("Channel removed successfully")
        format_response(deployment.to_payload())


def build_channel_payload(channel_name: str, options: dict[str, Any]) -> dict[str, Any]:
    """Merge ``--data`` and the per-field flags into a channel request body.

    Raises:
        InvalidUsageError: If no channel type is given.
    """
    data = options.get("data") or {}
    if not isinstance(data, dict):
        raise InvalidUsageError("--data must be a JSON object")

    fields = {**data}
    for key in ("type", "url", *CHANNEL_OPTION_KEYS):
        value = options.get(key)
        if isinstance(value, str):
            fields[key] = value

    if not fields.get("type"):
        raise InvalidUsageError(f"Channel '{channel_name}' needs a type (--type or data.type)")

    payload: dict[str, Any] = {}
    if fields.get("id"):
        payload["id"] = fields["id"]
    payload["name"] = channel_name
    payload["type"] = fields["type"]
    payload["url"] = fields.get("url")

    channel_options = dict(fields.get("options") or {})
    for key in CHANNEL_OPTION_KEYS:
        if fields.get(key) is not None:
            channel_options[key] = fields[key]
    payload["options"] = channel_options

    return payload

