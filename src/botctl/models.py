"""Canonical Pydantic models shared across all botctl modules.

This is the single source of truth for data shapes in the project. The models
fall into three groups:

**Command descriptors** -- the declarative command tree read from
``commands.yml`` and consumed by :class:`~botctl.compiler.CommandCompiler`:
    :class:`CommandType`, :class:`ParamDescriptor`, :class:`CommandDescriptor`,
    and the :data:`CommandList` alias.

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`RequestConfig`, :class:`OutputConfig`, and :class:`GlobalConfig`.

**API records** -- returned by :class:`~botctl.client.ManagementApi`:
    :class:`BotVersions`, :class:`Channel`, and :class:`Deployment`.

All models use Pydantic v2. Descriptor models reject unknown keys so that a
typo in ``commands.yml`` fails at startup instead of being silently ignored.
API records accept the camelCase field names used on the wire.
"""

from __future__ import annotations

import enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


# --- Command descriptors ---


class CommandType(str, enum.Enum):
    """Discriminant of a :class:`CommandDescriptor`.

    A descriptor without a ``type`` is a plain, invocable command.
    """

    GROUP = "group"
    ALIAS = "alias"


class ParamDescriptor(BaseModel):
    """A single ``--flag`` on a plain command.

    Exactly one of three shapes is produced by the compiler:

    * ``value`` present (even as ``null``) -- the flag requires a value and
      defaults to ``value``.
    * ``bool: true`` -- the flag takes no value; its presence sets ``True``.
    * neither -- the flag takes an optional value and is ``True`` when
      given bare.

    Example::

        ParamDescriptor.model_validate({"short": "f", "desc": "Force", "bool": True})
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    short: Optional[str] = Field(
        default=None, min_length=1, max_length=1, description="Single-character alias"
    )
    desc: Optional[str] = Field(default=None, description="Help text")
    value: Any = Field(default=None, description="Default value of a value-taking flag")
    is_flag: bool = Field(
        default=False, alias="bool", description="Flag takes no value"
    )

    @property
    def has_value(self) -> bool:
        """Whether ``value`` was declared, including an explicit ``null``."""
        return "value" in self.model_fields_set


class CommandDescriptor(BaseModel):
    """A node of the command tree.

    The ``type`` field discriminates between three kinds of node:

    * **group** -- ``subcommands`` holds child descriptors whose keys are
      joined to the group key with ``-``. A group never registers a command
      of its own.
    * **alias** -- ``alias`` is an argument template (``"deployment-deploy"``)
      re-dispatched with the caller's extra arguments appended.
    * **plain command** (``type`` unset) -- ``handler`` names the terminal
      callable and ``middleware`` the transforms applied before it. An
      ``alias`` on a plain command replaces its registration name.

    Validation enforces that every node is exactly one of the three kinds.
    """

    model_config = ConfigDict(extra="forbid")

    type: Optional[CommandType] = None
    desc: Optional[str] = Field(default=None, description="Help text")
    subcommands: Optional[Dict[str, CommandDescriptor]] = None
    alias: Optional[str] = None
    args: Optional[str] = Field(
        default=None, description="Positional signature, e.g. '<name> [version]'"
    )
    params: Optional[Dict[str, ParamDescriptor]] = None
    handler: Optional[str] = Field(
        default=None, description="Resolvable 'component.method' name"
    )
    middleware: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_kind(self) -> CommandDescriptor:
        if self.type == CommandType.GROUP:
            if self.subcommands is None:
                raise ValueError("group must declare 'subcommands'")
            if self.handler is not None:
                raise ValueError("group must not declare a 'handler'")
        elif self.type == CommandType.ALIAS:
            if not self.alias or not self.alias.strip():
                raise ValueError("alias must declare a non-empty 'alias' template")
            for field in ("handler", "subcommands", "params", "args"):
                if getattr(self, field) is not None:
                    raise ValueError(f"alias must not declare '{field}'")
            if self.middleware:
                raise ValueError("alias must not declare 'middleware'")
        else:
            if not self.handler:
                raise ValueError("command must declare a 'handler'")
            if self.subcommands is not None:
                raise ValueError("only groups may declare 'subcommands'")
        return self

    @property
    def is_group(self) -> bool:
        return self.type == CommandType.GROUP

    @property
    def is_alias(self) -> bool:
        return self.type == CommandType.ALIAS


CommandDescriptor.model_rebuild()

CommandList = Dict[str, CommandDescriptor]
"""Root of the command tree: key -> descriptor, in configuration order."""


# --- Configuration ---


class RequestConfig(BaseModel):
    """HTTP request settings applied to every management API call."""

    timeout: int = Field(default=30, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")
    max_retries: int = Field(default=3, description="Max retry attempts")


class OutputConfig(BaseModel):
    """Default output format preferences stored in :class:`GlobalConfig`."""

    format: str = Field(
        default="auto", description="Output format: auto, json, plain, rich"
    )


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/botctl/config.json``.

    Loaded and saved by :func:`~botctl.config.load_global_config` and
    :func:`~botctl.config.save_global_config`. Environment variables take
    precedence over these values; see :func:`~botctl.config.resolve_config`.
    """

    base_url: Optional[str] = Field(
        default=None, description="Management API base URL"
    )
    token_source: Optional[str] = Field(
        default=None,
        description="Credential source for the API token: env:VAR, file:/path, prompt",
    )
    current_bot: Optional[str] = Field(
        default=None, description="Bot ID used when no ./bot.yml is present"
    )
    request: RequestConfig = Field(default_factory=RequestConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)


# --- API records ---


class BotVersions(BaseModel):
    """Published versions of a bot, as returned by ``GET /bots/{botId}/versions``."""

    versions: list[str] = Field(default_factory=list)
    latest: Optional[str] = None


class Channel(BaseModel):
    """A channel bound to a deployment (Messenger page, LINE account, ...)."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: Optional[str] = None
    name: str
    type: str
    url: Optional[str] = None
    options: Dict[str, Any] = Field(default_factory=dict)


class Deployment(BaseModel):
    """A named deployment of one bot version.

    ``channels`` maps each channel name to the channel ID on the platform.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: Optional[str] = None
    name: str
    bot_id: Optional[str] = Field(default=None, alias="botId")
    bot_version: Optional[str] = Field(default=None, alias="botVersion")
    channels: Dict[str, str] = Field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        """Return the record with wire (camelCase) field names, omitting unset IDs."""
        return self.model_dump(by_alias=True, exclude_none=True)
