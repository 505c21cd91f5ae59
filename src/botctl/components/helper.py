"""Shared helpers and middleware for handler components.

Middleware receive the invocation arguments (positional values followed by
the options mapping) and return the argument sequence for the next stage:

* :meth:`Helper.inject_bot_id` prepends the current bot ID.
* :meth:`Helper.parse_data` decodes a JSON ``--data`` option in place.

:func:`report_errors` is the decorator every handler uses to turn a
:class:`~botctl.exceptions.BotctlError` into an error line and an exit code.
"""

from __future__ import annotations

import functools
import json
from pathlib import Path
from typing import Any, Callable, Optional, TypeVar

import typer
import yaml

from botctl.exceptions import BotctlError, ConfigError, InvalidUsageError
from botctl.models import GlobalConfig
from botctl.output import error

F = TypeVar("F", bound=Callable[..., Any])

BOT_FILE = "bot.yml"


def report_errors(func: F) -> F:
    """Report a :class:`BotctlError` raised by *func* and exit with its code."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except BotctlError as exc:
            error(str(exc))
            raise typer.Exit(code=exc.exit_code) from None

    return wrapper  # type: ignore[return-value]


class Helper:
    """Bot lookup and argument middleware.

    Args:
        config: The resolved global configuration.
        workdir: Directory searched for ``bot.yml``. Defaults to the
            current working directory at call time.
    """

    def __init__(self, config: GlobalConfig, workdir: Optional[Path] = None) -> None:
        self.config = config
        self.workdir = workdir

    def get_bot_id(self) -> str:
        """Return the bot ID from ``./bot.yml``, falling back to ``current_bot``.

        Raises:
            ConfigError: If neither source names a bot, or ``bot.yml`` is
                not valid YAML.
        """
        path = (self.workdir or Path.cwd()) / BOT_FILE
        if path.is_file():
            try:
                desc = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
            except yaml.YAMLError as exc:
                raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
            if isinstance(desc, dict) and desc.get("id"):
                return str(desc["id"])

        if self.config.current_bot:
            return self.config.current_bot

        raise ConfigError(
            f"No bot selected. Run inside a bot directory (with {BOT_FILE}) "
            "or run 'botctl bot-use <bot_id>'."
        )

    @report_errors
    def inject_bot_id(self, *args: Any) -> tuple[Any, ...]:
        return (self.get_bot_id(), *args)

    @report_errors
    def parse_data(self, *args: Any) -> tuple[Any, ...]:
        """Replace a JSON string in ``options["data"]`` with the decoded mapping."""
        if not args or not isinstance(args[-1], dict):
            return args

        options = dict(args[-1])
        raw = options.get("data")
        if raw is None:
            return args
        if not isinstance(raw, str):
            raise InvalidUsageError("--data requires a JSON object")
        try:
            decoded = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise InvalidUsageError(f"--data is not valid JSON: {exc}") from exc
        if not isinstance(decoded, dict):
            raise InvalidUsageError("--data must be a JSON object")

        options["data"] = decoded
        return (*args[:-1], options)
