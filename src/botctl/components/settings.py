"""Settings handlers -- view and modify the global configuration.

Backs the ``config-*`` and ``bot-use`` commands. Changes are written to the
config file (:func:`~botctl.config.save_global_config`); environment
overrides such as ``BOTCTL_BASE_URL`` still win at the next start.
"""

from __future__ import annotations

from typing import Any

import typer
from pydantic import ValidationError

from botctl.components.helper import report_errors
from botctl.config import global_config_path, load_global_config, save_global_config
from botctl.exceptions import InvalidUsageError
from botctl.models import GlobalConfig
from botctl.output import format_response, info, success


class Settings:
    """Handlers for configuration commands.

    Args:
        config: The effective configuration of this run (file plus
            environment overrides).
    """

    def __init__(self, config: GlobalConfig) -> None:
        self.config = config

    @report_errors
    def show(self, options: dict[str, Any]) -> None:
        """Print the effective configuration."""
        info(f"Config file: {global_config_path()}")
        format_response(self.config.model_dump(mode="json"))

    @report_errors
    def set(self, key: str, value: str, options: dict[str, Any]) -> None:
        """Set a configuration value using dot notation (``request.timeout``).

        The value is coerced to the type of the current field (bool or int)
        and the result is validated before saving.

        Raises:
            InvalidUsageError: If the key path is unknown, the value cannot
                be coerced, or validation fails.
        """
        config = load_global_config()
        data = config.model_dump(mode="json")

        keys = key.split(".")
        target = data
        for k in keys[:-1]:
            if k not in target or not isinstance(target[k], dict):
                raise InvalidUsageError(f"Invalid config key: {key}")
            target = target[k]

        final_key = keys[-1]
        if final_key not in target or isinstance(target[final_key], dict):
            raise InvalidUsageError(f"Unknown config key: {key}")

        current = target[final_key]
        coerced: Any
        if isinstance(current, bool):
            coerced = value.lower() in ("true", "1", "yes")
        elif isinstance(current, int):
            try:
                coerced = int(value)
            except ValueError:
                raise InvalidUsageError(f"Expected integer for {key}, got: {value}") from None
        else:
            coerced = value
        target[final_key] = coerced

        try:
            new_config = GlobalConfig.model_validate(data)
        except ValidationError as exc:
            raise InvalidUsageError(f"Validation error: {exc}") from None

        save_global_config(new_config)
        success(f"Set {key} = {coerced}")

    @report_errors
    def reset(self, options: dict[str, Any]) -> None:
        """Reset the configuration file to defaults, asking first unless ``--force``."""
        if not options.get("force"):
            if not typer.confirm("Reset all config to defaults?"):
                info("Cancelled.")
                return

        save_global_config(GlobalConfig())
        success("Configuration reset to defaults.")

    @report_errors
    def use_bot(self, bot_id: str, options: dict[str, Any]) -> None:
        """Make *bot_id* the bot used outside a bot directory."""
        config = load_global_config()
        config.current_bot = bot_id
        save_global_config(config)
        self.config.current_bot = bot_id
        success(f"Using bot {bot_id}")
