"""Persistent settings and the command tree.

* :func:`get_config_dir` / :func:`get_data_dir` follow the XDG base
  directories on Linux and BSD and use ``~/.botctl`` elsewhere.
* :class:`~botctl.models.GlobalConfig` is stored as JSON in the config
  directory. :func:`resolve_config` applies ``BOTCTL_*`` environment
  overrides on top of it.
* :func:`resolve_credential` turns a ``token_source`` (``env:VAR``,
  ``file:PATH`` or ``prompt``) into the API token.
* :func:`load_commands` reads the YAML command tree, either the bundled
  ``commands.yml`` or the file named by ``$BOTCTL_COMMANDS``.

Writes go through :func:`_atomic_write`, so an interrupted save never leaves
a truncated config file behind.
"""

from __future__ import annotations

import getpass
import json
import os
import platform
import sys
import tempfile
from importlib import resources
from pathlib import Path
from typing import Any

import yaml
from pydantic import TypeAdapter, ValidationError

from botctl.exceptions import CommandConfigError, ConfigError
from botctl.models import CommandDescriptor, CommandList, GlobalConfig

_APP_NAME = "botctl"
_CONFIG_FILENAME = "config.json"
_COMMANDS_RESOURCE = "commands.yml"

_command_list_adapter = TypeAdapter(dict[str, CommandDescriptor])

_ENV_OVERRIDES = {
    "BOTCTL_BASE_URL": "base_url",
    "BOTCTL_BOT": "current_bot",
}


# --- Directories ---


def _is_xdg_platform() -> bool:
    system = platform.system()
    return system == "Linux" or system.endswith("BSD")


def _app_dir(xdg_var: str, xdg_default: str, fallback: str = "") -> Path:
    """Return (and create) the botctl directory under an XDG base.

    *xdg_default* is the base relative to ``$HOME`` when *xdg_var* is unset.
    Outside XDG platforms the directory is ``~/.botctl/<fallback>``.
    """
    if _is_xdg_platform():
        base = os.environ.get(xdg_var) or str(Path.home() / xdg_default)
        path = Path(base) / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}" / fallback
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_config_dir() -> Path:
    """Directory holding ``config.json`` (``~/.config/botctl`` by default)."""
    return _app_dir("XDG_CONFIG_HOME", ".config")


def get_data_dir() -> Path:
    """Directory for crash logs (``~/.local/share/botctl`` by default)."""
    return _app_dir("XDG_DATA_HOME", ".local/share", "logs")


def _atomic_write(path: Path, data: str) -> None:
    """Replace *path* with *data* via a synced temp file in the same directory."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = tempfile.NamedTemporaryFile(
        mode="w",
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp",
        delete=False,
        encoding="utf-8",
    )
    try:
        with tmp:
            tmp.write(data)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp.name, path)
    except BaseException:
        Path(tmp.name).unlink(missing_ok=True)
        raise


# --- Global config ---


def global_config_path() -> Path:
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Read the config file, or return defaults when there is none.

    Raises:
        ConfigError: If the file is not valid JSON or does not validate.
    """
    path = global_config_path()
    if not path.is_file():
        return GlobalConfig()
    try:
        return GlobalConfig.model_validate(json.loads(path.read_text(encoding="utf-8")))
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    _atomic_write(
        global_config_path(),
        json.dumps(config.model_dump(mode="json"), indent=2) + "\n",
    )


def resolve_config() -> GlobalConfig:
    """Return the effective configuration for this run.

    ``BOTCTL_BASE_URL`` and ``BOTCTL_BOT`` replace the stored values. A set
    ``BOTCTL_TOKEN`` makes the token source ``env:BOTCTL_TOKEN``. The result
    is never written back.
    """
    config = load_global_config()
    for var, field in _ENV_OVERRIDES.items():
        value = os.environ.get(var)
        if value:
            setattr(config, field, value)
    if os.environ.get("BOTCTL_TOKEN"):
        config.token_source = "env:BOTCTL_TOKEN"
    return config


# --- Credentials ---


def _credential_from_env(var_name: str) -> str:
    value = os.environ.get(var_name)
    if value is None:
        raise ConfigError(f"Environment variable '{var_name}' is not set")
    return value


def _credential_from_file(location: str) -> str:
    path = Path(location).expanduser()
    if not path.is_file():
        raise ConfigError(f"Token file not found: {path}")
    try:
        return path.read_text(encoding="utf-8").strip()
    except OSError as exc:
        raise ConfigError(f"Cannot read token file {path}: {exc}") from exc


def resolve_credential(source: str) -> str:
    """Return the secret named by *source*.

    ``env:VAR`` reads an environment variable, ``file:PATH`` reads a file
    (whitespace stripped), and ``prompt`` asks on the terminal.

    Raises:
        ConfigError: If the source is unknown or yields nothing.
    """
    kind, sep, ref = source.partition(":")
    if sep and kind == "env":
        return _credential_from_env(ref)
    if sep and kind == "file":
        return _credential_from_file(ref)
    if source == "prompt":
        if not sys.stdin.isatty():
            raise ConfigError("Cannot prompt for the API token: stdin is not a TTY")
        return getpass.getpass("API token: ")
    raise ConfigError(f"Unknown credential source format: {source}")


# --- Command tree ---


def load_commands(path: str | Path | None = None) -> CommandList:
    """Load and validate the command tree.

    The source is, in order: the explicit *path*, the file named by
    ``$BOTCTL_COMMANDS``, or the ``commands.yml`` bundled with the package.
    The document must hold a top-level ``commands`` mapping. Mapping order
    is preserved, so commands register in the order they are written.

    Args:
        path: Optional path to a YAML command tree.

    Returns:
        The validated :data:`~botctl.models.CommandList`.

    Raises:
        CommandConfigError: If the file cannot be read, is not valid YAML,
            lacks a ``commands`` mapping, or any descriptor is malformed.
            Validation messages name the offending key path.
    """
    if path is None and os.environ.get("BOTCTL_COMMANDS"):
        path = os.environ["BOTCTL_COMMANDS"]

    if path is None:
        origin = f"<bundled {_COMMANDS_RESOURCE}>"
        text = resources.files("botctl").joinpath(_COMMANDS_RESOURCE).read_text(
            encoding="utf-8"
        )
    else:
        origin = str(path)
        try:
            text = Path(path).read_text(encoding="utf-8")
        except OSError as exc:
            raise CommandConfigError(f"Cannot read command tree {origin}: {exc}") from exc

    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise CommandConfigError(f"Invalid YAML in command tree {origin}: {exc}") from exc

    if not isinstance(document, dict) or not isinstance(document.get("commands"), dict):
        raise CommandConfigError(
            f"Command tree {origin} must contain a top-level 'commands' mapping"
        )

    return parse_commands(document["commands"], origin=origin)


def parse_commands(raw: dict[str, Any], origin: str = "<commands>") -> CommandList:
    """Validate a raw mapping into a :data:`~botctl.models.CommandList`.

    Raises:
        CommandConfigError: With one line per validation problem, each
            prefixed by the dotted key path of the offending descriptor.
    """
    try:
        return _command_list_adapter.validate_python(raw)
    except ValidationError as exc:
        raise CommandConfigError(
            f"Invalid command tree {origin}:\n{format_validation_error(exc)}"
        ) from exc


def format_validation_error(exc: ValidationError) -> str:
    """Render a pydantic error as ``key.path: message`` lines."""
    lines = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err["loc"]) or "<root>"
        lines.append(f"  {loc}: {err['msg']}")
    return "\n".join(lines)
