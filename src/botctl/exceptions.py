"""Exception hierarchy for botctl.

All exceptions inherit from :class:`BotctlError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`botctl.exit_codes`.
The top-level error handler in :func:`botctl.app.main` catches
``BotctlError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Subclass hierarchy::

    BotctlError (exit 1)
    +-- InvalidUsageError       (exit 2)
    +-- AuthError               (exit 3)
    +-- NotFoundError           (exit 4)
    +-- ServerError             (exit 5)
    +-- ConnectionError_        (exit 6)
    +-- ConfigError             (exit 1)
        +-- CommandConfigError  (exit 7)
            +-- ResolutionError (exit 7)
"""

from botctl.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_COMMAND_CONFIG_ERROR,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_SERVER_ERROR,
)


class BotctlError(Exception):
    """Base exception for all botctl errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`botctl.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(BotctlError):
    """Raised for invalid arguments, bad option payloads, or unknown bot versions."""

    exit_code = EXIT_INVALID_USAGE


class AuthError(BotctlError):
    """Raised when the management API returns 401 or 403."""

    exit_code = EXIT_AUTH_FAILURE


class NotFoundError(BotctlError):
    """Raised when a bot, deployment, or channel does not exist."""

    exit_code = EXIT_NOT_FOUND


class ServerError(BotctlError):
    """Raised when the API returns an HTTP 5xx server error (or an unmapped 4xx)."""

    exit_code = EXIT_SERVER_ERROR


class ConnectionError_(BotctlError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused).

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.
    """

    exit_code = EXIT_CONNECTION_ERROR


class ConfigError(BotctlError):
    """Raised for configuration problems (invalid JSON, missing base URL, bad credential sources)."""

    exit_code = EXIT_GENERIC_FAILURE


class CommandConfigError(ConfigError):
    """Raised when the command tree is malformed.

    The message always names the offending key path (``deployment-deploy``,
    ``deployment.subcommands.deploy``) so that the broken entry can be found
    in ``commands.yml``.
    """

    exit_code = EXIT_COMMAND_CONFIG_ERROR


class ResolutionError(CommandConfigError):
    """Raised when a handler or middleware name cannot be resolved to a callable."""
