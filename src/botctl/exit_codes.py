"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~botctl.exceptions.BotctlError` subclass.
External tooling (CI scripts, shell wrappers) can inspect the exit code to
determine the failure class without parsing stderr.

Example::

    $ botctl deployment-show staging
    $ echo $?
    4   # EXIT_NOT_FOUND -- the deployment does not exist
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_AUTH_FAILURE = 3
"""The management API rejected the configured token."""

EXIT_NOT_FOUND = 4
"""The requested bot, deployment, or channel was not found."""

EXIT_SERVER_ERROR = 5
"""The management API returned an HTTP 5xx server error."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_COMMAND_CONFIG_ERROR = 7
"""The command tree is malformed or names a handler that cannot be resolved."""

EXIT_INTERRUPTED = 130
"""The user pressed Ctrl-C."""
