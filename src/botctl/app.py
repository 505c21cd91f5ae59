"""Typer application and CLI entry point for botctl.

The root :data:`app` only defines global flags. Every command is compiled
from the command tree (:func:`~botctl.config.load_commands`) onto the click
group Typer builds for the app:

1. :func:`start` resolves the configuration and loads the command tree.
2. :func:`create_injector` registers the built-in and entry-point
   components plus the resolved config.
3. :class:`~botctl.compiler.CommandCompiler` registers every command on a
   :class:`~botctl.program.Program` (:func:`create_program`).
4. :meth:`Program.parse` dispatches the arguments.

:func:`main` is the console-script entry point declared in
``pyproject.toml``. It installs signal handlers, runs :func:`start`, and
maps :class:`~botctl.exceptions.BotctlError` to an exit code. Unhandled
exceptions are written to a crash log under the data directory.

See Also:
    :mod:`botctl.config`: Configuration and command tree loading.
    :mod:`botctl.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import asyncio
import logging
import signal
import sys
import traceback
from datetime import datetime
from typing import TYPE_CHECKING, Any, Optional, Sequence

import typer

from botctl import __version__
from botctl.exceptions import BotctlError
from botctl.exit_codes import EXIT_GENERIC_FAILURE, EXIT_INTERRUPTED
from botctl.output import error

if TYPE_CHECKING:
    from botctl.injector import Injector
    from botctl.models import CommandList, GlobalConfig
    from botctl.program import Program

app = typer.Typer(
    name="botctl",
    help="Manage bot deployments and channels.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"botctl {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
) -> None:
    """Root callback executed before every command.

    Initialises the global :class:`~botctl.output.OutputManager` from the
    CLI flags, falling back to ``output.format`` of the configuration stored
    in ``ctx.obj["config"]``. An alias re-dispatches through this callback a
    second time with the same ``ctx.obj``; the output set up by the outer
    dispatch is kept.
    """
    from botctl.output import OutputFormat, OutputManager, set_output

    ctx.ensure_object(dict)
    if ctx.obj.get("output_configured"):
        return

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN
    elif ctx.obj.get("config") is not None:
        try:
            fmt = OutputFormat(ctx.obj["config"].output.format)
        except ValueError:
            fmt = OutputFormat.AUTO

    set_output(
        OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose)
    )
    ctx.obj["output_configured"] = True


# ------------------------------------------------------------------ #
# Assembly
# ------------------------------------------------------------------ #


def create_program(obj: Any = None) -> Program:
    """Return a :class:`~botctl.program.Program` over a fresh root group."""
    from botctl.program import Program

    return Program(typer.main.get_group(app), name="botctl", obj=obj)


def create_injector(config: GlobalConfig) -> Injector:
    """Build the injector with built-in components, entry points, and *config*."""
    from botctl.components import BUILTIN_COMPONENTS
    from botctl.injector import Injector

    injector = Injector(BUILTIN_COMPONENTS)
    injector.register_instance("config", config)
    injector.discover()
    return injector


def build_program(
    config: Optional[GlobalConfig] = None,
    commands: Optional[CommandList] = None,
    injector: Optional[Injector] = None,
) -> Program:
    """Compile the command tree into a ready-to-parse program.

    Raises:
        ConfigError: If the configuration file is invalid.
        CommandConfigError: If the command tree is malformed or names an
            unknown handler or middleware.
    """
    from botctl.compiler import CommandCompiler
    from botctl.config import load_commands, resolve_config

    config = config or resolve_config()
    commands = commands if commands is not None else load_commands()
    injector = injector or create_injector(config)

    program = create_program(obj={"config": config})
    asyncio.run(CommandCompiler(injector).compile(commands, program))
    return program


def start(argv: Sequence[str]) -> Any:
    """Compile the command tree, then dispatch *argv* (without the program name)."""
    return build_program().parse(argv)


# ------------------------------------------------------------------ #
# Process entry point
# ------------------------------------------------------------------ #


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)

    signal.signal(signal.SIGINT, _handler)


def _setup_logging(argv: Sequence[str]) -> None:
    """Send library debug logs to stderr when ``--verbose`` is on the command line.

    Compilation happens before click parses the flags, so they are sniffed
    from *argv* directly.
    """
    if "--verbose" in argv or "-v" in argv:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(levelname)s %(name)s: %(message)s",
            stream=sys.stderr,
        )


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from botctl.config import get_data_dir

    log_path = get_data_dir() / f"crash-{datetime.now():%Y%m%d-%H%M%S}.log"
    log_path.write_text(traceback.format_exc(), encoding="utf-8")
    return str(log_path)


def main(argv: Optional[Sequence[str]] = None) -> None:
    """CLI entry point invoked by the ``botctl`` console script.

    :class:`~botctl.exceptions.BotctlError` instances (including command
    tree errors raised before parsing) cause a clean exit with the error's
    ``exit_code``. All other exceptions produce a crash log and a generic
    failure exit.

    Raises:
        SystemExit: Always raised (either by click or explicitly).
    """
    args = list(sys.argv[1:] if argv is None else argv)
    _setup_signal_handlers()
    _setup_logging(args)
    try:
        start(args)
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)
    except BotctlError as exc:
        error(str(exc))
        sys.exit(exc.exit_code)
    except Exception as exc:
        log_path = _write_crash_log(exc)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
