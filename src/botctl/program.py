"""Signature-based command registration on top of a :class:`click.Group`.

The command compiler does not build click objects itself. It talks to a
:class:`Program`, which accepts commander-style strings and turns them into
click parameters:

* ``program.command("deployment-deploy <name> [version]")`` registers a
  command with one required and one optional positional argument. A
  trailing ``...`` (``<names...>``) makes an argument variadic.
* ``subcommand.option("-f, --force")`` adds a boolean flag,
  ``"--data <value>"`` a value-taking option, and ``"--url [value]"`` an
  option whose value may be omitted (it is then ``True``).
* ``subcommand.action(callback)`` binds the function called on dispatch
  with the positional values followed by a mapping of option values keyed
  by long flag name.

A passthrough command keeps a literal ``--`` in its captured values, so the
re-dispatched command sees the separator too.

:meth:`Program.parse` dispatches an argument vector against the group. It
may be called again from inside a running command (alias re-dispatch), in
which case errors propagate to the outer dispatch and the root context
object is inherited.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence

import click

from botctl.exceptions import CommandConfigError

logger = logging.getLogger(__name__)

_ARGUMENT_RE = re.compile(r"^(?P<open>[<\[])(?P<name>[^<>\[\].]+)(?P<variadic>\.\.\.)?[>\]]$")
_FLAGS_RE = re.compile(
    r"^(?:-(?P<short>[A-Za-z0-9]),\s*)?--(?P<long>[A-Za-z0-9][\w-]*)"
    r"(?:\s+(?P<value>[<\[][^<>\[\]]*[>\]]))?$"
)


@dataclass(frozen=True)
class ArgumentSpec:
    """One positional token of a command signature."""

    name: str
    required: bool
    variadic: bool = False

    @property
    def metavar(self) -> str:
        label = self.name.upper()
        if self.variadic:
            label = f"{label}..."
        return label if self.required else f"[{label}]"


def parse_signature(signature: str) -> tuple[str, list[ArgumentSpec]]:
    """Split ``"name <a> [b] [c...]"`` into the command name and its arguments.

    Raises:
        CommandConfigError: If a token is not ``<x>``/``[x]``, a required
            argument follows an optional one, or a variadic argument is not
            last.
    """
    tokens = signature.split()
    if not tokens:
        raise CommandConfigError("Empty command signature")

    name, *rest = tokens
    arguments: list[ArgumentSpec] = []
    for token in rest:
        match = _ARGUMENT_RE.match(token)
        if match is None:
            raise CommandConfigError(
                f"Invalid argument '{token}' in signature '{signature}'"
            )
        arguments.append(
            ArgumentSpec(
                name=match["name"],
                required=match["open"] == "<",
                variadic=bool(match["variadic"]),
            )
        )

    for index, arg in enumerate(arguments):
        if arg.variadic and index != len(arguments) - 1:
            raise CommandConfigError(
                f"Variadic argument '{arg.name}' must be last in '{signature}'"
            )
        if arg.required and index and not arguments[index - 1].required:
            raise CommandConfigError(
                f"Required argument '{arg.name}' follows an optional one in '{signature}'"
            )

    return name, arguments


_RAW_ARGS = "botctl.raw_args"


class _PassthroughCommand(click.Command):
    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        ctx.meta[_RAW_ARGS] = list(args)
        return super().parse_args(ctx, args)


class Subcommand:
    """A registered command awaiting its options and action.

    Wraps one :class:`click.Command`. Options may be added in any order
    before or after :meth:`action`; they are appended to the command's
    parameter list in call order, which is the order shown in ``--help``.
    """

    def __init__(
        self,
        name: str,
        arguments: list[ArgumentSpec],
        description: Optional[str] = None,
        passthrough: bool = False,
    ) -> None:
        self.name = name
        self.arguments = arguments
        self.passthrough = passthrough
        self._options: list[tuple[str, str]] = []
        self._callback: Optional[Callable[..., Any]] = None

        params: list[click.Parameter] = [
            click.Argument(
                [f"arg{index}"],
                required=arg.required,
                nargs=-1 if arg.variadic else 1,
                metavar=arg.metavar,
            )
            for index, arg in enumerate(arguments)
        ]
        context_settings: dict[str, Any] = {}
        if passthrough:
            # Flags meant for the re-dispatched command stay in the captured args.
            context_settings["ignore_unknown_options"] = True

        command_class = _PassthroughCommand if passthrough else click.Command
        self.command = command_class(
            name,
            params=params,
            callback=self._invoke,
            help=description,
            context_settings=context_settings,
        )

    @property
    def option_names(self) -> list[str]:
        return [key for _, key in self._options]

    def option(
        self,
        flags: str,
        description: str = "",
        default: Any = None,
    ) -> Subcommand:
        """Add an option described by a commander-style flag string.

        Args:
            flags: ``"-s, --long"``, ``"--long <value>"`` or
                ``"--long [value]"``.
            description: Help text.
            default: Default for value-taking (``<value>``) options.

        Returns:
            ``self``, for chaining.

        Raises:
            CommandConfigError: If *flags* cannot be parsed or the long name
                is already used on this command.
        """
        match = _FLAGS_RE.match(flags.strip())
        if match is None:
            raise CommandConfigError(f"Invalid option '{flags}' on command '{self.name}'")

        key = match["long"]
        if key in self.option_names:
            raise CommandConfigError(f"Option '--{key}' declared twice on command '{self.name}'")

        dest = f"opt{len(self._options)}"
        decls = [f"--{key}"]
        if match["short"]:
            decls.append(f"-{match['short']}")
        decls.append(dest)

        value = match["value"]
        if value is None:
            param = click.Option(decls, is_flag=True, default=False, help=description)
        elif value.startswith("<"):
            param = click.Option(
                decls,
                default=default,
                show_default=default is not None,
                metavar="VALUE",
                type=click.UNPROCESSED,
                help=description,
            )
        else:
            param = click.Option(
                decls,
                is_flag=False,
                flag_value=True,
                default=None,
                metavar="[VALUE]",
                type=click.UNPROCESSED,
                help=description,
            )

        self.command.params.append(param)
        self._options.append((dest, key))
        return self

    def action(self, callback: Callable[..., Any]) -> Subcommand:
        """Bind the function invoked when this command is dispatched."""
        self._callback = callback
        return self

    def _invoke(self, **values: Any) -> Any:
        if self._callback is None:
            raise click.UsageError(f"Command '{self.name}' has no action bound")

        positional: list[Any] = []
        for index, arg in enumerate(self.arguments):
            value = values[f"arg{index}"]
            positional.append(list(value) if arg.variadic else value)
        if self.passthrough and self.arguments and self.arguments[-1].variadic:
            positional[-1] = _restore_separator(positional[-1])
        options = {key: values[dest] for dest, key in self._options}
        return self._callback(*positional, options)


def _restore_separator(values: list[str]) -> list[str]:
    """Put back the ``--`` click consumed in front of the trailing values."""
    raw = click.get_current_context().meta.get(_RAW_ARGS, [])
    if "--" not in raw:
        return values
    trailing = len(raw) - raw.index("--") - 1
    if trailing > len(values):
        return values
    split = len(values) - trailing
    return [*values[:split], "--", *values[split:]]


class Program:
    """The command registry the compiler writes into.

    Args:
        group: The click group commands are added to. For the real CLI this
            is the Typer-built root group, which lists commands in
            registration order.
        name: Program name shown in usage lines. Defaults to the group name.
        obj: Initial context object of the outermost dispatch.
    """

    def __init__(
        self,
        group: click.Group,
        name: Optional[str] = None,
        obj: Any = None,
    ) -> None:
        self.group = group
        self.name = name or group.name or "botctl"
        self.obj = obj
        self._signatures: list[str] = []

    @property
    def signatures(self) -> list[str]:
        """Every registered signature, in registration order."""
        return list(self._signatures)

    def command(
        self,
        signature: str,
        description: Optional[str] = None,
        passthrough: bool = False,
    ) -> Subcommand:
        """Register a command from a ``"name <arg> [arg]"`` signature.

        Args:
            signature: Command name followed by its positional arguments.
            description: Help text.
            passthrough: Let unknown ``--flags`` through as positional values.

        Returns:
            The new :class:`Subcommand`.

        Raises:
            CommandConfigError: If the signature is invalid or the name is
                already registered.
        """
        name, arguments = parse_signature(signature)
        if name in self.group.commands:
            raise CommandConfigError(f"Command '{name}' is registered twice")

        subcommand = Subcommand(name, arguments, description, passthrough)
        self.group.add_command(subcommand.command)
        self._signatures.append(" ".join(signature.split()))
        logger.debug("Registered command '%s'", signature)
        return subcommand

    def parse(self, argv: Sequence[str]) -> Any:
        """Dispatch *argv* (without the program name) against the group.

        The outermost call runs click in standalone mode, which handles usage
        errors and exits the process. A call made while a command is already
        running invokes the group directly, so usage errors and
        :class:`click.exceptions.Exit` propagate to the outer call and keep
        their exit code.
        """
        args = list(argv)
        current = click.get_current_context(silent=True)
        if current is None:
            return self.group.main(args=args, prog_name=self.name, obj=self.obj)

        logger.debug("Re-dispatching %s", args)
        with self.group.make_context(
            self.name, args, obj=current.find_root().obj
        ) as ctx:
            return self.group.invoke(ctx)
