"""Compile a declarative command tree into a live CLI.

This is the core algorithm of botctl. It walks a
:data:`~botctl.models.CommandList` and registers one CLI command per leaf
onto a :class:`~botctl.program.Program`.

**Algorithm summary**

1. Groups register nothing. Their children are compiled with the group key
   and ``-`` appended to the prefix, so ``deployment: {channel: {add: ...}}``
   becomes ``deployment-channel-add``.
2. Aliases register their own key, never prefixed. The action re-dispatches
   the whole program with the alias template followed by whatever the user
   typed after the alias.
3. Plain commands register ``alias or key`` (prefixed) with the ``args``
   signature and one option per ``params`` entry.
4. Each plain command gets a single synchronous action that threads the
   invocation arguments through the middleware chain and calls the handler.
   Every name is resolved once, at compile time, through the injector.

Compilation is a coroutine because resolving a component may await an async
factory. It completes before :meth:`Program.parse` is ever called, so a bad
descriptor or an unknown handler name aborts startup instead of surfacing
on first use.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Callable, Mapping, Protocol, Sequence, Union

from pydantic import ValidationError

from botctl.config import format_validation_error
from botctl.exceptions import CommandConfigError, ResolutionError
from botctl.models import CommandDescriptor, ParamDescriptor
from botctl.program import Program

logger = logging.getLogger(__name__)

Action = Callable[..., None]
RawCommands = Mapping[str, Union[CommandDescriptor, Mapping[str, Any]]]


class Resolver(Protocol):
    """What the compiler needs from the injector."""

    async def resolve_method(self, name: str) -> Callable[..., Any]: ...


class CommandCompiler:
    """Registers a command tree onto a :class:`~botctl.program.Program`.

    Args:
        resolver: Maps ``"component.method"`` names to callables. In the
            application this is the :class:`~botctl.injector.Injector`.

    Example::

        compiler = CommandCompiler(injector)
        await compiler.compile(load_commands(), program)
        program.parse(sys.argv[1:])
    """

    def __init__(self, resolver: Resolver) -> None:
        self.resolver = resolver

    async def compile(
        self,
        commands: RawCommands,
        program: Program,
        prefix: str = "",
    ) -> None:
        """Register every leaf of *commands* on *program*, in mapping order.

        Raises:
            CommandConfigError: If a descriptor is malformed. The message
                names the dotted key path of the offending node.
            ResolutionError: If a handler or middleware name is unknown.
        """
        for key, raw in commands.items():
            path = f"{prefix}{key}"
            descriptor = _coerce(raw, path)

            if descriptor.is_group:
                if descriptor.subcommands is None:
                    raise CommandConfigError(f"{path}: group must declare 'subcommands'")
                await self.compile(descriptor.subcommands, program, prefix=f"{path}-")
            elif descriptor.is_alias:
                self.compile_alias(key, descriptor, program)
            else:
                await self.compile_command(path, descriptor, program)

    def compile_alias(
        self,
        key: str,
        descriptor: CommandDescriptor,
        program: Program,
    ) -> None:
        """Register *key* as a shortcut re-dispatching ``descriptor.alias``."""
        template = (descriptor.alias or "").split()
        if not template:
            raise CommandConfigError(f"{key}: alias must declare a non-empty 'alias' template")

        def dispatch(captured: list[str], options: dict[str, Any]) -> None:
            program.parse([*template, *captured])

        program.command(
            f"{key} [args...]",
            description=descriptor.desc or f"Alias for '{' '.join(template)}'",
            passthrough=True,
        ).action(dispatch)

    async def compile_command(
        self,
        key: str,
        descriptor: CommandDescriptor,
        program: Program,
    ) -> None:
        """Register one plain command with its options and composed action."""
        if not descriptor.handler:
            raise CommandConfigError(f"{key}: command must declare a 'handler'")

        try:
            action = await self.create_action(descriptor.handler, descriptor.middleware)
        except ResolutionError as exc:
            raise ResolutionError(f"{key}: {exc}") from exc

        name = descriptor.alias or key
        signature = f"{name} {descriptor.args}" if descriptor.args else name
        subcommand = program.command(signature, description=descriptor.desc)
        for param_name, param in (descriptor.params or {}).items():
            flags, default = _option_flags(param_name, param)
            subcommand.option(flags, param.desc or "", default)
        subcommand.action(action)

    async def create_action(
        self,
        handler: str,
        middleware: Sequence[str] = (),
    ) -> Action:
        """Resolve *handler* and *middleware* and compose them into one callback.

        The returned callback passes its arguments through each middleware in
        order (every middleware returns the argument sequence for the next
        stage) and then calls the handler. The handler's result is dropped.
        An async handler is run to completion on a new event loop.
        """
        chain = [await self.resolver.resolve_method(name) for name in middleware]
        target = await self.resolver.resolve_method(handler)
        logger.debug("Composed action %s -> %s", " -> ".join(middleware) or "-", handler)

        def action(*args: Any) -> None:
            for transform in chain:
                args = tuple(transform(*args))
            result = target(*args)
            if inspect.iscoroutine(result):
                asyncio.run(result)

        return action


def _coerce(raw: Any, path: str) -> CommandDescriptor:
    if isinstance(raw, CommandDescriptor):
        return raw
    try:
        return CommandDescriptor.model_validate(raw)
    except ValidationError as exc:
        raise CommandConfigError(
            f"Invalid command descriptor '{path}':\n{format_validation_error(exc)}"
        ) from exc


def _option_flags(name: str, param: ParamDescriptor) -> tuple[str, Any]:
    """Return the flag string and default for *param*."""
    flags = f"-{param.short}, --{name}" if param.short else f"--{name}"
    if param.has_value:
        return f"{flags} <value>", param.value
    if param.is_flag:
        return flags, None
    return f"{flags} [value]", None
