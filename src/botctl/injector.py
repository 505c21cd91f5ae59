"""Component injector -- resolves handler and middleware names to callables.

Command descriptors refer to behaviour by name (``"deployment.deploy"``,
``"helper.inject_bot_id"``). The part before the last dot names a
*component*, the part after it a method on that component. This module maps
those names to bound methods without the compiler importing any handler
module itself.

Components are registered in one of three ways:

* :meth:`Injector.register_instance` -- an already-built object (the
  resolved :class:`~botctl.models.GlobalConfig` is registered as
  ``config``).
* :meth:`Injector.register` -- a factory (class, function, or
  ``"package.module:attr"`` import path loaded lazily on first use).
* :meth:`Injector.discover` -- third-party factories declared under the
  ``botctl.components`` entry-point group::

      [project.entry-points."botctl.components"]
      audit = "botctl_audit:AuditLog"

Factories are called with their parameters resolved *by name* as other
components, so ``DeploymentHandlers(api, output=None)`` receives the ``api``
component. Each component is built once and cached. A factory may be a
coroutine function, and a component may define ``async def initialize()``;
both are awaited during resolution.
"""

from __future__ import annotations

import importlib
import importlib.metadata
import inspect
import logging
from typing import Any, Callable, Mapping, Optional, Union

from botctl.exceptions import ResolutionError

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "botctl.components"
"""The entry-point group name used for component discovery."""

Factory = Union[str, Callable[..., Any]]


class Injector:
    """Builds components on demand and resolves ``component.method`` names.

    Args:
        factories: Initial ``name -> factory`` registrations.

    Example::

        injector = Injector({"helper": "botctl.components.helper:Helper"})
        injector.register_instance("config", GlobalConfig())
        method = await injector.resolve_method("helper.inject_bot_id")
    """

    def __init__(self, factories: Optional[Mapping[str, Factory]] = None) -> None:
        self._factories: dict[str, Factory] = dict(factories or {})
        self._instances: dict[str, Any] = {}
        self._resolving: list[str] = []

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, name: str, factory: Factory) -> None:
        """Register (or replace) the factory for component *name*.

        Replacing a factory drops any instance already built from the old one.
        """
        self._factories[name] = factory
        self._instances.pop(name, None)

    def register_instance(self, name: str, instance: Any) -> None:
        """Register a ready-made component."""
        self._instances[name] = instance

    def discover(self, group: str = ENTRY_POINT_GROUP) -> list[str]:
        """Register factories declared as entry points in *group*.

        Built-in registrations win over entry points with the same name.
        Entry points are loaded lazily, on first resolution.

        Returns:
            The names that were registered.
        """
        registered: list[str] = []
        for ep in importlib.metadata.entry_points(group=group):
            if ep.name in self._factories or ep.name in self._instances:
                logger.debug("Component '%s' already registered, skipping entry point", ep.name)
                continue
            self._factories[ep.name] = ep.value
            registered.append(ep.name)
        return registered

    def has(self, name: str) -> bool:
        return name in self._instances or name in self._factories

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    async def resolve(self, name: str) -> Any:
        """Return component *name*, building it (and its dependencies) if needed.

        Raises:
            ResolutionError: If the component is unknown, its factory cannot
                be imported, a dependency cannot be satisfied, or the
                dependency graph is circular.
        """
        if name in self._instances:
            return self._instances[name]
        if name not in self._factories:
            raise ResolutionError(f"Unknown component '{name}'")
        if name in self._resolving:
            chain = " -> ".join([*self._resolving, name])
            raise ResolutionError(f"Circular dependency: {chain}")

        self._resolving.append(name)
        try:
            factory = self._load_factory(name, self._factories[name])
            kwargs = await self._dependencies(name, factory)
            instance = factory(**kwargs)
            if inspect.isawaitable(instance):
                instance = await instance
            initialize = getattr(instance, "initialize", None)
            if inspect.iscoroutinefunction(initialize):
                await initialize()
        finally:
            self._resolving.pop()

        self._instances[name] = instance
        logger.debug("Built component '%s'", name)
        return instance

    async def resolve_method(self, name: str) -> Callable[..., Any]:
        """Resolve ``"component.method"`` to a bound callable.

        A name without a dot resolves to a component that is itself callable.

        Raises:
            ResolutionError: If the component or the method does not exist,
                or the target is not callable.
        """
        component_name, _, method_name = name.rpartition(".")
        if not component_name:
            target = await self.resolve(method_name)
        else:
            component = await self.resolve(component_name)
            target = getattr(component, method_name, None)
            if target is None or method_name.startswith("_"):
                raise ResolutionError(
                    f"Component '{component_name}' has no method '{method_name}'"
                )

        if not callable(target):
            raise ResolutionError(f"'{name}' does not resolve to a callable")
        return target

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _load_factory(self, name: str, factory: Factory) -> Callable[..., Any]:
        if callable(factory):
            return factory

        module_name, _, attr = factory.partition(":")
        try:
            target: Any = importlib.import_module(module_name)
            for part in filter(None, attr.split(".")):
                target = getattr(target, part)
        except (ImportError, AttributeError) as exc:
            raise ResolutionError(
                f"Cannot load component '{name}' from '{factory}': {exc}"
            ) from exc

        if not callable(target):
            raise ResolutionError(f"Component '{name}' factory '{factory}' is not callable")
        self._factories[name] = target
        return target

    async def _dependencies(self, name: str, factory: Callable[..., Any]) -> dict[str, Any]:
        try:
            signature = inspect.signature(factory)
        except (TypeError, ValueError):
            return {}

        kwargs: dict[str, Any] = {}
        for param in signature.parameters.values():
            if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
                continue
            if self.has(param.name):
                kwargs[param.name] = await self.resolve(param.name)
            elif param.default is param.empty:
                raise ResolutionError(
                    f"Component '{name}' depends on unknown component '{param.name}'"
                )
        return kwargs
