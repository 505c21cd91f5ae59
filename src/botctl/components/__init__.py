"""Built-in handler components.

Each entry maps a component name, as used in ``handler`` and ``middleware``
names of ``commands.yml``, to the factory the injector builds it from.
Factories are import paths so that a command tree which never touches a
component never imports it.

The ``config`` component is not listed here: :func:`botctl.app.create_injector`
registers the resolved :class:`~botctl.models.GlobalConfig` instance under
that name.
"""

BUILTIN_COMPONENTS: dict[str, str] = {
    "api": "botctl.client.management:ManagementApi",
    "helper": "botctl.components.helper:Helper",
    "deployment": "botctl.components.deployment:DeploymentHandlers",
    "settings": "botctl.components.settings:Settings",
}
