"""botctl -- manage bot deployments and their channel bindings.

The command surface of ``botctl`` is not written as Python functions. It is
declared in a YAML command tree (``commands.yml``) and compiled at startup
into click commands whose actions are resolved, by name, from injected
handler components.

Typical workflow::

    botctl config-set base_url https://api.example.com
    botctl bot-use 739b5e9f-d5e1-44b1-93a8-954d291df170
    botctl deploy production 1.0.5
    botctl deployment-channel-add production fb --type messenger --token ...

Modules:
    app: Typer root application and console-script entry point.
    compiler: Turns the command tree into registered commands.
    injector: Resolves ``component.method`` names to callables.
    program: Signature-based command registration over click.
    models: Pydantic models for descriptors, config, and API records.
    config: XDG-aware configuration and command-tree loading.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.3.0"
