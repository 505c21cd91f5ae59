"""Terminal output for botctl.

Records (deployments, channels, configuration) are written to **stdout** so
they can be piped; everything addressed to the person at the terminal
(status lines, warnings, errors, hints) goes to **stderr**.

Records are rendered in one of three formats:

* ``rich`` -- syntax-highlighted JSON and Rich tables, used on an
  interactive colour terminal;
* ``plain`` -- tab-separated lines, used when stdout is piped;
* ``json`` -- machine-readable JSON (``--json``).

``NO_COLOR``, ``TERM=dumb`` and ``--no-color`` turn colour off.

Handlers use the module-level helpers (:func:`success`, :func:`error`,
:func:`format_response`, ...). They delegate to the manager the root
callback installs with :func:`set_output`.
"""

from __future__ import annotations

import json
import os
import sys
from enum import Enum
from typing import Any, Optional

from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table


class OutputFormat(str, Enum):
    """Record format. ``AUTO`` picks ``RICH`` on a colour TTY, else ``PLAIN``."""

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


# (plain prefix, rich markup template, suppressed by --quiet)
_DIAGNOSTICS: dict[str, tuple[str, str, bool]] = {
    "info": ("", "{}", True),
    "success": ("", "[green]{}[/green]", True),
    "warning": ("Warning: ", "[yellow]Warning:[/yellow] {}", False),
    "error": ("Error: ", "[bold red]Error:[/bold red] {}", False),
    "suggest": ("→ ", "[dim]→ {}[/dim]", True),
    "debug": ("[debug] ", "[dim]\\[debug] {}[/dim]", False),
}


def _to_json(data: Any, indent: Optional[int] = 2) -> str:
    return json.dumps(data, indent=indent, ensure_ascii=False, default=str)


class OutputManager:
    """Writes records and diagnostics for one CLI invocation.

    Args:
        format: Record format. ``AUTO`` is resolved here, once.
        no_color: Disable colour (also implied by ``NO_COLOR``/``TERM=dumb``).
        quiet: Drop info, success and suggestion lines.
        verbose: Emit debug lines.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
    ) -> None:
        self._no_color = no_color or _should_disable_color()
        self._quiet = quiet
        self._verbose = verbose

        if format == OutputFormat.AUTO:
            use_rich = _is_tty() and not self._no_color
            format = OutputFormat.RICH if use_rich else OutputFormat.PLAIN
        self._format = format

        self._stdout = Console(
            file=sys.stdout,
            no_color=self._no_color,
            force_terminal=format == OutputFormat.RICH,
        )
        self._stderr = Console(file=sys.stderr, no_color=self._no_color, stderr=True)

    @property
    def format(self) -> OutputFormat:
        return self._format

    # -- records (stdout) --

    def print_data(self, text: str) -> None:
        print(text, file=sys.stdout, flush=True)

    def format_response(self, data: Any) -> None:
        """Write a record, a list of records, or a scalar to stdout."""
        if self._format == OutputFormat.JSON:
            self.print_data(_to_json(data))
        elif self._format == OutputFormat.PLAIN:
            for line in _plain_lines(data):
                self.print_data(line)
        elif isinstance(data, (dict, list)):
            self._stdout.print(Syntax(_to_json(data), "json", theme="monokai", word_wrap=True))
        else:
            self._stdout.print(str(data))

    def print_table(
        self,
        headers: list[str],
        rows: list[list[str]],
        title: Optional[str] = None,
    ) -> None:
        """Write rows as a table: Rich table, TSV with a header line, or JSON objects."""
        if self._format == OutputFormat.JSON:
            self.print_data(_to_json([dict(zip(headers, row)) for row in rows]))
            return
        if self._format == OutputFormat.PLAIN:
            for row in [headers, *rows]:
                self.print_data("\t".join(row))
            return

        table = Table(*headers, title=title, header_style="bold cyan")
        for row in rows:
            table.add_row(*row)
        self._stdout.print(table)

    # -- diagnostics (stderr) --

    def info(self, message: str) -> None:
        self._diagnostic("info", message)

    def success(self, message: str) -> None:
        self._diagnostic("success", message)

    def warning(self, message: str) -> None:
        self._diagnostic("warning", message)

    def error(self, message: str) -> None:
        self._diagnostic("error", message)

    def suggest(self, message: str) -> None:
        self._diagnostic("suggest", message)

    def debug(self, message: str) -> None:
        if self._verbose:
            self._diagnostic("debug", message)

    def _diagnostic(self, kind: str, message: str) -> None:
        prefix, markup, quietable = _DIAGNOSTICS[kind]
        if quietable and self._quiet:
            return
        if self._no_color:
            print(f"{prefix}{message}", file=sys.stderr, flush=True)
        else:
            self._stderr.print(markup.format(escape(message)))


def _plain_lines(data: Any) -> list[str]:
    """Tab-separated lines: ``key<TAB>value`` for a record, one line per list item."""
    if isinstance(data, dict):
        return [
            f"{key}\t{_to_json(value, None) if isinstance(value, (dict, list)) else value}"
            for key, value in data.items()
        ]
    if isinstance(data, list):
        return [
            "\t".join(str(v) for v in item.values()) if isinstance(item, dict) else str(item)
            for item in data
        ]
    return [str(data)]


def _is_tty() -> bool:
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    """True when ``NO_COLOR`` is set (any value) or ``TERM=dumb``."""
    return "NO_COLOR" in os.environ or os.environ.get("TERM") == "dumb"


# -- process-wide manager --

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the installed manager, creating a default one on first use."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    global _output
    _output = None


def format_response(data: Any) -> None:
    get_output().format_response(data)


def print_table(
    headers: list[str],
    rows: list[list[str]],
    title: Optional[str] = None,
) -> None:
    get_output().print_table(headers, rows, title)


def info(message: str) -> None:
    get_output().info(message)


def success(message: str) -> None:
    get_output().success(message)


def warning(message: str) -> None:
    get_output().warning(message)


def error(message: str) -> None:
    get_output().error(message)


def suggest(message: str) -> None:
    get_output().suggest(message)


def debug(message: str) -> None:
    get_output().debug(message)
