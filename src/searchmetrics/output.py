"""Output formatting for the ``searchmetrics`` CLI with stdout/stderr discipline.

Follows `clig.dev <https://clig.dev/>`_ conventions:

* **stdout** -- decoded API responses only, so results can be piped into
  ``jq`` and friends.
* **stderr** -- diagnostics (request traces, warnings, errors).
* **TTY detection** -- Rich formatting when stdout is an interactive
  terminal, plain text when piped.
* **Colour control** -- respects ``NO_COLOR``, ``TERM=dumb``, and
  ``--no-color``.

The library modules never print; only :mod:`searchmetrics.app` and
:mod:`searchmetrics.commands` go through the global :class:`OutputManager`
installed by :func:`set_output`.
"""

from __future__ import annotations

import json
import os
import sys
from enum import Enum
from typing import Any, Optional

from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table


class OutputFormat(str, Enum):
    """Supported output formats.

    ``AUTO`` resolves to ``RICH`` on an interactive TTY with colour enabled,
    ``PLAIN`` otherwise.
    """

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


class OutputManager:
    """Routes CLI output to stdout (data) and stderr (diagnostics).

    Args:
        format: Desired output format. ``AUTO`` resolves based on TTY
            detection.
        no_color: Disable all colour and Rich markup.
        quiet: Suppress informational messages on stderr.
        verbose: Enable debug messages on stderr.
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
            self._format = (
                OutputFormat.RICH if _is_tty() and not self._no_color else OutputFormat.PLAIN
            )
        else:
            self._format = format

        self._stdout = Console(
            file=sys.stdout,
            no_color=self._no_color,
            force_terminal=(self._format == OutputFormat.RICH),
        )
        self._stderr = Console(
            file=sys.stderr,
            no_color=self._no_color,
            stderr=True,
        )

    @property
    def format(self) -> OutputFormat:
        return self._format

    @property
    def is_verbose(self) -> bool:
        return self._verbose

    # ------------------------------------------------------------------ #
    # Data output (stdout)
    # ------------------------------------------------------------------ #

    def format_response(self, data: Any) -> None:
        """Render a decoded JSON value to stdout in the active format."""
        if self._format == OutputFormat.JSON:
            self.print_data(json.dumps(data, indent=2, ensure_ascii=False, default=str))
        elif self._format == OutputFormat.PLAIN:
            self._print_plain(data)
        else:
            json_str = json.dumps(data, indent=2, ensure_ascii=False, default=str)
            self._stdout.print(Syntax(json_str, "json", theme="monokai", word_wrap=True))

    def print_data(self, text: str) -> None:
        print(text, file=sys.stdout, flush=True)

    def print_table(
        self,
        headers: list[str],
        rows: list[list[str]],
        title: Optional[str] = None,
    ) -> None:
        """Print rows as a Rich table, a JSON array of objects, or TSV."""
        if self._format == OutputFormat.JSON:
            records = [dict(zip(headers, row)) for row in rows]
            self.print_data(json.dumps(records, indent=2, ensure_ascii=False))
        elif self._format == OutputFormat.PLAIN:
            self.print_data("\t".join(headers))
            for row in rows:
                self.print_data("\t".join(row))
        else:
            table = Table(title=title, show_header=True, header_style="bold cyan")
            for h in headers:
                table.add_column(h)
            for row in rows:
                table.add_row(*row)
            self._stdout.print(table)

    # ------------------------------------------------------------------ #
    # Diagnostics (stderr)
    # ------------------------------------------------------------------ #

    def info(self, message: str) -> None:
        if not self._quiet:
            if self._no_color:
                print(message, file=sys.stderr, flush=True)
            else:
                self._stderr.print(message)

    def success(self, message: str) -> None:
        if not self._quiet:
            if self._no_color:
                print(message, file=sys.stderr, flush=True)
            else:
                self._stderr.print(f"[green]{message}[/green]")

    def warning(self, message: str) -> None:
        """Print a warning to stderr. NOT suppressed by ``--quiet``."""
        if self._no_color:
            print(f"Warning: {message}", file=sys.stderr, flush=True)
        else:
            self._stderr.print(f"[yellow]Warning:[/yellow] {message}")

    def error(self, message: str) -> None:
        """Print an error to stderr. Never suppressed."""
        if self._no_color:
            print(f"Error: {message}", file=sys.stderr, flush=True)
        else:
            self._stderr.print(f"[bold red]Error:[/bold red] {message}")

    def suggest(self, message: str) -> None:
        if not self._quiet:
            formatted = f"→ {message}"
            if self._no_color:
                print(formatted, file=sys.stderr, flush=True)
            else:
                self._stderr.print(f"[dim]{formatted}[/dim]")

    def debug(self, message: str) -> None:
        """Print a debug message to stderr. Only shown with ``--verbose``."""
        if self._verbose:
            if self._no_color:
                print(f"[debug] {message}", file=sys.stderr, flush=True)
            else:
                self._stderr.print(f"[dim]\\[debug] {message}[/dim]")

    def _print_plain(self, data: Any) -> None:
        if isinstance(data, dict):
            for key, value in data.items():
                if isinstance(value, (dict, list)):
                    value = json.dumps(value, ensure_ascii=False, default=str)
                self.print_data(f"{key}\t{value}")
        elif isinstance(data, list):
            for item in data:
                if isinstance(item, dict):
                    self.print_data("\t".join(str(v) for v in item.values()))
                else:
                    self.print_data(str(item))
        else:
            self.print_data(str(data))


# ------------------------------------------------------------------ #
# Module-level helpers
# ------------------------------------------------------------------ #


def _is_tty() -> bool:
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    """Return True when ``NO_COLOR`` is set (any value) or ``TERM=dumb``."""
    if os.environ.get("NO_COLOR") is not None:
        return True
    if os.environ.get("TERM") == "dumb":
        return True
    return False


_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the global :class:`OutputManager`, creating a default one lazily."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    """Reset the global :class:`OutputManager` to ``None`` (used by tests)."""
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


def error(message: str) -> None:
    get_output().error(message)


def success(message: str) -> None:
    get_output().success(message)


def warning(message: str) -> None:
    get_output().warning(message)


def suggest(message: str) -> None:
    get_output().suggest(message)


def debug(message: str) -> None:
    get_output().debug(message)
