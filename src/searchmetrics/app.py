"""Typer application and CLI entry point for searchmetrics.

This module wires together the top-level Typer application: the root
callback that installs the global :class:`~searchmetrics.output.OutputManager`,
the request commands (``get``, ``post``, ``token``), and the ``profile``
and ``config`` sub-groups.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. Library errors reaching it exit with their
``exit_code``; anything else is written to a crash log under the data
directory.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from searchmetrics import __version__
from searchmetrics.commands.config import config_app
from searchmetrics.commands.profile import profile_app
from searchmetrics.commands.request import get_command, post_command, token_command
from searchmetrics.exit_codes import EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="searchmetrics",
    help="Call the Searchmetrics API with OAuth2 client credentials.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.command("get")(get_command)
app.command("post")(post_command)
app.command("token")(token_command)
app.add_typer(profile_app, name="profile", help="Connection profile management.")
app.add_typer(config_app, name="config", help="Configuration management.")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"searchmetrics {__version__}")
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
    profile: Optional[str] = typer.Option(
        None, "--profile", "-p", help="Profile name to use."
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
    """Root callback executed before every sub-command.

    Installs the global output manager from the formatting flags and stores
    the selected profile in ``ctx.obj`` for the request commands.
    """
    from searchmetrics.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(
        OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose)
    )

    ctx.ensure_object(dict)
    ctx.obj["profile"] = profile
    ctx.obj["verbose"] = verbose


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write the current traceback to the data directory and return its path."""
    from searchmetrics.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(f"{type(exc).__name__}: {exc}\n\n{traceback.format_exc()}")
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``searchmetrics`` console script.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from searchmetrics.exceptions import SearchmetricsError
        from searchmetrics.output import error

        if isinstance(exc, SearchmetricsError):
            error(str(exc))
            sys.exit(exc.exit_code)
        log_path = _write_crash_log(exc)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
