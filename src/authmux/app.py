"""Typer application and CLI entry point for authmux.

The ``authmux`` command is developer tooling around the library: it loads
the same configuration file a host application would, and lets you walk a
provider's login by hand, inspect what is stored, and disconnect.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs signal handlers, registers the commands and
invokes the Typer app. :class:`~authmux.exceptions.AuthmuxError` ends the
process with the error's exit code; anything else is written to a crash
log under the data directory.

See Also:
    :mod:`authmux.config`: Configuration file resolution.
    :mod:`authmux.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from authmux import __version__
from authmux.exit_codes import EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="authmux",
    help="Log in with OAuth1, OAuth2 and OpenID providers from one configuration.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"authmux {__version__}")
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
    config_path: Optional[str] = typer.Option(
        None, "--config", "-c", help="Configuration file (default: $AUTHMUX_CONFIG)."
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-essential output."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
) -> None:
    """Root callback executed before every command.

    Installs the global :class:`~authmux.output.Output` and stores
    the configuration path in ``ctx.obj`` for the commands.
    """
    from authmux.output import Output, OutputFormat, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(Output(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))

    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose


def register_commands() -> None:
    """Attach the built-in commands to :data:`app`. Safe to call twice."""
    from authmux.commands.login import callback_command, login_command
    from authmux.commands.providers import providers_command
    from authmux.commands.session import (
        disconnect_command,
        profile_command,
        status_command,
        tokens_command,
    )

    if app.registered_commands:
        return

    app.command("providers")(providers_command)
    app.command("login")(login_command)
    app.command("callback")(callback_command)
    app.command("status")(status_command)
    app.command("tokens")(tokens_command)
    app.command("profile")(profile_command)
    app.command("disconnect")(disconnect_command)


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write the current traceback to disk and return the log file path."""
    from authmux.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``authmux`` console script.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        register_commands()
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from authmux.exceptions import AuthmuxError
        from authmux.output import get_output

        if isinstance(exc, AuthmuxError):
            get_output().error(str(exc))
            sys.exit(exc.exit_code)

        log_path = _write_crash_log(exc)
        get_output().error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
