"""What the ``authmux`` command prints, and where.

Data a command produces goes to stdout so it can be piped: the authorize
URL, provider states, a token set, a profile. Notes, hints and errors go to
stderr. Data is rendered one of three ways:

* ``rich`` -- tables, for an interactive terminal;
* ``plain`` -- tab-separated lines, one record or field per line;
* ``json`` -- a single JSON document.

``auto`` picks ``rich`` when stdout is a terminal and colour is enabled
(``NO_COLOR`` unset, ``TERM`` not ``dumb``), ``plain`` otherwise. Token
values are shortened in the ``rich`` view only; ``--plain`` and ``--json``
print them in full.

The library never prints. :func:`~authmux.app.main_callback` installs the
process-wide :class:`Output` and commands reach it through
:func:`get_output`.
"""

from __future__ import annotations

import json
import os
import sys
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, Sequence

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from authmux.models import Profile, TokenSet

_SECRET_FIELDS = frozenset({"access_token", "access_token_secret", "refresh_token", "id_token"})


class OutputFormat(str, Enum):
    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


@dataclass(frozen=True)
class ProviderRow:
    """One line of ``authmux providers``."""

    name: str
    protocol: str
    state: str


@dataclass(frozen=True)
class ConnectionRow:
    """One line of ``authmux status``."""

    name: str
    connected: bool
    expires_at: Optional[int] = None


def color_disabled() -> bool:
    """``NO_COLOR`` (any value, even empty) or ``TERM=dumb`` turns colour off."""
    return "NO_COLOR" in os.environ or os.environ.get("TERM") == "dumb"


def _stdout_is_terminal() -> bool:
    isatty = getattr(sys.stdout, "isatty", None)
    return bool(isatty and isatty())


def format_timestamp(value: Optional[int]) -> str:
    if not value:
        return "-"
    return datetime.fromtimestamp(int(value), tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")


def shorten_secret(value: str) -> str:
    """``gho_abcdefghijkl`` -> ``gho_…ijkl``. Short values are hidden entirely."""
    if len(value) <= 12:
        return "…"
    return f"{value[:4]}…{value[-4:]}"


class Output:
    """Renders command results and diagnostics.

    Both consoles are created without a file, so rich writes to whatever
    ``sys.stdout``/``sys.stderr`` is current at print time (CliRunner swaps
    them per invocation).

    Args:
        format: Rendering for data. ``AUTO`` is resolved immediately.
        no_color: Disable colour even on a terminal.
        quiet: Drop notes, successes and hints. Warnings and errors stay.
        verbose: Show :meth:`debug` messages.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
    ) -> None:
        self.no_color = no_color or color_disabled()
        self.quiet = quiet
        self.verbose = verbose
        if format == OutputFormat.AUTO:
            use_rich = _stdout_is_terminal() and not self.no_color
            format = OutputFormat.RICH if use_rich else OutputFormat.PLAIN
        self.format = format

        self._out = Console(no_color=self.no_color, highlight=False, emoji=False)
        self._err = Console(
            stderr=True, no_color=self.no_color, highlight=False, emoji=False, soft_wrap=True
        )

    # ------------------------------------------------------------------ #
    # Command results (stdout)
    # ------------------------------------------------------------------ #

    def authorize_url(self, url: str) -> None:
        """The URL the user must open. Printed bare outside JSON mode so it can be copied."""
        if self.format == OutputFormat.JSON:
            self._json({"authorize_url": url})
        else:
            self._line(url)

    def providers(self, rows: Sequence[ProviderRow]) -> None:
        if self.format == OutputFormat.JSON:
            self._json([{"provider": r.name, "protocol": r.protocol, "state": r.state} for r in rows])
            return
        self._table(
            "Providers",
            ("Provider", "Protocol", "State"),
            [(r.name, r.protocol, r.state) for r in rows],
        )

    def connections(self, rows: Sequence[ConnectionRow]) -> None:
        if self.format == OutputFormat.JSON:
            self._json(
                [
                    {"provider": r.name, "connected": r.connected, "expires_at": r.expires_at}
                    for r in rows
                ]
            )
            return

        expiry = format_timestamp if self.format == OutputFormat.RICH else _epoch
        self._table(
            "Connections",
            ("Provider", "Connected", "Expires At"),
            [(r.name, "yes" if r.connected else "no", expiry(r.expires_at)) for r in rows],
        )

    def tokens(self, provider: str, tokens: TokenSet) -> None:
        fields = tokens.non_empty()
        if self.format == OutputFormat.JSON:
            self._json(fields)
        elif self.format == OutputFormat.PLAIN:
            self._fields(fields)
        else:
            shown: dict[str, Any] = {}
            for name, value in fields.items():
                if name in _SECRET_FIELDS:
                    value = shorten_secret(str(value))
                elif name == "expires_at":
                    value = format_timestamp(value)
                shown[name] = value
            self._field_table(f"{provider} tokens", shown)

    def profile(self, provider: str, profile: Profile) -> None:
        fields = profile.model_dump(mode="json", exclude_none=True)
        if not fields.get("data"):
            fields.pop("data", None)

        if self.format == OutputFormat.JSON:
            self._json(fields)
        elif self.format == OutputFormat.PLAIN:
            self._fields(fields)
        else:
            title = profile.display_name or str(profile.identifier or provider)
            self._field_table(f"{title} ({provider})", fields)

    # ------------------------------------------------------------------ #
    # Diagnostics (stderr)
    # ------------------------------------------------------------------ #

    def note(self, message: str) -> None:
        if not self.quiet:
            self._err.print(escape(message))

    def success(self, message: str) -> None:
        if not self.quiet:
            self._err.print(f"[green]{escape(message)}[/green]")

    def hint(self, message: str) -> None:
        if not self.quiet:
            self._err.print(f"[dim]→ {escape(message)}[/dim]")

    def warning(self, message: str) -> None:
        self._err.print(f"[yellow]Warning:[/yellow] {escape(message)}")

    def error(self, message: str) -> None:
        self._err.print(f"[bold red]Error:[/bold red] {escape(message)}")

    def debug(self, message: str) -> None:
        if self.verbose:
            self._err.print(f"[dim]\\[debug] {escape(message)}[/dim]")

    # ------------------------------------------------------------------ #
    # Rendering
    # ------------------------------------------------------------------ #

    def _line(self, text: str) -> None:
        # Plain text bypasses rich: it would expand tabs and wrap long URLs.
        print(text, file=sys.stdout, flush=True)

    def _json(self, data: Any) -> None:
        self._line(json.dumps(data, indent=2, ensure_ascii=False))

    def _fields(self, fields: dict[str, Any]) -> None:
        for name, value in fields.items():
            self._line(f"{name}\t{_cell(value)}")

    def _table(self, title: str, headers: Sequence[str], rows: Sequence[Sequence[str]]) -> None:
        if self.format == OutputFormat.PLAIN:
            self._line("\t".join(headers))
            for row in rows:
                self._line("\t".join(row))
            return

        table = Table(title=title, header_style="bold cyan")
        for header in headers:
            table.add_column(header)
        for row in rows:
            table.add_row(*(escape(cell) for cell in row))
        self._out.print(table)

    def _field_table(self, title: str, fields: dict[str, Any]) -> None:
        table = Table(title=title, show_header=False)
        table.add_column(style="bold")
        table.add_column(overflow="fold")
        for name, value in fields.items():
            table.add_row(name, escape(_cell(value)))
        self._out.print(table)


def _epoch(value: Optional[int]) -> str:
    return str(value) if value else "-"


def _cell(value: Any) -> str:
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


_output: Optional[Output] = None


def get_output() -> Output:
    """The process-wide :class:`Output`, created with defaults on first use."""
    global _output
    if _output is None:
        _output = Output()
    return _output


def set_output(output: Output) -> None:
    global _output
    _output = output


def reset_output() -> None:
    global _output
    _output = None
