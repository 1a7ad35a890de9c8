"""Session commands -- inspect and end provider connections."""

from __future__ import annotations

from typing import Optional

import typer

from authmux.commands import get_manager
from authmux.output import ConnectionRow, get_output


def status_command(ctx: typer.Context) -> None:
    """Show the connection state of every enabled provider.

    Example::

        authmux status
    """
    out = get_output()
    manager = get_manager(ctx)
    providers = manager.get_providers()
    if not providers:
        out.note("No providers enabled.")
        return

    rows: list[ConnectionRow] = []
    for name in providers:
        adapter = manager.get_adapter(name)
        rows.append(
            ConnectionRow(name, adapter.is_connected(), adapter.get_access_token().expires_at)
        )
    out.connections(rows)


def tokens_command(
    ctx: typer.Context,
    provider: str = typer.Argument(help="Configured provider name."),
) -> None:
    """Print the stored token set of a provider.

    Tokens are shortened in the terminal view; ``--plain`` or ``--json``
    print them in full.

    Example::

        authmux --json tokens github
    """
    out = get_output()
    tokens = get_manager(ctx).get_adapter(provider).get_access_token()
    if not tokens:
        out.note(f"No tokens stored for {provider}.")
        out.hint(f"Log in first: authmux login {provider}")
        return
    out.tokens(provider, tokens)


def profile_command(
    ctx: typer.Context,
    provider: str = typer.Argument(help="Configured provider name."),
) -> None:
    """Fetch and print the logged-in user's profile.

    Example::

        authmux profile github
    """
    out = get_output()
    adapter = get_manager(ctx).get_adapter(provider)
    if not adapter.is_connected():
        out.error(f"Not connected to {provider}.")
        out.hint(f"Log in first: authmux login {provider}")
        raise typer.Exit(code=1)

    out.profile(provider, adapter.get_user_profile())


def disconnect_command(
    ctx: typer.Context,
    provider: Optional[str] = typer.Argument(None, help="Configured provider name."),
    all_providers: bool = typer.Option(False, "--all", help="Disconnect every provider."),
) -> None:
    """Forget the stored credentials of one provider, or all with ``--all``.

    Example::

        authmux disconnect github
        authmux disconnect --all
    """
    out = get_output()
    if not provider and not all_providers:
        out.error("Give a provider name or --all.")
        raise typer.Exit(code=2)

    manager = get_manager(ctx)
    if all_providers:
        manager.disconnect_all_adapters()
        out.success("Disconnected all providers.")
        return

    manager.get_adapter(provider).disconnect()
    out.success(f"Disconnected {provider}.")
