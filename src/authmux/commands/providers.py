"""``authmux providers`` -- show which providers can be used."""

from __future__ import annotations

import typer

from authmux.commands import get_manager
from authmux.exceptions import AuthmuxError
from authmux.output import ProviderRow, get_output


def providers_command(
    ctx: typer.Context,
    all_registered: bool = typer.Option(
        False, "--all", "-a", help="Also list registered providers that are not configured."
    ),
) -> None:
    """List configured providers with their protocol and connection state.

    Example::

        authmux providers
        authmux providers --all
    """
    from authmux.providers.registry import get_definition, registered_names

    out = get_output()
    manager = get_manager(ctx)

    rows: list[ProviderRow] = []
    for name, entry in manager.config.providers.items():
        try:
            protocol = manager.resolve_definition(name, entry).protocol
        except AuthmuxError:
            protocol = "-"

        if not entry.enabled:
            state = "disabled"
        elif protocol == "-":
            state = "unknown"
        else:
            state = "connected" if manager.is_connected_with(name) else "not connected"
        rows.append(ProviderRow(name, protocol, state))

    if all_registered:
        configured = {name.lower() for name in manager.config.providers}
        for name in registered_names():
            definition = get_definition(name)
            if name.lower() not in configured and definition is not None:
                rows.append(ProviderRow(name, definition.protocol, "not configured"))

    if not rows:
        out.note("No providers configured.")
        out.hint("Add a provider under 'providers:' in your configuration file.")
        return

    out.providers(rows)
