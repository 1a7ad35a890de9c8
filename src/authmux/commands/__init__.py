"""Built-in CLI commands for authmux.

* :mod:`~authmux.commands.providers` -- list configured and registered
  providers.
* :mod:`~authmux.commands.login` -- start a login (``login``) and complete
  it from the provider's redirect (``callback``).
* :mod:`~authmux.commands.session` -- inspect and end connections
  (``status``, ``tokens``, ``profile``, ``disconnect``).

Every command builds its :class:`~authmux.manager.AuthManager` through
:func:`get_manager`, which reads the ``--config`` path stored in the Typer
context by :func:`~authmux.app.main_callback`.
"""

from __future__ import annotations

import typer

from authmux.config import resolve_config_path
from authmux.manager import AuthManager, create_default_manager
from authmux.output import get_output


def get_manager(ctx: typer.Context) -> AuthManager:
    config_path = (ctx.obj or {}).get("config_path")
    out = get_output()
    if out.verbose:
        out.debug(f"Configuration: {resolve_config_path(config_path)}")
    return create_default_manager(config_path)
