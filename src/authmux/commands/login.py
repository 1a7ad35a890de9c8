"""Login commands -- drive a provider's redirect flow by hand.

A web application normally sits between the two halves of a login. From a
terminal the steps are::

    authmux login github               # prints the authorize URL
    # approve in the browser, then copy the URL you were redirected to
    authmux callback github "https://app.example.com/cb?code=...&state=..."

The pending ``state`` (or OAuth1 request token) lives in the configured
credential store between the two commands, so a persistent store
(``file`` or ``disk``) is required.
"""

from __future__ import annotations

import webbrowser

import typer

from authmux.commands import get_manager
from authmux.http.request import CallbackRequest
from authmux.output import get_output


def login_command(
    ctx: typer.Context,
    provider: str = typer.Argument(help="Configured provider name."),
    browser: bool = typer.Option(
        False, "--browser", "-b", help="Open the authorize URL in the default browser."
    ),
) -> None:
    """Start a login and print the URL the user must visit.

    Prints nothing to stdout when the provider is already connected.

    Example::

        authmux login github --browser
    """
    out = get_output()
    manager = get_manager(ctx)
    if manager.config.store.type.lower() == "memory":
        out.warning("The memory store forgets the pending login when this command exits.")

    result = manager.authenticate(provider)
    if result is None:
        out.success(f"Already connected to {provider}.")
        return

    out.authorize_url(result.url)
    if browser:
        out.note("Opening browser...")
        webbrowser.open(result.url)
    out.hint(f'Finish with: authmux callback {provider} "<redirected URL>"')


def callback_command(
    ctx: typer.Context,
    provider: str = typer.Argument(help="Configured provider name."),
    url: str = typer.Argument(help="The full URL the provider redirected to."),
) -> None:
    """Complete a login from the provider's redirect URL.

    Example::

        authmux callback github "https://app.example.com/cb?code=abc&state=AM-..."
    """
    out = get_output()
    manager = get_manager(ctx)
    result = manager.authenticate(provider, CallbackRequest.from_url(url))
    if result is not None:
        # The callback carried nothing to finish with, so a new flow began.
        out.warning("The URL did not complete the login; a new authorization was started.")
        out.authorize_url(result.url)
        return

    out.success(f"Connected to {provider}.")
    out.hint(f"Show the profile: authmux profile {provider}")
