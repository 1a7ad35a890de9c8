"""Provider definitions and their registry.

Each module in this package describes one provider as a
:class:`~authmux.providers.definition.ProviderDefinition`: endpoints,
default scope, and the hooks that map its user-info payload onto a
:class:`~authmux.models.Profile`. The definitions are pure data; the
protocol engines in :mod:`authmux.adapter` do the work.

Built-in providers:

==========  ========  =====================================
Name        Protocol  Notes
==========  ========  =====================================
Discord     oauth2    refresh sends client credentials
Facebook    oauth2    long-lived token exchange
GitHub      oauth2    primary email from ``user/emails``
GitLab      oauth2
Google      oauth2    offline access, People API contacts
OpenID      openid    identifier from ``openid_identifier``
Steam       openid    Web API or community XML enrichment
Tumblr      oauth1
Twitter     oauth1
==========  ========  =====================================
"""

from authmux.providers.definition import OAUTH1, OAUTH2, OPENID, ProviderDefinition
from authmux.providers.registry import (
    BUILTIN_PROVIDERS,
    get_definition,
    load_entry_points,
    register,
    registered_names,
)

__all__ = [
    "BUILTIN_PROVIDERS",
    "OAUTH1",
    "OAUTH2",
    "OPENID",
    "ProviderDefinition",
    "get_definition",
    "load_entry_points",
    "register",
    "registered_names",
]
