"""Protocol engines.

One concrete engine per protocol, each parameterised by a
:class:`~authmux.providers.definition.ProviderDefinition`:

- :class:`OAuth1Adapter` -- request token, user authorization, access token.
- :class:`OAuth2Adapter` -- authorization code, refresh, bearer API calls.
- :class:`OpenIDAdapter` -- OpenID 2.0 redirect and direct verification.

:data:`ENGINES` maps a definition's ``protocol`` to its engine class.
"""

from authmux.adapter.base import AbstractAdapter
from authmux.adapter.datastore import DataStore
from authmux.adapter.oauth1 import OAuth1Adapter
from authmux.adapter.oauth2 import OAuth2Adapter
from authmux.adapter.openid import OpenIDAdapter
from authmux.providers.definition import OAUTH1, OAUTH2, OPENID

ENGINES: dict[str, type[AbstractAdapter]] = {
    OAUTH1: OAuth1Adapter,
    OAUTH2: OAuth2Adapter,
    OPENID: OpenIDAdapter,
}

__all__ = [
    "AbstractAdapter",
    "DataStore",
    "ENGINES",
    "OAuth1Adapter",
    "OAuth2Adapter",
    "OpenIDAdapter",
]
