"""authmux -- one login interface for OAuth1, OAuth2 and OpenID providers.

A host application configures the providers it supports, hands every login
request to :class:`AuthManager`, and gets back either a :class:`Redirect`
to send the user agent to or ``None`` once the user is connected. Tokens,
pending ``state`` values and cached profiles live in a pluggable
credential store.

Typical use::

    manager = AuthManager(load_config(), store=FileStore())
    result = manager.authenticate("GitHub", CallbackRequest.from_url(url))
    if isinstance(result, Redirect):
        return redirect(result.url)
    profile = manager.get_adapter("GitHub").get_user_profile()

Modules:
    manager: Provider lookup and adapter dispatch.
    adapter: The OAuth1, OAuth2 and OpenID flow engines.
    providers: Built-in provider definitions and the registry.
    oauth1: HMAC-SHA1 request signing.
    openid: OpenID 2.0 discovery and verification.
    storage: Credential stores.
    http: Transport abstraction, callback request and redirect values.
    models: Pydantic models shared across the package.
    config: Configuration loading, credential sources and logging setup.
    exceptions: Exception hierarchy with exit-code mapping.
    app: The ``authmux`` command-line tool.
"""

__version__ = "0.1.0"

from authmux.config import load_config  # noqa: E402
from authmux.exceptions import AuthmuxError  # noqa: E402
from authmux.http.request import CallbackRequest, Redirect  # noqa: E402
from authmux.manager import AuthManager  # noqa: E402
from authmux.models import AuthmuxConfig, Profile, ProviderConfig  # noqa: E402
from authmux.storage import DiskCacheStore, FileStore, MemoryStore  # noqa: E402

__all__ = [
    "AuthManager",
    "AuthmuxConfig",
    "AuthmuxError",
    "CallbackRequest",
    "DiskCacheStore",
    "FileStore",
    "MemoryStore",
    "Profile",
    "ProviderConfig",
    "Redirect",
    "__version__",
    "load_config",
]
