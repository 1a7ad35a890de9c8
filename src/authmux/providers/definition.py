"""Provider definitions: the per-provider data a protocol engine runs on.

Providers are data, not subclasses. A :class:`ProviderDefinition` carries a
provider's default endpoints and scope plus a handful of optional hooks (plain
functions receiving the adapter) for the places where providers genuinely
differ: mapping the user-info payload onto a :class:`~authmux.models.Profile`,
extra initialisation, and proactive token maintenance.

Example::

    EXAMPLE = ProviderDefinition(
        name="Example",
        protocol=OAUTH2,
        api_base_url="https://api.example.com/",
        authorize_url="https://example.com/oauth/authorize",
        access_token_url="https://example.com/oauth/token",
        fetch_user_profile=_user_profile,
    )
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Mapping, Optional

if TYPE_CHECKING:
    from authmux.models import Profile

OAUTH1 = "oauth1"
OAUTH2 = "oauth2"
OPENID = "openid"

PROTOCOLS = (OAUTH1, OAUTH2, OPENID)

AdapterHook = Callable[[Any], None]


@dataclass(frozen=True)
class ProviderDefinition:
    """Endpoints, defaults, and hooks for one provider.

    Attributes:
        name: Canonical provider name (``GitHub``). Also the default store
            namespace.
        protocol: One of ``oauth1``, ``oauth2``, ``openid``.
        api_base_url: Base for relative ``api_request`` URLs.
        authorize_url: Where the user agent is redirected.
        access_token_url: Token endpoint.
        request_token_url: OAuth1 request-token endpoint.
        access_token_info_url: Optional token introspection endpoint.
        scope: Default scope, overridden by the config's ``scope``.
        openid_identifier: Fixed OpenID provider identifier (Steam).
        authorize_url_parameters: Extra authorize-URL parameters.
        api_request_parameters: Parameters sent with every API call.
        api_request_headers: Headers sent with every API call.
        token_exchange_method: HTTP method of the code exchange.
        token_exchange_headers: Headers of the code exchange.
        token_refresh_method: HTTP method of the refresh call.
        token_refresh_headers: Headers of the refresh call.
        refresh_includes_client_credentials: Send ``client_id`` and
            ``client_secret`` with refresh requests.
        supports_request_state: Generate and verify the OAuth2 ``state``.
        validate_api_response_http_code: Reject non-2xx API responses.
        after_initialize: ``hook(adapter)`` run at the end of ``initialize()``.
        maintain_token: ``hook(adapter)`` run before every API request.
        fetch_user_profile: ``hook(adapter) -> Profile``.
        fetch_user_contacts: ``hook(adapter) -> list[Contact]``.
        fetch_user_pages: ``hook(adapter) -> list``.
        fetch_user_activity: ``hook(adapter, stream) -> list[Activity]``.
        post_user_status: ``hook(adapter, status)``.
        post_page_status: ``hook(adapter, status, page_id)``.
        process_openid_profile: ``hook(adapter, profile) -> Profile`` run on
            a verified OpenID profile before it is stored.
    """

    name: str
    protocol: str
    api_base_url: str = ""
    authorize_url: str = ""
    access_token_url: str = ""
    request_token_url: str = ""
    access_token_info_url: str = ""
    scope: Optional[str] = None
    api_documentation: str = ""
    openid_identifier: Optional[str] = None

    authorize_url_parameters: Mapping[str, Any] = field(default_factory=dict)
    api_request_parameters: Mapping[str, Any] = field(default_factory=dict)
    api_request_headers: Mapping[str, str] = field(default_factory=dict)
    token_exchange_method: str = "POST"
    token_exchange_headers: Mapping[str, str] = field(default_factory=dict)
    token_refresh_method: str = "POST"
    token_refresh_headers: Mapping[str, str] = field(default_factory=dict)
    refresh_includes_client_credentials: bool = False
    supports_request_state: bool = True
    validate_api_response_http_code: bool = True

    after_initialize: Optional[AdapterHook] = None
    maintain_token: Optional[AdapterHook] = None
    fetch_user_profile: Optional[Callable[[Any], Profile]] = None
    fetch_user_contacts: Optional[Callable[[Any], list]] = None
    fetch_user_pages: Optional[Callable[[Any], list]] = None
    fetch_user_activity: Optional[Callable[[Any, str], list]] = None
    post_user_status: Optional[Callable[[Any, Any], Any]] = None
    post_page_status: Optional[Callable[[Any, Any, str], Any]] = None
    process_openid_profile: Optional[Callable[[Any, Profile], Profile]] = None

    def __post_init__(self) -> None:
        if self.protocol not in PROTOCOLS:
            raise ValueError(
                f"Unknown protocol {self.protocol!r} for provider {self.name!r}; "
                f"expected one of {', '.join(PROTOCOLS)}"
            )
