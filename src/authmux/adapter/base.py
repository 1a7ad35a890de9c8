"""Abstract base class shared by the three protocol engines.

This module defines :class:`AbstractAdapter`, which owns everything that is
not protocol specific:

- **Collaborators** -- the injected :class:`~authmux.http.HttpTransport`,
  :class:`~authmux.storage.CredentialStore` (wrapped in a
  :class:`~authmux.adapter.datastore.DataStore`), and logger.
- **Lifecycle** -- ``configure()`` runs first and fails fast on bad
  credentials or callback URLs, then ``initialize()`` derives the default
  request parameters from whatever is currently stored.
- **Token bookkeeping** -- :meth:`~AbstractAdapter.get_access_token`,
  :meth:`~AbstractAdapter.set_access_token`, and
  :meth:`~AbstractAdapter.disconnect`.
- **Optional capabilities** -- profile, contacts, pages, activity, and
  status updates. Each raises :class:`~authmux.exceptions.NotSupportedError`
  unless the :class:`~authmux.providers.definition.ProviderDefinition`
  supplies an implementation.

Concrete engines live in :mod:`authmux.adapter.oauth1`,
:mod:`authmux.adapter.oauth2`, and :mod:`authmux.adapter.openid`.

See Also:
    :mod:`authmux.manager` for how adapters are resolved and built.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional
from urllib.parse import urlsplit

from authmux.adapter.datastore import DataStore
from authmux.config import resolve_credential
from authmux.data.collection import Collection
from authmux.exceptions import (
    HttpClientFailureError,
    HttpRequestFailedError,
    InvalidCallbackError,
    NotSupportedError,
)
from authmux.http.request import CallbackRequest, Redirect
from authmux.http.transport import HttpTransport, HttpxTransport
from authmux.models import TOKEN_NAMES, Activity, Contact, Profile, ProviderConfig, TokenSet
from authmux.providers.definition import ProviderDefinition
from authmux.storage.base import CredentialStore
from authmux.storage.memory import MemoryStore

_SECRET_NAMES = ("secret", "token", "password", "key", "id")


def mask_secret(value: Any) -> str:
    """Render a secret for logs: the first four characters then ``****``."""
    text = str(value or "")
    if len(text) <= 4:
        return "****"
    return f"{text[:4]}****"


def masked_config(config: ProviderConfig) -> dict[str, Any]:
    """Return *config* as a dict with key material masked, for debug logs."""
    data = config.model_dump(exclude_none=True)
    keys = data.get("keys") or {}
    data["keys"] = {
        name: mask_secret(value) if any(s in name for s in _SECRET_NAMES) else value
        for name, value in keys.items()
    }
    if data.get("tokens"):
        data["tokens"] = {name: mask_secret(value) for name, value in data["tokens"].items()}
    return data


class AbstractAdapter(ABC):
    """Common base of the OAuth1, OAuth2, and OpenID engines.

    An adapter is one protocol engine bound to one provider definition and
    one provider configuration entry. Instances are cheap; build one per
    inbound request.

    Args:
        definition: The provider's endpoints and hooks.
        config: The host's configuration entry for this provider.
        transport: Outbound HTTP transport. Defaults to a new
            :class:`~authmux.http.HttpxTransport`.
        store: Credential store. Defaults to a new
            :class:`~authmux.storage.MemoryStore`.
        logger: Logger. Defaults to ``authmux.adapter.<provider_id>``.
        provider_id: Namespace for stored data. Defaults to
            ``definition.name``.

    Raises:
        ConfigError: From ``configure()`` when credentials or the callback
            URL are missing or invalid.
    """

    protocol: str = ""

    def __init__(
        self,
        definition: ProviderDefinition,
        config: Optional[ProviderConfig] = None,
        transport: Optional[HttpTransport] = None,
        store: Optional[CredentialStore] = None,
        logger: Optional[logging.Logger] = None,
        provider_id: Optional[str] = None,
    ) -> None:
        self.definition = definition
        self.provider_id = provider_id or definition.name
        self.config = config or ProviderConfig()
        self.transport = transport or HttpxTransport()
        self.store = store or MemoryStore()
        self.logger = logger or logging.getLogger(f"authmux.adapter.{self.provider_id.lower()}")
        self.data = DataStore(self.store, self.provider_id)

        self.callback = ""
        self.scope: Optional[str] = definition.scope
        self.api_base_url = definition.api_base_url
        self.authorize_url = definition.authorize_url
        self.access_token_url = definition.access_token_url
        self.request_token_url = definition.request_token_url
        self.access_token_info_url = definition.access_token_info_url
        self.validate_api_response_http_code = definition.validate_api_response_http_code

        self.api_request_parameters: dict[str, Any] = {}
        self.api_request_headers: dict[str, str] = {}

        self.configure()
        self.logger.debug(
            "Initialize %s for %s, config: %s",
            type(self).__name__,
            self.provider_id,
            masked_config(self.config),
        )
        self.initialize()

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    @abstractmethod
    def configure(self) -> None:
        """Validate the configuration and load keys, scope, and endpoints."""
        ...

    def initialize(self) -> None:
        """Derive the default request parameters from the stored tokens.

        Runs after ``configure()``, after every successful exchange, and
        after :meth:`set_access_token`. The provider's ``after_initialize``
        hook, when present, runs last.
        """
        self.initialize_parameters()
        if self.definition.after_initialize is not None:
            self.definition.after_initialize(self)

    @abstractmethod
    def initialize_parameters(self) -> None:
        """Engine-specific part of :meth:`initialize`."""
        ...

    @abstractmethod
    def authenticate(self, request: Optional[CallbackRequest] = None) -> Optional[Redirect]:
        """Drive the login flow one step.

        Returns:
            A :class:`~authmux.http.Redirect` when the user agent must go to
            the provider, ``None`` once the adapter is connected.
        """
        ...

    @abstractmethod
    def is_connected(self) -> bool:
        """Return ``True`` if usable credentials are stored."""
        ...

    def disconnect(self) -> None:
        """Forget every stored entry of this provider."""
        self.logger.info("%s: disconnect", self.provider_id)
        self.data.clear()

    # ------------------------------------------------------------------ #
    # Tokens
    # ------------------------------------------------------------------ #

    def get_access_token(self) -> TokenSet:
        """Return the standard token fields currently stored.

        Empty entries come back as ``None``, so ``tokens.non_empty()`` lists
        exactly the fields that are set.
        """
        return TokenSet(**{name: self.data.get(name) or None for name in TOKEN_NAMES})

    def set_access_token(self, tokens: TokenSet | Mapping[str, Any] | None = None) -> None:
        """Replace all stored data of this provider with *tokens* and re-initialize."""
        self.store_tokens(tokens)
        self.initialize()

    def store_tokens(self, tokens: TokenSet | Mapping[str, Any] | None) -> None:
        """Replace the stored data with the non-empty fields of *tokens*."""
        if not isinstance(tokens, TokenSet):
            tokens = TokenSet.model_validate(dict(tokens or {}))
        self.data.clear()
        for name, value in tokens.non_empty().items():
            self.data.set(name, value)

    def maintain_token(self) -> None:
        """Hook run before every API request. Delegates to the provider definition."""
        if self.definition.maintain_token is not None:
            self.definition.maintain_token(self)

    # ------------------------------------------------------------------ #
    # API access
    # ------------------------------------------------------------------ #

    def api_request(
        self,
        url: str,
        method: str = "GET",
        parameters: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
        multipart: bool = False,
    ) -> Any:
        """Issue a signed API call and return the parsed body."""
        raise NotSupportedError(f"{self.provider_id} does not support API requests")

    def resolve_api_url(self, url: str) -> str:
        """Resolve *url* against ``api_base_url`` unless it is absolute."""
        if url.startswith("http://") or url.startswith("https://"):
            return url
        return self.api_base_url.rstrip("/") + "/" + url.lstrip("/")

    def validate_api_response(self, error: str = "") -> None:
        """Raise if the transport's last call failed.

        Raises:
            HttpClientFailureError: The transport reported a client error.
            HttpRequestFailedError: The status is not 2xx (unless status
                validation is disabled for this provider).
        """
        prefix = f"{error}. " if error else ""

        if self.transport.client_error:
            raise HttpClientFailureError(
                f"{prefix}HTTP client error: {self.transport.client_error}."
            )

        if not self.validate_api_response_http_code:
            return

        status = self.transport.status_code
        if status < 200 or status > 299:
            raise HttpRequestFailedError(
                f"{prefix}HTTP error {status}. "
                f"Raw provider API response: {self.transport.response_body}."
            )

    # ------------------------------------------------------------------ #
    # Optional capabilities
    # ------------------------------------------------------------------ #

    def get_user_profile(self) -> Profile:
        if self.definition.fetch_user_profile is None:
            raise self._not_supported("get_user_profile")
        return self.definition.fetch_user_profile(self)

    def get_user_contacts(self) -> list[Contact]:
        if self.definition.fetch_user_contacts is None:
            raise self._not_supported("get_user_contacts")
        return self.definition.fetch_user_contacts(self)

    def get_user_pages(self) -> list[Any]:
        if self.definition.fetch_user_pages is None:
            raise self._not_supported("get_user_pages")
        return self.definition.fetch_user_pages(self)

    def get_user_activity(self, stream: str = "timeline") -> list[Activity]:
        if self.definition.fetch_user_activity is None:
            raise self._not_supported("get_user_activity")
        return self.definition.fetch_user_activity(self, stream)

    def set_user_status(self, status: Any) -> Any:
        if self.definition.post_user_status is None:
            raise self._not_supported("set_user_status")
        return self.definition.post_user_status(self, status)

    def set_page_status(self, status: Any, page_id: str) -> Any:
        if self.definition.post_page_status is None:
            raise self._not_supported("set_page_status")
        return self.definition.post_page_status(self, status, page_id)

    def _not_supported(self, operation: str) -> NotSupportedError:
        return NotSupportedError(f"{self.provider_id} does not support {operation}()")

    # ------------------------------------------------------------------ #
    # Configuration helpers
    # ------------------------------------------------------------------ #

    def resolve_key(self, *names: str) -> Optional[str]:
        """Return the first configured key among *names*, resolving credential sources."""
        keys = Collection(self.config.keys.model_dump())
        for name in names:
            value = keys.get(name)
            if value:
                return resolve_credential(str(value))
        return None

    def set_callback(self, callback: Optional[str]) -> None:
        """Validate and set the redirect URL.

        Raises:
            InvalidCallbackError: Unless *callback* is an absolute http(s) URL.
        """
        parts = urlsplit(callback or "")
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise InvalidCallbackError(
                f"A valid callback URL is required to connect to {self.provider_id}"
            )
        self.callback = callback or ""

    def set_api_endpoints(self) -> None:
        """Apply the config's endpoint overrides over the definition defaults."""
        endpoints = self.config.endpoints
        self.api_base_url = endpoints.api_base_url or self.api_base_url
        self.authorize_url = endpoints.authorize_url or self.authorize_url
        self.access_token_url = endpoints.access_token_url or self.access_token_url
        self.request_token_url = endpoints.request_token_url or self.request_token_url
        self.access_token_info_url = endpoints.access_token_info_url or self.access_token_info_url

    def config_scope(self) -> Optional[str]:
        """The configured scope, falling back to the definition's default."""
        return self.config.scope if self.config.scope is not None else self.definition.scope

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.provider_id!r})"
