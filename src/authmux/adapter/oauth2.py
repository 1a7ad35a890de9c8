"""OAuth 2.0 authorization-code engine.

:class:`OAuth2Adapter` implements the three-state flow

    Unauthenticated --(authorize redirect)--> PendingCallback
    PendingCallback --(code exchange)--> Connected

with a transparent Refreshing step before API calls whose token has
expired. The engine is generic; provider specifics (endpoints, extra
authorize parameters, profile mapping, token maintenance) come from the
:class:`~authmux.providers.definition.ProviderDefinition`.

Tokens are stored under the provider namespace as ``access_token``,
``token_type``, ``refresh_token``, ``expires_in``, and ``expires_at``
(``expires_at = exchange time + expires_in``). The anti-CSRF nonce lives
under ``authorization_state`` for the duration of one redirect.

Note:
    One flow per (user session, provider) at a time. Two concurrent logins
    sharing a store namespace overwrite each other's ``authorization_state``
    and the first callback to arrive fails the state check.
"""

from __future__ import annotations

import secrets
import time
from typing import Any, Optional
from urllib.parse import urlencode

from authmux.adapter.base import AbstractAdapter
from authmux.data.collection import Collection
from authmux.data.parser import parse_response
from authmux.exceptions import (
    AuthorizationDeniedError,
    InvalidAccessTokenError,
    InvalidApplicationCredentialsError,
    InvalidAuthorizationCodeError,
    InvalidAuthorizationStateError,
)
from authmux.http.request import CallbackRequest, Redirect
from authmux.providers.definition import OAUTH2

_TOKEN_EXTENSIONS = ("id_token", "scope")


def parse_expires_in(value: Any) -> Optional[int]:
    """Return *value* as whole seconds, or ``None`` when it is not a number.

    Providers send ``expires_in`` as an integer, a numeric string, or
    occasionally a float (``"3600.0"``). Anything else, the empty string
    included, counts as an unknown lifetime.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return None


def generate_state() -> str:
    """Return an unpredictable ``state`` value for one authorize redirect."""
    return "AM-" + secrets.token_urlsafe(24)


class OAuth2Adapter(AbstractAdapter):
    """Generic OAuth 2.0 authorization-code client.

    Example::

        adapter = OAuth2Adapter(GITHUB, config, store=store)
        result = adapter.authenticate(CallbackRequest.from_url(request_url))
        if isinstance(result, Redirect):
            return redirect_response(result.url)
        profile = adapter.get_user_profile()
    """

    protocol = OAUTH2

    def configure(self) -> None:
        self.client_id = self.resolve_key("id", "key")
        self.client_secret = self.resolve_key("secret")
        if not self.client_id or not self.client_secret:
            raise InvalidApplicationCredentialsError(
                f"Your application id and secret are required to connect to {self.provider_id}"
            )

        self.scope = self.config_scope()
        self.supports_request_state = self.definition.supports_request_state
        self.token_exchange_method = self.definition.token_exchange_method
        self.token_exchange_headers: dict[str, str] = dict(self.definition.token_exchange_headers)
        self.token_refresh_method = self.definition.token_refresh_method
        self.token_refresh_headers: dict[str, str] = dict(self.definition.token_refresh_headers)

        if self.config.tokens:
            # Seeded before the first initialize(), which derives headers from them.
            self.store_tokens(self.config.tokens)

        self.set_callback(self.config.callback)
        self.set_api_endpoints()

    def initialize_parameters(self) -> None:
        self.authorize_url_parameters: dict[str, Any] = {
            "response_type": "code",
            "client_id": self.client_id,
            "redirect_uri": self.callback,
            "scope": self.scope,
        }
        self.authorize_url_parameters.update(self.definition.authorize_url_parameters)

        self.token_exchange_parameters: dict[str, Any] = {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "grant_type": "authorization_code",
            "redirect_uri": self.callback,
        }

        self.token_refresh_parameters: Optional[dict[str, Any]] = None
        refresh_token = self.data.get("refresh_token")
        if refresh_token:
            self.token_refresh_parameters = {
                "grant_type": "refresh_token",
                "refresh_token": refresh_token,
            }
            if self.definition.refresh_includes_client_credentials:
                self.token_refresh_parameters["client_id"] = self.client_id
                self.token_refresh_parameters["client_secret"] = self.client_secret

        self.api_request_parameters = dict(self.definition.api_request_parameters)
        self.api_request_headers = dict(self.definition.api_request_headers)
        self.api_request_headers["Authorization"] = f"Bearer {self.data.get('access_token') or ''}"

    # ------------------------------------------------------------------ #
    # Flow
    # ------------------------------------------------------------------ #

    def authenticate(self, request: Optional[CallbackRequest] = None) -> Optional[Redirect]:
        self.logger.info("%s: authenticate()", self.provider_id)

        if self.is_connected():
            return None

        request = request or CallbackRequest()
        try:
            self.authenticate_check_error(request)

            if not request.get("code"):
                return self.authenticate_begin()
            self.authenticate_finish(request)
        except Exception:
            self.data.clear()
            raise
        return None

    def is_connected(self) -> bool:
        if self.data.get("access_token"):
            return not self.has_access_token_expired() or self.is_refresh_token_available()
        return False

    def is_refresh_token_available(self) -> bool:
        return self.token_refresh_parameters is not None

    def authenticate_check_error(self, request: CallbackRequest) -> None:
        """Fail if the provider redirected back with an ``error`` parameter."""
        error = _string_param(request, "error")
        if not error:
            return

        description = _string_param(request, "error_description")
        uri = _string_param(request, "error_uri")
        collated = f"Provider returned an error: {error} {description} {uri}".rstrip()

        if error == "access_denied":
            raise AuthorizationDeniedError(collated)
        raise InvalidAuthorizationCodeError(collated)

    def authenticate_begin(self) -> Redirect:
        url = self.get_authorize_url()
        self.logger.debug("%s: redirecting user to %s", self.provider_id, url)
        return Redirect(url)

    def authenticate_finish(self, request: CallbackRequest) -> None:
        self.logger.debug("%s: completing callback %s", self.provider_id, request.url)

        state = request.get("state")
        code = request.get("code")

        stored_state = self.data.get("authorization_state")
        if self.supports_request_state and (not stored_state or stored_state != state):
            shown = (state or "")[:100]
            raise InvalidAuthorizationStateError(
                f"The authorization state [state={shown}] of this page is either invalid "
                "or has already been consumed"
            )

        response = self.exchange_code_for_access_token(code)
        self.validate_access_token_exchange(response)
        self.initialize()

    def get_authorize_url(self, parameters: Optional[dict[str, Any]] = None) -> str:
        """Build the authorize URL and persist the ``state`` it carries.

        Args:
            parameters: Replace the computed parameters entirely.
        """
        if parameters:
            self.authorize_url_parameters = dict(parameters)
        else:
            self.authorize_url_parameters.update(self.config.authorize_url_parameters)

        if self.supports_request_state:
            if not self.authorize_url_parameters.get("state"):
                self.authorize_url_parameters["state"] = generate_state()
            self.data.set("authorization_state", self.authorize_url_parameters["state"])

        query = urlencode(
            {k: v for k, v in self.authorize_url_parameters.items() if v is not None}
        )
        separator = "&" if "?" in self.authorize_url else "?"
        return f"{self.authorize_url}{separator}{query}"

    # ------------------------------------------------------------------ #
    # Tokens
    # ------------------------------------------------------------------ #

    def exchange_code_for_access_token(self, code: str) -> str:
        self.token_exchange_parameters["code"] = code
        response = self.transport.request(
            self.access_token_url,
            self.token_exchange_method,
            self.token_exchange_parameters,
            self.token_exchange_headers,
        )
        self.validate_api_response("Unable to exchange code for API access token")
        return response

    def validate_access_token_exchange(self, response: str) -> Collection:
        """Persist the tokens of a 2xx token response.

        Raises:
            InvalidAccessTokenError: If the response has no ``access_token``.
        """
        collection = Collection(parse_response(response))

        if not collection.get("access_token"):
            raise InvalidAccessTokenError(
                f"Provider returned no access_token: {response[:500]}"
            )

        self.data.set("access_token", collection.get("access_token"))
        self.data.set("token_type", collection.get("token_type"))

        if collection.get("refresh_token"):
            self.data.set("refresh_token", collection.get("refresh_token"))

        expires_in = parse_expires_in(collection.get("expires_in"))
        if expires_in is not None:
            self.data.set("expires_in", expires_in)
            self.data.set("expires_at", int(time.time()) + expires_in)
        else:
            if collection.get("expires_in") not in (None, ""):
                self.logger.warning(
                    "%s: ignoring non-numeric expires_in %r",
                    self.provider_id,
                    collection.get("expires_in"),
                )
            # A previous token's expiry must not outlive it.
            self.data.delete("expires_in")
            self.data.delete("expires_at")

        for name in _TOKEN_EXTENSIONS:
            if collection.get(name):
                self.data.set(name, collection.get(name))

        self.data.delete("authorization_state")
        self.initialize()
        return collection

    def refresh_access_token(self, parameters: Optional[dict[str, Any]] = None) -> Optional[Collection]:
        """Refresh the access token.

        Returns:
            The parsed token response, or ``None`` when no refresh token is
            available.
        """
        if parameters:
            self.token_refresh_parameters = dict(parameters)

        if not self.is_refresh_token_available():
            return None

        self.logger.debug("%s: refreshing access token", self.provider_id)
        response = self.transport.request(
            self.access_token_url,
            self.token_refresh_method,
            self.token_refresh_parameters,
            self.token_refresh_headers,
        )
        self.validate_api_response("Unable to refresh the access token")
        return self.validate_refresh_access_token(response)

    def validate_refresh_access_token(self, response: str) -> Collection:
        return self.validate_access_token_exchange(response)

    def has_access_token_expired(self, at_time: Optional[float] = None) -> Optional[bool]:
        """Return whether the token is expired at *at_time* (default now).

        Returns:
            ``None`` when no ``expires_at`` is stored (unknown expiry).
        """
        if at_time is None:
            at_time = time.time()
        expires_at = self.data.get("expires_at")
        if not expires_at:
            return None
        return int(expires_at) <= at_time

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
        self.maintain_token()
        if self.has_access_token_expired() is True:
            self.refresh_access_token()

        url = self.resolve_api_url(url)
        merged_parameters = {**self.api_request_parameters, **(parameters or {})}
        merged_headers = {**self.api_request_headers, **(headers or {})}

        response = self.transport.request(url, method, merged_parameters, merged_headers, multipart)
        self.validate_api_response(f"Signed API request to {url} has returned an error")
        return parse_response(response)


def _string_param(request: CallbackRequest, name: str) -> str:
    value = request.get(name)
    return value if isinstance(value, str) else ""
