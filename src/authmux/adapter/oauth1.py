"""OAuth 1.0a engine.

:class:`OAuth1Adapter` runs the three-legged flow:

1. **Begin** -- obtain a request token from ``request_token_url`` (signed
   with the consumer credentials and carrying ``oauth_callback``), store it
   as ``request_token``/``request_token_secret``, and redirect the user to
   ``authorize_url?oauth_token=<request token>``.
2. **Finish** -- the provider redirects back with ``oauth_token`` and
   ``oauth_verifier``. The token must match the stored request token before
   anything is sent. The request token plus verifier are exchanged at
   ``access_token_url`` for the access token and secret.

Every API call is signed with HMAC-SHA1 using the stored access token.
"""

from __future__ import annotations

from typing import Any, Optional
from urllib.parse import urlencode

from authmux.adapter.base import AbstractAdapter
from authmux.data.collection import Collection
from authmux.data.parser import parse_response
from authmux.exceptions import (
    AuthorizationDeniedError,
    InvalidAccessTokenError,
    InvalidApplicationCredentialsError,
    InvalidAuthorizationStateError,
    InvalidOAuthTokenError,
)
from authmux.http.request import CallbackRequest, Redirect
from authmux.oauth1.consumer import Consumer, Token
from authmux.oauth1.request import SignedRequest
from authmux.oauth1.signature import HmacSha1, SignatureMethod
from authmux.providers.definition import OAUTH1


class OAuth1Adapter(AbstractAdapter):
    """Generic OAuth 1.0a client.

    Example::

        adapter = OAuth1Adapter(TWITTER, config, store=store)
        result = adapter.authenticate(CallbackRequest.from_url(request_url))
    """

    protocol = OAUTH1

    request_token_method = "POST"
    access_token_method = "POST"

    def configure(self) -> None:
        self.consumer_key = self.resolve_key("key", "id")
        self.consumer_secret = self.resolve_key("secret")
        if not self.consumer_key or not self.consumer_secret:
            raise InvalidApplicationCredentialsError(
                f"Your application key and secret are required to connect to {self.provider_id}"
            )

        self.scope = self.config_scope()
        self.signature_method: SignatureMethod = HmacSha1()

        if self.config.tokens:
            self.data.clear()
            for name, value in self.config.tokens.items():
                self.data.set(name, value)

        self.set_callback(self.config.callback)
        self.set_api_endpoints()

    def initialize_parameters(self) -> None:
        self.consumer = Consumer(self.consumer_key or "", self.consumer_secret or "", self.callback)

        self.consumer_token: Optional[Token] = None
        access_token = self.data.get("access_token")
        if access_token:
            self.consumer_token = Token(access_token, self.data.get("access_token_secret") or "")

        self.request_token_parameters: dict[str, Any] = {"oauth_callback": self.callback}
        self.request_token_headers: dict[str, str] = {}
        self.authorize_url_parameters: dict[str, Any] = dict(self.definition.authorize_url_parameters)
        self.token_exchange_parameters: dict[str, Any] = {}
        self.token_exchange_headers: dict[str, str] = dict(self.definition.token_exchange_headers)

        self.api_request_parameters = dict(self.definition.api_request_parameters)
        self.api_request_headers = dict(self.definition.api_request_headers)

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

            if not request.get("oauth_token"):
                return self.authenticate_begin()
            self.authenticate_finish(request)
        except Exception:
            self.data.clear()
            raise
        return None

    def is_connected(self) -> bool:
        return bool(self.data.get("access_token"))

    def authenticate_check_error(self, request: CallbackRequest) -> None:
        """Fail if the provider redirected back with ``denied`` or ``oauth_problem``."""
        denied = request.get("denied")
        if denied:
            raise AuthorizationDeniedError(
                f"User denied access request. Provider returned a denied token: {denied}"
            )

        problem = request.get("oauth_problem")
        if problem:
            raise InvalidOAuthTokenError(f"Provider returned an error. oauth_problem: {problem}")

    def authenticate_begin(self) -> Redirect:
        response = self.request_auth_token()
        self.validate_auth_token_request(response)

        url = self.get_authorize_url()
        self.logger.debug("%s: redirecting user to %s", self.provider_id, url)
        return Redirect(url)

    def authenticate_finish(self, request: CallbackRequest) -> None:
        self.logger.debug("%s: completing callback %s", self.provider_id, request.url)

        oauth_token = request.get("oauth_token")
        oauth_verifier = request.get("oauth_verifier")

        stored_token = self.data.get("request_token")
        if not stored_token or stored_token != oauth_token:
            raise InvalidAuthorizationStateError(
                f"The request token [oauth_token={str(oauth_token)[:100]}] is either invalid "
                "or has already been consumed"
            )

        response = self.exchange_auth_token_for_access_token(oauth_verifier)
        self.validate_access_token_exchange(response)
        self.initialize()

    def get_authorize_url(self, parameters: Optional[dict[str, Any]] = None) -> str:
        if parameters:
            self.authorize_url_parameters = dict(parameters)
        else:
            self.authorize_url_parameters.update(self.config.authorize_url_parameters)
        self.authorize_url_parameters["oauth_token"] = self.data.get("request_token")

        separator = "&" if "?" in self.authorize_url else "?"
        return f"{self.authorize_url}{separator}{urlencode(self.authorize_url_parameters)}"

    # ------------------------------------------------------------------ #
    # Token exchange
    # ------------------------------------------------------------------ #

    def request_auth_token(self) -> str:
        """Ask ``request_token_url`` for a request token."""
        response = self.oauth_request(
            self.request_token_url,
            self.request_token_method,
            self.request_token_parameters,
            self.request_token_headers,
            token=None,
        )
        self.validate_api_response("Unable to get OAuth request token")
        return response

    def validate_auth_token_request(self, response: str) -> Collection:
        """Store the request token pair.

        Raises:
            InvalidOAuthTokenError: If the response lacks either value.
        """
        collection = Collection(parse_response(response))
        if not collection.get("oauth_token"):
            raise InvalidOAuthTokenError(f"Provider returned no oauth_token: {response[:500]}")
        if not collection.get("oauth_token_secret"):
            raise InvalidOAuthTokenError(
                f"Provider returned no oauth_token_secret: {response[:500]}"
            )

        self.data.set("request_token", collection.get("oauth_token"))
        self.data.set("request_token_secret", collection.get("oauth_token_secret"))
        return collection

    def exchange_auth_token_for_access_token(self, oauth_verifier: Optional[str]) -> str:
        """Swap the stored request token and *oauth_verifier* for an access token."""
        self.token_exchange_parameters["oauth_verifier"] = oauth_verifier or ""
        request_token = Token(
            self.data.get("request_token") or "", self.data.get("request_token_secret") or ""
        )
        response = self.oauth_request(
            self.access_token_url,
            self.access_token_method,
            self.token_exchange_parameters,
            self.token_exchange_headers,
            token=request_token,
        )
        self.validate_api_response("Unable to get OAuth access token")
        return response

    def validate_access_token_exchange(self, response: str) -> Collection:
        """Store the access token pair and drop the request token.

        Raises:
            InvalidAccessTokenError: If the response lacks either value.
        """
        collection = Collection(parse_response(response))
        if not collection.get("oauth_token"):
            raise InvalidAccessTokenError(f"Provider returned no oauth_token: {response[:500]}")
        if not collection.get("oauth_token_secret"):
            raise InvalidAccessTokenError(
                f"Provider returned no oauth_token_secret: {response[:500]}"
            )

        self.data.delete("request_token")
        self.data.delete("request_token_secret")
        self.data.set("access_token", collection.get("oauth_token"))
        self.data.set("access_token_secret", collection.get("oauth_token_secret"))
        return collection

    # ------------------------------------------------------------------ #
    # Signed requests
    # ------------------------------------------------------------------ #

    def oauth_request(
        self,
        uri: str,
        method: str = "POST",
        parameters: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
        multipart: bool = False,
        token: Optional[Token] = None,
    ) -> str:
        """Sign and send one request.

        The ``oauth_*`` parameters travel in the ``Authorization`` header;
        the remaining parameters are sent as query or body parameters.
        """
        signed = SignedRequest.from_consumer_and_token(
            self.consumer, token, method, uri, dict(parameters or {})
        )
        signed.sign_request(self.signature_method, self.consumer, token)

        url = signed.normalized_url()
        merged_headers = {**(headers or {}), **signed.to_header()}
        body_parameters = {
            k: v for k, v in signed.parameters.items() if not k.startswith("oauth_")
        }
        return self.transport.request(url, method, body_parameters, merged_headers, multipart)

    def api_request(
        self,
        url: str,
        method: str = "GET",
        parameters: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
        multipart: bool = False,
    ) -> Any:
        self.maintain_token()

        url = self.resolve_api_url(url)
        merged_parameters = {**self.api_request_parameters, **(parameters or {})}
        merged_headers = {**self.api_request_headers, **(headers or {})}

        response = self.oauth_request(
            url, method, merged_parameters, merged_headers, multipart, token=self.consumer_token
        )
        self.validate_api_response(f"Signed API request to {url} has returned an error")
        return parse_response(response)
