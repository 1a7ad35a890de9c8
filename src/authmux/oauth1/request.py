"""Signed OAuth 1.0a requests.

:class:`SignedRequest` owns the parameter set of one outbound call (URL
query parameters merged with the call's own parameters) and renders it as
a signature base string, an ``Authorization`` header, a form body, or a
GET URL.
"""

from __future__ import annotations

import secrets
import time
from typing import Any, Optional
from urllib.parse import urlsplit

from authmux.oauth1.consumer import Consumer, Token
from authmux.oauth1.signature import SignatureMethod
from authmux.oauth1.util import build_http_query, parse_parameters, rfc3986_encode

OAUTH_VERSION = "1.0"

_DEFAULT_PORTS = {"http": 80, "https": 443}


class SignedRequest:
    """One OAuth 1.0a request.

    Args:
        method: HTTP method.
        url: Request URL. Its query parameters join the signed set.
        parameters: Additional parameters. A name present in both the URL
            and *parameters* keeps both values (as a list).

    Attributes:
        base_string: The last signature base string computed by a signature
            method, kept for debugging.
    """

    def __init__(self, method: str, url: str, parameters: Optional[dict[str, Any]] = None) -> None:
        self.method = method
        self.url = url
        self.parameters: dict[str, Any] = parse_parameters(urlsplit(url).query)
        for name, value in (parameters or {}).items():
            self.set_parameter(name, value)
        self.base_string: Optional[str] = None

    @classmethod
    def from_consumer_and_token(
        cls,
        consumer: Consumer,
        token: Optional[Token],
        method: str,
        url: str,
        parameters: Optional[dict[str, Any]] = None,
    ) -> SignedRequest:
        """Build a request carrying the standard ``oauth_*`` protocol parameters.

        Caller-supplied *parameters* override the defaults.
        """
        defaults: dict[str, Any] = {
            "oauth_version": OAUTH_VERSION,
            "oauth_nonce": generate_nonce(),
            "oauth_timestamp": str(int(time.time())),
            "oauth_consumer_key": consumer.key,
        }
        if token is not None:
            defaults["oauth_token"] = token.key
        defaults.update(parameters or {})
        return cls(method, url, defaults)

    def set_parameter(self, name: str, value: Any, allow_duplicates: bool = True) -> None:
        """Set *name* to *value*; with *allow_duplicates* an existing value becomes a list."""
        if allow_duplicates and name in self.parameters:
            existing = self.parameters[name]
            if not isinstance(existing, list):
                existing = [existing]
            if isinstance(value, list):
                existing.extend(value)
            else:
                existing.append(value)
            self.parameters[name] = existing
        else:
            self.parameters[name] = value

    def get_parameter(self, name: str) -> Any:
        return self.parameters.get(name)

    def unset_parameter(self, name: str) -> None:
        self.parameters.pop(name, None)

    def signable_parameters(self) -> str:
        """The normalised parameter string, excluding ``oauth_signature``."""
        params = {k: v for k, v in self.parameters.items() if k != "oauth_signature"}
        return build_http_query(params)

    def signature_base_string(self) -> str:
        """``METHOD&enc(normalized_url)&enc(normalized_parameters)``."""
        parts = [self.normalized_method(), self.normalized_url(), self.signable_parameters()]
        return "&".join(rfc3986_encode(part) for part in parts)

    def normalized_method(self) -> str:
        return self.method.upper()

    def normalized_url(self) -> str:
        """``scheme://host[:port]/path`` with the host lower-cased.

        Default ports (80 for http, 443 for https) are dropped; query and
        fragment are never part of the result.
        """
        parts = urlsplit(self.url)
        scheme = (parts.scheme or "http").lower()
        host = (parts.hostname or "").lower()
        port = parts.port
        if port is not None and port != _DEFAULT_PORTS.get(scheme):
            host = f"{host}:{port}"
        return f"{scheme}://{host}{parts.path}"

    def to_postdata(self) -> str:
        """The full parameter set as a form-encoded body."""
        return build_http_query(self.parameters)

    def to_url(self) -> str:
        """A GET URL carrying every parameter in the query string."""
        postdata = self.to_postdata()
        url = self.normalized_url()
        return f"{url}?{postdata}" if postdata else url

    def to_header(self, realm: Optional[str] = None) -> dict[str, str]:
        """The ``Authorization`` header.

        Only scalar parameters whose name starts with ``oauth_`` are included.

        Returns:
            ``{"Authorization": 'OAuth oauth_consumer_key="...",...'}``
        """
        fields: list[str] = []
        if realm:
            fields.append(f'realm="{rfc3986_encode(realm)}"')
        for name, value in self.parameters.items():
            if not name.startswith("oauth_") or isinstance(value, list):
                continue
            fields.append(f'{rfc3986_encode(name)}="{rfc3986_encode(value)}"')
        return {"Authorization": "OAuth " + ",".join(fields) if fields else "OAuth"}

    def sign_request(
        self, signature_method: SignatureMethod, consumer: Consumer, token: Optional[Token]
    ) -> None:
        """Set ``oauth_signature_method`` and ``oauth_signature`` on the request."""
        self.set_parameter("oauth_signature_method", signature_method.name, allow_duplicates=False)
        signature = self.build_signature(signature_method, consumer, token)
        self.set_parameter("oauth_signature", signature, allow_duplicates=False)

    def build_signature(
        self, signature_method: SignatureMethod, consumer: Consumer, token: Optional[Token]
    ) -> str:
        return signature_method.build_signature(self, consumer, token)

    def __str__(self) -> str:
        return self.to_url()

    def __repr__(self) -> str:
        return f"SignedRequest({self.method!r}, {self.url!r})"


def generate_nonce() -> str:
    """A cryptographically random nonce, unique per request."""
    return secrets.token_hex(16)
