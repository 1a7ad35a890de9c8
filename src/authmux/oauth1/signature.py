"""Signature methods.

A signature method turns a :class:`~authmux.oauth1.request.SignedRequest`
plus the consumer and token credentials into the ``oauth_signature`` value.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Optional

from authmux.oauth1.util import rfc3986_encode

if TYPE_CHECKING:
    from authmux.oauth1.consumer import Consumer, Token
    from authmux.oauth1.request import SignedRequest


class SignatureMethod(ABC):
    """Base class for OAuth 1.0a signature methods.

    Subclasses set :attr:`name` (the ``oauth_signature_method`` value) and
    implement :meth:`build_signature`. :meth:`check_signature` is shared.
    """

    name: str = ""

    @abstractmethod
    def build_signature(
        self, request: SignedRequest, consumer: Consumer, token: Optional[Token]
    ) -> str:
        """Return the signature for *request*."""
        ...

    def check_signature(
        self,
        request: SignedRequest,
        consumer: Consumer,
        token: Optional[Token],
        signature: str,
    ) -> bool:
        """Return ``True`` if *signature* matches the one built for *request*.

        An empty signature on either side rejects. The comparison is
        constant-time for equal lengths.
        """
        built = self.build_signature(request, consumer, token)
        if not built or not signature:
            return False
        return hmac.compare_digest(built.encode("utf-8"), signature.encode("utf-8"))


class HmacSha1(SignatureMethod):
    """HMAC-SHA1 (RFC 5849 section 3.4.2).

    The key is ``enc(consumer_secret) & enc(token_secret)``, the text is the
    request's signature base string, and the digest is base64 encoded.
    """

    name = "HMAC-SHA1"

    def build_signature(
        self, request: SignedRequest, consumer: Consumer, token: Optional[Token]
    ) -> str:
        base_string = request.signature_base_string()
        request.base_string = base_string

        key = "&".join(
            [rfc3986_encode(consumer.secret), rfc3986_encode(token.secret if token else "")]
        )
        digest = hmac.new(key.encode("utf-8"), base_string.encode("utf-8"), hashlib.sha1).digest()
        return base64.b64encode(digest).decode("ascii")
