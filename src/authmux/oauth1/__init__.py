"""OAuth 1.0a request signing (RFC 5849).

The pieces compose as follows::

    consumer = Consumer("key", "secret")
    token = Token("tok", "tok-secret")
    request = SignedRequest.from_consumer_and_token(
        consumer, token, "POST", "https://api.example.com/1/status", {"text": "hi"}
    )
    request.sign_request(HmacSha1(), consumer, token)
    headers = request.to_header()

Only HMAC-SHA1 is bundled. Other methods subclass :class:`SignatureMethod`
and implement :meth:`~SignatureMethod.build_signature`.
"""

from authmux.oauth1.consumer import Consumer, Token
from authmux.oauth1.request import SignedRequest
from authmux.oauth1.signature import HmacSha1, SignatureMethod
from authmux.oauth1.util import build_http_query, parse_parameters, rfc3986_encode

__all__ = [
    "Consumer",
    "HmacSha1",
    "SignatureMethod",
    "SignedRequest",
    "Token",
    "build_http_query",
    "parse_parameters",
    "rfc3986_encode",
]
