"""Inbound callback request and outbound redirect values.

The host application's web framework stays outside the library: it builds a
:class:`CallbackRequest` from whatever request object it has, passes it to
``authenticate``, and turns a returned :class:`Redirect` into an HTTP 302
response.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional
from urllib.parse import urlsplit

from authmux.data.parser import parse_query_string


@dataclass(frozen=True)
class CallbackRequest:
    """The inbound request as seen by a flow engine.

    Attributes:
        url: The full request URL (OpenID verification checks it against the
            ``openid.return_to`` value).
        params: Merged query-string and form parameters.

    Example::

        request = CallbackRequest.from_url(
            "https://app.example.com/callback?code=abc123&state=S1"
        )
        request.get("code")   # "abc123"
    """

    url: str = ""
    params: dict[str, Any] = field(default_factory=dict)

    def get(self, name: str, default: Optional[Any] = None) -> Any:
        """Return the parameter *name*, or *default* when absent or empty."""
        value = self.params.get(name)
        if value is None or value == "":
            return default
        return value

    def has(self, name: str) -> bool:
        return name in self.params

    @classmethod
    def from_url(cls, url: str, form: Optional[dict[str, Any]] = None) -> CallbackRequest:
        """Build a request from a full URL plus optional form parameters.

        Form parameters win over query parameters with the same name.
        """
        params = parse_query_string(urlsplit(url).query)
        params.update(form or {})
        return cls(url=url, params=params)


@dataclass(frozen=True)
class Redirect:
    """Tells the host to send the user agent to :attr:`url`.

    Example::

        result = adapter.authenticate(request)
        if isinstance(result, Redirect):
            return framework_redirect(result.url, status=result.status_code)
    """

    url: str

    @property
    def status_code(self) -> int:
        return 302

    @property
    def headers(self) -> dict[str, str]:
        return {"Location": self.url}
