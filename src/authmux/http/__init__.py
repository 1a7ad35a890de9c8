"""HTTP plumbing shared by the flow engines.

Classes:
    :class:`HttpTransport` -- the narrow outbound contract the engines call.
    :class:`HttpxTransport` -- the default implementation backed by
        :class:`httpx.Client`.
    :class:`CallbackRequest` -- the inbound request (query/body parameters
        and the full URL) handed to ``authenticate``.
    :class:`Redirect` -- the value returned when the user agent must be sent
        to the provider.

Example::

    from authmux.http import CallbackRequest, HttpxTransport

    transport = HttpxTransport(timeout=10.0)
    request = CallbackRequest.from_url("https://app.example.com/cb?code=abc&state=S1")
"""

from authmux.http.request import CallbackRequest, Redirect
from authmux.http.transport import HttpTransport, HttpxTransport

__all__ = ["CallbackRequest", "HttpTransport", "HttpxTransport", "Redirect"]
