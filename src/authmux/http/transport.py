"""Outbound HTTP transport.

The flow engines never talk to :mod:`httpx` directly. They call
:meth:`HttpTransport.request`, which returns the response body as text and
records the outcome on the transport (:attr:`~HttpTransport.status_code`,
:attr:`~HttpTransport.response_body`, :attr:`~HttpTransport.response_headers`,
:attr:`~HttpTransport.client_error`). Transport-level failures (DNS, connect,
timeout) are recorded as ``client_error`` instead of raised, so that the
engine's ``validate_api_response`` decides how to surface them.

See Also:
    :meth:`authmux.adapter.base.AbstractAdapter.validate_api_response`
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

import httpx

logger = logging.getLogger(__name__)

_DEFAULT_USER_AGENT = "authmux"


class HttpTransport(ABC):
    """Contract for performing one outbound request at a time.

    Implementations must reset the recorded outcome at the start of every
    call and populate it before returning.
    """

    def __init__(self) -> None:
        self._status_code: int = 0
        self._response_body: str = ""
        self._response_headers: dict[str, str] = {}
        self._client_error: Optional[str] = None

    @abstractmethod
    def request(
        self,
        url: str,
        method: str = "GET",
        parameters: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
        multipart: bool = False,
    ) -> str:
        """Send a request and return the response body.

        Args:
            url: Absolute URL.
            method: HTTP method.
            parameters: Query parameters for GET, body parameters otherwise.
            headers: Request headers.
            multipart: Send the body as ``multipart/form-data``.

        Returns:
            The response body (empty on transport failure).
        """
        ...

    @property
    def status_code(self) -> int:
        """Status code of the last response, ``0`` when none was received."""
        return self._status_code

    @property
    def response_body(self) -> str:
        return self._response_body

    @property
    def response_headers(self) -> dict[str, str]:
        return dict(self._response_headers)

    @property
    def client_error(self) -> Optional[str]:
        """Description of the last transport failure, or ``None``."""
        return self._client_error

    def _reset(self) -> None:
        self._status_code = 0
        self._response_body = ""
        self._response_headers = {}
        self._client_error = None


class HttpxTransport(HttpTransport):
    """Default transport wrapping a long-lived :class:`httpx.Client`.

    Args:
        timeout: Request timeout in seconds.
        verify_ssl: Verify TLS certificates.
        user_agent: ``User-Agent`` header sent unless the caller supplies one.
        client: A pre-built :class:`httpx.Client` (tests pass one wired to
            :class:`httpx.MockTransport`). When given, *timeout* and
            *verify_ssl* are ignored.

    Example::

        transport = HttpxTransport(timeout=10.0)
        body = transport.request("https://api.github.com/user", headers={...})
        if transport.client_error or transport.status_code != 200:
            ...
    """

    def __init__(
        self,
        timeout: float = 30.0,
        verify_ssl: bool = True,
        user_agent: str = _DEFAULT_USER_AGENT,
        client: Optional[httpx.Client] = None,
    ) -> None:
        super().__init__()
        self._user_agent = user_agent
        self._client = client or httpx.Client(
            timeout=timeout,
            verify=verify_ssl,
            follow_redirects=True,
        )

    def request(
        self,
        url: str,
        method: str = "GET",
        parameters: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
        multipart: bool = False,
    ) -> str:
        self._reset()
        method = method.upper()
        merged_headers: dict[str, str] = {"User-Agent": self._user_agent}
        merged_headers.update(headers or {})
        params = dict(parameters or {})

        kwargs: dict[str, Any] = {"headers": merged_headers}
        if method == "GET":
            if params:
                kwargs["params"] = params
        elif params:
            content_type = _header(merged_headers, "Content-Type") or ""
            if "json" in content_type.lower():
                kwargs["content"] = json.dumps(params)
            elif multipart:
                # A (None, value) tuple is a plain form field in multipart encoding.
                kwargs["files"] = {
                    k: v if isinstance(v, tuple) else (None, str(v)) for k, v in params.items()
                }
            else:
                kwargs["data"] = params

        logger.debug("%s %s", method, url)
        try:
            response = self._client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            self._client_error = f"{type(exc).__name__}: {exc}"
            logger.debug("Transport failure for %s %s: %s", method, url, self._client_error)
            return ""

        self._status_code = response.status_code
        self._response_body = response.text
        self._response_headers = dict(response.headers)
        logger.debug("%s %s -> HTTP %d", method, url, self._status_code)
        return self._response_body

    def close(self) -> None:
        """Close the underlying :class:`httpx.Client`."""
        self._client.close()

    def __enter__(self) -> HttpxTransport:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


def _header(headers: dict[str, str], name: str) -> Optional[str]:
    """Case-insensitive header lookup."""
    lowered = name.lower()
    for key, value in headers.items():
        if key.lower() == lowered:
            return value
    return None
