"""OpenID 2.0 endpoint discovery.

Discovery is attempted in this order:

1. **Yadis** -- fetch the identifier asking for ``application/xrds+xml``.
   An ``X-XRDS-Location`` header (or ``<meta http-equiv>``) points at the
   XRDS document; a response that *is* XRDS is used directly.
2. **HTML** -- ``<link rel="openid2.provider">`` and ``openid2.local_id``,
   falling back to OpenID 1.x ``openid.server``/``openid.delegate``.

XRI identifiers are not supported.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from lxml import etree

from authmux.data.markup import parse_html, parse_xml
from authmux.exceptions import HttpClientFailureError, UnexpectedApiResponseError
from authmux.http.transport import HttpTransport

logger = logging.getLogger(__name__)

NS_OPENID2 = "http://specs.openid.net/auth/2.0"
TYPE_SERVER = "http://specs.openid.net/auth/2.0/server"
TYPE_SIGNON = "http://specs.openid.net/auth/2.0/signon"
TYPE_OPENID1 = ("http://openid.net/signon/1.1", "http://openid.net/signon/1.0")
TYPE_AX = "http://openid.net/srv/ax/1.0"
TYPE_SREG = ("http://openid.net/extensions/sreg/1.1", "http://openid.net/sreg/1.0")

_XRD_NS = "xri://$xrd*($v*2.0)"
_XRDS_CONTENT_TYPE = "application/xrds+xml"
_MAX_YADIS_HOPS = 3


@dataclass
class DiscoveryResult:
    """Outcome of discovering an identifier.

    Attributes:
        server: The OP endpoint URL.
        version: ``2`` or ``1``.
        identifier_select: The identifier was an OP identifier, so the user
            picks their identity at the provider.
        local_id: Delegated identity, when the claimed id delegates.
        ax: The endpoint advertises Attribute Exchange.
        sreg: The endpoint advertises Simple Registration.
    """

    server: str
    version: int = 2
    identifier_select: bool = False
    local_id: Optional[str] = None
    ax: bool = False
    sreg: bool = False


def normalize_identifier(identifier: str) -> str:
    """Prefix a scheme-less identifier with ``http://`` and drop any fragment."""
    identifier = identifier.strip()
    if not identifier.startswith(("http://", "https://")):
        identifier = "http://" + identifier
    return identifier.split("#", 1)[0]


def discover(transport: HttpTransport, identifier: str) -> DiscoveryResult:
    """Discover the OP endpoint for *identifier*.

    Raises:
        HttpClientFailureError: The identifier could not be fetched.
        UnexpectedApiResponseError: No OpenID endpoint was found.
    """
    url = normalize_identifier(identifier)
    for _ in range(_MAX_YADIS_HOPS):
        logger.debug("OpenID discovery: fetching %s", url)
        body = transport.request(url, "GET", headers={"Accept": f"{_XRDS_CONTENT_TYPE}, text/html"})
        if transport.client_error:
            raise HttpClientFailureError(
                f"OpenID discovery of {url} failed: {transport.client_error}"
            )

        headers = {k.lower(): v for k, v in transport.response_headers.items()}
        if _XRDS_CONTENT_TYPE in headers.get("content-type", "") or _looks_like_xrds(body):
            result = parse_xrds(body)
            if result is not None:
                return result
            break

        location = headers.get("x-xrds-location")
        page = _parse_html(body)
        location = location or page.xrds_location
        if location and location != url:
            url = location
            continue

        result = page.result()
        if result is not None:
            return result
        break

    raise UnexpectedApiResponseError(f"No OpenID server found at {identifier}")


def parse_xrds(document: str) -> Optional[DiscoveryResult]:
    """Pick the best OpenID service from an XRDS document.

    OP-identifier services win over claimed-identifier services, then
    OpenID 1.x; within a kind the lowest ``priority`` wins.
    """
    try:
        root = parse_xml(document)
    except etree.XMLSyntaxError:
        logger.debug("OpenID discovery: XRDS document is not well-formed")
        return None

    candidates: list[tuple[int, int, DiscoveryResult]] = []
    for service in root.iter(f"{{{_XRD_NS}}}Service"):
        types = [t.text.strip() for t in service.findall(f"{{{_XRD_NS}}}Type") if t.text]
        uri = service.find(f"{{{_XRD_NS}}}URI")
        if uri is None or not uri.text:
            continue
        local = service.find(f"{{{_XRD_NS}}}LocalID")
        priority = int(service.get("priority", "1000000") or 1000000)
        ax = TYPE_AX in types
        sreg = any(t in types for t in TYPE_SREG)

        if TYPE_SERVER in types:
            candidates.append(
                (0, priority, DiscoveryResult(uri.text.strip(), 2, True, None, ax, sreg))
            )
        elif TYPE_SIGNON in types:
            local_id = local.text.strip() if local is not None and local.text else None
            candidates.append(
                (1, priority, DiscoveryResult(uri.text.strip(), 2, False, local_id, ax, sreg))
            )
        elif any(t in types for t in TYPE_OPENID1):
            candidates.append(
                (2, priority, DiscoveryResult(uri.text.strip(), 1, False, None, ax, sreg))
            )

    if not candidates:
        return None
    candidates.sort(key=lambda c: (c[0], c[1]))
    return candidates[0][2]


def _looks_like_xrds(body: str) -> bool:
    head = body.lstrip()[:512]
    return (head.startswith("<?xml") and "xrds" in head.lower()) or head.lower().startswith("<xrds")


@dataclass
class _PageHints:
    """OpenID ``<link>`` and Yadis ``<meta>`` hints found on an HTML page."""

    links: dict[str, str] = field(default_factory=dict)
    xrds_location: Optional[str] = None

    def result(self) -> Optional[DiscoveryResult]:
        if "openid2.provider" in self.links:
            return DiscoveryResult(
                self.links["openid2.provider"], 2, False, self.links.get("openid2.local_id")
            )
        if "openid.server" in self.links:
            return DiscoveryResult(self.links["openid.server"], 1, False, self.links.get("openid.delegate"))
        return None


def _parse_html(body: str) -> _PageHints:
    hints = _PageHints()
    document = parse_html(body)
    if document is None:
        return hints

    for element in document.iter("link", "meta"):
        if element.tag == "link" and element.get("href"):
            for rel in (element.get("rel") or "").split():
                hints.links.setdefault(rel.lower(), element.get("href"))
        elif (element.get("http-equiv") or "").lower() == "x-xrds-location":
            hints.xrds_location = element.get("content") or None
    return hints
