"""Percent-encoding and parameter helpers for OAuth 1.0a.

RFC 3986 encoding differs from ``application/x-www-form-urlencoded``:
spaces become ``%20`` (never ``+``) and only ``A-Z a-z 0-9 - . _ ~`` are
left unescaped.
"""

from __future__ import annotations

from typing import Any, Mapping
from urllib.parse import quote, unquote_plus


def rfc3986_encode(value: Any) -> str:
    """Percent-encode *value* per RFC 3986.

    ``None`` encodes to the empty string; booleans and numbers are
    stringified first.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        value = "1" if value else ""
    return quote(str(value), safe="~")


def parse_parameters(query: str | None) -> dict[str, Any]:
    """Parse a query string into a dict; repeated names become lists.

    Example::

        parse_parameters("a=1&b=2&a=3")   # {"a": ["1", "3"], "b": "2"}
    """
    if not query:
        return {}
    parsed: dict[str, Any] = {}
    for pair in query.split("&"):
        if not pair:
            continue
        name, _, value = pair.partition("=")
        name = unquote_plus(name)
        value = unquote_plus(value)
        if name in parsed:
            existing = parsed[name]
            if isinstance(existing, list):
                existing.append(value)
            else:
                parsed[name] = [existing, value]
        else:
            parsed[name] = value
    return parsed


def build_http_query(params: Mapping[str, Any]) -> str:
    """Serialise *params* into the normalised OAuth parameter string.

    Names and values are RFC 3986 encoded, then names are sorted byte-wise
    (encoded names are pure ASCII, so code-point order is byte order).
    A list value emits one ``name=value`` pair per element, in sorted order.
    """
    if not params:
        return ""
    encoded: dict[str, Any] = {}
    for name, value in params.items():
        if isinstance(value, (list, tuple)):
            encoded[rfc3986_encode(name)] = [rfc3986_encode(v) for v in value]
        else:
            encoded[rfc3986_encode(name)] = rfc3986_encode(value)

    pairs: list[str] = []
    for name in sorted(encoded):
        value = encoded[name]
        if isinstance(value, list):
            pairs.extend(f"{name}={v}" for v in sorted(value))
        else:
            pairs.append(f"{name}={value}")
    return "&".join(pairs)
