"""Decode raw provider response bodies.

Token endpoints disagree about encodings: OAuth2 servers usually answer with
JSON, OAuth1 servers (and a few OAuth2 ones such as GitHub without an
``Accept`` header) answer ``application/x-www-form-urlencoded``.
:func:`parse_response` tries JSON first, then a query string, and finally
returns the text unchanged.
"""

from __future__ import annotations

import json
from typing import Any
from urllib.parse import parse_qsl


def parse_query_string(raw: str) -> dict[str, Any]:
    """Parse ``a=1&b=2`` into a dict; repeated keys become lists."""
    result: dict[str, Any] = {}
    for key, value in parse_qsl(raw, keep_blank_values=True):
        if key in result:
            existing = result[key]
            if isinstance(existing, list):
                existing.append(value)
            else:
                result[key] = [existing, value]
        else:
            result[key] = value
    return result


def parse_response(raw: str | bytes | None) -> Any:
    """Decode a provider body.

    Args:
        raw: The response body.

    Returns:
        The JSON-decoded value; or a dict when the body is a form-encoded
        query string; or the stripped text; or ``None`` for an empty body.
    """
    if raw is None:
        return None
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    text = raw.strip()
    if not text:
        return None

    try:
        return json.loads(text)
    except ValueError:
        pass

    if "=" in text and not text.startswith("<") and " " not in text:
        parsed = parse_query_string(text)
        if parsed:
            return parsed

    return text
