"""Helpers for provider payloads.

- :class:`Collection` -- permissive read-only accessor over decoded JSON,
  returning ``None`` for missing keys instead of raising.
- :func:`parse_response` -- decode a raw provider body (JSON, form-encoded,
  or plain text).
- :func:`parse_xml` / :func:`parse_html` -- lxml parsing of remote XML and
  HTML with entity resolution and network access disabled.
"""

from authmux.data.collection import Collection
from authmux.data.markup import parse_html, parse_xml
from authmux.data.parser import parse_query_string, parse_response

__all__ = ["Collection", "parse_html", "parse_query_string", "parse_response", "parse_xml"]
