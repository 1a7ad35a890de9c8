"""lxml parsing for documents fetched from remote hosts.

XRDS documents, OpenID provider pages and community profiles come from
servers the application does not control. Both parsers leave entities
unresolved, never load external DTDs and never touch the network.
"""

from __future__ import annotations

from typing import Optional

from lxml import etree
from lxml import html as lxml_html


def _xml_parser() -> etree.XMLParser:
    return etree.XMLParser(
        resolve_entities=False,
        no_network=True,
        load_dtd=False,
        huge_tree=False,
        encoding="utf-8",
    )


def parse_xml(text: str) -> etree._Element:
    """Parse *text* as an XML document and return its root element.

    Raises:
        lxml.etree.XMLSyntaxError: The document is empty or not well-formed.
    """
    # Parsed as UTF-8 bytes: lxml rejects str input carrying an encoding declaration.
    return etree.fromstring((text or "").encode("utf-8"), parser=_xml_parser())


def parse_html(text: str) -> Optional[lxml_html.HtmlElement]:
    """Parse *text* as an HTML page. Returns ``None`` for an empty body."""
    if not text or not text.strip():
        return None
    parser = lxml_html.HTMLParser(no_network=True, remove_comments=True, encoding="utf-8")
    try:
        return lxml_html.document_fromstring(text.encode("utf-8"), parser=parser)
    except etree.ParserError:
        return None
