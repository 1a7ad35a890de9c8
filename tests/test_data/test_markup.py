"""Tests for parsing XML and HTML fetched from remote hosts."""

from __future__ import annotations

import pytest
from lxml import etree

from authmux.data import parse_html, parse_xml


class TestParseXml:
    def test_document_with_declaration(self) -> None:
        root = parse_xml('<?xml version="1.0" encoding="UTF-8"?>\n<profile><steamID>gaben</steamID></profile>')
        assert root.tag == "profile"
        assert root.findtext("steamID") == "gaben"

    @pytest.mark.parametrize("text", ["", "<profile>", "not xml at all"])
    def test_malformed(self, text) -> None:
        with pytest.raises(etree.XMLSyntaxError):
            parse_xml(text)

    def test_external_entity_left_unresolved(self, tmp_path) -> None:
        secret = tmp_path / "secret.txt"
        secret.write_text("top-secret-value", encoding="utf-8")
        document = (
            '<?xml version="1.0"?>\n'
            f'<!DOCTYPE profile [<!ENTITY leak SYSTEM "file://{secret}">]>\n'
            "<profile><steamID>&leak;</steamID></profile>"
        )

        root = parse_xml(document)

        assert "top-secret-value" not in etree.tostring(root, encoding="unicode")
        assert not root.findtext("steamID")


class TestParseHtml:
    def test_links_and_meta(self) -> None:
        document = parse_html(
            '<html><head><link rel="openid2.provider" href="https://op.example.com/">'
            '<meta http-equiv="X-XRDS-Location" content="https://op.example.com/xrds">'
            "</head></html>"
        )
        assert document.find(".//link").get("href") == "https://op.example.com/"
        assert document.find(".//meta").get("content") == "https://op.example.com/xrds"

    @pytest.mark.parametrize("text", ["", "   \n", None])
    def test_empty_body(self, text) -> None:
        assert parse_html(text) is None

    def test_unclosed_tags_tolerated(self) -> None:
        document = parse_html("<html><head><link rel=openid.server href=https://op.example.com/v1>")
        assert document.find(".//link").get("rel") == "openid.server"
