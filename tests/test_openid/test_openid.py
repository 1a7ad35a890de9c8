"""Tests for OpenID 2.0 discovery, verification and the OpenID engine."""

from __future__ import annotations

from urllib.parse import parse_qs, urlencode, urlsplit

import pytest

from authmux.adapter.openid import OpenIDAdapter, display_name, normalize_gender
from authmux.data.collection import Collection
from authmux.exceptions import (
    AuthorizationDeniedError,
    HttpClientFailureError,
    InvalidOpenIDIdentifierError,
    UnexpectedApiResponseError,
)
from authmux.http.request import CallbackRequest, Redirect
from authmux.models import Profile, ProviderConfig, ProviderKeys
from authmux.openid.client import IDENTIFIER_SELECT, OpenIDClient
from authmux.openid.discovery import discover, normalize_identifier, parse_xrds
from authmux.providers.openid import OPENID_PROVIDER
from authmux.providers.steam import STEAM, steam_id

XRDS_HEADERS = {"Content-Type": "application/xrds+xml"}
HTML_HEADERS = {"Content-Type": "text/html; charset=utf-8"}

OP_ENDPOINT = "https://openid.example.com/server"
CLAIMED_ID = "https://openid.example.com/id/alice"
VALID = "ns:http://specs.openid.net/auth/2.0\nis_valid:true\n"
INVALID = "ns:http://specs.openid.net/auth/2.0\nis_valid:false\n"


def _xrds(type_uri: str, uri: str, priority: str = "0", extra_types: str = "") -> str:
    return f"""<?xml version="1.0"?>
<xrds:XRDS xmlns:xrds="xri://$xrds" xmlns="xri://$xrd*($v*2.0)">
  <XRD>
    <Service priority="{priority}">
      <Type>{type_uri}</Type>
      {extra_types}
      <URI>{uri}</URI>
    </Service>
  </XRD>
</xrds:XRDS>"""


SERVER_XRDS = _xrds(
    "http://specs.openid.net/auth/2.0/server",
    OP_ENDPOINT,
    extra_types="<Type>http://openid.net/srv/ax/1.0</Type>",
)
SIGNON_XRDS = _xrds("http://specs.openid.net/auth/2.0/signon", OP_ENDPOINT)


def _assertion(return_to: str, **overrides: str) -> dict[str, str]:
    params = {
        "openid.ns": "http://specs.openid.net/auth/2.0",
        "openid.mode": "id_res",
        "openid.op_endpoint": OP_ENDPOINT,
        "openid.claimed_id": CLAIMED_ID,
        "openid.identity": CLAIMED_ID,
        "openid.return_to": return_to,
        "openid.response_nonce": "2024-01-01T00:00:00Zabc",
        "openid.assoc_handle": "h1",
        "openid.signed": "op_endpoint,claimed_id,identity,return_to,response_nonce,assoc_handle",
        "openid.sig": "c2lnbmF0dXJl",
        "openid.ns.ax": "http://openid.net/srv/ax/1.0",
        "openid.ax.mode": "fetch_response",
        "openid.ax.type.first": "http://axschema.org/namePerson/first",
        "openid.ax.value.first": "Alice",
        "openid.ax.type.last": "http://axschema.org/namePerson/last",
        "openid.ax.value.last": "Smith",
        "openid.ax.type.email": "http://axschema.org/contact/email",
        "openid.ax.value.email": "alice@example.com",
        "openid.ax.type.gender": "http://axschema.org/person/gender",
        "openid.ax.value.gender": "F",
        "openid.ax.type.year": "http://axschema.org/birthDate/birthYear",
        "openid.ax.value.year": "1990",
    }
    params.update(overrides)
    return params


@pytest.fixture
def assertion(callback_url):
    """Factory for a positive assertion returning to the configured callback."""

    def _make(**overrides: str) -> dict[str, str]:
        return _assertion(callback_url, **overrides)

    return _make


@pytest.fixture
def callback(callback_url):
    def _callback(params: dict[str, str]) -> CallbackRequest:
        return CallbackRequest.from_url(f"{callback_url}?{urlencode(params)}")

    return _callback


@pytest.fixture
def make_adapter(transport, store, openid_definition, callback_url):
    def _make(definition=None, **overrides) -> OpenIDAdapter:
        config = ProviderConfig(callback=callback_url, **overrides)
        return OpenIDAdapter(definition or openid_definition, config, transport=transport, store=store)

    return _make


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------


class TestDiscovery:
    def test_normalize_identifier(self) -> None:
        assert normalize_identifier("example.com/alice#me") == "http://example.com/alice"
        assert normalize_identifier(" https://example.com/ ") == "https://example.com/"

    def test_xrds_response(self, transport) -> None:
        transport.queue(SERVER_XRDS, headers=XRDS_HEADERS)
        result = discover(transport, "https://openid.example.com/")

        assert result.server == OP_ENDPOINT
        assert result.version == 2
        assert result.identifier_select
        assert result.ax
        assert transport.calls[0].headers["Accept"].startswith("application/xrds+xml")

    def test_xrds_location_header(self, transport) -> None:
        transport.queue("<html></html>", headers={**HTML_HEADERS, "X-XRDS-Location": "https://openid.example.com/xrds"})
        transport.queue(SIGNON_XRDS, headers=XRDS_HEADERS)

        result = discover(transport, "https://openid.example.com/alice")

        assert transport.calls[1].url == "https://openid.example.com/xrds"
        assert result.server == OP_ENDPOINT
        assert not result.identifier_select

    def test_xrds_location_meta(self, transport) -> None:
        page = '<html><head><meta http-equiv="X-XRDS-Location" content="https://openid.example.com/xrds"></head></html>'
        transport.queue(page, headers=HTML_HEADERS).queue(SIGNON_XRDS, headers=XRDS_HEADERS)
        assert discover(transport, "https://openid.example.com/alice").server == OP_ENDPOINT

    def test_html_link_fallback(self, transport) -> None:
        page = (
            "<html><head>"
            '<link rel="openid2.provider" href="https://op.example.com/auth">'
            '<link rel="openid2.local_id" href="https://alice.example.com/">'
            "</head><body></body></html>"
        )
        transport.queue(page, headers=HTML_HEADERS)
        result = discover(transport, "https://blog.example.com/")

        assert result.server == "https://op.example.com/auth"
        assert result.local_id == "https://alice.example.com/"
        assert result.version == 2

    def test_openid1_link(self, transport) -> None:
        page = '<html><head><link rel="openid.server" href="https://op.example.com/v1"></head></html>'
        transport.queue(page, headers=HTML_HEADERS)
        assert discover(transport, "https://blog.example.com/").version == 1

    def test_nothing_found(self, transport) -> None:
        transport.queue("<html><head></head></html>", headers=HTML_HEADERS)
        with pytest.raises(UnexpectedApiResponseError, match="No OpenID server"):
            discover(transport, "https://blog.example.com/")

    def test_transport_failure(self, transport) -> None:
        transport.queue(error="ConnectError: unreachable")
        with pytest.raises(HttpClientFailureError):
            discover(transport, "https://blog.example.com/")

    def test_xrds_priority(self) -> None:
        document = """<?xml version="1.0"?>
<xrds:XRDS xmlns:xrds="xri://$xrds" xmlns="xri://$xrd*($v*2.0)">
  <XRD>
    <Service priority="20">
      <Type>http://specs.openid.net/auth/2.0/signon</Type>
      <URI>https://backup.example.com/</URI>
    </Service>
    <Service priority="10">
      <Type>http://specs.openid.net/auth/2.0/signon</Type>
      <URI>https://primary.example.com/</URI>
      <LocalID>https://alice.primary.example.com/</LocalID>
    </Service>
  </XRD>
</xrds:XRDS>"""
        result = parse_xrds(document)
        assert result.server == "https://primary.example.com/"
        assert result.local_id == "https://alice.primary.example.com/"

    def test_malformed_xrds(self) -> None:
        assert parse_xrds("<xrds:XRDS") is None

    def test_external_entities_not_loaded(self, tmp_path) -> None:
        secret = tmp_path / "secret.txt"
        secret.write_text("https://stolen.example.com/", encoding="utf-8")
        document = SIGNON_XRDS.replace(
            "<?xml version=\"1.0\"?>",
            f'<?xml version="1.0"?>\n<!DOCTYPE XRDS [<!ENTITY leak SYSTEM "file://{secret}">]>',
        ).replace(OP_ENDPOINT, "&leak;")

        result = parse_xrds(document)

        assert result is None or "stolen" not in (result.server or "")


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class TestOpenIDClient:
    def test_auth_url_identifier_select(self, transport, callback_url) -> None:
        transport.queue(SERVER_XRDS, headers=XRDS_HEADERS)
        client = OpenIDClient(transport, "https://app.example.com")
        client.identity = "https://openid.example.com/"
        client.return_url = callback_url
        client.required = ["contact/email", "namePerson/first"]

        url = client.auth_url()

        assert url.startswith(OP_ENDPOINT + "?")
        query = parse_qs(urlsplit(url).query)
        assert query["openid.mode"] == ["checkid_setup"]
        assert query["openid.claimed_id"] == [IDENTIFIER_SELECT]
        assert query["openid.realm"] == ["https://app.example.com"]
        assert query["openid.return_to"] == [callback_url]
        assert query["openid.ax.type.contact_email"] == ["http://axschema.org/contact/email"]
        assert query["openid.ax.required"] == ["contact_email,namePerson_first"]

    def test_auth_url_requires_identity(self, transport) -> None:
        with pytest.raises(ValueError):
            OpenIDClient(transport, "https://app.example.com").auth_url()

    def test_mode_of(self) -> None:
        assert OpenIDClient.mode_of({"openid.mode": "id_res"}) == "id_res"
        assert OpenIDClient.mode_of({"openid.mode": "cancel"}) == "cancel"
        assert OpenIDClient.mode_of({"openid_mode": "id_res"}) is None
        assert OpenIDClient.mode_of({}) is None

    def test_sreg_attributes(self, transport, assertion, callback_url) -> None:
        transport.queue(SIGNON_XRDS, headers=XRDS_HEADERS).queue(VALID)
        client = OpenIDClient(transport, "https://app.example.com")
        params = {
            k: v for k, v in assertion().items() if not k.startswith("openid.ax") and k != "openid.ns.ax"
        }
        params.update({
            "openid.ns.sreg": "http://openid.net/extensions/sreg/1.1",
            "openid.sreg.email": "bob@example.com",
            "openid.sreg.nickname": "bob",
        })

        assert client.validate(params, callback_url)
        assert client.get_attributes() == {
            "contact/email": "bob@example.com",
            "namePerson/friendly": "bob",
        }

    def test_check_authentication_request(self, transport, assertion, callback_url) -> None:
        transport.queue(SIGNON_XRDS, headers=XRDS_HEADERS).queue(VALID)
        client = OpenIDClient(transport, "https://app.example.com")

        assert client.validate(assertion(), callback_url)

        check = transport.calls[1]
        assert check.url == OP_ENDPOINT
        assert check.method == "POST"
        assert check.parameters["openid.mode"] == "check_authentication"
        assert check.parameters["openid.claimed_id"] == CLAIMED_ID
        assert check.parameters["openid.sig"] == "c2lnbmF0dXJl"
        assert client.identity == CLAIMED_ID

    def test_return_to_mismatch(self, transport, assertion) -> None:
        client = OpenIDClient(transport, "https://app.example.com")
        assert not client.validate(assertion(), "https://evil.example.com/callback")
        assert transport.calls == []


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class TestOpenIDAdapter:
    def test_identifier_required(self, make_adapter, transport, store) -> None:
        with pytest.raises(InvalidOpenIDIdentifierError):
            make_adapter(OPENID_PROVIDER)

    def test_identifier_from_config(self, make_adapter, transport, store) -> None:
        adapter = make_adapter(OPENID_PROVIDER, openid_identifier="https://me.example.com/")
        assert adapter.openid_identifier == "https://me.example.com/"

    def test_begin(self, make_adapter, transport, callback_url) -> None:
        transport.queue(SERVER_XRDS, headers=XRDS_HEADERS)
        result = make_adapter().authenticate(CallbackRequest(url=callback_url))

        assert isinstance(result, Redirect)
        query = parse_qs(urlsplit(result.url).query)
        assert query["openid.mode"] == ["checkid_setup"]
        assert "openid.ax.required" in query

    def test_cancel(self, make_adapter, transport, callback) -> None:
        with pytest.raises(AuthorizationDeniedError):
            make_adapter().authenticate(callback({"openid.mode": "cancel"}))
        assert transport.calls == []

    def test_underscored_mode_starts_login(self, make_adapter, transport, callback) -> None:
        transport.queue(SERVER_XRDS, headers=XRDS_HEADERS)
        request = callback({"openid_mode": "id_res", "openid_claimed_id": CLAIMED_ID})

        result = make_adapter().authenticate(request)

        assert isinstance(result, Redirect)
        assert len(transport.calls) == 1

    def test_verified_assertion_stores_profile(
        self, make_adapter, transport, store, callback, assertion
    ) -> None:
        transport.queue(SIGNON_XRDS, headers=XRDS_HEADERS).queue(VALID)
        adapter = make_adapter()

        assert adapter.authenticate(callback(assertion())) is None

        assert adapter.is_connected()
        profile = store.get("ident.user")
        assert isinstance(profile, Profile)
        assert profile.identifier == CLAIMED_ID
        assert profile.first_name == "Alice"
        assert profile.display_name == "Alice Smith"
        assert profile.email == "alice@example.com"
        assert profile.gender == "female"
        assert profile.birth_year == 1990
        assert adapter.get_user_profile() == profile

    def test_invalid_signature(
        self, make_adapter, transport, store, callback, assertion
    ) -> None:
        transport.queue(SIGNON_XRDS, headers=XRDS_HEADERS).queue(INVALID)
        adapter = make_adapter()

        with pytest.raises(UnexpectedApiResponseError, match="Invalid response received"):
            adapter.authenticate(callback(assertion()))
        assert not adapter.is_connected()

    def test_endpoint_not_authoritative(
        self, make_adapter, transport, store, callback, assertion
    ) -> None:
        transport.queue(_xrds("http://specs.openid.net/auth/2.0/signon", "https://other.example.com/"), headers=XRDS_HEADERS)

        with pytest.raises(UnexpectedApiResponseError):
            make_adapter().authenticate(callback(assertion()))
        # No check_authentication call after the failed authority check.
        assert len(transport.calls) == 1

    def test_profile_before_login(self, make_adapter, transport, store) -> None:
        with pytest.raises(UnexpectedApiResponseError):
            make_adapter().get_user_profile()

    def test_disconnect(self, make_adapter, transport, store) -> None:
        store.set("ident.user", Profile(identifier="x"))
        store.set("ident_something", "y")
        adapter = make_adapter()
        assert adapter.is_connected()

        adapter.disconnect()

        assert store.keys() == []
        assert not adapter.is_connected()

    def test_already_connected(self, make_adapter, transport, store) -> None:
        store.set("ident.user", Profile(identifier="x"))
        assert make_adapter().authenticate() is None
        assert transport.calls == []


class TestProfileHelpers:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [("f", "female"), ("M", "male"), ("Other", "other"), (None, None)],
    )
    def test_normalize_gender(self, value, expected) -> None:
        assert normalize_gender(value) == expected

    def test_display_name_precedence(self) -> None:
        data = Collection({"namePerson": "Full", "namePerson/friendly": "nick"})
        assert display_name(data, "A", "B") == "Full"
        assert display_name(Collection({"namePerson/friendly": "nick"}), "A", "B") == "nick"
        assert display_name(Collection({}), "A", None) == "A"


# ---------------------------------------------------------------------------
# Steam
# ---------------------------------------------------------------------------


STEAM_ID = "76561197960435530"
STEAM_CLAIMED = f"https://steamcommunity.com/openid/id/{STEAM_ID}"
STEAM_LOGIN = "https://steamcommunity.com/openid/login"
STEAM_XML = f"""<?xml version="1.0"?>
<profile>
  <steamID64>{STEAM_ID}</steamID64>
  <steamID><![CDATA[gaben]]></steamID>
  <realname><![CDATA[Gabe]]></realname>
  <avatarFull><![CDATA[https://avatars.example.com/full.jpg]]></avatarFull>
  <customURL><![CDATA[gabelogannewell]]></customURL>
  <summary>Hello</summary>
  <location>Bellevue, WA</location>
</profile>"""


def _steam_assertion(return_to: str) -> dict[str, str]:
    return {
        "openid.ns": "http://specs.openid.net/auth/2.0",
        "openid.mode": "id_res",
        "openid.op_endpoint": STEAM_LOGIN,
        "openid.claimed_id": STEAM_CLAIMED,
        "openid.identity": STEAM_CLAIMED,
        "openid.return_to": return_to,
        "openid.assoc_handle": "1234567890",
        "openid.signed": "signed,op_endpoint,claimed_id,identity,return_to,assoc_handle",
        "openid.sig": "c2ln",
    }


class TestSteam:
    def _queue_verification(self, transport) -> None:
        transport.queue(_xrds("http://specs.openid.net/auth/2.0/signon", STEAM_LOGIN), headers=XRDS_HEADERS)
        transport.queue(VALID)

    def test_steam_id(self) -> None:
        assert steam_id(STEAM_CLAIMED) == STEAM_ID
        assert steam_id(f"http://steamcommunity.com/openid/id/{STEAM_ID}") == STEAM_ID

    def test_legacy_profile(self, make_adapter, transport, callback, callback_url) -> None:
        self._queue_verification(transport)
        transport.queue(STEAM_XML)
        adapter = make_adapter(STEAM)

        adapter.authenticate(callback(_steam_assertion(callback_url)))

        assert transport.calls[2].url == f"https://steamcommunity.com/profiles/{STEAM_ID}/?xml=1"
        profile = adapter.get_user_profile()
        assert profile.identifier == STEAM_ID
        assert profile.display_name == "gaben"
        assert profile.first_name == "Gabe"
        assert profile.region == "Bellevue, WA"
        assert profile.profile_url == "https://steamcommunity.com/id/gabelogannewell"

    def test_web_api_profile(self, make_adapter, transport, callback, callback_url) -> None:
        self._queue_verification(transport)
        transport.queue({
            "response": {
                "players": [{
                    "personaname": "gaben",
                    "realname": "Gabe Newell",
                    "avatarfull": "https://avatars.example.com/full.jpg",
                    "profileurl": "https://steamcommunity.com/id/gaben/",
                    "loccountrycode": "US",
                }]
            }
        })
        adapter = make_adapter(STEAM, keys=ProviderKeys(secret="WEBKEY"))

        adapter.authenticate(callback(_steam_assertion(callback_url)))

        assert "key=WEBKEY" in transport.calls[2].url
        profile = adapter.get_user_profile()
        assert profile.display_name == "gaben"
        assert profile.country == "US"

    def test_enrichment_failure_keeps_identifier(self, make_adapter, transport, callback, callback_url) -> None:
        self._queue_verification(transport)
        transport.queue("Service Unavailable", status=503)
        adapter = make_adapter(STEAM)

        adapter.authenticate(callback(_steam_assertion(callback_url)))

        profile = adapter.get_user_profile()
        assert profile.identifier == STEAM_ID
        assert profile.display_name == ""
