"""Tests for the OAuth 1.0a engine."""

from __future__ import annotations

from urllib.parse import unquote

import pytest

from authmux.adapter.oauth1 import OAuth1Adapter
from authmux.exceptions import (
    AuthorizationDeniedError,
    HttpRequestFailedError,
    InvalidAccessTokenError,
    InvalidApplicationCredentialsError,
    InvalidAuthorizationStateError,
    InvalidOAuthTokenError,
)
from authmux.http.request import CallbackRequest, Redirect
from authmux.models import ProviderKeys
from authmux.oauth1 import Consumer, HmacSha1, SignedRequest, Token


@pytest.fixture
def make_adapter(transport, store, oauth1_definition, provider_config):
    def _make(**overrides) -> OAuth1Adapter:
        return OAuth1Adapter(
            oauth1_definition, provider_config(**overrides), transport=transport, store=store
        )

    return _make


def _header_params(header: str) -> dict[str, str]:
    assert header.startswith("OAuth ")
    params: dict[str, str] = {}
    for item in header[len("OAuth "):].split(","):
        name, _, value = item.partition("=")
        params[unquote(name)] = unquote(value.strip('"'))
    return params


def _assert_signed(call, consumer: Consumer, token: Token | None) -> dict[str, str]:
    """Rebuild the request from what was sent and verify its signature."""
    params = _header_params(call.headers["Authorization"])
    signature = params.pop("oauth_signature")
    request = SignedRequest(call.method, call.url, {**params, **call.parameters})
    assert HmacSha1().check_signature(request, consumer, token, signature)
    return params


CONSUMER = Consumer("client-id", "client-secret")


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class TestConfigure:
    def test_missing_key(self, make_adapter, transport, store) -> None:
        with pytest.raises(InvalidApplicationCredentialsError):
            make_adapter(keys=ProviderKeys(secret="s"))

    def test_access_token_from_store(self, make_adapter, transport, store) -> None:
        store.set("legacy_access_token", "AT")
        store.set("legacy_access_token_secret", "AS")
        adapter = make_adapter()
        assert adapter.consumer_token == Token("AT", "AS")
        assert adapter.is_connected()


# ---------------------------------------------------------------------------
# Flow
# ---------------------------------------------------------------------------


class TestAuthenticateBegin:
    def test_request_token_then_redirect(
        self, make_adapter, transport, store, oauth1_definition, callback_url
    ) -> None:
        transport.queue("oauth_token=RT&oauth_token_secret=RS&oauth_callback_confirmed=true")
        result = make_adapter().authenticate(CallbackRequest(url=callback_url))

        assert isinstance(result, Redirect)
        assert result.url == "https://api.legacy.example.com/oauth/authorize?oauth_token=RT"
        assert store.get("legacy_request_token") == "RT"
        assert store.get("legacy_request_token_secret") == "RS"

        call = transport.calls[0]
        assert call.method == "POST"
        assert call.url == oauth1_definition.request_token_url
        assert call.parameters == {}
        params = _assert_signed(call, CONSUMER, None)
        assert params["oauth_callback"] == callback_url
        assert "oauth_token" not in params

    def test_request_token_missing(self, make_adapter, transport, store) -> None:
        transport.queue("oauth_token_secret=RS")
        with pytest.raises(InvalidOAuthTokenError):
            make_adapter().authenticate()

    def test_request_token_http_error(self, make_adapter, transport, store) -> None:
        transport.queue("Invalid consumer", status=401)
        with pytest.raises(HttpRequestFailedError, match="Unable to get OAuth request token"):
            make_adapter().authenticate()


class TestAuthenticateFinish:
    def _pending(self, store) -> None:
        store.set("legacy_request_token", "RT")
        store.set("legacy_request_token_secret", "RS")

    def test_exchange(self, make_adapter, transport, store, callback_url) -> None:
        self._pending(store)
        transport.queue("oauth_token=AT&oauth_token_secret=AS&user_id=42")
        adapter = make_adapter()

        result = adapter.authenticate(
            CallbackRequest(url=callback_url, params={"oauth_token": "RT", "oauth_verifier": "V"})
        )

        assert result is None
        assert store.get("legacy_access_token") == "AT"
        assert store.get("legacy_access_token_secret") == "AS"
        assert store.get("legacy_request_token") is None
        assert store.get("legacy_request_token_secret") is None
        assert adapter.consumer_token == Token("AT", "AS")

        params = _assert_signed(transport.calls[0], CONSUMER, Token("RT", "RS"))
        assert params["oauth_token"] == "RT"
        assert params["oauth_verifier"] == "V"

    def test_request_token_mismatch(self, make_adapter, transport, store) -> None:
        self._pending(store)
        with pytest.raises(InvalidAuthorizationStateError):
            make_adapter().authenticate(
                CallbackRequest(params={"oauth_token": "OTHER", "oauth_verifier": "V"})
            )
        assert transport.calls == []
        assert store.get("legacy_request_token") is None

    def test_no_pending_request_token(self, make_adapter, transport, store) -> None:
        with pytest.raises(InvalidAuthorizationStateError):
            make_adapter().authenticate(
                CallbackRequest(params={"oauth_token": "RT", "oauth_verifier": "V"})
            )
        assert transport.calls == []

    def test_access_token_missing(self, make_adapter, transport, store) -> None:
        self._pending(store)
        transport.queue("oauth_token=AT")
        with pytest.raises(InvalidAccessTokenError):
            make_adapter().authenticate(
                CallbackRequest(params={"oauth_token": "RT", "oauth_verifier": "V"})
            )

    def test_denied(self, make_adapter, transport, store) -> None:
        self._pending(store)
        with pytest.raises(AuthorizationDeniedError):
            make_adapter().authenticate(CallbackRequest(params={"denied": "RT"}))
        assert transport.calls == []

    def test_oauth_problem(self, make_adapter, transport, store) -> None:
        with pytest.raises(InvalidOAuthTokenError, match="token_rejected"):
            make_adapter().authenticate(
                CallbackRequest(params={"oauth_problem": "token_rejected"})
            )


# ---------------------------------------------------------------------------
# Signed API requests
# ---------------------------------------------------------------------------


class TestApiRequest:
    def test_get_is_signed_with_access_token(self, make_adapter, transport, store) -> None:
        store.set("legacy_access_token", "AT")
        store.set("legacy_access_token_secret", "AS")
        transport.queue({"id_str": "1"})

        result = make_adapter().api_request("account/verify.json", parameters={"a": "b c"})

        assert result == {"id_str": "1"}
        call = transport.calls[0]
        assert call.url == "https://api.legacy.example.com/1/account/verify.json"
        assert call.method == "GET"
        assert call.parameters == {"a": "b c"}
        params = _assert_signed(call, CONSUMER, Token("AT", "AS"))
        assert params["oauth_token"] == "AT"
        assert params["oauth_signature_method"] == "HMAC-SHA1"

    def test_url_query_is_signed(self, make_adapter, transport, store) -> None:
        store.set("legacy_access_token", "AT")
        store.set("legacy_access_token_secret", "AS")
        transport.queue([])

        make_adapter().api_request("statuses.json?count=5")

        call = transport.calls[0]
        assert call.url == "https://api.legacy.example.com/1/statuses.json"
        assert call.parameters == {"count": "5"}
        _assert_signed(call, CONSUMER, Token("AT", "AS"))

    def test_post(self, make_adapter, transport, store) -> None:
        store.set("legacy_access_token", "AT")
        store.set("legacy_access_token_secret", "AS")
        transport.queue({"ok": True})

        make_adapter().api_request("statuses/update.json", "POST", {"status": "hi!"})

        call = transport.calls[0]
        assert call.method == "POST"
        assert call.parameters == {"status": "hi!"}
        _assert_signed(call, CONSUMER, Token("AT", "AS"))

    def test_disconnect(self, make_adapter, transport, store) -> None:
        store.set("legacy_access_token", "AT")
        adapter = make_adapter()
        adapter.disconnect()
        assert not adapter.is_connected()
