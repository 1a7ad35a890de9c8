"""Tests for OAuth 1.0a request signing."""

from __future__ import annotations

import pytest

from authmux.oauth1 import (
    Consumer,
    HmacSha1,
    SignedRequest,
    Token,
    build_http_query,
    parse_parameters,
    rfc3986_encode,
)


CONSUMER = Consumer("dpf43f3p2l4k3l03", "kd94hf93k423kf44")
TOKEN = Token("nnch734d00sl2jdk", "pfkkdhi9sl3r4s00")


def _photos_request() -> SignedRequest:
    return SignedRequest(
        "GET",
        "http://photos.example.net/photos?file=vacation.jpg&size=original",
        {
            "oauth_consumer_key": CONSUMER.key,
            "oauth_token": TOKEN.key,
            "oauth_signature_method": "HMAC-SHA1",
            "oauth_timestamp": "1191242096",
            "oauth_nonce": "kllo9940pd9333jh",
            "oauth_version": "1.0",
        },
    )


# ---------------------------------------------------------------------------
# Encoding helpers
# ---------------------------------------------------------------------------


class TestEncoding:
    def test_space_and_plus(self) -> None:
        assert rfc3986_encode("Hello Ladies + Gentlemen") == "Hello%20Ladies%20%2B%20Gentlemen"

    def test_unreserved_characters_untouched(self) -> None:
        assert rfc3986_encode("AZaz09-._~") == "AZaz09-._~"

    def test_reserved_characters_escaped(self) -> None:
        assert rfc3986_encode("a/b?c=d&e") == "a%2Fb%3Fc%3Dd%26e"

    def test_none_and_bool(self) -> None:
        assert rfc3986_encode(None) == ""
        assert rfc3986_encode(True) == "1"
        assert rfc3986_encode(False) == ""

    def test_utf8(self) -> None:
        assert rfc3986_encode("é") == "%C3%A9"

    def test_parse_parameters_duplicates(self) -> None:
        assert parse_parameters("a=1&b=2&a=3") == {"a": ["1", "3"], "b": "2"}

    def test_parse_parameters_plus_is_space(self) -> None:
        assert parse_parameters("q=a+b") == {"q": "a b"}


class TestBuildHttpQuery:
    def test_sorted_by_name(self) -> None:
        assert build_http_query({"b": "2", "a": "1", "c": "3"}) == "a=1&b=2&c=3"

    def test_sort_is_bytewise(self) -> None:
        # Upper-case letters sort before lower-case ones.
        assert build_http_query({"a": "1", "Z": "2"}) == "Z=2&a=1"

    def test_duplicate_values_sorted(self) -> None:
        assert build_http_query({"a": ["z", "b", "m"]}) == "a=b&a=m&a=z"

    def test_empty(self) -> None:
        assert build_http_query({}) == ""


# ---------------------------------------------------------------------------
# SignedRequest
# ---------------------------------------------------------------------------


class TestNormalizedUrl:
    @pytest.mark.parametrize(
        ("url", "expected"),
        [
            ("HTTP://Example.COM:80/path?q=1", "http://example.com/path"),
            ("https://example.com:443/a/b", "https://example.com/a/b"),
            ("https://example.com:8443/a", "https://example.com:8443/a"),
            ("http://example.com:443/", "http://example.com:443/"),
            ("https://example.com/x#frag", "https://example.com/x"),
        ],
    )
    def test_normalization(self, url: str, expected: str) -> None:
        assert SignedRequest("GET", url).normalized_url() == expected


class TestSignatureBaseString:
    def test_known_base_string(self) -> None:
        request = _photos_request()
        assert request.signature_base_string() == (
            "GET&http%3A%2F%2Fphotos.example.net%2Fphotos&"
            "file%3Dvacation.jpg%26oauth_consumer_key%3Ddpf43f3p2l4k3l03%26"
            "oauth_nonce%3Dkllo9940pd9333jh%26oauth_signature_method%3DHMAC-SHA1%26"
            "oauth_timestamp%3D1191242096%26oauth_token%3Dnnch734d00sl2jdk%26"
            "oauth_version%3D1.0%26size%3Doriginal"
        )

    def test_oauth_signature_excluded(self) -> None:
        request = SignedRequest("POST", "https://example.com/", {"a": "1", "oauth_signature": "x"})
        assert request.signable_parameters() == "a=1"

    def test_method_upper_cased(self) -> None:
        request = SignedRequest("post", "https://example.com/")
        assert request.signature_base_string().startswith("POST&")

    def test_url_and_body_duplicates_both_signed(self) -> None:
        request = SignedRequest("POST", "https://example.com/?a=2", {"a": "1"})
        assert request.signable_parameters() == "a=1&a=2"


class TestHmacSha1:
    def test_known_signature(self) -> None:
        request = _photos_request()
        assert HmacSha1().build_signature(request, CONSUMER, TOKEN) == "tR3+Ty81lMeYAr/Fid0kMTYa/WM="

    def test_base_string_recorded(self) -> None:
        request = _photos_request()
        HmacSha1().build_signature(request, CONSUMER, TOKEN)
        assert request.base_string == request.signature_base_string()

    def test_round_trip(self) -> None:
        method = HmacSha1()
        request = SignedRequest.from_consumer_and_token(
            CONSUMER, TOKEN, "POST", "https://api.example.com/status", {"status": "hi there"}
        )
        request.sign_request(method, CONSUMER, TOKEN)
        signature = request.get_parameter("oauth_signature")
        assert method.check_signature(request, CONSUMER, TOKEN, signature)

    def test_one_byte_mutation_rejected(self) -> None:
        method = HmacSha1()
        request = _photos_request()
        signature = method.build_signature(request, CONSUMER, TOKEN)
        mutated = ("A" if signature[0] != "A" else "B") + signature[1:]
        assert not method.check_signature(request, CONSUMER, TOKEN, mutated)

    def test_changed_parameter_rejected(self) -> None:
        method = HmacSha1()
        request = _photos_request()
        signature = method.build_signature(request, CONSUMER, TOKEN)
        request.set_parameter("size", "small", allow_duplicates=False)
        assert not method.check_signature(request, CONSUMER, TOKEN, signature)

    def test_empty_signature_rejected(self) -> None:
        assert not HmacSha1().check_signature(_photos_request(), CONSUMER, TOKEN, "")

    def test_token_less_key(self) -> None:
        # Request-token calls sign with an empty token secret.
        request = SignedRequest("POST", "https://example.com/request_token", {"oauth_nonce": "n"})
        with_none = HmacSha1().build_signature(request, CONSUMER, None)
        with_empty = HmacSha1().build_signature(request, CONSUMER, Token("", ""))
        assert with_none == with_empty

    def test_sign_request_replaces_previous_signature(self) -> None:
        method = HmacSha1()
        request = _photos_request()
        request.sign_request(method, CONSUMER, TOKEN)
        request.sign_request(method, CONSUMER, TOKEN)
        assert isinstance(request.get_parameter("oauth_signature"), str)


class TestFromConsumerAndToken:
    def test_protocol_parameters(self) -> None:
        request = SignedRequest.from_consumer_and_token(CONSUMER, TOKEN, "GET", "https://example.com/")
        assert request.get_parameter("oauth_version") == "1.0"
        assert request.get_parameter("oauth_consumer_key") == CONSUMER.key
        assert request.get_parameter("oauth_token") == TOKEN.key
        assert request.get_parameter("oauth_timestamp").isdigit()

    def test_nonce_unique(self) -> None:
        first = SignedRequest.from_consumer_and_token(CONSUMER, None, "GET", "https://example.com/")
        second = SignedRequest.from_consumer_and_token(CONSUMER, None, "GET", "https://example.com/")
        assert first.get_parameter("oauth_nonce") != second.get_parameter("oauth_nonce")

    def test_no_token(self) -> None:
        request = SignedRequest.from_consumer_and_token(CONSUMER, None, "GET", "https://example.com/")
        assert request.get_parameter("oauth_token") is None


class TestRendering:
    def test_header_only_oauth_parameters(self) -> None:
        request = SignedRequest(
            "POST",
            "https://example.com/",
            {"oauth_consumer_key": "k", "oauth_nonce": "n n", "status": "hello"},
        )
        header = request.to_header()["Authorization"]
        assert header.startswith("OAuth ")
        assert 'oauth_consumer_key="k"' in header
        assert 'oauth_nonce="n%20n"' in header
        assert "status" not in header

    @pytest.mark.parametrize("name", ["oauthx", "oauthfoo", "oauth"])
    def test_header_needs_oauth_underscore_prefix(self, name) -> None:
        request = SignedRequest("GET", "https://example.com/", {"oauth_nonce": "n", name: "v"})
        header = request.to_header()["Authorization"]
        assert header == 'OAuth oauth_nonce="n"'

    def test_header_realm(self) -> None:
        request = SignedRequest("GET", "https://example.com/", {"oauth_nonce": "n"})
        header = request.to_header(realm="https://example.com/")["Authorization"]
        assert header.startswith('OAuth realm="https%3A%2F%2Fexample.com%2F",')

    def test_to_url(self) -> None:
        request = SignedRequest("GET", "https://Example.com/path?b=2", {"a": "1"})
        assert request.to_url() == "https://example.com/path?a=1&b=2"

    def test_to_postdata(self) -> None:
        request = SignedRequest("POST", "https://example.com/", {"x": "a b", "oauth_nonce": "n"})
        assert request.to_postdata() == "oauth_nonce=n&x=a%20b"


class TestToken:
    def test_to_string(self) -> None:
        assert Token("abc", "s/1").to_string() == "oauth_token=abc&oauth_token_secret=s%2F1"
