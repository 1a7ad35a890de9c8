"""Shared test fixtures for authmux.

Provides a scripted :class:`FakeTransport`, generic provider definitions for
each protocol, isolated XDG directories, and output-state cleanup. These
fixtures are discovered by pytest and available to every test module.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, Optional
from unittest.mock import patch

import pytest

from authmux.http.transport import HttpTransport
from authmux.models import ProviderConfig, ProviderKeys
from authmux.output import reset_output
from authmux.providers.definition import OAUTH1, OAUTH2, OPENID, ProviderDefinition
from authmux.storage.memory import MemoryStore

_CALLBACK = "https://app.example.com/callback"
_FROZEN_NOW = 1_700_000_000


# ---------------------------------------------------------------------------
# Scripted transport
# ---------------------------------------------------------------------------


@dataclass
class RecordedCall:
    url: str
    method: str
    parameters: dict[str, Any]
    headers: dict[str, str]
    multipart: bool


@dataclass
class ScriptedResponse:
    body: str = ""
    status: int = 200
    headers: dict[str, str] = field(default_factory=dict)
    error: Optional[str] = None


class FakeTransport(HttpTransport):
    """Answer requests from a queue and record every call.

    A request arriving with an empty queue fails the test, so tests also
    prove that no unexpected network call happened.
    """

    def __init__(self) -> None:
        super().__init__()
        self.responses: list[ScriptedResponse] = []
        self.calls: list[RecordedCall] = []

    def queue(
        self,
        body: Any = "",
        status: int = 200,
        headers: Optional[dict[str, str]] = None,
        error: Optional[str] = None,
    ) -> FakeTransport:
        if isinstance(body, (dict, list)):
            body = json.dumps(body)
        self.responses.append(ScriptedResponse(body, status, dict(headers or {}), error))
        return self

    def request(
        self,
        url: str,
        method: str = "GET",
        parameters: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
        multipart: bool = False,
    ) -> str:
        self._reset()
        self.calls.append(
            RecordedCall(url, method.upper(), dict(parameters or {}), dict(headers or {}), multipart)
        )
        if not self.responses:
            raise AssertionError(f"Unexpected request: {method} {url}")

        response = self.responses.pop(0)
        if response.error:
            self._client_error = response.error
            return ""
        self._status_code = response.status
        self._response_body = response.body
        self._response_headers = response.headers
        return response.body


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


# ---------------------------------------------------------------------------
# Provider definitions and configuration
# ---------------------------------------------------------------------------


_EXAMPLE_OAUTH2 = ProviderDefinition(
    name="Example",
    protocol=OAUTH2,
    scope="profile",
    api_base_url="https://api.example.com/",
    authorize_url="https://auth.example.com/authorize",
    access_token_url="https://auth.example.com/token",
)

_EXAMPLE_OAUTH1 = ProviderDefinition(
    name="Legacy",
    protocol=OAUTH1,
    api_base_url="https://api.legacy.example.com/1/",
    request_token_url="https://api.legacy.example.com/oauth/request_token",
    authorize_url="https://api.legacy.example.com/oauth/authorize",
    access_token_url="https://api.legacy.example.com/oauth/access_token",
)

_EXAMPLE_OPENID = ProviderDefinition(
    name="Ident",
    protocol=OPENID,
    openid_identifier="https://openid.example.com/",
)


@pytest.fixture
def callback_url() -> str:
    return _CALLBACK


@pytest.fixture
def oauth2_definition() -> ProviderDefinition:
    """A generic OAuth2 provider (namespace ``example``)."""
    return _EXAMPLE_OAUTH2


@pytest.fixture
def oauth1_definition() -> ProviderDefinition:
    """A generic OAuth1 provider (namespace ``legacy``)."""
    return _EXAMPLE_OAUTH1


@pytest.fixture
def openid_definition() -> ProviderDefinition:
    """A generic OpenID provider (namespace ``ident``)."""
    return _EXAMPLE_OPENID


@pytest.fixture
def provider_config() -> Callable[..., ProviderConfig]:
    """Factory for a provider entry with valid keys and callback.

    Keyword arguments override or add ``ProviderConfig`` fields.
    """

    def _make(**overrides: Any) -> ProviderConfig:
        data: dict[str, Any] = {
            "keys": ProviderKeys(id="client-id", key="client-id", secret="client-secret"),
            "callback": _CALLBACK,
        }
        data.update(overrides)
        return ProviderConfig(**data)

    return _make


@pytest.fixture
def frozen_time() -> Iterator[int]:
    """Pin ``time.time()`` as seen by the OAuth2 engine and yield the pinned value."""
    with patch("authmux.adapter.oauth2.time.time", return_value=_FROZEN_NOW):
        yield _FROZEN_NOW


# ---------------------------------------------------------------------------
# Environment isolation
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_dirs(tmp_path, monkeypatch):
    """Point HOME and the XDG directories at a temporary tree."""
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.delenv("AUTHMUX_CONFIG", raising=False)
    return tmp_path


@pytest.fixture(autouse=True)
def _reset_output_between_tests():
    """Drop the process-wide Output installed by a CLI invocation."""
    yield
    reset_output()
