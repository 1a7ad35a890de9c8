"""Canonical Pydantic models shared across all authmux modules.

Every other module imports its data shapes from here. The models fall into
two groups:

**Configuration models** -- supplied by the host application, usually loaded
from a JSON or YAML file by :func:`~authmux.config.load_config`:
    :class:`ProviderKeys`, :class:`ProviderEndpoints`, :class:`ProviderConfig`,
    :class:`StoreConfig`, and :class:`AuthmuxConfig`.

**User data models** -- produced by the flow engines from provider payloads:
    :class:`TokenSet`, :class:`Profile`, :class:`Contact`,
    :class:`ActivityUser`, and :class:`Activity`.

Configuration models accept provider-specific extensions (``extra="allow"``)
so that keys such as ``photo_size`` or ``exchange_by_expiry_days`` survive
validation and remain readable through ``model_extra``. The user data models
are the opposite: they are closed records (``extra="forbid"``), so assigning
an attribute that is not declared raises immediately instead of silently
creating a new one.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


# --- Tokens ---


TOKEN_NAMES: tuple[str, ...] = (
    "access_token",
    "access_token_secret",
    "token_type",
    "refresh_token",
    "expires_in",
    "expires_at",
)
"""Standard token fields reported by :meth:`~authmux.adapter.base.AbstractAdapter.get_access_token`."""


class TokenSet(BaseModel):
    """The persisted bundle of tokens and expiry metadata for one provider.

    Invariant: when both are present, ``expires_at`` equals the exchange time
    plus ``expires_in``. A missing ``expires_at`` means the expiry is unknown
    and the token is treated as valid. Extension fields (``id_token``,
    ``openid`` ...) are preserved.
    """

    model_config = ConfigDict(extra="allow")

    access_token: Optional[str] = None
    access_token_secret: Optional[str] = None
    token_type: Optional[str] = None
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None
    expires_at: Optional[int] = None

    def non_empty(self) -> dict[str, Any]:
        """Return every field, extensions included, whose value is not empty."""
        return {k: v for k, v in self.model_dump().items() if v not in (None, "")}

    def __bool__(self) -> bool:
        return bool(self.non_empty())


# --- Provider configuration ---


class ProviderKeys(BaseModel):
    """Application credentials registered with a provider.

    OAuth2 providers call the client identifier ``id``; OAuth1 providers
    call it ``key``. Either is accepted. Values may be literal secrets or
    credential-source descriptors (``env:VAR``, ``file:/path``) resolved by
    :func:`~authmux.config.resolve_credential` when the adapter is configured.

    Example::

        ProviderKeys(id="env:GITHUB_CLIENT_ID", secret="env:GITHUB_SECRET")
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    id: Optional[str] = None
    key: Optional[str] = None
    secret: Optional[str] = None


class ProviderEndpoints(BaseModel):
    """Endpoint overrides for a provider.

    Any URL left as ``None`` falls back to the provider definition's default.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    api_base_url: Optional[str] = None
    authorize_url: Optional[str] = None
    access_token_url: Optional[str] = None
    request_token_url: Optional[str] = None
    access_token_info_url: Optional[str] = None


class ProviderConfig(BaseModel):
    """Per-provider configuration entry.

    Constructed once from host configuration and never mutated after the
    adapter is built (the model is frozen). Provider-specific extras such as
    ``photo_size``, ``include_email`` or ``exchange_by_expiry_days`` are kept
    in ``model_extra`` and read through :meth:`extra`.

    Example::

        ProviderConfig(
            enabled=True,
            keys=ProviderKeys(id="abc", secret="xyz"),
            callback="https://app.example.com/auth/callback",
            scope="user:email",
        )
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    enabled: bool = Field(default=True, description="Whether the provider may be used")
    adapter: Optional[str] = Field(
        default=None,
        description="Explicit implementation: a registered provider name or "
        "'package.module:attribute'",
    )
    keys: ProviderKeys = Field(default_factory=ProviderKeys)
    scope: Optional[str] = None
    callback: Optional[str] = Field(
        default=None, description="Absolute redirect URL registered with the provider"
    )
    endpoints: ProviderEndpoints = Field(default_factory=ProviderEndpoints)
    authorize_url_parameters: dict[str, Any] = Field(
        default_factory=dict,
        description="Extra query parameters appended to the authorize URL",
    )
    tokens: Optional[TokenSet] = Field(
        default=None, description="Pre-seeded token set stored at configure time"
    )
    openid_identifier: Optional[str] = Field(
        default=None, description="OpenID provider identifier or claimed id"
    )

    def extra(self, name: str, default: Any = None) -> Any:
        """Return a provider-specific extra setting, or *default* when absent."""
        return (self.model_extra or {}).get(name, default)


class StoreConfig(BaseModel):
    """Which credential store the command-line tool should use."""

    type: str = Field(default="file", description="Store backend: file, disk, memory")
    path: Optional[str] = Field(
        default=None, description="Location override (defaults under the data dir)"
    )


class AuthmuxConfig(BaseModel):
    """Top-level configuration for the dispatcher.

    Loaded by :func:`~authmux.config.load_config`. Provider names are
    matched case-insensitively. A provider without its own ``callback``
    inherits the top-level one.
    """

    callback: Optional[str] = None
    providers: dict[str, ProviderConfig] = Field(default_factory=dict)
    debug_mode: Optional[str] = Field(
        default=None, description="Log level name (DEBUG, INFO, ...) or None to leave logging alone"
    )
    debug_file: Optional[str] = Field(
        default=None, description="Append log records to this file"
    )
    timeout: float = Field(default=30.0, description="HTTP timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify TLS certificates")
    store: StoreConfig = Field(default_factory=StoreConfig)


# --- User data ---


class Profile(BaseModel):
    """The profile of the user currently logged in with a provider.

    A closed record: providers fill the declared fields and put anything
    else in :attr:`data`. Assigning an undeclared attribute (for example a
    typo such as ``profile.emial``) raises ``ValueError``.
    """

    model_config = ConfigDict(extra="forbid")

    identifier: Optional[Any] = None
    web_site_url: Optional[str] = None
    profile_url: Optional[str] = None
    photo_url: Optional[str] = None
    display_name: Optional[str] = None
    description: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    gender: Optional[str] = None
    language: Optional[str] = None
    age: Optional[int] = None
    birth_day: Optional[int] = None
    birth_month: Optional[int] = None
    birth_year: Optional[int] = None
    email: Optional[str] = None
    email_verified: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    country: Optional[str] = None
    region: Optional[str] = None
    city: Optional[str] = None
    zip: Optional[str] = None
    data: dict[str, Any] = Field(default_factory=dict)


class Contact(BaseModel):
    """A contact (friend, follower) of the logged-in user. Closed record."""

    model_config = ConfigDict(extra="forbid")

    identifier: Optional[Any] = None
    web_site_url: Optional[str] = None
    profile_url: Optional[str] = None
    photo_url: Optional[str] = None
    display_name: Optional[str] = None
    description: Optional[str] = None
    email: Optional[str] = None


class ActivityUser(BaseModel):
    """The author of an :class:`Activity`. Closed record."""

    model_config = ConfigDict(extra="forbid")

    identifier: Optional[Any] = None
    display_name: Optional[str] = None
    profile_url: Optional[str] = None
    photo_url: Optional[str] = None


class Activity(BaseModel):
    """One entry of a user's activity stream. Closed record."""

    model_config = ConfigDict(extra="forbid")

    id: Optional[str] = None
    date: Optional[str] = None
    text: Optional[str] = None
    user: ActivityUser = Field(default_factory=ActivityUser)
