"""Discord (OAuth2)."""

from __future__ import annotations

from typing import Any

from authmux.data.collection import Collection
from authmux.exceptions import UnexpectedApiResponseError
from authmux.models import Profile
from authmux.providers.definition import OAUTH2, ProviderDefinition


def _user_profile(adapter: Any) -> Profile:
    data = Collection(adapter.api_request("users/@me"))
    if not data.exists("id"):
        raise UnexpectedApiResponseError("Provider API returned an unexpected response.")

    display_name = data.get("username") or data.get("login")
    discriminator = data.get("discriminator")
    # "0" marks accounts migrated to unique usernames.
    if discriminator and discriminator != "0":
        display_name = f"{display_name}#{discriminator}"

    profile = Profile(
        identifier=data.get("id"),
        display_name=display_name,
        email=data.get("email"),
    )
    if data.get("verified"):
        profile.email_verified = data.get("email")
    if data.get("avatar"):
        profile.photo_url = f"https://cdn.discordapp.com/avatars/{data.get('id')}/{data.get('avatar')}.png"
    return profile


DISCORD = ProviderDefinition(
    name="Discord",
    protocol=OAUTH2,
    scope="identify email",
    api_base_url="https://discord.com/api/",
    authorize_url="https://discord.com/api/oauth2/authorize",
    access_token_url="https://discord.com/api/oauth2/token",
    api_documentation="https://discord.com/developers/docs/topics/oauth2",
    refresh_includes_client_credentials=True,
    fetch_user_profile=_user_profile,
)
