"""GitHub (OAuth2)."""

from __future__ import annotations

import logging
from typing import Any

from authmux.data.collection import Collection
from authmux.exceptions import AuthmuxError, UnexpectedApiResponseError
from authmux.models import Profile
from authmux.providers.definition import OAUTH2, ProviderDefinition

logger = logging.getLogger(__name__)


def _user_profile(adapter: Any) -> Profile:
    data = Collection(adapter.api_request("user"))
    if not data.exists("id"):
        raise UnexpectedApiResponseError("Provider API returned an unexpected response.")

    profile = Profile(
        identifier=data.get("id"),
        display_name=data.get("name") or data.get("login"),
        description=data.get("bio"),
        photo_url=data.get("avatar_url"),
        profile_url=data.get("html_url"),
        email=data.get("email"),
        web_site_url=data.get("blog"),
        region=data.get("location"),
    )

    if not profile.email and "user:email" in (adapter.scope or ""):
        # The email endpoint is optional; a failure leaves the field empty.
        try:
            _primary_email(adapter, profile)
        except AuthmuxError as exc:
            logger.debug("GitHub: could not fetch user emails: %s", exc)
    return profile


def _primary_email(adapter: Any, profile: Profile) -> None:
    for item in Collection(adapter.api_request("user/emails")):
        if item.get("primary"):
            profile.email = item.get("email")
            if item.get("verified"):
                profile.email_verified = profile.email
            break


GITHUB = ProviderDefinition(
    name="GitHub",
    protocol=OAUTH2,
    scope="user:email",
    api_base_url="https://api.github.com/",
    authorize_url="https://github.com/login/oauth/authorize",
    access_token_url="https://github.com/login/oauth/access_token",
    api_documentation="https://developer.github.com/v3/oauth/",
    token_exchange_headers={"Accept": "application/json"},
    fetch_user_profile=_user_profile,
)
