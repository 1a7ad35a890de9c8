"""GitLab (OAuth2)."""

from __future__ import annotations

from typing import Any

from authmux.data.collection import Collection
from authmux.exceptions import UnexpectedApiResponseError
from authmux.models import Profile
from authmux.providers.definition import OAUTH2, ProviderDefinition


def _user_profile(adapter: Any) -> Profile:
    data = Collection(adapter.api_request("user"))
    if not data.exists("id"):
        raise UnexpectedApiResponseError("Provider API returned an unexpected response.")

    return Profile(
        identifier=data.get("id"),
        display_name=data.get("name") or data.get("username"),
        description=data.get("bio"),
        photo_url=data.get("avatar_url"),
        profile_url=data.get("web_url"),
        email=data.get("email"),
        web_site_url=data.get("website_url"),
    )


GITLAB = ProviderDefinition(
    name="GitLab",
    protocol=OAUTH2,
    scope="read_user",
    api_base_url="https://gitlab.com/api/v4/",
    authorize_url="https://gitlab.com/oauth/authorize",
    access_token_url="https://gitlab.com/oauth/token",
    api_documentation="https://docs.gitlab.com/ee/api/oauth2.html",
    fetch_user_profile=_user_profile,
)
