"""Tumblr (OAuth1)."""

from __future__ import annotations

import re
from typing import Any
from urllib.parse import urlsplit

from authmux.data.collection import Collection
from authmux.exceptions import UnexpectedApiResponseError
from authmux.models import Profile
from authmux.providers.definition import OAUTH1, ProviderDefinition

_TAG = re.compile(r"<[^>]+>")


def _user_profile(adapter: Any) -> Profile:
    data = Collection(adapter.api_request("user/info"))
    if not data.exists("response"):
        raise UnexpectedApiResponseError("Provider API returned an unexpected response.")

    user = data.filter("response").filter("user")
    profile = Profile(display_name=user.get("name"))
    for blog in user.filter("blogs"):
        if blog.get("primary") and blog.exists("url"):
            url = blog.get("url")
            profile.identifier = url
            profile.profile_url = url
            profile.web_site_url = url
            profile.description = _TAG.sub("", blog.get("description") or "")
            # The primary blog is the target of set_user_status().
            adapter.data.set("primary_blog", urlsplit(url).netloc)
            break
    return profile


def _user_status(adapter: Any, status: Any) -> Any:
    if isinstance(status, str):
        status = {"type": "text", "body": status}
    return adapter.api_request(f"blog/{adapter.data.get('primary_blog')}/post", "POST", status)


TUMBLR = ProviderDefinition(
    name="Tumblr",
    protocol=OAUTH1,
    api_base_url="https://api.tumblr.com/v2/",
    authorize_url="https://www.tumblr.com/oauth/authorize",
    request_token_url="https://www.tumblr.com/oauth/request_token",
    access_token_url="https://www.tumblr.com/oauth/access_token",
    api_documentation="https://www.tumblr.com/docs/en/api/v2",
    fetch_user_profile=_user_profile,
    post_user_status=_user_status,
)
