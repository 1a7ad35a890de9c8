"""Twitter (OAuth1).

Set ``authorize: true`` in the provider config to use the ``oauth/authorize``
endpoint (always asks the user) instead of ``oauth/authenticate``.
"""

from __future__ import annotations

from typing import Any

from authmux.data.collection import Collection
from authmux.exceptions import AuthmuxError, UnexpectedApiResponseError
from authmux.models import Activity, ActivityUser, Contact, Profile
from authmux.providers.definition import OAUTH1, ProviderDefinition

AUTHORIZE_URL = "https://api.twitter.com/oauth/authorize"
_LOOKUP_CHUNK = 75


def _profile_url(screen_name: Any) -> str | None:
    return f"https://twitter.com/{screen_name}" if screen_name else None


def _after_initialize(adapter: Any) -> None:
    if adapter.config.extra("authorize") is True and not adapter.config.endpoints.authorize_url:
        adapter.authorize_url = AUTHORIZE_URL


def _user_profile(adapter: Any) -> Profile:
    include_email = "false" if adapter.config.extra("include_email") is False else "true"
    data = Collection(
        adapter.api_request("account/verify_credentials.json", "GET", {"include_email": include_email})
    )
    if not data.exists("id_str"):
        raise UnexpectedApiResponseError("Provider API returned an unexpected response.")

    photo_size = adapter.config.extra("photo_size") or "original"
    suffix = "" if photo_size == "original" else f"_{photo_size}"
    image = data.get("profile_image_url_https")

    return Profile(
        identifier=data.get("id_str"),
        display_name=data.get("screen_name"),
        description=data.get("description"),
        first_name=data.get("name"),
        email=data.get("email"),
        email_verified=data.get("email"),
        web_site_url=data.get("url"),
        region=data.get("location"),
        profile_url=_profile_url(data.get("screen_name")),
        photo_url=image.replace("_normal", suffix) if image else None,
        data={
            "followed_by": data.get("followers_count"),
            "follows": data.get("friends_count"),
        },
    )


def _user_contacts(adapter: Any) -> list[Contact]:
    data = Collection(adapter.api_request("friends/ids.json", "GET", {"cursor": "-1"}))
    if not data.exists("ids"):
        raise UnexpectedApiResponseError("Provider API returned an unexpected response.")

    ids = [str(i) for i in data.filter("ids").values()]
    contacts: list[Contact] = []
    for start in range(0, len(ids), _LOOKUP_CHUNK):
        chunk = ids[start:start + _LOOKUP_CHUNK]
        try:
            response = adapter.api_request("users/lookup.json", "GET", {"user_id": ",".join(chunk)})
        except AuthmuxError as exc:
            adapter.logger.debug("Twitter: users/lookup failed for a chunk: %s", exc)
            continue
        for item in Collection(response):
            contacts.append(
                Contact(
                    identifier=item.get("id_str"),
                    display_name=item.get("name"),
                    photo_url=item.get("profile_image_url"),
                    description=item.get("description"),
                    profile_url=_profile_url(item.get("screen_name")),
                )
            )
    return contacts


def _user_activity(adapter: Any, stream: str) -> list[Activity]:
    url = "statuses/user_timeline.json" if stream == "me" else "statuses/home_timeline.json"
    activities: list[Activity] = []
    for item in Collection(adapter.api_request(url)):
        user = item.filter("user")
        activities.append(
            Activity(
                id=item.get("id_str"),
                date=item.get("created_at"),
                text=item.get("text"),
                user=ActivityUser(
                    identifier=user.get("id_str"),
                    display_name=user.get("name"),
                    photo_url=user.get("profile_image_url"),
                    profile_url=_profile_url(user.get("screen_name")),
                ),
            )
        )
    return activities


def _user_status(adapter: Any, status: Any) -> Any:
    if isinstance(status, str):
        status = {"status": status}
    return adapter.api_request("statuses/update.json", "POST", {"status": status.get("status")})


TWITTER = ProviderDefinition(
    name="Twitter",
    protocol=OAUTH1,
    api_base_url="https://api.twitter.com/1.1/",
    authorize_url="https://api.twitter.com/oauth/authenticate",
    request_token_url="https://api.twitter.com/oauth/request_token",
    access_token_url="https://api.twitter.com/oauth/access_token",
    api_documentation="https://dev.twitter.com/web/sign-in/implementing",
    after_initialize=_after_initialize,
    fetch_user_profile=_user_profile,
    fetch_user_contacts=_user_contacts,
    fetch_user_activity=_user_activity,
    post_user_status=_user_status,
)
