"""Google (OAuth2).

Requests offline access so that a refresh token is issued, and sends the
client credentials with refresh requests as Google requires.
"""

from __future__ import annotations

from typing import Any

from authmux.data.collection import Collection
from authmux.exceptions import UnexpectedApiResponseError
from authmux.models import Contact, Profile
from authmux.providers.definition import OAUTH2, ProviderDefinition

_CONTACT_SCOPES = ("/m8/feeds/", "/auth/contacts.readonly")


def _user_profile(adapter: Any) -> Profile:
    data = Collection(adapter.api_request("oauth2/v3/userinfo"))
    if not data.exists("sub"):
        raise UnexpectedApiResponseError("Provider API returned an unexpected response.")

    profile = Profile(
        identifier=data.get("sub"),
        first_name=data.get("given_name"),
        last_name=data.get("family_name"),
        display_name=data.get("name"),
        photo_url=data.get("picture"),
        profile_url=data.get("profile"),
        gender=data.get("gender"),
        language=data.get("locale"),
        email=data.get("email"),
    )
    if data.get("email_verified"):
        profile.email_verified = profile.email

    photo_size = adapter.config.extra("photo_size")
    if photo_size and profile.photo_url:
        profile.photo_url = f"{profile.photo_url}?sz={photo_size}"
    return profile


def _user_contacts(adapter: Any) -> list[Contact]:
    """People API connections; empty unless a contacts scope was granted."""
    if not any(scope in (adapter.scope or "") for scope in _CONTACT_SCOPES):
        return []

    contacts: list[Contact] = []
    parameters: dict[str, Any] = {
        "personFields": "names,emailAddresses,urls",
        "pageSize": 500,
    }
    while True:
        data = Collection(
            adapter.api_request("https://people.googleapis.com/v1/people/me/connections", "GET", parameters)
        )
        for person in data.filter("connections"):
            email = person.filter("emailAddresses").values()
            urls = person.filter("urls").values()
            names = person.filter("names").values()
            address = Collection(email[0]).get("value") if email else None
            contacts.append(
                Contact(
                    identifier=address or person.get("resourceName"),
                    email=address,
                    display_name=Collection(names[0]).get("displayName") if names else None,
                    web_site_url=Collection(urls[0]).get("value") if urls else None,
                )
            )
        token = data.get("nextPageToken")
        if not token:
            return contacts
        parameters["pageToken"] = token


GOOGLE = ProviderDefinition(
    name="Google",
    protocol=OAUTH2,
    scope="https://www.googleapis.com/auth/userinfo.profile "
    "https://www.googleapis.com/auth/userinfo.email",
    api_base_url="https://www.googleapis.com/",
    authorize_url="https://accounts.google.com/o/oauth2/v2/auth",
    access_token_url="https://oauth2.googleapis.com/token",
    api_documentation="https://developers.google.com/identity/protocols/OAuth2",
    authorize_url_parameters={"access_type": "offline"},
    refresh_includes_client_credentials=True,
    fetch_user_profile=_user_profile,
    fetch_user_contacts=_user_contacts,
)
