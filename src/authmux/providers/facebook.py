"""Facebook (OAuth2).

Facebook specifics:

* every Graph API call carries ``appsecret_proof`` (HMAC-SHA256 of the
  access token keyed with the app secret);
* short-lived user tokens are exchanged for long-lived ones ahead of their
  expiry. Before each API call, a token that is still valid now but would
  be expired ``exchange_by_expiry_days`` from now (default 45) is exchanged
  with ``grant_type=fb_exchange_token``;
* the hometown is split on the first comma into city and country.
"""

from __future__ import annotations

import hashlib
import hmac
import time
from typing import Any, Optional

from authmux.data.collection import Collection
from authmux.exceptions import ConfigError, UnexpectedApiResponseError
from authmux.models import Contact, Profile
from authmux.providers.definition import OAUTH2, ProviderDefinition

DEFAULT_EXCHANGE_BY_EXPIRY_DAYS = 45
PROFILE_URL_TEMPLATE = "https://www.facebook.com/{}"


def appsecret_proof(access_token: str, client_secret: str) -> str:
    return hmac.new(
        client_secret.encode("utf-8"), access_token.encode("utf-8"), hashlib.sha256
    ).hexdigest()


def _after_initialize(adapter: Any) -> None:
    access_token = adapter.data.get("access_token")
    if access_token:
        adapter.api_request_parameters["appsecret_proof"] = appsecret_proof(
            access_token, adapter.client_secret
        )


def _maintain_token(adapter: Any) -> None:
    if not adapter.is_connected():
        return

    days = adapter.config.extra("exchange_by_expiry_days") or DEFAULT_EXCHANGE_BY_EXPIRY_DAYS
    projected = time.time() + 60 * 60 * 24 * int(days)
    if not adapter.has_access_token_expired() and adapter.has_access_token_expired(projected):
        exchange_access_token(adapter)


def exchange_access_token(adapter: Any) -> Collection:
    """Swap the current token for a long-lived one."""
    adapter.logger.debug("%s: exchanging access token for a long-lived one", adapter.provider_id)
    response = adapter.transport.request(
        adapter.access_token_url,
        "GET",
        {
            "grant_type": "fb_exchange_token",
            "client_id": adapter.client_id,
            "client_secret": adapter.client_secret,
            "fb_exchange_token": adapter.data.get("access_token"),
        },
    )
    adapter.validate_api_response("Unable to exchange the access token")
    return adapter.validate_access_token_exchange(response)


def _user_profile(adapter: Any) -> Profile:
    fields = ["id", "name", "first_name", "last_name", "website", "locale", "about", "email", "hometown", "birthday"]
    scope = adapter.scope or ""
    if "user_link" in scope:
        fields.append("link")
    if "user_gender" in scope:
        fields.append("gender")

    # en_US keeps the gender values in their documented form.
    locale = adapter.config.extra("locale") or "en_US"
    data = Collection(adapter.api_request("me", "GET", {"fields": ",".join(fields), "locale": locale}))
    if not data.exists("id"):
        raise UnexpectedApiResponseError("Provider API returned an unexpected response.")

    identifier = data.get("id")
    photo_size = adapter.config.extra("photo_size") or "150"
    profile = Profile(
        identifier=identifier,
        display_name=data.get("name"),
        first_name=data.get("first_name"),
        last_name=data.get("last_name"),
        profile_url=data.get("link") or PROFILE_URL_TEMPLATE.format(identifier),
        web_site_url=data.get("website"),
        gender=data.get("gender"),
        language=data.get("locale"),
        description=data.get("about"),
        email=data.get("email"),
        email_verified=data.get("email"),
        region=data.filter("hometown").get("name"),
        photo_url=f"{adapter.api_base_url}{identifier}/picture?width={photo_size}&height={photo_size}",
    )
    split_region(profile)
    apply_birthday(profile, data.get("birthday"))
    return profile


def split_region(profile: Profile) -> None:
    """``"Paris, France"`` sets city ``Paris`` and country ``France``."""
    if not profile.region:
        return
    parts = profile.region.split(",")
    if len(parts) > 1:
        profile.city = parts[0].strip()
        profile.country = parts[1].strip()


def apply_birthday(profile: Profile, birthday: Optional[str]) -> None:
    """Apply a Graph API birthday: ``MM/DD/YYYY``, ``MM/DD`` or ``YYYY``."""
    if not birthday:
        return
    parts = str(birthday).split("/")
    try:
        if len(parts) == 1:
            profile.birth_year = int(parts[0])
            return
        profile.birth_month = int(parts[0])
        profile.birth_day = int(parts[1])
        if len(parts) > 2:
            profile.birth_year = int(parts[2])
    except ValueError:
        return


def _user_contacts(adapter: Any) -> list[Contact]:
    contacts: list[Contact] = []
    url: Optional[str] = "me/friends?fields=link,name"
    while url:
        data = Collection(adapter.api_request(url))
        if not data.exists("data"):
            raise UnexpectedApiResponseError("Provider API returned an unexpected response.")
        for item in data.filter("data"):
            identifier = item.get("id")
            contacts.append(
                Contact(
                    identifier=identifier,
                    display_name=item.get("name"),
                    profile_url=item.get("link") or PROFILE_URL_TEMPLATE.format(identifier),
                    photo_url=f"{adapter.api_base_url}{identifier}/picture?width=150&height=150",
                )
            )
        url = data.filter("paging").get("next")
    return contacts


def _user_pages(adapter: Any, writable: bool = False) -> list[dict[str, Any]]:
    pages = Collection(adapter.api_request("me/accounts")).filter("data").values()
    if not writable:
        return pages
    return [p for p in pages if "CREATE_CONTENT" in (Collection(p).get("tasks") or [])]


def _user_status(adapter: Any, status: Any) -> Any:
    if isinstance(status, str):
        status = {"message": status}
    return adapter.api_request("me/feed", "POST", status)


def _page_status(adapter: Any, status: Any, page_id: str) -> Any:
    if isinstance(status, str):
        status = {"message": status}
    if page_id == "me":
        return _user_status(adapter, status)

    pages = [p for p in _user_pages(adapter, writable=True) if str(Collection(p).get("id")) == str(page_id)]
    if not pages:
        raise ConfigError(f"Could not find a writable page with id {page_id}")
    page_token = Collection(pages[0]).get("access_token")

    # Page posts use the page token and its own proof.
    parameters = {**status, "appsecret_proof": appsecret_proof(page_token, adapter.client_secret)}
    headers = {"Authorization": f"Bearer {page_token}"}
    return adapter.api_request(f"{page_id}/feed", "POST", parameters, headers)


FACEBOOK = ProviderDefinition(
    name="Facebook",
    protocol=OAUTH2,
    scope="email, public_profile",
    api_base_url="https://graph.facebook.com/v8.0/",
    authorize_url="https://www.facebook.com/dialog/oauth",
    access_token_url="https://graph.facebook.com/oauth/access_token",
    api_documentation="https://developers.facebook.com/docs/facebook-login/overview",
    after_initialize=_after_initialize,
    maintain_token=_maintain_token,
    fetch_user_profile=_user_profile,
    fetch_user_contacts=_user_contacts,
    fetch_user_pages=_user_pages,
    post_user_status=_user_status,
    post_page_status=_page_status,
)
