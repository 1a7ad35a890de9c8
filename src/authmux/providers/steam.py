"""Steam (OpenID).

Steam's claimed identifiers look like
``https://steamcommunity.com/openid/id/<steam64>``; the profile identifier
is the bare SteamID64. When ``keys.secret`` holds a Steam Web API key the
profile is enriched from ``GetPlayerSummaries``, otherwise from the public
community XML profile. Enrichment is best-effort: any failure keeps the
fields the OpenID assertion provided.
"""

from __future__ import annotations

import json
import re
from typing import Any
from urllib.parse import urlencode

from lxml import etree

from authmux.data.collection import Collection
from authmux.data.markup import parse_xml
from authmux.exceptions import AuthmuxError, UnexpectedApiResponseError
from authmux.models import Profile
from authmux.providers.definition import OPENID, ProviderDefinition

_CLAIMED_ID_PREFIX = re.compile(r"^https?://steamcommunity\.com/openid/id/", re.IGNORECASE)
WEB_API_URL = "https://api.steampowered.com/ISteamUser/GetPlayerSummaries/v0002/"
COMMUNITY_URL = "https://steamcommunity.com"


def steam_id(identifier: Any) -> str:
    return _CLAIMED_ID_PREFIX.sub("", str(identifier or ""))


def _process_profile(adapter: Any, profile: Profile) -> Profile:
    profile.identifier = steam_id(profile.identifier)
    if not profile.identifier:
        raise UnexpectedApiResponseError("Provider API returned an unexpected response.")

    try:
        api_key = adapter.resolve_key("secret")
        if api_key:
            fields = web_api_profile(adapter, api_key, profile.identifier)
        else:
            fields = legacy_profile(adapter, profile.identifier)
    except (AuthmuxError, ValueError, etree.XMLSyntaxError) as exc:
        adapter.logger.debug("Steam: profile enrichment failed: %s", exc)
        return profile

    for name, value in fields.items():
        if value:
            setattr(profile, name, value)
    return profile


def web_api_profile(adapter: Any, api_key: str, steam64: str) -> dict[str, Any]:
    url = f"{WEB_API_URL}?{urlencode({'key': api_key, 'steamids': steam64})}"
    body = adapter.transport.request(url)
    adapter.validate_api_response("Unable to fetch the Steam player summary")

    players = Collection(json.loads(body)).filter("response").filter("players").values()
    data = Collection(players[0] if players else None)
    return {
        "display_name": data.get("personaname"),
        "first_name": data.get("realname"),
        "photo_url": data.get("avatarfull"),
        "profile_url": data.get("profileurl"),
        "country": data.get("loccountrycode"),
    }


def legacy_profile(adapter: Any, steam64: str) -> dict[str, Any]:
    body = adapter.transport.request(f"{COMMUNITY_URL}/profiles/{steam64}/?xml=1")
    adapter.validate_api_response("Unable to fetch the Steam community profile")

    root = parse_xml(body)

    def text(tag: str) -> str:
        return (root.findtext(tag) or "").strip()

    custom_url = text("customURL")
    return {
        "display_name": text("steamID"),
        "first_name": text("realname"),
        "photo_url": text("avatarFull"),
        "description": text("summary"),
        "region": text("location"),
        "profile_url": f"{COMMUNITY_URL}/id/{custom_url}"
        if custom_url
        else f"{COMMUNITY_URL}/profiles/{steam64}",
    }


STEAM = ProviderDefinition(
    name="Steam",
    protocol=OPENID,
    openid_identifier="https://steamcommunity.com/openid",
    api_documentation="https://steamcommunity.com/dev",
    process_openid_profile=_process_profile,
)
