"""OpenID 2.0 engine.

:class:`OpenIDAdapter` has two states, Unauthenticated and Connected. The
provider yields the user's attributes exactly once, in the verified
assertion, so the resulting :class:`~authmux.models.Profile` is stored under
``<provider>.user`` and every later :meth:`~OpenIDAdapter.get_user_profile`
is a pure store read.
"""

from __future__ import annotations

from typing import Any, Optional
from urllib.parse import urlsplit

from authmux.adapter.base import AbstractAdapter
from authmux.data.collection import Collection
from authmux.exceptions import (
    AuthorizationDeniedError,
    InvalidOpenIDIdentifierError,
    UnexpectedApiResponseError,
)
from authmux.http.request import CallbackRequest, Redirect
from authmux.models import Profile
from authmux.openid.client import OpenIDClient
from authmux.providers.definition import OPENID

REQUESTED_ATTRIBUTES = [
    "namePerson/first",
    "namePerson/last",
    "namePerson/friendly",
    "namePerson",
    "contact/email",
    "birthDate",
    "birthDate/birthDay",
    "birthDate/birthMonth",
    "birthDate/birthYear",
    "person/gender",
    "pref/language",
    "contact/postalCode/home",
    "contact/city/home",
    "contact/country/home",
    "media/image/default",
]


class OpenIDAdapter(AbstractAdapter):
    """Generic OpenID 2.0 relying party.

    Example::

        adapter = OpenIDAdapter(STEAM, config, store=store)
        result = adapter.authenticate(CallbackRequest.from_url(request_url))
        if result is None:
            profile = adapter.get_user_profile()
    """

    protocol = OPENID

    def configure(self) -> None:
        self.openid_identifier = self.config.openid_identifier or self.definition.openid_identifier
        if not self.openid_identifier:
            raise InvalidOpenIDIdentifierError(
                f"OpenID adapter {self.provider_id} requires an openid_identifier"
            )
        self.set_callback(self.config.callback)
        self.set_api_endpoints()

    def initialize_parameters(self) -> None:
        parts = urlsplit(self.callback)
        trust_root = f"{parts.scheme}://{parts.netloc}"
        self.openid_client = OpenIDClient(self.transport, trust_root)

    @property
    def user_key(self) -> str:
        return f"{self.provider_id}.user"

    # ------------------------------------------------------------------ #
    # Flow
    # ------------------------------------------------------------------ #

    def authenticate(self, request: Optional[CallbackRequest] = None) -> Optional[Redirect]:
        self.logger.info("%s: authenticate()", self.provider_id)

        if self.is_connected():
            return None

        request = request or CallbackRequest()
        if not OpenIDClient.mode_of(request.params):
            return self.authenticate_begin()
        self.authenticate_finish(request)
        return None

    def is_connected(self) -> bool:
        return bool(self.store.get(self.user_key))

    def disconnect(self) -> None:
        self.store.delete(self.user_key)
        super().disconnect()

    def authenticate_begin(self) -> Redirect:
        self.openid_client.identity = self.openid_identifier
        self.openid_client.return_url = self.callback
        self.openid_client.required = list(REQUESTED_ATTRIBUTES)

        url = self.openid_client.auth_url()
        self.logger.debug("%s: redirecting user to %s", self.provider_id, url)
        return Redirect(url)

    def authenticate_finish(self, request: CallbackRequest) -> None:
        self.logger.debug("%s: completing callback %s", self.provider_id, request.url)

        if OpenIDClient.mode_of(request.params) == "cancel":
            raise AuthorizationDeniedError("User has cancelled the authentication.")

        if not self.openid_client.validate(request.params, request.url or None):
            raise UnexpectedApiResponseError("Invalid response received.")

        if not self.openid_client.identity:
            raise UnexpectedApiResponseError("Provider returned an unexpected response.")

        profile = self.fetch_user_profile(self.openid_client.get_attributes())
        if self.definition.process_openid_profile is not None:
            profile = self.definition.process_openid_profile(self, profile)

        self.store.set(self.user_key, profile)

    def fetch_user_profile(self, attributes: dict[str, Any]) -> Profile:
        """Map AX attribute names onto a :class:`~authmux.models.Profile`."""
        data = Collection(attributes)
        first_name = data.get("namePerson/first")
        last_name = data.get("namePerson/last")

        return Profile(
            identifier=self.openid_client.identity,
            first_name=first_name,
            last_name=last_name,
            display_name=display_name(data, first_name, last_name),
            email=data.get("contact/email"),
            language=data.get("pref/language"),
            country=data.get("contact/country/home"),
            city=data.get("contact/city/home"),
            zip=data.get("contact/postalCode/home"),
            gender=normalize_gender(data.get("person/gender")),
            photo_url=data.get("media/image/default"),
            birth_day=_to_int(data.get("birthDate/birthDay")),
            birth_month=_to_int(data.get("birthDate/birthMonth")),
            birth_year=_to_int(data.get("birthDate/birthYear")),
        )

    # ------------------------------------------------------------------ #
    # Profile
    # ------------------------------------------------------------------ #

    def get_user_profile(self) -> Profile:
        """Return the profile stored at login.

        Raises:
            UnexpectedApiResponseError: If no profile was ever stored.
        """
        profile = self.store.get(self.user_key)
        if not isinstance(profile, Profile):
            raise UnexpectedApiResponseError("Provider returned an unexpected response.")
        return profile


def display_name(data: Collection, first_name: Optional[str], last_name: Optional[str]) -> str:
    """``namePerson``, else ``namePerson/friendly``, else ``"first last"``."""
    return (
        data.get("namePerson")
        or data.get("namePerson/friendly")
        or f"{first_name or ''} {last_name or ''}".strip()
    )


def normalize_gender(gender: Optional[str]) -> Optional[str]:
    """Expand single-letter ``f``/``m`` to ``female``/``male``."""
    if gender is None:
        return None
    lowered = str(gender).lower()
    return {"f": "female", "m": "male"}.get(lowered, lowered)


def _to_int(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None
