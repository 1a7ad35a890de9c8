"""OpenID 2.0 relying party.

A single :class:`OpenIDClient` serves one redirect round-trip:

* before the redirect, set :attr:`~OpenIDClient.identity`,
  :attr:`~OpenIDClient.return_url` and :attr:`~OpenIDClient.required`, then
  call :meth:`~OpenIDClient.auth_url`;
* on the callback, call :meth:`~OpenIDClient.validate` with the inbound
  parameters, then :meth:`~OpenIDClient.get_attributes`.

Verification uses direct verification (``check_authentication``) against
the endpoint discovered from the asserted claimed identifier, so no
association state has to be kept between the two requests.
"""

from __future__ import annotations

import logging
from typing import Any, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit

from authmux.http.transport import HttpTransport
from authmux.openid.discovery import (
    NS_OPENID2,
    TYPE_AX,
    DiscoveryResult,
    discover,
    normalize_identifier,
)

logger = logging.getLogger(__name__)

IDENTIFIER_SELECT = "http://specs.openid.net/auth/2.0/identifier_select"
AX_SCHEMA = "http://axschema.org/"
NS_SREG = "http://openid.net/extensions/sreg/1.1"

# Attribute Exchange names and their Simple Registration equivalents.
AX_TO_SREG = {
    "namePerson/friendly": "nickname",
    "contact/email": "email",
    "namePerson": "fullname",
    "birthDate": "dob",
    "person/gender": "gender",
    "contact/postalCode/home": "postcode",
    "contact/country/home": "country",
    "pref/language": "language",
    "pref/timezone": "timezone",
}
SREG_TO_AX = {v: k for k, v in AX_TO_SREG.items()}


class OpenIDClient:
    """Relying-party side of one OpenID 2.0 authentication.

    Args:
        transport: Transport used for discovery and verification.
        trust_root: The realm (``scheme://host[:port]``) shown to the user.

    Attributes:
        identity: The identifier to authenticate (OP identifier or claimed
            identifier). After :meth:`validate` it holds the verified
            claimed identity.
        return_url: Where the provider sends the user back.
        required: AX attribute names requested as required.
        optional: AX attribute names requested if available.
    """

    def __init__(self, transport: HttpTransport, trust_root: str) -> None:
        self.transport = transport
        self.trust_root = trust_root
        self.identity: Optional[str] = None
        self.return_url: Optional[str] = None
        self.required: list[str] = []
        self.optional: list[str] = []
        self.discovered: Optional[DiscoveryResult] = None
        self._params: dict[str, Any] = {}

    # ------------------------------------------------------------------ #
    # Redirect
    # ------------------------------------------------------------------ #

    def discover(self, identifier: str) -> DiscoveryResult:
        self.discovered = discover(self.transport, identifier)
        return self.discovered

    def auth_url(self, immediate: bool = False) -> str:
        """Discover the provider and return the ``checkid_setup`` URL.

        Raises:
            ValueError: If :attr:`identity` or :attr:`return_url` is unset.
            UnexpectedApiResponseError: If discovery finds no endpoint.
        """
        if not self.identity or not self.return_url:
            raise ValueError("identity and return_url must be set before auth_url()")

        result = self.discover(self.identity)
        mode = "checkid_immediate" if immediate else "checkid_setup"

        if result.version == 2:
            params: dict[str, Any] = {
                "openid.ns": NS_OPENID2,
                "openid.mode": mode,
                "openid.return_to": self.return_url,
                "openid.realm": self.trust_root,
            }
            if result.identifier_select:
                params["openid.identity"] = IDENTIFIER_SELECT
                params["openid.claimed_id"] = IDENTIFIER_SELECT
            else:
                claimed = normalize_identifier(self.identity)
                params["openid.identity"] = result.local_id or claimed
                params["openid.claimed_id"] = claimed
        else:
            params = {
                "openid.mode": mode,
                "openid.return_to": self.return_url,
                "openid.trust_root": self.trust_root,
                "openid.identity": result.local_id or normalize_identifier(self.identity),
            }

        if result.ax or (result.version == 2 and not result.sreg):
            params.update(self._ax_params())
        else:
            params.update(self._sreg_params())

        separator = "&" if "?" in result.server else "?"
        return f"{result.server}{separator}{urlencode(params)}"

    def _ax_params(self) -> dict[str, str]:
        if not self.required and not self.optional:
            return {}
        params = {"openid.ns.ax": TYPE_AX, "openid.ax.mode": "fetch_request"}
        required: list[str] = []
        optional: list[str] = []
        for names, aliases in ((self.required, required), (self.optional, optional)):
            for name in names:
                alias = name.replace("/", "_")
                params[f"openid.ax.type.{alias}"] = AX_SCHEMA + name
                aliases.append(alias)
        if required:
            params["openid.ax.required"] = ",".join(required)
        if optional:
            params["openid.ax.if_available"] = ",".join(optional)
        return params

    def _sreg_params(self) -> dict[str, str]:
        required = [AX_TO_SREG[n] for n in self.required if n in AX_TO_SREG]
        optional = [AX_TO_SREG[n] for n in self.optional if n in AX_TO_SREG]
        params: dict[str, str] = {}
        if required or optional:
            params["openid.ns.sreg"] = NS_SREG
        if required:
            params["openid.sreg.required"] = ",".join(dict.fromkeys(required))
        if optional:
            params["openid.sreg.optional"] = ",".join(dict.fromkeys(optional))
        return params

    # ------------------------------------------------------------------ #
    # Callback
    # ------------------------------------------------------------------ #

    @staticmethod
    def mode_of(params: dict[str, Any]) -> Optional[str]:
        """The ``openid.mode`` of an inbound request.

        Only the dotted form is read. Underscored keys (``openid_mode``) come
        from frameworks that rewrite dots, and cannot be mapped back since AX
        aliases contain underscores themselves.
        """
        return params.get("openid.mode") or None

    def validate(self, params: dict[str, Any], current_url: Optional[str] = None) -> bool:
        """Verify a positive assertion.

        Checks that ``openid.return_to`` matches *current_url*, that the
        endpoint really is authoritative for the asserted claimed id, and
        finally asks the endpoint to confirm the signature.

        Returns:
            ``True`` when the assertion is valid; :attr:`identity` then holds
            the claimed identity.
        """
        self._params = {k: v for k, v in params.items() if k.startswith("openid.")}
        p = self._params
        if p.get("openid.mode") != "id_res":
            logger.debug("OpenID: unexpected mode %r", p.get("openid.mode"))
            return False

        if not self._return_to_matches(p.get("openid.return_to"), current_url or self.return_url):
            logger.debug("OpenID: return_to %r does not match the current URL", p.get("openid.return_to"))
            return False

        is_v2 = p.get("openid.ns") == NS_OPENID2
        claimed_id = p.get("openid.claimed_id") if is_v2 else p.get("openid.identity")
        server = p.get("openid.op_endpoint") if is_v2 else None

        if claimed_id:
            discovered = discover(self.transport, claimed_id)
            if server and discovered.server != server:
                logger.debug(
                    "OpenID: endpoint %s is not authoritative for %s", server, claimed_id
                )
                return False
            server = server or discovered.server

        if not server:
            return False

        check: dict[str, Any] = {
            "openid.assoc_handle": p.get("openid.assoc_handle", ""),
            "openid.signed": p.get("openid.signed", ""),
            "openid.sig": p.get("openid.sig", ""),
        }
        if is_v2:
            check["openid.ns"] = NS_OPENID2
        for field in str(p.get("openid.signed", "")).split(","):
            if field:
                check[f"openid.{field}"] = p.get(f"openid.{field}", "")
        check["openid.mode"] = "check_authentication"

        body = self.transport.request(server, "POST", check)
        if self.transport.client_error or not 200 <= self.transport.status_code < 300:
            logger.debug("OpenID: check_authentication failed: %s", self.transport.client_error)
            return False

        response = _parse_key_value(body)
        if response.get("is_valid") != "true":
            return False

        self.identity = claimed_id
        return True

    def get_attributes(self) -> dict[str, str]:
        """Return the AX (or SREG) attributes of the validated assertion, keyed by AX name."""
        p = self._params
        ax_alias = None
        for key, value in p.items():
            if key.startswith("openid.ns.") and value == TYPE_AX:
                ax_alias = key[len("openid.ns."):]
                break

        attributes: dict[str, str] = {}
        if ax_alias:
            type_prefix = f"openid.{ax_alias}.type."
            for key, value in p.items():
                if key.startswith(type_prefix) and str(value).startswith(AX_SCHEMA):
                    alias = key[len(type_prefix):]
                    name = str(value)[len(AX_SCHEMA):]
                    ax_value = p.get(f"openid.{ax_alias}.value.{alias}")
                    if ax_value is None:
                        ax_value = p.get(f"openid.{ax_alias}.value.{alias}.1")
                    if ax_value is not None:
                        attributes[name] = ax_value
            return attributes

        for key, value in p.items():
            if key.startswith("openid.sreg."):
                field = key[len("openid.sreg."):]
                if field in SREG_TO_AX:
                    attributes[SREG_TO_AX[field]] = value
        return attributes

    @staticmethod
    def _return_to_matches(return_to: Optional[str], current_url: Optional[str]) -> bool:
        if not return_to or not current_url:
            return False
        expected = urlsplit(return_to)
        actual = urlsplit(current_url)
        if (
            expected.scheme.lower() != actual.scheme.lower()
            or expected.hostname != actual.hostname
            or expected.port != actual.port
            or expected.path != actual.path
        ):
            return False
        actual_query = dict(parse_qsl(actual.query, keep_blank_values=True))
        for key, value in parse_qsl(expected.query, keep_blank_values=True):
            if actual_query.get(key) != value:
                return False
        return True


def _parse_key_value(body: str) -> dict[str, str]:
    """Parse the ``key:value`` line format of direct verification responses."""
    result: dict[str, str] = {}
    for line in (body or "").splitlines():
        key, sep, value = line.partition(":")
        if sep:
            result[key.strip()] = value.strip()
    return result
