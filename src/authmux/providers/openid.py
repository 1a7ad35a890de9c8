"""Generic OpenID 2.0 provider; the identifier comes from ``openid_identifier``."""

from authmux.providers.definition import OPENID, ProviderDefinition

OPENID_PROVIDER = ProviderDefinition(
    name="OpenID",
    protocol=OPENID,
    api_documentation="https://openid.net/specs/openid-authentication-2_0.html",
)
