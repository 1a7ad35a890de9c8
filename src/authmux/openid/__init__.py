"""OpenID 2.0 relying-party client.

:class:`OpenIDClient` performs discovery (Yadis/XRDS, then HTML link
fallback), builds ``checkid_setup`` redirect URLs carrying Attribute
Exchange or Simple Registration requests, and verifies positive assertions
directly with the provider (``check_authentication``).
"""

from authmux.openid.client import OpenIDClient
from authmux.openid.discovery import DiscoveryResult, discover

__all__ = ["DiscoveryResult", "OpenIDClient", "discover"]
