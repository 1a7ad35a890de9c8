"""OAuth 1.0a credential pairs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from authmux.oauth1.util import build_http_query


@dataclass(frozen=True)
class Consumer:
    """The application's consumer key and secret."""

    key: str
    secret: str
    callback_url: Optional[str] = None


@dataclass(frozen=True)
class Token:
    """A request token or access token with its secret."""

    key: str
    secret: str

    def to_string(self) -> str:
        """Serialise the way token endpoints answer: ``oauth_token=...&oauth_token_secret=...``."""
        return build_http_query({"oauth_token": self.key, "oauth_token_secret": self.secret})

    def __str__(self) -> str:
        return self.to_string()
