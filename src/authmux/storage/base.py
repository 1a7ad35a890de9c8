"""Abstract base class for credential stores.

Keys are flat strings namespaced by provider (``github_access_token``,
``steam.user``) and are lower-cased by every implementation, so
``GitHub_access_token`` and ``github_access_token`` address the same entry.
Values may be any JSON-compatible structure or one of the closed records from
:mod:`authmux.models` (a cached :class:`~authmux.models.Profile` must
round-trip).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


def normalize_key(key: str) -> str:
    """Return the canonical (lower-cased) form of a store key."""
    return key.lower()


class CredentialStore(ABC):
    """Key-value contract consumed by the flow engines.

    Subclasses implement the five operations below. ``delete_match`` must
    remove every key that starts with the (normalised) prefix; it is what
    ``disconnect()`` relies on to wipe a provider completely.
    """

    @abstractmethod
    def get(self, key: str) -> Any:
        """Return the value stored under *key*, or ``None``."""
        ...

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """Add or replace the value stored under *key*."""
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove *key*; a no-op when it is absent."""
        ...

    @abstractmethod
    def delete_match(self, prefix: str) -> None:
        """Remove every key starting with *prefix*."""
        ...

    @abstractmethod
    def clear(self) -> None:
        """Remove every key."""
        ...

    def keys(self) -> list[str]:
        """Return the stored keys, for diagnostics. Optional."""
        return []
