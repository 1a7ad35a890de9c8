"""Provider-namespaced access to a :class:`~authmux.storage.CredentialStore`.

Every adapter holds one :class:`DataStore`. It prefixes names with the
provider id, so ``set("access_token", ...)`` on the ``GitHub`` adapter
writes ``github_access_token``.
"""

from __future__ import annotations

from typing import Any

from authmux.storage.base import CredentialStore


class DataStore:
    """Read and write ``<provider>_<name>`` entries.

    Args:
        store: The shared credential store.
        namespace: The provider id.
    """

    def __init__(self, store: CredentialStore, namespace: str) -> None:
        self.store = store
        self.namespace = namespace

    def key(self, name: str) -> str:
        return f"{self.namespace}_{name}"

    def get(self, name: str) -> Any:
        return self.store.get(self.key(name))

    def set(self, name: str, value: Any) -> None:
        """Store *value*; an empty value deletes the entry instead."""
        if value is None or value == "" or value == {} or value == []:
            self.delete(name)
            return
        self.store.set(self.key(name), value)

    def delete(self, name: str) -> None:
        self.store.delete(self.key(name))

    def clear(self) -> None:
        """Delete every entry of this provider."""
        self.store.delete_match(f"{self.namespace}_")
