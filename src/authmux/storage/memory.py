"""In-process credential store."""

from __future__ import annotations

import copy
from typing import Any

from authmux.storage.base import CredentialStore, normalize_key


class MemoryStore(CredentialStore):
    """Dict-backed store living for the lifetime of the object.

    Values are deep-copied on the way in and out so that callers mutating a
    returned :class:`~authmux.models.Profile` do not change the stored one.

    Example::

        store = MemoryStore()
        store.set("GitHub_access_token", "tok")
        assert store.get("github_access_token") == "tok"
    """

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = {}
        for key, value in (initial or {}).items():
            self.set(key, value)

    def get(self, key: str) -> Any:
        return copy.deepcopy(self._data.get(normalize_key(key)))

    def set(self, key: str, value: Any) -> None:
        self._data[normalize_key(key)] = copy.deepcopy(value)

    def delete(self, key: str) -> None:
        self._data.pop(normalize_key(key), None)

    def delete_match(self, prefix: str) -> None:
        prefix = normalize_key(prefix)
        for key in [k for k in self._data if k.startswith(prefix)]:
            del self._data[key]

    def clear(self) -> None:
        self._data.clear()

    def keys(self) -> list[str]:
        return sorted(self._data)
