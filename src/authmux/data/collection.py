"""Permissive accessor over decoded provider payloads.

Provider responses are loosely shaped: fields come and go depending on
scopes, account settings, and API versions. :class:`Collection` wraps a
decoded value (mapping, list, scalar, or ``None``) and answers lookups with
``None`` rather than ``KeyError``/``TypeError`` so that profile mapping code
reads as a flat list of assignments.

Example::

    data = Collection({"id": 7, "hometown": {"name": "Paris, France"}})
    data.get("id")                         # 7
    data.get("missing")                    # None
    data.filter("hometown").get("name")    # "Paris, France"
    data.filter("nope").get("name")        # None
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Any


class Collection:
    """Read-only, never-raising view over a decoded payload.

    Args:
        data: A mapping, a sequence, a scalar, or ``None``. Collections
            passed in are unwrapped.
    """

    def __init__(self, data: Any = None) -> None:
        if isinstance(data, Collection):
            data = data.to_python()
        self._data = data

    def get(self, name: str, default: Any = None) -> Any:
        """Return the value stored under *name*, or *default* when absent."""
        if isinstance(self._data, Mapping):
            value = self._data.get(name, default)
            return default if value is None else value
        return default

    def exists(self, name: str) -> bool:
        """Return ``True`` if *name* is a key of the wrapped mapping."""
        return isinstance(self._data, Mapping) and name in self._data

    def filter(self, name: str) -> Collection:
        """Return a :class:`Collection` over the value stored under *name*."""
        return Collection(self.get(name))

    def is_empty(self) -> bool:
        """Return ``True`` if the wrapped value is ``None`` or an empty container."""
        if self._data is None:
            return True
        if isinstance(self._data, (Mapping, list, tuple, str)):
            return len(self._data) == 0
        return False

    def keys(self) -> list[str]:
        if isinstance(self._data, Mapping):
            return list(self._data.keys())
        return []

    def values(self) -> list[Any]:
        if isinstance(self._data, Mapping):
            return list(self._data.values())
        if isinstance(self._data, (list, tuple)):
            return list(self._data)
        return []

    def to_python(self) -> Any:
        """Return the wrapped value unchanged."""
        return self._data

    def __iter__(self) -> Iterator[Collection]:
        for item in self.values():
            yield Collection(item)

    def __len__(self) -> int:
        if isinstance(self._data, (Mapping, list, tuple)):
            return len(self._data)
        return 0

    def __bool__(self) -> bool:
        return not self.is_empty()

    def __repr__(self) -> str:
        return f"Collection({self._data!r})"
