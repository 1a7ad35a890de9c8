"""Credential store backed by :mod:`diskcache`.

A :class:`diskcache.Cache` directory is SQLite-backed and process-safe, so
several worker processes of one host application can share it. Values are
pickled by diskcache, which round-trips the pydantic records unchanged.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import diskcache

from authmux.config import get_data_dir
from authmux.storage.base import CredentialStore, normalize_key


class DiskCacheStore(CredentialStore):
    """Store entries in a :class:`diskcache.Cache` directory.

    Args:
        directory: Cache directory. Defaults to ``get_data_dir() / "store"``.
        expire: Optional time-to-live in seconds applied to every entry.

    Example::

        store = DiskCacheStore(tmp_path / "store")
        store.set("google_refresh_token", "r1")
        store.close()
    """

    def __init__(
        self, directory: Optional[str | Path] = None, expire: Optional[float] = None
    ) -> None:
        self._directory = Path(directory) if directory is not None else get_data_dir() / "store"
        self._expire = expire
        self._cache = diskcache.Cache(str(self._directory))

    def get(self, key: str) -> Any:
        return self._cache.get(normalize_key(key))

    def set(self, key: str, value: Any) -> None:
        self._cache.set(normalize_key(key), value, expire=self._expire)

    def delete(self, key: str) -> None:
        self._cache.delete(normalize_key(key))

    def delete_match(self, prefix: str) -> None:
        prefix = normalize_key(prefix)
        for key in list(self._cache.iterkeys()):
            if isinstance(key, str) and key.startswith(prefix):
                self._cache.delete(key)

    def clear(self) -> None:
        self._cache.clear()

    def keys(self) -> list[str]:
        return sorted(k for k in self._cache.iterkeys() if isinstance(k, str))

    def close(self) -> None:
        """Close the underlying :class:`diskcache.Cache` and release resources."""
        self._cache.close()
