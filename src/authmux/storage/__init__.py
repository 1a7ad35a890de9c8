"""Credential stores: the key-value persistence used for all per-provider state.

- :class:`CredentialStore` -- the abstract contract (``get``, ``set``,
  ``delete``, ``delete_match``, ``clear``).
- :class:`MemoryStore` -- process-local dict; the default for library use
  and tests.
- :class:`FileStore` -- one JSON file with ``0o600`` permissions, written
  atomically.
- :class:`DiskCacheStore` -- a :mod:`diskcache` directory, safe to share
  between worker processes.

The store is owned by the host application and injected into the
dispatcher; flow engines only touch keys under their own provider prefix.
"""

from authmux.storage.base import CredentialStore, normalize_key
from authmux.storage.disk import DiskCacheStore
from authmux.storage.file import FileStore
from authmux.storage.memory import MemoryStore

__all__ = [
    "CredentialStore",
    "DiskCacheStore",
    "FileStore",
    "MemoryStore",
    "normalize_key",
]
