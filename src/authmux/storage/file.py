"""Credential store persisted to a single JSON file.

The file lives at ``<data_dir>/credentials.json`` by default and is written
atomically with ``0o600`` permissions so that tokens are never world-readable,
even momentarily. Every mutation rewrites the whole file; the store is meant
for the command-line tool and single-user hosts, not for high write rates.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

from authmux.config import atomic_write, get_data_dir
from authmux.exceptions import ConfigError
from authmux.storage.base import CredentialStore, normalize_key
from authmux.storage.serialization import decode_value, encode_value

logger = logging.getLogger(__name__)


class FileStore(CredentialStore):
    """JSON-file-backed store.

    Args:
        path: File location. Defaults to ``get_data_dir() / "credentials.json"``.

    Example::

        store = FileStore(tmp_path / "creds.json")
        store.set("github_access_token", "tok")
        assert FileStore(tmp_path / "creds.json").get("github_access_token") == "tok"
    """

    def __init__(self, path: Optional[str | Path] = None) -> None:
        self._path = Path(path) if path is not None else get_data_dir() / "credentials.json"

    @property
    def path(self) -> Path:
        """The filesystem path of the backing file."""
        return self._path

    def get(self, key: str) -> Any:
        return decode_value(self._load().get(normalize_key(key)))

    def set(self, key: str, value: Any) -> None:
        data = self._load()
        data[normalize_key(key)] = encode_value(value)
        self._save(data)

    def delete(self, key: str) -> None:
        data = self._load()
        if data.pop(normalize_key(key), None) is not None:
            self._save(data)

    def delete_match(self, prefix: str) -> None:
        prefix = normalize_key(prefix)
        data = self._load()
        kept = {k: v for k, v in data.items() if not k.startswith(prefix)}
        if len(kept) != len(data):
            self._save(kept)

    def clear(self) -> None:
        self._save({})

    def keys(self) -> list[str]:
        return sorted(self._load())

    def _load(self) -> dict[str, Any]:
        if not self._path.is_file():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise ConfigError(f"Cannot read credential store {self._path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigError(f"Credential store {self._path} is not a JSON object")
        return data

    def _save(self, data: dict[str, Any]) -> None:
        logger.debug("Writing %d credential entries to %s", len(data), self._path)
        atomic_write(self._path, json.dumps(data, indent=2, sort_keys=True) + "\n", mode=0o600)
