"""JSON encoding of store values.

Plain JSON values are stored as-is. Closed records from
:mod:`authmux.models` are wrapped as ``{"__model__": "<name>", "data": {...}}``
so that :class:`~authmux.storage.file.FileStore` can rebuild them on read.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from authmux.models import Activity, Contact, Profile, TokenSet

_MODEL_TAG = "__model__"

_MODELS: dict[str, type[BaseModel]] = {
    "Activity": Activity,
    "Contact": Contact,
    "Profile": Profile,
    "TokenSet": TokenSet,
}


def encode_value(value: Any) -> Any:
    """Return a JSON-compatible representation of *value*."""
    if isinstance(value, BaseModel):
        name = type(value).__name__
        if name not in _MODELS:
            raise TypeError(f"Cannot store model of type {name}")
        return {_MODEL_TAG: name, "data": value.model_dump(mode="json")}
    return value


def decode_value(value: Any) -> Any:
    """Reverse :func:`encode_value`."""
    if isinstance(value, dict) and _MODEL_TAG in value:
        model = _MODELS.get(value[_MODEL_TAG])
        if model is not None:
            return model.model_validate(value.get("data") or {})
    return value
