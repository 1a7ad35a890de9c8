"""Static registry of provider definitions.

Provider names are matched case-insensitively. Built-in providers are
registered at import time; third-party packages can add their own either by
calling :func:`register` or by declaring an entry point::

    [project.entry-points."authmux.providers"]
    acme = "acme_auth.provider:ACME"

Entry points are only loaded on an explicit :func:`load_entry_points` call.
"""

from __future__ import annotations

import importlib.metadata
import logging
from typing import Optional

from authmux.providers.definition import ProviderDefinition
from authmux.providers.discord import DISCORD
from authmux.providers.facebook import FACEBOOK
from authmux.providers.github import GITHUB
from authmux.providers.gitlab import GITLAB
from authmux.providers.google import GOOGLE
from authmux.providers.openid import OPENID_PROVIDER
from authmux.providers.steam import STEAM
from authmux.providers.tumblr import TUMBLR
from authmux.providers.twitter import TWITTER

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "authmux.providers"
"""Entry-point group scanned by :func:`load_entry_points`."""

BUILTIN_PROVIDERS: tuple[ProviderDefinition, ...] = (
    DISCORD,
    FACEBOOK,
    GITHUB,
    GITLAB,
    GOOGLE,
    OPENID_PROVIDER,
    STEAM,
    TUMBLR,
    TWITTER,
)

_registry: dict[str, ProviderDefinition] = {}


def register(definition: ProviderDefinition, name: Optional[str] = None) -> None:
    """Register *definition* under *name* (default ``definition.name``).

    A later registration under the same name replaces the earlier one.
    """
    key = (name or definition.name).lower()
    if key in _registry and _registry[key] is not definition:
        logger.debug("Replacing provider definition %r", key)
    _registry[key] = definition


def get_definition(name: str) -> Optional[ProviderDefinition]:
    """Return the definition registered under *name*, or ``None``."""
    return _registry.get(name.lower())


def registered_names() -> list[str]:
    """Canonical names of every registered provider, sorted."""
    return sorted({d.name for d in _registry.values()}, key=str.lower)


def load_entry_points() -> list[str]:
    """Register every definition exposed under :data:`ENTRY_POINT_GROUP`.

    Entry points that fail to load, or that do not resolve to a
    :class:`ProviderDefinition`, are logged and skipped.

    Returns:
        The names that were registered.
    """
    loaded: list[str] = []
    for entry_point in importlib.metadata.entry_points(group=ENTRY_POINT_GROUP):
        try:
            definition = entry_point.load()
        except Exception as exc:
            logger.warning("Failed to load provider entry point %r: %s", entry_point.name, exc)
            continue
        if not isinstance(definition, ProviderDefinition):
            logger.warning(
                "Provider entry point %r is a %s, not a ProviderDefinition",
                entry_point.name,
                type(definition).__name__,
            )
            continue
        register(definition, entry_point.name)
        loaded.append(entry_point.name)
    return loaded


for _definition in BUILTIN_PROVIDERS:
    register(_definition)
