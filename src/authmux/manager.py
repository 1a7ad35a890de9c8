"""Auth manager -- provider lookup and adapter dispatch.

:class:`AuthManager` is the entry point for host applications. It owns the
configuration, the shared credential store and HTTP transport, and turns a
provider name into a ready-to-use adapter:

1. Look the name up in ``config.providers`` (case-insensitively); fail with
   :class:`~authmux.exceptions.UnknownProviderError` or
   :class:`~authmux.exceptions.ProviderDisabledError`.
2. Resolve the :class:`~authmux.providers.definition.ProviderDefinition`:
   the entry's ``adapter`` override (a registered name or a
   ``package.module:ATTRIBUTE`` import path), else the registry entry
   matching the provider name.
3. Pick the protocol engine and instantiate it with the shared
   collaborators. The engine runs ``configure()`` then ``initialize()``.

:func:`create_store` builds the credential store named by the ``store``
section of the configuration, and :func:`create_default_manager` wires a
manager from a configuration file the way the CLI does.

See Also:
    :mod:`authmux.providers.registry` -- the static provider registry.
    :class:`~authmux.adapter.base.AbstractAdapter` -- what you get back.
"""

from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Any, Optional

from authmux.adapter import ENGINES, AbstractAdapter
from authmux.config import load_config, parse_config, setup_logging
from authmux.exceptions import ConfigError, ProviderDisabledError, UnknownProviderError
from authmux.http.request import CallbackRequest, Redirect
from authmux.http.transport import HttpTransport, HttpxTransport
from authmux.models import AuthmuxConfig, ProviderConfig, StoreConfig
from authmux.providers.definition import ProviderDefinition
from authmux.providers.registry import get_definition, load_entry_points
from authmux.storage.base import CredentialStore
from authmux.storage.disk import DiskCacheStore
from authmux.storage.file import FileStore
from authmux.storage.memory import MemoryStore

logger = logging.getLogger(__name__)


class AuthManager:
    """Dispatch authentication to the configured providers.

    Args:
        config: An :class:`~authmux.models.AuthmuxConfig` or the raw mapping
            it validates from.
        store: Shared credential store. Defaults to a
            :class:`~authmux.storage.MemoryStore`.
        transport: Shared HTTP transport. Defaults to an
            :class:`~authmux.http.HttpxTransport` honouring ``timeout`` and
            ``verify_ssl``.
        logger: Logger handed to every adapter. By default each adapter
            logs to ``authmux.adapter.<provider>``.

    Example::

        manager = AuthManager(load_config(), store=FileStore())
        result = manager.authenticate("GitHub", CallbackRequest.from_url(url))
        if isinstance(result, Redirect):
            return redirect(result.url)
        profile = manager.get_adapter("GitHub").get_user_profile()
    """

    def __init__(
        self,
        config: AuthmuxConfig | dict[str, Any],
        store: Optional[CredentialStore] = None,
        transport: Optional[HttpTransport] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.config = config if isinstance(config, AuthmuxConfig) else parse_config(config)
        self.store = store if store is not None else MemoryStore()
        self.transport = transport or HttpxTransport(
            timeout=self.config.timeout, verify_ssl=self.config.verify_ssl
        )
        self.logger = logger

    # ------------------------------------------------------------------ #
    # Flow
    # ------------------------------------------------------------------ #

    def authenticate(
        self, name: str, request: Optional[CallbackRequest] = None
    ) -> Optional[Redirect]:
        """Run one step of *name*'s login flow.

        Returns:
            A :class:`~authmux.http.Redirect` to send the user agent to, or
            ``None`` once connected.
        """
        adapter = self.get_adapter(name)
        return adapter.authenticate(request)

    # ------------------------------------------------------------------ #
    # Lookup
    # ------------------------------------------------------------------ #

    def get_provider_config(self, name: str) -> tuple[str, ProviderConfig]:
        """Return the configured name and entry for *name*.

        The top-level ``callback`` fills in a missing provider callback.

        Raises:
            UnknownProviderError: *name* is not configured.
            ProviderDisabledError: The entry has ``enabled: false``.
        """
        for configured_name, entry in self.config.providers.items():
            if configured_name.lower() == name.lower():
                break
        else:
            raise UnknownProviderError(f"Unknown provider ({name})")

        if not entry.enabled:
            raise ProviderDisabledError(f"Disabled provider ({configured_name})")

        if not entry.callback and self.config.callback:
            entry = entry.model_copy(update={"callback": self.config.callback})
        return configured_name, entry

    def resolve_definition(self, name: str, entry: ProviderConfig) -> ProviderDefinition:
        """Find the provider definition for a configured provider.

        Raises:
            UnknownProviderError: Neither the override nor the registry
                yields a definition.
            ConfigError: The override import path is broken or does not
                point at a :class:`ProviderDefinition`.
        """
        if entry.adapter:
            if ":" in entry.adapter:
                return _import_definition(entry.adapter)
            definition = get_definition(entry.adapter)
            if definition is None:
                raise UnknownProviderError(
                    f"Unknown adapter ({entry.adapter}) configured for provider {name}"
                )
            return definition

        definition = get_definition(name)
        if definition is None:
            raise UnknownProviderError(f"Unknown provider ({name})")
        return definition

    def get_adapter(self, name: str) -> AbstractAdapter:
        """Build the adapter for *name*.

        Raises:
            UnknownProviderError: See :meth:`get_provider_config`.
            ProviderDisabledError: See :meth:`get_provider_config`.
            ConfigError: The adapter rejected its configuration.
        """
        configured_name, entry = self.get_provider_config(name)
        definition = self.resolve_definition(configured_name, entry)
        engine = ENGINES[definition.protocol]

        logger.debug(
            "Building %s for provider %s (%s)", engine.__name__, configured_name, definition.name
        )
        return engine(
            definition,
            entry,
            transport=self.transport,
            store=self.store,
            logger=self.logger,
            provider_id=configured_name,
        )

    # ------------------------------------------------------------------ #
    # Convenience
    # ------------------------------------------------------------------ #

    def is_connected_with(self, name: str) -> bool:
        return self.get_adapter(name).is_connected()

    def get_providers(self) -> list[str]:
        """Names of all enabled providers, in configuration order."""
        return [name for name, entry in self.config.providers.items() if entry.enabled]

    def get_connected_providers(self) -> list[str]:
        return [name for name in self.get_providers() if self.is_connected_with(name)]

    def get_connected_adapters(self) -> dict[str, AbstractAdapter]:
        """Adapters of every enabled provider that is currently connected."""
        adapters: dict[str, AbstractAdapter] = {}
        for name in self.get_providers():
            adapter = self.get_adapter(name)
            if adapter.is_connected():
                adapters[name] = adapter
        return adapters

    def disconnect_all_adapters(self) -> None:
        """Disconnect every enabled and connected provider."""
        for name, adapter in self.get_connected_adapters().items():
            logger.info("Disconnecting %s", name)
            adapter.disconnect()


def _import_definition(path: str) -> ProviderDefinition:
    """Load ``package.module:ATTRIBUTE`` and check it is a definition."""
    module_name, _, attribute = path.partition(":")
    try:
        module = importlib.import_module(module_name)
        definition = getattr(module, attribute)
    except (ImportError, AttributeError) as exc:
        raise ConfigError(f"Cannot import adapter '{path}': {exc}") from exc

    if not isinstance(definition, ProviderDefinition):
        raise ConfigError(
            f"Adapter '{path}' is a {type(definition).__name__}, not a ProviderDefinition"
        )
    return definition


def create_store(config: StoreConfig) -> CredentialStore:
    """Build the credential store named by a :class:`~authmux.models.StoreConfig`.

    Raises:
        ConfigError: If ``type`` is not ``file``, ``disk`` or ``memory``.
    """
    store_type = config.type.lower()
    if store_type == "file":
        return FileStore(config.path)
    if store_type == "disk":
        return DiskCacheStore(config.path)
    if store_type == "memory":
        return MemoryStore()
    raise ConfigError(f"Unknown store type: {config.type} (expected file, disk or memory)")


def create_default_manager(config_path: Optional[str | Path] = None) -> AuthManager:
    """Create an :class:`AuthManager` from the configuration file.

    Loads the configuration (see :func:`~authmux.config.load_config`),
    applies its logging settings, registers providers published by installed
    packages, and opens the configured credential store.
    """
    config = load_config(config_path)
    setup_logging(config)

    loaded = load_entry_points()
    if loaded:
        logger.debug("Loaded provider plugins: %s", ", ".join(loaded))

    return AuthManager(config, store=create_store(config.store))
