"""Configuration management with XDG paths, atomic writes, and credential sources.

This module handles everything persistent that is not a credential-store entry:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.authmux/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_data_dir`.
* **Configuration file** -- a JSON or YAML document deserialised into an
  :class:`~authmux.models.AuthmuxConfig` by :func:`load_config`. The path is
  resolved by :func:`resolve_config_path` (explicit argument, then the
  ``AUTHMUX_CONFIG`` environment variable, then ``<config_dir>/config.yaml``
  or ``config.json``).
* **Credential resolution** -- :func:`resolve_credential` turns ``env:VAR``
  and ``file:/path`` descriptors in provider keys into secret values.
* **Logging** -- :func:`setup_logging` applies ``debug_mode`` and
  ``debug_file`` to the ``authmux`` logger hierarchy.

All file writes use an atomic temp-file-then-rename strategy
(:func:`atomic_write`) to prevent data loss on crash or power failure.
"""

from __future__ import annotations

import json
import logging
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

import yaml

from authmux.exceptions import ConfigError
from authmux.models import AuthmuxConfig

_APP_NAME = "authmux"
_CONFIG_FILENAMES = ("config.yaml", "config.yml", "config.json")
_CONFIG_ENV_VAR = "AUTHMUX_CONFIG"
_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform follows the XDG Base Directory layout (Linux/BSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/authmux/`` (default ``~/.config/authmux/``).
    On macOS/Windows: ``~/.authmux/``.

    Returns:
        Absolute path to the configuration directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (credential stores), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/authmux/`` (default ``~/.local/share/authmux/``).
    On macOS/Windows: ``~/.authmux/data/``.

    Returns:
        Absolute path to the data directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "data"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def atomic_write(path: Path, data: str, mode: int | None = None) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. When *mode* is given
    the permissions are applied before any content is written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        if mode is not None:
            os.chmod(tmp_path, mode)
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close below
        os.replace(tmp_path, path)
    except BaseException:
        # Clean up the temp file on any error (including KeyboardInterrupt).
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Configuration file ---


def resolve_config_path(path: str | Path | None = None) -> Path:
    """Find the configuration file to load.

    Precedence (high to low):
        1. The explicit *path* argument.
        2. The ``AUTHMUX_CONFIG`` environment variable.
        3. The first of ``config.yaml``, ``config.yml``, ``config.json``
           that exists in :func:`get_config_dir`.

    Raises:
        ConfigError: If no candidate exists.
    """
    if path is not None:
        candidate = Path(path).expanduser()
    elif os.environ.get(_CONFIG_ENV_VAR):
        candidate = Path(os.environ[_CONFIG_ENV_VAR]).expanduser()
    else:
        config_dir = get_config_dir()
        for name in _CONFIG_FILENAMES:
            if (config_dir / name).is_file():
                return config_dir / name
        raise ConfigError(
            f"No configuration file found in {config_dir} "
            f"(set {_CONFIG_ENV_VAR} or pass --config)"
        )

    if not candidate.is_file():
        raise ConfigError(f"Configuration file not found: {candidate}")
    return candidate


def parse_config(data: dict[str, Any]) -> AuthmuxConfig:
    """Validate a raw configuration mapping.

    Raises:
        ConfigError: If the mapping fails Pydantic validation.
    """
    try:
        return AuthmuxConfig.model_validate(data)
    except ValueError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc


def load_config(path: str | Path | None = None) -> AuthmuxConfig:
    """Load and validate the configuration file.

    Files ending in ``.yaml``/``.yml`` are parsed with PyYAML, everything
    else as JSON.

    Args:
        path: Optional explicit path; see :func:`resolve_config_path`.

    Returns:
        The deserialised :class:`~authmux.models.AuthmuxConfig`.

    Raises:
        ConfigError: If the file is missing, unparseable, or invalid.
    """
    resolved = resolve_config_path(path)
    try:
        text = resolved.read_text(encoding="utf-8")
        if resolved.suffix.lower() in (".yaml", ".yml"):
            data = yaml.safe_load(text)
        else:
            data = json.loads(text)
    except (OSError, json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigError(f"Cannot read configuration at {resolved}: {exc}") from exc

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration at {resolved} must be a mapping")
    return parse_config(data)


def save_config(config: AuthmuxConfig, path: Path) -> None:
    """Persist *config* atomically as JSON or YAML depending on the suffix."""
    data = config.model_dump(mode="json", exclude_none=True)
    if path.suffix.lower() in (".yaml", ".yml"):
        text = yaml.safe_dump(data, sort_keys=False)
    else:
        text = json.dumps(data, indent=2) + "\n"
    atomic_write(path, text)


# --- Credential source resolution ---


def resolve_credential(source: Optional[str]) -> Optional[str]:
    """Resolve a credential from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace
        - anything else -- returned unchanged (a literal value)

    Args:
        source: The source descriptor, or ``None``.

    Returns:
        The resolved credential string, or ``None`` when *source* is ``None``.

    Raises:
        ConfigError: If an ``env:`` variable is unset or a ``file:`` path is
            unreadable.
    """
    if source is None:
        return None

    if source.startswith("env:"):
        var_name = source[4:]
        value = os.environ.get(var_name)
        if value is None:
            raise ConfigError(
                f"Environment variable '{var_name}' is not set (source: {source})"
            )
        return value

    if source.startswith("file:"):
        path = Path(source[5:]).expanduser()
        if not path.is_file():
            raise ConfigError(f"Credential file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read credential file {path}: {exc}") from exc

    return source


# --- Logging ---


def setup_logging(config: AuthmuxConfig) -> None:
    """Apply ``debug_mode`` and ``debug_file`` to the ``authmux`` logger.

    Does nothing when ``debug_mode`` is unset, leaving logging configuration
    to the host application.

    Raises:
        ConfigError: If ``debug_mode`` is not a known level name.
    """
    if not config.debug_mode:
        return

    level = logging.getLevelName(config.debug_mode.upper())
    if not isinstance(level, int):
        raise ConfigError(f"Unknown debug_mode level: {config.debug_mode}")

    logger = logging.getLogger(_APP_NAME)
    logger.setLevel(level)
    if config.debug_file:
        handler = logging.FileHandler(Path(config.debug_file).expanduser(), encoding="utf-8")
        handler.setFormatter(logging.Formatter(_LOG_FORMAT))
        logger.addHandler(handler)
