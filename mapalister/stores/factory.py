"""Settings store factory — selects the active store by name.

The factory keeps a registry of known stores.  New stores are registered
with ``register_settings_store``; the built-in ones are added lazily on
first use.

Usage::

    from mapalister.stores.factory import get_settings_store

    store = get_settings_store("json_file", path="~/.mapalister/settings.json")

The store name normally comes from ``PipelineConfig.settings_store``
(``SETTINGS_STORE`` environment variable).
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from mapalister.stores.base import SettingsStore, SettingsStoreError

if TYPE_CHECKING:
    from collections.abc import Callable

    from mapalister.core.config import PipelineConfig

logger = logging.getLogger(__name__)

MEMORY = "memory"
JSON_FILE = "json_file"

_STORE_REGISTRY: dict[str, Callable[[], type[SettingsStore]]] = {}


def _register_builtin_stores() -> None:
    def _memory() -> type[SettingsStore]:
        from mapalister.stores.memory import InMemorySettingsStore

        return InMemorySettingsStore

    def _json_file() -> type[SettingsStore]:
        from mapalister.stores.json_file import JsonFileSettingsStore

        return JsonFileSettingsStore

    _STORE_REGISTRY[MEMORY] = _memory
    _STORE_REGISTRY[JSON_FILE] = _json_file


def _ensure_registry() -> None:
    """Initialise the store registry once (idempotent)."""
    if not _STORE_REGISTRY:
        _register_builtin_stores()


def register_settings_store(name: str, loader: Callable[[], type[SettingsStore]]) -> None:
    """Register a custom settings store.

    Args:
        name: Store name (e.g. ``"redis"``).
        loader: A zero-argument callable that returns the store class.

    Raises:
        ValueError: If the name is empty.
    """
    if not name:
        msg = "Settings store name must be non-empty"
        raise ValueError(msg)
    _ensure_registry()
    _STORE_REGISTRY[name] = loader
    logger.debug("Registered settings store: %s", name)


def get_settings_store(name: str, **kwargs: Any) -> SettingsStore:
    """Create and return a settings store.

    Args:
        name: Registered store name (``"memory"``, ``"json_file"``, ...).
        **kwargs: Passed to the store's constructor.

    Raises:
        SettingsStoreError: If the named store is not registered.
    """
    _ensure_registry()

    loader = _STORE_REGISTRY.get(name)
    if loader is None:
        available = ", ".join(sorted(_STORE_REGISTRY))
        msg = f"Unknown settings store: {name!r}. Available: {available}"
        raise SettingsStoreError(msg)

    store_cls = loader()
    logger.info("Creating settings store: %s", name)
    return store_cls(**kwargs)


def settings_store_from_config(config: PipelineConfig) -> SettingsStore:
    """Build the store named by *config*, passing ``settings_path`` to file stores."""
    if config.settings_store == JSON_FILE:
        if not config.settings_path:
            msg = "SETTINGS_PATH must be set when SETTINGS_STORE=json_file"
            raise SettingsStoreError(msg)
        return get_settings_store(JSON_FILE, path=Path(config.settings_path).expanduser())
    return get_settings_store(config.settings_store)


def list_settings_stores() -> list[str]:
    """Return the names of all registered settings stores."""
    _ensure_registry()
    return sorted(_STORE_REGISTRY)
