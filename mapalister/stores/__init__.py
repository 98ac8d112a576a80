"""Settings stores.

The pipeline reads and writes application settings only through a
``SettingsStore``:
- SettingsStore: Abstract base class defining the interface
- InMemorySettingsStore: Process-lifetime store (default, tests)
- JsonFileSettingsStore: Store persisted to a JSON file

The active store is selected via configuration (``SETTINGS_STORE``).
"""

from mapalister.stores.base import SettingsStore, SettingsStoreError
from mapalister.stores.factory import (
    JSON_FILE,
    MEMORY,
    get_settings_store,
    list_settings_stores,
    register_settings_store,
    settings_store_from_config,
)
from mapalister.stores.json_file import JsonFileSettingsStore
from mapalister.stores.memory import InMemorySettingsStore

__all__ = [
    "JSON_FILE",
    "MEMORY",
    "InMemorySettingsStore",
    "JsonFileSettingsStore",
    "SettingsStore",
    "SettingsStoreError",
    "get_settings_store",
    "list_settings_stores",
    "register_settings_store",
    "settings_store_from_config",
]
