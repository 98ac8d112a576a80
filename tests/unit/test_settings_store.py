"""Tests for settings stores and the store factory.

Covers:
- SettingsStore contract: get/set, change-only notification, subscribe,
  snapshot, reset, token slot, upload-history slot
- InMemorySettingsStore initial state
- JsonFileSettingsStore persistence (settings, token, upload history),
  corrupt-file tolerance
- Factory: built-in stores, registration, config-driven selection
"""

from __future__ import annotations

import json
import unittest
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest

from mapalister.core.config import PipelineConfig
from mapalister.core.constants import (
    DEFAULT_SETTINGS,
    HISTORY_STORAGE_KEY,
    TOKEN_STORAGE_KEY,
)
from mapalister.stores import (
    JSON_FILE,
    MEMORY,
    InMemorySettingsStore,
    JsonFileSettingsStore,
    SettingsStore,
    SettingsStoreError,
    get_settings_store,
    list_settings_stores,
    register_settings_store,
    settings_store_from_config,
)
from mapalister.stores.factory import _STORE_REGISTRY

# ===========================================================================
# SettingsStore contract (exercised through the in-memory store)
# ===========================================================================


class TestSettingsStoreContract:
    def test_starts_from_catalog_defaults(self, store: InMemorySettingsStore) -> None:
        assert store.snapshot() == dict(DEFAULT_SETTINGS)
        assert store.known_keys == frozenset(DEFAULT_SETTINGS)

    def test_unknown_key_reads_none(self, store: InMemorySettingsStore) -> None:
        assert store.get("noSuchSetting") is None

    def test_set_notifies_subscribers(self, store: InMemorySettingsStore) -> None:
        callback = MagicMock()
        store.subscribe(callback)
        store.set("distanceUnit", "miles")
        callback.assert_called_once_with("distanceUnit", "miles")
        assert store.get("distanceUnit") == "miles"

    def test_unchanged_value_does_not_notify(self, store: InMemorySettingsStore) -> None:
        callback = MagicMock()
        store.subscribe(callback)
        store.set("distanceUnit", "km")
        callback.assert_not_called()

    def test_unsubscribe(self, store: InMemorySettingsStore) -> None:
        callback = MagicMock()
        unsubscribe = store.subscribe(callback)
        unsubscribe()
        unsubscribe()
        store.set("distanceUnit", "miles")
        callback.assert_not_called()

    def test_failing_subscriber_does_not_block_others(
        self, store: InMemorySettingsStore
    ) -> None:
        broken = MagicMock(side_effect=RuntimeError("boom"))
        healthy = MagicMock()
        store.subscribe(broken)
        store.subscribe(healthy)
        store.set("defaultZoom", 4)
        healthy.assert_called_once_with("defaultZoom", 4)

    def test_snapshot_is_a_copy(self, store: InMemorySettingsStore) -> None:
        snap = store.snapshot()
        snap["distanceUnit"] = "miles"
        assert store.get("distanceUnit") == "km"

    def test_reset(self, store: InMemorySettingsStore) -> None:
        store.set("distanceUnit", "miles")
        store.set("compactMode", True)
        store.reset()
        assert store.snapshot() == dict(DEFAULT_SETTINGS)

    def test_token_slot(self, store: InMemorySettingsStore) -> None:
        assert store.get_token() is None
        store.set_token("pk.a.b")
        assert store.get_token() == "pk.a.b"
        store.set_token(None)
        assert store.get_token() is None

    def test_custom_catalog(self) -> None:
        store = InMemorySettingsStore({"a": 1})
        assert store.known_keys == frozenset({"a"})
        assert store.snapshot() == {"a": 1}


class TestInMemorySettingsStore:
    def test_initial_values_and_token(self) -> None:
        store = InMemorySettingsStore(initial={"distanceUnit": "miles"}, token="pk.a.b")
        assert store.get("distanceUnit") == "miles"
        assert store.get_token() == "pk.a.b"
        assert store.get("mapStyle") == "mapbox/light-v11"

    def test_history_slot_returns_copies(self) -> None:
        entry = {"file_name": "a.geojson", "feature_count": 1, "upload_date": "d"}
        store = InMemorySettingsStore(history=[entry])
        store.get_history()[0]["file_name"] = "tampered"
        assert store.get_history() == [entry]

        store.set_history([])
        assert store.get_history() == []


# ===========================================================================
# JsonFileSettingsStore
# ===========================================================================


class TestJsonFileSettingsStore:
    def test_missing_file_uses_defaults(self, tmp_path: Path) -> None:
        store = JsonFileSettingsStore(tmp_path / "settings.json")
        assert store.snapshot() == dict(DEFAULT_SETTINGS)
        assert store.get_token() is None

    def test_persists_settings_and_token(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / "settings.json"
        store = JsonFileSettingsStore(path)
        store.set("distanceUnit", "miles")
        store.set_token("pk.a.b")

        saved = json.loads(path.read_text(encoding="utf-8"))
        assert saved["settings"]["distanceUnit"] == "miles"
        assert saved[TOKEN_STORAGE_KEY] == "pk.a.b"

        reloaded = JsonFileSettingsStore(path)
        assert reloaded.get("distanceUnit") == "miles"
        assert reloaded.get_token() == "pk.a.b"

    def test_unknown_saved_keys_ignored(self, tmp_path: Path) -> None:
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"settings": {"legacyThing": 1, "defaultZoom": 3}}))
        store = JsonFileSettingsStore(path)
        assert store.get("legacyThing") is None
        assert store.get("defaultZoom") == 3

    @pytest.mark.parametrize("content", ["{not json", "[1, 2]", '{"settings": "x"}'])
    def test_corrupt_file_ignored(self, tmp_path: Path, content: str) -> None:
        path = tmp_path / "settings.json"
        path.write_text(content)
        store = JsonFileSettingsStore(path)
        assert store.snapshot() == dict(DEFAULT_SETTINGS)

    def test_empty_path_rejected(self) -> None:
        with pytest.raises(SettingsStoreError):
            JsonFileSettingsStore("")

    def test_persists_upload_history(self, tmp_path: Path) -> None:
        path = tmp_path / "settings.json"
        entries = [
            {"file_name": "b.geojson", "feature_count": 2, "upload_date": "2025-03-02"},
            {"file_name": "a.geojson", "feature_count": 1, "upload_date": "2025-03-01"},
        ]
        JsonFileSettingsStore(path).set_history(entries)

        saved = json.loads(path.read_text(encoding="utf-8"))
        assert saved[HISTORY_STORAGE_KEY] == entries
        assert JsonFileSettingsStore(path).get_history() == entries

    def test_malformed_history_entries_ignored(self, tmp_path: Path) -> None:
        path = tmp_path / "settings.json"
        good = {"file_name": "a.geojson", "feature_count": 1, "upload_date": "d"}
        path.write_text(json.dumps({HISTORY_STORAGE_KEY: [good, "x", {"feature_count": 3}]}))
        assert JsonFileSettingsStore(path).get_history() == [good]

    def test_non_list_history_ignored(self, tmp_path: Path) -> None:
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({HISTORY_STORAGE_KEY: {"file_name": "a.geojson"}}))
        assert JsonFileSettingsStore(path).get_history() == []


# ===========================================================================
# Factory
# ===========================================================================


class _DictStore(SettingsStore):
    def _load(self) -> tuple[dict[str, Any], str | None, list[Any]]:
        return {}, None, []

    def _save(self) -> None:
        return None


class TestSettingsStoreFactory(unittest.TestCase):
    def tearDown(self) -> None:
        _STORE_REGISTRY.pop("dict", None)

    def test_builtin_stores_listed(self) -> None:
        stores = list_settings_stores()
        assert MEMORY in stores
        assert JSON_FILE in stores
        assert stores == sorted(stores)

    def test_get_memory_store(self) -> None:
        assert isinstance(get_settings_store(MEMORY), InMemorySettingsStore)

    def test_unknown_store_raises(self) -> None:
        with self.assertRaises(SettingsStoreError) as ctx:
            get_settings_store("redis")
        assert "redis" in str(ctx.exception)
        assert "Available:" in str(ctx.exception)

    def test_register_custom_store(self) -> None:
        register_settings_store("dict", lambda: _DictStore)
        assert isinstance(get_settings_store("dict"), _DictStore)

    def test_register_empty_name_rejected(self) -> None:
        with self.assertRaises(ValueError):
            register_settings_store("", lambda: _DictStore)

    def test_from_config_memory(self) -> None:
        store = settings_store_from_config(PipelineConfig())
        assert isinstance(store, InMemorySettingsStore)

    def test_from_config_json_file_requires_path(self) -> None:
        with self.assertRaises(SettingsStoreError):
            settings_store_from_config(PipelineConfig(settings_store=JSON_FILE))


def test_from_config_json_file(tmp_path: Path) -> None:
    config = PipelineConfig(settings_store=JSON_FILE, settings_path=str(tmp_path / "s.json"))
    store = settings_store_from_config(config)
    assert isinstance(store, JsonFileSettingsStore)
    assert store.path == tmp_path / "s.json"
