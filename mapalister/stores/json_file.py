"""JSON-file settings store.

Persists settings, the access token and the upload history to a single
JSON file so they survive restarts.  The file layout is::

    {
      "settings": {"distanceUnit": "miles", ...},
      "mapbox-token": "pk.abc.def",
      "mapalister-upload-history": [{"file_name": "a.geojson", ...}]
    }

Saved keys outside the catalog, and history entries without a file
name, are ignored on load.  A missing file means "nothing saved yet"; a
corrupt one is logged and ignored, matching how the browser treated
unreadable local storage.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from mapalister.core.constants import HISTORY_STORAGE_KEY, TOKEN_STORAGE_KEY
from mapalister.stores.base import SettingsStore, SettingsStoreError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from mapalister.models.contracts import UploadHistoryEntry

logger = logging.getLogger("mapalister.stores.json_file")

SETTINGS_SECTION = "settings"


class JsonFileSettingsStore(SettingsStore):
    """Settings store backed by a JSON file.

    Args:
        path: Location of the persistence file.
        defaults: Catalog of recognised keys and defaults.

    Raises:
        SettingsStoreError: If *path* is empty.
    """

    def __init__(self, path: Path | str, defaults: Mapping[str, Any] | None = None) -> None:
        if not str(path):
            msg = "JsonFileSettingsStore requires a non-empty path"
            raise SettingsStoreError(msg)
        self._path = Path(path)
        super().__init__(defaults)

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> tuple[dict[str, Any], str | None, list[UploadHistoryEntry]]:
        if not self._path.exists():
            return {}, None, []

        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Failed to load settings from %s: %s", self._path, exc)
            return {}, None, []

        if not isinstance(data, dict):
            logger.warning("Ignoring settings file %s: expected a JSON object", self._path)
            return {}, None, []

        saved = data.get(SETTINGS_SECTION)
        values = (
            {k: v for k, v in saved.items() if k in self._defaults}
            if isinstance(saved, dict)
            else {}
        )
        token = data.get(TOKEN_STORAGE_KEY)
        return (
            values,
            token if isinstance(token, str) and token else None,
            _saved_history(data.get(HISTORY_STORAGE_KEY)),
        )

    def _save(self) -> None:
        payload = {
            SETTINGS_SECTION: self.snapshot(),
            TOKEN_STORAGE_KEY: self._token,
            HISTORY_STORAGE_KEY: self._history,
        }
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError as exc:
            logger.warning("Failed to save settings to %s: %s", self._path, exc)


def _saved_history(saved: object) -> list[UploadHistoryEntry]:
    if not isinstance(saved, list):
        return []
    return [
        entry  # type: ignore[misc]
        for entry in saved
        if isinstance(entry, dict) and isinstance(entry.get("file_name"), str)
    ]
