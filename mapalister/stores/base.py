"""SettingsStore abstract base class.

The Settings Store owns the application's flat key-value configuration
the persisted access token and the upload history.  The pipeline never holds settings
state itself: it reads and writes through this interface, which is
injected into ``UploadPipeline`` rather than reached as a global.

Contract:
    ``get(key)``        — current value (``None`` for unknown keys).
    ``set(key, value)`` — store and notify subscribers when the value changes.
    ``subscribe(cb)``   — register a change callback; returns an unsubscribe callable.
    ``known_keys``      — catalog of recognised keys, used to filter imports.
    ``get_token()`` / ``set_token(token)`` — the persisted-token slot.
    ``get_history()`` / ``set_history(entries)`` — the persisted upload history.

Concrete stores decide only how state is loaded and saved
(``_load`` / ``_save``); change detection and notification live here.
"""

from __future__ import annotations

import abc
import logging
from typing import TYPE_CHECKING, Any

from mapalister.core.constants import DEFAULT_SETTINGS
from mapalister.core.exceptions import PermanentError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping

    from mapalister.models.contracts import UploadHistoryEntry

logger = logging.getLogger("mapalister.stores")


class SettingsStoreError(PermanentError):
    """Raised when a settings store cannot be built or its state cannot be read."""

    default_stage = "settings_store"
    default_code = "SETTINGS_STORE_FAILED"


class SettingsStore(abc.ABC):
    """Abstract base class for settings stores.

    Args:
        defaults: Catalog of recognised keys and their default values.
            Defaults to the application catalog (``DEFAULT_SETTINGS``).
    """

    def __init__(self, defaults: Mapping[str, Any] | None = None) -> None:
        self._defaults: dict[str, Any] = dict(DEFAULT_SETTINGS if defaults is None else defaults)
        self._values: dict[str, Any] = dict(self._defaults)
        self._token: str | None = None
        self._history: list[UploadHistoryEntry] = []
        self._subscribers: list[Callable[[str, Any], None]] = []

        saved_values, saved_token, saved_history = self._load()
        self._values.update(saved_values)
        self._token = saved_token
        self._history = list(saved_history)

    # ------------------------------------------------------------------
    # Persistence hooks, implemented by concrete stores
    # ------------------------------------------------------------------

    @abc.abstractmethod
    def _load(self) -> tuple[dict[str, Any], str | None, list[UploadHistoryEntry]]:
        """Return previously saved ``(settings, token, upload history)``."""

    @abc.abstractmethod
    def _save(self) -> None:
        """Persist the current settings, token and upload history."""

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    @property
    def known_keys(self) -> frozenset[str]:
        """Catalog of recognised setting keys."""
        return frozenset(self._defaults)

    @property
    def defaults(self) -> dict[str, Any]:
        return dict(self._defaults)

    def get(self, key: str) -> Any:
        return self._values.get(key)

    def set(self, key: str, value: Any) -> None:
        """Store *value* under *key*; subscribers hear about real changes only."""
        if key in self._values and self._values[key] == value:
            return
        self._values[key] = value
        self._save()
        logger.debug("Setting changed | key=%s | value=%r", key, value)
        self._notify(key, value)

    def snapshot(self) -> dict[str, Any]:
        """Return a copy of every recognised setting's current value."""
        return {key: self._values.get(key) for key in self._defaults}

    def reset(self) -> None:
        """Restore every recognised setting to its default."""
        for key, value in self._defaults.items():
            self.set(key, value)

    # ------------------------------------------------------------------
    # Persisted-token slot
    # ------------------------------------------------------------------

    def get_token(self) -> str | None:
        return self._token

    def set_token(self, token: str | None) -> None:
        if token == self._token:
            return
        self._token = token
        self._save()
        logger.info("Access token %s", "stored" if token else "cleared")

    # ------------------------------------------------------------------
    # Upload-history slot
    # ------------------------------------------------------------------

    def get_history(self) -> list[UploadHistoryEntry]:
        """Saved upload history, newest first, as independent copies."""
        return [dict(entry) for entry in self._history]  # type: ignore[misc]

    def set_history(self, entries: Iterable[UploadHistoryEntry]) -> None:
        history: list[UploadHistoryEntry] = [dict(entry) for entry in entries]  # type: ignore[misc]
        if history == self._history:
            return
        self._history = history
        self._save()
        logger.debug("Upload history saved | entries=%d", len(history))

    # ------------------------------------------------------------------
    # Change notifications
    # ------------------------------------------------------------------

    def subscribe(self, callback: Callable[[str, Any], None]) -> Callable[[], None]:
        """Register *callback* for setting changes.

        Returns:
            A zero-argument callable that removes the subscription.
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _notify(self, key: str, value: Any) -> None:
        for callback in list(self._subscribers):
            try:
                callback(key, value)
            except Exception:
                logger.exception("Settings subscriber failed | key=%s", key)
