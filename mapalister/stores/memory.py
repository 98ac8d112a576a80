"""In-memory settings store.

Holds settings for the lifetime of the process only.  Used by default
and throughout the test suite.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from mapalister.stores.base import SettingsStore

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from mapalister.models.contracts import UploadHistoryEntry


class InMemorySettingsStore(SettingsStore):
    """Settings store with no persistence.

    Args:
        defaults: Catalog of recognised keys and defaults.
        initial: Values to start from instead of the defaults.
        token: Initial persisted-token value.
        history: Initial upload history, newest first.
    """

    def __init__(
        self,
        defaults: Mapping[str, Any] | None = None,
        *,
        initial: Mapping[str, Any] | None = None,
        token: str | None = None,
        history: Iterable[UploadHistoryEntry] = (),
    ) -> None:
        self._initial = dict(initial or {})
        self._initial_token = token
        self._initial_history = list(history)
        super().__init__(defaults)

    def _load(self) -> tuple[dict[str, Any], str | None, list[UploadHistoryEntry]]:
        return self._initial, self._initial_token, self._initial_history

    def _save(self) -> None:
        return None
