"""Settings merge & apply activity — write extracted metadata into the store.

Only keys the Settings Store recognises are forwarded; anything else is
dropped so files from older or newer releases still load.  The nested
groups documents use are flattened into the store's flat namespace:

- ``settings.notifications.<k>`` → ``notifications_<k>``
- ``settings.display.<k>``       → ``<k>``

Legacy flat preferences (``distanceUnit``, ``mapStyle``,
``sidebarPosition``, ``autoCenter``) are forwarded after the structured
block, so on conflict the flat value wins.  The flattened batch is
normalised as a whole, so values reach the store in the same form an
exported-then-reimported file would produce.

A single upload can produce several overlapping applications in quick
succession.  ``SettingsApplier.apply`` routes them through a
``CoalescingScheduler``: only the last payload in the window reaches the
store, once, so subscribers never observe intermediate states.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from mapalister.activities.extract_metadata import normalize_flat_settings
from mapalister.core.constants import (
    DEFAULT_DEBOUNCE_MS,
    DISPLAY_GROUP,
    LEGACY_OVERRIDE_KEYS,
    NOTIFICATIONS_GROUP,
    NOTIFICATIONS_PREFIX,
)
from mapalister.core.scheduler import CoalescingScheduler
from mapalister.utils.helpers import as_dict

if TYPE_CHECKING:
    import asyncio
    from collections.abc import Iterable

    from mapalister.core.collaborators import MapView, ReferenceMarker
    from mapalister.models.metadata import ExtractedMetadata, ReferencePoint
    from mapalister.stores.base import SettingsStore

logger = logging.getLogger("mapalister.activities.apply_settings")


@dataclass(frozen=True, slots=True)
class ApplyResult:
    """Outcome of one settings application.

    Attributes:
        settings_applied: Number of recognised settings written to the store.
        token_applied: Whether an access token was written to the token slot.
        view_needs_init: Whether the map view must be (re)initialised to
            pick up the new token.  Initialisation itself is the caller's job.
        reference_adopted: The reference point handed to the reference
            marker, if any.
    """

    settings_applied: int = 0
    token_applied: bool = False
    view_needs_init: bool = False
    reference_adopted: ReferencePoint | None = None


def build_settings_batch(
    metadata: ExtractedMetadata,
    known_keys: Iterable[str],
) -> dict[str, Any]:
    """Flatten and filter *metadata* into store writes.

    Returns:
        Ordered ``{key: value}`` of recognised settings, normalised
        with the same rules as structured settings blocks.  When the same key
        arrives from several places the later one (legacy flat overrides
        last) wins.
    """
    known = frozenset(known_keys)
    batch: dict[str, Any] = {}

    settings = metadata.settings or {}
    for key, value in settings.items():
        if key in known:
            batch[key] = value

    notifications = as_dict(settings.get(NOTIFICATIONS_GROUP)) or {}
    for key, value in notifications.items():
        flat_key = f"{NOTIFICATIONS_PREFIX}{key}"
        if flat_key in known:
            batch[flat_key] = value

    display = as_dict(settings.get(DISPLAY_GROUP)) or {}
    for key, value in display.items():
        if key in known:
            batch[key] = value

    for key in LEGACY_OVERRIDE_KEYS:
        if key in metadata.overrides and key in known:
            batch[key] = metadata.overrides[key]

    dropped = (
        set(settings) - known - {NOTIFICATIONS_GROUP, DISPLAY_GROUP}
    )
    if dropped:
        logger.debug("Dropping unrecognised settings: %s", ", ".join(sorted(dropped)))

    return normalize_flat_settings(batch)


class SettingsApplier:
    """Applies extracted metadata to a settings store, debounced.

    Args:
        store: Destination settings store.
        references: Reference-marker collaborator, if one is available.
        view: Map view whose readiness decides ``view_needs_init``.
        delay: Coalescing window in seconds.
    """

    def __init__(
        self,
        store: SettingsStore,
        *,
        references: ReferenceMarker | None = None,
        view: MapView | None = None,
        delay: float = DEFAULT_DEBOUNCE_MS / 1000.0,
    ) -> None:
        self._store = store
        self._references = references
        self._view = view
        self._scheduler: CoalescingScheduler[ExtractedMetadata, ApplyResult] = (
            CoalescingScheduler(self.apply_now, delay)
        )

    @property
    def is_pending(self) -> bool:
        return self._scheduler.is_pending

    def apply(self, metadata: ExtractedMetadata) -> asyncio.Future[ApplyResult]:
        """Schedule *metadata* for application, superseding any pending payload.

        Must be called from a running event loop.  Await the result to
        learn when (and how) the coalesced application completed.
        """
        return self._scheduler.schedule(metadata)

    def apply_now(self, metadata: ExtractedMetadata) -> ApplyResult:
        """Apply *metadata* immediately, bypassing the coalescing window."""
        batch = build_settings_batch(metadata, self._store.known_keys)
        for key, value in batch.items():
            self._store.set(key, value)

        token_applied = False
        view_needs_init = False
        if metadata.mapbox_token:
            self._store.set_token(metadata.mapbox_token)
            token_applied = True
            view_needs_init = self._view is None or not self._view.is_loaded()

        adopted = self._adopt_most_recent(metadata)

        if batch:
            logger.info("Applied %d user settings from uploaded file", len(batch))

        return ApplyResult(
            settings_applied=len(batch),
            token_applied=token_applied,
            view_needs_init=view_needs_init,
            reference_adopted=adopted,
        )

    def _adopt_most_recent(self, metadata: ExtractedMetadata) -> ReferencePoint | None:
        points = metadata.reference_points()
        if not points or self._references is None:
            return None

        most_recent = points[0]
        try:
            self._references.adopt(most_recent)
        except Exception as exc:
            logger.warning("Failed to apply recent reference %r: %s", most_recent.name, exc)
            return None

        logger.info("Applied recent reference: %s", most_recent.name)
        return most_recent
