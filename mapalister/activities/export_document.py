"""Round-trip export activity — write the current document back out.

The export is a deep copy of the validated document whose ``userData``
block is rebuilt from live application state, so that uploading the
exported file later restores the same settings, token and reference
points:

- ``username``        — identity collaborator, else the last extracted
  username, else a placeholder.
- ``mapboxUserToken`` — the store's persisted-token slot, else the last
  extracted token.
- ``settings``        — the store snapshot re-nested into the
  ``notifications`` / ``display`` groups documents use.
- ``recentReferences`` — the live reference point first, then previously
  known points newest first, capped.
- ``notesInfo``       — a count of user notes across all records.

Rebuilding ``userData`` is best-effort: if it fails the plain document
copy is returned and the failure is logged.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from mapalister.core.constants import (
    CURRENT_REFERENCE_NAME,
    DEFAULT_EXPORT_VERSION,
    DEFAULT_MAX_REFERENCES,
    DEFAULT_REFERENCE_NAME,
    DISPLAY_GROUP,
    DISPLAY_KEYS,
    NOTIFICATIONS_GROUP,
    NOTIFICATIONS_PREFIX,
    PLACEHOLDER_USERNAME,
)
from mapalister.core.exceptions import ContractError
from mapalister.models.metadata import (
    ExportUserData,
    NotesInfo,
    ReferencePoint,
    merge_references,
)
from mapalister.utils.helpers import isoformat_utc, parse_timestamp

if TYPE_CHECKING:
    from collections.abc import Iterable

    from mapalister.core.collaborators import IdentityProvider, ReferenceMarker
    from mapalister.models.document import ValidatedDocument
    from mapalister.models.feature import Record
    from mapalister.models.metadata import ExtractedMetadata
    from mapalister.stores.base import SettingsStore

logger = logging.getLogger("mapalister.activities.export_document")


def settings_snapshot(store: SettingsStore) -> dict[str, Any]:
    """Return the store's settings in the nested shape documents carry.

    ``notifications_<k>`` keys go under ``notifications``, display keys
    under ``display``; everything else stays at the top level.
    """
    nested: dict[str, Any] = {NOTIFICATIONS_GROUP: {}, DISPLAY_GROUP: {}}
    for key, value in store.snapshot().items():
        if key.startswith(NOTIFICATIONS_PREFIX):
            nested[NOTIFICATIONS_GROUP][key.removeprefix(NOTIFICATIONS_PREFIX)] = value
        elif key in DISPLAY_KEYS:
            nested[DISPLAY_GROUP][key] = value
        else:
            nested[key] = value
    return nested


def compute_notes_info(records: Iterable[Record]) -> NotesInfo:
    """Count user notes across *records* and find the latest note timestamp.

    The latest timestamp is written in UTC with a ``Z`` suffix whatever
    offset the note carried.
    """
    total = 0
    latest: datetime | None = None
    for record in records:
        for note in record.notes:
            total += 1
            moment = parse_timestamp(note.get("timestamp"))
            if moment is not None and (latest is None or moment > latest):
                latest = moment
    return NotesInfo(
        total_notes=total,
        last_note_date=isoformat_utc(latest) if latest is not None else None,
    )


def _resolve_username(
    identity: IdentityProvider | None,
    extracted: ExtractedMetadata | None,
) -> str:
    if identity is not None:
        user = identity.current_user() or {}
        if not isinstance(user, dict):
            msg = f"IdentityProvider.current_user returned {type(user).__name__}, expected a dict"
            raise ContractError(msg, stage="export_document", code="IDENTITY_CONTRACT")
        name = user.get("email") or user.get("name")
        if name:
            return name
    if extracted is not None and extracted.username:
        return extracted.username
    return PLACEHOLDER_USERNAME


def _live_reference(
    references: ReferenceMarker | None,
    now: datetime,
) -> ReferencePoint | None:
    if references is None:
        return None
    live = references.current()
    if live is not None and not isinstance(live, ReferencePoint):
        msg = f"ReferenceMarker.current returned {type(live).__name__}, expected a ReferencePoint"
        raise ContractError(msg, stage="export_document", code="REFERENCE_CONTRACT")
    if live is None or not live.is_complete:
        return None
    name = CURRENT_REFERENCE_NAME if live.name == DEFAULT_REFERENCE_NAME else live.name
    return live.model_copy(update={"name": name, "timestamp": isoformat_utc(now)})


def build_user_data(
    document: ValidatedDocument,
    store: SettingsStore,
    *,
    identity: IdentityProvider | None = None,
    references: ReferenceMarker | None = None,
    extracted: ExtractedMetadata | None = None,
    version: str = DEFAULT_EXPORT_VERSION,
    max_references: int = DEFAULT_MAX_REFERENCES,
    now: datetime | None = None,
) -> ExportUserData:
    """Assemble the ``userData`` block from live state.

    Raises:
        ContractError: If a collaborator returns a value of the wrong shape.
    """
    now = now or datetime.now(UTC)
    token = store.get_token() or (extracted.mapbox_token if extracted else None)
    known = extracted.recent_references if extracted else []

    return ExportUserData(
        username=_resolve_username(identity, extracted),
        mapbox_user_token=token,
        last_modified=isoformat_utc(now),
        version=version,
        settings=settings_snapshot(store),
        recent_references=merge_references(
            _live_reference(references, now), known, limit=max_references
        ),
        custom_notes=f"Enhanced export from MapaLister on {now.date().isoformat()}",
        notes_info=compute_notes_info(document.records),
    )


def export_document(
    document: ValidatedDocument,
    store: SettingsStore,
    *,
    identity: IdentityProvider | None = None,
    references: ReferenceMarker | None = None,
    extracted: ExtractedMetadata | None = None,
    version: str = DEFAULT_EXPORT_VERSION,
    max_references: int = DEFAULT_MAX_REFERENCES,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Produce an exportable copy of *document* with refreshed ``userData``.

    Returns:
        A new GeoJSON dict sharing nothing with *document*.  If rebuilding
        ``userData`` fails, the plain copy (original ``userData``, if any)
        is returned instead.
    """
    exported = document.to_dict()
    try:
        user_data = build_user_data(
            document,
            store,
            identity=identity,
            references=references,
            extracted=extracted,
            version=version,
            max_references=max_references,
            now=now,
        )
    except Exception:
        logger.exception("Failed to rebuild userData; exporting document unchanged")
        return exported

    exported["userData"] = user_data.to_dict()
    logger.info(
        "Export built | features=%d | references=%d | notes=%d",
        document.feature_count,
        len(user_data.recent_references),
        user_data.notes_info.total_notes,
    )
    return exported


def serialize_export(exported: dict[str, Any]) -> bytes:
    """Encode an exported document as indented UTF-8 JSON."""
    return json.dumps(exported, indent=2, ensure_ascii=False).encode("utf-8")
