"""Wire shapes exchanged at the pipeline's boundaries.

Documents travel as plain JSON dicts (parsed uploads in, exported files
out), so their shapes are declared as ``TypedDict`` rather than
dataclasses.  ``total=False`` marks members older files may omit.
"""

from __future__ import annotations

from typing import Any, TypedDict


class ReferencePointPayload(TypedDict, total=False):
    """Serialised ``ReferencePoint``."""

    name: str
    lat: float | None
    lng: float | None
    timestamp: str | None


class NotesInfoPayload(TypedDict):
    totalNotes: int
    lastNoteDate: str | None
    notesVersion: str


class UserDataPayload(TypedDict):
    """``userData`` block written by the exporter."""

    username: str
    mapboxUserToken: str | None
    lastModified: str
    version: str
    settings: dict[str, Any]
    recentReferences: list[ReferencePointPayload]
    customNotes: str
    notesInfo: NotesInfoPayload


class UploadHistoryEntry(TypedDict):
    """One remembered upload."""

    file_name: str
    feature_count: int
    upload_date: str


class UploadStatus(TypedDict):
    """Snapshot returned by ``UploadPipeline.status()``."""

    has_uploaded_data: bool
    current_file_name: str | None
    feature_count: int
    has_user_data: bool
    upload_history: list[UploadHistoryEntry]
