"""Pydantic models for embedded application metadata.

Uploaded documents can carry the user's application state alongside
the geographic data: settings, an access token, recent reference
points, authorship and free-form notes.  These models describe that
state on the way in (``ExtractedMetadata``) and on the way out
(``ExportUserData``, written as the document's ``userData`` block).

Field names are snake_case in Python and camelCase on the wire; every
model accepts either form and serialises with the wire aliases.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from mapalister.core.constants import (
    DEFAULT_EXPORT_VERSION,
    DEFAULT_MAX_REFERENCES,
    DEFAULT_REFERENCE_NAME,
    NOTES_VERSION,
    PLACEHOLDER_USERNAME,
)
from mapalister.utils.helpers import parse_timestamp

if TYPE_CHECKING:
    from mapalister.models.contracts import UserDataPayload

_EPOCH = datetime.min.replace(tzinfo=UTC)


class ReferencePoint(BaseModel):
    """A named location the user measured distances from.

    Attributes:
        name: Display name of the point.
        lat: Latitude in decimal degrees.
        lng: Longitude in decimal degrees.
        timestamp: When the point was set (ISO 8601).
    """

    name: str = DEFAULT_REFERENCE_NAME
    lat: float | None = None
    lng: float | None = None
    timestamp: str | None = None

    model_config = {"extra": "ignore"}

    @field_validator("name", mode="before")
    @classmethod
    def _default_blank_name(cls, value: object) -> object:
        if value is None or (isinstance(value, str) and not value.strip()):
            return DEFAULT_REFERENCE_NAME
        return value

    @property
    def is_complete(self) -> bool:
        """Whether both coordinates are defined (required for retention)."""
        return self.lat is not None and self.lng is not None

    @property
    def set_at(self) -> datetime:
        """Parsed ``timestamp``; unparseable values sort as oldest."""
        return parse_timestamp(self.timestamp) or _EPOCH

    @classmethod
    def from_raw(cls, raw: object) -> ReferencePoint | None:
        """Parse a reference point from untrusted document content.

        Returns:
            The point, or ``None`` if *raw* is not an object or its
            fields cannot be coerced.
        """
        if not isinstance(raw, dict):
            return None
        try:
            return cls.model_validate(raw)
        except PydanticValidationError:
            return None


def complete_references(raw_references: object) -> list[ReferencePoint]:
    """Parse *raw_references* keeping only points with both coordinates."""
    if not isinstance(raw_references, list):
        return []
    points = (ReferencePoint.from_raw(item) for item in raw_references)
    return [p for p in points if p is not None and p.is_complete]


def most_recent_first(points: list[ReferencePoint]) -> list[ReferencePoint]:
    """Sort points by timestamp, newest first (stable for ties)."""
    return sorted(points, key=lambda p: p.set_at, reverse=True)


def merge_references(
    live: ReferencePoint | None,
    known: object,
    *,
    limit: int = DEFAULT_MAX_REFERENCES,
) -> list[ReferencePoint]:
    """Combine the live reference point with previously known ones.

    The live point (if complete) leads; known points follow newest first.
    Incomplete points are dropped and the result is capped at *limit*.
    """
    merged: list[ReferencePoint] = []
    if live is not None and live.is_complete:
        merged.append(live)
    merged.extend(most_recent_first(complete_references(known)))
    return merged[:limit]


class ExtractedMetadata(BaseModel):
    """Application metadata folded together from an uploaded document.

    Attributes:
        settings: Normalised structured settings block, if any.
        mapbox_token: Access token that passed the format check.
        recent_references: Reference points exactly as found in the document.
        username: Author identity recorded in the document.
        custom_notes: Free-form notes recorded in the document.
        overrides: Legacy flat preference values (``distanceUnit``, ...).
        raw: The full merged metadata bag, before interpretation.
        warnings: Non-fatal anomalies met during extraction.
    """

    settings: dict[str, Any] | None = None
    mapbox_token: str | None = Field(default=None, alias="mapboxUserToken")
    recent_references: list[Any] = Field(default_factory=list, alias="recentReferences")
    username: str | None = None
    custom_notes: str | None = Field(default=None, alias="customNotes")
    overrides: dict[str, Any] = Field(default_factory=dict)
    raw: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)

    model_config = {"populate_by_name": True}

    @property
    def is_empty(self) -> bool:
        """Whether the document carried no usable metadata at all."""
        return not self.raw and self.mapbox_token is None

    def reference_points(self) -> list[ReferencePoint]:
        """Complete reference points, newest first."""
        return most_recent_first(complete_references(self.recent_references))


class NotesInfo(BaseModel):
    """Summary of the user notes attached to a document's records."""

    total_notes: int = Field(default=0, alias="totalNotes")
    last_note_date: str | None = Field(default=None, alias="lastNoteDate")
    notes_version: str = Field(default=NOTES_VERSION, alias="notesVersion")

    model_config = {"populate_by_name": True}


class ExportUserData(BaseModel):
    """The ``userData`` block written into exported documents."""

    username: str = PLACEHOLDER_USERNAME
    mapbox_user_token: str | None = Field(default=None, alias="mapboxUserToken")
    last_modified: str = Field(default="", alias="lastModified")
    version: str = DEFAULT_EXPORT_VERSION
    settings: dict[str, Any] = Field(default_factory=dict)
    recent_references: list[ReferencePoint] = Field(
        default_factory=list, alias="recentReferences"
    )
    custom_notes: str = Field(default="", alias="customNotes")
    notes_info: NotesInfo = Field(default_factory=NotesInfo, alias="notesInfo")

    model_config = {"populate_by_name": True}

    def to_dict(self) -> UserDataPayload:
        """Serialise with wire (camelCase) field names."""
        return self.model_dump(by_alias=True)  # type: ignore[return-value]
