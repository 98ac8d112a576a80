"""Data model for a validated GeoJSON feature.

A Record is one feature that passed the per-feature checks, kept as
close to its source form as possible so that exporting it again loses
nothing: the geometry object, the ``properties`` mapping and any other
feature members (``id``, ``bbox``, foreign members) all survive.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any

from mapalister.core.constants import NOTES_PROPERTY

# Feature members held in dedicated fields rather than ``extra``.
_FEATURE_MEMBERS = frozenset({"type", "geometry", "properties"})


@dataclass(frozen=True, slots=True)
class Record:
    """A single validated feature.

    Attributes:
        geometry: The GeoJSON geometry object (``type``, ``coordinates``, ...).
        attributes: The feature's ``properties`` mapping.
        extra: Other feature members such as ``id`` or ``bbox``.
        source_index: Zero-based position of the feature in the uploaded file.
    """

    geometry: dict[str, Any]
    attributes: dict[str, Any] = field(default_factory=dict)
    extra: dict[str, Any] = field(default_factory=dict)
    source_index: int = 0

    @property
    def kind(self) -> str:
        """Geometry type (``"Point"``, ``"LineString"``, ...)."""
        return str(self.geometry.get("type", ""))

    @property
    def coordinates(self) -> Any:
        return self.geometry.get("coordinates")

    @property
    def notes(self) -> list[dict[str, Any]]:
        """User notes attached to this record (empty if none or malformed)."""
        notes = self.attributes.get(NOTES_PROPERTY)
        if not isinstance(notes, list):
            return []
        return [n for n in notes if isinstance(n, dict)]

    def to_dict(self) -> dict[str, Any]:
        """Serialise to an independent GeoJSON ``Feature`` dict."""
        feature: dict[str, Any] = {"type": "Feature"}
        feature.update(copy.deepcopy(self.extra))
        feature["geometry"] = copy.deepcopy(self.geometry)
        feature["properties"] = copy.deepcopy(self.attributes)
        return feature

    @classmethod
    def from_dict(cls, data: dict[str, Any], *, source_index: int = 0) -> Record:
        """Build a Record from a feature dict that already passed validation.

        The result shares no mutable state with *data*.

        Raises:
            TypeError: If ``geometry`` or ``properties`` is not a mapping.
        """
        geometry = data.get("geometry")
        if not isinstance(geometry, dict):
            msg = f"geometry must be a dict, got {type(geometry).__name__}"
            raise TypeError(msg)
        properties = data.get("properties")
        if not isinstance(properties, dict):
            msg = f"properties must be a dict, got {type(properties).__name__}"
            raise TypeError(msg)

        extra = {k: v for k, v in data.items() if k not in _FEATURE_MEMBERS}
        return cls(
            geometry=copy.deepcopy(geometry),
            attributes=copy.deepcopy(properties),
            extra=copy.deepcopy(extra),
            source_index=source_index,
        )
