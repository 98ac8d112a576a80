"""Validated document and validation report models.

``ValidatedDocument`` is what the pipeline holds as its "current
document" after a successful upload, and what the exporter copies.
``ValidationReport`` summarises which features survived validation and
why the others did not; callers use it to warn, never to block.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any

from mapalister.models.feature import Record

FEATURE_COLLECTION = "FeatureCollection"


@dataclass(frozen=True, slots=True)
class ValidationReport:
    """Aggregate outcome of per-feature validation.

    Attributes:
        valid_count: Number of features that passed every check.
        invalid_count: Number of features dropped.
        errors: Distinct error messages across all invalid features, in
            first-seen order.
        valid_indices: Source indices of the surviving features.
        issues: Per-feature error lists, keyed by source index of each
            invalid feature.
    """

    valid_count: int = 0
    invalid_count: int = 0
    errors: tuple[str, ...] = ()
    valid_indices: frozenset[int] = frozenset()
    issues: dict[int, list[str]] = field(default_factory=dict)

    @property
    def total_count(self) -> int:
        return self.valid_count + self.invalid_count

    @property
    def has_dropped(self) -> bool:
        """Whether any feature was dropped."""
        return self.invalid_count > 0

    def sample_errors(self, limit: int = 3) -> list[str]:
        """Return up to *limit* distinct error messages for user feedback."""
        return list(self.errors[:limit])

    def summary(self) -> str:
        """One-line user-facing summary of the validation outcome."""
        if not self.has_dropped:
            return f"{self.valid_count} features loaded successfully."
        return (
            f"Skipped {self.invalid_count} invalid features. "
            f"{self.valid_count} features loaded successfully."
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "valid_count": self.valid_count,
            "invalid_count": self.invalid_count,
            "errors": list(self.errors),
            "valid_indices": sorted(self.valid_indices),
        }


@dataclass(frozen=True, slots=True)
class ValidatedDocument:
    """A FeatureCollection reduced to its valid features.

    Attributes:
        records: Surviving features, in their original relative order.
        members: Every other top-level member of the uploaded document
            (``userData``, ``name``, ``crs``, ...), preserved for export.
    """

    records: tuple[Record, ...]
    members: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.records:
            msg = "ValidatedDocument requires at least one record"
            raise ValueError(msg)

    @property
    def type(self) -> str:
        return FEATURE_COLLECTION

    @property
    def feature_count(self) -> int:
        return len(self.records)

    def to_dict(self) -> dict[str, Any]:
        """Serialise to an independent GeoJSON ``FeatureCollection`` dict.

        Nothing in the returned dict is shared with this document, so
        callers may mutate it freely.
        """
        document: dict[str, Any] = {"type": FEATURE_COLLECTION}
        for key, value in self.members.items():
            document[key] = copy.deepcopy(value)
        document["features"] = [record.to_dict() for record in self.records]
        return document

    @classmethod
    def from_root(cls, root: dict[str, Any], records: list[Record]) -> ValidatedDocument:
        """Build a document from the parsed root object and its surviving records."""
        members = {k: copy.deepcopy(v) for k, v in root.items() if k not in ("type", "features")}
        return cls(records=tuple(records), members=members)
