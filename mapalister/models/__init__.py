"""Data models and schemas.

Defines the data structures used throughout the pipeline:
- Record: One validated GeoJSON feature
- ValidatedDocument / ValidationReport: Validation output
- ExtractedMetadata / ReferencePoint: Embedded application metadata
- ExportUserData / NotesInfo: The ``userData`` block written on export
"""

from mapalister.models.document import ValidatedDocument, ValidationReport
from mapalister.models.feature import Record
from mapalister.models.metadata import (
    ExportUserData,
    ExtractedMetadata,
    NotesInfo,
    ReferencePoint,
    merge_references,
)

__all__ = [
    "ExportUserData",
    "ExtractedMetadata",
    "NotesInfo",
    "Record",
    "ReferencePoint",
    "ValidatedDocument",
    "ValidationReport",
    "merge_references",
]
