"""Deterministic download filenames for exported documents.

    {base}_enhanced_{YYYY-MM-DD}.geojson

``base`` is the uploaded filename with a trailing ``.geojson`` or
``.json`` removed (case-insensitive).  The date is the UTC calendar date
of the export.
"""

from __future__ import annotations

import re
from datetime import UTC, datetime

from mapalister.core.constants import EXPORT_SUFFIX

EXPORT_MARKER = "enhanced"
FALLBACK_BASE = "export"

_UPLOAD_SUFFIX_RE = re.compile(r"\.(geojson|json)$", re.IGNORECASE)


def strip_upload_suffix(file_name: str) -> str:
    """Remove a trailing ``.geojson``/``.json`` suffix, keeping everything else."""
    return _UPLOAD_SUFFIX_RE.sub("", file_name)


def build_export_filename(file_name: str, when: datetime | None = None) -> str:
    """Build the download filename for an export of *file_name*.

    Args:
        file_name: Name of the uploaded file (e.g. ``"contacts.GeoJSON"``).
        when: Export time.  Defaults to now; naive values are taken as UTC.

    Returns:
        e.g. ``"contacts_enhanced_2025-03-14.geojson"``.
    """
    ts = when or datetime.now(UTC)
    if ts.tzinfo is not None:
        ts = ts.astimezone(UTC)
    base = strip_upload_suffix(file_name.strip()) or FALLBACK_BASE
    return f"{base}_{EXPORT_MARKER}_{ts:%Y-%m-%d}{EXPORT_SUFFIX}"
