"""Upload validation activity — structural checks with partial-failure recovery.

Turns uploaded text into a ``ValidatedDocument`` plus a
``ValidationReport``.  Geographic files are routinely hand-edited or
exported from assorted tools, so one bad feature must not sink the rest
of the upload: the policy is to keep every feature that passes and
report the ones that do not.

The validation pipeline is split into focused stages:
- **parse_json**: strict JSON parsing with position-aware errors
- **check_collection**: document-level FeatureCollection shape (fatal)
- **validate_feature**: per-feature structure and Point bounds (non-fatal)
- **validate_features**: aggregate per-feature results into a report

Fatal outcomes raise ``ParseError``, ``SchemaError`` or
``NoValidFeaturesError``; everything else lands in the report.
"""

from __future__ import annotations

import logging
from typing import Any

from mapalister.activities.validate_upload._constants import (
    MAX_LATITUDE,
    MAX_LONGITUDE,
    MIN_LATITUDE,
    MIN_LONGITUDE,
)
from mapalister.activities.validate_upload._validation import (
    NoValidFeaturesError,
    ParseError,
    SchemaError,
    check_collection,
    parse_json,
    validate_feature,
)
from mapalister.core.constants import DEFAULT_MAX_LOGGED_INVALID
from mapalister.models.document import ValidatedDocument, ValidationReport
from mapalister.models.feature import Record

logger = logging.getLogger("mapalister.activities.validate_upload")

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

__all__ = [
    "MAX_LATITUDE",
    "MAX_LONGITUDE",
    "MIN_LATITUDE",
    "MIN_LONGITUDE",
    "NoValidFeaturesError",
    "ParseError",
    "SchemaError",
    "check_collection",
    "parse_json",
    "validate_document",
    "validate_feature",
    "validate_features",
    "validate_upload",
]


def validate_features(
    features: list[Any],
    *,
    max_logged: int = DEFAULT_MAX_LOGGED_INVALID,
) -> ValidationReport:
    """Validate each feature independently and aggregate the outcome.

    Args:
        features: The document's ``features`` array.
        max_logged: Only the first *max_logged* invalid features are
            logged individually.

    Returns:
        A ``ValidationReport``; never raises for per-feature problems.
    """
    valid_indices: set[int] = set()
    distinct: dict[str, None] = {}
    issues: dict[int, list[str]] = {}

    for index, feature in enumerate(features):
        errors = validate_feature(feature)
        if not errors:
            valid_indices.add(index)
            continue

        issues[index] = errors
        distinct.update(dict.fromkeys(errors))
        if len(issues) <= max_logged:
            logger.warning("Invalid feature at index %d: %s", index, ", ".join(errors))

    return ValidationReport(
        valid_count=len(valid_indices),
        invalid_count=len(issues),
        errors=tuple(distinct),
        valid_indices=frozenset(valid_indices),
        issues=issues,
    )


def validate_document(
    root: object,
    *,
    source: str = "",
    max_logged: int = DEFAULT_MAX_LOGGED_INVALID,
) -> tuple[ValidatedDocument, ValidationReport]:
    """Validate an already-parsed document.

    Raises:
        SchemaError: If the document is not a non-empty FeatureCollection.
        NoValidFeaturesError: If no feature survives validation.
    """
    features = check_collection(root, source=source)
    report = validate_features(features, max_logged=max_logged)

    if report.valid_count == 0:
        raise NoValidFeaturesError(report.errors, source=source)

    if report.has_dropped:
        logger.warning(
            "%d invalid features found and will be ignored | file=%s | common issues: %s",
            report.invalid_count,
            source,
            ", ".join(report.sample_errors()),
        )

    records = [
        Record.from_dict(feature, source_index=index)
        for index, feature in enumerate(features)
        if index in report.valid_indices
    ]
    document = ValidatedDocument.from_root(root, records)  # type: ignore[arg-type]

    logger.info(
        "Upload validated | file=%s | valid=%d | invalid=%d",
        source,
        report.valid_count,
        report.invalid_count,
    )
    return document, report


def validate_upload(
    text: str,
    *,
    source: str = "",
    max_logged: int = DEFAULT_MAX_LOGGED_INVALID,
) -> tuple[ValidatedDocument, ValidationReport, dict[str, Any]]:
    """Parse and validate uploaded GeoJSON text.

    Args:
        text: The uploaded file content.
        source: Original filename, for messages and logs.
        max_logged: Number of invalid features logged individually.

    Returns:
        ``(document, report, root)`` where *root* is the parsed top-level
        object, which the metadata extractor reads.

    Raises:
        ParseError: If *text* is not valid JSON.
        SchemaError: If the document is not a non-empty FeatureCollection.
        NoValidFeaturesError: If no feature survives validation.
    """
    root = parse_json(text, source=source)
    document, report = validate_document(root, source=source, max_logged=max_logged)
    return document, report, root
