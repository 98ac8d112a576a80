"""Validation helpers for uploaded GeoJSON.

Responsibilities:
- JSON parsing with position-aware errors
- Document-level FeatureCollection shape checks (fatal)
- Per-feature structure and Point coordinate bounds checks (non-fatal)
"""

from __future__ import annotations

import json
import logging
from typing import Any

from mapalister.activities.validate_upload._constants import (
    FEATURE_TYPE,
    MAX_LATITUDE,
    MAX_LONGITUDE,
    MIN_LATITUDE,
    MIN_LONGITUDE,
    NESTED_COORDINATE_KINDS,
    POINT,
)
from mapalister.core.exceptions import ValidationError
from mapalister.models.document import FEATURE_COLLECTION

logger = logging.getLogger("mapalister.activities.validate_upload")


# ---------------------------------------------------------------------------
# Exceptions (public API, re-exported from __init__)
# ---------------------------------------------------------------------------


class ParseError(ValidationError):
    """Raised when the upload is not valid JSON text.

    Attributes:
        offset: Character offset of the syntax error, if known.
        line: 1-based line of the syntax error, if known.
        column: 1-based column of the syntax error, if known.
    """

    default_stage = "validate_upload"
    default_code = "UPLOAD_PARSE_FAILED"

    def __init__(
        self,
        message: str = "",
        *,
        offset: int | None = None,
        line: int | None = None,
        column: int | None = None,
        **kwargs: object,
    ) -> None:
        self.offset = offset
        self.line = line
        self.column = column
        super().__init__(message, **kwargs)


class SchemaError(ValidationError):
    """Raised when the document is JSON but not a usable FeatureCollection.

    Attributes:
        expectation: Which expectation was violated (``"object"``,
            ``"type_present"``, ``"type_value"``, ``"features_present"``,
            ``"features_array"`` or ``"features_non_empty"``).
    """

    default_stage = "validate_upload"
    default_code = "UPLOAD_SCHEMA_INVALID"

    def __init__(self, message: str = "", *, expectation: str = "", **kwargs: object) -> None:
        self.expectation = expectation
        super().__init__(message, **kwargs)


class NoValidFeaturesError(ValidationError):
    """Raised when every feature in the document failed validation.

    Attributes:
        errors: Distinct error messages aggregated across all features.
    """

    default_stage = "validate_upload"
    default_code = "UPLOAD_NO_VALID_FEATURES"

    def __init__(self, errors: tuple[str, ...] | list[str], **kwargs: object) -> None:
        self.errors = tuple(errors)
        message = f"No valid features found in GeoJSON file. Issues found: {', '.join(self.errors)}"
        super().__init__(message, **kwargs)


# ---------------------------------------------------------------------------
# JSON parsing
# ---------------------------------------------------------------------------


def _reject_constant(name: str) -> float:
    msg = f"Invalid JSON constant {name}"
    raise ValueError(msg)


def parse_json(text: str, *, source: str = "") -> Any:
    """Parse *text* as strict JSON (``NaN``/``Infinity`` are rejected).

    Raises:
        ParseError: With the character offset, line and column of the
            syntax error when the parser reports them.
    """
    try:
        return json.loads(text, parse_constant=_reject_constant)
    except json.JSONDecodeError as exc:
        msg = (
            f"Invalid JSON format at position {exc.pos} (line {exc.lineno}, column {exc.colno}). "
            "Please check your file for syntax errors."
        )
        raise ParseError(
            msg, offset=exc.pos, line=exc.lineno, column=exc.colno, source=source
        ) from exc
    except ValueError as exc:
        msg = f"JSON parsing failed: {exc}"
        raise ParseError(msg, source=source) from exc


# ---------------------------------------------------------------------------
# Document-level shape
# ---------------------------------------------------------------------------


def check_collection(root: object, *, source: str = "") -> list[Any]:
    """Check the document is a non-empty FeatureCollection.

    Returns:
        The ``features`` array.

    Raises:
        SchemaError: Naming the first expectation the document violates.
    """
    if not isinstance(root, dict):
        raise SchemaError(
            "File must contain a valid JSON object", expectation="object", source=source
        )

    doc_type = root.get("type")
    if doc_type is None or doc_type == "":
        raise SchemaError(
            'GeoJSON must have a "type" property', expectation="type_present", source=source
        )

    if doc_type != FEATURE_COLLECTION:
        msg = (
            f'Expected FeatureCollection, but found "{doc_type}". '
            "Please ensure your file is a valid GeoJSON FeatureCollection."
        )
        raise SchemaError(msg, expectation="type_value", source=source)

    if root.get("features") is None:
        raise SchemaError(
            'GeoJSON FeatureCollection must contain a "features" property',
            expectation="features_present",
            source=source,
        )

    features = root["features"]
    if not isinstance(features, list):
        raise SchemaError(
            'GeoJSON "features" must be an array', expectation="features_array", source=source
        )

    if not features:
        raise SchemaError(
            "GeoJSON file contains no features. Please ensure your file has location data.",
            expectation="features_non_empty",
            source=source,
        )

    return features


# ---------------------------------------------------------------------------
# Per-feature checks
# ---------------------------------------------------------------------------


def _is_number(value: object) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def _point_errors(coords: object) -> list[str]:
    if not isinstance(coords, list):
        return ["Point coordinates must be an array"]
    if len(coords) < 2:
        return ["Point coordinates must have at least 2 elements [lng, lat]"]

    lng, lat = coords[0], coords[1]
    if not (_is_number(lng) and _is_number(lat)):
        return ["Coordinates must be numbers"]

    errors: list[str] = []
    if not MIN_LONGITUDE <= lng <= MAX_LONGITUDE:
        errors.append(f"Invalid longitude: {lng} (must be between -180 and 180)")
    if not MIN_LATITUDE <= lat <= MAX_LATITUDE:
        errors.append(f"Invalid latitude: {lat} (must be between -90 and 90)")
    return errors


def validate_feature(feature: object) -> list[str]:
    """Return every problem with one feature; an empty list means valid.

    Never raises: all violations accumulate so a single pass reports
    everything wrong with the feature.
    """
    if not isinstance(feature, dict):
        return ["Feature is not an object"]

    errors: list[str] = []

    if feature.get("type") != FEATURE_TYPE:
        errors.append(f'Invalid type: "{feature.get("type")}" (expected "Feature")')

    geometry = feature.get("geometry")
    if geometry is None:
        errors.append("Missing geometry property")

    properties = feature.get("properties")
    if properties is None:
        errors.append("Missing properties property")
    elif not isinstance(properties, dict):
        errors.append("Properties must be an object")

    if geometry is None:
        return errors
    if not isinstance(geometry, dict):
        errors.append("Geometry must be an object")
        return errors

    kind = geometry.get("type")
    coords = geometry.get("coordinates")
    if not kind:
        errors.append("Geometry missing type")
    if coords is None:
        errors.append("Geometry missing coordinates")
        return errors

    if kind == POINT:
        errors.extend(_point_errors(coords))
    elif kind in NESTED_COORDINATE_KINDS and not (isinstance(coords, list) and coords):
        errors.append(f"{kind} coordinates must be a non-empty array")

    return errors
