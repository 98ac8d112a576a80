"""Metadata extraction activity — recover application state from an upload.

Documents written by different releases of the application keep their
metadata in different places.  Each historical location is an
*extractor rule*: a pure function ``(root) -> dict | None``.  Rules run
in increasing precedence and are folded together, so a later rule's
keys overwrite an earlier rule's keys:

1. legacy top-level keys (``settings``, ``preferences``, ``userName``, ...)
2. ``properties.userSettings`` (stored under ``settings``)
3. ``metadata.userData``
4. root ``userData`` — the current format, highest precedence

The access token is the exception.  It is taken from the *first*
location in ``TOKEN_LOCATIONS`` holding a well-formed token, so a
lower-priority source can never silently replace the authoritative one.

This activity never raises: absent or malformed sources are skipped and
anything worth telling the user about is recorded in ``warnings``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from mapalister.core.constants import (
    BOOLEAN_SETTINGS,
    DEFAULT_DISTANCE_UNIT,
    DEFAULT_MAP_STYLE,
    DISPLAY_GROUP,
    DISPLAY_KEYS,
    DISTANCE_UNITS,
    LEGACY_METADATA_KEYS,
    LEGACY_OVERRIDE_KEYS,
    MAP_STYLES,
    NOTIFICATIONS_GROUP,
    NOTIFICATIONS_PREFIX,
    TOKEN_LOCATIONS,
    TOKEN_PATTERN,
)
from mapalister.models.metadata import ExtractedMetadata
from mapalister.utils.helpers import as_dict, dig

logger = logging.getLogger("mapalister.activities.extract_metadata")

ExtractorRule = Callable[[dict[str, Any]], dict[str, Any] | None]


# ---------------------------------------------------------------------------
# Extractor rules (lowest precedence first)
# ---------------------------------------------------------------------------


def legacy_top_level(root: dict[str, Any]) -> dict[str, Any] | None:
    """Known metadata keys stored directly on the document root."""
    found = {key: root[key] for key in LEGACY_METADATA_KEYS if root.get(key) is not None}
    return found or None


def properties_user_settings(root: dict[str, Any]) -> dict[str, Any] | None:
    """``properties.userSettings`` on the collection, mapped to ``settings``."""
    settings = as_dict(dig(root, ("properties", "userSettings")))
    return {"settings": settings} if settings is not None else None


def metadata_user_data(root: dict[str, Any]) -> dict[str, Any] | None:
    """``metadata.userData`` block."""
    return as_dict(dig(root, ("metadata", "userData")))


def root_user_data(root: dict[str, Any]) -> dict[str, Any] | None:
    """Root ``userData`` block, the current export format."""
    return as_dict(root.get("userData"))


EXTRACTOR_RULES: tuple[ExtractorRule, ...] = (
    legacy_top_level,
    properties_user_settings,
    metadata_user_data,
    root_user_data,
)


def fold_rules(
    root: dict[str, Any],
    rules: tuple[ExtractorRule, ...] = EXTRACTOR_RULES,
) -> dict[str, Any]:
    """Apply *rules* in order, later results overwriting earlier keys."""
    merged: dict[str, Any] = {}
    for rule in rules:
        partial = rule(root)
        if partial:
            logger.debug("Metadata rule matched | rule=%s | keys=%d", rule.__name__, len(partial))
            merged.update(partial)
    return merged


# ---------------------------------------------------------------------------
# Token discovery
# ---------------------------------------------------------------------------


def is_valid_token(token: object) -> bool:
    """Whether *token* has the ``pk.<segment>.<segment>`` shape."""
    return isinstance(token, str) and TOKEN_PATTERN.fullmatch(token) is not None


def find_token(root: dict[str, Any], warnings: list[str] | None = None) -> str | None:
    """Return the first well-formed token in ``TOKEN_LOCATIONS`` order.

    Non-empty strings that fail the format check are skipped, logged
    and, if *warnings* is given, recorded there.
    """
    for path in TOKEN_LOCATIONS:
        candidate = dig(root, path)
        if not isinstance(candidate, str) or not candidate.strip():
            continue
        if is_valid_token(candidate):
            logger.info("Access token found | location=%s", ".".join(path))
            return candidate
        logger.warning("Ignoring malformed access token | location=%s", ".".join(path))
        if warnings is not None:
            warnings.append(f"Invalid Mapbox token format found in file ({'.'.join(path)})")
    return None


# ---------------------------------------------------------------------------
# Settings normalisation
# ---------------------------------------------------------------------------


def normalize_map_style(style: str) -> str:
    """Map a legacy bare style name to its fully-qualified identifier."""
    if "/" in style:
        return style
    return MAP_STYLES.get(style, DEFAULT_MAP_STYLE)


def _normalize_scalars(cleaned: dict[str, Any]) -> None:
    unit = cleaned.get("distanceUnit")
    if unit and not (isinstance(unit, str) and unit in DISTANCE_UNITS):
        logger.warning("Invalid distance unit: %r, defaulting to %s", unit, DEFAULT_DISTANCE_UNIT)
        cleaned["distanceUnit"] = DEFAULT_DISTANCE_UNIT

    style = cleaned.get("mapStyle")
    if isinstance(style, str) and style:
        cleaned["mapStyle"] = normalize_map_style(style)

    for key in BOOLEAN_SETTINGS:
        if key in cleaned and not isinstance(cleaned[key], bool):
            cleaned[key] = bool(cleaned[key])


def normalize_settings(settings: dict[str, Any]) -> dict[str, Any]:
    """Return a cleaned copy of a structured settings block.

    - unknown non-empty ``distanceUnit`` values become ``"km"``
    - bare ``mapStyle`` names become ``mapbox/...`` identifiers
    - boolean settings and every ``notifications``/``display`` value are
      coerced with truthiness

    *settings* itself is left untouched.
    """
    cleaned = dict(settings)
    _normalize_scalars(cleaned)

    for group in (NOTIFICATIONS_GROUP, DISPLAY_GROUP):
        values = as_dict(cleaned.get(group))
        if values is not None:
            cleaned[group] = {k: bool(v) for k, v in values.items()}

    return cleaned


def normalize_flat_settings(values: dict[str, Any]) -> dict[str, Any]:
    """Return a cleaned copy of settings already in the store's flat namespace.

    Applies the ``normalize_settings`` rules to flat keys: ``notifications_<k>``
    and display keys get the truthiness coercion their nested groups get.
    Normalising twice gives the same result as normalising once.
    """
    cleaned = dict(values)
    _normalize_scalars(cleaned)

    for key, value in list(cleaned.items()):
        if isinstance(value, bool):
            continue
        if key.startswith(NOTIFICATIONS_PREFIX) or key in DISPLAY_KEYS:
            cleaned[key] = bool(value)

    return cleaned


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def _first_string(bag: dict[str, Any], *keys: str) -> str | None:
    for key in keys:
        value = bag.get(key)
        if isinstance(value, str) and value.strip():
            return value
    return None


def extract_metadata(root: object) -> ExtractedMetadata:
    """Extract embedded application metadata from a parsed upload.

    Args:
        root: The parsed top-level document object.

    Returns:
        An ``ExtractedMetadata``; empty when *root* carries nothing.
    """
    if not isinstance(root, dict):
        return ExtractedMetadata()

    warnings: list[str] = []
    raw = fold_rules(root)
    token = find_token(root, warnings)

    settings = as_dict(raw.get("settings"))
    if settings is not None:
        settings = normalize_settings(settings)

    references = raw.get("recentReferences")
    if references is not None and not isinstance(references, list):
        logger.warning("Ignoring non-array recentReferences (%s)", type(references).__name__)
        references = None

    overrides = {key: raw[key] for key in LEGACY_OVERRIDE_KEYS if raw.get(key) is not None}

    metadata = ExtractedMetadata(
        settings=settings,
        mapbox_token=token,
        recent_references=list(references or []),
        username=_first_string(raw, "username", "userName", "userEmail"),
        custom_notes=_first_string(raw, "customNotes"),
        overrides=overrides,
        raw=raw,
        warnings=warnings,
    )

    if not metadata.is_empty:
        logger.info(
            "User data extracted | keys=%d | settings=%s | token=%s | references=%d",
            len(raw),
            settings is not None,
            token is not None,
            len(metadata.recent_references),
        )
    return metadata
