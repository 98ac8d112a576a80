"""Shared pipeline constants — single source of truth.

Centralises the settings catalog, the historical metadata locations,
map-style identifiers and the export schema literals that the
validation, extraction, apply and export stages all agree on.
"""

from __future__ import annotations

import re
from types import MappingProxyType

# ---------------------------------------------------------------------------
# Upload guard
# ---------------------------------------------------------------------------

DEFAULT_MAX_UPLOAD_BYTES: int = 10 * 1024 * 1024
"""Largest accepted upload (10 MB)."""

ALLOWED_UPLOAD_SUFFIXES: tuple[str, ...] = (".geojson", ".json")

DEFAULT_MAX_LOGGED_INVALID: int = 5
"""Only the first N invalid features are logged individually."""

# ---------------------------------------------------------------------------
# Settings catalog
# ---------------------------------------------------------------------------

DEFAULT_SETTINGS: MappingProxyType[str, object] = MappingProxyType(
    {
        "distanceUnit": "km",
        "mapStyle": "mapbox/light-v11",
        "autoCenter": True,
        "sidebarPosition": "hidden",
        "defaultZoom": 10,
        "colorScheme": "default",
        "groupingProperty": "dataset",
        "groupingDisplayName": "Group",
        "autoSave": True,
        # Overlays
        "showIrishCounties": False,
        "irishCountiesOpacity": 0.1,
        "irishCountiesStyle": "filled",
        "irishCountiesSource": "data/counties-coloured.geojson",
        "showIrishDioceses": False,
        "irishDiocesesOpacity": 0.5,
        "irishDiocesesStyle": "filled",
        "irishDiocesesSource": "data/dioceses-coloured.geojson",
        # Flattened ``notifications`` group
        "notifications_enabled": True,
        "notifications_locationUpdates": True,
        "notifications_dataChanges": False,
        # Flattened ``display`` group (stored under bare names)
        "showDistanceMarkers": True,
        "showGroupIndicators": True,
        "compactMode": False,
    }
)
"""Recognised setting keys and their defaults, in the store's flat namespace."""

NOTIFICATIONS_GROUP = "notifications"
NOTIFICATIONS_PREFIX = "notifications_"
DISPLAY_GROUP = "display"

DISPLAY_KEYS: frozenset[str] = frozenset(
    {
        "showDistanceMarkers",
        "showGroupIndicators",
        "showIrishCounties",
        "showIrishDioceses",
        "compactMode",
    }
)
"""Flat keys that belong to the nested ``display`` group in documents."""

BOOLEAN_SETTINGS: tuple[str, ...] = ("autoSave", "compactMode", "autoCenter")
"""Top-level settings coerced with truthiness when they arrive non-boolean."""

DISTANCE_UNITS: frozenset[str] = frozenset({"km", "miles"})
DEFAULT_DISTANCE_UNIT = "km"

MAP_STYLES: MappingProxyType[str, str] = MappingProxyType(
    {
        "light": "mapbox/light-v11",
        "streets": "mapbox/streets-v12",
        "outdoors": "mapbox/outdoors-v12",
        "satellite": "mapbox/satellite-v9",
        "dark": "mapbox/dark-v11",
    }
)
"""Legacy bare style names mapped to fully-qualified style identifiers."""

DEFAULT_MAP_STYLE = "mapbox/light-v11"

LEGACY_OVERRIDE_KEYS: tuple[str, ...] = (
    "distanceUnit",
    "mapStyle",
    "sidebarPosition",
    "autoCenter",
)
"""Flat preference keys older files carry outside the ``settings`` block."""

# ---------------------------------------------------------------------------
# Embedded metadata locations
# ---------------------------------------------------------------------------

LEGACY_METADATA_KEYS: tuple[str, ...] = (
    "userSettings",
    "preferences",
    "config",
    "settings",
    "userName",
    "userEmail",
    "userId",
    "lastModified",
    "referencePoints",
    "bookmarks",
    "customConfig",
    "recentReferences",
)
"""Top-level document keys read as metadata (lowest precedence)."""

TOKEN_LOCATIONS: tuple[tuple[str, ...], ...] = (
    ("userData", "mapboxUserToken"),
    ("mapboxToken",),
    ("userData", "mapboxToken"),
    ("metadata", "mapboxToken"),
    ("properties", "mapboxToken"),
    ("config", "mapboxToken"),
    ("settings", "mapboxToken"),
)
"""Access-token locations in priority order; the first valid one wins."""

TOKEN_PATTERN = re.compile(r"^pk\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+$")

TOKEN_STORAGE_KEY = "mapbox-token"
"""Persisted-token slot name used by file-backed settings stores."""

HISTORY_STORAGE_KEY = "mapalister-upload-history"
"""Persisted upload-history slot name used by file-backed settings stores."""

# ---------------------------------------------------------------------------
# Reference points and debounce
# ---------------------------------------------------------------------------

DEFAULT_MAX_REFERENCES: int = 5
DEFAULT_REFERENCE_NAME = "Reference Point"
CURRENT_REFERENCE_NAME = "Current Reference"

DEFAULT_DEBOUNCE_MS: int = 100

# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------

DEFAULT_EXPORT_VERSION = "1.2.0"
NOTES_VERSION = "1.0"
NOTES_PROPERTY = "userNotes"
PLACEHOLDER_USERNAME = "unknown@example.com"
EXPORT_MEDIA_TYPE = "application/geo+json"
EXPORT_SUFFIX = ".geojson"
DEFAULT_MAX_HISTORY_ITEMS: int = 5
