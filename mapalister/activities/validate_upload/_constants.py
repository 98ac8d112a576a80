"""Shared constants for upload validation."""

from __future__ import annotations

# WGS 84 coordinate bounds
MIN_LONGITUDE = -180.0
MAX_LONGITUDE = 180.0
MIN_LATITUDE = -90.0
MAX_LATITUDE = 90.0

FEATURE_TYPE = "Feature"
POINT = "Point"

# Geometry kinds whose coordinates must be a non-empty array (no bounds check)
NESTED_COORDINATE_KINDS = frozenset({"LineString", "Polygon"})
