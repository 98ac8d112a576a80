"""Tests for export filename generation.

Covers:
- strip_upload_suffix: case-insensitive .geojson/.json removal
- build_export_filename: format, UTC date, fallbacks
"""

from __future__ import annotations

import re
from datetime import UTC, datetime, timedelta, timezone

import pytest

from mapalister.utils.export_paths import build_export_filename, strip_upload_suffix

WHEN = datetime(2025, 3, 14, 12, 0, tzinfo=UTC)


class TestStripUploadSuffix:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("contacts.geojson", "contacts"),
            ("contacts.JSON", "contacts"),
            ("contacts.GeoJson", "contacts"),
            ("contacts.json.geojson", "contacts.json"),
            ("contacts.kml", "contacts.kml"),
            ("contacts", "contacts"),
        ],
    )
    def test_strip(self, name: str, expected: str) -> None:
        assert strip_upload_suffix(name) == expected


class TestBuildExportFilename:
    def test_format(self) -> None:
        assert build_export_filename("contacts.geojson", WHEN) == (
            "contacts_enhanced_2025-03-14.geojson"
        )

    def test_json_upload_exports_geojson(self) -> None:
        assert build_export_filename("Parish List.json", WHEN) == (
            "Parish List_enhanced_2025-03-14.geojson"
        )

    def test_date_is_utc(self) -> None:
        late_evening_west = datetime(2025, 3, 14, 22, 0, tzinfo=timezone(timedelta(hours=-5)))
        assert build_export_filename("a.geojson", late_evening_west).endswith(
            "_2025-03-15.geojson"
        )

    def test_empty_base_falls_back(self) -> None:
        assert build_export_filename(".geojson", WHEN) == "export_enhanced_2025-03-14.geojson"

    def test_deterministic(self) -> None:
        assert build_export_filename("a.json", WHEN) == build_export_filename("a.json", WHEN)

    def test_defaults_to_now(self) -> None:
        assert re.fullmatch(r"a_enhanced_\d{4}-\d{2}-\d{2}\.geojson", build_export_filename("a.json"))
