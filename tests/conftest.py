"""Shared pytest fixtures for the MapaLister upload pipeline test suite."""

from __future__ import annotations

from pathlib import Path

import pytest

from mapalister.core.collaborators import (
    IdentityProvider,
    MapView,
    PresentationLayer,
    ReferenceMarker,
)
from mapalister.core.config import PipelineConfig
from mapalister.stores.memory import InMemorySettingsStore

# ---------------------------------------------------------------------------
# Path fixtures
# ---------------------------------------------------------------------------

TESTS_DIR = Path(__file__).parent
DATA_DIR = TESTS_DIR / "data"


@pytest.fixture()
def data_dir() -> Path:
    """Return the path to the test data directory."""
    return DATA_DIR


@pytest.fixture()
def contacts_geojson(data_dir: Path) -> Path:
    """Three valid points with a full ``userData`` block and user notes."""
    return data_dir / "contacts_with_user_data.geojson"


@pytest.fixture()
def mixed_validity_geojson(data_dir: Path) -> Path:
    """One valid point, one feature without geometry, one with longitude 200."""
    return data_dir / "mixed_validity.geojson"


@pytest.fixture()
def legacy_geojson(data_dir: Path) -> Path:
    """Metadata only in legacy locations (root keys, ``metadata.userData``)."""
    return data_dir / "legacy_format.geojson"


@pytest.fixture()
def all_invalid_geojson(data_dir: Path) -> Path:
    """A single feature with an out-of-range longitude."""
    return data_dir / "all_invalid.geojson"


@pytest.fixture()
def not_json_geojson(data_dir: Path) -> Path:
    """Truncated JSON."""
    return data_dir / "not_json.geojson"


# ---------------------------------------------------------------------------
# Collaborator doubles
# ---------------------------------------------------------------------------


class RecordingPresentation(PresentationLayer):
    """Presentation layer that records everything it is told."""

    def __init__(self) -> None:
        self.presented: list[tuple[object, object]] = []
        self.applied: list[object] = []
        self.warnings: list[str] = []

    def present(self, document, report) -> None:  # type: ignore[override]
        self.presented.append((document, report))

    def settings_applied(self, result) -> None:  # type: ignore[override]
        self.applied.append(result)

    def warn(self, message: str) -> None:
        self.warnings.append(message)


class FakeReferenceMarker(ReferenceMarker):
    """Reference marker holding a single point in memory."""

    def __init__(self, point=None) -> None:  # type: ignore[no-untyped-def]
        self.point = point
        self.adopted: list[object] = []

    def adopt(self, point) -> None:  # type: ignore[override]
        self.adopted.append(point)
        self.point = point

    def current(self):  # type: ignore[override]
        return self.point


class FakeIdentity(IdentityProvider):
    def __init__(self, user: dict[str, str] | None) -> None:
        self.user = user

    def current_user(self) -> dict[str, str] | None:
        return self.user


class FakeMapView(MapView):
    def __init__(self, loaded: bool) -> None:
        self.loaded = loaded

    def is_loaded(self) -> bool:
        return self.loaded


@pytest.fixture()
def store() -> InMemorySettingsStore:
    """Fresh in-memory settings store with catalog defaults."""
    return InMemorySettingsStore()


@pytest.fixture()
def presentation() -> RecordingPresentation:
    return RecordingPresentation()


@pytest.fixture()
def reference_marker() -> FakeReferenceMarker:
    return FakeReferenceMarker()


@pytest.fixture()
def fast_config() -> PipelineConfig:
    """Configuration with a zero-length coalescing window."""
    return PipelineConfig(debounce_ms=0)
