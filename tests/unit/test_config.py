"""Tests for pipeline configuration.

Covers:
- Default values match the browser application's behaviour
- Loading from environment variables
- Type coercion (string env vars → numeric fields)
- Fail-fast range validation
"""

from __future__ import annotations

import os
from unittest.mock import patch

import pytest

from mapalister.core.config import ConfigValidationError, PipelineConfig


class TestPipelineConfigDefaults:
    """Verify default configuration values."""

    def test_default_debounce(self) -> None:
        cfg = PipelineConfig()
        assert cfg.debounce_ms == 100
        assert cfg.debounce_seconds == pytest.approx(0.1)

    def test_default_upload_limit_is_10_mb(self) -> None:
        assert PipelineConfig().max_upload_bytes == 10 * 1024 * 1024

    def test_default_limits(self) -> None:
        cfg = PipelineConfig()
        assert cfg.max_logged_invalid == 5
        assert cfg.max_references == 5
        assert cfg.max_history_items == 5

    def test_default_export_version(self) -> None:
        assert PipelineConfig().export_version == "1.2.0"

    def test_default_store(self) -> None:
        cfg = PipelineConfig()
        assert cfg.settings_store == "memory"
        assert cfg.settings_path == ""


class TestPipelineConfigFromEnv:
    """Verify loading from environment variables."""

    def test_loads_from_environment(self) -> None:
        """All env vars are read and coerced to correct types."""
        env = {
            "SETTINGS_DEBOUNCE_MS": "250",
            "UPLOAD_MAX_BYTES": "2048",
            "UPLOAD_MAX_LOGGED_INVALID": "0",
            "REFERENCE_HISTORY_LIMIT": "3",
            "UPLOAD_HISTORY_LIMIT": "10",
            "EXPORT_SCHEMA_VERSION": "1.3.0",
            "SETTINGS_STORE": "json_file",
            "SETTINGS_PATH": "/tmp/settings.json",
        }
        with patch.dict(os.environ, env, clear=False):
            cfg = PipelineConfig.from_env()

        assert cfg.debounce_ms == 250
        assert cfg.max_upload_bytes == 2048
        assert cfg.max_logged_invalid == 0
        assert cfg.max_references == 3
        assert cfg.max_history_items == 10
        assert cfg.export_version == "1.3.0"
        assert cfg.settings_store == "json_file"
        assert cfg.settings_path == "/tmp/settings.json"

    def test_defaults_when_env_missing(self) -> None:
        """Missing environment variables fall back to defaults."""
        with patch.dict(os.environ, {}, clear=True):
            cfg = PipelineConfig.from_env()

        assert cfg == PipelineConfig()

    def test_frozen_immutability(self) -> None:
        cfg = PipelineConfig()
        with pytest.raises(AttributeError):
            cfg.debounce_ms = 5  # type: ignore[misc]


class TestPipelineConfigValidation:
    """Fail-fast range validation in from_env."""

    def test_debounce_zero_accepted(self) -> None:
        """A zero-length window applies on the next loop iteration."""
        with patch.dict(os.environ, {"SETTINGS_DEBOUNCE_MS": "0"}, clear=True):
            cfg = PipelineConfig.from_env()
        assert cfg.debounce_ms == 0

    def test_debounce_negative_rejected(self) -> None:
        with (
            patch.dict(os.environ, {"SETTINGS_DEBOUNCE_MS": "-1"}, clear=True),
            pytest.raises(ConfigValidationError, match="SETTINGS_DEBOUNCE_MS"),
        ):
            PipelineConfig.from_env()

    def test_upload_limit_zero_rejected(self) -> None:
        with (
            patch.dict(os.environ, {"UPLOAD_MAX_BYTES": "0"}, clear=True),
            pytest.raises(ConfigValidationError, match="must be > 0"),
        ):
            PipelineConfig.from_env()

    def test_logged_invalid_negative_rejected(self) -> None:
        with (
            patch.dict(os.environ, {"UPLOAD_MAX_LOGGED_INVALID": "-2"}, clear=True),
            pytest.raises(ConfigValidationError, match="UPLOAD_MAX_LOGGED_INVALID"),
        ):
            PipelineConfig.from_env()

    def test_reference_limit_zero_rejected(self) -> None:
        with (
            patch.dict(os.environ, {"REFERENCE_HISTORY_LIMIT": "0"}, clear=True),
            pytest.raises(ConfigValidationError, match="REFERENCE_HISTORY_LIMIT"),
        ):
            PipelineConfig.from_env()

    def test_history_limit_zero_rejected(self) -> None:
        with (
            patch.dict(os.environ, {"UPLOAD_HISTORY_LIMIT": "0"}, clear=True),
            pytest.raises(ConfigValidationError, match="UPLOAD_HISTORY_LIMIT"),
        ):
            PipelineConfig.from_env()

    def test_empty_export_version_rejected(self) -> None:
        with (
            patch.dict(os.environ, {"EXPORT_SCHEMA_VERSION": "  "}, clear=True),
            pytest.raises(ConfigValidationError, match="EXPORT_SCHEMA_VERSION"),
        ):
            PipelineConfig.from_env()

    def test_empty_store_rejected(self) -> None:
        with (
            patch.dict(os.environ, {"SETTINGS_STORE": ""}, clear=True),
            pytest.raises(ConfigValidationError, match="SETTINGS_STORE"),
        ):
            PipelineConfig.from_env()

    def test_non_numeric_env_raises_value_error(self) -> None:
        with (
            patch.dict(os.environ, {"UPLOAD_MAX_BYTES": "lots"}, clear=True),
            pytest.raises(ValueError),
        ):
            PipelineConfig.from_env()

    def test_error_contains_key_and_value(self) -> None:
        with (
            patch.dict(os.environ, {"SETTINGS_DEBOUNCE_MS": "-50"}, clear=True),
            pytest.raises(ConfigValidationError) as exc_info,
        ):
            PipelineConfig.from_env()
        assert exc_info.value.key == "SETTINGS_DEBOUNCE_MS"
        assert exc_info.value.value == -50
        assert exc_info.value.code == "CONFIG_VALIDATION_FAILED"
