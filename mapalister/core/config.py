"""Pipeline configuration loaded from environment variables.

Every value has a default matching the behaviour of the browser
application, so an empty environment yields a working pipeline.
``from_env()`` validates ranges up front and raises
``ConfigValidationError`` instead of letting a bad value surface later
as a confusing runtime failure.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from mapalister.core.constants import (
    DEFAULT_DEBOUNCE_MS,
    DEFAULT_EXPORT_VERSION,
    DEFAULT_MAX_HISTORY_ITEMS,
    DEFAULT_MAX_LOGGED_INVALID,
    DEFAULT_MAX_REFERENCES,
    DEFAULT_MAX_UPLOAD_BYTES,
)
from mapalister.core.exceptions import PipelineError


class ConfigValidationError(PipelineError):
    """Raised when configuration values are out of valid range.

    Attributes:
        key: The environment variable that failed validation.
        value: The invalid value.
    """

    default_stage = "config"
    default_code = "CONFIG_VALIDATION_FAILED"

    def __init__(self, key: str, value: object, message: str) -> None:
        self.key = key
        self.value = value
        super().__init__(f"Invalid configuration {key}={value!r}: {message}")


@dataclass(frozen=True, slots=True)
class PipelineConfig:
    """Immutable pipeline configuration.

    Attributes:
        debounce_ms: Coalescing window for settings application, in milliseconds.
        max_upload_bytes: Largest accepted upload.
        max_logged_invalid: Number of invalid features logged individually.
        max_references: Cap on exported ``recentReferences``.
        max_history_items: Number of upload history entries retained.
        export_version: ``userData.version`` written on export.
        settings_store: Registered name of the settings store to build.
        settings_path: Persistence file for file-backed settings stores.
    """

    debounce_ms: int = DEFAULT_DEBOUNCE_MS
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    max_logged_invalid: int = DEFAULT_MAX_LOGGED_INVALID
    max_references: int = DEFAULT_MAX_REFERENCES
    max_history_items: int = DEFAULT_MAX_HISTORY_ITEMS
    export_version: str = DEFAULT_EXPORT_VERSION
    settings_store: str = "memory"
    settings_path: str = ""

    @property
    def debounce_seconds(self) -> float:
        """Coalescing window in seconds, as the event loop expects it."""
        return self.debounce_ms / 1000.0

    @classmethod
    def from_env(cls) -> PipelineConfig:
        """Load and validate configuration from environment variables.

        Raises:
            ConfigValidationError: If a numeric value is out of range
                or a required string value is empty.
            ValueError: If a numeric environment variable cannot be
                parsed (e.g. ``UPLOAD_MAX_BYTES=lots``).
        """
        config = cls(
            debounce_ms=int(os.getenv("SETTINGS_DEBOUNCE_MS", str(DEFAULT_DEBOUNCE_MS))),
            max_upload_bytes=int(os.getenv("UPLOAD_MAX_BYTES", str(DEFAULT_MAX_UPLOAD_BYTES))),
            max_logged_invalid=int(
                os.getenv("UPLOAD_MAX_LOGGED_INVALID", str(DEFAULT_MAX_LOGGED_INVALID))
            ),
            max_references=int(os.getenv("REFERENCE_HISTORY_LIMIT", str(DEFAULT_MAX_REFERENCES))),
            max_history_items=int(
                os.getenv("UPLOAD_HISTORY_LIMIT", str(DEFAULT_MAX_HISTORY_ITEMS))
            ),
            export_version=os.getenv("EXPORT_SCHEMA_VERSION", DEFAULT_EXPORT_VERSION),
            settings_store=os.getenv("SETTINGS_STORE", "memory"),
            settings_path=os.getenv("SETTINGS_PATH", ""),
        )
        _validate(config)
        return config


def _validate(config: PipelineConfig) -> None:
    """Validate configuration ranges.  Raises ``ConfigValidationError``."""
    if config.debounce_ms < 0:
        raise ConfigValidationError(
            "SETTINGS_DEBOUNCE_MS",
            config.debounce_ms,
            "must be >= 0 (milliseconds)",
        )

    if config.max_upload_bytes <= 0:
        raise ConfigValidationError(
            "UPLOAD_MAX_BYTES",
            config.max_upload_bytes,
            "must be > 0 (bytes)",
        )

    if config.max_logged_invalid < 0:
        raise ConfigValidationError(
            "UPLOAD_MAX_LOGGED_INVALID",
            config.max_logged_invalid,
            "must be >= 0",
        )

    if config.max_references <= 0:
        raise ConfigValidationError(
            "REFERENCE_HISTORY_LIMIT",
            config.max_references,
            "must be > 0",
        )

    if config.max_history_items <= 0:
        raise ConfigValidationError(
            "UPLOAD_HISTORY_LIMIT",
            config.max_history_items,
            "must be > 0",
        )

    if not config.export_version.strip():
        raise ConfigValidationError(
            "EXPORT_SCHEMA_VERSION",
            config.export_version,
            "must not be empty",
        )

    if not config.settings_store.strip():
        raise ConfigValidationError(
            "SETTINGS_STORE",
            config.settings_store,
            "must not be empty",
        )
