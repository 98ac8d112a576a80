"""Tests for the unified exception taxonomy.

Validates:
- PipelineError hierarchy and structured attributes
- Category classification (validation, transient, permanent, contract)
- ``to_error_dict()`` produces stable payload keys
- Every stage exception is a PipelineError subclass with a stable code
"""

from __future__ import annotations

from typing import ClassVar

import pytest

from mapalister.activities.validate_upload import (
    NoValidFeaturesError,
    ParseError,
    SchemaError,
)
from mapalister.core.config import ConfigValidationError
from mapalister.core.exceptions import (
    ContractError,
    PermanentError,
    PipelineError,
    TransientError,
    ValidationError,
)
from mapalister.core.ingress import UploadReadError, UploadRejectedError
from mapalister.orchestrators.upload_pipeline import NoCurrentDocumentError
from mapalister.stores.base import SettingsStoreError


class TestPipelineErrorBase:
    """PipelineError base class behavior."""

    def test_default_attributes(self) -> None:
        err = PipelineError("boom")
        assert err.message == "boom"
        assert err.stage == ""
        assert err.code == ""
        assert err.retryable is False
        assert err.source == ""

    def test_custom_attributes(self) -> None:
        err = PipelineError(
            "fail",
            stage="validate_upload",
            code="UPLOAD_PARSE_FAILED",
            retryable=True,
            source="contacts.geojson",
        )
        assert err.stage == "validate_upload"
        assert err.code == "UPLOAD_PARSE_FAILED"
        assert err.retryable is True
        assert err.source == "contacts.geojson"

    def test_str_is_message(self) -> None:
        assert str(PipelineError("human-readable error")) == "human-readable error"

    def test_to_error_dict_keys(self) -> None:
        err = PipelineError("x", stage="s", code="C", retryable=True, source="f")
        assert set(err.to_error_dict()) == {
            "category",
            "code",
            "stage",
            "message",
            "retryable",
            "source",
        }

    def test_uncategorised_falls_back_on_retryable(self) -> None:
        assert PipelineError("x", retryable=True).category == "transient"
        assert PipelineError("x").category == "permanent"


class TestCategories:
    """Category base classes set retry semantics."""

    def test_validation_never_retryable(self) -> None:
        err = ValidationError("bad")
        assert err.category == "validation"
        assert err.retryable is False

    def test_transient_retryable_by_default(self) -> None:
        err = TransientError("later")
        assert err.category == "transient"
        assert err.retryable is True

    def test_permanent(self) -> None:
        assert PermanentError("no").category == "permanent"

    def test_contract(self) -> None:
        assert ContractError("broken").category == "contract"


class TestStageExceptions:
    """Every stage exception carries a category, stage and code."""

    CASES: ClassVar[list[tuple[PipelineError, str, str]]] = [
        (ParseError("x", offset=3), "validation", "UPLOAD_PARSE_FAILED"),
        (SchemaError("x", expectation="object"), "validation", "UPLOAD_SCHEMA_INVALID"),
        (NoValidFeaturesError(["a"]), "validation", "UPLOAD_NO_VALID_FEATURES"),
        (UploadRejectedError("x"), "validation", "UPLOAD_REJECTED"),
        (UploadReadError("x"), "transient", "UPLOAD_READ_FAILED"),
        (NoCurrentDocumentError("x"), "permanent", "EXPORT_NO_DOCUMENT"),
        (SettingsStoreError("x"), "permanent", "SETTINGS_STORE_FAILED"),
        (ConfigValidationError("K", 1, "bad"), "permanent", "CONFIG_VALIDATION_FAILED"),
    ]

    @pytest.mark.parametrize(("err", "category", "code"), CASES)
    def test_classification(self, err: PipelineError, category: str, code: str) -> None:
        assert isinstance(err, PipelineError)
        assert err.category == category
        assert err.code == code
        assert err.stage

    def test_explicit_code_overrides_default(self) -> None:
        err = SchemaError("x", code="CUSTOM")
        assert err.code == "CUSTOM"

    def test_no_valid_features_message_lists_issues(self) -> None:
        err = NoValidFeaturesError(["Missing geometry property", "Coordinates must be numbers"])
        assert err.errors == ("Missing geometry property", "Coordinates must be numbers")
        assert str(err).startswith("No valid features found in GeoJSON file.")
        assert "Missing geometry property, Coordinates must be numbers" in str(err)
