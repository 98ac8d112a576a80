"""Upload pipeline orchestrator.

Coordinates one upload end to end and holds the "current document" the
exporter works from:

1. File-input guard — name, size and suffix checks
2. Asynchronous read and UTF-8 decode
3. Structural validation — partial failures are reported, not raised
4. Metadata extraction
5. Debounced settings application (only when metadata is present)
6. Hand-off to the presentation layer, with warnings for dropped
   records and rejected tokens

Fatal errors (``UploadRejectedError``, ``ParseError``, ``SchemaError``,
``NoValidFeaturesError``) propagate to the caller and leave the previous
current document untouched.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

from mapalister.activities.apply_settings import ApplyResult, SettingsApplier
from mapalister.activities.export_document import export_document, serialize_export
from mapalister.activities.extract_metadata import extract_metadata
from mapalister.activities.validate_upload import validate_upload
from mapalister.core.config import PipelineConfig
from mapalister.core.constants import EXPORT_MEDIA_TYPE
from mapalister.core.exceptions import PermanentError
from mapalister.core.ingress import UploadReadError, check_upload, decode_upload, read_upload
from mapalister.stores.factory import settings_store_from_config
from mapalister.utils.export_paths import build_export_filename
from mapalister.utils.helpers import isoformat_utc

if TYPE_CHECKING:
    from mapalister.core.collaborators import (
        IdentityProvider,
        MapView,
        PresentationLayer,
        ReferenceMarker,
    )
    from mapalister.models.contracts import UploadHistoryEntry, UploadStatus
    from mapalister.models.document import ValidatedDocument, ValidationReport
    from mapalister.models.metadata import ExtractedMetadata
    from mapalister.stores.base import SettingsStore

logger = logging.getLogger("mapalister.orchestrators.upload_pipeline")


class NoCurrentDocumentError(PermanentError):
    """Raised when an export is requested before any successful upload."""

    default_stage = "export_document"
    default_code = "EXPORT_NO_DOCUMENT"


@dataclass(frozen=True, slots=True)
class UploadOutcome:
    """Result of one accepted upload."""

    file_name: str
    document: ValidatedDocument
    report: ValidationReport
    metadata: ExtractedMetadata
    apply_result: ApplyResult | None = None

    @property
    def settings_applied(self) -> int:
        return self.apply_result.settings_applied if self.apply_result else 0


@dataclass(frozen=True, slots=True)
class ExportResult:
    """A ready-to-download export."""

    filename: str
    content: bytes
    media_type: str
    document: dict[str, Any]


class UploadPipeline:
    """Upload, validate, extract, apply and export GeoJSON documents.

    Args:
        store: Settings store the extracted settings are written to.
        presentation: Receiver of accepted documents and warnings.
        references: Reference-marker collaborator.
        identity: Identity collaborator, consulted on export.
        view: Map view, consulted when a token is applied.
        config: Pipeline configuration.  Defaults to ``PipelineConfig()``.
    """

    def __init__(
        self,
        store: SettingsStore,
        *,
        presentation: PresentationLayer | None = None,
        references: ReferenceMarker | None = None,
        identity: IdentityProvider | None = None,
        view: MapView | None = None,
        config: PipelineConfig | None = None,
    ) -> None:
        self._config = config or PipelineConfig()
        self._store = store
        self._presentation = presentation
        self._references = references
        self._identity = identity
        self._applier = SettingsApplier(
            store,
            references=references,
            view=view,
            delay=self._config.debounce_seconds,
        )

        self._document: ValidatedDocument | None = None
        self._file_name: str | None = None
        self._metadata: ExtractedMetadata | None = None

    @classmethod
    def from_config(cls, config: PipelineConfig, **collaborators: Any) -> UploadPipeline:
        """Build a pipeline whose settings store is selected by *config*."""
        return cls(settings_store_from_config(config), config=config, **collaborators)

    @property
    def store(self) -> SettingsStore:
        return self._store

    @property
    def current_document(self) -> ValidatedDocument | None:
        return self._document

    @property
    def extracted_metadata(self) -> ExtractedMetadata | None:
        return self._metadata

    # ------------------------------------------------------------------
    # Upload
    # ------------------------------------------------------------------

    async def upload_file(self, path: Path | str) -> UploadOutcome:
        """Upload a file from disk.

        Raises:
            UploadRejectedError: If the file fails the size or type checks.
            UploadReadError: If the file cannot be read.
            ParseError / SchemaError / NoValidFeaturesError: On fatal
                validation failures.
        """
        path = Path(path)
        try:
            size = (await asyncio.to_thread(path.stat)).st_size
        except OSError as exc:
            msg = f"Failed to read file: {exc}"
            raise UploadReadError(msg, source=path.name) from exc

        check_upload(path.name, size, max_bytes=self._config.max_upload_bytes)
        data = await read_upload(path)
        return await self._process(path.name, data)

    async def upload_bytes(self, file_name: str, data: bytes) -> UploadOutcome:
        """Upload in-memory content received under *file_name*."""
        check_upload(file_name, len(data), max_bytes=self._config.max_upload_bytes)
        return await self._process(file_name, data)

    async def _process(self, file_name: str, data: bytes) -> UploadOutcome:
        logger.info("Upload started | file=%s | bytes=%d", file_name, len(data))

        text = decode_upload(data, source=file_name)
        document, report, root = validate_upload(
            text,
            source=file_name,
            max_logged=self._config.max_logged_invalid,
        )
        metadata = extract_metadata(root)

        self._document = document
        self._file_name = file_name
        self._metadata = metadata
        self._remember(file_name, document.feature_count)

        apply_result: ApplyResult | None = None
        if not metadata.is_empty:
            apply_result = await self._applier.apply(metadata)

        self._notify(document, report, metadata, apply_result)

        logger.info(
            "Upload completed | file=%s | features=%d | dropped=%d | settings=%d",
            file_name,
            document.feature_count,
            report.invalid_count,
            apply_result.settings_applied if apply_result else 0,
        )
        return UploadOutcome(
            file_name=file_name,
            document=document,
            report=report,
            metadata=metadata,
            apply_result=apply_result,
        )

    def _notify(
        self,
        document: ValidatedDocument,
        report: ValidationReport,
        metadata: ExtractedMetadata,
        apply_result: ApplyResult | None,
    ) -> None:
        if self._presentation is None:
            return
        self._presentation.present(document, report)
        if report.has_dropped:
            self._presentation.warn(report.summary())
        for warning in metadata.warnings:
            self._presentation.warn(warning)
        if apply_result is not None:
            self._presentation.settings_applied(apply_result)

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def export(self, *, now: datetime | None = None) -> ExportResult:
        """Export the current document with refreshed ``userData``.

        Raises:
            NoCurrentDocumentError: If nothing has been uploaded.
        """
        if self._document is None or self._file_name is None:
            raise NoCurrentDocumentError("No uploaded data to download")

        now = now or datetime.now(UTC)
        exported = export_document(
            self._document,
            self._store,
            identity=self._identity,
            references=self._references,
            extracted=self._metadata,
            version=self._config.export_version,
            max_references=self._config.max_references,
            now=now,
        )
        filename = build_export_filename(self._file_name, now)
        logger.info("Export ready | file=%s", filename)
        return ExportResult(
            filename=filename,
            content=serialize_export(exported),
            media_type=EXPORT_MEDIA_TYPE,
            document=exported,
        )

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    def clear(self) -> None:
        """Forget the current document and its extracted metadata."""
        self._document = None
        self._file_name = None
        self._metadata = None
        logger.info("Uploaded data cleared")

    def history(self) -> list[UploadHistoryEntry]:
        """Remembered uploads, newest first, as saved by the settings store."""
        return self._store.get_history()[: self._config.max_history_items]

    def status(self) -> UploadStatus:
        return {
            "has_uploaded_data": self._document is not None,
            "current_file_name": self._file_name,
            "feature_count": self._document.feature_count if self._document else 0,
            "has_user_data": self._metadata is not None and not self._metadata.is_empty,
            "upload_history": self.history(),
        }

    def _remember(self, file_name: str, feature_count: int) -> None:
        entry: UploadHistoryEntry = {
            "file_name": file_name,
            "feature_count": feature_count,
            "upload_date": isoformat_utc(datetime.now(UTC)),
        }
        history = [e for e in self._store.get_history() if e["file_name"] != file_name]
        history.insert(0, entry)
        self._store.set_history(history[: self._config.max_history_items])
