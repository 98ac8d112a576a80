"""Shared exception taxonomy for the upload pipeline.

Every domain exception raised by the pipeline stages inherits from
``PipelineError`` and carries enough structured context for the caller
to decide how to surface it (abort the upload, show a warning, offer a
retry).

Taxonomy categories
-------------------
- ``ValidationError``   — the uploaded input is unusable, never retryable.
- ``TransientError``    — temporary failures (file read, disk), retryable.
- ``PermanentError``    — the requested operation cannot succeed as asked.
- ``ContractError``     — a collaborator or payload broke its contract.

Only fatal conditions are raised.  Per-record problems, metadata
anomalies and export fallbacks are reported alongside results instead.
"""

from __future__ import annotations


class PipelineError(Exception):
    """Base exception for all pipeline-domain errors.

    Attributes:
        message: Human-readable error description.
        stage: Pipeline stage where the error occurred
            (e.g. ``"validate_upload"``, ``"export_document"``).
        code: Machine-readable error code (e.g. ``"UPLOAD_PARSE_FAILED"``).
        retryable: Whether repeating the operation could succeed.
        source: Name of the uploaded file the error relates to, if known.
    """

    default_stage: str = ""
    default_code: str = ""

    def __init__(
        self,
        message: str = "",
        *,
        stage: str = "",
        code: str = "",
        retryable: bool = False,
        source: str = "",
    ) -> None:
        self.message = message
        self.stage = stage or self.default_stage
        self.code = code or self.default_code
        self.retryable = retryable
        self.source = source
        super().__init__(message)

    @property
    def category(self) -> str:
        """Return the error category based on concrete class."""
        if isinstance(self, ContractError):
            return "contract"
        if isinstance(self, ValidationError):
            return "validation"
        if isinstance(self, TransientError):
            return "transient"
        if isinstance(self, PermanentError):
            return "permanent"
        return "transient" if self.retryable else "permanent"

    def to_error_dict(self) -> dict[str, object]:
        """Return a structured error payload with stable keys."""
        return {
            "category": self.category,
            "code": self.code,
            "stage": self.stage,
            "message": self.message,
            "retryable": self.retryable,
            "source": self.source,
        }


# ---------------------------------------------------------------------------
# Category base classes
# ---------------------------------------------------------------------------


class ValidationError(PipelineError):
    """Uploaded input failed validation. Never retryable."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class TransientError(PipelineError):
    """Temporary failure that may succeed on retry."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", True)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class PermanentError(PipelineError):
    """Operation cannot succeed in the current state. Not retryable."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class ContractError(PipelineError):
    """A collaborator or payload violated its interface. Never retryable."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]
