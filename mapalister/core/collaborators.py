"""Interfaces for the application pieces the pipeline talks to but does not own.

The pipeline never renders anything, never draws markers and never
decides who the user is.  It reaches those concerns only through the
abstract classes below, injected into ``UploadPipeline``:

- ``PresentationLayer`` — receives validated documents, reports and
  user-facing feedback.
- ``ReferenceMarker``   — owns the single active reference point used for
  distance calculations.
- ``IdentityProvider``  — supplies the signed-in user's display identity.
- ``MapView``           — the map whose readiness decides whether a newly
  applied access token needs a (re)initialisation.
"""

from __future__ import annotations

import abc
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from mapalister.activities.apply_settings import ApplyResult
    from mapalister.models.document import ValidatedDocument, ValidationReport
    from mapalister.models.metadata import ReferencePoint


class PresentationLayer(abc.ABC):
    """Receiver of upload outcomes and user feedback."""

    @abc.abstractmethod
    def present(self, document: ValidatedDocument, report: ValidationReport) -> None:
        """Display a freshly accepted document.

        Args:
            document: The validated document (surviving records only).
            report: Validation report, used to tell the user about dropped records.
        """

    @abc.abstractmethod
    def settings_applied(self, result: ApplyResult) -> None:
        """Acknowledge a completed settings application."""

    @abc.abstractmethod
    def warn(self, message: str) -> None:
        """Surface a non-fatal warning (dropped records, rejected token)."""


class ReferenceMarker(abc.ABC):
    """Holder of the active reference point."""

    @abc.abstractmethod
    def adopt(self, point: ReferencePoint) -> None:
        """Make *point* the active reference point."""

    @abc.abstractmethod
    def current(self) -> ReferencePoint | None:
        """Return the active reference point, or ``None`` if unset."""


class IdentityProvider(abc.ABC):
    """Source of the current user's display identity."""

    @abc.abstractmethod
    def current_user(self) -> dict[str, str] | None:
        """Return ``{"email": ..., "name": ...}`` for the signed-in user, or ``None``."""


class MapView(abc.ABC):
    """The map that consumes the access token."""

    @abc.abstractmethod
    def is_loaded(self) -> bool:
        """Whether the map is initialised and usable with the current token."""
