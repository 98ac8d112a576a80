"""Thin file-input boundary for uploads.

Performs the cheap pre-checks the browser did before handing a file to
the pipeline, and reads/decodes the content:

- **check_upload** — rejects missing, empty, oversized or wrongly
  suffixed files with an actionable message.
- **read_upload** — reads a file off disk without blocking the event
  loop (``asyncio.to_thread``).
- **decode_upload** — decodes raw bytes as UTF-8 text, tolerating a BOM.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path, PurePath

from mapalister.core.constants import ALLOWED_UPLOAD_SUFFIXES, DEFAULT_MAX_UPLOAD_BYTES
from mapalister.core.exceptions import TransientError, ValidationError

logger = logging.getLogger("mapalister.core.ingress")


class UploadRejectedError(ValidationError):
    """Raised when a file fails the size or type pre-checks."""

    default_stage = "ingress"
    default_code = "UPLOAD_REJECTED"


class UploadReadError(TransientError):
    """Raised when an upload cannot be read from disk."""

    default_stage = "ingress"
    default_code = "UPLOAD_READ_FAILED"


def format_file_size(size: int) -> str:
    """Format a byte count the way users expect (``"1.5 KB"``, ``"10 MB"``)."""
    if size <= 0:
        return "0 Bytes"
    units = ("Bytes", "KB", "MB", "GB")
    value = float(size)
    index = 0
    while value >= 1024 and index < len(units) - 1:
        value /= 1024
        index += 1
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {units[index]}"


def check_upload(
    file_name: str,
    size: int,
    *,
    max_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
) -> None:
    """Validate upload name and size before reading the content.

    Raises:
        UploadRejectedError: If no file was given, it is empty, too large,
            or does not end in ``.geojson``/``.json``.
    """
    if not file_name:
        raise UploadRejectedError("No file selected")

    if size > max_bytes:
        msg = (
            f"File too large ({format_file_size(size)}). "
            f"Maximum size is {format_file_size(max_bytes)}."
        )
        raise UploadRejectedError(msg, source=file_name)

    if size == 0:
        raise UploadRejectedError("File is empty", source=file_name)

    suffix = PurePath(file_name).suffix.lower()
    if suffix not in ALLOWED_UPLOAD_SUFFIXES:
        msg = f"Invalid file type. Please upload a {' or '.join(ALLOWED_UPLOAD_SUFFIXES)} file."
        raise UploadRejectedError(msg, source=file_name)


async def read_upload(path: Path | str) -> bytes:
    """Read an upload from disk off the event loop thread.

    Raises:
        UploadReadError: If the file cannot be read.
    """
    path = Path(path)
    try:
        return await asyncio.to_thread(path.read_bytes)
    except OSError as exc:
        msg = f"Failed to read file: {exc}"
        raise UploadReadError(msg, source=path.name) from exc


def decode_upload(data: bytes, *, source: str = "") -> str:
    """Decode upload bytes as UTF-8 text.

    Raises:
        ParseError: If the bytes are not valid UTF-8.
    """
    from mapalister.activities.validate_upload import ParseError

    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        msg = f"File is not valid UTF-8 text at byte {exc.start}"
        raise ParseError(msg, offset=exc.start, source=source) from exc
