"""Small helpers shared by the extraction, apply and export stages."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any


def parse_timestamp(value: object) -> datetime | None:
    """Parse an ISO 8601 timestamp into a timezone-aware UTC ``datetime``.

    Accepts a trailing ``Z``.  Naive timestamps are taken to be UTC.

    Returns:
        The parsed datetime, or ``None`` if *value* is empty, not a string,
        or unparseable.
    """
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def isoformat_utc(moment: datetime) -> str:
    """Format *moment* as ISO 8601 with millisecond precision and a ``Z`` suffix."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    moment = moment.astimezone(UTC)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def dig(root: object, path: tuple[str, ...]) -> Any:
    """Follow *path* through nested dicts, returning ``None`` when it breaks."""
    current: Any = root
    for key in path:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def as_dict(value: object) -> dict[str, Any] | None:
    """Return *value* if it is a dict, else ``None``."""
    return value if isinstance(value, dict) else None
