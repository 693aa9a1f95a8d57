"""Timestamp parsing helpers."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date, datetime, timezone
from typing import Any, Optional


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 string (with optional trailing Z) into a datetime."""
    if not value:
        return None

    normalized = value.strip().replace("Z", "+00:00")
    try:
        return datetime.fromisoformat(normalized)
    except ValueError:
        return None


def to_datetime(value: Any) -> Optional[datetime]:
    """Coerce a timestamp-like value into an aware UTC datetime.

    Accepts datetimes, dates, ISO strings, epoch seconds, and records carrying a
    ``seconds`` field (mapping key or attribute), as exported by document stores.
    Returns None when the value is missing or unusable.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        parsed = parse_iso_datetime(value)
    elif isinstance(value, (int, float)):
        parsed = datetime.fromtimestamp(value, tz=timezone.utc)
    elif isinstance(value, Mapping):
        return to_datetime(value.get("seconds"))
    elif hasattr(value, "seconds"):
        return to_datetime(getattr(value, "seconds"))
    else:
        return None

    if parsed is None:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)
