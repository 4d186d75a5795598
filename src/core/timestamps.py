"""
Timestamp conversion utilities for session file decoding.

Chromium pickles navigation timestamps as a 64-bit count of microseconds.
The decoder treats that count as microseconds since 1970-01-01 00:00:00 UTC.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def unix_micros_to_datetime(microseconds: int) -> datetime:
    """
    Convert microseconds since the Unix epoch to an aware UTC datetime.

    Unlike the lenient display helpers, zero maps to the epoch itself; the
    caller decides whether a null time is meaningful.

    Raises:
        ValueError: if the value falls outside the datetime range
    """
    try:
        return UNIX_EPOCH + timedelta(microseconds=microseconds)
    except OverflowError as e:
        raise ValueError(f"Timestamp out of range: {microseconds} us") from e


def to_iso(value: Optional[datetime]) -> Optional[str]:
    """Render a datetime as ISO 8601 UTC, or None."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()
