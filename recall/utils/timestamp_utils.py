"""
Timestamp utilities for consistent time handling across the system.
"""

from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_iso(value: Optional[datetime] = None) -> str:
    """Convert a datetime to an ISO-8601 string.

    Args:
        value: datetime to convert (optional, uses current time if None)

    Returns:
        ISO-8601 timestamp string
    """
    if value is None:
        value = utc_now()
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def from_iso(value: Optional[str]) -> datetime:
    """Parse an ISO-8601 string, falling back to the current time when missing.

    A trailing ``Z`` is accepted and naive values are treated as UTC.
    """
    if not value:
        return utc_now()
    if value.endswith('Z'):
        value = value[:-1] + '+00:00'
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def next_timestamp(existing: Iterable[datetime]) -> datetime:
    """Return a creation timestamp not earlier than any of ``existing``.

    Args:
        existing: Timestamps already present in the collection

    Returns:
        The current time, or the latest existing timestamp when the clock is behind it
    """
    now = utc_now()
    latest = max(existing, default=None)
    if latest is not None and latest > now:
        return latest
    return now


def week_start(now: Optional[datetime] = None, weeks_back: int = 0) -> datetime:
    """Start of the rolling seven-day window ``weeks_back`` weeks before ``now``."""
    if now is None:
        now = utc_now()
    return now - timedelta(days=7 * (weeks_back + 1))
