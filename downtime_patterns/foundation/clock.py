"""Timezone-aware clock utilities.

All timestamps in downtime-patterns MUST be UTC-aware.  This module is the
single source of "now" so tests can monkey-patch it trivially.
"""

from __future__ import annotations

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes, convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def minutes_between(start: datetime, end: datetime) -> float:
    """Signed minutes from *start* to *end*."""
    return (end - start).total_seconds() / 60.0


def round1(value: float) -> float:
    return round(value, 1)
