"""Timestamp helpers: parsing, formatting, and calendar-day arithmetic.

Stored timestamps are ISO 8601 strings in UTC with a ``Z`` suffix, e.g.
``2024-01-08T00:00:00Z``. Milliseconds are only written when non-zero.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta, tzinfo
from typing import Any


def now_utc() -> datetime:
    return datetime.now(UTC)


def parse_iso(value: Any) -> datetime | None:
    """Parse an ISO timestamp into an aware UTC datetime.

    Accepts ``datetime`` instances, full timestamps (``Z`` or offset
    suffix) and bare dates. Naive values are read as UTC. Anything
    unparseable or outside the representable UTC range returns None.
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str) and value.strip():
        try:
            dt = datetime.fromisoformat(value.strip())
        except ValueError:
            return None
    else:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    try:
        return dt.astimezone(UTC)
    except OverflowError:
        # An offset pushes the instant past year 1 or year 9999.
        return None


def to_iso(dt: datetime) -> str:
    """Format *dt* as a UTC ISO string with a ``Z`` suffix."""
    dt = dt.astimezone(UTC) if dt.tzinfo else dt.replace(tzinfo=UTC)
    base = dt.replace(tzinfo=None, microsecond=0).isoformat()
    millis = dt.microsecond // 1000
    if millis:
        base = f"{base}.{millis:03d}"
    return f"{base}Z"


def normalize_iso(value: Any) -> str | None:
    """Round-trip *value* through :func:`parse_iso`; None when invalid."""
    dt = parse_iso(value)
    return to_iso(dt) if dt is not None else None


def add_days(dt: datetime, days: int, tz: tzinfo = UTC) -> datetime:
    """Add calendar days to *dt* on the wall clock of *tz*.

    The local time of day is kept across DST changes, so the result is not
    always a multiple of 24 hours away. Month and year rollovers follow the
    calendar. Raises ``OverflowError`` when the result leaves the
    representable range; see :func:`shift_days` for the total variant.
    """
    local = dt.astimezone(tz)
    shifted = (local.replace(tzinfo=None) + timedelta(days=days)).replace(tzinfo=tz)
    return shifted.astimezone(UTC)


def shift_days(dt: datetime, days: int, tz: tzinfo = UTC) -> datetime | None:
    """:func:`add_days`, or None when the result has no calendar date."""
    try:
        return add_days(dt, days, tz)
    except OverflowError:
        return None
