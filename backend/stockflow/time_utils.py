from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Optional


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical). Every stored timestamp uses it."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_iso_date(value: Optional[str]) -> Optional[date]:
    """'YYYY-MM-DD' -> date; None or blank -> None. Raises ValueError on anything else."""
    if value is None or not value.strip():
        return None
    return date.fromisoformat(value.strip())


def parse_stored_datetime(value) -> datetime:
    """
    Timestamp column value as read raw from the database -> naive UTC datetime.

    Raises ValueError for text that is not a real calendar timestamp
    (e.g. '2026-02-30 10:00:00').
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        parsed = datetime.fromisoformat(value.strip())
    else:
        raise ValueError(f"not a timestamp: {value!r}")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """Half-open [00:00, next 00:00) bounds of a UTC calendar day."""
    start = datetime(day.year, day.month, day.day)
    return start, start + timedelta(days=1)


def year_bounds(year: int) -> tuple[datetime, datetime]:
    """Half-open [Jan 1 year, Jan 1 year+1) bounds, UTC-naive."""
    return datetime(year, 1, 1), datetime(year + 1, 1, 1)


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """
    ISO-8601 with a trailing 'Z', truncated to whole seconds.

    Naive values are UTC by convention.
    """
    if dt is None:
        return None
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt.replace(microsecond=0).isoformat() + "Z"
