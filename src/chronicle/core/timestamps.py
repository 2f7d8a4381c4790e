"""
UTC and zone-aware time helpers.

Every timestamp column is ISO-8601 UTC text with microsecond precision, so
string comparison in SQL matches chronological order. Calendar dates
(``snippet_date``, ``doc_date``) are taken in the configured zone.

STDLIB ONLY.
"""

from datetime import UTC, date, datetime, timedelta
from zoneinfo import ZoneInfo


def utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(UTC)


def ensure_utc(dt: datetime) -> datetime:
    """Treat naive datetimes as UTC; convert aware ones."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def to_iso8601(dt: datetime) -> str:
    """Serialize as fixed-width UTC ISO-8601 text."""
    return ensure_utc(dt).isoformat(timespec="microseconds")


def from_iso8601(value: str | None) -> datetime | None:
    """Parse ISO-8601 text back into an aware UTC datetime."""
    if not value:
        return None
    return ensure_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))


def iso_ago(now: datetime, **delta: float) -> str:
    """ISO text for ``now - timedelta(**delta)``; window lower bounds."""
    return to_iso8601(now - timedelta(**delta))


def local_date(dt: datetime, zone: ZoneInfo) -> date:
    """Calendar date of *dt* in *zone*."""
    return ensure_utc(dt).astimezone(zone).date()


def local_clock(dt: datetime, zone: ZoneInfo) -> str:
    """``HH:MM`` of *dt* in *zone*."""
    return ensure_utc(dt).astimezone(zone).strftime("%H:%M")
