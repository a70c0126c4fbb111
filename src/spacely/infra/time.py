"""Clock helpers for quote timestamps."""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return current UTC timestamp (timezone-aware)."""
    return datetime.now(timezone.utc)


def to_utc_iso(value: datetime) -> str:
    """Render an aware timestamp as ISO-8601 in UTC, e.g. ``2026-12-25T10:00:00+00:00``."""
    if value.tzinfo is None:
        raise ValueError("timestamp must be timezone-aware")
    return value.astimezone(timezone.utc).isoformat()
