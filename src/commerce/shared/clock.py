"""Time source for the commerce domain. All timestamps are timezone-aware UTC."""

from datetime import UTC, datetime


def utc_now():
    return datetime.now(UTC)


def as_utc(value):
    """Treat naive datetimes (as some stores return them) as UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)
