"""UTC timestamp helpers for the datastore."""

from datetime import datetime, timezone


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_iso(dt: datetime) -> str:
    """
    Serialize a datetime for storage.

    Always emits microseconds and a UTC offset so stored values compare
    correctly as strings.

    Args:
        dt: Aware or naive (assumed UTC) datetime

    Returns:
        ISO-8601 string, e.g. 2025-11-15T12:00:00.000000+00:00
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat(timespec="microseconds")


def parse_iso(value: str) -> datetime:
    """
    Parse a stored or client-supplied ISO-8601 timestamp.

    Accepts a trailing Z. Naive values are taken as UTC.
    """
    dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt
