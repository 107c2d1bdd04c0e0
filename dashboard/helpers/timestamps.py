"""Timestamp parsing and formatting helpers.

All instants handled by the analytics engine are timezone-aware UTC
datetimes. Naive values coming from query strings or storage are taken
to be UTC.
"""

from datetime import datetime, timezone

from dateutil.parser import isoparse


def ensure_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp or date into an aware UTC datetime.

    Accepts a trailing ``Z``, explicit offsets and bare dates
    (``2025-03-01``).

    Raises:
        ValueError: If the value is empty or not ISO-8601
    """
    if value is None or not str(value).strip():
        raise ValueError("empty timestamp")
    return ensure_utc(isoparse(str(value).strip()))


def to_iso(value: datetime) -> str:
    """Format an instant as ISO-8601 UTC with a ``Z`` suffix."""
    return ensure_utc(value).isoformat().replace("+00:00", "Z")


def utc_now() -> datetime:
    """Current instant in UTC."""
    return datetime.now(timezone.utc)
