"""Resolve symbolic time presets into concrete half-open intervals.

All shifts are calendar-aware: "last month" is the previous calendar
month, not "now minus 30 days".
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from dateutil.relativedelta import relativedelta

from dashboard.errors import InvalidRangeError
from dashboard.helpers.timestamps import ensure_utc, parse_timestamp, utc_now
from dashboard.models.usage import Interval


PRESETS = (
    "last_day",
    "last_7",
    "last_month",
    "last_quarter",
    "last_year",
    "current_year",
    "custom",
)

MIN_YEAR = 1970
MAX_YEAR = 9998


def start_of_day(instant: datetime) -> datetime:
    return instant.replace(hour=0, minute=0, second=0, microsecond=0)


def first_of_month(instant: datetime) -> datetime:
    return start_of_day(instant).replace(day=1)


def quarter_start(instant: datetime) -> datetime:
    """First day of the 3-month block containing ``instant``."""
    month = ((instant.month - 1) // 3) * 3 + 1
    return first_of_month(instant).replace(month=month)


def year_start(year: int) -> datetime:
    return datetime(year, 1, 1, tzinfo=timezone.utc)


def year_interval(year: int) -> Interval:
    """The whole calendar year ``[Jan 1 year, Jan 1 year+1)``."""
    return Interval(year_start(year), year_start(year + 1))


def _parse_bound(name: str, value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    try:
        instant = parse_timestamp(value)
    except (ValueError, OverflowError):
        raise InvalidRangeError(f"'{name}' is not a valid ISO-8601 timestamp: {value!r}")
    # Bucket stepping past the last slot must stay a valid datetime
    if not year_start(MIN_YEAR) <= instant <= year_start(MAX_YEAR + 1):
        raise InvalidRangeError(
            f"'{name}' must lie between {MIN_YEAR}-01-01 and {MAX_YEAR + 1}-01-01: {value!r}"
        )
    return instant


def resolve(
    preset: str,
    explicit_from: Optional[str] = None,
    explicit_to: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Interval:
    """Turn a preset (or explicit bounds) into a half-open interval.

    Args:
        preset: One of PRESETS
        explicit_from: ISO-8601 start, required for ``custom``
        explicit_to: ISO-8601 end, required for ``custom``
        now: Reference instant, defaults to the current UTC time

    Returns:
        The resolved Interval

    Raises:
        InvalidRangeError: For unknown presets, unparseable bounds, missing
            custom bounds, or ``from >= to``
    """
    # Bounds are validated even when a preset ignores them
    start = _parse_bound("from", explicit_from)
    end = _parse_bound("to", explicit_to)

    now = ensure_utc(now) if now else utc_now()
    today = start_of_day(now)

    if preset == "custom":
        if start is None or end is None:
            raise InvalidRangeError("from/to is required for a custom range")
    elif preset == "last_day":
        start, end = today - timedelta(days=1), today
    elif preset == "last_7":
        start, end = today - timedelta(days=7), today
    elif preset == "last_month":
        end = first_of_month(now)
        start = end - relativedelta(months=1)
    elif preset == "last_quarter":
        end = quarter_start(now)
        start = end - relativedelta(months=3)
    elif preset == "last_year":
        start, end = year_start(now.year - 1), year_start(now.year)
    elif preset == "current_year":
        start, end = year_start(now.year), year_start(now.year + 1)
    else:
        raise InvalidRangeError(f"unknown preset '{preset}'", code="INVALID_PRESET")

    return Interval(start, end)


def parse_year(value: Optional[str], now: Optional[datetime] = None) -> int:
    """Parse a ``year`` query value, defaulting to the current year.

    Raises:
        InvalidRangeError: If the value is not an integer in 1970..9998
    """
    if value is None or not str(value).strip():
        return (ensure_utc(now) if now else utc_now()).year
    try:
        year = int(str(value).strip())
    except ValueError:
        raise InvalidRangeError(f"year must be an integer: {value!r}", code="INVALID_YEAR")
    if not MIN_YEAR <= year <= MAX_YEAR:
        raise InvalidRangeError(
            f"year must be between {MIN_YEAR} and {MAX_YEAR}", code="INVALID_YEAR"
        )
    return year


def previous_interval(interval: Interval) -> Interval:
    """The equally long window that ends where ``interval`` starts."""
    length = interval.end - interval.start
    try:
        start = interval.start - length
    except OverflowError:
        raise InvalidRangeError("range is too long to compare with the previous window")
    return Interval(start, interval.start)
