"""Bucket planning for time-series reports.

The planner decides which bucket labels a report must contain before any
data is read, so that periods without events still show up with a zero
total instead of disappearing from the chart.
"""

from datetime import datetime
from typing import List, Optional, Tuple

from dateutil.relativedelta import relativedelta

from dashboard.analytics.range_resolver import (
    first_of_month,
    quarter_start,
    start_of_day,
    year_start,
)
from dashboard.models.usage import Granularity, Interval


MONTH_LABELS = [
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
]

_STEPS = {
    Granularity.DAILY: relativedelta(days=1),
    Granularity.MONTHLY: relativedelta(months=1),
    Granularity.QUARTERLY: relativedelta(months=3),
    Granularity.YEARLY: relativedelta(years=1),
}


def calendar_year_of(interval: Interval) -> Optional[int]:
    """Return the year if ``interval`` is exactly one whole calendar year."""
    year = interval.start.year
    if interval.start == year_start(year) and interval.end == year_start(year + 1):
        return year
    return None


def truncate(instant: datetime, granularity: Granularity) -> datetime:
    """Truncate an instant to the start of its bucket slot."""
    if granularity == Granularity.DAILY:
        return start_of_day(instant)
    if granularity == Granularity.MONTHLY:
        return first_of_month(instant)
    if granularity == Granularity.QUARTERLY:
        return quarter_start(instant)
    return year_start(instant.year)


def format_label(slot_start: datetime, granularity: Granularity, calendar_year: bool) -> str:
    """Label for a slot.

    Inside a whole calendar year the labels drop the year (``Mar``, ``Q2``);
    for arbitrary intervals they are year-qualified so they stay unique.
    """
    if granularity == Granularity.DAILY:
        return slot_start.strftime("%Y-%m-%d")
    if granularity == Granularity.YEARLY:
        return str(slot_start.year)
    if granularity == Granularity.MONTHLY:
        label = MONTH_LABELS[slot_start.month - 1]
    else:
        label = f"Q{(slot_start.month - 1) // 3 + 1}"
    if calendar_year:
        return label
    return f"{label} {slot_start.year}"


class BucketPlanner:
    """Plan the complete, ordered list of buckets an interval must cover."""

    def slots(
        self,
        interval: Interval,
        granularity: Granularity,
    ) -> List[Tuple[str, datetime]]:
        """Return ``(label, slot_start)`` pairs in chronological order.

        One slot per calendar unit the interval intersects. Never empty,
        because a valid interval always intersects at least one unit.
        """
        calendar_year = calendar_year_of(interval) is not None
        step = _STEPS[granularity]

        result = []
        cursor = truncate(interval.start, granularity)
        while cursor < interval.end:
            result.append((format_label(cursor, granularity, calendar_year), cursor))
            cursor = cursor + step
        return result

    def plan(self, interval: Interval, granularity: Granularity) -> List[str]:
        """Return the ordered bucket labels for ``interval``."""
        return [label for label, _ in self.slots(interval, granularity)]

    def label_for(
        self,
        instant: datetime,
        interval: Interval,
        granularity: Granularity,
    ) -> str:
        """Label of the bucket ``instant`` falls into, using the plan's format."""
        calendar_year = calendar_year_of(interval) is not None
        return format_label(truncate(instant, granularity), granularity, calendar_year)
