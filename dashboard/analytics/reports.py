"""Report assembly for the analytics dashboard widgets.

This module provides the ReportAssembler class, which composes range
resolution, bucket planning, aggregation and quota comparison into the
response shapes the dashboard consumes. It reads through an explicitly
passed UsageStore and holds no state between calls.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from dateutil.relativedelta import relativedelta

from dashboard.analytics.aggregator import UsageAggregator
from dashboard.analytics.buckets import BucketPlanner
from dashboard.analytics.quota import QuotaComparator, clamp_percent
from dashboard.analytics.range_resolver import (
    MAX_YEAR,
    MIN_YEAR,
    first_of_month,
    parse_year,
    previous_interval,
    year_interval,
)
from dashboard.errors import UnsupportedGroupingError
from dashboard.helpers.timestamps import ensure_utc, to_iso, utc_now
from dashboard.models.usage import Granularity, Interval
from dashboard.storage.base import UsageStore

logger = logging.getLogger(__name__)

TOKEN_USAGE_MODES = (Granularity.MONTHLY, Granularity.QUARTERLY, Granularity.YEARLY)
USER_GROUPS = ("policy",)
REPORT_GROUPS = ("policy", "user")
REPORT_INTERVALS = {"day": Granularity.DAILY, "month": Granularity.MONTHLY}

UNASSIGNED_ID = "__NONE__"
UNASSIGNED_NAME = "Unassigned"


def _pick(value: Optional[str], allowed, default: str, code: str) -> str:
    """Normalise an enumerated query value, rejecting anything unknown."""
    if value is None or not value.strip():
        return default
    normalized = value.strip().lower()
    if normalized not in allowed:
        raise UnsupportedGroupingError(
            f"'{value}' is not one of {', '.join(allowed)}", code=code
        )
    return normalized


def _trend(current: int, previous: int) -> Optional[float]:
    """Percent change from previous to current, None without a baseline."""
    if previous <= 0:
        return None
    return round((current - previous) / previous * 100, 2)


class ReportAssembler:
    """Build dashboard report payloads from a read-only usage store."""

    def __init__(
        self,
        store: UsageStore,
        clock: Optional[Callable[[], datetime]] = None,
        top_policy_count: int = 3,
        planner: Optional[BucketPlanner] = None,
        aggregator: Optional[UsageAggregator] = None,
        comparator: Optional[QuotaComparator] = None,
    ):
        """Initialize the assembler.

        Args:
            store: Read-only data source
            clock: Returns the reference "now" (defaults to current UTC time)
            top_policy_count: Number of policies in the usage target ranking
            planner: Optional BucketPlanner instance
            aggregator: Optional UsageAggregator instance
            comparator: Optional QuotaComparator instance
        """
        self.store = store
        self.clock = clock or utc_now
        self.top_policy_count = top_policy_count
        self.planner = planner or BucketPlanner()
        self.aggregator = aggregator or UsageAggregator(self.planner)
        self.comparator = comparator or QuotaComparator()

    def now(self) -> datetime:
        return ensure_utc(self.clock())

    async def monthly_series(self, interval: Interval) -> Dict[str, Any]:
        """Token totals per month-of-year within ``interval``.

        Months of different years fold onto the same ``monthIndex`` (0..11).
        Every month the interval touches is present, zero-filled.
        """
        events = await self.store.list_usage_events(interval)
        result = self.aggregator.aggregate(events, interval, Granularity.MONTHLY)

        totals: Dict[int, int] = {}
        for bucket in result.buckets:
            index = bucket.start.month - 1
            totals[index] = totals.get(index, 0) + bucket.metric_total

        return {
            "points": [
                {"monthIndex": index, "total": totals[index]}
                for index in sorted(totals)
            ],
        }

    async def token_usage_vs_limit(
        self,
        mode: Optional[str],
        year: Optional[str],
    ) -> Dict[str, Any]:
        """Usage per month/quarter/year of ``year`` against the system limit.

        Args:
            mode: monthly, quarterly or annually (defaults to monthly)
            year: Calendar year (defaults to the current year)

        Returns:
            ``{labels, usage, limit}`` with ``limit`` repeated per label
        """
        granularity = Granularity.parse(mode)
        if granularity not in TOKEN_USAGE_MODES:
            raise UnsupportedGroupingError(
                f"unsupported mode '{mode}'", code="UNSUPPORTED_MODE"
            )
        interval = year_interval(parse_year(year, self.now()))

        events = await self.store.list_usage_events(interval)
        entities = await self.store.list_quota_entities()

        result = self.aggregator.aggregate(events, interval, granularity)
        system_limit = sum(entity.limit for entity in entities)

        return {
            "labels": [bucket.label for bucket in result.buckets],
            "usage": [bucket.metric_total for bucket in result.buckets],
            "limit": [system_limit] * len(result.buckets),
        }

    async def usage_vs_policy_limit(self, interval: Interval) -> Dict[str, Any]:
        """Per-policy usage against each policy's own limit, ordered by name."""
        entities = await self.store.list_quota_entities()
        events = await self.store.list_usage_events(interval)

        totals = self.aggregator.totals_by(events, interval, key=lambda e: e.policy_id)
        ordered = sorted(entities, key=lambda entity: entity.name)
        rows = self.comparator.compare(totals, ordered)

        return {
            "rows": [row.to_dict() for row in rows],
            "meta": {
                "policyCount": len(entities),
                "usageTotal": sum(row.total for row in rows),
                "limitTotal": sum(entity.limit for entity in entities),
            },
        }

    async def users_by(self, group: Optional[str]) -> Dict[str, Any]:
        """Number of users per policy and their share of all users."""
        _pick(group, USER_GROUPS, "policy", "UNSUPPORTED_GROUPING")

        entities = await self.store.list_quota_entities()
        users = await self.store.list_users()

        counts: Dict[str, int] = {}
        for user in users:
            if user.policy_id:
                counts[user.policy_id] = counts.get(user.policy_id, 0) + 1

        total_users = len(users)
        rows = []
        for entity in sorted(entities, key=lambda e: e.name):
            user_count = counts.get(entity.id, 0)
            rows.append({
                "id": entity.id,
                "name": entity.name,
                "userCount": user_count,
                "percent": clamp_percent(user_count, total_users),
            })

        return {"rows": rows, "totalUsers": total_users}

    async def usage_target(self, interval: Interval) -> Dict[str, Any]:
        """System usage against the aggregate limit, with the top policies."""
        events = await self.store.list_usage_events(interval)
        entities = await self.store.list_quota_entities()

        usage = self.aggregator.aggregate(
            events, interval, Granularity.MONTHLY, single_bucket=True
        )
        overall = self.comparator.compare_aggregate(usage.total, entities)

        totals = self.aggregator.totals_by(events, interval, key=lambda e: e.policy_id)
        top = self.comparator.rank(
            self.comparator.compare(totals, entities),
            self.top_policy_count,
        )

        return {
            "usageTotal": overall.total,
            "limit": overall.limit,
            "percent": overall.percent,
            "topPolicies": [{"name": r.name, "total": r.total} for r in top],
            "period": interval.to_dict(),
        }

    async def available_years(self) -> Dict[str, Any]:
        """Years with usage data and their totals, newest first.

        Falls back to the current year with a zero total when the store
        has no events at all. Years outside MIN_YEAR..MAX_YEAR are not offered.
        """
        years = [
            year for year in await self.store.list_distinct_event_years()
            if MIN_YEAR <= year <= MAX_YEAR
        ]
        if not years:
            return {"years": [{"year": self.now().year, "total": 0}]}

        first, last = min(years), max(years)
        span = Interval(year_interval(first).start, year_interval(last).end)
        events = await self.store.list_usage_events(span)
        result = self.aggregator.aggregate(events, span, Granularity.YEARLY)

        totals = {bucket.start.year: bucket.metric_total for bucket in result.buckets}
        return {
            "years": [
                {"year": year, "total": totals.get(year, 0)}
                for year in sorted(set(years), reverse=True)
            ],
        }

    async def token_summary(self, interval: Interval) -> Dict[str, Any]:
        """Per-metric totals for the interval and the window before it."""
        previous = previous_interval(interval)
        span = Interval(previous.start, interval.end)
        events = await self.store.list_usage_events(span)

        current_totals = self.aggregator.breakdown(events, interval)
        previous_totals = self.aggregator.breakdown(events, previous)

        current = current_totals.to_dict()
        before = previous_totals.to_dict()
        return {
            "current": current,
            "previous": before,
            "trend": {key: _trend(current[key], before[key]) for key in current},
            "period": interval.to_dict(),
        }

    def default_report_interval(self) -> Interval:
        """The last twelve calendar months up to now."""
        now = self.now()
        return Interval(first_of_month(now) - relativedelta(months=11), now)

    async def tokens_report(
        self,
        by: Optional[str],
        interval_kind: Optional[str],
        interval: Optional[Interval] = None,
    ) -> Dict[str, Any]:
        """Token usage per policy or user, bucketed by day or month.

        Args:
            by: policy or user (defaults to policy)
            interval_kind: day or month (defaults to month)
            interval: Reporting range (defaults to the last twelve months)

        Returns:
            Groups sorted by total descending, each with a zero-filled series
        """
        by = _pick(by, REPORT_GROUPS, "policy", "UNSUPPORTED_GROUPING")
        interval_kind = _pick(interval_kind, tuple(REPORT_INTERVALS), "month", "UNSUPPORTED_MODE")
        granularity = REPORT_INTERVALS[interval_kind]
        interval = interval or self.default_report_interval()

        events = await self.store.list_usage_events(interval)
        slots = self.planner.slots(interval, granularity)
        labels = [label for label, _ in slots]

        if by == "policy":
            names = {e.id: e.name for e in await self.store.list_quota_entities()}
            key = lambda e: e.policy_id or UNASSIGNED_ID
        else:
            names = {u.id: u.display_name for u in await self.store.list_users()}
            key = lambda e: e.entity_id

        series: Dict[str, Dict[str, int]] = {}
        for event in events:
            if event.occurred_at is None or not interval.contains(event.occurred_at):
                continue
            group = series.setdefault(key(event), {label: 0 for label in labels})
            label = self.planner.label_for(event.occurred_at, interval, granularity)
            group[label] += event.metric_total()

        groups: List[Dict[str, Any]] = []
        for group_id, by_label in series.items():
            if group_id == UNASSIGNED_ID:
                name = UNASSIGNED_NAME
            else:
                name = names.get(group_id) or group_id
            groups.append({
                "id": group_id,
                "name": name,
                "total": sum(by_label.values()),
                "series": [{"bucket": label, "tokens": by_label[label]} for label in labels],
            })
        groups.sort(key=lambda g: (-g["total"], g["name"]))

        return {
            "by": by,
            "interval": interval_kind,
            "from": to_iso(interval.start),
            "to": to_iso(interval.end),
            "buckets": labels,
            "groups": groups,
            "grandTotal": sum(g["total"] for g in groups),
        }
