"""Usage-analytics and quota-tracking engine.

This package turns token usage events into the dashboard's reports:

- range_resolver: Resolve time presets into half-open intervals
- BucketPlanner: Plan the complete bucket list for an interval
- UsageAggregator: Sum events into zero-filled buckets and per-entity totals
- QuotaComparator: Compare usage against policy limits and rank consumers
- ReportAssembler: Compose the above into the widget response shapes

Routes are defined in dashboard/routes/analytics.py.
"""

from dashboard.analytics.buckets import BucketPlanner
from dashboard.analytics.aggregator import UsageAggregator
from dashboard.analytics.quota import QuotaComparator
from dashboard.analytics.reports import ReportAssembler

__all__ = ["BucketPlanner", "UsageAggregator", "QuotaComparator", "ReportAssembler"]
