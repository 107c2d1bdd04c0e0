"""Data models for the token quota dashboard."""

from dashboard.models.usage import (
    UsageEvent,
    QuotaEntity,
    DashboardUser,
    Interval,
    Granularity,
    Bucket,
    AggregationResult,
    TokenBreakdown,
    RankedEntity,
)

__all__ = [
    # Stored records
    "UsageEvent",
    "QuotaEntity",
    "DashboardUser",
    # Derived views
    "Interval",
    "Granularity",
    "Bucket",
    "AggregationResult",
    "TokenBreakdown",
    "RankedEntity",
]
