"""Read-only data access contract required by the analytics engine."""

from abc import ABC, abstractmethod
from typing import List

from dashboard.models.usage import DashboardUser, Interval, QuotaEntity, UsageEvent


class UsageStore(ABC):
    """Read-only accessors over the externally owned usage tables.

    Implementations raise DataSourceError when the underlying store fails;
    they never return an empty result in place of a failure.
    """

    @abstractmethod
    async def list_usage_events(self, interval: Interval) -> List[UsageEvent]:
        """Usage events in ``interval`` with the owning user's policy joined in."""

    @abstractmethod
    async def list_quota_entities(self) -> List[QuotaEntity]:
        """All policies with their token limits."""

    @abstractmethod
    async def list_distinct_event_years(self) -> List[int]:
        """Distinct calendar years that have at least one usage event."""

    @abstractmethod
    async def list_users(self) -> List[DashboardUser]:
        """All users with their policy assignment."""
