"""In-memory usage store for tests and local development."""

from dataclasses import replace
from typing import Iterable, List, Optional

from dashboard.models.usage import DashboardUser, Interval, QuotaEntity, UsageEvent
from dashboard.storage.base import UsageStore


class InMemoryUsageStore(UsageStore):
    """UsageStore over plain lists.

    Events are returned with the policy of their owning user joined in,
    mirroring the DynamoDB store. Events with no timestamp are always
    returned so the aggregator can count them as skipped.
    """

    def __init__(
        self,
        events: Optional[Iterable[UsageEvent]] = None,
        policies: Optional[Iterable[QuotaEntity]] = None,
        users: Optional[Iterable[DashboardUser]] = None,
    ):
        self.events: List[UsageEvent] = list(events or [])
        self.policies: List[QuotaEntity] = list(policies or [])
        self.users: List[DashboardUser] = list(users or [])

    async def list_usage_events(self, interval: Interval) -> List[UsageEvent]:
        policy_by_user = {u.id: u.policy_id for u in self.users}
        return [
            replace(event, policy_id=policy_by_user.get(event.entity_id, event.policy_id))
            for event in self.events
            if event.occurred_at is None or interval.contains(event.occurred_at)
        ]

    async def list_quota_entities(self) -> List[QuotaEntity]:
        return list(self.policies)

    async def list_distinct_event_years(self) -> List[int]:
        return sorted({e.occurred_at.year for e in self.events if e.occurred_at})

    async def list_users(self) -> List[DashboardUser]:
        return list(self.users)
