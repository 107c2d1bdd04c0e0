"""Shared fixtures for analytics tests."""

from datetime import datetime, timezone

import pytest

from dashboard.models.usage import DashboardUser, QuotaEntity, UsageEvent
from dashboard.storage.memory import InMemoryUsageStore


FIXED_NOW = datetime(2025, 3, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def fixed_clock():
    """Clock pinned to 2025-03-15T12:00:00Z."""
    return lambda: FIXED_NOW


@pytest.fixture
def sample_store():
    """Store with three policies, four users and a handful of events.

    2025 usage: Alpha 300, Gamma 300, unassigned 50 (total 650).
    2024 usage: Alpha 1000. One event has no usable timestamp.
    """
    policies = [
        QuotaEntity("p1", "Alpha", 1000),
        QuotaEntity("p2", "Beta", 0),
        QuotaEntity("p3", "Gamma", 500),
    ]
    users = [
        DashboardUser("u1", "ann@example.com", "Ann", "Lee", policy_id="p1"),
        DashboardUser("u2", "bob@example.com", policy_id="p1"),
        DashboardUser("u3", "cat@example.com", policy_id="p3"),
        DashboardUser("u4", "dan@example.com"),
    ]

    def event(user, occurred_at, tokens):
        return UsageEvent(entity_id=user, occurred_at=occurred_at, input_tokens=tokens)

    events = [
        event("u1", datetime(2025, 1, 15, tzinfo=timezone.utc), 100),
        event("u2", datetime(2025, 2, 10, tzinfo=timezone.utc), 200),
        event("u3", datetime(2025, 2, 20, tzinfo=timezone.utc), 300),
        event("u4", datetime(2025, 3, 5, tzinfo=timezone.utc), 50),
        event("u1", datetime(2024, 12, 31, 23, 59, 59, tzinfo=timezone.utc), 1000),
        event("u3", None, 7),
    ]
    return InMemoryUsageStore(events=events, policies=policies, users=users)
