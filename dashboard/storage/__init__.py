"""Read-only store accessors for usage analytics."""

from dashboard.config import AppConfig
from dashboard.storage.base import UsageStore
from dashboard.storage.dynamodb import DynamoUsageStore
from dashboard.storage.memory import InMemoryUsageStore


def build_store(config: AppConfig) -> UsageStore:
    """Create the store selected by ``config.store_backend``."""
    if config.store_backend == "memory":
        return InMemoryUsageStore()
    return DynamoUsageStore(
        usage_table_name=config.usage_table_name,
        policy_table_name=config.policy_table_name,
        user_table_name=config.user_table_name,
        region=config.aws_region,
    )


__all__ = ["UsageStore", "DynamoUsageStore", "InMemoryUsageStore", "build_store"]
