"""DynamoDB-backed usage store.

This module provides the DynamoUsageStore class for reading usage events,
policies and users from DynamoDB. Reads run in the default executor so the
event loop is never blocked by boto3.
"""

import asyncio
import logging
import os
from dataclasses import replace
from typing import Any, Dict, List, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from dashboard.errors import DataSourceError
from dashboard.helpers.timestamps import parse_timestamp, to_iso
from dashboard.models.usage import DashboardUser, Interval, QuotaEntity, UsageEvent
from dashboard.storage.base import UsageStore

logger = logging.getLogger(__name__)


class DynamoUsageStore(UsageStore):
    """Read-only access to the usage, policy and user tables.

    Usage items are keyed by user_id (partition) and timestamp (sort).
    Timestamps are stored as ISO-8601 UTC strings, so lexical comparison
    matches chronological order.
    """

    def __init__(
        self,
        usage_table_name: Optional[str] = None,
        policy_table_name: Optional[str] = None,
        user_table_name: Optional[str] = None,
        region: Optional[str] = None,
        client: Any = None,
    ):
        """Initialize the store.

        Args:
            usage_table_name: Usage table (defaults to USAGE_TABLE_NAME env var)
            policy_table_name: Policy table (defaults to POLICY_TABLE_NAME env var)
            user_table_name: User table (defaults to USER_TABLE_NAME env var)
            region: AWS region (defaults to AWS_REGION env var)
            client: Optional preconfigured boto3 DynamoDB client
        """
        self.usage_table_name = usage_table_name or os.environ.get(
            "USAGE_TABLE_NAME", "dashboard-token-usage"
        )
        self.policy_table_name = policy_table_name or os.environ.get(
            "POLICY_TABLE_NAME", "dashboard-policies"
        )
        self.user_table_name = user_table_name or os.environ.get(
            "USER_TABLE_NAME", "dashboard-users"
        )
        self.region = region or os.environ.get("AWS_REGION", "us-east-1")

        if client is None:
            # Retries live in the client; the store itself never retries
            boto_config = Config(
                region_name=self.region,
                retries={"max_attempts": 3, "mode": "adaptive"},
            )
            client = boto3.client("dynamodb", config=boto_config)
        self._client = client

    async def _run(self, operation: str, func, *args) -> Any:
        """Run a blocking boto3 helper in the executor, mapping failures.

        Raises:
            DataSourceError: If DynamoDB or botocore reports an error
        """
        try:
            loop = asyncio.get_event_loop()
            return await loop.run_in_executor(None, func, *args)
        except ClientError as e:
            logger.error(
                f"Failed to {operation}",
                extra={
                    "error_code": e.response.get("Error", {}).get("Code"),
                    "error_message": str(e),
                },
            )
            raise DataSourceError(f"Failed to {operation}: {e}") from e
        except BotoCoreError as e:
            logger.error(
                f"Failed to {operation} (botocore error)",
                extra={"error": str(e)},
            )
            raise DataSourceError(f"Failed to {operation}: {e}") from e

    def _scan(self, table_name: str, **kwargs) -> List[dict]:
        """Synchronous helper to scan a whole table.

        Args:
            table_name: The table to scan
            **kwargs: Extra scan parameters (filters, projections)

        Returns:
            List of DynamoDB items
        """
        items = []
        paginator = self._client.get_paginator("scan")

        for page in paginator.paginate(TableName=table_name, **kwargs):
            items.extend(page.get("Items", []))

        return items

    async def list_usage_events(self, interval: Interval) -> List[UsageEvent]:
        """Get usage events in ``[start, end)`` with policy ids joined from users.

        Stored timestamps come in several ISO-8601 spellings (``Z`` or
        ``+00:00``, with or without fractional seconds), so string
        comparison in a FilterExpression does not order them correctly.
        The range check is done on parsed instants instead. Events whose
        timestamp cannot be parsed are returned with ``occurred_at=None``
        so the aggregator counts them as skipped.
        """
        items = await self._run(
            "scan usage events",
            lambda: self._scan(self.usage_table_name),
        )
        users = await self.list_users()
        policy_by_user: Dict[str, Optional[str]] = {u.id: u.policy_id for u in users}

        events = []
        for item in items:
            event = UsageEvent.from_dynamodb_item(item)
            if event.occurred_at is not None and not interval.contains(event.occurred_at):
                continue
            events.append(replace(event, policy_id=policy_by_user.get(event.entity_id)))

        logger.debug(
            "Loaded usage events",
            extra={"count": len(events), "start": to_iso(interval.start)},
        )
        return events

    async def list_quota_entities(self) -> List[QuotaEntity]:
        """Get all policies with their token limits."""
        items = await self._run(
            "scan policies",
            lambda: self._scan(self.policy_table_name),
        )
        return [QuotaEntity.from_dynamodb_item(item) for item in items]

    async def list_users(self) -> List[DashboardUser]:
        """Get all users with their policy assignment."""
        items = await self._run(
            "scan users",
            lambda: self._scan(self.user_table_name),
        )
        return [DashboardUser.from_dynamodb_item(item) for item in items]

    async def list_distinct_event_years(self) -> List[int]:
        """Get the distinct years present in the usage table, ascending."""
        items = await self._run(
            "scan usage years",
            lambda: self._scan(
                self.usage_table_name,
                ProjectionExpression="#ts",
                ExpressionAttributeNames={"#ts": "timestamp"},
            ),
        )
        years = set()
        for item in items:
            try:
                years.add(parse_timestamp(item.get("timestamp", {}).get("S", "")).year)
            except (ValueError, OverflowError):
                continue
        return sorted(years)
