"""Usage analytics data models.

This module defines dataclasses for the token usage events, quota
entities (policies) and users read from the store, plus the derived
views the analytics engine computes per request. Nothing here is
persisted by the engine.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime
from enum import Enum
from typing import Dict, Any, Optional, List

from dashboard.errors import InvalidRangeError, UnsupportedGroupingError
from dashboard.helpers.timestamps import parse_timestamp, to_iso


@dataclass(frozen=True)
class UsageEvent:
    """A single token usage event.

    Stored in DynamoDB with user_id as partition key and timestamp as sort
    key. The owning user's policy is joined in by the store.

    Attributes:
        entity_id: The user who consumed the tokens
        occurred_at: UTC instant of the event, None if the stored value is unusable
        input_tokens: Number of input/prompt tokens
        output_tokens: Number of output/response tokens
        cached_input_tokens: Number of input tokens served from cache
        reasoning_tokens: Number of reasoning tokens
        policy_id: The quota entity the user belongs to, if any
    """
    entity_id: str
    occurred_at: Optional[datetime]
    input_tokens: int = 0
    output_tokens: int = 0
    cached_input_tokens: int = 0
    reasoning_tokens: int = 0
    policy_id: Optional[str] = None

    def metric_total(self, include_reasoning: bool = False) -> int:
        """Tokens counted against quota: input + output + cached.

        Args:
            include_reasoning: Also add reasoning tokens (full breakdown)
        """
        total = self.input_tokens + self.output_tokens + self.cached_input_tokens
        if include_reasoning:
            total += self.reasoning_tokens
        return total

    def to_dynamodb_item(self) -> Dict[str, Any]:
        """Convert to DynamoDB item format."""
        return {
            "user_id": {"S": self.entity_id},
            "timestamp": {"S": to_iso(self.occurred_at) if self.occurred_at else ""},
            "input_tokens": {"N": str(self.input_tokens)},
            "output_tokens": {"N": str(self.output_tokens)},
            "cached_input_tokens": {"N": str(self.cached_input_tokens)},
            "reasoning_tokens": {"N": str(self.reasoning_tokens)},
        }

    @classmethod
    def from_dynamodb_item(cls, item: Dict[str, Any]) -> "UsageEvent":
        """Create instance from DynamoDB item.

        A missing or unparseable timestamp yields ``occurred_at=None`` so the
        aggregator can count it as a data-quality skip.
        """
        raw_timestamp = item.get("timestamp", {}).get("S", "")
        try:
            occurred_at = parse_timestamp(raw_timestamp)
        except (ValueError, OverflowError):
            occurred_at = None

        return cls(
            entity_id=item.get("user_id", {}).get("S", ""),
            occurred_at=occurred_at,
            input_tokens=int(item.get("input_tokens", {}).get("N", "0")),
            output_tokens=int(item.get("output_tokens", {}).get("N", "0")),
            cached_input_tokens=int(item.get("cached_input_tokens", {}).get("N", "0")),
            reasoning_tokens=int(item.get("reasoning_tokens", {}).get("N", "0")),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to plain dictionary."""
        return {
            "entity_id": self.entity_id,
            "occurred_at": to_iso(self.occurred_at) if self.occurred_at else None,
            "input_tokens": self.input_tokens,
            "output_tokens": self.output_tokens,
            "cached_input_tokens": self.cached_input_tokens,
            "reasoning_tokens": self.reasoning_tokens,
            "policy_id": self.policy_id,
        }


@dataclass(frozen=True)
class QuotaEntity:
    """A grouping unit (a policy) whose consumption is tracked against a limit.

    Attributes:
        id: Policy identifier
        name: Display name
        limit: Token limit; 0 means no quota is configured
    """
    id: str
    name: str
    limit: int = 0

    @classmethod
    def from_dynamodb_item(cls, item: Dict[str, Any]) -> "QuotaEntity":
        """Create instance from DynamoDB item."""
        return cls(
            id=item.get("policy_id", {}).get("S", ""),
            name=item.get("name", {}).get("S", ""),
            limit=max(0, int(item.get("token_limit", {}).get("N", "0"))),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)


@dataclass(frozen=True)
class DashboardUser:
    """A dashboard user and the policy assigned to them."""
    id: str
    email: str = ""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    policy_id: Optional[str] = None

    @property
    def display_name(self) -> str:
        """Full name when known, otherwise the email address."""
        full_name = " ".join(
            part for part in (self.first_name, self.last_name) if part
        ).strip()
        return full_name or self.email

    @classmethod
    def from_dynamodb_item(cls, item: Dict[str, Any]) -> "DashboardUser":
        """Create instance from DynamoDB item."""
        return cls(
            id=item.get("user_id", {}).get("S", ""),
            email=item.get("email", {}).get("S", ""),
            first_name=item.get("first_name", {}).get("S"),
            last_name=item.get("last_name", {}).get("S"),
            policy_id=item.get("policy_id", {}).get("S") or None,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)


@dataclass(frozen=True)
class Interval:
    """Half-open time range ``[start, end)`` between two UTC instants."""
    start: datetime
    end: datetime

    def __post_init__(self):
        if self.start >= self.end:
            raise InvalidRangeError(
                f"range start {to_iso(self.start)} must be before end {to_iso(self.end)}"
            )

    def contains(self, instant: datetime) -> bool:
        """True when ``start <= instant < end``."""
        return self.start <= instant < self.end

    def to_dict(self) -> Dict[str, str]:
        """Convert to the ``{from, to}`` shape used in responses."""
        return {"from": to_iso(self.start), "to": to_iso(self.end)}


class Granularity(str, Enum):
    """Time-slicing unit used for bucketing."""
    DAILY = "daily"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"

    @classmethod
    def parse(
        cls,
        value: Optional[str],
        default: "Granularity" = None,
    ) -> "Granularity":
        """Parse a request ``mode`` value.

        ``annually`` is accepted for yearly. A missing value yields
        ``default`` (monthly unless given).

        Raises:
            UnsupportedGroupingError: If the value is not a known mode
        """
        if value is None or not value.strip():
            return default or cls.MONTHLY
        normalized = value.strip().lower()
        if normalized == "annually":
            return cls.YEARLY
        try:
            return cls(normalized)
        except ValueError:
            raise UnsupportedGroupingError(
                f"unsupported mode '{value}'", code="UNSUPPORTED_MODE"
            )


@dataclass
class Bucket:
    """A named time slice with its aggregated metric total."""
    label: str
    start: datetime
    metric_total: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "label": self.label,
            "start": to_iso(self.start),
            "metric_total": self.metric_total,
        }


@dataclass
class AggregationResult:
    """Buckets produced by one aggregation plus the data-quality skip count."""
    buckets: List[Bucket] = field(default_factory=list)
    skipped: int = 0

    @property
    def total(self) -> int:
        """Sum of all bucket totals."""
        return sum(bucket.metric_total for bucket in self.buckets)


@dataclass
class TokenBreakdown:
    """Per-metric token sums for a period."""
    input_tokens: int = 0
    output_tokens: int = 0
    reasoning_tokens: int = 0
    cached_input_tokens: int = 0

    def to_dict(self) -> Dict[str, int]:
        """Convert to the camelCase shape used by the summary widget."""
        return {
            "inputTokens": self.input_tokens,
            "outputTokens": self.output_tokens,
            "reasoningTokens": self.reasoning_tokens,
            "cachedInputTokens": self.cached_input_tokens,
        }


@dataclass
class RankedEntity:
    """Usage of one quota entity compared against its limit.

    Attributes:
        entity_id: The quota entity identifier
        name: Display name
        total: Tokens consumed in the period
        limit: The limit used as denominator
        percent: total / limit * 100 clamped to [0, 100]; 0 when limit is 0
    """
    entity_id: str
    name: str
    total: int = 0
    limit: int = 0
    percent: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.entity_id,
            "name": self.name,
            "total": self.total,
            "limit": self.limit,
            "percent": self.percent,
        }
