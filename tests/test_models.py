"""Unit tests for data models."""

from datetime import datetime, timezone

import pytest

from dashboard.errors import InvalidRangeError, UnsupportedGroupingError
from dashboard.models.usage import (
    DashboardUser,
    Granularity,
    Interval,
    QuotaEntity,
    UsageEvent,
)


class TestUsageEvent:
    """Tests for UsageEvent dataclass."""

    def test_metric_total_excludes_reasoning(self):
        """Test the quota metric is input + output + cached."""
        event = UsageEvent("u1", None, input_tokens=1, output_tokens=2,
                           cached_input_tokens=3, reasoning_tokens=100)

        assert event.metric_total() == 6
        assert event.metric_total(include_reasoning=True) == 106

    def test_dynamodb_round_trip(self):
        """Test conversion to and from DynamoDB item format."""
        event = UsageEvent(
            entity_id="u1",
            occurred_at=datetime(2025, 4, 1, 12, tzinfo=timezone.utc),
            input_tokens=10,
            output_tokens=20,
            cached_input_tokens=3,
            reasoning_tokens=4,
        )

        item = event.to_dynamodb_item()

        assert item["timestamp"] == {"S": "2025-04-01T12:00:00Z"}
        assert UsageEvent.from_dynamodb_item(item) == event

    def test_from_dynamodb_item_with_offset(self):
        """Test timestamps with offsets are normalised to UTC."""
        item = {"user_id": {"S": "u1"}, "timestamp": {"S": "2025-01-01T01:00:00+02:00"}}

        event = UsageEvent.from_dynamodb_item(item)

        assert event.occurred_at == datetime(2024, 12, 31, 23, tzinfo=timezone.utc)
        assert event.input_tokens == 0

    @pytest.mark.parametrize("raw", ["", "yesterday", "2025-13-45"])
    def test_unusable_timestamp(self, raw):
        """Test a bad timestamp yields occurred_at=None instead of raising."""
        event = UsageEvent.from_dynamodb_item({"user_id": {"S": "u1"}, "timestamp": {"S": raw}})

        assert event.occurred_at is None

    def test_to_dict(self):
        """Test serialization to dictionary."""
        event = UsageEvent("u1", None, input_tokens=5, policy_id="p1")

        result = event.to_dict()

        assert result["occurred_at"] is None
        assert result["policy_id"] == "p1"
        assert result["input_tokens"] == 5


class TestQuotaEntity:
    """Tests for QuotaEntity dataclass."""

    def test_from_dynamodb_item(self):
        """Test deserialization from a policy item."""
        item = {"policy_id": {"S": "p1"}, "name": {"S": "Alpha"}, "token_limit": {"N": "500"}}

        entity = QuotaEntity.from_dynamodb_item(item)

        assert entity == QuotaEntity("p1", "Alpha", 500)

    def test_missing_limit_defaults_to_zero(self):
        """Test a policy without a limit has limit 0."""
        entity = QuotaEntity.from_dynamodb_item({"policy_id": {"S": "p1"}, "name": {"S": "A"}})

        assert entity.limit == 0


class TestDashboardUser:
    """Tests for DashboardUser dataclass."""

    def test_display_name_prefers_full_name(self):
        """Test full name is used when present."""
        user = DashboardUser("u1", "ann@example.com", "Ann", "Lee")

        assert user.display_name == "Ann Lee"

    def test_display_name_falls_back_to_email(self):
        """Test email is used without a name."""
        assert DashboardUser("u1", "ann@example.com").display_name == "ann@example.com"

    def test_empty_policy_is_none(self):
        """Test an empty policy_id attribute means unassigned."""
        user = DashboardUser.from_dynamodb_item({"user_id": {"S": "u1"}, "policy_id": {"S": ""}})

        assert user.policy_id is None


class TestInterval:
    """Tests for Interval."""

    def test_rejects_empty_range(self):
        """Test start == end is rejected."""
        instant = datetime(2025, 1, 1, tzinfo=timezone.utc)

        with pytest.raises(InvalidRangeError):
            Interval(instant, instant)

    def test_contains_is_half_open(self):
        """Test start is included and end is excluded."""
        start = datetime(2025, 1, 1, tzinfo=timezone.utc)
        end = datetime(2025, 2, 1, tzinfo=timezone.utc)
        interval = Interval(start, end)

        assert interval.contains(start)
        assert not interval.contains(end)

    def test_to_dict(self):
        """Test serialization to the from/to shape."""
        interval = Interval(
            datetime(2025, 1, 1, tzinfo=timezone.utc),
            datetime(2025, 2, 1, tzinfo=timezone.utc),
        )

        assert interval.to_dict() == {"from": "2025-01-01T00:00:00Z", "to": "2025-02-01T00:00:00Z"}


class TestGranularity:
    """Tests for Granularity.parse."""

    @pytest.mark.parametrize("value,expected", [
        (None, Granularity.MONTHLY),
        ("", Granularity.MONTHLY),
        ("Quarterly", Granularity.QUARTERLY),
        ("annually", Granularity.YEARLY),
        ("yearly", Granularity.YEARLY),
        (" daily ", Granularity.DAILY),
    ])
    def test_parse(self, value, expected):
        """Test accepted spellings."""
        assert Granularity.parse(value) == expected

    def test_parse_unknown(self):
        """Test unknown modes raise with UNSUPPORTED_MODE."""
        with pytest.raises(UnsupportedGroupingError) as exc_info:
            Granularity.parse("weekly")

        assert exc_info.value.code == "UNSUPPORTED_MODE"
