"""Unit tests for bucket planning."""

from datetime import datetime, timezone

import pytest

from dashboard.analytics.buckets import MONTH_LABELS, BucketPlanner, calendar_year_of
from dashboard.analytics.range_resolver import resolve, year_interval
from dashboard.models.usage import Granularity


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


class TestWholeYearPlans:
    """Tests for plans over exactly one calendar year."""

    def test_monthly_has_twelve_labels(self):
        """Test a whole-year monthly plan is Jan..Dec."""
        labels = BucketPlanner().plan(year_interval(2025), Granularity.MONTHLY)

        assert labels == MONTH_LABELS
        assert len(labels) == 12

    def test_quarterly(self):
        """Test a whole-year quarterly plan is Q1..Q4."""
        labels = BucketPlanner().plan(year_interval(2025), Granularity.QUARTERLY)

        assert labels == ["Q1", "Q2", "Q3", "Q4"]

    def test_yearly(self):
        """Test a whole-year yearly plan is the single requested year."""
        labels = BucketPlanner().plan(year_interval(2025), Granularity.YEARLY)

        assert labels == ["2025"]

    def test_calendar_year_detection(self):
        """Test that only exact calendar years are detected."""
        assert calendar_year_of(year_interval(2024)) == 2024
        assert calendar_year_of(resolve("custom", "2024-01-01", "2024-12-31")) is None


class TestArbitraryPlans:
    """Tests for plans over arbitrary intervals."""

    def test_monthly_across_years(self):
        """Test one year-qualified label per intersected month."""
        interval = resolve("custom", "2024-11-15", "2025-02-10")

        labels = BucketPlanner().plan(interval, Granularity.MONTHLY)

        assert labels == ["Nov 2024", "Dec 2024", "Jan 2025", "Feb 2025"]

    def test_end_on_boundary_excludes_next_month(self):
        """Test that an end at a month boundary does not add that month."""
        interval = resolve("custom", "2025-01-01", "2025-03-01")

        labels = BucketPlanner().plan(interval, Granularity.MONTHLY)

        assert labels == ["Jan 2025", "Feb 2025"]

    def test_quarterly_partial(self):
        """Test quarterly labels for a partial-year interval."""
        interval = resolve("custom", "2025-02-01", "2025-08-01")

        labels = BucketPlanner().plan(interval, Granularity.QUARTERLY)

        assert labels == ["Q1 2025", "Q2 2025", "Q3 2025"]

    def test_yearly_multi_year(self):
        """Test yearly labels for an interval spanning years."""
        interval = resolve("custom", "2023-06-01", "2025-01-02")

        labels = BucketPlanner().plan(interval, Granularity.YEARLY)

        assert labels == ["2023", "2024", "2025"]

    def test_daily(self):
        """Test daily labels are ISO dates."""
        interval = resolve("custom", "2025-02-27T12:00:00Z", "2025-03-02")

        labels = BucketPlanner().plan(interval, Granularity.DAILY)

        assert labels == ["2025-02-27", "2025-02-28", "2025-03-01"]

    def test_short_interval_is_never_empty(self):
        """Test that a one-second interval still yields one bucket."""
        interval = resolve("custom", "2025-05-10T10:00:00Z", "2025-05-10T10:00:01Z")

        assert BucketPlanner().plan(interval, Granularity.MONTHLY) == ["May 2025"]

    @pytest.mark.parametrize("granularity", list(Granularity))
    @pytest.mark.parametrize("bounds", [
        ("2024-11-15", "2025-02-10"),
        ("2025-01-01", "2026-01-01"),
        ("2020-02-29", "2025-07-04"),
    ])
    def test_labels_unique_and_chronological(self, granularity, bounds):
        """Test that labels are unique and slot starts strictly increase."""
        interval = resolve("custom", *bounds)

        slots = BucketPlanner().slots(interval, granularity)
        labels = [label for label, _ in slots]
        starts = [start for _, start in slots]

        assert len(set(labels)) == len(labels)
        assert starts == sorted(starts)
        assert len(set(starts)) == len(starts)
        assert starts[0] <= interval.start
        assert starts[-1] < interval.end


class TestLabelFor:
    """Tests for mapping instants to bucket labels."""

    def test_label_matches_plan_format(self):
        """Test that label_for produces labels present in the plan."""
        planner = BucketPlanner()
        interval = resolve("custom", "2024-11-15", "2025-02-10")

        label = planner.label_for(utc(2025, 1, 31, 23, 59), interval, Granularity.MONTHLY)

        assert label == "Jan 2025"
        assert label in planner.plan(interval, Granularity.MONTHLY)

    def test_quarter_label_in_calendar_year(self):
        """Test quarter labels drop the year inside a calendar year."""
        planner = BucketPlanner()

        label = planner.label_for(utc(2025, 6, 30), year_interval(2025), Granularity.QUARTERLY)

        assert label == "Q2"
