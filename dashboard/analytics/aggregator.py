"""Usage aggregation over token usage events.

This module provides the UsageAggregator class, which folds a sequence of
usage events into zero-filled time buckets, per-entity totals and
per-metric breakdowns. All methods are pure functions of their inputs.
"""

import logging
from collections import defaultdict
from typing import Callable, Dict, Iterable, List, Optional

from dashboard.analytics.buckets import BucketPlanner
from dashboard.models.usage import (
    AggregationResult,
    Bucket,
    Granularity,
    Interval,
    TokenBreakdown,
    UsageEvent,
)

logger = logging.getLogger(__name__)

SINGLE_BUCKET_LABEL = "total"


class UsageAggregator:
    """Sum usage events into buckets planned independently of the data.

    Events are counted only when ``occurred_at`` lies in the half-open
    interval ``[start, end)``. Events without a usable timestamp are
    skipped and reported in ``AggregationResult.skipped``.
    """

    def __init__(self, planner: Optional[BucketPlanner] = None):
        """Initialize the aggregator.

        Args:
            planner: Optional BucketPlanner instance
        """
        self.planner = planner or BucketPlanner()

    def _in_interval(
        self,
        events: Iterable[UsageEvent],
        interval: Interval,
    ) -> tuple[List[UsageEvent], int]:
        """Split events into those inside the interval and a skip count."""
        selected = []
        skipped = 0
        for event in events:
            if event.occurred_at is None:
                skipped += 1
                continue
            if interval.contains(event.occurred_at):
                selected.append(event)
        if skipped:
            logger.warning(
                "Skipped usage events without a valid timestamp",
                extra={"skipped": skipped},
            )
        return selected, skipped

    def aggregate(
        self,
        events: Iterable[UsageEvent],
        interval: Interval,
        granularity: Granularity,
        include_reasoning: bool = False,
        single_bucket: bool = False,
    ) -> AggregationResult:
        """Aggregate events into one bucket per planned slot.

        Args:
            events: Usage events, possibly including rows outside the interval
            interval: The half-open reporting interval
            granularity: Bucket width
            include_reasoning: Count reasoning tokens as well
            single_bucket: Use one bucket spanning the whole interval

        Returns:
            AggregationResult with buckets in chronological order
        """
        selected, skipped = self._in_interval(events, interval)

        if single_bucket:
            total = sum(e.metric_total(include_reasoning) for e in selected)
            return AggregationResult(
                buckets=[Bucket(SINGLE_BUCKET_LABEL, interval.start, total)],
                skipped=skipped,
            )

        buckets = [
            Bucket(label=label, start=slot_start)
            for label, slot_start in self.planner.slots(interval, granularity)
        ]
        by_label = {bucket.label: bucket for bucket in buckets}

        for event in selected:
            label = self.planner.label_for(event.occurred_at, interval, granularity)
            by_label[label].metric_total += event.metric_total(include_reasoning)

        return AggregationResult(buckets=buckets, skipped=skipped)

    def totals_by(
        self,
        events: Iterable[UsageEvent],
        interval: Interval,
        key: Callable[[UsageEvent], Optional[str]],
        include_reasoning: bool = False,
    ) -> Dict[str, int]:
        """Sum in-interval events per grouping key.

        Events whose key is None are left out of the map.

        Args:
            events: Usage events
            interval: The half-open reporting interval
            key: Function mapping an event to its group id

        Returns:
            Dictionary mapping group id to total tokens
        """
        selected, _ = self._in_interval(events, interval)
        totals: Dict[str, int] = defaultdict(int)
        for event in selected:
            group = key(event)
            if group is None:
                continue
            totals[group] += event.metric_total(include_reasoning)
        return dict(totals)

    def breakdown(
        self,
        events: Iterable[UsageEvent],
        interval: Interval,
    ) -> TokenBreakdown:
        """Per-metric sums of in-interval events."""
        selected, _ = self._in_interval(events, interval)
        result = TokenBreakdown()
        for event in selected:
            result.input_tokens += event.input_tokens
            result.output_tokens += event.output_tokens
            result.reasoning_tokens += event.reasoning_tokens
            result.cached_input_tokens += event.cached_input_tokens
        return result
