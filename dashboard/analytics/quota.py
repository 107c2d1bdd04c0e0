"""Quota comparison and ranking.

This module provides the QuotaComparator class for comparing aggregate
token usage against configured policy limits and ranking consumers.
"""

from typing import Dict, List, Sequence

from dashboard.models.usage import QuotaEntity, RankedEntity


def clamp_percent(numerator: float, denominator: float) -> float:
    """Return ``numerator / denominator * 100`` clamped to [0, 100].

    A non-positive denominator yields 0: no quota configured means no
    consumption signal, not an exhausted quota.
    """
    if denominator <= 0:
        return 0.0
    return max(0.0, min(100.0, numerator / denominator * 100))


class QuotaComparator:
    """Compare per-entity usage against quota limits."""

    def compare(
        self,
        entity_totals: Dict[str, int],
        entities: Sequence[QuotaEntity],
    ) -> List[RankedEntity]:
        """Compute clamped usage percentage for every quota entity.

        Entities without usage still appear with a total of 0.

        Args:
            entity_totals: Mapping of entity id to total tokens
            entities: Quota entities to report on

        Returns:
            List of RankedEntity in the same order as ``entities``
        """
        result = []
        for entity in entities:
            total = entity_totals.get(entity.id, 0)
            result.append(RankedEntity(
                entity_id=entity.id,
                name=entity.name,
                total=total,
                limit=entity.limit,
                percent=clamp_percent(total, entity.limit),
            ))
        return result

    def rank(self, ranked: Sequence[RankedEntity], n: int) -> List[RankedEntity]:
        """Top ``n`` by total descending, ties broken by name ascending."""
        if n <= 0:
            return []
        ordered = sorted(ranked, key=lambda r: (-r.total, r.name))
        return ordered[:n]

    def compare_aggregate(
        self,
        total: int,
        entities: Sequence[QuotaEntity],
        name: str = "All policies",
    ) -> RankedEntity:
        """Compare total system usage against the sum of all entity limits."""
        limit = sum(entity.limit for entity in entities)
        return RankedEntity(
            entity_id="__ALL__",
            name=name,
            total=total,
            limit=limit,
            percent=clamp_percent(total, limit),
        )
