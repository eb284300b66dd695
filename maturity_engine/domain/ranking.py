from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol, TypeVar

from .models import DimensionResult

# Fixed by design, not configurable per dimension.
MAX_RECOMMENDATIONS_PER_DIMENSION = 5
MAX_TOP_RECOMMENDATIONS = 5


class _Prioritised(Protocol):
    @property
    def priority(self) -> int: ...


PrioritisedT = TypeVar("PrioritisedT", bound=_Prioritised)


def rank_dimension_recommendations(
    matches: Iterable[PrioritisedT], limit: int = MAX_RECOMMENDATIONS_PER_DIMENSION
) -> list[PrioritisedT]:
    """
    Order a dimension's matched recommendations by priority, highest first.

    ``sorted`` is stable, so equal priorities keep their discovery order.
    """
    return sorted(matches, key=lambda rec: rec.priority, reverse=True)[:limit]


def rank_dimensions(dimensions: Iterable[DimensionResult]) -> list[DimensionResult]:
    """Sort by priority score (desc) and assign dense 1-based ``rank_order``."""
    ranked = sorted(dimensions, key=lambda d: d.priority_score, reverse=True)
    for rank, dim in enumerate(ranked, start=1):
        dim.rank_order = rank
    return ranked


def select_top_recommendations(
    per_dimension: Iterable[Iterable[PrioritisedT]], limit: int = MAX_TOP_RECOMMENDATIONS
) -> list[PrioritisedT]:
    """Response-level view: union of every dimension's list, re-ranked and bounded."""
    merged = [rec for recs in per_dimension for rec in recs]
    return rank_dimension_recommendations(merged, limit=limit)
