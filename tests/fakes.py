from __future__ import annotations

from collections.abc import Collection, Sequence
from datetime import datetime

from maturity_engine.domain.models import (
    DimensionInfo,
    DimensionResult,
    OverallMetrics,
    RecommendationRule,
    ResponseHeader,
    TopicRating,
)
from maturity_engine.infrastructure.exceptions import ResponseNotFoundError


class FakeScoringTransaction:
    """In-memory scoring transaction recording what the engine writes."""

    def __init__(
        self,
        header: ResponseHeader,
        dimensions: list[DimensionInfo],
        ratings: list[TopicRating],
        rules: list[RecommendationRule] | None = None,
    ):
        self.header = header
        self.dimensions = dimensions
        self.ratings = ratings
        self.rules = rules or []
        self.calls: list[str] = []
        self.written: list[DimensionResult] | None = None
        self.finalized: OverallMetrics | None = None
        self.completed_at: datetime | None = None

    def lock_response(self, response_id: int) -> ResponseHeader:
        self.calls.append("lock_response")
        if response_id != self.header.id:
            raise ResponseNotFoundError(response_id)
        return self.header

    def load_dimensions(self, assessment_id: int) -> list[DimensionInfo]:
        self.calls.append("load_dimensions")
        return sorted(self.dimensions, key=lambda d: (d.order_index, d.id))

    def load_topic_ratings(self, response_id: int) -> list[TopicRating]:
        self.calls.append("load_topic_ratings")
        return list(self.ratings)

    def load_active_rules(self, topic_ids: Collection[int]) -> list[RecommendationRule]:
        self.calls.append("load_active_rules")
        wanted = set(topic_ids)
        active = [r for r in self.rules if r.is_active and r.topic_id in wanted]
        return sorted(active, key=lambda r: (-r.priority, r.order_index, r.id))

    def write_priorities(
        self, response_id: int, results: Sequence[DimensionResult], computed_at: datetime
    ) -> None:
        self.calls.append("write_priorities")
        self.written = list(results)

    def finalize_response(
        self, response_id: int, overall: OverallMetrics, completed_at: datetime
    ) -> None:
        self.calls.append("finalize_response")
        self.finalized = overall
        self.completed_at = completed_at
