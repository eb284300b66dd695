"""
Scoring engine: turns a response's topic ratings into dimension and overall
scores, matches and ranks recommendations, and persists the result.

All reads and writes go through an explicit ``ScoringTransaction`` handle.
Persistence and finalization run in the same transaction, so callers see
either the complete result or no change at all.
"""

from __future__ import annotations

from collections.abc import Callable, Collection, Sequence
from datetime import datetime
from typing import Protocol

from ..domain.matching import match_topic_recommendations
from ..domain.models import (
    ComputationResult,
    DimensionInfo,
    DimensionMetrics,
    DimensionResult,
    OverallMetrics,
    RecommendationRule,
    ResponseHeader,
    TopicRating,
)
from ..domain.ranking import rank_dimension_recommendations, rank_dimensions
from ..domain.schemas import RecommendationSnapshot
from ..domain.services import (
    calculate_dimension_metrics,
    calculate_overall_metrics,
    calculate_priority_score,
)
from ..infrastructure.exceptions import ScoringError
from ..infrastructure.logging import LogContext, get_logger, log_operation
from ..infrastructure.models import utcnow
from ..infrastructure.scoring_store import SqlScoringTransaction
from ..infrastructure.uow import UnitOfWork

logger = get_logger(__name__)


class ScoringTransaction(Protocol):
    def lock_response(self, response_id: int) -> ResponseHeader: ...

    def load_dimensions(self, assessment_id: int) -> list[DimensionInfo]: ...

    def load_topic_ratings(self, response_id: int) -> list[TopicRating]: ...

    def load_active_rules(self, topic_ids: Collection[int]) -> list[RecommendationRule]: ...

    def write_priorities(
        self, response_id: int, results: Sequence[DimensionResult], computed_at: datetime
    ) -> None: ...

    def finalize_response(
        self, response_id: int, overall: OverallMetrics, completed_at: datetime
    ) -> None: ...


class ScoringEngine:
    def __init__(self, clock: Callable[[], datetime] = utcnow):
        self.clock = clock

    def compute(self, tx: ScoringTransaction, response_id: int) -> ComputationResult:
        with LogContext(response_id=response_id):
            header = tx.lock_response(response_id)
            dimensions = tx.load_dimensions(header.assessment_id)
            ratings = tx.load_topic_ratings(response_id)

            ratings_by_dimension = self._group_ratings(response_id, dimensions, ratings)
            topic_ids = list(dict.fromkeys(r.topic_id for r in ratings))
            rules_by_topic: dict[int, list[RecommendationRule]] = {}
            for rule in tx.load_active_rules(topic_ids):
                rules_by_topic.setdefault(rule.topic_id, []).append(rule)

            results = [
                self._score_dimension(dim, ratings_by_dimension[dim.id], rules_by_topic)
                for dim in dimensions
            ]
            ranked = rank_dimensions(results)
            overall = calculate_overall_metrics(
                DimensionMetrics(score=r.score, gap=r.gap) for r in ranked
            )

            computed_at = self.clock()
            tx.write_priorities(response_id, ranked, computed_at)
            tx.finalize_response(response_id, overall, computed_at)

            logger.info(
                "Results computed for response %s: score=%.2f gap=%.2f across %d dimensions",
                response_id,
                overall.overall_score,
                overall.overall_gap,
                len(ranked),
            )
            return ComputationResult(
                response_id=response_id,
                overall_score=overall.overall_score,
                overall_gap=overall.overall_gap,
                computed_at=computed_at,
                dimensions=ranked,
            )

    @staticmethod
    def _group_ratings(
        response_id: int, dimensions: Sequence[DimensionInfo], ratings: Sequence[TopicRating]
    ) -> dict[int, list[TopicRating]]:
        grouped: dict[int, list[TopicRating]] = {dim.id: [] for dim in dimensions}
        for rating in ratings:
            bucket = grouped.get(rating.dimension_id)
            if bucket is None:
                raise ScoringError(
                    f"Topic {rating.topic_id} references dimension {rating.dimension_id} "
                    f"outside the assessment of response {response_id}",
                    response_id=response_id,
                    details={"topic_id": rating.topic_id, "dimension_id": rating.dimension_id},
                )
            bucket.append(rating)
        return grouped

    @staticmethod
    def _score_dimension(
        dimension: DimensionInfo,
        ratings: Sequence[TopicRating],
        rules_by_topic: dict[int, list[RecommendationRule]],
    ) -> DimensionResult:
        metrics = calculate_dimension_metrics(ratings)
        matched = [
            RecommendationSnapshot.from_rule(rule)
            for rating in ratings
            for rule in match_topic_recommendations(rating, rules_by_topic.get(rating.topic_id, ()))
        ]
        return DimensionResult(
            dimension=dimension,
            score=metrics.score,
            gap=metrics.gap,
            priority_score=calculate_priority_score(metrics.gap),
            recommendations=rank_dimension_recommendations(matched),
        )


@log_operation("compute_results")
def compute_results(
    uow: UnitOfWork, response_id: int, engine: ScoringEngine | None = None
) -> ComputationResult:
    """
    Score ``response_id`` and persist the result in one transaction.

    Any failure rolls the transaction back and propagates; the response is
    left unchanged and the call can be retried.
    """
    with uow.begin() as session:
        return (engine or ScoringEngine()).compute(SqlScoringTransaction(session), response_id)
