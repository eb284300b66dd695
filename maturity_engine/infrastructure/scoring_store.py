from __future__ import annotations

from collections.abc import Collection, Sequence
from datetime import datetime

from sqlalchemy.orm import Session

from ..domain.models import (
    DimensionInfo,
    DimensionResult,
    OverallMetrics,
    RecommendationRule,
    ResponseHeader,
    ResponseStatus,
    TopicRating,
)
from .repositories import (
    ComputedPriorityRepo,
    DimensionRepo,
    RecommendationRuleRepo,
    ResponseRepo,
    TopicResponseRepo,
)


class SqlScoringTransaction:
    """
    Scoring transaction handle over an open SQLAlchemy session.

    The session's transaction is owned by the caller (``UnitOfWork.begin``);
    this class only reads and writes through it and never commits.
    """

    def __init__(self, session: Session):
        self.session = session
        self.responses = ResponseRepo(session)
        self.dimensions = DimensionRepo(session)
        self.topic_responses = TopicResponseRepo(session)
        self.rules = RecommendationRuleRepo(session)
        self.priorities = ComputedPriorityRepo(session)

    def lock_response(self, response_id: int) -> ResponseHeader:
        response = self.responses.lock_for_update(response_id)
        return ResponseHeader(
            id=response.id,
            assessment_id=response.assessment_id,
            status=ResponseStatus(response.status),
        )

    def load_dimensions(self, assessment_id: int) -> list[DimensionInfo]:
        return self.dimensions.list_for_assessment(assessment_id)

    def load_topic_ratings(self, response_id: int) -> list[TopicRating]:
        return self.topic_responses.list_ratings(response_id)

    def load_active_rules(self, topic_ids: Collection[int]) -> list[RecommendationRule]:
        return self.rules.list_active_for_topics(topic_ids)

    def write_priorities(
        self, response_id: int, results: Sequence[DimensionResult], computed_at: datetime
    ) -> None:
        self.priorities.upsert_many(response_id, results, computed_at)

    def finalize_response(
        self, response_id: int, overall: OverallMetrics, completed_at: datetime
    ) -> None:
        response = self.responses.get_by_id_required(response_id)
        self.responses.mark_completed(response, overall, completed_at)
