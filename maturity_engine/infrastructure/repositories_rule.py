# maturity_engine/infrastructure/repositories_rule.py
from __future__ import annotations

from collections.abc import Collection

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from ..domain.models import RecommendationBounds, RecommendationCategory, RecommendationRule
from ..domain.schemas import RecommendationRuleInput
from ..domain.services import to_finite_number
from .logging import log_database_operation as log_op
from .models import RecommendationRuleORM, TopicORM
from .repositories_base import BaseRepository


def _to_rule(row: RecommendationRuleORM, topic_key: str) -> RecommendationRule:
    return RecommendationRule(
        id=row.id,
        topic_id=row.topic_id,
        topic_key=topic_key,
        title=row.title,
        bounds=RecommendationBounds(
            score_min=to_finite_number(row.score_min),
            score_max=to_finite_number(row.score_max),
            target_min=to_finite_number(row.target_min),
            target_max=to_finite_number(row.target_max),
            gap_min=to_finite_number(row.gap_min),
            gap_max=to_finite_number(row.gap_max),
        ),
        description=row.description,
        why=row.why,
        what=row.what,
        how=row.how,
        action_items=tuple(row.action_items or ()),
        category=RecommendationCategory(row.category),
        priority=int(row.priority or 0),
        tags=tuple(row.tags or ()),
        is_active=bool(row.is_active),
        order_index=int(row.order_index or 0),
    )


class RecommendationRuleRepo(BaseRepository[RecommendationRuleORM]):
    model = RecommendationRuleORM

    @log_op("rule.list_active_for_topics")
    def list_active_for_topics(self, topic_ids: Collection[int]) -> list[RecommendationRule]:
        """
        Active rules of the given topics.

        Ordered by priority (desc), then order index and id, which fixes the
        discovery order the ranker's stable sort falls back on for ties.
        """
        if not topic_ids:
            return []

        stmt = (
            select(RecommendationRuleORM, TopicORM.topic_key)
            .join(TopicORM, TopicORM.id == RecommendationRuleORM.topic_id)
            .where(
                RecommendationRuleORM.topic_id.in_(list(topic_ids)),
                RecommendationRuleORM.is_active.is_(True),
            )
            .order_by(
                RecommendationRuleORM.priority.desc(),
                RecommendationRuleORM.order_index.asc(),
                RecommendationRuleORM.id.asc(),
            )
        )
        try:
            rows = self.s.execute(stmt).all()
        except SQLAlchemyError as e:
            self._handle_error(e, "rule.list_active_for_topics")
        return [_to_rule(rule, topic_key) for rule, topic_key in rows]

    @log_op("rule.create")
    def create_from_input(self, topic_id: int, data: RecommendationRuleInput) -> RecommendationRuleORM:
        fields = data.model_dump(exclude={"topic_key"})
        fields["category"] = data.category.value
        return self.create(topic_id=topic_id, **fields)
