# maturity_engine/infrastructure/repositories_catalog.py
from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from ..domain.models import DimensionInfo
from .exceptions import TopicNotFoundError
from .logging import log_database_operation as log_op
from .models import AssessmentORM, DimensionORM, TopicORM
from .repositories_base import BaseRepository


class AssessmentRepo(BaseRepository[AssessmentORM]):
    model = AssessmentORM


class DimensionRepo(BaseRepository[DimensionORM]):
    model = DimensionORM

    @log_op("dimension.list_for_assessment")
    def list_for_assessment(self, assessment_id: int) -> list[DimensionInfo]:
        """Every dimension of the assessment in catalog order."""
        stmt = (
            select(DimensionORM)
            .where(DimensionORM.assessment_id == assessment_id)
            .order_by(DimensionORM.order_index, DimensionORM.id)
        )
        try:
            rows = self.s.scalars(stmt).all()
        except SQLAlchemyError as e:
            self._handle_error(e, "dimension.list_for_assessment")
        return [
            DimensionInfo(
                id=d.id,
                dimension_key=d.dimension_key,
                title=d.title,
                category=d.category,
                order_index=d.order_index,
            )
            for d in rows
        ]


class TopicRepo(BaseRepository[TopicORM]):
    model = TopicORM

    def _not_found(self, id_: int) -> Exception:
        return TopicNotFoundError(id_)

    @log_op("topic.get_in_assessment")
    def get_in_assessment(self, assessment_id: int, topic_id: int) -> TopicORM:
        """Topic by id, restricted to the given assessment's catalog."""
        stmt = (
            select(TopicORM)
            .join(DimensionORM, DimensionORM.id == TopicORM.dimension_id)
            .where(TopicORM.id == topic_id, DimensionORM.assessment_id == assessment_id)
        )
        try:
            topic = self.s.scalars(stmt).one_or_none()
        except SQLAlchemyError as e:
            self._handle_error(e, "topic.get_in_assessment")
        if topic is None:
            raise TopicNotFoundError(topic_id)
        return topic

    @log_op("topic.count_for_assessment")
    def count_for_assessment(self, assessment_id: int) -> int:
        stmt = (
            select(func.count(TopicORM.id))
            .join(DimensionORM, DimensionORM.id == TopicORM.dimension_id)
            .where(DimensionORM.assessment_id == assessment_id)
        )
        try:
            return int(self.s.scalar(stmt) or 0)
        except SQLAlchemyError as e:
            self._handle_error(e, "topic.count_for_assessment")
