# maturity_engine/infrastructure/repositories_response.py
from __future__ import annotations

from datetime import datetime

from sqlalchemy import Select, func, select
from sqlalchemy.exc import SQLAlchemyError

from ..domain.models import OverallMetrics, ResponseStatus, TopicRating
from ..domain.services import calculate_topic_gap, round2
from .exceptions import ResponseNotFoundError
from .logging import log_database_operation as log_op
from .models import (
    AssessmentResponseORM,
    DimensionORM,
    TopicORM,
    TopicResponseORM,
    utcnow,
)
from .repositories_base import BaseRepository


class ResponseRepo(BaseRepository[AssessmentResponseORM]):
    model = AssessmentResponseORM

    def _not_found(self, id_: int) -> Exception:
        return ResponseNotFoundError(id_)

    @staticmethod
    def lock_statement(response_id: int) -> Select[tuple[AssessmentResponseORM]]:
        return (
            select(AssessmentResponseORM)
            .where(AssessmentResponseORM.id == response_id)
            .with_for_update()
        )

    @log_op("response.lock_for_update")
    def lock_for_update(self, response_id: int) -> AssessmentResponseORM:
        """
        Load the response with a row lock held until the transaction ends.

        SQLite ignores FOR UPDATE; its database-level write lock serialises
        writers instead.
        """
        stmt = self.lock_statement(response_id)
        try:
            response = self.s.scalars(stmt).one_or_none()
        except SQLAlchemyError as e:
            self._handle_error(e, "response.lock_for_update")
        if response is None:
            raise ResponseNotFoundError(response_id)
        return response

    @log_op("response.mark_completed")
    def mark_completed(
        self, response: AssessmentResponseORM, overall: OverallMetrics, completed_at: datetime
    ) -> AssessmentResponseORM:
        response.status = ResponseStatus.COMPLETED.value
        response.completed_at = completed_at
        response.last_updated_at = completed_at
        response.overall_score = overall.overall_score
        response.overall_gap = overall.overall_gap
        try:
            self.s.flush()
        except SQLAlchemyError as e:
            self._handle_error(e, "response.mark_completed")
        return response

    @log_op("response.refresh_progress")
    def refresh_progress(self, response: AssessmentResponseORM, answered: int) -> None:
        response.answered_questions = answered
        total = response.total_questions or 0
        response.progress_percentage = round2(answered * 100 / total) if total else 0.0
        response.last_updated_at = utcnow()
        try:
            self.s.flush()
        except SQLAlchemyError as e:
            self._handle_error(e, "response.refresh_progress")


class TopicResponseRepo(BaseRepository[TopicResponseORM]):
    model = TopicResponseORM

    @log_op("topic_response.upsert")
    def upsert(
        self,
        response_id: int,
        topic_id: int,
        current_rating: float,
        target_rating: float,
        time_spent_seconds: int | None = None,
        notes: str | None = None,
    ) -> TopicResponseORM:
        """Create or update the single answer for (response, topic)."""
        try:
            obj = self.s.scalars(
                select(TopicResponseORM).where(
                    TopicResponseORM.response_id == response_id,
                    TopicResponseORM.topic_id == topic_id,
                )
            ).one_or_none()

            if obj is None:
                obj = TopicResponseORM(response_id=response_id, topic_id=topic_id)
                self.s.add(obj)

            topic_gap = calculate_topic_gap(current_rating, target_rating)
            obj.current_rating = current_rating
            obj.target_rating = target_rating
            obj.gap = round2(topic_gap.gap)
            obj.normalized_gap = round2(topic_gap.normalized_gap)
            obj.time_spent_seconds = time_spent_seconds
            obj.notes = notes
            obj.answered_at = utcnow()

            self.s.flush()
            return obj
        except SQLAlchemyError as e:
            self._handle_error(e, "topic_response.upsert")

    @log_op("topic_response.count_answered")
    def count_answered(self, response_id: int) -> int:
        stmt = select(func.count(TopicResponseORM.id)).where(
            TopicResponseORM.response_id == response_id
        )
        try:
            return int(self.s.scalar(stmt) or 0)
        except SQLAlchemyError as e:
            self._handle_error(e, "topic_response.count_answered")

    @log_op("topic_response.list_ratings")
    def list_ratings(self, response_id: int) -> list[TopicRating]:
        """Answered topics of a response in (dimension order, topic order)."""
        stmt = (
            select(
                TopicResponseORM.topic_id,
                TopicORM.topic_key,
                TopicORM.dimension_id,
                TopicResponseORM.current_rating,
                TopicResponseORM.target_rating,
            )
            .join(TopicORM, TopicORM.id == TopicResponseORM.topic_id)
            .join(DimensionORM, DimensionORM.id == TopicORM.dimension_id)
            .where(TopicResponseORM.response_id == response_id)
            .order_by(DimensionORM.order_index, TopicORM.order_index, TopicORM.id)
        )
        try:
            rows = self.s.execute(stmt).all()
        except SQLAlchemyError as e:
            self._handle_error(e, "topic_response.list_ratings")
        return [
            TopicRating(
                topic_id=topic_id,
                topic_key=topic_key,
                dimension_id=dimension_id,
                current_rating=current,
                target_rating=target,
            )
            for topic_id, topic_key, dimension_id, current, target in rows
        ]

    @log_op("topic_response.top_gaps")
    def top_gaps(self, response_id: int, limit: int = 5) -> list[dict[str, object]]:
        """Largest positive topic gaps, ties broken by higher target."""
        stmt = (
            select(
                TopicORM.id,
                TopicORM.topic_key,
                TopicORM.label,
                TopicResponseORM.gap,
                TopicResponseORM.target_rating,
                DimensionORM.title,
            )
            .join(TopicORM, TopicORM.id == TopicResponseORM.topic_id)
            .join(DimensionORM, DimensionORM.id == TopicORM.dimension_id)
            .where(TopicResponseORM.response_id == response_id, TopicResponseORM.gap > 0)
            .order_by(
                TopicResponseORM.gap.desc(),
                TopicResponseORM.target_rating.desc(),
                TopicORM.id,
            )
            .limit(limit)
        )
        try:
            rows = self.s.execute(stmt).all()
        except SQLAlchemyError as e:
            self._handle_error(e, "topic_response.top_gaps")
        return [
            {
                "topic_id": topic_id,
                "topic_key": topic_key,
                "label": label,
                "gap": float(gap),
                "target_rating": float(target),
                "dimension_title": dimension_title,
            }
            for topic_id, topic_key, label, gap, target, dimension_title in rows
        ]
