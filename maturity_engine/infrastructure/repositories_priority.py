# maturity_engine/infrastructure/repositories_priority.py
from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError

from ..domain.models import DimensionResult
from ..domain.schemas import RecommendationSnapshot
from .logging import log_database_operation as log_op
from .models import ComputedPriorityORM, DimensionORM
from .repositories_base import BaseRepository


@dataclass(slots=True)
class StoredPriority:
    dimension_id: int
    dimension_key: str
    title: str
    category: str | None
    order_index: int
    dimension_score: float
    dimension_gap: float
    priority_score: float
    rank_order: int
    computed_at: datetime
    recommendations: list[RecommendationSnapshot] = field(default_factory=list)


class ComputedPriorityRepo(BaseRepository[ComputedPriorityORM]):
    """
    Computed priorities keyed by (response_id, dimension_id).

    Snapshots are typed ``RecommendationSnapshot`` objects everywhere except
    inside this repository, where they become JSON.
    """

    model = ComputedPriorityORM

    @log_op("priority.upsert_many")
    def upsert_many(
        self, response_id: int, results: Sequence[DimensionResult], computed_at: datetime
    ) -> None:
        """
        Replace the response's priorities with ``results``.

        Existing rows are updated in place, missing ones inserted and rows for
        dimensions absent from ``results`` deleted; one flush writes the batch.
        """
        try:
            existing = {
                row.dimension_id: row
                for row in self.s.scalars(
                    select(ComputedPriorityORM).where(
                        ComputedPriorityORM.response_id == response_id
                    )
                )
            }

            keep: set[int] = set()
            for result in results:
                dimension_id = result.dimension.id
                keep.add(dimension_id)
                row = existing.get(dimension_id)
                if row is None:
                    row = ComputedPriorityORM(response_id=response_id, dimension_id=dimension_id)
                    self.s.add(row)
                row.dimension_score = result.score
                row.dimension_gap = result.gap
                row.priority_score = result.priority_score
                row.rank_order = result.rank_order
                row.recommendations = [
                    snapshot.model_dump(mode="json") for snapshot in result.recommendations
                ]
                row.computed_at = computed_at

            stale = [dimension_id for dimension_id in existing if dimension_id not in keep]
            if stale:
                self.s.execute(
                    delete(ComputedPriorityORM).where(
                        ComputedPriorityORM.response_id == response_id,
                        ComputedPriorityORM.dimension_id.in_(stale),
                    )
                )

            self.s.flush()
        except SQLAlchemyError as e:
            self._handle_error(e, "priority.upsert_many")

    @log_op("priority.list_for_response")
    def list_for_response(self, response_id: int) -> list[StoredPriority]:
        """Stored priorities in rank order, snapshots parsed back into models."""
        stmt = (
            select(ComputedPriorityORM, DimensionORM)
            .join(DimensionORM, DimensionORM.id == ComputedPriorityORM.dimension_id)
            .where(ComputedPriorityORM.response_id == response_id)
            .order_by(ComputedPriorityORM.rank_order.asc())
        )
        try:
            rows = self.s.execute(stmt).all()
        except SQLAlchemyError as e:
            self._handle_error(e, "priority.list_for_response")

        return [
            StoredPriority(
                dimension_id=dimension.id,
                dimension_key=dimension.dimension_key,
                title=dimension.title,
                category=dimension.category,
                order_index=dimension.order_index,
                dimension_score=float(priority.dimension_score),
                dimension_gap=float(priority.dimension_gap),
                priority_score=float(priority.priority_score),
                rank_order=priority.rank_order,
                computed_at=priority.computed_at,
                recommendations=[
                    RecommendationSnapshot.model_validate(item)
                    for item in priority.recommendations or []
                ],
            )
            for priority, dimension in rows
        ]
