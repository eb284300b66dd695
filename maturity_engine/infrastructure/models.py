from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    pass


class AssessmentORM(Base):
    __tablename__ = "assessments"
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_published: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    dimensions: Mapped[list[DimensionORM]] = relationship(
        back_populates="assessment", cascade="all, delete", order_by="DimensionORM.order_index"
    )


class DimensionORM(Base):
    __tablename__ = "dimensions"
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    assessment_id: Mapped[int] = mapped_column(
        ForeignKey("assessments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    dimension_key: Mapped[str] = mapped_column(String(100), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str | None] = mapped_column(String(100), nullable=True)
    order_index: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("assessment_id", "dimension_key", name="uq_dimension_per_assessment"),
    )

    assessment: Mapped[AssessmentORM] = relationship(back_populates="dimensions")
    topics: Mapped[list[TopicORM]] = relationship(
        back_populates="dimension", cascade="all, delete", order_by="TopicORM.order_index"
    )


class TopicORM(Base):
    __tablename__ = "topics"
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    dimension_id: Mapped[int] = mapped_column(
        ForeignKey("dimensions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    topic_key: Mapped[str] = mapped_column(String(100), nullable=False)
    label: Mapped[str] = mapped_column(String(255), nullable=False)
    prompt: Mapped[str | None] = mapped_column(Text, nullable=True)
    order_index: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (UniqueConstraint("dimension_id", "topic_key", name="uq_topic_per_dimension"),)

    dimension: Mapped[DimensionORM] = relationship(back_populates="topics")
    recommendations: Mapped[list[RecommendationRuleORM]] = relationship(
        back_populates="topic", cascade="all, delete"
    )


class RecommendationRuleORM(Base):
    __tablename__ = "topic_recommendations"
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    topic_id: Mapped[int] = mapped_column(
        ForeignKey("topics.id", ondelete="CASCADE"), nullable=False, index=True
    )
    score_min: Mapped[float | None] = mapped_column(Numeric(3, 1, asdecimal=False), nullable=True)
    score_max: Mapped[float | None] = mapped_column(Numeric(3, 1, asdecimal=False), nullable=True)
    target_min: Mapped[float | None] = mapped_column(Numeric(3, 1, asdecimal=False), nullable=True)
    target_max: Mapped[float | None] = mapped_column(Numeric(3, 1, asdecimal=False), nullable=True)
    gap_min: Mapped[float | None] = mapped_column(Numeric(3, 1, asdecimal=False), nullable=True)
    gap_max: Mapped[float | None] = mapped_column(Numeric(3, 1, asdecimal=False), nullable=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    why: Mapped[str | None] = mapped_column(Text, nullable=True)
    what: Mapped[str | None] = mapped_column(Text, nullable=True)
    how: Mapped[str | None] = mapped_column(Text, nullable=True)
    action_items: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    category: Mapped[str] = mapped_column(String(50), default="Project", nullable=False)
    priority: Mapped[int] = mapped_column(Integer, default=50, nullable=False)
    tags: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    order_index: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow, nullable=False
    )

    __table_args__ = (
        CheckConstraint(
            "category IN ('Quick Win', 'Project', 'Big Bet')", name="ck_recommendation_category"
        ),
        CheckConstraint("priority >= 0 AND priority <= 100", name="ck_recommendation_priority"),
        Index("ix_topic_recommendations_active", "topic_id", "is_active"),
    )

    topic: Mapped[TopicORM] = relationship(back_populates="recommendations")


class AssessmentResponseORM(Base):
    __tablename__ = "assessment_responses"
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    assessment_id: Mapped[int] = mapped_column(
        ForeignKey("assessments.id"), nullable=False, index=True
    )
    respondent: Mapped[str | None] = mapped_column(String(255), nullable=True)
    status: Mapped[str] = mapped_column(String(50), default="in_progress", nullable=False)
    started_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    last_updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    total_questions: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    answered_questions: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    progress_percentage: Mapped[float] = mapped_column(
        Numeric(5, 2, asdecimal=False), default=0.0, nullable=False
    )
    overall_score: Mapped[float | None] = mapped_column(
        Numeric(5, 2, asdecimal=False), nullable=True
    )
    overall_gap: Mapped[float | None] = mapped_column(Numeric(5, 2, asdecimal=False), nullable=True)

    __table_args__ = (
        CheckConstraint("status IN ('in_progress', 'completed')", name="ck_response_status"),
        Index("ix_assessment_responses_status", "status"),
    )

    topic_responses: Mapped[list[TopicResponseORM]] = relationship(
        back_populates="response", cascade="all, delete"
    )
    priorities: Mapped[list[ComputedPriorityORM]] = relationship(
        back_populates="response", cascade="all, delete"
    )


class TopicResponseORM(Base):
    __tablename__ = "topic_responses"
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    response_id: Mapped[int] = mapped_column(
        ForeignKey("assessment_responses.id", ondelete="CASCADE"), nullable=False, index=True
    )
    topic_id: Mapped[int] = mapped_column(ForeignKey("topics.id"), nullable=False, index=True)
    current_rating: Mapped[float | None] = mapped_column(
        Numeric(5, 2, asdecimal=False), nullable=True
    )
    target_rating: Mapped[float | None] = mapped_column(
        Numeric(5, 2, asdecimal=False), nullable=True
    )
    gap: Mapped[float | None] = mapped_column(Numeric(5, 2, asdecimal=False), nullable=True)
    normalized_gap: Mapped[float | None] = mapped_column(
        Numeric(5, 2, asdecimal=False), nullable=True
    )
    answered_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    time_spent_seconds: Mapped[int | None] = mapped_column(Integer, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("response_id", "topic_id", name="uq_topic_response"),
        CheckConstraint(
            "(current_rating IS NULL OR (current_rating >= 1 AND current_rating <= 5)) "
            "AND (target_rating IS NULL OR (target_rating >= 1 AND target_rating <= 5))",
            name="ck_topic_response_ratings",
        ),
    )

    response: Mapped[AssessmentResponseORM] = relationship(back_populates="topic_responses")
    topic: Mapped[TopicORM] = relationship()


class ComputedPriorityORM(Base):
    __tablename__ = "computed_priorities"
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    response_id: Mapped[int] = mapped_column(
        ForeignKey("assessment_responses.id", ondelete="CASCADE"), nullable=False
    )
    dimension_id: Mapped[int] = mapped_column(ForeignKey("dimensions.id"), nullable=False)
    dimension_score: Mapped[float] = mapped_column(Numeric(5, 2, asdecimal=False), nullable=False)
    dimension_gap: Mapped[float] = mapped_column(Numeric(5, 2, asdecimal=False), nullable=False)
    priority_score: Mapped[float] = mapped_column(Numeric(5, 2, asdecimal=False), nullable=False)
    rank_order: Mapped[int] = mapped_column(Integer, nullable=False)
    # Serialized list of RecommendationSnapshot; see ComputedPriorityRepo.
    recommendations: Mapped[list[dict]] = mapped_column(JSON, default=list, nullable=False)
    computed_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("response_id", "dimension_id", name="uq_dimension_priority"),
        Index("ix_computed_priorities_response", "response_id", "priority_score"),
    )

    response: Mapped[AssessmentResponseORM] = relationship(back_populates="priorities")
    dimension: Mapped[DimensionORM] = relationship()
