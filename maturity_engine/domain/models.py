from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class RecommendationCategory(str, Enum):
    QUICK_WIN = "Quick Win"
    PROJECT = "Project"
    BIG_BET = "Big Bet"


class ResponseStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


@dataclass(slots=True, frozen=True)
class RecommendationBounds:
    """Six optional inclusive bounds; ``None`` leaves that axis unconstrained."""

    score_min: float | None = None
    score_max: float | None = None
    target_min: float | None = None
    target_max: float | None = None
    gap_min: float | None = None
    gap_max: float | None = None


@dataclass(slots=True, frozen=True)
class RecommendationRule:
    id: int
    topic_id: int
    topic_key: str
    title: str
    bounds: RecommendationBounds = field(default_factory=RecommendationBounds)
    description: str | None = None
    why: str | None = None
    what: str | None = None
    how: str | None = None
    action_items: tuple[str, ...] = ()
    category: RecommendationCategory = RecommendationCategory.PROJECT
    priority: int = 50  # 0..100
    tags: tuple[str, ...] = ()
    is_active: bool = True
    order_index: int = 0


@dataclass(slots=True, frozen=True)
class TopicRating:
    """One answered topic as read by the engine; ratings may be non-finite."""

    topic_id: int
    topic_key: str
    dimension_id: int
    current_rating: float | None
    target_rating: float | None


@dataclass(slots=True, frozen=True)
class TopicGap:
    gap: float
    normalized_gap: float


@dataclass(slots=True, frozen=True)
class DimensionMetrics:
    score: float
    gap: float


@dataclass(slots=True, frozen=True)
class OverallMetrics:
    overall_score: float
    overall_gap: float


@dataclass(slots=True, frozen=True)
class DimensionInfo:
    id: int
    dimension_key: str
    title: str
    category: str | None
    order_index: int


@dataclass(slots=True, frozen=True)
class ResponseHeader:
    id: int
    assessment_id: int
    status: ResponseStatus


@dataclass(slots=True)
class DimensionResult:
    dimension: DimensionInfo
    score: float
    gap: float
    priority_score: float
    rank_order: int = 0
    recommendations: list = field(default_factory=list)  # list[RecommendationSnapshot]


@dataclass(slots=True)
class ComputationResult:
    response_id: int
    overall_score: float
    overall_gap: float
    computed_at: datetime
    dimensions: list[DimensionResult] = field(default_factory=list)
