from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

from maturity_engine.domain.models import RecommendationCategory


class StartResponseRequest(BaseModel):
    assessment_id: int = Field(..., gt=0)
    respondent: Optional[str] = Field(default=None, max_length=255)


class StartResponseResult(BaseModel):
    response_id: int
    status: Literal["in_progress"] = "in_progress"


class TopicAnswerRequest(BaseModel):
    current_rating: float
    target_rating: float
    time_spent_seconds: Optional[int] = None
    notes: Optional[str] = None


class TopicAnswerResult(BaseModel):
    response_id: int
    topic_id: int
    current_rating: float
    target_rating: float
    gap: float
    normalized_gap: float
    answered_questions: int
    total_questions: int
    progress_percentage: float


class Recommendation(BaseModel):
    id: int
    topic_id: int
    topic_key: str
    title: str
    description: Optional[str] = None
    why: Optional[str] = None
    what: Optional[str] = None
    how: Optional[str] = None
    action_items: list[str] = Field(default_factory=list)
    category: RecommendationCategory
    priority: int
    tags: list[str] = Field(default_factory=list)


class DimensionSummary(BaseModel):
    dimension_id: int
    title: str
    score: float
    gap: float
    priority_score: float
    rank_order: int


class CompletionResult(BaseModel):
    response_id: int
    completed_at: datetime
    overall_score: float
    overall_gap: float
    dimensions: list[DimensionSummary]


class DimensionResultView(BaseModel):
    dimension_id: int
    dimension_key: str
    title: str
    category: Optional[str] = None
    score: float
    gap: float
    priority_score: float
    rank_order: int
    recommendations: list[Recommendation]


class PriorityView(BaseModel):
    dimension_key: str
    title: str
    priority_score: float
    rank: int


class TopGap(BaseModel):
    topic_id: int
    topic_key: str
    label: str
    gap: float
    target_rating: float
    dimension_title: str


class ResultsResponse(BaseModel):
    response_id: int
    status: str
    completed_at: Optional[datetime] = None
    overall_score: float
    overall_gap: float
    dimensions: list[DimensionResultView]
    priorities: list[PriorityView]
    top_gaps: list[TopGap]
    top_recommendations: list[Recommendation]


class DimensionRecommendations(BaseModel):
    dimension_key: str
    dimension_title: str
    priority_score: float
    rank_order: int
    items: list[Recommendation]


class RecommendationsResponse(BaseModel):
    response_id: int
    recommendations: list[DimensionRecommendations]
