"""
Pydantic schemas for input validation and for the typed recommendation
snapshot stored with every computed priority.
"""

from __future__ import annotations

import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .models import RecommendationCategory, RecommendationRule
from .services import clamp_rating


class BaseValidationSchema(BaseModel):
    """Base schema that trims strings and strips markup and control characters."""

    model_config = ConfigDict(str_strip_whitespace=True, validate_assignment=True)

    @field_validator("*", mode="before")
    @classmethod
    def sanitize_strings(cls, v: Any) -> Any:
        if isinstance(v, str):
            cleaned = re.sub(
                r"<\s*script[^>]*>.*?<\s*/\s*script\s*>",
                "",
                v.strip(),
                flags=re.IGNORECASE | re.DOTALL,
            )
            cleaned = re.sub(r"<[^>]+>", "", cleaned)
            cleaned = re.sub(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]", "", cleaned)
            return cleaned
        return v


class RecommendationSnapshot(BaseModel):
    """A matched rule as it looked when the priorities were computed."""

    model_config = ConfigDict(frozen=True)

    id: int
    topic_id: int
    topic_key: str
    title: str
    description: str | None = None
    why: str | None = None
    what: str | None = None
    how: str | None = None
    action_items: list[str] = Field(default_factory=list)
    category: RecommendationCategory = RecommendationCategory.PROJECT
    priority: int = Field(50, ge=0, le=100)
    tags: list[str] = Field(default_factory=list)

    @classmethod
    def from_rule(cls, rule: RecommendationRule) -> RecommendationSnapshot:
        return cls(
            id=rule.id,
            topic_id=rule.topic_id,
            topic_key=rule.topic_key,
            title=rule.title,
            description=rule.description,
            why=rule.why,
            what=rule.what,
            how=rule.how,
            action_items=list(rule.action_items),
            category=rule.category,
            priority=rule.priority,
            tags=list(rule.tags),
        )


class TopicAnswerInput(BaseValidationSchema):
    """Validation schema for one topic answer."""

    response_id: int = Field(..., gt=0)
    topic_id: int = Field(..., gt=0)
    current_rating: float = Field(..., ge=1, le=5)
    target_rating: float = Field(..., ge=1, le=5)
    time_spent_seconds: int | None = Field(None, ge=0)
    notes: str | None = Field(None, max_length=2000)

    @field_validator("current_rating", "target_rating")
    @classmethod
    def validate_half_steps(cls, v: float) -> float:
        return clamp_rating(v)

    @field_validator("notes")
    @classmethod
    def empty_notes_to_none(cls, v: str | None) -> str | None:
        if v is not None and not v:
            return None
        return v


class RecommendationRuleInput(BaseValidationSchema):
    """Validation schema for a recommendation rule loaded into the catalog."""

    topic_key: str = Field(..., min_length=1, max_length=100)
    title: str = Field(..., min_length=1, max_length=255)
    score_min: float | None = Field(None, ge=0, le=5)
    score_max: float | None = Field(None, ge=0, le=5)
    target_min: float | None = Field(None, ge=0, le=5)
    target_max: float | None = Field(None, ge=0, le=5)
    gap_min: float | None = Field(None, ge=0, le=4)
    gap_max: float | None = Field(None, ge=0, le=4)
    description: str | None = None
    why: str | None = None
    what: str | None = None
    how: str | None = None
    action_items: list[str] = Field(default_factory=list)
    category: RecommendationCategory = RecommendationCategory.PROJECT
    priority: int = Field(50, ge=0, le=100)
    tags: list[str] = Field(default_factory=list)
    is_active: bool = True
    order_index: int = Field(0, ge=0)

    @model_validator(mode="after")
    def validate_bound_pairs(self) -> RecommendationRuleInput:
        for axis in ("score", "target", "gap"):
            low = getattr(self, f"{axis}_min")
            high = getattr(self, f"{axis}_max")
            if low is not None and high is not None and low > high:
                raise ValueError(f"{axis}_min cannot be greater than {axis}_max")
        return self


class ValidationErrorDetail(BaseModel):
    field: str
    message: str
    value: Any = None


class ValidationResponse(BaseModel):
    success: bool
    errors: list[ValidationErrorDetail] = []
    data: dict[str, Any] | None = None


def validate_input(schema_class: type[BaseModel], data: dict[str, Any]) -> ValidationResponse:
    """
    Validate ``data`` against ``schema_class`` and collect errors instead of raising.

    Example:
        >>> result = validate_input(TopicAnswerInput, {"response_id": 1, "topic_id": 2,
        ...     "current_rating": 2.5, "target_rating": 4})
        >>> result.success
        True
    """
    try:
        validated = schema_class(**data)
    except Exception as e:
        errors = []
        if hasattr(e, "errors"):
            for error in e.errors():
                errors.append(
                    ValidationErrorDetail(
                        field=".".join(str(x) for x in error["loc"]) or "general",
                        message=error["msg"],
                        value=error.get("input"),
                    )
                )
        else:
            errors.append(ValidationErrorDetail(field="general", message=str(e)))
        return ValidationResponse(success=False, errors=errors)

    return ValidationResponse(success=True, data=validated.model_dump())
