"""
Application API layer over the scoring engine.

These functions are what the HTTP layer (or any other caller) uses: they
validate input, check preconditions, run the engine and shape the persisted
results for reading. Errors leave this module as ``MaturityAssessmentError``
subclasses carrying a user-facing message.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from ..domain.models import ComputationResult, ResponseStatus
from ..domain.ranking import MAX_TOP_RECOMMENDATIONS, select_top_recommendations
from ..domain.schemas import RecommendationSnapshot, TopicAnswerInput, validate_input
from ..infrastructure.exceptions import (
    IncompleteAssessmentError,
    MaturityAssessmentError,
    MultipleValidationError,
    ResponseNotCompletedError,
    ValidationError,
    log_error_details,
)
from ..infrastructure.logging import LogContext, get_logger, log_operation
from ..infrastructure.models import AssessmentResponseORM
from ..infrastructure.repositories import (
    AssessmentRepo,
    ComputedPriorityRepo,
    ResponseRepo,
    StoredPriority,
    TopicRepo,
    TopicResponseRepo,
)
from ..infrastructure.uow import UnitOfWork
from .scoring import ScoringEngine, compute_results

logger = get_logger(__name__)


def _require_completed(session: Session, response_id: int) -> AssessmentResponseORM:
    response = ResponseRepo(session).get_by_id_required(response_id)
    if response.status != ResponseStatus.COMPLETED.value:
        raise ResponseNotCompletedError(response_id)
    return response


def _in_catalog_order(priorities: list[StoredPriority]) -> list[StoredPriority]:
    return sorted(priorities, key=lambda p: (p.order_index, p.dimension_id))


def _merged_top(priorities: list[StoredPriority], limit: int) -> list[RecommendationSnapshot]:
    # Dimensions are merged in catalog order, so equal priorities across
    # dimensions resolve to the earlier dimension.
    return select_top_recommendations(
        (p.recommendations for p in _in_catalog_order(priorities)), limit=limit
    )


def _snapshot_dicts(priority: StoredPriority) -> list[dict[str, Any]]:
    return [snapshot.model_dump(mode="json") for snapshot in priority.recommendations]


@log_operation("start_response")
def start_response(uow: UnitOfWork, assessment_id: int, respondent: str | None = None) -> int:
    """
    Open a new in-progress response for an assessment.

    Returns:
        The new response id
    """
    with uow.begin() as session:
        if AssessmentRepo(session).get(assessment_id) is None:
            raise ValidationError("assessment_id", "assessment does not exist", assessment_id)
        total = TopicRepo(session).count_for_assessment(assessment_id)
        response = ResponseRepo(session).create(
            assessment_id=assessment_id,
            respondent=respondent,
            status=ResponseStatus.IN_PROGRESS.value,
            total_questions=total,
        )
        logger.info("Started response %s for assessment %s", response.id, assessment_id)
        return response.id


@log_operation("submit_topic_answer")
def submit_topic_answer(
    uow: UnitOfWork,
    response_id: int,
    topic_id: int,
    current_rating: float,
    target_rating: float,
    time_spent_seconds: int | None = None,
    notes: str | None = None,
) -> dict[str, Any]:
    """
    Validate and store one topic answer, then refresh the response's progress.

    Returns:
        Dict with the stored ratings, gap, normalized gap and progress

    Raises:
        ValidationError / MultipleValidationError: If the ratings are invalid
        ResponseNotFoundError: If the response does not exist
        TopicNotFoundError: If the topic is not part of the response's assessment

    Example:
        >>> submit_topic_answer(uow, response_id=1, topic_id=3,
        ...                     current_rating=2.0, target_rating=4.0)["gap"]
        2.0
    """
    result = validate_input(
        TopicAnswerInput,
        {
            "response_id": response_id,
            "topic_id": topic_id,
            "current_rating": current_rating,
            "target_rating": target_rating,
            "time_spent_seconds": time_spent_seconds,
            "notes": notes,
        },
    )
    if not result.success or result.data is None:
        errors = [ValidationError(e.field, e.message, e.value) for e in result.errors]
        logger.warning("Topic answer validation failed for response %s", response_id)
        if len(errors) == 1:
            raise errors[0]
        raise MultipleValidationError(errors)

    data = result.data
    with LogContext(response_id=response_id, topic_id=topic_id), uow.begin() as session:
        responses = ResponseRepo(session)
        response = responses.get_by_id_required(response_id)
        if response.status == ResponseStatus.COMPLETED.value:
            raise ValidationError("status", "the assessment has already been completed")

        TopicRepo(session).get_in_assessment(response.assessment_id, topic_id)
        topic_responses = TopicResponseRepo(session)
        answer = topic_responses.upsert(
            response_id=response_id,
            topic_id=topic_id,
            current_rating=data["current_rating"],
            target_rating=data["target_rating"],
            time_spent_seconds=data["time_spent_seconds"],
            notes=data["notes"],
        )
        responses.refresh_progress(response, topic_responses.count_answered(response_id))

        return {
            "response_id": response_id,
            "topic_id": topic_id,
            "current_rating": float(answer.current_rating),
            "target_rating": float(answer.target_rating),
            "gap": float(answer.gap),
            "normalized_gap": float(answer.normalized_gap),
            "answered_questions": response.answered_questions,
            "total_questions": response.total_questions,
            "progress_percentage": float(response.progress_percentage),
        }


@log_operation("complete_assessment")
def complete_assessment(
    uow: UnitOfWork, response_id: int, engine: ScoringEngine | None = None
) -> ComputationResult:
    """
    Complete a response once every topic of its assessment is answered.

    Raises:
        ResponseNotFoundError: If the response does not exist
        IncompleteAssessmentError: If some topics are still unanswered
        MaturityAssessmentError: If scoring fails; nothing is persisted

    Example:
        >>> result = complete_assessment(uow, response_id=1)
        >>> result.overall_score
        3.0
    """
    with uow.begin() as session:
        response = ResponseRepo(session).get_by_id_required(response_id)
        total = TopicRepo(session).count_for_assessment(response.assessment_id)
        answered = TopicResponseRepo(session).count_answered(response_id)

    if answered < total:
        raise IncompleteAssessmentError(response_id, answered=answered, total=total)

    return _run_engine(uow, response_id, engine)


@log_operation("recompute_results")
def recompute_results(
    uow: UnitOfWork, response_id: int, engine: ScoringEngine | None = None
) -> ComputationResult:
    """Re-run scoring for a completed response, e.g. after the rule catalog changed."""
    with uow.begin() as session:
        _require_completed(session, response_id)

    return _run_engine(uow, response_id, engine)


def _run_engine(
    uow: UnitOfWork, response_id: int, engine: ScoringEngine | None
) -> ComputationResult:
    try:
        return compute_results(uow, response_id, engine=engine)
    except MaturityAssessmentError:
        raise
    except Exception as e:
        error_details = log_error_details(e, {"response_id": response_id})
        logger.error("Failed to compute results", extra=error_details)
        raise MaturityAssessmentError(
            f"Failed to compute results for response {response_id}",
            details=error_details,
            user_message="The assessment could not be completed. Please try again.",
        ) from e


@log_operation("get_results")
def get_results(session: Session, response_id: int) -> dict[str, Any]:
    """
    Full results view of a completed response.

    Returns:
        Dict with overall score/gap, ``dimensions`` in catalog order,
        ``priorities`` in rank order, ``top_gaps`` and ``top_recommendations``
    """
    response = _require_completed(session, response_id)
    priorities = ComputedPriorityRepo(session).list_for_response(response_id)
    top_gaps = TopicResponseRepo(session).top_gaps(response_id)
    top_recommendations = _merged_top(priorities, MAX_TOP_RECOMMENDATIONS)

    return {
        "response_id": response_id,
        "status": response.status,
        "completed_at": response.completed_at,
        "overall_score": float(response.overall_score or 0),
        "overall_gap": float(response.overall_gap or 0),
        "dimensions": [
            {
                "dimension_id": p.dimension_id,
                "dimension_key": p.dimension_key,
                "title": p.title,
                "category": p.category,
                "score": p.dimension_score,
                "gap": p.dimension_gap,
                "priority_score": p.priority_score,
                "rank_order": p.rank_order,
                "recommendations": _snapshot_dicts(p),
            }
            for p in _in_catalog_order(priorities)
        ],
        "priorities": [
            {
                "dimension_key": p.dimension_key,
                "title": p.title,
                "priority_score": p.priority_score,
                "rank": p.rank_order,
            }
            for p in priorities
        ],
        "top_gaps": top_gaps,
        "top_recommendations": [rec.model_dump(mode="json") for rec in top_recommendations],
    }


@log_operation("get_dimension_recommendations")
def get_dimension_recommendations(session: Session, response_id: int) -> list[dict[str, Any]]:
    """Per-dimension recommendation snapshots in rank order."""
    ResponseRepo(session).get_by_id_required(response_id)
    return [
        {
            "dimension_key": p.dimension_key,
            "dimension_title": p.title,
            "priority_score": p.priority_score,
            "rank_order": p.rank_order,
            "items": _snapshot_dicts(p),
        }
        for p in ComputedPriorityRepo(session).list_for_response(response_id)
    ]


@log_operation("get_top_priorities")
def get_top_priorities(session: Session, response_id: int, limit: int = 5) -> list[StoredPriority]:
    """Highest priority dimensions, ties resolved by rank order."""
    if limit <= 0:
        raise ValidationError("limit", "must be a positive integer", limit)
    ResponseRepo(session).get_by_id_required(response_id)
    priorities = ComputedPriorityRepo(session).list_for_response(response_id)
    priorities.sort(key=lambda p: (-p.priority_score, p.rank_order))
    return priorities[:limit]


@log_operation("get_top_gaps")
def get_top_gaps(session: Session, response_id: int, limit: int = 5) -> list[dict[str, Any]]:
    """Topics with the largest positive gaps; ties go to the higher target."""
    if limit <= 0:
        raise ValidationError("limit", "must be a positive integer", limit)
    ResponseRepo(session).get_by_id_required(response_id)
    return TopicResponseRepo(session).top_gaps(response_id, limit=limit)


@log_operation("get_top_recommendations")
def get_top_recommendations(
    session: Session, response_id: int, limit: int = MAX_TOP_RECOMMENDATIONS
) -> list[RecommendationSnapshot]:
    """
    Response-level recommendation view: every dimension's stored list merged
    and re-ranked by priority, bounded to ``limit``. Ties keep catalog order.
    """
    if limit <= 0:
        raise ValidationError("limit", "must be a positive integer", limit)
    _require_completed(session, response_id)
    priorities = ComputedPriorityRepo(session).list_for_response(response_id)
    return _merged_top(priorities, limit)
