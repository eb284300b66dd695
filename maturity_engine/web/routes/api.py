from __future__ import annotations

from typing import NoReturn

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import Response
from sqlalchemy.orm import Session

from maturity_engine.application import api as app_api
from maturity_engine.infrastructure.config import get_settings
from maturity_engine.infrastructure.exceptions import (
    ConnectionError,
    DatabaseError,
    IncompleteAssessmentError,
    MaturityAssessmentError,
    MultipleValidationError,
    ResponseNotCompletedError,
    ResponseNotFoundError,
    TopicNotFoundError,
    ValidationError,
)
from maturity_engine.infrastructure.logging import get_logger
from maturity_engine.infrastructure.uow import UnitOfWork
from maturity_engine.utils.exports import make_json_export_payload, make_xlsx_export_bytes
from maturity_engine.web.dependencies import get_db_session, get_unit_of_work
from maturity_engine.web.schemas import (
    CompletionResult,
    DimensionSummary,
    PriorityView,
    Recommendation,
    RecommendationsResponse,
    ResultsResponse,
    StartResponseRequest,
    StartResponseResult,
    TopicAnswerRequest,
    TopicAnswerResult,
    TopGap,
)

router = APIRouter(prefix="/api")
logger = get_logger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _raise_http(exc: MaturityAssessmentError) -> NoReturn:
    """Map an application error to an HTTP error carrying only the user message."""
    if isinstance(exc, (ResponseNotFoundError, TopicNotFoundError)):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(
        exc,
        (
            ValidationError,
            MultipleValidationError,
            IncompleteAssessmentError,
            ResponseNotCompletedError,
        ),
    ):
        code = status.HTTP_400_BAD_REQUEST
    elif isinstance(exc, ConnectionError):
        code = status.HTTP_503_SERVICE_UNAVAILABLE
    elif isinstance(exc, DatabaseError):
        code = status.HTTP_409_CONFLICT
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR

    if code >= 500:
        logger.error("Request failed: %s", exc)
    raise HTTPException(status_code=code, detail=exc.user_message) from exc


@router.get("/health")
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.post(
    "/responses", response_model=StartResponseResult, status_code=status.HTTP_201_CREATED
)
def start_response(
    payload: StartResponseRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
) -> StartResponseResult:
    try:
        response_id = app_api.start_response(uow, payload.assessment_id, payload.respondent)
    except MaturityAssessmentError as exc:
        _raise_http(exc)
    return StartResponseResult(response_id=response_id)


@router.put("/responses/{response_id}/topics/{topic_id}", response_model=TopicAnswerResult)
def answer_topic(
    response_id: int,
    topic_id: int,
    payload: TopicAnswerRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
) -> TopicAnswerResult:
    try:
        result = app_api.submit_topic_answer(
            uow,
            response_id=response_id,
            topic_id=topic_id,
            current_rating=payload.current_rating,
            target_rating=payload.target_rating,
            time_spent_seconds=payload.time_spent_seconds,
            notes=payload.notes,
        )
    except MaturityAssessmentError as exc:
        _raise_http(exc)
    return TopicAnswerResult(**result)


def _completion(result) -> CompletionResult:
    return CompletionResult(
        response_id=result.response_id,
        completed_at=result.computed_at,
        overall_score=result.overall_score,
        overall_gap=result.overall_gap,
        dimensions=[
            DimensionSummary(
                dimension_id=d.dimension.id,
                title=d.dimension.title,
                score=d.score,
                gap=d.gap,
                priority_score=d.priority_score,
                rank_order=d.rank_order,
            )
            for d in result.dimensions
        ],
    )


@router.post("/responses/{response_id}/complete", response_model=CompletionResult)
def complete_response(
    response_id: int,
    uow: UnitOfWork = Depends(get_unit_of_work),
) -> CompletionResult:
    try:
        result = app_api.complete_assessment(uow, response_id)
    except MaturityAssessmentError as exc:
        _raise_http(exc)
    return _completion(result)


@router.post("/responses/{response_id}/recompute", response_model=CompletionResult)
def recompute_response(
    response_id: int,
    uow: UnitOfWork = Depends(get_unit_of_work),
) -> CompletionResult:
    try:
        result = app_api.recompute_results(uow, response_id)
    except MaturityAssessmentError as exc:
        _raise_http(exc)
    return _completion(result)


@router.get("/responses/{response_id}/results", response_model=ResultsResponse)
def get_results(response_id: int, db: Session = Depends(get_db_session)) -> ResultsResponse:
    try:
        results = app_api.get_results(db, response_id)
    except MaturityAssessmentError as exc:
        _raise_http(exc)
    return ResultsResponse(**results)


@router.get("/responses/{response_id}/recommendations", response_model=RecommendationsResponse)
def get_recommendations(
    response_id: int, db: Session = Depends(get_db_session)
) -> RecommendationsResponse:
    try:
        recommendations = app_api.get_dimension_recommendations(db, response_id)
    except MaturityAssessmentError as exc:
        _raise_http(exc)
    return RecommendationsResponse(response_id=response_id, recommendations=recommendations)


@router.get("/responses/{response_id}/priorities", response_model=list[PriorityView])
def get_priorities(
    response_id: int,
    limit: int = Query(5, ge=1, le=50),
    db: Session = Depends(get_db_session),
) -> list[PriorityView]:
    try:
        priorities = app_api.get_top_priorities(db, response_id, limit=limit)
    except MaturityAssessmentError as exc:
        _raise_http(exc)
    return [
        PriorityView(
            dimension_key=p.dimension_key,
            title=p.title,
            priority_score=p.priority_score,
            rank=p.rank_order,
        )
        for p in priorities
    ]


@router.get("/responses/{response_id}/gaps", response_model=list[TopGap])
def get_gaps(
    response_id: int,
    limit: int = Query(5, ge=1, le=50),
    db: Session = Depends(get_db_session),
) -> list[TopGap]:
    try:
        gaps = app_api.get_top_gaps(db, response_id, limit=limit)
    except MaturityAssessmentError as exc:
        _raise_http(exc)
    return [TopGap(**gap) for gap in gaps]


@router.get("/responses/{response_id}/top-recommendations", response_model=list[Recommendation])
def get_top_recommendations(
    response_id: int,
    limit: int = Query(5, ge=1, le=50),
    db: Session = Depends(get_db_session),
) -> list[Recommendation]:
    try:
        top = app_api.get_top_recommendations(db, response_id, limit=limit)
    except MaturityAssessmentError as exc:
        _raise_http(exc)
    return [Recommendation(**rec.model_dump()) for rec in top]


@router.get("/responses/{response_id}/export")
def export_results(
    response_id: int,
    format: str = Query("json", pattern="^(json|xlsx)$"),
    db: Session = Depends(get_db_session),
) -> Response:
    if not get_settings().app.enable_exports:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Exports are disabled.")

    try:
        results = app_api.get_results(db, response_id)
        if format == "xlsx":
            return Response(
                content=make_xlsx_export_bytes(results),
                media_type=XLSX_MEDIA_TYPE,
                headers={
                    "Content-Disposition": f'attachment; filename="results_{response_id}.xlsx"'
                },
            )
        return Response(
            content=make_json_export_payload(results),
            media_type="application/json",
            headers={"Content-Disposition": f'attachment; filename="results_{response_id}.json"'},
        )
    except MaturityAssessmentError as exc:
        _raise_http(exc)
