from __future__ import annotations

import pytest
from sqlalchemy import select

from maturity_engine.application.api import (
    complete_assessment,
    get_dimension_recommendations,
    get_results,
    get_top_gaps,
    get_top_priorities,
    get_top_recommendations,
    recompute_results,
    start_response,
    submit_topic_answer,
)
from maturity_engine.infrastructure.exceptions import (
    IncompleteAssessmentError,
    MultipleValidationError,
    ResponseNotCompletedError,
    ResponseNotFoundError,
    TopicNotFoundError,
    ValidationError,
)
from maturity_engine.infrastructure.models import AssessmentResponseORM, RecommendationRuleORM
from maturity_engine.utils.seed import seed_catalog
from tests.catalog import answer_all


class TestStartResponse:
    def test_start_response_counts_topics(self, uow, seeded, SessionLocal):
        response_id = start_response(uow, seeded["assessment_id"], respondent="sam")

        with SessionLocal() as s:
            response = s.get(AssessmentResponseORM, response_id)
            assert response.status == "in_progress"
            assert response.total_questions == 4
            assert response.answered_questions == 0
            assert response.respondent == "sam"

    def test_start_response_unknown_assessment(self, uow, seeded):
        with pytest.raises(ValidationError):
            start_response(uow, 999)


class TestSubmitTopicAnswer:
    def test_submit_stores_gap_and_progress(self, uow, seeded):
        response_id = start_response(uow, seeded["assessment_id"])
        result = submit_topic_answer(
            uow, response_id, seeded["topics"]["gov_board"], 2.0, 4.5, time_spent_seconds=30
        )

        assert result["gap"] == 2.5
        assert result["normalized_gap"] == 2.5
        assert result["answered_questions"] == 1
        assert result["progress_percentage"] == 25.0

    def test_resubmission_updates_in_place(self, uow, seeded):
        response_id = start_response(uow, seeded["assessment_id"])
        topic_id = seeded["topics"]["gov_board"]
        submit_topic_answer(uow, response_id, topic_id, 2.0, 4.0)
        result = submit_topic_answer(uow, response_id, topic_id, 4.0, 3.0)

        assert result["answered_questions"] == 1
        assert result["gap"] == -1.0
        assert result["normalized_gap"] == 0.0

    def test_submit_rejects_invalid_rating(self, uow, seeded):
        response_id = start_response(uow, seeded["assessment_id"])
        with pytest.raises(ValidationError) as exc_info:
            submit_topic_answer(uow, response_id, seeded["topics"]["gov_board"], 2.25, 4.0)
        assert exc_info.value.field == "current_rating"

    def test_submit_reports_every_invalid_field(self, uow, seeded):
        response_id = start_response(uow, seeded["assessment_id"])
        with pytest.raises(MultipleValidationError) as exc_info:
            submit_topic_answer(uow, response_id, seeded["topics"]["gov_board"], 0, 6)
        assert len(exc_info.value.validation_errors) == 2

    def test_submit_unknown_response(self, uow, seeded):
        with pytest.raises(ResponseNotFoundError):
            submit_topic_answer(uow, 999, seeded["topics"]["gov_board"], 2.0, 3.0)

    def test_submit_topic_from_other_assessment(self, uow, seeded, SessionLocal):
        with SessionLocal() as s:
            other = seed_catalog(
                s,
                {
                    "title": "Other",
                    "dimensions": [
                        {"key": "x", "title": "X", "topics": [{"key": "x1", "label": "X1"}]}
                    ],
                },
            )
            s.commit()
            foreign_topic_id = other.dimensions[0].topics[0].id

        response_id = start_response(uow, seeded["assessment_id"])
        with pytest.raises(TopicNotFoundError):
            submit_topic_answer(uow, response_id, foreign_topic_id, 2.0, 3.0)

    def test_submit_after_completion_rejected(self, uow, seeded):
        response_id = start_response(uow, seeded["assessment_id"])
        answer_all(uow, response_id, seeded["topics"])
        complete_assessment(uow, response_id)

        with pytest.raises(ValidationError) as exc_info:
            submit_topic_answer(uow, response_id, seeded["topics"]["gov_board"], 3.0, 3.0)
        assert exc_info.value.field == "status"


class TestCompletion:
    def test_complete_requires_every_topic(self, uow, seeded, SessionLocal):
        response_id = start_response(uow, seeded["assessment_id"])
        submit_topic_answer(uow, response_id, seeded["topics"]["gov_board"], 2.0, 4.0)

        with pytest.raises(IncompleteAssessmentError) as exc_info:
            complete_assessment(uow, response_id)
        assert (exc_info.value.answered, exc_info.value.total) == (1, 4)

        with SessionLocal() as s:
            assert s.get(AssessmentResponseORM, response_id).status == "in_progress"

    def test_complete_returns_computation(self, uow, seeded):
        response_id = start_response(uow, seeded["assessment_id"])
        answer_all(uow, response_id, seeded["topics"])
        result = complete_assessment(uow, response_id)

        assert result.response_id == response_id
        assert result.overall_score == 1.83
        assert result.overall_gap == 0.92
        assert [d.dimension.dimension_key for d in result.dimensions] == ["risk", "gov", "culture"]

    def test_complete_unknown_response(self, uow, seeded):
        with pytest.raises(ResponseNotFoundError):
            complete_assessment(uow, 999)


class TestResultsQueries:
    @pytest.fixture
    def completed(self, uow, seeded):
        response_id = start_response(uow, seeded["assessment_id"])
        answer_all(uow, response_id, seeded["topics"])
        complete_assessment(uow, response_id)
        return response_id

    def test_get_results_shape(self, SessionLocal, completed):
        with SessionLocal() as s:
            results = get_results(s, completed)

        assert results["status"] == "completed"
        assert results["overall_score"] == 1.83
        assert [d["dimension_key"] for d in results["dimensions"]] == ["gov", "risk", "culture"]
        assert [p["dimension_key"] for p in results["priorities"]] == ["risk", "gov", "culture"]
        assert [p["rank"] for p in results["priorities"]] == [1, 2, 3]
        assert [g["topic_key"] for g in results["top_gaps"]] == [
            "risk_register",
            "gov_board",
            "gov_policy",
        ]
        assert [r["title"] for r in results["top_recommendations"]] == [
            "Stand up a central risk register",
            "Adopt a board resilience charter",
            "Refresh the policy framework",
            "Run board resilience training",
        ]

    def test_get_results_requires_completion(self, uow, seeded, SessionLocal):
        response_id = start_response(uow, seeded["assessment_id"])
        with SessionLocal() as s, pytest.raises(ResponseNotCompletedError):
            get_results(s, response_id)

    def test_get_results_unknown_response(self, SessionLocal, seeded):
        with SessionLocal() as s, pytest.raises(ResponseNotFoundError):
            get_results(s, 999)

    def test_get_dimension_recommendations(self, SessionLocal, completed):
        with SessionLocal() as s:
            groups = get_dimension_recommendations(s, completed)

        assert [g["dimension_key"] for g in groups] == ["risk", "gov", "culture"]
        assert groups[0]["items"][0]["category"] == "Big Bet"
        assert groups[2]["items"] == []

    def test_get_top_priorities(self, SessionLocal, completed):
        with SessionLocal() as s:
            top = get_top_priorities(s, completed, limit=2)
        assert [(p.dimension_key, p.priority_score) for p in top] == [("risk", 1.5), ("gov", 1.25)]

    def test_get_top_priorities_rejects_bad_limit(self, SessionLocal, completed):
        with SessionLocal() as s, pytest.raises(ValidationError):
            get_top_priorities(s, completed, limit=0)

    def test_get_top_gaps(self, SessionLocal, completed):
        with SessionLocal() as s:
            gaps = get_top_gaps(s, completed, limit=2)
        assert [(g["topic_key"], g["gap"]) for g in gaps] == [
            ("risk_register", 3.0),
            ("gov_board", 2.0),
        ]
        assert gaps[0]["dimension_title"] == "Risk Management"

    def test_get_top_recommendations(self, SessionLocal, completed):
        with SessionLocal() as s:
            top = get_top_recommendations(s, completed, limit=2)
        assert [r.title for r in top] == [
            "Stand up a central risk register",
            "Adopt a board resilience charter",
        ]

    def test_top_recommendation_ties_follow_catalog_order(self, uow, SessionLocal, completed):
        # Risk outranks governance, but an 80-vs-80 tie goes to the earlier dimension.
        with SessionLocal() as s:
            rule = s.scalars(
                select(RecommendationRuleORM).where(
                    RecommendationRuleORM.title == "Stand up a central risk register"
                )
            ).one()
            rule.priority = 80
            s.commit()
        recompute_results(uow, completed)

        with SessionLocal() as s:
            top = get_top_recommendations(s, completed)
            results = get_results(s, completed)

        expected = [
            "Adopt a board resilience charter",
            "Refresh the policy framework",
            "Stand up a central risk register",
            "Run board resilience training",
        ]
        assert [r.title for r in top] == expected
        assert [r["title"] for r in results["top_recommendations"]] == expected
        assert [p["dimension_key"] for p in results["priorities"]] == ["risk", "gov", "culture"]
