import math

import pytest

from maturity_engine.domain.models import DimensionMetrics, TopicRating
from maturity_engine.domain.services import (
    calculate_dimension_metrics,
    calculate_overall_metrics,
    calculate_priority_score,
    calculate_topic_gap,
    round2,
    to_finite_number,
)


def rating(current, target, topic_id=1):
    return TopicRating(
        topic_id=topic_id,
        topic_key=f"t{topic_id}",
        dimension_id=1,
        current_rating=current,
        target_rating=target,
    )


def test_topic_gap_positive():
    gap = calculate_topic_gap(2.0, 4.5)
    assert gap.gap == 2.5
    assert gap.normalized_gap == 2.5


def test_topic_gap_overperformance_is_not_penalised():
    gap = calculate_topic_gap(4.0, 3.0)
    assert gap.gap == -1.0
    assert gap.normalized_gap == 0.0


def test_round2_is_half_up_on_exact_value():
    assert round2(0.125) == 0.13
    assert round2(0.375) == 0.38
    # 1.005 is stored as 1.00499999...
    assert round2(1.005) == 1.0
    assert round2(1 / 3) == 0.33


def test_to_finite_number():
    assert to_finite_number(3) == 3.0
    assert to_finite_number("2.5") == 2.5
    assert to_finite_number(" ") is None
    assert to_finite_number("abc") is None
    assert to_finite_number(None) is None
    assert to_finite_number(True) is None
    assert to_finite_number(math.nan) is None
    assert to_finite_number(math.inf) is None


def test_dimension_metrics_mean_of_ratings_and_normalized_gaps():
    metrics = calculate_dimension_metrics(
        [rating(2.0, 4.0, 1), rating(3.0, 3.5, 2), rating(4.0, 3.0, 3)]
    )
    assert metrics.score == 3.0
    # (2 + 0.5 + 0) / 3
    assert metrics.gap == 0.83


def test_dimension_metrics_rounds_score():
    metrics = calculate_dimension_metrics(
        [rating(1.0, 1.0, 1), rating(1.0, 1.0, 2), rating(2.0, 2.0, 3)]
    )
    assert metrics.score == 1.33
    assert metrics.gap == 0.0


def test_dimension_metrics_skips_non_finite_pairs():
    metrics = calculate_dimension_metrics(
        [rating(2.0, 4.0, 1), rating(math.nan, 4.0, 2), rating(3.0, None, 3)]
    )
    assert metrics.score == 2.0
    assert metrics.gap == 2.0


def test_dimension_metrics_without_valid_pairs():
    assert calculate_dimension_metrics([]) == DimensionMetrics(score=0.0, gap=0.0)
    assert calculate_dimension_metrics([rating(None, None)]) == DimensionMetrics(0.0, 0.0)


def test_priority_score_tracks_gap():
    assert calculate_priority_score(1.25) == 1.25
    assert calculate_priority_score(0.0) == 0.0


def test_overall_metrics_unweighted_mean():
    overall = calculate_overall_metrics(
        [
            DimensionMetrics(score=2.5, gap=1.25),
            DimensionMetrics(score=3.0, gap=1.5),
            DimensionMetrics(score=0.0, gap=0.0),
        ]
    )
    assert overall.overall_score == 1.83
    assert overall.overall_gap == 0.92


def test_overall_metrics_empty():
    overall = calculate_overall_metrics([])
    assert overall.overall_score == 0.0
    assert overall.overall_gap == 0.0


@pytest.mark.parametrize(
    "current,target,expected_gap",
    [(1.0, 5.0, 4.0), (5.0, 1.0, 0.0), (3.5, 3.5, 0.0)],
)
def test_normalized_gap_bounds(current, target, expected_gap):
    assert calculate_topic_gap(current, target).normalized_gap == expected_gap
