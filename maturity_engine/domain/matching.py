"""
Condition-based recommendation matching.

A rule matches a topic's (score, target, gap) triple when every bound it sets
is satisfied. Bounds are inclusive and an unset bound never excludes a rule.
"""

from __future__ import annotations

from collections.abc import Iterable

from .models import RecommendationBounds, RecommendationRule, TopicRating
from .services import calculate_topic_gap, round2, to_finite_number


def score_min_ok(bounds: RecommendationBounds, score: float) -> bool:
    return bounds.score_min is None or score >= bounds.score_min


def score_max_ok(bounds: RecommendationBounds, score: float) -> bool:
    return bounds.score_max is None or score <= bounds.score_max


def target_min_ok(bounds: RecommendationBounds, target: float) -> bool:
    return bounds.target_min is None or target >= bounds.target_min


def target_max_ok(bounds: RecommendationBounds, target: float) -> bool:
    return bounds.target_max is None or target <= bounds.target_max


def gap_min_ok(bounds: RecommendationBounds, gap: float) -> bool:
    return bounds.gap_min is None or gap >= bounds.gap_min


def gap_max_ok(bounds: RecommendationBounds, gap: float) -> bool:
    return bounds.gap_max is None or gap <= bounds.gap_max


def matches_conditions(
    bounds: RecommendationBounds, score: float, target: float, gap: float
) -> bool:
    return (
        score_min_ok(bounds, score)
        and score_max_ok(bounds, score)
        and target_min_ok(bounds, target)
        and target_max_ok(bounds, target)
        and gap_min_ok(bounds, gap)
        and gap_max_ok(bounds, gap)
    )


def match_topic_recommendations(
    rating: TopicRating, rules: Iterable[RecommendationRule]
) -> list[RecommendationRule]:
    """
    Return the rules matching one answered topic, in the order given.

    The gap compared against ``gap_min``/``gap_max`` is the normalized gap
    rounded to two places. Inactive rules, rules of other topics and ratings
    with a non-finite value never match.
    """
    score = to_finite_number(rating.current_rating)
    target = to_finite_number(rating.target_rating)
    if score is None or target is None:
        return []

    gap = round2(calculate_topic_gap(score, target).normalized_gap)

    return [
        rule
        for rule in rules
        if rule.is_active
        and rule.topic_id == rating.topic_id
        and matches_conditions(rule.bounds, score, target, gap)
    ]
