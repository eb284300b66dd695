import math

from maturity_engine.domain.matching import (
    gap_max_ok,
    gap_min_ok,
    match_topic_recommendations,
    matches_conditions,
    score_max_ok,
    score_min_ok,
    target_max_ok,
    target_min_ok,
)
from maturity_engine.domain.models import RecommendationBounds, RecommendationRule, TopicRating


def make_rule(rule_id, topic_id=1, priority=50, is_active=True, **bounds):
    return RecommendationRule(
        id=rule_id,
        topic_id=topic_id,
        topic_key=f"t{topic_id}",
        title=f"Rule {rule_id}",
        bounds=RecommendationBounds(**bounds),
        priority=priority,
        is_active=is_active,
    )


def make_rating(current, target, topic_id=1):
    return TopicRating(
        topic_id=topic_id,
        topic_key=f"t{topic_id}",
        dimension_id=1,
        current_rating=current,
        target_rating=target,
    )


def test_unset_bounds_never_exclude():
    bounds = RecommendationBounds()
    assert matches_conditions(bounds, score=1.0, target=5.0, gap=4.0)
    assert matches_conditions(bounds, score=5.0, target=1.0, gap=0.0)


def test_bounds_are_inclusive():
    bounds = RecommendationBounds(
        score_min=2, score_max=2, target_min=4, target_max=4, gap_min=2, gap_max=2
    )
    assert score_min_ok(bounds, 2) and score_max_ok(bounds, 2)
    assert target_min_ok(bounds, 4) and target_max_ok(bounds, 4)
    assert gap_min_ok(bounds, 2) and gap_max_ok(bounds, 2)
    assert matches_conditions(bounds, score=2, target=4, gap=2)


def test_each_bound_can_exclude():
    assert not score_min_ok(RecommendationBounds(score_min=3), 2.5)
    assert not score_max_ok(RecommendationBounds(score_max=3), 3.5)
    assert not target_min_ok(RecommendationBounds(target_min=4), 3.5)
    assert not target_max_ok(RecommendationBounds(target_max=4), 4.5)
    assert not gap_min_ok(RecommendationBounds(gap_min=1), 0.5)
    assert not gap_max_ok(RecommendationBounds(gap_max=1), 1.5)


def test_match_uses_normalized_gap():
    # Over-performing topic: raw gap is -1, normalized gap is 0.
    rules = [make_rule(1, gap_max=0), make_rule(2, gap_min=0.5)]
    matched = match_topic_recommendations(make_rating(4.0, 3.0), rules)
    assert [r.id for r in matched] == [1]


def test_match_rounds_gap_before_comparing():
    rules = [make_rule(1, gap_max=1.0)]
    matched = match_topic_recommendations(make_rating(2.0, 3.004999), rules)
    assert [r.id for r in matched] == [1]


def test_match_keeps_given_order():
    rules = [make_rule(3, priority=10), make_rule(1, priority=90), make_rule(2, priority=50)]
    matched = match_topic_recommendations(make_rating(2.0, 4.0), rules)
    assert [r.id for r in matched] == [3, 1, 2]


def test_match_skips_inactive_and_foreign_rules():
    rules = [
        make_rule(1, is_active=False),
        make_rule(2, topic_id=99),
        make_rule(3),
    ]
    matched = match_topic_recommendations(make_rating(2.0, 4.0), rules)
    assert [r.id for r in matched] == [3]


def test_match_with_non_finite_rating_returns_nothing():
    rules = [make_rule(1)]
    assert match_topic_recommendations(make_rating(math.nan, 4.0), rules) == []
    assert match_topic_recommendations(make_rating(2.0, None), rules) == []


def test_match_combined_conditions():
    rules = [make_rule(1, score_max=2.5, target_min=4, gap_min=2)]
    assert match_topic_recommendations(make_rating(2.0, 4.0), rules)
    assert not match_topic_recommendations(make_rating(3.0, 5.0), rules)
    assert not match_topic_recommendations(make_rating(2.5, 4.0), rules)


def test_low_score_with_gap_matches_whatever_the_target():
    rules = [make_rule(1, score_max=2.5, gap_min=0.5)]

    assert [r.id for r in match_topic_recommendations(make_rating(2.0, 4.0), rules)] == [1]
    for target in (2.5, 3.0, 4.5, 5.0):
        assert match_topic_recommendations(make_rating(2.0, target), rules), target
    # The gap floor still applies: no gap, no match.
    assert not match_topic_recommendations(make_rating(2.0, 2.0), rules)
