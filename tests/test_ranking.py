from maturity_engine.domain.models import DimensionInfo, DimensionResult
from maturity_engine.domain.ranking import (
    MAX_RECOMMENDATIONS_PER_DIMENSION,
    rank_dimension_recommendations,
    rank_dimensions,
    select_top_recommendations,
)
from maturity_engine.domain.schemas import RecommendationSnapshot


def snap(rule_id, priority):
    return RecommendationSnapshot(
        id=rule_id, topic_id=1, topic_key="t1", title=f"Rule {rule_id}", priority=priority
    )


def dim_result(dim_id, priority_score):
    info = DimensionInfo(
        id=dim_id, dimension_key=f"d{dim_id}", title=f"D{dim_id}", category=None, order_index=dim_id
    )
    return DimensionResult(
        dimension=info, score=3.0, gap=priority_score, priority_score=priority_score
    )


def test_recommendations_sorted_by_priority_desc():
    ranked = rank_dimension_recommendations([snap(1, 20), snap(2, 90), snap(3, 50)])
    assert [r.id for r in ranked] == [2, 3, 1]


def test_equal_priorities_keep_discovery_order():
    ranked = rank_dimension_recommendations([snap(7, 80), snap(3, 80), snap(5, 80)])
    assert [r.id for r in ranked] == [7, 3, 5]


def test_recommendations_bounded_per_dimension():
    matches = [snap(i, 50) for i in range(1, 9)]
    ranked = rank_dimension_recommendations(matches)
    assert len(ranked) == MAX_RECOMMENDATIONS_PER_DIMENSION
    assert [r.id for r in ranked] == [1, 2, 3, 4, 5]


def test_rank_dimensions_assigns_dense_ranks():
    ranked = rank_dimensions([dim_result(1, 1.25), dim_result(2, 1.5), dim_result(3, 0.0)])
    assert [(d.dimension.id, d.rank_order) for d in ranked] == [(2, 1), (1, 2), (3, 3)]


def test_rank_dimensions_ties_follow_input_order():
    ranked = rank_dimensions([dim_result(1, 1.0), dim_result(2, 1.0), dim_result(3, 2.0)])
    assert [d.dimension.id for d in ranked] == [3, 1, 2]
    assert [d.rank_order for d in ranked] == [1, 2, 3]


def test_select_top_recommendations_merges_dimensions():
    top = select_top_recommendations(
        [[snap(1, 90), snap(2, 40)], [snap(3, 80), snap(4, 80)], []], limit=3
    )
    assert [r.id for r in top] == [1, 3, 4]
