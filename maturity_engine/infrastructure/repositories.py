"""
Repository layer for the maturity scoring engine.

Each repository wraps one table (or one read model) behind typed methods,
logs every database operation and converts SQLAlchemy errors into the
application's exception taxonomy.
"""

from __future__ import annotations

from .repositories_catalog import AssessmentRepo, DimensionRepo, TopicRepo
from .repositories_priority import ComputedPriorityRepo, StoredPriority
from .repositories_response import ResponseRepo, TopicResponseRepo
from .repositories_rule import RecommendationRuleRepo

__all__ = [
    "AssessmentRepo",
    "ComputedPriorityRepo",
    "DimensionRepo",
    "RecommendationRuleRepo",
    "ResponseRepo",
    "StoredPriority",
    "TopicRepo",
    "TopicResponseRepo",
]
