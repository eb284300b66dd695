from __future__ import annotations

import math
from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from .models import DimensionMetrics, OverallMetrics, TopicGap, TopicRating

RATING_MIN = 1.0
RATING_MAX = 5.0
RATING_STEP = 0.5

_CENTS = Decimal("0.01")


def clamp_rating(level: float | None) -> float | None:
    """Validate a rating on the 1..5 scale in 0.5 increments."""
    if level is None:
        return None
    value = float(level)
    if not math.isfinite(value) or not (RATING_MIN <= value <= RATING_MAX):
        raise ValueError("Rating must be between 1 and 5 inclusive.")
    if not (value / RATING_STEP).is_integer():
        raise ValueError("Rating must be a multiple of 0.5.")
    return value


def round2(value: float) -> float:
    """Round half-up to two places on the exact binary value of ``value``."""
    return float(Decimal(value).quantize(_CENTS, rounding=ROUND_HALF_UP))


def to_finite_number(value: Any) -> float | None:
    """Coerce numbers and numeric strings; anything else (or NaN/inf) becomes None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        if not value.strip():
            return None
        try:
            value = float(value)
        except ValueError:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def calculate_topic_gap(current: float, target: float) -> TopicGap:
    """
    gap = target - current; normalized_gap = gap if gap > 0 else 0.

    Over-performance is neither rewarded nor penalized.
    """
    gap = target - current
    return TopicGap(gap=gap, normalized_gap=gap if gap > 0 else 0.0)


def calculate_dimension_metrics(ratings: Iterable[TopicRating]) -> DimensionMetrics:
    """
    Dimension score and gap from the topic ratings of one dimension.

    - score = mean(current ratings), gap = mean(normalized gaps), both rounded.
    - Pairs with a non-finite current or target value are skipped.
    - No valid pairs gives score = gap = 0.
    """
    total_current = 0.0
    total_normalized_gap = 0.0
    valid = 0

    for rating in ratings:
        current = to_finite_number(rating.current_rating)
        target = to_finite_number(rating.target_rating)
        if current is None or target is None:
            continue
        total_current += current
        total_normalized_gap += calculate_topic_gap(current, target).normalized_gap
        valid += 1

    if valid == 0:
        return DimensionMetrics(score=0.0, gap=0.0)

    return DimensionMetrics(
        score=round2(total_current / valid),
        gap=round2(total_normalized_gap / valid),
    )


def calculate_priority_score(gap: float) -> float:
    # Same quantity as the dimension gap; kept separate so weighting can change later.
    return round2(gap)


def calculate_overall_metrics(dimensions: Iterable[DimensionMetrics]) -> OverallMetrics:
    """Unweighted mean of dimension scores and gaps; no dimensions gives 0/0."""
    dims = list(dimensions)
    if not dims:
        return OverallMetrics(overall_score=0.0, overall_gap=0.0)

    return OverallMetrics(
        overall_score=round2(sum(d.score for d in dims) / len(dims)),
        overall_gap=round2(sum(d.gap for d in dims) / len(dims)),
    )
