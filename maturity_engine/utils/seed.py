from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any

import pandas as pd
from sqlalchemy import inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from ..domain.schemas import RecommendationRuleInput
from ..infrastructure.logging import get_logger
from ..infrastructure.models import AssessmentORM, Base, DimensionORM, TopicORM
from ..infrastructure.repositories import RecommendationRuleRepo

logger = get_logger(__name__)


def initialise_database(engine: Engine) -> bool:
    """
    Ensure all ORM tables exist.

    Returns:
        True if every table already existed before this call, False if at least one table
        needed to be created.
    """
    existing_tables = set(inspect(engine).get_table_names())
    already_exists = all(table.name in existing_tables for table in Base.metadata.sorted_tables)
    Base.metadata.create_all(engine)
    return already_exists


def seed_catalog(session: Session, catalog: dict[str, Any]) -> AssessmentORM:
    """
    Load one assessment catalog (dimensions, topics, recommendation rules).

    ``catalog`` has the shape::

        {"title": ..., "dimensions": [
            {"key": ..., "title": ..., "category": ...,
             "topics": [{"key": ..., "label": ..., "prompt": ...}]}],
         "recommendations": [{"topic_key": ..., "title": ..., "priority": 80, ...}]}

    Dimension and topic order follows list order. Rules are validated with
    ``RecommendationRuleInput`` before insert. Nothing is committed here.
    """
    assessment = AssessmentORM(
        title=catalog["title"],
        description=catalog.get("description"),
        version=int(catalog.get("version", 1)),
        is_published=bool(catalog.get("is_published", True)),
    )
    session.add(assessment)
    session.flush()

    topics_by_key: dict[str, TopicORM] = {}
    for d_index, dim in enumerate(catalog.get("dimensions", []), start=1):
        dimension = DimensionORM(
            assessment_id=assessment.id,
            dimension_key=dim["key"],
            title=dim["title"],
            description=dim.get("description"),
            category=dim.get("category"),
            order_index=d_index,
        )
        session.add(dimension)
        session.flush()

        for t_index, top in enumerate(dim.get("topics", []), start=1):
            topic = TopicORM(
                dimension_id=dimension.id,
                topic_key=top["key"],
                label=top.get("label", top["key"]),
                prompt=top.get("prompt"),
                order_index=t_index,
            )
            session.add(topic)
            topics_by_key[topic.topic_key] = topic
    session.flush()

    rules = RecommendationRuleRepo(session)
    for raw in catalog.get("recommendations", []):
        data = RecommendationRuleInput(**raw)
        topic = topics_by_key.get(data.topic_key)
        if topic is None:
            raise ValueError(f"Recommendation '{data.title}' references unknown topic '{data.topic_key}'")
        rules.create_from_input(topic.id, data)

    logger.info(
        "Seeded assessment '%s': %d topics, %d recommendations",
        assessment.title,
        len(topics_by_key),
        len(catalog.get("recommendations", [])),
    )
    return assessment


def clean_text(value: object) -> str:
    if isinstance(value, str):
        return value.strip()
    if value is None:
        return ""
    if pd.isna(value):
        return ""
    return str(value).strip()


def clean_optional(value: object) -> str | None:
    text = clean_text(value)
    return text or None


def clean_number(value: object) -> float | None:
    text = clean_text(value)
    return float(text) if text else None


def split_bullets(cell: object) -> list[str]:
    if not isinstance(cell, str):
        return []
    parts = re.split(r"[\n\r;]+|•", cell)
    return [p.strip(" \t-•") for p in parts if p and p.strip(" \t-•")]


RULE_BOUND_COLUMNS = ("score_min", "score_max", "target_min", "target_max", "gap_min", "gap_max")


def catalog_from_excel(excel_path: Path, title: str | None = None) -> dict[str, Any]:
    """
    Read a catalog workbook into the dict shape ``seed_catalog`` accepts.

    The workbook has a ``Topics`` sheet (one row per topic with
    ``dimension_key``, ``dimension_title``, ``category``, ``topic_key``,
    ``label``, ``prompt``) and an optional ``Recommendations`` sheet whose
    columns mirror ``RecommendationRuleInput``. ``action_items`` and ``tags``
    cells hold one entry per line.
    """
    sheets = pd.read_excel(excel_path, sheet_name=None, engine="openpyxl")
    by_lower = {name.lower(): frame for name, frame in sheets.items()}
    topics_df = by_lower.get("topics")
    if topics_df is None:
        raise KeyError(
            f"Sheet 'Topics' not found in workbook. Available sheets: {', '.join(sheets)}"
        )

    dimensions: dict[str, dict[str, Any]] = {}
    for _, row in topics_df.iterrows():
        dimension_key = clean_text(row.get("dimension_key"))
        topic_key = clean_text(row.get("topic_key"))
        if not (dimension_key and topic_key):
            continue
        dimension = dimensions.setdefault(
            dimension_key,
            {
                "key": dimension_key,
                "title": clean_text(row.get("dimension_title")) or dimension_key,
                "category": clean_optional(row.get("category")),
                "topics": [],
            },
        )
        dimension["topics"].append(
            {
                "key": topic_key,
                "label": clean_text(row.get("label")) or topic_key,
                "prompt": clean_optional(row.get("prompt")),
            }
        )

    recommendations: list[dict[str, Any]] = []
    rules_df = by_lower.get("recommendations")
    if rules_df is not None:
        for _, row in rules_df.iterrows():
            topic_key = clean_text(row.get("topic_key"))
            rule_title = clean_text(row.get("title"))
            if not (topic_key and rule_title):
                continue
            rule: dict[str, Any] = {"topic_key": topic_key, "title": rule_title}
            for column in RULE_BOUND_COLUMNS:
                rule[column] = clean_number(row.get(column))
            for column in ("description", "why", "what", "how"):
                rule[column] = clean_optional(row.get(column))
            rule["action_items"] = split_bullets(row.get("action_items"))
            rule["tags"] = split_bullets(row.get("tags"))
            category = clean_optional(row.get("category"))
            if category:
                rule["category"] = category
            priority = clean_number(row.get("priority"))
            if priority is not None:
                rule["priority"] = int(priority)
            recommendations.append(rule)

    return {
        "title": title or excel_path.stem,
        "dimensions": list(dimensions.values()),
        "recommendations": recommendations,
    }


def load_catalog(path: Path, title: str | None = None) -> dict[str, Any]:
    """Load a catalog from a ``.json`` file or an ``.xlsx`` workbook."""
    if path.suffix.lower() in (".xlsx", ".xlsm"):
        return catalog_from_excel(path, title=title)
    with path.open(encoding="utf-8") as fh:
        catalog = json.load(fh)
    if title:
        catalog["title"] = title
    return catalog
