from __future__ import annotations

import json
from pathlib import Path

import pandas as pd
import pytest
from sqlalchemy import inspect

from maturity_engine.infrastructure.models import RecommendationRuleORM
from maturity_engine.utils.seed import (
    catalog_from_excel,
    initialise_database,
    load_catalog,
    seed_catalog,
    split_bullets,
)
from tests.catalog import CATALOG


def write_workbook(path: Path) -> None:
    topics = pd.DataFrame(
        [
            {"dimension_key": "gov", "dimension_title": "Governance", "category": "Leadership",
             "topic_key": "gov_board", "label": "Board oversight", "prompt": "How engaged is the board?"},
            {"dimension_key": "gov", "dimension_title": "Governance", "category": "Leadership",
             "topic_key": "gov_policy", "label": "Policy framework", "prompt": None},
            {"dimension_key": "risk", "dimension_title": "Risk", "category": None,
             "topic_key": "risk_register", "label": "Risk register", "prompt": None},
        ]
    )
    rules = pd.DataFrame(
        [
            {"topic_key": "gov_board", "title": "Board charter", "gap_min": 1, "gap_max": None,
             "category": "Quick Win", "priority": 80,
             "action_items": "Draft charter\nBoard sign-off", "tags": "governance"},
            {"topic_key": "risk_register", "title": "Central register", "gap_min": None,
             "gap_max": None, "category": None, "priority": None,
             "action_items": None, "tags": None},
        ]
    )
    with pd.ExcelWriter(path, engine="xlsxwriter") as writer:
        topics.to_excel(writer, index=False, sheet_name="Topics")
        rules.to_excel(writer, index=False, sheet_name="Recommendations")


def test_initialise_database_reports_existing_tables(engine):
    # The fixture already created every table.
    assert initialise_database(engine) is True


def test_initialise_database_creates_missing_tables():
    from sqlalchemy import create_engine

    fresh = create_engine("sqlite://")
    assert initialise_database(fresh) is False
    assert "computed_priorities" in inspect(fresh).get_table_names()


def test_seed_catalog_orders_dimensions_and_topics(SessionLocal):
    with SessionLocal() as s:
        assessment = seed_catalog(s, CATALOG)
        s.flush()
        assert [d.dimension_key for d in assessment.dimensions] == ["gov", "risk", "culture"]
        assert [d.order_index for d in assessment.dimensions] == [1, 2, 3]
        assert [t.topic_key for t in assessment.dimensions[0].topics] == ["gov_board", "gov_policy"]
        assert s.query(RecommendationRuleORM).count() == 5


def test_seed_catalog_rejects_unknown_topic(SessionLocal):
    catalog = {
        "title": "Broken",
        "dimensions": [{"key": "d", "title": "D", "topics": [{"key": "t"}]}],
        "recommendations": [{"topic_key": "missing", "title": "Orphan"}],
    }
    with SessionLocal() as s, pytest.raises(ValueError):
        seed_catalog(s, catalog)


def test_split_bullets():
    assert split_bullets("• one\n• two; three") == ["one", "two", "three"]
    assert split_bullets(None) == []


def test_catalog_from_excel(tmp_path):
    path = tmp_path / "catalog.xlsx"
    write_workbook(path)

    catalog = catalog_from_excel(path, title="Workbook catalog")

    assert catalog["title"] == "Workbook catalog"
    assert [d["key"] for d in catalog["dimensions"]] == ["gov", "risk"]
    assert [t["key"] for t in catalog["dimensions"][0]["topics"]] == ["gov_board", "gov_policy"]
    assert catalog["dimensions"][1]["category"] is None

    charter, register = catalog["recommendations"]
    assert charter["gap_min"] == 1.0
    assert charter["gap_max"] is None
    assert charter["action_items"] == ["Draft charter", "Board sign-off"]
    assert charter["priority"] == 80
    assert "priority" not in register
    assert register["action_items"] == []


def test_excel_catalog_seeds(tmp_path, SessionLocal):
    path = tmp_path / "catalog.xlsx"
    write_workbook(path)

    with SessionLocal() as s:
        seed_catalog(s, load_catalog(path))
        s.flush()
        rules = s.query(RecommendationRuleORM).order_by(RecommendationRuleORM.id).all()
        assert [r.title for r in rules] == ["Board charter", "Central register"]
        assert rules[0].category == "Quick Win"
        assert rules[1].priority == 50


def test_load_catalog_json(tmp_path):
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps(CATALOG), encoding="utf-8")

    catalog = load_catalog(path, title="Renamed")
    assert catalog["title"] == "Renamed"
    assert len(catalog["dimensions"]) == 3
