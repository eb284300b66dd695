from __future__ import annotations

import os

os.environ.setdefault("ENVIRONMENT", "test")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from maturity_engine.infrastructure.db import create_session_factory
from maturity_engine.infrastructure.models import Base, TopicORM
from maturity_engine.infrastructure.uow import UnitOfWork
from maturity_engine.utils.seed import seed_catalog
from tests.catalog import CATALOG


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def SessionLocal(engine) -> sessionmaker[Session]:
    return create_session_factory(engine)


@pytest.fixture
def uow(SessionLocal) -> UnitOfWork:
    return UnitOfWork(SessionLocal)


@pytest.fixture
def seeded(SessionLocal) -> dict:
    """Seed ``CATALOG`` and return its assessment id and topic ids by key."""
    with SessionLocal() as s:
        assessment = seed_catalog(s, CATALOG)
        s.commit()
        topics = {
            t.topic_key: t.id
            for t in s.query(TopicORM).all()
            if t.dimension.assessment_id == assessment.id
        }
        return {"assessment_id": assessment.id, "topics": topics}
