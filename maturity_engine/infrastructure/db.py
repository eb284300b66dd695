"""
Database connection and session management with centralized configuration.
"""

from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from .config import DatabaseConfig, get_settings
from .exceptions import handle_database_error
from .logging import get_logger

logger = get_logger(__name__)


def create_database_engine(config: DatabaseConfig | None = None) -> Engine:
    """
    Create a SQLAlchemy engine from configuration.

    Example:
        >>> engine = create_database_engine(DatabaseConfig(sqlite_path=":memory:"))
    """
    if config is None:
        config = get_settings().database

    config.ensure_sqlite_directory()
    connection_url = config.get_connection_url()

    logger.info("Creating database engine for %s backend", config.backend)
    logger.debug("Connection URL: %s@***", connection_url.split("@")[0])

    try:
        return create_engine(connection_url, **config.get_engine_options())
    except SQLAlchemyError as e:
        logger.error("Failed to create database engine: %s", e)
        raise handle_database_error(e, "create_engine") from e


def create_session_factory(engine: Engine | None = None) -> sessionmaker[Session]:
    """
    Create the session factory used by the unit of work.

    Sessions never autoflush and keep attributes loaded after commit, so
    results built inside a transaction stay readable after it closes.
    """
    if engine is None:
        engine = create_database_engine()

    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def make_engine_and_session(connection_url: str | None = None) -> tuple[Engine, sessionmaker[Session]]:
    """Create an engine and session factory, from a URL or from configuration."""
    if connection_url:
        engine = create_engine(connection_url, pool_pre_ping=True)
    else:
        engine = create_database_engine()
    return engine, create_session_factory(engine)


def is_database_configured() -> bool:
    try:
        get_settings().database.get_connection_url()
        return True
    except ValueError as e:
        logger.warning("Database configuration invalid: %s", e)
        return False
