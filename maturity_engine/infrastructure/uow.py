from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from .exceptions import handle_database_error
from .logging import get_logger

logger = get_logger(__name__)


class UnitOfWork:
    """One session, one transaction: commit on success, roll back on any error."""

    def __init__(self, SessionLocal: sessionmaker[Session]):
        self.SessionLocal = SessionLocal

    @contextmanager
    def begin(self) -> Iterator[Session]:
        """
        Yield a session and commit it when the block exits cleanly.

        Driver errors that escape the block, including those raised by the
        commit itself, leave as ``DatabaseError`` subclasses.
        """
        s = self.SessionLocal()
        try:
            yield s
            s.commit()
        except SQLAlchemyError as e:
            logger.warning("Rolling back transaction after database error: %s", e)
            s.rollback()
            raise handle_database_error(e, "transaction") from e
        except Exception:
            logger.warning("Rolling back transaction")
            s.rollback()
            raise
        finally:
            s.close()
