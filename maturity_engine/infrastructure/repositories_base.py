# maturity_engine/infrastructure/repositories_base.py
from __future__ import annotations

import builtins
from collections.abc import Iterable
from typing import Any, Generic, NoReturn, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .exceptions import handle_database_error
from .logging import get_logger

T = TypeVar("T")


class BaseRepository(Generic[T]):
    """
    Lightweight generic repository with common read/write helpers.
    - Entity repos set ``model`` and add their own queries.
    - SQLAlchemy errors are logged and converted via ``_handle_error``.
    """

    model: type[T]  # must be set by subclasses

    def __init__(self, session: Session):
        if getattr(self, "model", None) is None:
            raise ValueError(f"{self.__class__.__name__}.model must be set to an ORM class.")
        self.s = session
        self.logger = get_logger(f"repositories.{self.__class__.__name__}")

    def _handle_error(self, exc: SQLAlchemyError, operation: str) -> NoReturn:
        self.logger.error("DB error in %s: %s", operation, exc, exc_info=True)
        raise handle_database_error(exc, operation) from exc

    def _not_found(self, id_: Any) -> Exception:
        return ValueError(f"{self.model.__name__} with id {id_} not found")

    # ---------- Read ----------
    def get(self, id_: Any) -> T | None:
        try:
            return self.s.get(self.model, id_)
        except SQLAlchemyError as e:
            self._handle_error(e, f"get_{self.model.__tablename__}")

    def get_by_id_required(self, id_: Any) -> T:
        obj = self.get(id_)
        if obj is None:
            raise self._not_found(id_)
        return obj

    def list(
        self,
        *filters: Any,
        order_by: Iterable[Any] | None = None,
        limit: int | None = None,
    ) -> builtins.list[T]:
        stmt = select(self.model)
        for f in filters:
            stmt = stmt.where(f)
        if order_by:
            stmt = stmt.order_by(*order_by)
        if limit:
            stmt = stmt.limit(limit)
        try:
            return builtins.list(self.s.scalars(stmt).all())
        except SQLAlchemyError as e:
            self._handle_error(e, f"list_{self.model.__tablename__}")

    # ---------- Write ----------
    def create(self, **fields: Any) -> T:
        obj = self.model(**fields)
        self.s.add(obj)
        try:
            self.s.flush()  # get PKs without committing
        except SQLAlchemyError as e:
            self._handle_error(e, f"create_{self.model.__tablename__}")
        return obj
