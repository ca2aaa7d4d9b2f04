# probook/repositories/base_repository.py
"""
Shared data access for the booking models.

Repositories add and flush; committing is the service layer's job. Driver
errors are logged here and re-raised as ``RepositoryException``.
"""

from contextlib import contextmanager
import logging
from typing import Any, Generic, Iterator, Optional, Type, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session

from ..core.exceptions import RepositoryException

ModelT = TypeVar("ModelT")


class BaseRepository(Generic[ModelT]):
    def __init__(self, db: Session, model: Type[ModelT]):
        self.db = db
        self.model = model
        self.logger = logging.getLogger(f"{__name__}.{model.__name__}")

    @contextmanager
    def _translate_errors(self, action: str) -> Iterator[None]:
        name = self.model.__name__
        try:
            yield
        except IntegrityError as exc:
            self.logger.error("Constraint violated while trying to %s %s: %s", action, name, exc)
            raise RepositoryException(f"Integrity constraint violated: {exc}") from exc
        except SQLAlchemyError as exc:
            self.logger.error("Could not %s %s: %s", action, name, exc)
            raise RepositoryException(f"Failed to {action} {name}: {exc}") from exc

    def _query(self, **criteria: Any) -> "Query[ModelT]":
        return self.db.query(self.model).filter_by(**criteria)

    def get_by_id(self, id: str) -> Optional[ModelT]:
        with self._translate_errors("load"):
            return self.db.get(self.model, id)

    def create(self, **values: Any) -> ModelT:
        """Add a row and flush so defaults (ids, timestamps) are populated."""
        with self._translate_errors("create"):
            entity = self.model(**values)
            self.db.add(entity)
            self.db.flush()
            return entity

    def exists(self, **criteria: Any) -> bool:
        with self._translate_errors("look up"):
            return self._query(**criteria).first() is not None

    def find_one_by(self, **criteria: Any) -> Optional[ModelT]:
        with self._translate_errors("look up"):
            return self._query(**criteria).first()
