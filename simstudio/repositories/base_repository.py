# simstudio/repositories/base_repository.py
"""
Shared CRUD for the studio repositories.

Repositories own queries; services own transactions. Nothing here commits.
SQLAlchemy failures surface as RepositoryException, except OperationalError,
which propagates unchanged so the retry boundary in ``with_db_retry`` can see
transient disconnects.
"""

import logging
from typing import Any, Generic, NoReturn, Optional, Type, TypeVar

from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Query, Session

from ..core.exceptions import RepositoryException

T = TypeVar("T")

logger = logging.getLogger(__name__)


class BaseRepository(Generic[T]):
    """Lookup, create, partial update and delete for one mapped model."""

    def __init__(self, db: Session, model: Type[T]):
        self.db = db
        self.model = model
        self.logger = logging.getLogger(f"{__name__}.{model.__name__}")

    def _raise_repository_error(self, action: str, exc: SQLAlchemyError) -> NoReturn:
        if isinstance(exc, OperationalError):
            raise exc
        self.logger.error("Failed to %s %s: %s", action, self.model.__name__, exc)
        raise RepositoryException(f"Failed to {action} {self.model.__name__}: {exc}") from exc

    def get_by_id(self, id: str, load_relationships: bool = True) -> Optional[T]:
        try:
            query = self.db.query(self.model).filter(self.model.id == id)
            if load_relationships:
                query = self._apply_eager_loading(query)
            return query.first()
        except SQLAlchemyError as e:
            self._raise_repository_error("retrieve", e)

    def find_one_by(self, **kwargs: Any) -> Optional[T]:
        """First row matching the exact-match criteria, or None."""
        try:
            return self.db.query(self.model).filter_by(**kwargs).first()
        except SQLAlchemyError as e:
            self._raise_repository_error("find", e)

    def create(self, **kwargs: Any) -> T:
        """Add and flush a new row; the caller's transaction commits it."""
        try:
            entity = self.model(**kwargs)
            self.db.add(entity)
            self.db.flush()
            return entity
        except IntegrityError as exc:
            self.logger.error("Integrity error creating %s: %s", self.model.__name__, exc)
            self.db.rollback()
            raise RepositoryException(f"Integrity constraint violated: {exc}") from exc
        except SQLAlchemyError as e:
            self.db.rollback()
            self._raise_repository_error("create", e)

    def update(self, id: str, **kwargs: Any) -> Optional[T]:
        """Set only the given attributes; None when the row is missing."""
        try:
            entity = self.get_by_id(id, load_relationships=False)
            if not entity:
                return None
            for key, value in kwargs.items():
                if hasattr(entity, key):
                    setattr(entity, key, value)
            self.db.flush()
            return entity
        except SQLAlchemyError as e:
            self.db.rollback()
            self._raise_repository_error("update", e)

    def delete(self, id: str) -> bool:
        try:
            entity = self.get_by_id(id, load_relationships=False)
            if not entity:
                return False
            self.db.delete(entity)
            self.db.flush()
            return True
        except IntegrityError as e:
            self.logger.error("Cannot delete %s %s due to constraints: %s", self.model.__name__, id, e)
            self.db.rollback()
            raise RepositoryException(f"Cannot delete due to existing references: {e}") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            self._raise_repository_error("delete", e)

    def flush(self) -> None:
        self.db.flush()

    def _apply_eager_loading(self, query: Query) -> Query:
        """Subclasses add the relationships their callers read."""
        return query
