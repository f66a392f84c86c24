# simstudio/repositories/schema_repository.py
"""
Schema inspection for deployments whose tables predate newer columns.

The hosted database owns its schema, so the service only inspects the
columns it depends on and can add the user role flags on request.
"""

from __future__ import annotations

import logging
from typing import Set

from sqlalchemy import inspect, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..database.session_utils import get_dialect_name

logger = logging.getLogger(__name__)


class SchemaRepository:
    """Column lookups and additive ALTERs on the session's connection."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def column_names(self, table_name: str) -> Set[str]:
        """Columns of ``table_name``; empty when the table does not exist."""
        try:
            inspector = inspect(self.db.connection())
            if not inspector.has_table(table_name):
                return set()
            return {column["name"] for column in inspector.get_columns(table_name)}
        except SQLAlchemyError as exc:
            logger.error("Schema inspection failed for %s: %s", table_name, exc)
            raise RepositoryException(f"Failed to inspect {table_name}: {exc}") from exc

    def add_boolean_column(self, table_name: str, column_name: str) -> None:
        """Add a NOT NULL boolean column defaulting to false."""
        false_literal = "0" if get_dialect_name(self.db) == "sqlite" else "FALSE"
        statement = (
            f'ALTER TABLE "{table_name}" ADD COLUMN "{column_name}" '
            f"BOOLEAN NOT NULL DEFAULT {false_literal}"
        )
        try:
            self.db.execute(text(statement))
        except SQLAlchemyError as exc:
            logger.error("Failed to add %s.%s: %s", table_name, column_name, exc)
            raise RepositoryException(f"Failed to add column {column_name}: {exc}") from exc
