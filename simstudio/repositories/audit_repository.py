# simstudio/repositories/audit_repository.py
"""Audit log persistence."""

from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models.audit_log import AuditLog
from .base_repository import BaseRepository


class AuditRepository(BaseRepository[AuditLog]):
    def __init__(self, db: Session):
        super().__init__(db, AuditLog)

    def write(self, entry: AuditLog) -> AuditLog:
        try:
            self.db.add(entry)
            self.db.flush()
            return entry
        except SQLAlchemyError as exc:
            self._raise_repository_error("write", exc)

    def list_for_entity(
        self, entity_type: str, entity_id: Optional[str] = None, limit: int = 100
    ) -> List[AuditLog]:
        try:
            query = self.db.query(AuditLog).filter(AuditLog.entity_type == entity_type)
            if entity_id is not None:
                query = query.filter(AuditLog.entity_id == entity_id)
            return query.order_by(AuditLog.occurred_at.desc(), AuditLog.id.desc()).limit(limit).all()
        except SQLAlchemyError as exc:
            self._raise_repository_error("list", exc)
