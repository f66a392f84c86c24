"""Service for recording admin override audit entries."""

from __future__ import annotations

from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any, Iterable, Mapping

from sqlalchemy.orm import Session

from ..models.audit_log import AuditLog
from ..repositories.factory import RepositoryFactory


class AuditService:
    """
    Create audit log entries inside the caller's transaction.

    Entries never commit on their own, so an audited mutation and its audit
    row land (or roll back) together.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repository = RepositoryFactory.create_audit_repository(db)

    def log(
        self,
        entity_type: str,
        entity_id: str,
        action: str,
        *,
        actor: Any | None = None,
        before: Mapping[str, Any] | None = None,
        after: Mapping[str, Any] | None = None,
    ) -> AuditLog:
        entry = AuditLog.from_change(
            entity_type=entity_type,
            entity_id=str(entity_id),
            action=action,
            actor=actor,
            before=_normalize_value(dict(before)) if before is not None else None,
            after=_normalize_value(dict(after)) if after is not None else None,
        )
        return self.repository.write(entry)

    def history(self, entity_type: str, entity_id: str | None = None) -> list[AuditLog]:
        return self.repository.list_for_entity(entity_type, entity_id)


def snapshot(obj: Any, fields: Iterable[str]) -> dict[str, Any]:
    """Plain-dict view of selected model attributes, safe to store as JSON."""
    if obj is None:
        return {}
    return {field: _normalize_value(getattr(obj, field, None)) for field in fields}


def _normalize_value(value: Any) -> Any:
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: _normalize_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_normalize_value(v) for v in value]
    return value
