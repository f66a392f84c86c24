# simstudio/models/audit_log.py
"""
Audit trail for administrative overrides.

Every admin mutation (credit set, booking cancel on behalf of a user, role
changes, schedule edits) writes one row with JSON snapshots of the entity
before and after the change.
"""

from __future__ import annotations

from typing import Any, Mapping

from sqlalchemy import Column, Index, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.types import JSON
import ulid

from ..database import Base
from .types import UTCDateTime, utc_now


class AuditLog(Base):
    """Persistence model for audit trail entries."""

    __tablename__ = "audit_log"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    entity_type = Column(String(50), nullable=False)
    entity_id = Column(String(64), nullable=False)
    action = Column(String(30), nullable=False)
    actor_id = Column(String(26), nullable=True)
    actor_role = Column(String(30), nullable=True)
    occurred_at = Column(UTCDateTime, nullable=False, default=utc_now)
    before = Column(JSONB(astext_type=Text()).with_variant(JSON(), "sqlite"), nullable=True)
    after = Column(JSONB(astext_type=Text()).with_variant(JSON(), "sqlite"), nullable=True)

    __table_args__ = (Index("ix_audit_log_entity", "entity_type", "entity_id"),)

    @classmethod
    def from_change(
        cls,
        entity_type: str,
        entity_id: str,
        action: str,
        actor: Any | None,
        before: Mapping[str, Any] | None,
        after: Mapping[str, Any] | None,
    ) -> "AuditLog":
        """Build an entry from change metadata; ``actor`` is a User or None."""
        actor_id: str | None = None
        actor_role: str | None = None
        if actor is not None:
            actor_id = getattr(actor, "id", None)
            if getattr(actor, "is_admin", False):
                actor_role = "admin"
            elif getattr(actor, "is_coach", False):
                actor_role = "coach"
            else:
                actor_role = "customer"

        return cls(
            entity_type=entity_type,
            entity_id=entity_id,
            action=action,
            actor_id=actor_id,
            actor_role=actor_role,
            before=dict(before) if before is not None else None,
            after=dict(after) if after is not None else None,
        )

    def __repr__(self) -> str:
        return f"<AuditLog {self.entity_type}:{self.entity_id} {self.action}>"
