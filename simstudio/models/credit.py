# simstudio/models/credit.py
"""
Credit ledger models.

CreditBalance holds the current counters per user. CreditTransaction is the
append-only audit trail: every mutation records the balance before and after.
"""

import logging

from sqlalchemy import CheckConstraint, Column, ForeignKey, Index, Integer, String, text
from sqlalchemy.orm import relationship
import ulid

from ..core.enums import CreditTransactionKind
from ..database import Base
from .types import UTCDateTime, utc_now

logger = logging.getLogger(__name__)


class CreditBalance(Base):
    """Per-user prepaid simulator hours and coaching sessions."""

    __tablename__ = "credit_balances"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    user_id = Column(
        String(26),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )
    simulator_hours = Column(Integer, nullable=False, default=0)
    coaching_sessions = Column(Integer, nullable=False, default=0)
    updated_at = Column(UTCDateTime, nullable=True, default=utc_now, onupdate=utc_now)

    user = relationship("User", back_populates="credit_balance")

    __table_args__ = (
        CheckConstraint("simulator_hours >= 0", name="ck_credit_balances_simulator_hours"),
        CheckConstraint("coaching_sessions >= 0", name="ck_credit_balances_coaching_sessions"),
    )

    def __repr__(self) -> str:
        return f"<CreditBalance user={self.user_id} hours={self.simulator_hours}>"


class CreditTransaction(Base):
    """Audit entry for a single credit mutation."""

    __tablename__ = "credit_transactions"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    user_id = Column(String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    kind = Column(String(20), nullable=False)
    hours = Column(Integer, nullable=False, default=0)
    balance_before = Column(Integer, nullable=False)
    balance_after = Column(Integer, nullable=False)
    coaching_before = Column(Integer, nullable=True)
    coaching_after = Column(Integer, nullable=True)
    booking_id = Column(String(26), ForeignKey("bookings.id", ondelete="SET NULL"), nullable=True)
    package_id = Column(String(26), ForeignKey("packages.id", ondelete="SET NULL"), nullable=True)
    actor_id = Column(String(26), nullable=True)
    created_at = Column(UTCDateTime, nullable=False, default=utc_now)

    __table_args__ = (
        CheckConstraint(
            "kind IN ('purchase', 'debit', 'refund', 'admin_set')",
            name="ck_credit_transactions_kind",
        ),
        Index("ix_credit_transactions_user_created", "user_id", "created_at"),
        # A booking can be refunded at most once
        Index(
            "uq_credit_transactions_refund_booking",
            "booking_id",
            unique=True,
            sqlite_where=text(f"kind = '{CreditTransactionKind.REFUND.value}'"),
            postgresql_where=text(f"kind = '{CreditTransactionKind.REFUND.value}'"),
        ),
    )

    def __repr__(self) -> str:
        return f"<CreditTransaction {self.kind} {self.hours}h user={self.user_id}>"
