# simstudio/repositories/credit_repository.py
"""
Credit Repository for the simulator studio.

Balance mutations are single UPDATE statements so concurrent requests never
read-modify-write the counters. Callers re-read the balance afterwards with
``get_balance``, which always refreshes from the database.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.enums import CreditTransactionKind
from ..core.exceptions import ConflictException
from ..models.credit import CreditBalance, CreditTransaction
from ..models.types import utc_now
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class CreditRepository(BaseRepository[CreditBalance]):
    """Repository for credit balances and their transaction trail."""

    def __init__(self, db: Session):
        super().__init__(db, CreditBalance)
        self.logger = logging.getLogger(__name__)

    def get_balance(self, user_id: str) -> Optional[CreditBalance]:
        try:
            return (
                self.db.query(CreditBalance)
                .filter(CreditBalance.user_id == user_id)
                .populate_existing()
                .first()
            )
        except SQLAlchemyError as exc:
            self._raise_repository_error("load", exc)

    def get_or_create_balance(self, user_id: str) -> CreditBalance:
        balance = self.get_balance(user_id)
        if balance is not None:
            return balance
        return self.create(user_id=user_id, simulator_hours=0, coaching_sessions=0)

    def get_balances_for_users(self, user_ids: List[str]) -> dict[str, CreditBalance]:
        if not user_ids:
            return {}
        try:
            rows = self.db.query(CreditBalance).filter(CreditBalance.user_id.in_(user_ids)).all()
        except SQLAlchemyError as exc:
            self._raise_repository_error("load", exc)
        return {row.user_id: row for row in rows}

    def try_debit_hours(self, user_id: str, hours: int) -> bool:
        """Subtract ``hours`` only if the balance covers it. Returns False otherwise."""
        try:
            result = self.db.execute(
                update(CreditBalance)
                .where(CreditBalance.user_id == user_id)
                .where(CreditBalance.simulator_hours >= hours)
                .values(
                    simulator_hours=CreditBalance.simulator_hours - hours,
                    updated_at=utc_now(),
                )
                .execution_options(synchronize_session=False)
            )
        except SQLAlchemyError as exc:
            self._raise_repository_error("debit", exc)
        return bool(result.rowcount == 1)

    def add_credit(self, user_id: str, *, hours: int = 0, coaching_sessions: int = 0) -> None:
        self.get_or_create_balance(user_id)
        try:
            self.db.execute(
                update(CreditBalance)
                .where(CreditBalance.user_id == user_id)
                .values(
                    simulator_hours=CreditBalance.simulator_hours + hours,
                    coaching_sessions=CreditBalance.coaching_sessions + coaching_sessions,
                    updated_at=utc_now(),
                )
                .execution_options(synchronize_session=False)
            )
        except SQLAlchemyError as exc:
            self._raise_repository_error("credit", exc)

    def set_balance(
        self,
        user_id: str,
        *,
        simulator_hours: Optional[int] = None,
        coaching_sessions: Optional[int] = None,
    ) -> CreditBalance:
        balance = self.get_or_create_balance(user_id)
        if simulator_hours is not None:
            balance.simulator_hours = simulator_hours
        if coaching_sessions is not None:
            balance.coaching_sessions = coaching_sessions
        balance.updated_at = utc_now()
        self.db.flush()
        return balance

    def record_transaction(self, **kwargs) -> CreditTransaction:
        """
        Append a ledger entry.

        Refund entries are unique per booking; a duplicate raises
        ConflictException and leaves rollback to the caller's transaction.
        """
        entry = CreditTransaction(**kwargs)
        try:
            self.db.add(entry)
            self.db.flush()
        except IntegrityError as exc:
            if kwargs.get("kind") == CreditTransactionKind.REFUND.value:
                raise ConflictException(
                    "This booking has already been refunded",
                    code="ALREADY_REFUNDED",
                    details={"booking_id": kwargs.get("booking_id")},
                ) from exc
            self._raise_repository_error("record", exc)
        except SQLAlchemyError as exc:
            self._raise_repository_error("record", exc)
        return entry

    def list_transactions(self, user_id: str, limit: int = 50) -> List[CreditTransaction]:
        try:
            return (
                self.db.query(CreditTransaction)
                .filter(CreditTransaction.user_id == user_id)
                .order_by(CreditTransaction.created_at.desc(), CreditTransaction.id.desc())
                .limit(limit)
                .all()
            )
        except SQLAlchemyError as exc:
            self._raise_repository_error("list transactions for", exc)

    def count_refunds_for_booking(self, booking_id: str) -> int:
        try:
            return (
                self.db.query(CreditTransaction)
                .filter(
                    CreditTransaction.booking_id == booking_id,
                    CreditTransaction.kind == CreditTransactionKind.REFUND.value,
                )
                .count()
            )
        except SQLAlchemyError as exc:
            self._raise_repository_error("count refunds for", exc)
