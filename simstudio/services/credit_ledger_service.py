# simstudio/services/credit_ledger_service.py
"""
Credit Ledger for the simulator studio.

Holds each user's prepaid simulator hours and coaching sessions.

- ``debit`` and ``credit`` join the caller's transaction; BookingService
  runs them next to the booking insert so both land or neither does.
- ``purchase`` and ``set_absolute`` are standalone operations and commit.

Every mutation appends a CreditTransaction and logs the balance before and
after under the ``credit_ledger_mutation`` event.
"""

from dataclasses import asdict, dataclass
import logging
from typing import Any, List, Optional

from sqlalchemy.orm import Session

from ..core.enums import CreditTransactionKind
from ..core.exceptions import (
    ConflictException,
    ForbiddenException,
    InsufficientCreditException,
    NotFoundException,
    ValidationException,
)
from ..models.credit import CreditBalance, CreditTransaction
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from .audit_service import AuditService
from .base import BaseService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CreditBalanceView:
    user_id: str
    simulator_hours: int
    coaching_sessions: int

    @classmethod
    def from_model(cls, user_id: str, balance: Optional[CreditBalance]) -> "CreditBalanceView":
        if balance is None:
            return cls(user_id=user_id, simulator_hours=0, coaching_sessions=0)
        return cls(
            user_id=user_id,
            simulator_hours=balance.simulator_hours,
            coaching_sessions=balance.coaching_sessions,
        )


def _require_positive_hours(hours: Any, field_name: str = "hours") -> int:
    if isinstance(hours, bool) or not isinstance(hours, int) or hours <= 0:
        raise ValidationException(
            f"{field_name} must be a positive whole number", details={field_name: hours}
        )
    return hours


def _require_non_negative(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationException(
            f"{field_name} must be zero or a positive whole number",
            details={field_name: value},
        )
    return value


class CreditLedgerService(BaseService):
    """Per-user credit balances and their transaction trail."""

    def __init__(self, db: Session):
        super().__init__(db)
        self.repository = RepositoryFactory.create_credit_repository(db)
        self.user_repository = RepositoryFactory.create_user_repository(db)
        self.package_repository = RepositoryFactory.create_package_repository(db)
        self.audit = AuditService(db)

    def _require_user(self, user_id: str):
        user = self.user_repository.get_by_id(user_id, load_relationships=False)
        if user is None:
            raise NotFoundException("User not found", details={"user_id": user_id})
        return user

    def _log_mutation(
        self,
        kind: CreditTransactionKind,
        user_id: str,
        before: CreditBalanceView,
        after: CreditBalanceView,
        **context: Any,
    ) -> None:
        self.logger.info(
            "Credit ledger mutation",
            extra={
                "event": "credit_ledger_mutation",
                "kind": kind.value,
                "user_id": user_id,
                "simulator_hours_before": before.simulator_hours,
                "simulator_hours_after": after.simulator_hours,
                "coaching_sessions_before": before.coaching_sessions,
                "coaching_sessions_after": after.coaching_sessions,
                **context,
            },
        )
        delta = abs(after.simulator_hours - before.simulator_hours)
        prometheus_metrics.add_credit_hours(kind.value, delta)

    def _record(
        self,
        kind: CreditTransactionKind,
        user_id: str,
        before: CreditBalanceView,
        after: CreditBalanceView,
        *,
        booking_id: Optional[str] = None,
        package_id: Optional[str] = None,
        actor_id: Optional[str] = None,
    ) -> CreditTransaction:
        return self.repository.record_transaction(
            user_id=user_id,
            kind=kind.value,
            hours=after.simulator_hours - before.simulator_hours,
            balance_before=before.simulator_hours,
            balance_after=after.simulator_hours,
            coaching_before=before.coaching_sessions,
            coaching_after=after.coaching_sessions,
            booking_id=booking_id,
            package_id=package_id,
            actor_id=actor_id,
        )

    def get(self, user_id: str) -> CreditBalanceView:
        """Current balance; users without a balance row read as 0/0."""
        return CreditBalanceView.from_model(user_id, self.repository.get_balance(user_id))

    def debit(
        self,
        user_id: str,
        hours: int,
        booking_id: Optional[str] = None,
        actor_id: Optional[str] = None,
    ) -> CreditBalanceView:
        """
        Remove simulator hours inside the caller's transaction.

        Raises:
            ValidationException: hours is not a positive integer
            InsufficientCreditException: balance is below ``hours``; nothing changes
        """
        _require_positive_hours(hours)
        before = self.get(user_id)
        if before.simulator_hours < hours:
            raise InsufficientCreditException(required=hours, available=before.simulator_hours)

        if not self.repository.try_debit_hours(user_id, hours):
            # Another request spent the hours between the read and the update
            current = self.get(user_id)
            raise InsufficientCreditException(required=hours, available=current.simulator_hours)

        after = self.get(user_id)
        self._record(
            CreditTransactionKind.DEBIT,
            user_id,
            before,
            after,
            booking_id=booking_id,
            actor_id=actor_id,
        )
        self._log_mutation(CreditTransactionKind.DEBIT, user_id, before, after, booking_id=booking_id)
        return after

    def credit(
        self,
        user_id: str,
        hours: int,
        booking_id: str,
        actor_id: Optional[str] = None,
    ) -> CreditBalanceView:
        """
        Refund simulator hours for a booking inside the caller's transaction.

        Raises:
            ConflictException: the booking was already refunded
        """
        _require_positive_hours(hours)
        if self.repository.count_refunds_for_booking(booking_id):
            raise ConflictException(
                "This booking has already been refunded",
                code="ALREADY_REFUNDED",
                details={"booking_id": booking_id},
            )

        before = self.get(user_id)
        self.repository.add_credit(user_id, hours=hours)
        after = self.get(user_id)
        self._record(
            CreditTransactionKind.REFUND,
            user_id,
            before,
            after,
            booking_id=booking_id,
            actor_id=actor_id,
        )
        self._log_mutation(
            CreditTransactionKind.REFUND, user_id, before, after, booking_id=booking_id
        )
        return after

    @BaseService.measure_operation("set_absolute")
    def set_absolute(
        self,
        user_id: str,
        simulator_hours: Optional[int] = None,
        coaching_sessions: Optional[int] = None,
        actor: Any = None,
    ) -> CreditBalanceView:
        """
        Admin overwrite of a user's balance. Values replace, they do not add.

        Fields left as None keep their current value.
        """
        if simulator_hours is None and coaching_sessions is None:
            raise ValidationException("Provide simulator_hours or coaching_sessions")
        if simulator_hours is not None:
            _require_non_negative(simulator_hours, "simulator_hours")
        if coaching_sessions is not None:
            _require_non_negative(coaching_sessions, "coaching_sessions")
        self._require_user(user_id)

        with self.transaction():
            before = self.get(user_id)
            self.repository.set_balance(
                user_id, simulator_hours=simulator_hours, coaching_sessions=coaching_sessions
            )
            after = self.get(user_id)
            actor_id = getattr(actor, "id", None)
            self._record(CreditTransactionKind.ADMIN_SET, user_id, before, after, actor_id=actor_id)
            self.audit.log(
                "credit_balance",
                user_id,
                "set_absolute",
                actor=actor,
                before=asdict(before),
                after=asdict(after),
            )
        self._log_mutation(CreditTransactionKind.ADMIN_SET, user_id, before, after, actor_id=actor_id)
        return after

    @BaseService.measure_operation("purchase")
    def purchase(
        self,
        user_id: str,
        package_id: Optional[str] = None,
        hours: Optional[int] = None,
        coaching_sessions: int = 0,
        actor: Any = None,
    ) -> CreditBalanceView:
        """
        Additive top-up from an active package or an explicit hour count.

        Customers top up through packages only; explicit hours and coaching
        sessions are admin grants.
        """
        is_grant = hours is not None or bool(coaching_sessions)
        if is_grant and actor is not None and not getattr(actor, "is_admin", False):
            raise ForbiddenException(
                "Only admins can grant hours without a package",
                code="GRANT_REQUIRES_ADMIN",
            )
        self._require_user(user_id)
        if package_id is not None:
            package = self.package_repository.get_active(package_id)
            if package is None:
                raise NotFoundException("Package not found", details={"package_id": package_id})
            hours = package.hours
        elif hours is not None:
            _require_positive_hours(hours)
        else:
            raise ValidationException("Provide a packageId or a positive number of hours")
        _require_non_negative(coaching_sessions, "coaching_sessions")

        with self.transaction():
            before = self.get(user_id)
            self.repository.add_credit(user_id, hours=hours, coaching_sessions=coaching_sessions)
            after = self.get(user_id)
            self._record(
                CreditTransactionKind.PURCHASE,
                user_id,
                before,
                after,
                package_id=package_id,
                actor_id=getattr(actor, "id", None),
            )
        self._log_mutation(
            CreditTransactionKind.PURCHASE, user_id, before, after, package_id=package_id
        )
        return after

    def list_transactions(self, user_id: str, limit: int = 50) -> List[CreditTransaction]:
        return self.repository.list_transactions(user_id, limit=limit)
