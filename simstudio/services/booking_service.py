# simstudio/services/booking_service.py
"""
Booking Store for the simulator studio.

Creation runs availability checks first, then a single transaction that
inserts the booking, debits the user's hours and claims one slot
reservation per booked hour for the simulator (and coach). Losing a slot
to a concurrent request rolls everything back, including the debit.

Cancellation flips CONFIRMED to CANCELLED with a conditional update,
releases the reservations and refunds the hours exactly once.

Both write paths run through ``with_db_retry``: one retry on a transient
disconnect, then UpstreamServiceException.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.constants import MAX_BOOKING_HOURS, MIN_BOOKING_HOURS
from ..core.enums import BookingStatus, DisplayStatus, ResourceType
from ..core.exceptions import (
    ForbiddenException,
    InsufficientCreditException,
    NotFoundException,
    PastBookingException,
    SlotUnavailableException,
    ValidationException,
)
from ..core.timezone_utils import (
    ensure_utc,
    studio_date_key,
    studio_hour_to_utc,
    to_studio_local,
    utc_now,
)
from ..database import with_db_retry
from ..models.booking import Booking, booking_hours
from ..models.user import User
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from .audit_service import AuditService, snapshot
from .availability_service import AvailabilityService, iter_slot_starts
from .base import BaseService
from .credit_ledger_service import CreditBalanceView, CreditLedgerService

logger = logging.getLogger(__name__)

BOOKING_AUDIT_FIELDS = (
    "user_id",
    "simulator_id",
    "coach_id",
    "start_time",
    "end_time",
    "hours",
    "status",
    "payment_ref",
    "payment_status",
    "refunded_hours",
)


@dataclass
class BookingResult:
    booking: Booking
    credits_remaining: CreditBalanceView


@dataclass
class CancellationResult:
    booking: Booking
    refunded_hours: int


def _is_admin(actor: Optional[User]) -> bool:
    return bool(actor is not None and actor.is_admin)


class BookingService(BaseService):
    """Creates, lists and cancels bookings."""

    def __init__(
        self,
        db: Session,
        availability_service: Optional[AvailabilityService] = None,
        credit_ledger: Optional[CreditLedgerService] = None,
    ):
        super().__init__(db)
        self.repository = RepositoryFactory.create_booking_repository(db)
        self.user_repository = RepositoryFactory.create_user_repository(db)
        self.availability_service = availability_service or AvailabilityService(db)
        self.credit_ledger = credit_ledger or CreditLedgerService(db)
        self.audit = AuditService(db)

    # Creation

    def _validate_request(
        self,
        user_id: str,
        start: datetime,
        hours: Any,
        simulator_id: Optional[int],
        coach_id: Optional[str],
        now: datetime,
        actor: Optional[User],
    ) -> User:
        if actor is not None and not actor.is_admin and actor.id != user_id:
            raise ForbiddenException("You can only create bookings for yourself")

        user = self.user_repository.get_by_id(user_id, load_relationships=False)
        if user is None:
            raise NotFoundException("User not found", details={"user_id": user_id})

        if (
            isinstance(hours, bool)
            or not isinstance(hours, int)
            or not MIN_BOOKING_HOURS <= hours <= MAX_BOOKING_HOURS
        ):
            raise ValidationException(
                f"Bookings must be between {MIN_BOOKING_HOURS} and {MAX_BOOKING_HOURS} hours",
                code="INVALID_DURATION",
                details={"hours": hours},
            )

        local_start = to_studio_local(start)
        if local_start.minute or local_start.second or local_start.microsecond:
            raise ValidationException(
                "Bookings must start on the hour",
                code="INVALID_START",
                details={"start": start.isoformat()},
            )

        if simulator_id is not None:
            self.availability_service.validate_simulator_id(simulator_id)
        if coach_id is not None:
            self.availability_service.require_coach(coach_id)

        earliest = now + timedelta(hours=settings.min_booking_notice_hours)
        if start < earliest:
            raise ValidationException(
                f"Bookings must be made at least {settings.min_booking_notice_hours} hours in advance",
                code="BOOKING_NOTICE",
                details={"start": start.isoformat()},
            )
        if start > now + timedelta(days=settings.max_booking_days_ahead):
            raise ValidationException(
                f"Bookings can be made at most {settings.max_booking_days_ahead} days in advance",
                code="BOOKING_HORIZON",
                details={"start": start.isoformat()},
            )
        return user

    @BaseService.measure_operation("create_booking")
    def create_booking(
        self,
        user_id: str,
        start: datetime,
        hours: int = 1,
        simulator_id: Optional[int] = None,
        coach_id: Optional[str] = None,
        payment_ref: Optional[str] = None,
        payment_status: Optional[str] = None,
        actor: Optional[User] = None,
        now: Optional[datetime] = None,
    ) -> BookingResult:
        """
        Book ``hours`` consecutive hours from ``start``.

        Naive ``start`` values are studio wall-clock times.

        Raises:
            NotFoundException: unknown user or coach
            ValidationException: duration, alignment, simulator or notice rules
            SlotUnavailableException: closed, outside hours, or taken
            InsufficientCreditException: not enough simulator hours
        """
        now = ensure_utc(now) if now else utc_now()
        start = ensure_utc(start)
        self.log_operation(
            "create_booking",
            user_id=user_id,
            start=start.isoformat(),
            hours=hours,
            simulator_id=simulator_id,
            coach_id=coach_id,
        )
        self._validate_request(user_id, start, hours, simulator_id, coach_id, now, actor)
        end = start + timedelta(hours=hours)

        def _create() -> BookingResult:
            chosen_simulator = self.availability_service.check_window(
                start, end, simulator_id=simulator_id, coach_id=coach_id
            )
            available = self.credit_ledger.get(user_id).simulator_hours
            if available < hours:
                raise InsufficientCreditException(required=hours, available=available)

            with self.transaction():
                booking = self.repository.create(
                    user_id=user_id,
                    simulator_id=chosen_simulator,
                    coach_id=coach_id,
                    start_time=start,
                    end_time=end,
                    hours=hours,
                    status=BookingStatus.CONFIRMED.value,
                    payment_ref=payment_ref,
                    payment_status=payment_status,
                )
                remaining = self.credit_ledger.debit(
                    user_id,
                    hours,
                    booking_id=booking.id,
                    actor_id=actor.id if actor is not None else None,
                )
                claims: List[Tuple[ResourceType, str]] = [
                    (ResourceType.SIMULATOR, str(chosen_simulator))
                ]
                if coach_id is not None:
                    claims.append((ResourceType.COACH, coach_id))
                self.repository.reserve_slots(booking.id, claims, iter_slot_starts(start, end))
            return BookingResult(booking=booking, credits_remaining=remaining)

        try:
            result = with_db_retry("create_booking", _create)
        except (SlotUnavailableException, InsufficientCreditException):
            prometheus_metrics.inc_booking_event("rejected")
            raise

        prometheus_metrics.inc_booking_event("created")
        self.logger.info(
            "Booking created",
            extra={
                "event": "booking_created",
                "booking_id": result.booking.id,
                "user_id": user_id,
                "simulator_id": result.booking.simulator_id,
                "hours": hours,
            },
        )
        return result

    def create_from_form(
        self,
        user_id: str,
        booking_date: date,
        start_time: time,
        hours: int = 1,
        simulator_id: Optional[int] = None,
        coach_id: Optional[str] = None,
        payment_ref: Optional[str] = None,
        actor: Optional[User] = None,
        now: Optional[datetime] = None,
    ) -> BookingResult:
        """Create from the booking form shape: a studio-local date plus HH:MM."""
        if start_time.minute or start_time.second:
            raise ValidationException(
                "Bookings must start on the hour",
                code="INVALID_START",
                details={"time": start_time.isoformat()},
            )
        return self.create_booking(
            user_id,
            studio_hour_to_utc(booking_date, start_time.hour),
            hours=hours,
            simulator_id=simulator_id,
            coach_id=coach_id,
            payment_ref=payment_ref,
            actor=actor,
            now=now,
        )

    # Cancellation

    @BaseService.measure_operation("cancel_booking")
    def cancel_booking(
        self,
        booking_id: str,
        actor: Optional[User] = None,
        now: Optional[datetime] = None,
    ) -> CancellationResult:
        """
        Cancel a future booking and refund its hours.

        Raises:
            NotFoundException: missing or already cancelled
            ForbiddenException: actor is neither the owner nor an admin
            PastBookingException: the booking has already started
        """
        now = ensure_utc(now) if now else utc_now()
        booking = self.repository.get_by_id(booking_id)
        if booking is None or booking.status == BookingStatus.CANCELLED.value:
            raise NotFoundException(
                "Booking not found or already cancelled", details={"booking_id": booking_id}
            )
        if actor is not None and not actor.is_admin and actor.id != booking.user_id:
            raise ForbiddenException("You can only cancel your own bookings")
        if booking.start_time <= now:
            raise PastBookingException(booking_id)

        refunded = booking_hours(booking.start_time, booking.end_time)
        actor_id = actor.id if actor is not None else None
        before = snapshot(booking, BOOKING_AUDIT_FIELDS)

        def _cancel() -> None:
            with self.transaction():
                if not self.repository.mark_cancelled(
                    booking_id, cancelled_by_id=actor_id, refunded_hours=refunded
                ):
                    raise NotFoundException(
                        "Booking not found or already cancelled",
                        details={"booking_id": booking_id},
                    )
                self.repository.release_slots(booking_id)
                self.credit_ledger.credit(
                    booking.user_id, refunded, booking_id=booking_id, actor_id=actor_id
                )
                if _is_admin(actor) and actor.id != booking.user_id:
                    self.audit.log(
                        "booking",
                        booking_id,
                        "cancel",
                        actor=actor,
                        before=before,
                        after={
                            **before,
                            "status": BookingStatus.CANCELLED.value,
                            "refunded_hours": refunded,
                        },
                    )

        with_db_retry("cancel_booking", _cancel)
        self.db.refresh(booking)
        prometheus_metrics.inc_booking_event("cancelled")
        self.logger.info(
            "Booking cancelled",
            extra={
                "event": "booking_cancelled",
                "booking_id": booking_id,
                "user_id": booking.user_id,
                "refunded_hours": refunded,
            },
        )
        return CancellationResult(booking=booking, refunded_hours=refunded)

    # Queries

    @BaseService.measure_operation("list_bookings")
    def list_bookings(
        self,
        *,
        user_id: Optional[str] = None,
        simulator_id: Optional[int] = None,
        coach_id: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        include_cancelled: bool = False,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[Booking]:
        """
        Bookings ordered by start time. ``date_from``/``date_to`` are inclusive
        studio-calendar dates.
        """
        if date_from and date_to and date_from > date_to:
            raise ValidationException("dateFrom must not be after dateTo")
        return self.repository.list_bookings(
            user_id=user_id,
            simulator_id=simulator_id,
            coach_id=coach_id,
            start_from=studio_hour_to_utc(date_from, 0) if date_from else None,
            start_before=studio_hour_to_utc(date_to, 24) if date_to else None,
            include_cancelled=include_cancelled,
            limit=limit,
            offset=offset,
        )

    @staticmethod
    def group_by_date(bookings: List[Booking]) -> Dict[str, List[Booking]]:
        """Bookings keyed by studio-local YYYY-MM-DD, days ascending, each day by time."""
        grouped: Dict[str, List[Booking]] = {}
        for booking in sorted(bookings, key=lambda b: (b.start_time, b.simulator_id)):
            grouped.setdefault(studio_date_key(booking.start_time), []).append(booking)
        return dict(sorted(grouped.items()))

    @staticmethod
    def display_status(booking: Booking, now: Optional[datetime] = None) -> DisplayStatus:
        return booking.display_status(ensure_utc(now) if now else utc_now())

    def get_booking(self, booking_id: str, actor: Optional[User] = None) -> Booking:
        booking = self.repository.get_by_id(booking_id)
        if booking is None:
            raise NotFoundException("Booking not found", details={"booking_id": booking_id})
        if actor is not None and not actor.is_admin and actor.id != booking.user_id:
            raise ForbiddenException("You can only view your own bookings")
        return booking

    # Payment callbacks

    def find_by_payment_ref(self, payment_ref: str, actor: Optional[User] = None) -> Booking:
        if not payment_ref:
            raise ValidationException("Payment reference is required")
        booking = self.repository.find_by_payment_ref(payment_ref)
        if booking is None:
            raise NotFoundException("Booking not found", details={"payment_ref": payment_ref})
        if actor is not None and not actor.is_admin and actor.id != booking.user_id:
            raise ForbiddenException("You can only view your own bookings")
        return booking

    @BaseService.measure_operation("update_payment")
    def update_payment(
        self,
        booking_id: str,
        payment_ref: Optional[str] = None,
        payment_status: Optional[str] = None,
        actor: Optional[User] = None,
    ) -> Booking:
        if payment_ref is None and payment_status is None:
            raise ValidationException("Provide paymentRef or paymentStatus")
        booking = self.repository.get_by_id(booking_id)
        if booking is None:
            raise NotFoundException("Booking not found", details={"booking_id": booking_id})

        before = snapshot(booking, ("payment_ref", "payment_status"))
        with self.transaction():
            self.repository.update_payment(
                booking, payment_ref=payment_ref, payment_status=payment_status
            )
            self.audit.log(
                "booking",
                booking_id,
                "update_payment",
                actor=actor,
                before=before,
                after=snapshot(booking, ("payment_ref", "payment_status")),
            )
        return booking


__all__ = ["BookingResult", "BookingService", "CancellationResult"]
