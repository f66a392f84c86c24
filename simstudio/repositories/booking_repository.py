# simstudio/repositories/booking_repository.py
"""
Booking Repository for the simulator studio.

Handles:
- Booking CRUD and filtered listing
- The conditional CONFIRMED -> CANCELLED status flip
- Per-hour slot reservations, whose unique constraint is the double-booking guard
- Payment reference lookups
"""

from datetime import datetime
import logging
from typing import Any, Iterable, List, Optional, Tuple

from sqlalchemy import delete, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session, joinedload

from ..core.enums import BookingStatus, ResourceType
from ..core.exceptions import SlotUnavailableException
from ..models.booking import Booking, SlotReservation
from ..models.types import utc_now
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class BookingRepository(BaseRepository[Booking]):
    """Repository for bookings and their slot reservations."""

    def __init__(self, db: Session):
        super().__init__(db, Booking)
        self.logger = logging.getLogger(__name__)

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(joinedload(Booking.user), joinedload(Booking.coach))

    def list_bookings(
        self,
        *,
        user_id: Optional[str] = None,
        simulator_id: Optional[int] = None,
        coach_id: Optional[str] = None,
        start_from: Optional[datetime] = None,
        start_before: Optional[datetime] = None,
        include_cancelled: bool = False,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[Booking]:
        """Bookings matching the filters, ordered by start time ascending."""
        try:
            query = self._apply_eager_loading(self.db.query(Booking))
            if user_id is not None:
                query = query.filter(Booking.user_id == user_id)
            if simulator_id is not None:
                query = query.filter(Booking.simulator_id == simulator_id)
            if coach_id is not None:
                query = query.filter(Booking.coach_id == coach_id)
            if start_from is not None:
                query = query.filter(Booking.start_time >= start_from)
            if start_before is not None:
                query = query.filter(Booking.start_time < start_before)
            if not include_cancelled:
                query = query.filter(Booking.status == BookingStatus.CONFIRMED.value)
            query = query.order_by(Booking.start_time.asc(), Booking.simulator_id.asc())
            if offset:
                query = query.offset(offset)
            if limit is not None:
                query = query.limit(limit)
            return query.all()
        except SQLAlchemyError as exc:
            self._raise_repository_error("list", exc)

    def count_upcoming_for_user(self, user_id: str, now: datetime) -> int:
        try:
            return (
                self.db.query(Booking)
                .filter(
                    Booking.user_id == user_id,
                    Booking.status == BookingStatus.CONFIRMED.value,
                    Booking.start_time > now,
                )
                .count()
            )
        except SQLAlchemyError as exc:
            self._raise_repository_error("count", exc)

    def find_by_payment_ref(self, payment_ref: str) -> Optional[Booking]:
        try:
            return (
                self._apply_eager_loading(self.db.query(Booking))
                .filter(Booking.payment_ref == payment_ref)
                .order_by(Booking.created_at.desc())
                .first()
            )
        except SQLAlchemyError as exc:
            self._raise_repository_error("find", exc)

    def mark_cancelled(
        self, booking_id: str, *, cancelled_by_id: Optional[str], refunded_hours: int
    ) -> bool:
        """
        Flip a CONFIRMED booking to CANCELLED.

        Returns False when another request already cancelled it; only one
        caller can ever observe True for a given booking.
        """
        now = utc_now()
        try:
            result = self.db.execute(
                update(Booking)
                .where(Booking.id == booking_id)
                .where(Booking.status == BookingStatus.CONFIRMED.value)
                .values(
                    status=BookingStatus.CANCELLED.value,
                    cancelled_at=now,
                    cancelled_by_id=cancelled_by_id,
                    refunded_hours=refunded_hours,
                    updated_at=now,
                )
                .execution_options(synchronize_session=False)
            )
        except SQLAlchemyError as exc:
            self._raise_repository_error("cancel", exc)
        return bool(result.rowcount == 1)

    # Slot reservations

    def reserve_slots(
        self,
        booking_id: str,
        claims: Iterable[Tuple[ResourceType, str]],
        slot_starts: Iterable[datetime],
    ) -> List[SlotReservation]:
        """
        Claim every (resource, hour) pair for a booking.

        A unique violation means a concurrent request won one of the slots.
        """
        starts = list(slot_starts)
        rows = [
            SlotReservation(
                booking_id=booking_id,
                resource_type=resource_type.value,
                resource_id=str(resource_id),
                slot_start=slot_start,
            )
            for resource_type, resource_id in claims
            for slot_start in starts
        ]
        try:
            self.db.add_all(rows)
            self.db.flush()
        except IntegrityError as exc:
            self.logger.info(
                "Slot reservation lost to a concurrent booking",
                extra={"booking_id": booking_id},
            )
            raise SlotUnavailableException(
                details={"booking_id": booking_id},
            ) from exc
        except SQLAlchemyError as exc:
            self._raise_repository_error("reserve slots for", exc)
        return rows

    def release_slots(self, booking_id: str) -> int:
        try:
            result = self.db.execute(
                delete(SlotReservation)
                .where(SlotReservation.booking_id == booking_id)
                .execution_options(synchronize_session=False)
            )
        except SQLAlchemyError as exc:
            self._raise_repository_error("release slots for", exc)
        return int(result.rowcount or 0)

    def get_reserved_slots(
        self,
        resource_type: ResourceType,
        window_start: datetime,
        window_end: datetime,
        resource_ids: Optional[Iterable[str]] = None,
    ) -> List[Tuple[str, datetime]]:
        """(resource_id, slot_start) pairs reserved inside ``[window_start, window_end)``."""
        try:
            query = self.db.query(SlotReservation.resource_id, SlotReservation.slot_start).filter(
                SlotReservation.resource_type == resource_type.value,
                SlotReservation.slot_start >= window_start,
                SlotReservation.slot_start < window_end,
            )
            if resource_ids is not None:
                query = query.filter(SlotReservation.resource_id.in_([str(r) for r in resource_ids]))
            return [(row.resource_id, row.slot_start) for row in query.all()]
        except SQLAlchemyError as exc:
            self._raise_repository_error("load reservations for", exc)

    def update_payment(
        self, booking: Booking, *, payment_ref: Optional[str], payment_status: Optional[str]
    ) -> Booking:
        fields: dict[str, Any] = {}
        if payment_ref is not None:
            fields["payment_ref"] = payment_ref
        if payment_status is not None:
            fields["payment_status"] = payment_status
        for key, value in fields.items():
            setattr(booking, key, value)
        self.db.flush()
        return booking
