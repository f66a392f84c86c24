# simstudio/models/booking.py
"""
Booking model for the simulator studio.

A booking holds one simulator (and optionally one coach) for a run of whole
hours. Each booked hour is also claimed in ``slot_reservations``; the unique
constraint there is what keeps two confirmed bookings off the same slot.

Only CONFIRMED and CANCELLED are stored. "Completed" is derived at read
time from the start time and is never written.
"""

from datetime import datetime
import logging
from sqlalchemy import (
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
import ulid

from ..core.enums import BookingStatus, DisplayStatus
from ..database import Base
from .types import UTCDateTime, utc_now

logger = logging.getLogger(__name__)


class Booking(Base):
    """Simulator session booked by a user, optionally with a coach."""

    __tablename__ = "bookings"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    user_id = Column(String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    simulator_id = Column(Integer, nullable=False)
    coach_id = Column(String(26), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    start_time = Column(UTCDateTime, nullable=False, index=True)
    end_time = Column(UTCDateTime, nullable=False)
    hours = Column(Integer, nullable=False)

    status = Column(String(20), nullable=False, default=BookingStatus.CONFIRMED.value, index=True)
    refunded_hours = Column(Integer, nullable=True)

    payment_ref = Column(String(255), nullable=True, index=True)
    payment_status = Column(String(50), nullable=True)

    created_at = Column(UTCDateTime, nullable=False, default=utc_now)
    updated_at = Column(UTCDateTime, nullable=True, onupdate=utc_now)
    cancelled_at = Column(UTCDateTime, nullable=True)
    cancelled_by_id = Column(String(26), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    user = relationship("User", foreign_keys=[user_id])
    coach = relationship("User", foreign_keys=[coach_id])
    reservations = relationship(
        "SlotReservation",
        back_populates="booking",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        CheckConstraint("status IN ('CONFIRMED', 'CANCELLED')", name="ck_bookings_status"),
        CheckConstraint("end_time > start_time", name="ck_bookings_time_order"),
        CheckConstraint("hours > 0", name="ck_bookings_hours"),
        Index("ix_bookings_simulator_start", "simulator_id", "start_time"),
        Index("ix_bookings_user_start", "user_id", "start_time"),
    )

    @property
    def is_confirmed(self) -> bool:
        return self.status == BookingStatus.CONFIRMED.value

    def display_status(self, now: datetime) -> DisplayStatus:
        """Status as shown to users: confirmed bookings that have started read as completed."""
        if self.status == BookingStatus.CANCELLED.value:
            return DisplayStatus.CANCELLED
        if self.start_time < now:
            return DisplayStatus.COMPLETED
        return DisplayStatus.CONFIRMED

    def duration_hours(self) -> int:
        return booking_hours(self.start_time, self.end_time)

    def __repr__(self) -> str:
        return f"<Booking {self.id} sim={self.simulator_id} {self.start_time} {self.status}>"


class SlotReservation(Base):
    """
    One booked hour of one resource.

    ``resource_type`` is ``simulator`` (resource_id = simulator number) or
    ``coach`` (resource_id = coach user id).
    """

    __tablename__ = "slot_reservations"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    booking_id = Column(
        String(26), ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    resource_type = Column(String(20), nullable=False)
    resource_id = Column(String(26), nullable=False)
    slot_start = Column(UTCDateTime, nullable=False)

    booking = relationship("Booking", back_populates="reservations")

    __table_args__ = (
        UniqueConstraint(
            "resource_type",
            "resource_id",
            "slot_start",
            name="uq_slot_reservations_resource_slot",
        ),
        CheckConstraint(
            "resource_type IN ('simulator', 'coach')", name="ck_slot_reservations_resource_type"
        ),
    )

    def __repr__(self) -> str:
        return f"<SlotReservation {self.resource_type}:{self.resource_id} {self.slot_start}>"


def booking_hours(start: datetime, end: datetime) -> int:
    """Whole hours covered by a window, rounded like refunds are."""
    return round((end - start).total_seconds() / 3600)

