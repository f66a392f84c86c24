# simstudio/schemas/booking.py
"""
Booking schemas for the simulator studio.

Requests mirror the booking form: a studio-local ``date`` plus an ``HH:MM``
``time``. Responses carry UTC instants alongside the studio-local date and
time the dashboard groups by.
"""

from datetime import date, datetime, time
import re
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from ..core.enums import DisplayStatus
from ..core.timezone_utils import to_studio_local
from ..models.booking import Booking
from ._strict_base import StrictRequestModel
from .credit import CreditBalanceResponse

DATE_ONLY_REGEX = re.compile(r"^\d{4}-\d{2}-\d{2}$")
TIME_REGEX = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")


def _ensure_date_only(value: object, field_name: str) -> object:
    if isinstance(value, str):
        candidate = value.strip()
        if not DATE_ONLY_REGEX.fullmatch(candidate):
            raise ValueError(f"{field_name} must be a YYYY-MM-DD date-only string")
        return candidate
    return value


class BookingCreate(StrictRequestModel):
    """Create a booking from the form fields."""

    user_id: str = Field(..., alias="userId")
    simulator_id: Optional[int] = Field(None, alias="simulatorId")
    booking_date: date = Field(..., alias="date")
    start_time: time = Field(..., alias="time", description="Studio-local HH:MM")
    hours: int = Field(1, description="Whole hours, 1-12")
    coach_id: Optional[str] = Field(None, alias="coachId")
    payment_ref: Optional[str] = Field(None, alias="paymentRef", max_length=255)

    @field_validator("booking_date", mode="before")
    @classmethod
    def _enforce_date_only(cls, v: object) -> object:
        return _ensure_date_only(v, "date")

    @field_validator("start_time", mode="before")
    @classmethod
    def parse_time_string(cls, v: object) -> object:
        if isinstance(v, str):
            match = TIME_REGEX.fullmatch(v.strip())
            if not match:
                raise ValueError(f"Invalid time format: {v}. Expected HH:MM format.")
            return time(int(match.group(1)), int(match.group(2)))
        return v

    @field_validator("coach_id", "payment_ref")
    @classmethod
    def _blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None


class UpdatePaymentRequest(StrictRequestModel):
    booking_id: str = Field(..., alias="bookingId")
    payment_ref: Optional[str] = Field(None, alias="paymentRef", max_length=255)
    payment_status: Optional[str] = Field(None, alias="paymentStatus", max_length=50)


class BookingResponse(BaseModel):
    id: str
    user_id: str
    user_email: Optional[str] = None
    user_name: Optional[str] = None
    simulator_id: int
    coach_id: Optional[str] = None
    coach_name: Optional[str] = None
    start_time: datetime
    end_time: datetime
    date: str = Field(description="Studio-local YYYY-MM-DD")
    time: str = Field(description="Studio-local HH:MM")
    hours: int
    status: str = Field(description="Stored status: CONFIRMED or CANCELLED")
    display_status: DisplayStatus
    refunded_hours: Optional[int] = None
    payment_ref: Optional[str] = None
    payment_status: Optional[str] = None
    created_at: datetime
    cancelled_at: Optional[datetime] = None

    @classmethod
    def from_booking(cls, booking: Booking, now: datetime) -> "BookingResponse":
        local_start = to_studio_local(booking.start_time)
        return cls(
            id=booking.id,
            user_id=booking.user_id,
            user_email=booking.user.email if booking.user else None,
            user_name=booking.user.name if booking.user else None,
            simulator_id=booking.simulator_id,
            coach_id=booking.coach_id,
            coach_name=booking.coach.name if booking.coach else None,
            start_time=booking.start_time,
            end_time=booking.end_time,
            date=local_start.strftime("%Y-%m-%d"),
            time=local_start.strftime("%H:%M"),
            hours=booking.hours,
            status=booking.status,
            display_status=booking.display_status(now),
            refunded_hours=booking.refunded_hours,
            payment_ref=booking.payment_ref,
            payment_status=booking.payment_status,
            created_at=booking.created_at,
            cancelled_at=booking.cancelled_at,
        )


class BookingCreateResponse(BaseModel):
    booking: BookingResponse
    credits_remaining: CreditBalanceResponse


class BookingListResponse(BaseModel):
    bookings: List[BookingResponse]
    total: int


class GroupedBookingsResponse(BaseModel):
    bookings_by_date: Dict[str, List[BookingResponse]]
    total: int


class CancelBookingResponse(BaseModel):
    refunded_hours: int = Field(..., serialization_alias="refundedHours")
    booking_id: str = Field(..., serialization_alias="bookingId")
    message: str = "Booking cancelled"
