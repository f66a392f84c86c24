# simstudio/routes/bookings.py
"""
Booking routes.

All business logic is delegated to BookingService.

Endpoints:
    GET /bookings - List bookings (own bookings unless admin), optionally grouped by date
    POST /bookings - Create a booking, debiting simulator hours
    DELETE /bookings?id= - Cancel a booking and refund its hours
    GET /bookings/find-by-payment?ref= - Look up a booking by payment reference
    POST /bookings/update-payment - Record payment reference/status (admin)
"""

from datetime import date
import logging
from typing import Optional, Union

from fastapi import APIRouter, Body, Depends, Query, status

from ..api.dependencies import (
    ensure_self_or_admin,
    get_booking_service,
    get_current_user,
    require_admin,
)
from ..core.constants import MAX_QUERY_LIMIT
from ..core.exceptions import DomainException
from ..core.timezone_utils import utc_now
from ..models.user import User
from ..schemas.booking import (
    BookingCreate,
    BookingCreateResponse,
    BookingListResponse,
    BookingResponse,
    CancelBookingResponse,
    GroupedBookingsResponse,
    UpdatePaymentRequest,
)
from ..schemas.credit import CreditBalanceResponse
from ..services.booking_service import BookingService
from . import handle_domain_exception

logger = logging.getLogger(__name__)

router = APIRouter(tags=["bookings"])


@router.get("/bookings", response_model=Union[GroupedBookingsResponse, BookingListResponse])
def list_bookings(
    user_id: Optional[str] = Query(None, alias="userId"),
    simulator_id: Optional[int] = Query(None, alias="simulatorId"),
    coach_id: Optional[str] = Query(None, alias="coachId"),
    date_from: Optional[date] = Query(None, alias="dateFrom"),
    date_to: Optional[date] = Query(None, alias="dateTo"),
    include_cancelled: bool = Query(False, alias="includeCancelled"),
    grouped: bool = Query(False),
    limit: Optional[int] = Query(None, ge=1, le=MAX_QUERY_LIMIT),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(get_current_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> Union[GroupedBookingsResponse, BookingListResponse]:
    """
    List bookings ordered by start time.

    Non-admins always get their own bookings; admins see everyone's unless
    they filter by ``userId``.
    """
    if not current_user.is_admin:
        if user_id is not None:
            ensure_self_or_admin(current_user, user_id)
        user_id = current_user.id

    try:
        bookings = booking_service.list_bookings(
            user_id=user_id,
            simulator_id=simulator_id,
            coach_id=coach_id,
            date_from=date_from,
            date_to=date_to,
            include_cancelled=include_cancelled,
            limit=limit,
            offset=offset,
        )
    except DomainException as e:
        handle_domain_exception(e)

    now = utc_now()
    if grouped:
        by_date = booking_service.group_by_date(bookings)
        return GroupedBookingsResponse(
            bookings_by_date={
                day: [BookingResponse.from_booking(b, now) for b in day_bookings]
                for day, day_bookings in by_date.items()
            },
            total=len(bookings),
        )
    return BookingListResponse(
        bookings=[BookingResponse.from_booking(b, now) for b in bookings],
        total=len(bookings),
    )


@router.post(
    "/bookings",
    response_model=BookingCreateResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Validation failed, slot unavailable or insufficient credit"},
        404: {"description": "User or coach not found"},
    },
)
def create_booking(
    booking_data: BookingCreate = Body(...),
    current_user: User = Depends(get_current_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingCreateResponse:
    """Create a booking and debit the user's simulator hours in one transaction."""
    try:
        result = booking_service.create_from_form(
            user_id=booking_data.user_id,
            booking_date=booking_data.booking_date,
            start_time=booking_data.start_time,
            hours=booking_data.hours,
            simulator_id=booking_data.simulator_id,
            coach_id=booking_data.coach_id,
            payment_ref=booking_data.payment_ref,
            actor=current_user,
        )
    except DomainException as e:
        handle_domain_exception(e)

    return BookingCreateResponse(
        booking=BookingResponse.from_booking(result.booking, utc_now()),
        credits_remaining=CreditBalanceResponse.model_validate(result.credits_remaining),
    )


@router.delete("/bookings", response_model=CancelBookingResponse, response_model_by_alias=True)
def cancel_booking(
    booking_id: str = Query(..., alias="id"),
    current_user: User = Depends(get_current_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> CancelBookingResponse:
    """Cancel a future booking; responds with the hours refunded."""
    try:
        result = booking_service.cancel_booking(booking_id, actor=current_user)
    except DomainException as e:
        handle_domain_exception(e)
    return CancelBookingResponse(refunded_hours=result.refunded_hours, booking_id=booking_id)


@router.get("/bookings/find-by-payment", response_model=BookingResponse)
def find_booking_by_payment(
    ref: str = Query(..., min_length=1),
    current_user: User = Depends(get_current_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        booking = booking_service.find_by_payment_ref(ref, actor=current_user)
    except DomainException as e:
        handle_domain_exception(e)
    return BookingResponse.from_booking(booking, utc_now())


@router.post("/bookings/update-payment", response_model=BookingResponse)
def update_booking_payment(
    payload: UpdatePaymentRequest = Body(...),
    current_user: User = Depends(require_admin),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        booking = booking_service.update_payment(
            payload.booking_id,
            payment_ref=payload.payment_ref,
            payment_status=payload.payment_status,
            actor=current_user,
        )
    except DomainException as e:
        handle_domain_exception(e)
    return BookingResponse.from_booking(booking, utc_now())
