# simstudio/routes/availability.py
"""
Availability routes backed by the availability resolver.

Endpoints:
    GET /availability?date=&simulatorId=&coachId= - Bookable slots for one date
    GET /availability/sessions?days= - Bookable slots for the next N days
"""

from datetime import date, datetime
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from ..api.dependencies import get_availability_service
from ..core.constants import MAX_SESSION_DAYS
from ..core.exceptions import DomainException, ValidationException
from ..schemas.availability import AvailabilityResponse, SessionsResponse, SlotResponse
from ..services.availability_service import AvailabilityService, SlotAvailability
from . import handle_domain_exception

logger = logging.getLogger(__name__)

router = APIRouter(tags=["availability"])


def _parse_date(value: str) -> date:
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError as exc:
        raise ValidationException(
            "date must be a YYYY-MM-DD date", code="INVALID_DATE", details={"date": value}
        ) from exc


def _to_response(slots: List[SlotAvailability]) -> List[SlotResponse]:
    return [
        SlotResponse(start=s.start, end=s.end, time=s.label, simulator_ids=s.simulator_ids)
        for s in slots
    ]


@router.get("/availability", response_model=AvailabilityResponse)
def get_availability(
    date_param: str = Query(..., alias="date"),
    simulator_id: Optional[int] = Query(None, alias="simulatorId"),
    coach_id: Optional[str] = Query(None, alias="coachId"),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> AvailabilityResponse:
    """Malformed or past dates are rejected with 400."""
    try:
        target_date = _parse_date(date_param)
        slots = availability_service.get_available_slots(
            target_date, simulator_id=simulator_id, coach_id=coach_id
        )
    except DomainException as e:
        handle_domain_exception(e)
    return AvailabilityResponse(date=target_date.isoformat(), slots=_to_response(slots))


@router.get("/availability/sessions", response_model=SessionsResponse)
def get_sessions(
    days: int = Query(7, ge=1, le=MAX_SESSION_DAYS),
    simulator_id: Optional[int] = Query(None, alias="simulatorId"),
    coach_id: Optional[str] = Query(None, alias="coachId"),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> SessionsResponse:
    try:
        sessions = availability_service.get_sessions(
            days, simulator_id=simulator_id, coach_id=coach_id
        )
    except DomainException as e:
        handle_domain_exception(e)
    return SessionsResponse(
        days=days, sessions={day: _to_response(slots) for day, slots in sessions.items()}
    )
