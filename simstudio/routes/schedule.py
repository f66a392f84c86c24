# simstudio/routes/schedule.py
"""
Studio calendar routes.

Endpoints:
    GET /business-hours - Weekly opening hours
    POST /business-hours - Upsert one weekday (admin)
    GET /special-dates?from=&to= - Date overrides in a range
    POST /special-dates - Upsert a date override (admin)
    DELETE /special-dates?date= - Remove a date override (admin)
"""

from datetime import date
import logging
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query

from ..api.dependencies import get_business_hours_service, get_special_date_service, require_admin
from ..core.exceptions import DomainException
from ..models.user import User
from ..schemas.common import DeleteResponse
from ..schemas.schedule import (
    BusinessHoursRequest,
    BusinessHoursResponse,
    SpecialDateRequest,
    SpecialDateResponse,
)
from ..services.schedule_service import BusinessHoursService, SpecialDateService
from . import handle_domain_exception

logger = logging.getLogger(__name__)

router = APIRouter(tags=["schedule"])


@router.get("/business-hours", response_model=List[BusinessHoursResponse])
def list_business_hours(
    service: BusinessHoursService = Depends(get_business_hours_service),
) -> List[BusinessHoursResponse]:
    return [BusinessHoursResponse.model_validate(h) for h in service.list_hours()]


@router.post("/business-hours", response_model=BusinessHoursResponse)
def upsert_business_hours(
    payload: BusinessHoursRequest = Body(...),
    current_user: User = Depends(require_admin),
    service: BusinessHoursService = Depends(get_business_hours_service),
) -> BusinessHoursResponse:
    try:
        hours = service.upsert(
            payload.day_of_week,
            payload.open_hour,
            payload.close_hour,
            is_closed=payload.is_closed,
            actor=current_user,
        )
    except DomainException as e:
        handle_domain_exception(e)
    return BusinessHoursResponse.model_validate(hours)


@router.get("/special-dates", response_model=List[SpecialDateResponse])
def list_special_dates(
    date_from: Optional[date] = Query(None, alias="from"),
    date_to: Optional[date] = Query(None, alias="to"),
    service: SpecialDateService = Depends(get_special_date_service),
) -> List[SpecialDateResponse]:
    try:
        dates = service.list_dates(date_from, date_to)
    except DomainException as e:
        handle_domain_exception(e)
    return [SpecialDateResponse.model_validate(d) for d in dates]


@router.post("/special-dates", response_model=SpecialDateResponse)
def upsert_special_date(
    payload: SpecialDateRequest = Body(...),
    current_user: User = Depends(require_admin),
    service: SpecialDateService = Depends(get_special_date_service),
) -> SpecialDateResponse:
    try:
        special = service.upsert(
            payload.date,
            is_closed=payload.is_closed,
            open_hour=payload.open_hour,
            close_hour=payload.close_hour,
            description=payload.description,
            actor=current_user,
        )
    except DomainException as e:
        handle_domain_exception(e)
    return SpecialDateResponse.model_validate(special)


@router.delete("/special-dates", response_model=DeleteResponse)
def delete_special_date(
    target_date: date = Query(..., alias="date"),
    current_user: User = Depends(require_admin),
    service: SpecialDateService = Depends(get_special_date_service),
) -> DeleteResponse:
    try:
        service.delete(target_date, actor=current_user)
    except DomainException as e:
        handle_domain_exception(e)
    return DeleteResponse(message="Special date removed")
