# simstudio/routes/coaches.py
"""
Coach administration routes.

Endpoints:
    GET /coach-availability?coachId= - Weekly coach blocks
    POST /coach-availability - Upsert a block on (coach, day, start hour) (admin)
    DELETE /coach-availability?id= - Remove a block (admin)
    GET /coach-profiles?userId= - Coach profiles
    POST /coach-profiles - Create or update a profile, marking the user a coach (admin)
    DELETE /coach-profiles?id= - Remove a profile, clearing the coach flag (admin)
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query

from ..api.dependencies import (
    get_coach_availability_service,
    get_coach_profile_service,
    require_admin,
)
from ..core.exceptions import DomainException
from ..models.user import User
from ..schemas.coach import CoachProfileRequest, CoachProfileResponse
from ..schemas.common import DeleteResponse
from ..schemas.schedule import CoachAvailabilityRequest, CoachAvailabilityResponse
from ..services.coach_service import CoachAvailabilityService, CoachProfileService
from . import handle_domain_exception

logger = logging.getLogger(__name__)

router = APIRouter(tags=["coaches"])


@router.get("/coach-availability", response_model=List[CoachAvailabilityResponse])
def list_coach_availability(
    coach_id: Optional[str] = Query(None, alias="coachId"),
    service: CoachAvailabilityService = Depends(get_coach_availability_service),
) -> List[CoachAvailabilityResponse]:
    return [CoachAvailabilityResponse.model_validate(b) for b in service.list_blocks(coach_id)]


@router.post("/coach-availability", response_model=CoachAvailabilityResponse)
def upsert_coach_availability(
    payload: CoachAvailabilityRequest = Body(...),
    current_user: User = Depends(require_admin),
    service: CoachAvailabilityService = Depends(get_coach_availability_service),
) -> CoachAvailabilityResponse:
    try:
        block = service.upsert(
            payload.coach_id,
            payload.day_of_week,
            payload.start_hour,
            payload.end_hour,
            actor=current_user,
        )
    except DomainException as e:
        handle_domain_exception(e)
    return CoachAvailabilityResponse.model_validate(block)


@router.delete("/coach-availability", response_model=DeleteResponse)
def delete_coach_availability(
    block_id: str = Query(..., alias="id"),
    current_user: User = Depends(require_admin),
    service: CoachAvailabilityService = Depends(get_coach_availability_service),
) -> DeleteResponse:
    try:
        service.delete(block_id, actor=current_user)
    except DomainException as e:
        handle_domain_exception(e)
    return DeleteResponse(message="Availability removed")


@router.get("/coach-profiles", response_model=List[CoachProfileResponse])
def list_coach_profiles(
    user_id: Optional[str] = Query(None, alias="userId"),
    service: CoachProfileService = Depends(get_coach_profile_service),
) -> List[CoachProfileResponse]:
    return [CoachProfileResponse.from_profile(p) for p in service.list_profiles(user_id)]


@router.post("/coach-profiles", response_model=CoachProfileResponse)
def upsert_coach_profile(
    payload: CoachProfileRequest = Body(...),
    current_user: User = Depends(require_admin),
    service: CoachProfileService = Depends(get_coach_profile_service),
) -> CoachProfileResponse:
    try:
        profile = service.upsert(
            payload.user_id,
            hourly_rate=payload.hourly_rate,
            description=payload.description,
            actor=current_user,
        )
    except DomainException as e:
        handle_domain_exception(e)
    return CoachProfileResponse.from_profile(profile)


@router.delete("/coach-profiles", response_model=DeleteResponse)
def delete_coach_profile(
    profile_id: str = Query(..., alias="id"),
    current_user: User = Depends(require_admin),
    service: CoachProfileService = Depends(get_coach_profile_service),
) -> DeleteResponse:
    try:
        service.delete(profile_id, actor=current_user)
    except DomainException as e:
        handle_domain_exception(e)
    return DeleteResponse(message="Coach profile removed")
