# simstudio/routes/packages.py
"""
Package and hourly rate routes.

Endpoints:
    GET /packages - Active packages ordered by hours
    POST /packages - Create a package (admin)
    PUT /packages - Partial update (admin)
    DELETE /packages?id= - Deactivate a package (admin)
    GET /hourly-rate - Current per-hour price
    POST /hourly-rate - Set the per-hour price (admin)
"""

import logging
from typing import List

from fastapi import APIRouter, Body, Depends, Query, status

from ..api.dependencies import get_hourly_rate_service, get_package_service, require_admin
from ..core.exceptions import DomainException
from ..models.user import User
from ..schemas.common import DeleteResponse
from ..schemas.package import (
    HourlyRateRequest,
    HourlyRateResponse,
    PackageCreate,
    PackageResponse,
    PackageUpdate,
)
from ..services.package_service import HourlyRateService, PackageService
from . import handle_domain_exception

logger = logging.getLogger(__name__)

router = APIRouter(tags=["packages"])


@router.get("/packages", response_model=List[PackageResponse])
def list_packages(
    package_service: PackageService = Depends(get_package_service),
) -> List[PackageResponse]:
    return [PackageResponse.model_validate(p) for p in package_service.list_active()]


@router.post("/packages", response_model=PackageResponse, status_code=status.HTTP_201_CREATED)
def create_package(
    payload: PackageCreate = Body(...),
    current_user: User = Depends(require_admin),
    package_service: PackageService = Depends(get_package_service),
) -> PackageResponse:
    try:
        package = package_service.create_package(
            payload.name,
            payload.hours,
            payload.price,
            description=payload.description,
            actor=current_user,
        )
    except DomainException as e:
        handle_domain_exception(e)
    return PackageResponse.model_validate(package)


@router.put("/packages", response_model=PackageResponse)
def update_package(
    payload: PackageUpdate = Body(...),
    current_user: User = Depends(require_admin),
    package_service: PackageService = Depends(get_package_service),
) -> PackageResponse:
    try:
        package = package_service.update_package(
            payload.id,
            actor=current_user,
            name=payload.name,
            hours=payload.hours,
            price=payload.price,
            description=payload.description,
            is_active=payload.is_active,
        )
    except DomainException as e:
        handle_domain_exception(e)
    return PackageResponse.model_validate(package)


@router.delete("/packages", response_model=DeleteResponse)
def delete_package(
    package_id: str = Query(..., alias="id"),
    current_user: User = Depends(require_admin),
    package_service: PackageService = Depends(get_package_service),
) -> DeleteResponse:
    """Soft delete: the package is deactivated, never removed."""
    try:
        package_service.deactivate_package(package_id, actor=current_user)
    except DomainException as e:
        handle_domain_exception(e)
    return DeleteResponse(message="Package deactivated")


@router.get("/hourly-rate", response_model=HourlyRateResponse)
def get_hourly_rate(
    rate_service: HourlyRateService = Depends(get_hourly_rate_service),
) -> HourlyRateResponse:
    return HourlyRateResponse(rate=rate_service.get_rate())


@router.post("/hourly-rate", response_model=HourlyRateResponse)
def set_hourly_rate(
    payload: HourlyRateRequest = Body(...),
    current_user: User = Depends(require_admin),
    rate_service: HourlyRateService = Depends(get_hourly_rate_service),
) -> HourlyRateResponse:
    try:
        rate = rate_service.set_rate(payload.rate, actor=current_user)
    except DomainException as e:
        handle_domain_exception(e)
    return HourlyRateResponse(rate=rate)
