# simstudio/routes/users.py
"""
User administration routes.

Endpoints:
    GET /users - All users with balances (admin), or one user by ?email=
    POST /users - Return the user for an email, creating it if missing (sign-in hook)
    PUT /users - Partial update; role edits may answer 400 with needsMigration
    DELETE /users?id= - Delete a user (admin)
    POST /migrations/user-roles - Add missing role columns (admin, or any user before they exist)
"""

import logging
from typing import Optional, Union

from fastapi import APIRouter, Body, Depends, Query, Response, status

from ..api.dependencies import (
    ensure_self_or_admin,
    get_current_user,
    get_user_service,
    require_admin,
    require_role_migration_access,
)
from ..core.exceptions import DomainException
from ..models.user import User
from ..schemas.common import DeleteResponse
from ..schemas.user import (
    MigrationResponse,
    UserCreateRequest,
    UserEnsureResponse,
    UserListResponse,
    UserResponse,
    UserUpdateRequest,
)
from ..services.user_service import UserService
from . import handle_domain_exception

logger = logging.getLogger(__name__)

router = APIRouter(tags=["users"])


@router.get("/users", response_model=Union[UserResponse, UserListResponse])
def list_users(
    email: Optional[str] = Query(None),
    coaches_only: bool = Query(False, alias="coachesOnly"),
    current_user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
) -> Union[UserResponse, UserListResponse]:
    """Admins list everyone; anyone may look themselves up by email."""
    if email is not None:
        try:
            user = user_service.get_by_email(email)
        except DomainException as e:
            handle_domain_exception(e)
        ensure_self_or_admin(current_user, user.id)
        return UserResponse.model_validate(user)

    require_admin(current_user)
    rows = user_service.list_users(coaches_only=coaches_only)
    return UserListResponse(
        users=[
            UserResponse.model_validate(row.user).model_copy(
                update={
                    "simulator_hours": row.simulator_hours,
                    "coaching_sessions": row.coaching_sessions,
                }
            )
            for row in rows
        ],
        total=len(rows),
    )


@router.post("/users", response_model=UserEnsureResponse)
def ensure_user(
    response: Response,
    payload: UserCreateRequest = Body(...),
    user_service: UserService = Depends(get_user_service),
) -> UserEnsureResponse:
    """Called by the session layer on sign-in, before an identity exists."""
    try:
        user, created = user_service.ensure_user(
            payload.email, name=payload.name, mobile_number=payload.mobile_number
        )
    except DomainException as e:
        handle_domain_exception(e)
    if created:
        response.status_code = status.HTTP_201_CREATED
    return UserEnsureResponse(user=UserResponse.model_validate(user), created=created)


@router.put("/users", response_model=UserResponse)
def update_user(
    payload: UserUpdateRequest = Body(...),
    current_user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
) -> UserResponse:
    """Users may edit their own contact details; role flags need an admin."""
    ensure_self_or_admin(current_user, payload.id)
    if payload.is_admin is not None or payload.is_coach is not None:
        try:
            user_service.check_role_columns()
        except DomainException as e:
            handle_domain_exception(e)
        require_admin(current_user)
    try:
        user = user_service.update_user(
            payload.id,
            name=payload.name,
            mobile_number=payload.mobile_number,
            is_coach=payload.is_coach,
            is_admin=payload.is_admin,
            actor=current_user,
        )
    except DomainException as e:
        handle_domain_exception(e)
    return UserResponse.model_validate(user)


@router.delete("/users", response_model=DeleteResponse)
def delete_user(
    user_id: str = Query(..., alias="id"),
    current_user: User = Depends(require_admin),
    user_service: UserService = Depends(get_user_service),
) -> DeleteResponse:
    try:
        user_service.delete_user(user_id, actor=current_user)
    except DomainException as e:
        handle_domain_exception(e)
    return DeleteResponse(message="User deleted")


@router.post("/migrations/user-roles", response_model=MigrationResponse)
def migrate_user_roles(
    current_user: User = Depends(require_role_migration_access),
    user_service: UserService = Depends(get_user_service),
) -> MigrationResponse:
    try:
        added = user_service.apply_user_roles_migration(actor=current_user)
    except DomainException as e:
        handle_domain_exception(e)
    return MigrationResponse(added_columns=added)
