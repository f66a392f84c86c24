# simstudio/api/dependencies/auth.py
"""
Caller identity dependencies.

Authentication happens upstream; the session layer forwards the signed-in
user's id in the identity header (``X-User-Id`` by default). These
dependencies only resolve that id and check the admin flag.
"""

import logging
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from ...core.config import settings
from ...models.user import User
from ...repositories.factory import RepositoryFactory
from ...services.schema_capabilities import get_schema_capabilities
from .database import get_db

logger = logging.getLogger(__name__)


def _identity_from_request(request: Request) -> Optional[str]:
    value = request.headers.get(settings.identity_header)
    if value is None:
        return None
    value = value.strip()
    return value or None


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    """Resolve the forwarded identity to a User row."""
    user_id = _identity_from_request(request)
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    # Detect first so role flags default to False on tables without them
    get_schema_capabilities(db)
    user = RepositoryFactory.create_user_repository(db).get_by_id(
        user_id, load_relationships=False
    )
    if user is None:
        logger.warning("Forwarded identity does not match a user", extra={"user_id": user_id})
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unknown user")
    return user


def get_current_user_optional(
    request: Request, db: Session = Depends(get_db)
) -> Optional[User]:
    if _identity_from_request(request) is None:
        return None
    return get_current_user(request, db)


def require_admin(user: User = Depends(get_current_user)) -> User:
    if not user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return user


def require_role_migration_access(
    user: User = Depends(get_current_user), db: Session = Depends(get_db)
) -> User:
    """
    Admins run the role migration. Until the role columns exist nobody can
    hold the admin flag, so any known user may add them.
    """
    if get_schema_capabilities(db).user_roles:
        return require_admin(user)
    logger.info(
        "Role migration requested before role columns exist",
        extra={"event": "user_roles_bootstrap", "user_id": user.id},
    )
    return user


def ensure_self_or_admin(user: User, target_user_id: str) -> None:
    """Non-admins may only act on their own records."""
    if not user.is_admin and user.id != target_user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only access your own records",
        )
