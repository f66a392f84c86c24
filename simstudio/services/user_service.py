# simstudio/services/user_service.py
"""
User administration for the simulator studio.

Role flag edits depend on the ``users.is_admin``/``users.is_coach``
columns. When detection reports them missing, edits fail with
MigrationRequiredException until ``apply_user_roles_migration`` runs.
"""

from dataclasses import dataclass
import logging
from typing import Any, List, Optional, Tuple

from sqlalchemy.orm import Session

from ..core.exceptions import (
    ConflictException,
    NotFoundException,
    ValidationException,
)
from ..core.timezone_utils import utc_now
from ..models.user import User
from ..repositories.factory import RepositoryFactory
from .audit_service import AuditService, snapshot
from .base import BaseService
from .schema_capabilities import USERS_TABLE, get_schema_capabilities, require_user_roles

logger = logging.getLogger(__name__)

USER_AUDIT_FIELDS = ("email", "name", "mobile_number", "is_admin", "is_coach")


@dataclass
class UserWithCredits:
    user: User
    simulator_hours: int
    coaching_sessions: int


class UserService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.repository = RepositoryFactory.create_user_repository(db)
        self.credit_repository = RepositoryFactory.create_credit_repository(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.schema_repository = RepositoryFactory.create_schema_repository(db)
        self.audit = AuditService(db)

    def get_user(self, user_id: str) -> User:
        user = self.repository.get_by_id(user_id, load_relationships=False)
        if user is None:
            raise NotFoundException("User not found", details={"user_id": user_id})
        return user

    def get_by_email(self, email: str) -> User:
        if not email or "@" not in email:
            raise ValidationException("A valid email is required", details={"email": email})
        user = self.repository.get_by_email(email)
        if user is None:
            raise NotFoundException("User not found", details={"email": email})
        return user

    @BaseService.measure_operation("list_users")
    def list_users(self, coaches_only: bool = False) -> List[UserWithCredits]:
        """All users, newest first, with their current credit balance."""
        users = self.repository.list_users(coaches_only=coaches_only)
        balances = self.credit_repository.get_balances_for_users([u.id for u in users])
        result = []
        for user in users:
            balance = balances.get(user.id)
            result.append(
                UserWithCredits(
                    user=user,
                    simulator_hours=balance.simulator_hours if balance else 0,
                    coaching_sessions=balance.coaching_sessions if balance else 0,
                )
            )
        return result

    @BaseService.measure_operation("ensure_user")
    def ensure_user(
        self,
        email: str,
        name: Optional[str] = None,
        mobile_number: Optional[str] = None,
    ) -> Tuple[User, bool]:
        """
        Return the user for ``email``, creating it when missing. Second item: created.

        Raises:
            MigrationRequiredException: the user is new and the role columns are missing
        """
        if not email or "@" not in email:
            raise ValidationException("A valid email is required", details={"email": email})
        get_schema_capabilities(self.db)
        existing = self.repository.get_by_email(email)
        if existing is not None:
            return existing, False

        # New rows carry the role flags, so creation waits for the migration
        require_user_roles(self.db)
        with self.transaction():
            user = self.repository.create(
                email=email.strip().lower(), name=name, mobile_number=mobile_number
            )
            self.credit_repository.get_or_create_balance(user.id)
        self.log_operation("ensure_user", user_id=user.id)
        return user, True

    def check_role_columns(self) -> None:
        """Raise MigrationRequiredException when the role columns are missing."""
        require_user_roles(self.db)

    @BaseService.measure_operation("update_user")
    def update_user(
        self,
        user_id: str,
        *,
        name: Optional[str] = None,
        mobile_number: Optional[str] = None,
        is_coach: Optional[bool] = None,
        is_admin: Optional[bool] = None,
        actor: Any = None,
    ) -> User:
        """
        Partial update. Only fields passed as non-None change.

        Raises:
            MigrationRequiredException: role flags requested but the columns are missing
        """
        if is_coach is not None or is_admin is not None:
            self.check_role_columns()

        user = self.get_user(user_id)
        before = snapshot(user, USER_AUDIT_FIELDS)
        changes = {
            key: value
            for key, value in (
                ("name", name),
                ("mobile_number", mobile_number),
                ("is_coach", is_coach),
                ("is_admin", is_admin),
            )
            if value is not None
        }
        if not changes:
            return user

        with self.transaction():
            self.repository.update(user_id, **changes)
            self.audit.log(
                "user",
                user_id,
                "update",
                actor=actor,
                before=before,
                after=snapshot(user, USER_AUDIT_FIELDS),
            )
        return user

    @BaseService.measure_operation("delete_user")
    def delete_user(self, user_id: str, actor: Any = None) -> None:
        """Irreversible delete. Refused while the user still has upcoming bookings."""
        if actor is not None and getattr(actor, "id", None) == user_id:
            raise ValidationException("You cannot delete your own account")
        user = self.get_user(user_id)
        upcoming = self.booking_repository.count_upcoming_for_user(user_id, utc_now())
        if upcoming:
            raise ConflictException(
                "User has upcoming bookings; cancel them first",
                code="USER_HAS_BOOKINGS",
                details={"upcoming_bookings": upcoming},
            )

        before = snapshot(user, USER_AUDIT_FIELDS)
        with self.transaction():
            self.repository.delete(user_id)
            self.audit.log("user", user_id, "delete", actor=actor, before=before)
        self.log_operation("delete_user", user_id=user_id)

    @BaseService.measure_operation("apply_user_roles_migration")
    def apply_user_roles_migration(self, actor: Any = None) -> List[str]:
        """Add any missing role columns and refresh the cached capabilities."""
        capabilities = get_schema_capabilities(self.db, refresh=True)
        missing = list(capabilities.missing_user_role_columns)
        if missing:
            with self.transaction():
                for column in missing:
                    self.schema_repository.add_boolean_column(USERS_TABLE, column)
            self.logger.info(
                "User role columns added",
                extra={
                    "event": "user_roles_migration",
                    "columns": missing,
                    "actor_id": getattr(actor, "id", None),
                },
            )
        get_schema_capabilities(self.db, refresh=True)
        return missing
