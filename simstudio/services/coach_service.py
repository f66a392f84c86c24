# simstudio/services/coach_service.py
"""
Coach administration: profiles and weekly working blocks.

A coach profile and the user's ``is_coach`` flag move together: creating a
profile sets the flag, deleting it clears the flag.
"""

import logging
from typing import Any, List, Optional

from sqlalchemy.orm import Session

from ..core.constants import DEFAULT_COACH_HOURLY_RATE
from ..core.exceptions import NotFoundException, ValidationException
from ..models.coach_profile import CoachProfile
from ..models.schedule import CoachAvailability
from ..models.user import User
from ..repositories.factory import RepositoryFactory
from .audit_service import AuditService, snapshot
from .base import BaseService
from .package_service import to_price
from .schedule_service import validate_day_of_week, validate_hour_window

logger = logging.getLogger(__name__)


class CoachAvailabilityService(BaseService):
    FIELDS = ("coach_id", "day_of_week", "start_hour", "end_hour")

    def __init__(self, db: Session):
        super().__init__(db)
        self.repository = RepositoryFactory.create_coach_availability_repository(db)
        self.user_repository = RepositoryFactory.create_user_repository(db)
        self.audit = AuditService(db)

    def _require_coach(self, coach_id: str) -> User:
        coach = self.user_repository.get_by_id(coach_id, load_relationships=False)
        if coach is None:
            raise NotFoundException("Coach not found", details={"coach_id": coach_id})
        if not coach.is_coach:
            raise ValidationException(
                "Selected user is not a coach", code="NOT_A_COACH", details={"coach_id": coach_id}
            )
        return coach

    def list_blocks(self, coach_id: Optional[str] = None) -> List[CoachAvailability]:
        return self.repository.list_blocks(coach_id=coach_id)

    @BaseService.measure_operation("upsert_coach_availability")
    def upsert(
        self,
        coach_id: str,
        day_of_week: int,
        start_hour: int,
        end_hour: int,
        actor: Any = None,
    ) -> CoachAvailability:
        """Create or update the block keyed by (coach, day, start hour)."""
        validate_day_of_week(day_of_week)
        validate_hour_window(start_hour, end_hour)
        self._require_coach(coach_id)

        existing = self.repository.get_block(coach_id, day_of_week, start_hour)
        before = snapshot(existing, self.FIELDS) if existing else None
        with self.transaction():
            if existing is None:
                block = self.repository.create(
                    coach_id=coach_id,
                    day_of_week=day_of_week,
                    start_hour=start_hour,
                    end_hour=end_hour,
                )
            else:
                block = self.repository.update(existing.id, end_hour=end_hour)
            self.audit.log(
                "coach_availability",
                block.id,
                "upsert",
                actor=actor,
                before=before,
                after=snapshot(block, self.FIELDS),
            )
        return block

    @BaseService.measure_operation("delete_coach_availability")
    def delete(self, block_id: str, actor: Any = None) -> None:
        block = self.repository.get_by_id(block_id)
        if block is None:
            raise NotFoundException("Availability block not found", details={"id": block_id})
        before = snapshot(block, self.FIELDS)
        with self.transaction():
            self.repository.delete(block_id)
            self.audit.log("coach_availability", block_id, "delete", actor=actor, before=before)


class CoachProfileService(BaseService):
    FIELDS = ("user_id", "hourly_rate", "description")

    def __init__(self, db: Session):
        super().__init__(db)
        self.repository = RepositoryFactory.create_coach_profile_repository(db)
        self.user_repository = RepositoryFactory.create_user_repository(db)
        self.audit = AuditService(db)

    def list_profiles(self, user_id: Optional[str] = None) -> List[CoachProfile]:
        return self.repository.list_profiles(user_id=user_id)

    @BaseService.measure_operation("upsert_coach_profile")
    def upsert(
        self,
        user_id: str,
        hourly_rate: Any = None,
        description: Optional[str] = None,
        actor: Any = None,
    ) -> CoachProfile:
        """Create or update a user's coach profile and mark the user as a coach."""
        user = self.user_repository.get_by_id(user_id, load_relationships=False)
        if user is None:
            raise NotFoundException("User not found", details={"user_id": user_id})

        existing = self.repository.get_by_user_id(user_id)
        before = snapshot(existing, self.FIELDS) if existing else None
        with self.transaction():
            if existing is None:
                rate = hourly_rate if hourly_rate is not None else DEFAULT_COACH_HOURLY_RATE
                profile = self.repository.create(
                    user_id=user_id, hourly_rate=to_price(rate), description=description
                )
            else:
                if hourly_rate is not None:
                    existing.hourly_rate = to_price(hourly_rate)
                if description is not None:
                    existing.description = description
                self.repository.flush()
                profile = existing
            user.is_coach = True
            self.audit.log(
                "coach_profile",
                profile.id,
                "upsert",
                actor=actor,
                before=before,
                after=snapshot(profile, self.FIELDS),
            )
        return profile

    @BaseService.measure_operation("delete_coach_profile")
    def delete(self, profile_id: str, actor: Any = None) -> None:
        profile = self.repository.get_by_id(profile_id)
        if profile is None:
            raise NotFoundException("Coach profile not found", details={"id": profile_id})
        before = snapshot(profile, self.FIELDS)
        user_id = profile.user_id
        with self.transaction():
            self.repository.delete(profile_id)
            user = self.user_repository.get_by_id(user_id, load_relationships=False)
            if user is not None:
                user.is_coach = False
            self.audit.log("coach_profile", profile_id, "delete", actor=actor, before=before)
