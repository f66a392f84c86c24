# simstudio/repositories/coach_profile_repository.py
"""Coach profile data access."""

from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from ..models.coach_profile import CoachProfile
from .base_repository import BaseRepository


class CoachProfileRepository(BaseRepository[CoachProfile]):
    def __init__(self, db: Session):
        super().__init__(db, CoachProfile)

    def get_by_user_id(self, user_id: str) -> Optional[CoachProfile]:
        return self.find_one_by(user_id=user_id)

    def list_profiles(self, user_id: Optional[str] = None) -> List[CoachProfile]:
        try:
            query = self.db.query(CoachProfile).options(joinedload(CoachProfile.user))
            if user_id is not None:
                query = query.filter(CoachProfile.user_id == user_id)
            return query.order_by(CoachProfile.created_at.asc()).all()
        except SQLAlchemyError as exc:
            self._raise_repository_error("list", exc)
