# simstudio/repositories/user_repository.py
"""User Repository for the simulator studio."""

import logging
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, undefer_group

from ..models.user import User
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository[User]):
    def __init__(self, db: Session):
        super().__init__(db, User)
        self.logger = logging.getLogger(__name__)

    def get_by_email(self, email: str) -> Optional[User]:
        """Case-insensitive email lookup."""
        try:
            return self.db.query(User).filter(func.lower(User.email) == email.strip().lower()).first()
        except SQLAlchemyError as exc:
            self._raise_repository_error("find", exc)

    def list_users(self, *, coaches_only: bool = False) -> List[User]:
        try:
            query = self.db.query(User).options(undefer_group("roles"))
            if coaches_only:
                query = query.filter(User.is_coach.is_(True))
            return query.order_by(User.created_at.desc(), User.id.desc()).all()
        except SQLAlchemyError as exc:
            self._raise_repository_error("list", exc)
