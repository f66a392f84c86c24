# simstudio/repositories/package_repository.py
"""Package Repository for the simulator studio."""

import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.constants import HOURLY_RATE_PACKAGE_NAME
from ..models.package import Package
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class PackageRepository(BaseRepository[Package]):
    """Packages, including the reserved hourly-rate row."""

    def __init__(self, db: Session):
        super().__init__(db, Package)
        self.logger = logging.getLogger(__name__)

    def list_active(self) -> List[Package]:
        """Active purchasable packages, smallest first. The hourly-rate row is excluded."""
        try:
            return (
                self.db.query(Package)
                .filter(Package.is_active.is_(True), Package.name != HOURLY_RATE_PACKAGE_NAME)
                .order_by(Package.hours.asc(), Package.price.asc())
                .all()
            )
        except SQLAlchemyError as exc:
            self._raise_repository_error("list", exc)

    def get_active(self, package_id: str) -> Optional[Package]:
        try:
            return (
                self.db.query(Package)
                .filter(Package.id == package_id, Package.is_active.is_(True))
                .first()
            )
        except SQLAlchemyError as exc:
            self._raise_repository_error("retrieve", exc)

    def get_hourly_rate_package(self) -> Optional[Package]:
        try:
            return (
                self.db.query(Package)
                .filter(Package.name == HOURLY_RATE_PACKAGE_NAME)
                .order_by(Package.created_at.desc())
                .first()
            )
        except SQLAlchemyError as exc:
            self._raise_repository_error("retrieve", exc)
