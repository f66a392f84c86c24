# simstudio/repositories/schedule_repository.py
"""
Repositories for the studio calendar: business hours, special dates and
coach working hours.
"""

from datetime import date
import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models.schedule import BusinessHours, CoachAvailability, SpecialDate
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class BusinessHoursRepository(BaseRepository[BusinessHours]):
    def __init__(self, db: Session):
        super().__init__(db, BusinessHours)

    def list_ordered(self) -> List[BusinessHours]:
        try:
            return self.db.query(BusinessHours).order_by(BusinessHours.day_of_week.asc()).all()
        except SQLAlchemyError as exc:
            self._raise_repository_error("list", exc)

    def get_for_day(self, day_of_week: int) -> Optional[BusinessHours]:
        return self.find_one_by(day_of_week=day_of_week)


class SpecialDateRepository(BaseRepository[SpecialDate]):
    def __init__(self, db: Session):
        super().__init__(db, SpecialDate)

    def get_for_date(self, target_date: date) -> Optional[SpecialDate]:
        return self.find_one_by(date=target_date)

    def list_range(
        self, date_from: Optional[date] = None, date_to: Optional[date] = None
    ) -> List[SpecialDate]:
        """Special dates within an inclusive range, ordered by date."""
        try:
            query = self.db.query(SpecialDate)
            if date_from is not None:
                query = query.filter(SpecialDate.date >= date_from)
            if date_to is not None:
                query = query.filter(SpecialDate.date <= date_to)
            return query.order_by(SpecialDate.date.asc()).all()
        except SQLAlchemyError as exc:
            self._raise_repository_error("list", exc)


class CoachAvailabilityRepository(BaseRepository[CoachAvailability]):
    def __init__(self, db: Session):
        super().__init__(db, CoachAvailability)

    def list_blocks(
        self, coach_id: Optional[str] = None, day_of_week: Optional[int] = None
    ) -> List[CoachAvailability]:
        try:
            query = self.db.query(CoachAvailability)
            if coach_id is not None:
                query = query.filter(CoachAvailability.coach_id == coach_id)
            if day_of_week is not None:
                query = query.filter(CoachAvailability.day_of_week == day_of_week)
            return query.order_by(
                CoachAvailability.coach_id.asc(),
                CoachAvailability.day_of_week.asc(),
                CoachAvailability.start_hour.asc(),
            ).all()
        except SQLAlchemyError as exc:
            self._raise_repository_error("list", exc)

    def get_block(self, coach_id: str, day_of_week: int, start_hour: int) -> Optional[CoachAvailability]:
        return self.find_one_by(coach_id=coach_id, day_of_week=day_of_week, start_hour=start_hour)
