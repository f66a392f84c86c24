# simstudio/services/schedule_service.py
"""
Admin services for the studio calendar.

- BusinessHoursService: the standing weekly opening window
- SpecialDateService: holiday closures and one-off custom hours

Hours are whole hours 0-23 in the studio timezone and open must precede close.
"""

from datetime import date
import logging
from typing import Any, List, Optional

from sqlalchemy.orm import Session

from ..core.constants import DAY_NAMES
from ..core.exceptions import NotFoundException, ValidationException
from ..models.schedule import BusinessHours, SpecialDate
from ..repositories.factory import RepositoryFactory
from .audit_service import AuditService, snapshot
from .base import BaseService

logger = logging.getLogger(__name__)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_day_of_week(day_of_week: Any) -> int:
    if not _is_int(day_of_week) or not 0 <= day_of_week <= 6:
        raise ValidationException(
            "dayOfWeek must be between 0 (Sunday) and 6 (Saturday)",
            details={"day_of_week": day_of_week},
        )
    return day_of_week


def validate_hour_window(open_hour: Any, close_hour: Any) -> None:
    for label, value in (("open", open_hour), ("close", close_hour)):
        if not _is_int(value) or not 0 <= value <= 23:
            raise ValidationException(
                f"Invalid {label} hour; hours must be between 0 and 23",
                details={f"{label}_hour": value},
            )
    if open_hour >= close_hour:
        raise ValidationException(
            "Open hour must be before close hour",
            details={"open_hour": open_hour, "close_hour": close_hour},
        )


class BusinessHoursService(BaseService):
    FIELDS = ("day_of_week", "open_hour", "close_hour", "is_closed")

    def __init__(self, db: Session):
        super().__init__(db)
        self.repository = RepositoryFactory.create_business_hours_repository(db)
        self.audit = AuditService(db)

    def list_hours(self) -> List[BusinessHours]:
        return self.repository.list_ordered()

    def get_for_day(self, day_of_week: int) -> BusinessHours:
        validate_day_of_week(day_of_week)
        hours = self.repository.get_for_day(day_of_week)
        if hours is None:
            raise NotFoundException(
                f"No business hours configured for {DAY_NAMES[day_of_week]}",
                details={"day_of_week": day_of_week},
            )
        return hours

    @BaseService.measure_operation("upsert_business_hours")
    def upsert(
        self,
        day_of_week: int,
        open_hour: int,
        close_hour: int,
        is_closed: bool = False,
        actor: Any = None,
    ) -> BusinessHours:
        validate_day_of_week(day_of_week)
        validate_hour_window(open_hour, close_hour)

        existing = self.repository.get_for_day(day_of_week)
        before = snapshot(existing, self.FIELDS) if existing else None
        with self.transaction():
            if existing is None:
                hours = self.repository.create(
                    day_of_week=day_of_week,
                    open_hour=open_hour,
                    close_hour=close_hour,
                    is_closed=is_closed,
                )
            else:
                hours = self.repository.update(
                    existing.id, open_hour=open_hour, close_hour=close_hour, is_closed=is_closed
                )
            self.audit.log(
                "business_hours",
                str(day_of_week),
                "upsert",
                actor=actor,
                before=before,
                after=snapshot(hours, self.FIELDS),
            )
        return hours


class SpecialDateService(BaseService):
    FIELDS = ("date", "is_closed", "open_hour", "close_hour", "description")

    def __init__(self, db: Session):
        super().__init__(db)
        self.repository = RepositoryFactory.create_special_date_repository(db)
        self.audit = AuditService(db)

    def list_dates(
        self, date_from: Optional[date] = None, date_to: Optional[date] = None
    ) -> List[SpecialDate]:
        if date_from and date_to and date_from > date_to:
            raise ValidationException("from must not be after to")
        return self.repository.list_range(date_from, date_to)

    def get_for_date(self, target_date: date) -> SpecialDate:
        special = self.repository.get_for_date(target_date)
        if special is None:
            raise NotFoundException(
                "No special hours for this date", details={"date": target_date.isoformat()}
            )
        return special

    @BaseService.measure_operation("upsert_special_date")
    def upsert(
        self,
        target_date: date,
        is_closed: bool = False,
        open_hour: Optional[int] = None,
        close_hour: Optional[int] = None,
        description: Optional[str] = None,
        actor: Any = None,
    ) -> SpecialDate:
        """
        Create or replace the override for ``target_date``.

        A closed date carries no hours. An open one needs both hours.
        """
        if is_closed:
            open_hour = close_hour = None
        elif open_hour is None or close_hour is None:
            raise ValidationException(
                "Provide both openHour and closeHour, or mark the date closed"
            )
        else:
            validate_hour_window(open_hour, close_hour)

        existing = self.repository.get_for_date(target_date)
        before = snapshot(existing, self.FIELDS) if existing else None
        values = {
            "is_closed": is_closed,
            "open_hour": open_hour,
            "close_hour": close_hour,
            "description": description,
        }
        with self.transaction():
            if existing is None:
                special = self.repository.create(date=target_date, **values)
            else:
                for key, value in values.items():
                    setattr(existing, key, value)
                self.repository.flush()
                special = existing
            self.audit.log(
                "special_date",
                target_date.isoformat(),
                "upsert",
                actor=actor,
                before=before,
                after=snapshot(special, self.FIELDS),
            )
        return special

    @BaseService.measure_operation("delete_special_date")
    def delete(self, target_date: date, actor: Any = None) -> None:
        special = self.get_for_date(target_date)
        before = snapshot(special, self.FIELDS)
        with self.transaction():
            self.repository.delete(special.id)
            self.audit.log(
                "special_date", target_date.isoformat(), "delete", actor=actor, before=before
            )
