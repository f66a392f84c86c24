# simstudio/services/availability_service.py
"""
Availability Resolver for the simulator studio.

Turns the studio calendar into bookable one-hour slots:

1. The open window for a date comes from a special date if one exists,
   otherwise from the weekday's business hours, otherwise the default
   08:00-18:00.
2. Each hour in ``[open, close)`` is a candidate slot.
3. Slots inside the minimum notice period are dropped; dates past the
   booking horizon have no slots at all.
4. Reserved slots are subtracted per simulator. Without a simulator
   filter a slot survives while at least one simulator is free.
5. A coach filter intersects the result with the coach's weekly blocks
   and removes hours the coach is already booked.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
import logging
from typing import Dict, List, Optional, Set, Tuple

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.constants import DEFAULT_CLOSE_HOUR, DEFAULT_OPEN_HOUR, MAX_SESSION_DAYS
from ..core.enums import ResourceType
from ..core.exceptions import NotFoundException, SlotUnavailableException, ValidationException
from ..core.timezone_utils import (
    ensure_utc,
    get_studio_today,
    studio_day_of_week,
    studio_hour_to_utc,
    to_studio_local,
    utc_now,
)
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)

ONE_HOUR = timedelta(hours=1)


@dataclass
class SlotAvailability:
    """A bookable hour and the simulators still free for it."""

    start: datetime
    end: datetime
    simulator_ids: List[int] = field(default_factory=list)

    @property
    def label(self) -> str:
        return to_studio_local(self.start).strftime("%H:%M")


@dataclass(frozen=True)
class OpenWindow:
    open_hour: int
    close_hour: int
    source: str  # special_date | business_hours | default


class AvailabilityService(BaseService):
    """Resolves bookable slots and validates booking windows."""

    def __init__(self, db: Session):
        super().__init__(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.business_hours_repository = RepositoryFactory.create_business_hours_repository(db)
        self.special_date_repository = RepositoryFactory.create_special_date_repository(db)
        self.coach_availability_repository = RepositoryFactory.create_coach_availability_repository(db)
        self.user_repository = RepositoryFactory.create_user_repository(db)

    @property
    def simulator_ids(self) -> List[int]:
        return list(range(1, settings.simulator_count + 1))

    def validate_simulator_id(self, simulator_id: int) -> None:
        if simulator_id not in self.simulator_ids:
            raise ValidationException(
                f"Simulator must be between 1 and {settings.simulator_count}",
                code="INVALID_SIMULATOR",
                details={"simulator_id": simulator_id},
            )

    def resolve_open_window(self, target_date: date) -> Optional[OpenWindow]:
        """Opening hours for a date, or None when the studio is closed."""
        special = self.special_date_repository.get_for_date(target_date)
        if special is not None:
            if special.is_closed:
                return None
            if special.has_custom_hours:
                return OpenWindow(special.open_hour, special.close_hour, "special_date")

        hours = self.business_hours_repository.get_for_day(studio_day_of_week(target_date))
        if hours is not None:
            if hours.is_closed:
                return None
            return OpenWindow(hours.open_hour, hours.close_hour, "business_hours")

        return OpenWindow(DEFAULT_OPEN_HOUR, DEFAULT_CLOSE_HOUR, "default")

    def require_coach(self, coach_id: str):
        coach = self.user_repository.get_by_id(coach_id, load_relationships=False)
        if coach is None:
            raise NotFoundException("Coach not found", details={"coach_id": coach_id})
        if not coach.is_coach:
            raise ValidationException(
                "Selected user is not a coach", code="NOT_A_COACH", details={"coach_id": coach_id}
            )
        return coach

    def _coach_hours(self, coach_id: str, target_date: date) -> Set[int]:
        """Local hours covered by the coach's weekly blocks on this weekday."""
        covered: Set[int] = set()
        for block in self.coach_availability_repository.list_blocks(
            coach_id=coach_id, day_of_week=studio_day_of_week(target_date)
        ):
            covered.update(range(block.start_hour, block.end_hour))
        return covered

    def _reserved(
        self,
        resource_type: ResourceType,
        window_start: datetime,
        window_end: datetime,
        resource_ids: List[str],
    ) -> Set[Tuple[str, datetime]]:
        return set(
            self.booking_repository.get_reserved_slots(
                resource_type, window_start, window_end, resource_ids=resource_ids
            )
        )

    @BaseService.measure_operation("get_available_slots")
    def get_available_slots(
        self,
        target_date: date,
        simulator_id: Optional[int] = None,
        coach_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> List[SlotAvailability]:
        """
        Bookable slots for ``target_date``, ordered by start time.

        Raises:
            ValidationException: date in the past or simulator out of range
            NotFoundException: unknown coach
        """
        now = ensure_utc(now) if now else utc_now()
        today = get_studio_today(now)
        if target_date < today:
            raise ValidationException(
                "Cannot check availability for a past date",
                code="PAST_DATE",
                details={"date": target_date.isoformat()},
            )
        if target_date > today + timedelta(days=settings.max_booking_days_ahead):
            return []
        if simulator_id is not None:
            self.validate_simulator_id(simulator_id)
        if coach_id is not None:
            self.require_coach(coach_id)

        window = self.resolve_open_window(target_date)
        if window is None:
            return []

        earliest = now + timedelta(hours=settings.min_booking_notice_hours)
        candidates: List[Tuple[int, datetime]] = []
        for hour in range(window.open_hour, window.close_hour):
            slot_start = studio_hour_to_utc(target_date, hour)
            if slot_start >= earliest:
                candidates.append((hour, slot_start))
        if not candidates:
            return []

        window_start = studio_hour_to_utc(target_date, window.open_hour)
        window_end = studio_hour_to_utc(target_date, window.close_hour)
        simulators = [simulator_id] if simulator_id is not None else self.simulator_ids
        reserved = self._reserved(
            ResourceType.SIMULATOR, window_start, window_end, [str(s) for s in simulators]
        )

        coach_hours: Optional[Set[int]] = None
        coach_reserved: Set[Tuple[str, datetime]] = set()
        if coach_id is not None:
            coach_hours = self._coach_hours(coach_id, target_date)
            coach_reserved = self._reserved(ResourceType.COACH, window_start, window_end, [coach_id])

        slots: List[SlotAvailability] = []
        for hour, slot_start in candidates:
            if coach_hours is not None:
                if hour not in coach_hours or (coach_id, slot_start) in coach_reserved:
                    continue
            free = [sim for sim in simulators if (str(sim), slot_start) not in reserved]
            if free:
                slots.append(SlotAvailability(slot_start, slot_start + ONE_HOUR, free))
        return slots

    @BaseService.measure_operation("check_window")
    def check_window(
        self,
        start: datetime,
        end: datetime,
        simulator_id: Optional[int] = None,
        coach_id: Optional[str] = None,
    ) -> int:
        """
        Confirm ``[start, end)`` can be booked and pick the simulator.

        Returns the requested simulator, or the lowest-numbered simulator free
        for the whole window when none was requested.

        Raises:
            SlotUnavailableException: closed, outside hours, or already taken
        """
        start = ensure_utc(start)
        end = ensure_utc(end)
        local_start = to_studio_local(start)
        target_date = local_start.date()
        if to_studio_local(end - timedelta(microseconds=1)).date() != target_date:
            raise ValidationException("Bookings cannot run past midnight", code="OVERNIGHT_BOOKING")

        window = self.resolve_open_window(target_date)
        if window is None:
            raise SlotUnavailableException(
                "The studio is closed on this date", details={"date": target_date.isoformat()}
            )
        if start < studio_hour_to_utc(target_date, window.open_hour) or end > studio_hour_to_utc(
            target_date, window.close_hour
        ):
            raise SlotUnavailableException(
                "The requested time is outside opening hours",
                details={"open_hour": window.open_hour, "close_hour": window.close_hour},
            )

        slot_starts = list(iter_slot_starts(start, end))

        if coach_id is not None:
            self.require_coach(coach_id)
            covered = self._coach_hours(coach_id, target_date)
            needed = {to_studio_local(s).hour for s in slot_starts}
            if not needed.issubset(covered):
                raise SlotUnavailableException(
                    "The coach is not available for the requested time",
                    details={"coach_id": coach_id},
                )
            if self._reserved(ResourceType.COACH, start, end, [coach_id]):
                raise SlotUnavailableException(
                    "The coach is already booked for the requested time",
                    details={"coach_id": coach_id},
                )

        candidates = [simulator_id] if simulator_id is not None else self.simulator_ids
        reserved = self._reserved(
            ResourceType.SIMULATOR, start, end, [str(s) for s in candidates]
        )
        taken = {int(resource_id) for resource_id, _ in reserved}
        for sim in candidates:
            if sim not in taken:
                return sim

        raise SlotUnavailableException(
            details={"simulator_id": simulator_id, "start": start.isoformat()},
        )

    @BaseService.measure_operation("get_sessions")
    def get_sessions(
        self,
        days: int = 7,
        simulator_id: Optional[int] = None,
        coach_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Dict[str, List[SlotAvailability]]:
        """Availability for the next ``days`` days keyed by YYYY-MM-DD, days without slots omitted."""
        if days < 1 or days > MAX_SESSION_DAYS:
            raise ValidationException(
                f"days must be between 1 and {MAX_SESSION_DAYS}", details={"days": days}
            )
        now = ensure_utc(now) if now else utc_now()
        today = get_studio_today(now)
        sessions: Dict[str, List[SlotAvailability]] = {}
        for offset in range(days):
            target = today + timedelta(days=offset)
            slots = self.get_available_slots(target, simulator_id, coach_id, now=now)
            if slots:
                sessions[target.isoformat()] = slots
        return sessions


def iter_slot_starts(start: datetime, end: datetime):
    """Hourly slot starts covering ``[start, end)``."""
    current = start
    while current < end:
        yield current
        current += ONE_HOUR
