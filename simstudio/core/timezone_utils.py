"""
Timezone utilities for the simulator studio.

The studio calendar (business hours, special dates, coach blocks) is kept in
the studio's local timezone; bookings are stored in UTC. These helpers are
the only place the two meet.
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

import pytz

from .config import settings


def get_studio_timezone() -> pytz.BaseTzInfo:
    return settings.studio_tz


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def get_studio_now(now: Optional[datetime] = None) -> datetime:
    """Current time (or ``now``) expressed in the studio timezone."""
    return to_studio_local(now or utc_now())


def get_studio_today(now: Optional[datetime] = None) -> date:
    return get_studio_now(now).date()


def to_studio_local(dt: datetime) -> datetime:
    return ensure_utc(dt).astimezone(get_studio_timezone())


def ensure_utc(dt: datetime) -> datetime:
    """
    Normalize to an aware UTC datetime.

    Naive values are wall-clock times at the studio, as the booking forms send them.
    """
    if dt.tzinfo is None:
        return get_studio_timezone().localize(dt).astimezone(timezone.utc)
    return dt.astimezone(timezone.utc)


def studio_hour_to_utc(target_date: date, hour: int) -> datetime:
    """
    UTC instant of ``hour``:00 on ``target_date`` at the studio.

    Hour 24 rolls into the next day so closing-time arithmetic stays simple.
    """
    naive = datetime.combine(target_date, time()) + timedelta(hours=hour)
    return get_studio_timezone().localize(naive).astimezone(timezone.utc)


def studio_date_key(dt: datetime) -> str:
    """YYYY-MM-DD of ``dt`` on the studio calendar."""
    return to_studio_local(dt).strftime("%Y-%m-%d")


def studio_day_of_week(target_date: date) -> int:
    """0 = Sunday through 6 = Saturday."""
    return (target_date.weekday() + 1) % 7
