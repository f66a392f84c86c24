"""Calendar and identity helpers shared by the test modules."""

from datetime import date, datetime, timedelta, timezone
from typing import Dict, Optional

from simstudio.core.config import settings
from simstudio.models.user import User


def next_weekday(weekday: int, *, min_days_ahead: int = 2, today: Optional[date] = None) -> date:
    """Next date with ``date.weekday() == weekday`` at least ``min_days_ahead`` days out."""
    current = today or datetime.now(timezone.utc).date()
    candidate = current + timedelta(days=min_days_ahead)
    while candidate.weekday() != weekday:
        candidate += timedelta(days=1)
    return candidate


def at_hour(day: date, hour: int) -> datetime:
    return datetime(day.year, day.month, day.day, hour, tzinfo=timezone.utc)


def auth_headers(user: User) -> Dict[str, str]:
    return {settings.identity_header: user.id}
