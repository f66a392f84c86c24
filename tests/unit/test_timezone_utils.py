from datetime import date, datetime, timezone

import pytest
import pytz

from simstudio.core import timezone_utils
from simstudio.core.config import settings
from simstudio.core.timezone_utils import (
    ensure_utc,
    get_studio_today,
    studio_date_key,
    studio_day_of_week,
    studio_hour_to_utc,
    to_studio_local,
)


@pytest.fixture
def london(monkeypatch):
    monkeypatch.setattr(settings, "studio_timezone", "Europe/London")
    yield pytz.timezone("Europe/London")


class TestDayOfWeek:
    def test_sunday_is_zero(self):
        assert studio_day_of_week(date(2024, 6, 2)) == 0

    def test_monday_is_one(self):
        assert studio_day_of_week(date(2024, 6, 3)) == 1

    def test_saturday_is_six(self):
        assert studio_day_of_week(date(2024, 6, 8)) == 6


def test_studio_hour_to_utc_in_utc():
    assert studio_hour_to_utc(date(2024, 6, 3), 9) == datetime(2024, 6, 3, 9, tzinfo=timezone.utc)


def test_hour_24_rolls_into_next_day():
    assert studio_hour_to_utc(date(2024, 6, 3), 24) == datetime(2024, 6, 4, 0, tzinfo=timezone.utc)


def test_studio_hour_to_utc_applies_summer_offset(london):
    # BST is UTC+1
    assert studio_hour_to_utc(date(2024, 6, 3), 9) == datetime(2024, 6, 3, 8, tzinfo=timezone.utc)


def test_naive_values_are_studio_wall_clock(london):
    assert ensure_utc(datetime(2024, 1, 15, 10)) == datetime(2024, 1, 15, 10, tzinfo=timezone.utc)
    assert ensure_utc(datetime(2024, 7, 15, 10)) == datetime(2024, 7, 15, 9, tzinfo=timezone.utc)


def test_aware_values_are_converted_to_utc():
    eastern = pytz.timezone("America/New_York")
    value = eastern.localize(datetime(2024, 1, 15, 10))
    assert ensure_utc(value) == datetime(2024, 1, 15, 15, tzinfo=timezone.utc)


def test_date_key_uses_studio_calendar(london):
    late_utc = datetime(2024, 6, 3, 23, 30, tzinfo=timezone.utc)
    assert studio_date_key(late_utc) == "2024-06-04"
    assert to_studio_local(late_utc).hour == 0


def test_studio_today_follows_timezone(london):
    now = datetime(2024, 6, 3, 23, 30, tzinfo=timezone.utc)
    assert get_studio_today(now) == date(2024, 6, 4)
    assert timezone_utils.get_studio_today(datetime(2024, 6, 3, 22, 0, tzinfo=timezone.utc)) == date(
        2024, 6, 3
    )
