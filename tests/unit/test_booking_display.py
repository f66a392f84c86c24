from datetime import datetime, timedelta, timezone

from simstudio.core.enums import BookingStatus, DisplayStatus
from simstudio.models.booking import Booking, booking_hours
from simstudio.services.booking_service import BookingService

NOW = datetime(2024, 6, 3, 12, tzinfo=timezone.utc)


def _booking(start: datetime, hours: int = 1, status: str = BookingStatus.CONFIRMED.value, sim: int = 1):
    return Booking(
        user_id="u1",
        simulator_id=sim,
        start_time=start,
        end_time=start + timedelta(hours=hours),
        hours=hours,
        status=status,
    )


class TestDisplayStatus:
    def test_future_confirmed_reads_confirmed(self):
        booking = _booking(NOW + timedelta(hours=1))
        assert BookingService.display_status(booking, NOW) == DisplayStatus.CONFIRMED

    def test_started_confirmed_reads_completed(self):
        booking = _booking(NOW - timedelta(hours=1))
        assert BookingService.display_status(booking, NOW) == DisplayStatus.COMPLETED
        # Derived only; the stored status is untouched
        assert booking.status == BookingStatus.CONFIRMED.value

    def test_cancelled_always_reads_cancelled(self):
        booking = _booking(NOW - timedelta(days=1), status=BookingStatus.CANCELLED.value)
        assert BookingService.display_status(booking, NOW) == DisplayStatus.CANCELLED


def test_group_by_date_orders_days_and_times():
    day_two_late = _booking(datetime(2024, 6, 4, 15, tzinfo=timezone.utc))
    day_one_late = _booking(datetime(2024, 6, 3, 14, tzinfo=timezone.utc), sim=2)
    day_one_early = _booking(datetime(2024, 6, 3, 9, tzinfo=timezone.utc))
    day_one_same_hour = _booking(datetime(2024, 6, 3, 14, tzinfo=timezone.utc), sim=1)

    grouped = BookingService.group_by_date([day_two_late, day_one_late, day_one_early, day_one_same_hour])

    assert list(grouped) == ["2024-06-03", "2024-06-04"]
    assert grouped["2024-06-03"] == [day_one_early, day_one_same_hour, day_one_late]
    assert grouped["2024-06-04"] == [day_two_late]


def test_group_by_date_empty():
    assert BookingService.group_by_date([]) == {}


def test_booking_hours_rounds_to_whole_hours():
    start = datetime(2024, 6, 3, 9, tzinfo=timezone.utc)
    assert booking_hours(start, start + timedelta(hours=3)) == 3
    assert booking_hours(start, start + timedelta(minutes=59)) == 1
