from datetime import timedelta

import pytest

from simstudio.core.exceptions import NotFoundException, SlotUnavailableException, ValidationException
from simstudio.models.schedule import BusinessHours, CoachAvailability, SpecialDate
from simstudio.services.availability_service import AvailabilityService
from simstudio.services.booking_service import BookingService
from tests.helpers.studio import at_hour

MONDAY = 1  # stored day_of_week, Sunday = 0


@pytest.fixture
def monday_hours(db):
    hours = BusinessHours(day_of_week=MONDAY, open_hour=8, close_hour=18, is_closed=False)
    db.add(hours)
    db.commit()
    return hours


class TestGetAvailableSlots:
    def test_open_monday_lists_ten_hourly_slots(self, db, monday_hours, future_monday, fixed_now):
        slots = AvailabilityService(db).get_available_slots(future_monday, now=fixed_now)

        assert [slot.label for slot in slots] == [f"{h:02d}:00" for h in range(8, 18)]
        assert all(slot.simulator_ids == [1, 2, 3, 4] for slot in slots)
        assert all(slot.end - slot.start == timedelta(hours=1) for slot in slots)

    def test_defaults_to_eight_to_six_when_unconfigured(self, db, future_monday, fixed_now):
        slots = AvailabilityService(db).get_available_slots(future_monday, now=fixed_now)

        assert slots[0].label == "08:00"
        assert slots[-1].label == "17:00"
        assert len(slots) == 10

    def test_closed_weekday_has_no_slots(self, db, future_monday, fixed_now):
        db.add(BusinessHours(day_of_week=MONDAY, open_hour=8, close_hour=18, is_closed=True))
        db.commit()

        assert AvailabilityService(db).get_available_slots(future_monday, now=fixed_now) == []

    def test_special_date_closure_empties_availability(self, db, monday_hours, future_monday, fixed_now):
        db.add(SpecialDate(date=future_monday, is_closed=True, description="Track day"))
        db.commit()

        assert AvailabilityService(db).get_available_slots(future_monday, now=fixed_now) == []

    def test_special_date_hours_override_weekday(self, db, monday_hours, future_monday, fixed_now):
        db.add(SpecialDate(date=future_monday, is_closed=False, open_hour=12, close_hour=15))
        db.commit()

        slots = AvailabilityService(db).get_available_slots(future_monday, now=fixed_now)

        assert [slot.label for slot in slots] == ["12:00", "13:00", "14:00"]

    def test_booked_simulator_is_removed_from_slot(
        self, db, monday_hours, future_monday, fixed_now, test_customer
    ):
        BookingService(db).create_booking(
            test_customer.id, at_hour(future_monday, 10), hours=2, simulator_id=2, now=fixed_now
        )

        slots = {s.label: s for s in AvailabilityService(db).get_available_slots(future_monday, now=fixed_now)}

        assert slots["10:00"].simulator_ids == [1, 3, 4]
        assert slots["11:00"].simulator_ids == [1, 3, 4]
        assert slots["12:00"].simulator_ids == [1, 2, 3, 4]

    def test_slot_disappears_for_filtered_simulator(
        self, db, monday_hours, future_monday, fixed_now, test_customer
    ):
        BookingService(db).create_booking(
            test_customer.id, at_hour(future_monday, 10), simulator_id=2, now=fixed_now
        )

        labels = [
            s.label
            for s in AvailabilityService(db).get_available_slots(
                future_monday, simulator_id=2, now=fixed_now
            )
        ]

        assert "10:00" not in labels
        assert len(labels) == 9

    def test_minimum_notice_drops_early_slots(self, db, monday_hours, future_monday):
        now = at_hour(future_monday, 9)

        slots = AvailabilityService(db).get_available_slots(future_monday, now=now)

        assert slots[0].label == "11:00"

    def test_past_date_is_rejected(self, db, future_monday, fixed_now):
        with pytest.raises(ValidationException) as exc_info:
            AvailabilityService(db).get_available_slots(
                future_monday - timedelta(days=10), now=fixed_now
            )
        assert exc_info.value.code == "PAST_DATE"

    def test_dates_past_horizon_have_no_slots(self, db, future_monday, fixed_now):
        far = future_monday + timedelta(days=35)
        assert AvailabilityService(db).get_available_slots(far, now=fixed_now) == []

    def test_unknown_simulator_is_rejected(self, db, future_monday, fixed_now):
        with pytest.raises(ValidationException):
            AvailabilityService(db).get_available_slots(future_monday, simulator_id=9, now=fixed_now)


class TestCoachFilter:
    def test_intersects_with_coach_blocks(self, db, monday_hours, test_coach, future_monday, fixed_now):
        db.add(CoachAvailability(coach_id=test_coach.id, day_of_week=MONDAY, start_hour=9, end_hour=11))
        db.add(CoachAvailability(coach_id=test_coach.id, day_of_week=MONDAY, start_hour=15, end_hour=20))
        db.commit()

        slots = AvailabilityService(db).get_available_slots(
            future_monday, coach_id=test_coach.id, now=fixed_now
        )

        assert [s.label for s in slots] == ["09:00", "10:00", "15:00", "16:00", "17:00"]

    def test_coach_without_blocks_has_no_slots(self, db, test_coach, future_monday, fixed_now):
        assert (
            AvailabilityService(db).get_available_slots(
                future_monday, coach_id=test_coach.id, now=fixed_now
            )
            == []
        )

    def test_booked_coach_hours_are_removed(
        self, db, monday_hours, test_coach, test_customer, future_monday, fixed_now
    ):
        db.add(CoachAvailability(coach_id=test_coach.id, day_of_week=MONDAY, start_hour=9, end_hour=12))
        db.commit()
        BookingService(db).create_booking(
            test_customer.id, at_hour(future_monday, 10), coach_id=test_coach.id, now=fixed_now
        )

        slots = AvailabilityService(db).get_available_slots(
            future_monday, coach_id=test_coach.id, now=fixed_now
        )

        assert [s.label for s in slots] == ["09:00", "11:00"]

    def test_non_coach_is_rejected(self, db, test_customer, future_monday, fixed_now):
        with pytest.raises(ValidationException) as exc_info:
            AvailabilityService(db).get_available_slots(
                future_monday, coach_id=test_customer.id, now=fixed_now
            )
        assert exc_info.value.code == "NOT_A_COACH"

    def test_unknown_coach_is_not_found(self, db, future_monday, fixed_now):
        with pytest.raises(NotFoundException):
            AvailabilityService(db).get_available_slots(future_monday, coach_id="missing", now=fixed_now)


class TestCheckWindow:
    def test_auto_assigns_first_free_simulator(
        self, db, monday_hours, test_customer, future_monday, fixed_now
    ):
        service = BookingService(db)
        service.create_booking(test_customer.id, at_hour(future_monday, 10), simulator_id=1, now=fixed_now)

        chosen = AvailabilityService(db).check_window(
            at_hour(future_monday, 10), at_hour(future_monday, 11)
        )

        assert chosen == 2

    def test_requested_simulator_taken(self, db, monday_hours, test_customer, future_monday, fixed_now):
        BookingService(db).create_booking(
            test_customer.id, at_hour(future_monday, 10), simulator_id=3, now=fixed_now
        )

        with pytest.raises(SlotUnavailableException):
            AvailabilityService(db).check_window(
                at_hour(future_monday, 9), at_hour(future_monday, 11), simulator_id=3
            )

    def test_outside_opening_hours(self, db, monday_hours, future_monday):
        with pytest.raises(SlotUnavailableException):
            AvailabilityService(db).check_window(at_hour(future_monday, 17), at_hour(future_monday, 19))

    def test_closed_special_date(self, db, monday_hours, future_monday):
        db.add(SpecialDate(date=future_monday, is_closed=True))
        db.commit()

        with pytest.raises(SlotUnavailableException):
            AvailabilityService(db).check_window(at_hour(future_monday, 10), at_hour(future_monday, 11))


class TestSessions:
    def test_keys_are_dates_with_slots(self, db, future_monday, fixed_now):
        db.add(BusinessHours(day_of_week=0, open_hour=8, close_hour=18, is_closed=True))
        db.commit()

        sessions = AvailabilityService(db).get_sessions(days=7, now=fixed_now)

        assert len(sessions) == 6
        assert future_monday.isoformat() in sessions
        assert all(len(slots) == 10 for slots in sessions.values())

    def test_days_out_of_range(self, db):
        with pytest.raises(ValidationException):
            AvailabilityService(db).get_sessions(days=0)
        with pytest.raises(ValidationException):
            AvailabilityService(db).get_sessions(days=32)
