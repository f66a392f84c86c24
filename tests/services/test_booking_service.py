from datetime import time, timedelta
from unittest.mock import patch

import pytest

from simstudio.core.enums import BookingStatus, CreditTransactionKind, ResourceType
from simstudio.core.exceptions import (
    ForbiddenException,
    InsufficientCreditException,
    NotFoundException,
    PastBookingException,
    SlotUnavailableException,
    ValidationException,
)
from simstudio.models.audit_log import AuditLog
from simstudio.models.booking import Booking, SlotReservation
from simstudio.models.credit import CreditTransaction
from simstudio.models.schedule import CoachAvailability
from simstudio.services.availability_service import AvailabilityService
from simstudio.services.booking_service import BookingService
from simstudio.services.credit_ledger_service import CreditLedgerService
from tests.helpers.studio import at_hour


def _balance(db, user):
    return CreditLedgerService(db).get(user.id).simulator_hours


class TestCreateBooking:
    def test_create_debits_hours_and_reserves_slots(self, db, test_customer, future_monday, fixed_now):
        result = BookingService(db).create_booking(
            test_customer.id, at_hour(future_monday, 10), hours=3, simulator_id=2, now=fixed_now
        )

        booking = result.booking
        assert booking.status == BookingStatus.CONFIRMED.value
        assert booking.simulator_id == 2
        assert booking.end_time == at_hour(future_monday, 13)
        assert result.credits_remaining.simulator_hours == 7
        assert _balance(db, test_customer) == 7

        reservations = db.query(SlotReservation).filter_by(booking_id=booking.id).all()
        assert sorted(r.slot_start for r in reservations) == [
            at_hour(future_monday, h) for h in (10, 11, 12)
        ]
        debit = db.query(CreditTransaction).filter_by(kind=CreditTransactionKind.DEBIT.value).one()
        assert debit.booking_id == booking.id

    def test_auto_assigns_lowest_free_simulator(self, db, make_user, future_monday, fixed_now):
        first = make_user("a@example.com", hours=5)
        second = make_user("b@example.com", hours=5)
        service = BookingService(db)

        one = service.create_booking(first.id, at_hour(future_monday, 9), now=fixed_now)
        two = service.create_booking(second.id, at_hour(future_monday, 9), now=fixed_now)

        assert (one.booking.simulator_id, two.booking.simulator_id) == (1, 2)

    def test_insufficient_credit_for_longer_booking(self, db, make_user, future_monday, fixed_now):
        user = make_user("two-hours@example.com", hours=2)

        with pytest.raises(InsufficientCreditException) as exc_info:
            BookingService(db).create_booking(
                user.id, at_hour(future_monday, 10), hours=3, now=fixed_now
            )

        assert exc_info.value.details == {"required": 3, "available": 2}
        assert _balance(db, user) == 2
        assert db.query(Booking).count() == 0
        assert db.query(SlotReservation).count() == 0

    def test_overlapping_booking_on_same_simulator_is_rejected(
        self, db, make_user, future_monday, fixed_now
    ):
        first = make_user("first@example.com", hours=5)
        second = make_user("second@example.com", hours=5)
        service = BookingService(db)
        service.create_booking(first.id, at_hour(future_monday, 10), hours=2, simulator_id=1, now=fixed_now)

        with pytest.raises(SlotUnavailableException):
            service.create_booking(
                second.id, at_hour(future_monday, 11), hours=2, simulator_id=1, now=fixed_now
            )

        assert _balance(db, second) == 5

    def test_back_to_back_bookings_do_not_overlap(self, db, make_user, future_monday, fixed_now):
        first = make_user("first@example.com", hours=5)
        second = make_user("second@example.com", hours=5)
        service = BookingService(db)
        service.create_booking(first.id, at_hour(future_monday, 10), simulator_id=1, now=fixed_now)

        result = service.create_booking(
            second.id, at_hour(future_monday, 11), simulator_id=1, now=fixed_now
        )

        assert result.booking.start_time == at_hour(future_monday, 11)

    def test_lost_race_raises_slot_unavailable_and_keeps_balance(
        self, db, make_user, future_monday, fixed_now
    ):
        winner = make_user("winner@example.com", hours=5)
        loser = make_user("loser@example.com", hours=5)
        service = BookingService(db)
        service.create_booking(winner.id, at_hour(future_monday, 10), simulator_id=1, now=fixed_now)

        # The loser's availability check ran before the winner committed
        with patch.object(AvailabilityService, "check_window", return_value=1):
            with pytest.raises(SlotUnavailableException):
                service.create_booking(
                    loser.id, at_hour(future_monday, 10), simulator_id=1, now=fixed_now
                )

        assert _balance(db, loser) == 5
        assert db.query(Booking).filter_by(user_id=loser.id).count() == 0
        assert (
            db.query(CreditTransaction).filter_by(user_id=loser.id).count() == 0
        )

    def test_coach_is_reserved_with_the_booking(
        self, db, test_customer, make_user, test_coach, future_monday, fixed_now
    ):
        db.add(CoachAvailability(coach_id=test_coach.id, day_of_week=1, start_hour=9, end_hour=17))
        db.commit()
        other = make_user("other@example.com", hours=5)
        service = BookingService(db)
        service.create_booking(
            test_customer.id, at_hour(future_monday, 10), coach_id=test_coach.id, now=fixed_now
        )

        claims = {
            (r.resource_type, r.resource_id) for r in db.query(SlotReservation).all()
        }
        assert (ResourceType.COACH.value, test_coach.id) in claims
        with pytest.raises(SlotUnavailableException):
            service.create_booking(
                other.id, at_hour(future_monday, 10), coach_id=test_coach.id, now=fixed_now
            )

    @pytest.mark.parametrize("hours", [0, 13, -1])
    def test_invalid_duration(self, db, test_customer, future_monday, fixed_now, hours):
        with pytest.raises(ValidationException) as exc_info:
            BookingService(db).create_booking(
                test_customer.id, at_hour(future_monday, 10), hours=hours, now=fixed_now
            )
        assert exc_info.value.code == "INVALID_DURATION"

    def test_must_start_on_the_hour(self, db, test_customer, future_monday, fixed_now):
        with pytest.raises(ValidationException) as exc_info:
            BookingService(db).create_booking(
                test_customer.id,
                at_hour(future_monday, 10) + timedelta(minutes=30),
                now=fixed_now,
            )
        assert exc_info.value.code == "INVALID_START"

    def test_notice_period(self, db, test_customer, future_monday):
        now = at_hour(future_monday, 9)
        with pytest.raises(ValidationException) as exc_info:
            BookingService(db).create_booking(test_customer.id, at_hour(future_monday, 10), now=now)
        assert exc_info.value.code == "BOOKING_NOTICE"

    def test_booking_horizon(self, db, test_customer, future_monday, fixed_now):
        with pytest.raises(ValidationException) as exc_info:
            BookingService(db).create_booking(
                test_customer.id, at_hour(future_monday + timedelta(days=28), 10), now=fixed_now
            )
        assert exc_info.value.code == "BOOKING_HORIZON"

    def test_customers_cannot_book_for_others(self, db, test_customer, make_user, future_monday, fixed_now):
        other = make_user("other@example.com", hours=5)
        with pytest.raises(ForbiddenException):
            BookingService(db).create_booking(
                other.id, at_hour(future_monday, 10), actor=test_customer, now=fixed_now
            )

    def test_admin_can_book_for_a_customer(self, db, test_customer, test_admin, future_monday, fixed_now):
        result = BookingService(db).create_booking(
            test_customer.id, at_hour(future_monday, 10), actor=test_admin, now=fixed_now
        )
        assert result.booking.user_id == test_customer.id

    def test_unknown_user(self, db, future_monday, fixed_now):
        with pytest.raises(NotFoundException):
            BookingService(db).create_booking("missing", at_hour(future_monday, 10), now=fixed_now)

    def test_create_from_form(self, db, test_customer, future_monday, fixed_now):
        result = BookingService(db).create_from_form(
            test_customer.id, future_monday, time(14, 0), hours=2, now=fixed_now
        )
        assert result.booking.start_time == at_hour(future_monday, 14)
        assert result.booking.hours == 2

    def test_create_from_form_rejects_half_hours(self, db, test_customer, future_monday, fixed_now):
        with pytest.raises(ValidationException):
            BookingService(db).create_from_form(
                test_customer.id, future_monday, time(14, 30), now=fixed_now
            )


class TestCancelBooking:
    def _book(self, db, user, day, now, hours=3):
        return BookingService(db).create_booking(user.id, at_hour(day, 10), hours=hours, now=now).booking

    def test_cancel_refunds_hours_and_frees_slots(self, db, test_customer, future_monday, fixed_now):
        booking = self._book(db, test_customer, future_monday, fixed_now)
        assert _balance(db, test_customer) == 7

        result = BookingService(db).cancel_booking(booking.id, actor=test_customer, now=fixed_now)

        assert result.refunded_hours == 3
        assert result.booking.status == BookingStatus.CANCELLED.value
        assert result.booking.refunded_hours == 3
        assert result.booking.cancelled_by_id == test_customer.id
        assert _balance(db, test_customer) == 10
        assert db.query(SlotReservation).filter_by(booking_id=booking.id).count() == 0

    def test_cancelled_slot_can_be_rebooked(self, db, test_customer, make_user, future_monday, fixed_now):
        booking = self._book(db, test_customer, future_monday, fixed_now, hours=1)
        service = BookingService(db)
        service.cancel_booking(booking.id, now=fixed_now)
        other = make_user("other@example.com", hours=1)

        rebooked = service.create_booking(
            other.id, at_hour(future_monday, 10), simulator_id=booking.simulator_id, now=fixed_now
        )

        assert rebooked.booking.simulator_id == booking.simulator_id

    def test_second_cancel_is_not_found_and_refunds_once(self, db, test_customer, future_monday, fixed_now):
        booking = self._book(db, test_customer, future_monday, fixed_now)
        service = BookingService(db)
        service.cancel_booking(booking.id, now=fixed_now)

        with pytest.raises(NotFoundException):
            service.cancel_booking(booking.id, now=fixed_now)

        assert _balance(db, test_customer) == 10
        refunds = db.query(CreditTransaction).filter_by(kind=CreditTransactionKind.REFUND.value).count()
        assert refunds == 1

    def test_started_booking_cannot_be_cancelled(self, db, test_customer, future_monday, fixed_now):
        booking = self._book(db, test_customer, future_monday, fixed_now)

        with pytest.raises(PastBookingException):
            BookingService(db).cancel_booking(booking.id, now=at_hour(future_monday, 11))

        assert _balance(db, test_customer) == 7

    def test_other_customers_cannot_cancel(self, db, test_customer, make_user, future_monday, fixed_now):
        booking = self._book(db, test_customer, future_monday, fixed_now)
        other = make_user("other@example.com")

        with pytest.raises(ForbiddenException):
            BookingService(db).cancel_booking(booking.id, actor=other, now=fixed_now)

    def test_admin_cancel_is_audited(self, db, test_customer, test_admin, future_monday, fixed_now):
        booking = self._book(db, test_customer, future_monday, fixed_now)

        BookingService(db).cancel_booking(booking.id, actor=test_admin, now=fixed_now)

        audit = db.query(AuditLog).filter_by(entity_type="booking", entity_id=booking.id).one()
        assert audit.action == "cancel"
        assert audit.before["status"] == BookingStatus.CONFIRMED.value
        assert audit.after["status"] == BookingStatus.CANCELLED.value

    def test_unknown_booking(self, db):
        with pytest.raises(NotFoundException):
            BookingService(db).cancel_booking("missing")


class TestQueries:
    def test_list_excludes_cancelled_by_default(self, db, test_customer, future_monday, fixed_now):
        service = BookingService(db)
        keep = service.create_booking(test_customer.id, at_hour(future_monday, 9), now=fixed_now).booking
        drop = service.create_booking(test_customer.id, at_hour(future_monday, 12), now=fixed_now).booking
        service.cancel_booking(drop.id, now=fixed_now)

        assert [b.id for b in service.list_bookings(user_id=test_customer.id)] == [keep.id]
        assert {b.id for b in service.list_bookings(include_cancelled=True)} == {keep.id, drop.id}

    def test_date_filters_are_inclusive(self, db, test_customer, future_monday, fixed_now):
        service = BookingService(db)
        tuesday = future_monday + timedelta(days=1)
        service.create_booking(test_customer.id, at_hour(future_monday, 9), now=fixed_now)
        service.create_booking(test_customer.id, at_hour(tuesday, 9), now=fixed_now)

        only_monday = service.list_bookings(date_from=future_monday, date_to=future_monday)
        both = service.list_bookings(date_from=future_monday, date_to=tuesday)

        assert len(only_monday) == 1
        assert len(both) == 2

    def test_payment_reference_round_trip(self, db, test_customer, test_admin, future_monday, fixed_now):
        service = BookingService(db)
        booking = service.create_booking(
            test_customer.id, at_hour(future_monday, 9), payment_ref="pi_123", now=fixed_now
        ).booking

        assert service.find_by_payment_ref("pi_123").id == booking.id
        updated = service.update_payment(booking.id, payment_status="paid", actor=test_admin)
        assert updated.payment_status == "paid"
        with pytest.raises(NotFoundException):
            service.find_by_payment_ref("pi_unknown")
