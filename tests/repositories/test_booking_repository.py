import pytest

from simstudio.core.enums import BookingStatus, ResourceType
from simstudio.core.exceptions import SlotUnavailableException
from simstudio.models.booking import Booking
from simstudio.repositories.factory import RepositoryFactory
from tests.helpers.studio import at_hour


@pytest.fixture
def booking(db, test_customer, future_monday):
    row = Booking(
        user_id=test_customer.id,
        simulator_id=1,
        start_time=at_hour(future_monday, 10),
        end_time=at_hour(future_monday, 12),
        hours=2,
    )
    db.add(row)
    db.commit()
    return row


def test_reserve_and_release_slots(db, booking, future_monday):
    repo = RepositoryFactory.create_booking_repository(db)

    repo.reserve_slots(
        booking.id,
        [(ResourceType.SIMULATOR, "1")],
        [at_hour(future_monday, 10), at_hour(future_monday, 11)],
    )
    db.commit()

    reserved = repo.get_reserved_slots(
        ResourceType.SIMULATOR, at_hour(future_monday, 0), at_hour(future_monday, 23)
    )
    assert sorted(reserved) == [("1", at_hour(future_monday, 10)), ("1", at_hour(future_monday, 11))]

    assert repo.release_slots(booking.id) == 2
    db.commit()
    assert repo.get_reserved_slots(
        ResourceType.SIMULATOR, at_hour(future_monday, 0), at_hour(future_monday, 23)
    ) == []


def test_duplicate_slot_claim_raises_slot_unavailable(db, booking, future_monday):
    repo = RepositoryFactory.create_booking_repository(db)
    repo.reserve_slots(booking.id, [(ResourceType.SIMULATOR, "1")], [at_hour(future_monday, 10)])
    db.commit()

    with pytest.raises(SlotUnavailableException):
        repo.reserve_slots(booking.id, [(ResourceType.SIMULATOR, "1")], [at_hour(future_monday, 10)])
    db.rollback()


def test_mark_cancelled_flips_only_once(db, booking, test_customer):
    repo = RepositoryFactory.create_booking_repository(db)

    first = repo.mark_cancelled(booking.id, cancelled_by_id=test_customer.id, refunded_hours=2)
    second = repo.mark_cancelled(booking.id, cancelled_by_id=test_customer.id, refunded_hours=2)
    db.commit()
    db.refresh(booking)

    assert (first, second) == (True, False)
    assert booking.status == BookingStatus.CANCELLED.value
    assert booking.refunded_hours == 2
    assert booking.cancelled_at is not None


def test_list_bookings_orders_by_start(db, test_customer, future_monday):
    for hour, sim in ((14, 1), (9, 2), (9, 1)):
        db.add(
            Booking(
                user_id=test_customer.id,
                simulator_id=sim,
                start_time=at_hour(future_monday, hour),
                end_time=at_hour(future_monday, hour + 1),
                hours=1,
            )
        )
    db.commit()

    rows = RepositoryFactory.create_booking_repository(db).list_bookings(user_id=test_customer.id)

    assert [(b.start_time.hour, b.simulator_id) for b in rows] == [(9, 1), (9, 2), (14, 1)]
