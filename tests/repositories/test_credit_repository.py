import pytest

from simstudio.core.enums import CreditTransactionKind
from simstudio.core.exceptions import ConflictException
from simstudio.models.booking import Booking
from simstudio.repositories.factory import RepositoryFactory
from tests.helpers.studio import at_hour


def test_try_debit_is_conditional(db, make_user):
    user = make_user("three@example.com", hours=3)
    repo = RepositoryFactory.create_credit_repository(db)

    assert repo.try_debit_hours(user.id, 2) is True
    assert repo.try_debit_hours(user.id, 2) is False
    db.commit()

    assert repo.get_balance(user.id).simulator_hours == 1


def test_refund_index_rejects_duplicates(db, test_customer, future_monday):
    booking = Booking(
        user_id=test_customer.id,
        simulator_id=1,
        start_time=at_hour(future_monday, 10),
        end_time=at_hour(future_monday, 11),
        hours=1,
    )
    db.add(booking)
    db.commit()
    repo = RepositoryFactory.create_credit_repository(db)
    entry = dict(
        user_id=test_customer.id,
        kind=CreditTransactionKind.REFUND.value,
        hours=1,
        balance_before=10,
        balance_after=11,
        booking_id=booking.id,
    )
    repo.record_transaction(**entry)
    db.commit()

    with pytest.raises(ConflictException):
        repo.record_transaction(**entry)
    db.rollback()

    assert repo.count_refunds_for_booking(booking.id) == 1
