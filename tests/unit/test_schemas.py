from datetime import date, time
from decimal import Decimal

from pydantic import ValidationError
import pytest

from simstudio.schemas.booking import BookingCreate, CancelBookingResponse
from simstudio.schemas.package import PackageCreate


class TestBookingCreate:
    def test_accepts_form_field_names(self):
        payload = BookingCreate.model_validate(
            {"userId": "u1", "simulatorId": 2, "date": "2024-06-03", "time": "09:00", "hours": 2}
        )
        assert payload.user_id == "u1"
        assert payload.simulator_id == 2
        assert payload.booking_date == date(2024, 6, 3)
        assert payload.start_time == time(9, 0)
        assert payload.hours == 2

    def test_accepts_snake_case_names(self):
        payload = BookingCreate.model_validate(
            {"user_id": "u1", "booking_date": "2024-06-03", "start_time": "14:00"}
        )
        assert payload.start_time == time(14, 0)
        assert payload.hours == 1

    def test_rejects_datetime_in_date_field(self):
        with pytest.raises(ValidationError):
            BookingCreate.model_validate(
                {"userId": "u1", "date": "2024-06-03T09:00:00", "time": "09:00"}
            )

    def test_rejects_malformed_time(self):
        with pytest.raises(ValidationError):
            BookingCreate.model_validate({"userId": "u1", "date": "2024-06-03", "time": "9am"})

    def test_rejects_unknown_fields(self):
        with pytest.raises(ValidationError):
            BookingCreate.model_validate(
                {"userId": "u1", "date": "2024-06-03", "time": "09:00", "price": 10}
            )

    def test_blank_coach_is_none(self):
        payload = BookingCreate.model_validate(
            {"userId": "u1", "date": "2024-06-03", "time": "09:00", "coachId": "  "}
        )
        assert payload.coach_id is None


def test_cancel_response_serializes_camel_case():
    body = CancelBookingResponse(refunded_hours=3, booking_id="b1").model_dump(by_alias=True)
    assert body["refundedHours"] == 3
    assert body["bookingId"] == "b1"


def test_package_price_accepts_strings():
    package = PackageCreate.model_validate({"name": "Ten pack", "hours": 10, "price": "450.00"})
    assert Decimal(str(package.price)) == Decimal("450.00")
