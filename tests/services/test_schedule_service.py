from datetime import timedelta

import pytest

from simstudio.core.exceptions import NotFoundException, ValidationException
from simstudio.models.audit_log import AuditLog
from simstudio.services.schedule_service import BusinessHoursService, SpecialDateService


class TestBusinessHours:
    def test_upsert_creates_then_updates(self, db, test_admin):
        service = BusinessHoursService(db)

        service.upsert(1, 9, 17, actor=test_admin)
        updated = service.upsert(1, 10, 20, actor=test_admin)

        assert (updated.open_hour, updated.close_hour) == (10, 20)
        assert len(service.list_hours()) == 1
        assert db.query(AuditLog).filter_by(entity_type="business_hours").count() == 2

    def test_list_is_ordered_by_weekday(self, db):
        service = BusinessHoursService(db)
        service.upsert(6, 10, 16)
        service.upsert(0, 10, 14, is_closed=True)
        service.upsert(3, 8, 18)

        assert [h.day_of_week for h in service.list_hours()] == [0, 3, 6]

    @pytest.mark.parametrize(
        "day, open_hour, close_hour",
        [(7, 8, 18), (-1, 8, 18), (1, 18, 8), (1, 8, 8), (1, 8, 25)],
    )
    def test_rejects_invalid_windows(self, db, day, open_hour, close_hour):
        with pytest.raises(ValidationException):
            BusinessHoursService(db).upsert(day, open_hour, close_hour)

    def test_missing_day(self, db):
        with pytest.raises(NotFoundException):
            BusinessHoursService(db).get_for_day(2)


class TestSpecialDates:
    def test_closed_date_drops_hours(self, db, future_monday):
        special = SpecialDateService(db).upsert(future_monday, is_closed=True, open_hour=9, close_hour=12)

        assert special.is_closed is True
        assert special.open_hour is None and special.close_hour is None

    def test_open_date_needs_both_hours(self, db, future_monday):
        with pytest.raises(ValidationException):
            SpecialDateService(db).upsert(future_monday, open_hour=9)

    def test_upsert_replaces_existing(self, db, future_monday):
        service = SpecialDateService(db)
        service.upsert(future_monday, is_closed=True, description="Maintenance")
        special = service.upsert(future_monday, open_hour=12, close_hour=16, description="Half day")

        assert special.is_closed is False
        assert special.has_custom_hours
        assert len(service.list_dates()) == 1

    def test_list_range(self, db, future_monday):
        service = SpecialDateService(db)
        for offset in (0, 3, 10):
            service.upsert(future_monday + timedelta(days=offset), is_closed=True)

        in_range = service.list_dates(future_monday, future_monday + timedelta(days=3))

        assert [s.date for s in in_range] == [future_monday, future_monday + timedelta(days=3)]

    def test_delete(self, db, future_monday, test_admin):
        service = SpecialDateService(db)
        service.upsert(future_monday, is_closed=True)

        service.delete(future_monday, actor=test_admin)

        assert service.list_dates() == []
        with pytest.raises(NotFoundException):
            service.delete(future_monday)
