from decimal import Decimal

import pytest

from simstudio.core.exceptions import NotFoundException, ValidationException
from simstudio.models.user import User
from simstudio.services.coach_service import CoachAvailabilityService, CoachProfileService


class TestCoachAvailability:
    def test_upsert_keys_on_coach_day_and_start(self, db, test_coach, test_admin):
        service = CoachAvailabilityService(db)

        first = service.upsert(test_coach.id, 1, 9, 12, actor=test_admin)
        second = service.upsert(test_coach.id, 1, 9, 15, actor=test_admin)
        service.upsert(test_coach.id, 1, 16, 18, actor=test_admin)

        assert first.id == second.id
        blocks = service.list_blocks(test_coach.id)
        assert [(b.start_hour, b.end_hour) for b in blocks] == [(9, 15), (16, 18)]

    def test_only_coaches_get_blocks(self, db, test_customer):
        with pytest.raises(ValidationException):
            CoachAvailabilityService(db).upsert(test_customer.id, 1, 9, 12)

    def test_delete(self, db, test_coach):
        service = CoachAvailabilityService(db)
        block = service.upsert(test_coach.id, 2, 9, 12)

        service.delete(block.id)

        assert service.list_blocks(test_coach.id) == []
        with pytest.raises(NotFoundException):
            service.delete(block.id)


class TestCoachProfiles:
    def test_upsert_marks_user_as_coach_with_default_rate(self, db, test_customer, test_admin):
        profile = CoachProfileService(db).upsert(test_customer.id, description="Rally", actor=test_admin)

        assert profile.hourly_rate == Decimal("75.00")
        assert db.query(User).filter_by(id=test_customer.id).one().is_coach is True

    def test_upsert_updates_existing_profile(self, db, test_coach):
        service = CoachProfileService(db)
        first = service.upsert(test_coach.id, hourly_rate="80")
        second = service.upsert(test_coach.id, hourly_rate="90.50")

        assert first.id == second.id
        assert second.hourly_rate == Decimal("90.50")
        assert len(service.list_profiles()) == 1

    def test_delete_clears_coach_flag(self, db, test_coach):
        service = CoachProfileService(db)
        profile = service.upsert(test_coach.id)

        service.delete(profile.id)

        assert db.query(User).filter_by(id=test_coach.id).one().is_coach is False
        assert service.list_profiles(test_coach.id) == []

    def test_unknown_user(self, db):
        with pytest.raises(NotFoundException):
            CoachProfileService(db).upsert("missing")
