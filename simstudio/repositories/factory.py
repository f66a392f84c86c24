# simstudio/repositories/factory.py
"""
Repository Factory for the simulator studio.

Provides centralized creation of repository instances so services never
construct repositories directly.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from .base_repository import BaseRepository

if TYPE_CHECKING:
    from .audit_repository import AuditRepository
    from .booking_repository import BookingRepository
    from .coach_profile_repository import CoachProfileRepository
    from .credit_repository import CreditRepository
    from .package_repository import PackageRepository
    from .schema_repository import SchemaRepository
    from .schedule_repository import (
        BusinessHoursRepository,
        CoachAvailabilityRepository,
        SpecialDateRepository,
    )
    from .user_repository import UserRepository


class RepositoryFactory:
    """Factory class for creating repository instances."""

    @staticmethod
    def create_base_repository(db: Session, model) -> BaseRepository:
        return BaseRepository(db, model)

    @staticmethod
    def create_user_repository(db: Session) -> "UserRepository":
        from .user_repository import UserRepository

        return UserRepository(db)

    @staticmethod
    def create_credit_repository(db: Session) -> "CreditRepository":
        from .credit_repository import CreditRepository

        return CreditRepository(db)

    @staticmethod
    def create_booking_repository(db: Session) -> "BookingRepository":
        from .booking_repository import BookingRepository

        return BookingRepository(db)

    @staticmethod
    def create_package_repository(db: Session) -> "PackageRepository":
        from .package_repository import PackageRepository

        return PackageRepository(db)

    @staticmethod
    def create_business_hours_repository(db: Session) -> "BusinessHoursRepository":
        from .schedule_repository import BusinessHoursRepository

        return BusinessHoursRepository(db)

    @staticmethod
    def create_special_date_repository(db: Session) -> "SpecialDateRepository":
        from .schedule_repository import SpecialDateRepository

        return SpecialDateRepository(db)

    @staticmethod
    def create_coach_availability_repository(db: Session) -> "CoachAvailabilityRepository":
        from .schedule_repository import CoachAvailabilityRepository

        return CoachAvailabilityRepository(db)

    @staticmethod
    def create_coach_profile_repository(db: Session) -> "CoachProfileRepository":
        from .coach_profile_repository import CoachProfileRepository

        return CoachProfileRepository(db)

    @staticmethod
    def create_audit_repository(db: Session) -> "AuditRepository":
        from .audit_repository import AuditRepository

        return AuditRepository(db)

    @staticmethod
    def create_schema_repository(db: Session) -> "SchemaRepository":
        from .schema_repository import SchemaRepository

        return SchemaRepository(db)
