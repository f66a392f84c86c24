# simstudio/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

Each factory builds a service on the request-scoped session.
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from ...services.availability_service import AvailabilityService
from ...services.booking_service import BookingService
from ...services.coach_service import CoachAvailabilityService, CoachProfileService
from ...services.credit_ledger_service import CreditLedgerService
from ...services.package_service import HourlyRateService, PackageService
from ...services.schedule_service import BusinessHoursService, SpecialDateService
from ...services.user_service import UserService
from .database import get_db


def get_availability_service(db: Session = Depends(get_db)) -> AvailabilityService:
    return AvailabilityService(db)


def get_credit_ledger_service(db: Session = Depends(get_db)) -> CreditLedgerService:
    return CreditLedgerService(db)


def get_booking_service(
    db: Session = Depends(get_db),
    availability_service: AvailabilityService = Depends(get_availability_service),
    credit_ledger: CreditLedgerService = Depends(get_credit_ledger_service),
) -> BookingService:
    """Booking service sharing the request's availability and ledger services."""
    return BookingService(db, availability_service=availability_service, credit_ledger=credit_ledger)


def get_package_service(db: Session = Depends(get_db)) -> PackageService:
    return PackageService(db)


def get_hourly_rate_service(db: Session = Depends(get_db)) -> HourlyRateService:
    return HourlyRateService(db)


def get_user_service(db: Session = Depends(get_db)) -> UserService:
    return UserService(db)


def get_business_hours_service(db: Session = Depends(get_db)) -> BusinessHoursService:
    return BusinessHoursService(db)


def get_special_date_service(db: Session = Depends(get_db)) -> SpecialDateService:
    return SpecialDateService(db)


def get_coach_availability_service(db: Session = Depends(get_db)) -> CoachAvailabilityService:
    return CoachAvailabilityService(db)


def get_coach_profile_service(db: Session = Depends(get_db)) -> CoachProfileService:
    return CoachProfileService(db)
