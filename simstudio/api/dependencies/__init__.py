"""
Central export point for all dependencies.
"""

from .auth import (
    ensure_self_or_admin,
    get_current_user,
    get_current_user_optional,
    require_admin,
    require_role_migration_access,
)
from .database import get_db
from .services import (
    get_availability_service,
    get_booking_service,
    get_business_hours_service,
    get_coach_availability_service,
    get_coach_profile_service,
    get_credit_ledger_service,
    get_hourly_rate_service,
    get_package_service,
    get_special_date_service,
    get_user_service,
)

__all__ = [
    # Auth
    "ensure_self_or_admin",
    "get_current_user",
    "get_current_user_optional",
    "require_admin",
    "require_role_migration_access",
    # Database
    "get_db",
    # Services
    "get_availability_service",
    "get_booking_service",
    "get_business_hours_service",
    "get_coach_availability_service",
    "get_coach_profile_service",
    "get_credit_ledger_service",
    "get_hourly_rate_service",
    "get_package_service",
    "get_special_date_service",
    "get_user_service",
]
