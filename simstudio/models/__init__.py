"""
Database models for the simulator studio.

Importing this package registers every table on ``Base.metadata``:
- Users, coach profiles and coach working hours
- Credit balances and the credit transaction trail
- Bookings and their per-hour slot reservations
- Packages, business hours and special dates
- Admin audit log
"""

from .audit_log import AuditLog
from .booking import Booking, SlotReservation
from .coach_profile import CoachProfile
from .credit import CreditBalance, CreditTransaction
from .package import Package
from .schedule import BusinessHours, CoachAvailability, SpecialDate
from .user import User

__all__ = [
    "AuditLog",
    "Booking",
    "BusinessHours",
    "CoachAvailability",
    "CoachProfile",
    "CreditBalance",
    "CreditTransaction",
    "Package",
    "SlotReservation",
    "SpecialDate",
    "User",
]
