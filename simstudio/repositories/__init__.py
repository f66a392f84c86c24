# simstudio/repositories/__init__.py
"""
Repository layer for the simulator studio.

Key Components:
- BaseRepository: generic CRUD shared by every repository
- RepositoryFactory: single place services obtain repositories from
- BookingRepository: bookings, the conditional cancel and slot reservations
- CreditRepository: balances (conditional UPDATEs) and the transaction trail
- Schedule repositories: business hours, special dates, coach availability

Usage:
    from simstudio.repositories import RepositoryFactory

    repository = RepositoryFactory.create_booking_repository(db)
    bookings = repository.list_bookings(user_id=user_id)
"""

from .base_repository import BaseRepository
from .booking_repository import BookingRepository
from .credit_repository import CreditRepository
from .factory import RepositoryFactory

__all__ = [
    "BaseRepository",
    "BookingRepository",
    "CreditRepository",
    "RepositoryFactory",
]
