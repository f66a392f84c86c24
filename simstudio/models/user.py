# simstudio/models/user.py
"""
User model for the simulator studio.

Customers, coaches and admins share one table, distinguished by the
``is_coach`` and ``is_admin`` flags.
"""

import logging

from sqlalchemy import Boolean, Column, String
from sqlalchemy.orm import deferred, relationship
import ulid

from ..database import Base
from .types import UTCDateTime, utc_now

logger = logging.getLogger(__name__)


class User(Base):
    """
    Studio user record.

    Attributes:
        id: ULID primary key
        email: Unique email address (login identity lives upstream)
        name: Display name
        mobile_number: Optional contact number
        is_admin: May use the admin override surface
        is_coach: May be booked as a coach; has a coach profile
    """

    __tablename__ = "users"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(120), nullable=True)
    mobile_number = Column(String(30), nullable=True)
    # Deferred so identity lookups still work on tables that predate the role columns
    is_admin = deferred(Column(Boolean, nullable=False, default=False), group="roles")
    is_coach = deferred(Column(Boolean, nullable=False, default=False), group="roles")
    created_at = Column(UTCDateTime, nullable=False, default=utc_now)
    updated_at = Column(UTCDateTime, nullable=True, onupdate=utc_now)

    credit_balance = relationship(
        "CreditBalance",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
    )
    coach_profile = relationship(
        "CoachProfile",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
    )
    coach_availability = relationship(
        "CoachAvailability",
        back_populates="coach",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<User {self.email}>"
