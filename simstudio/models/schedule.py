# simstudio/models/schedule.py
"""
Studio opening and coach working-hour models.

All hours are whole hours in the studio's local timezone. day_of_week uses
0 = Sunday through 6 = Saturday.

Classes:
    BusinessHours: Standing weekly opening window, one row per weekday
    SpecialDate: Calendar-specific override (holiday closure or custom hours)
    CoachAvailability: A coach's recurring weekly working block
"""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
import ulid

from ..database import Base
from .types import UTCDateTime, utc_now


class BusinessHours(Base):
    """Global weekly operating window."""

    __tablename__ = "business_hours"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    day_of_week = Column(Integer, nullable=False, unique=True)
    open_hour = Column(Integer, nullable=False)
    close_hour = Column(Integer, nullable=False)
    is_closed = Column(Boolean, nullable=False, default=False)
    updated_at = Column(UTCDateTime, nullable=True, default=utc_now, onupdate=utc_now)

    __table_args__ = (
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_business_hours_day"),
        CheckConstraint("open_hour < close_hour", name="ck_business_hours_window"),
    )

    def __repr__(self) -> str:
        return f"<BusinessHours day={self.day_of_week} {self.open_hour}-{self.close_hour}>"


class SpecialDate(Base):
    """Date-specific override that takes precedence over business hours."""

    __tablename__ = "special_dates"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    date = Column(Date, nullable=False, unique=True, index=True)
    is_closed = Column(Boolean, nullable=False, default=False)
    open_hour = Column(Integer, nullable=True)
    close_hour = Column(Integer, nullable=True)
    description = Column(String(255), nullable=True)
    created_at = Column(UTCDateTime, nullable=False, default=utc_now)

    __table_args__ = (
        CheckConstraint(
            "(open_hour IS NULL AND close_hour IS NULL) "
            "OR (open_hour IS NOT NULL AND close_hour IS NOT NULL AND open_hour < close_hour)",
            name="ck_special_dates_window",
        ),
    )

    @property
    def has_custom_hours(self) -> bool:
        return self.open_hour is not None and self.close_hour is not None

    def __repr__(self) -> str:
        return f"<SpecialDate {self.date} closed={self.is_closed}>"


class CoachAvailability(Base):
    """Recurring weekly block during which a coach can be booked."""

    __tablename__ = "coach_availability"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    coach_id = Column(String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    day_of_week = Column(Integer, nullable=False)
    start_hour = Column(Integer, nullable=False)
    end_hour = Column(Integer, nullable=False)

    coach = relationship("User", back_populates="coach_availability")

    __table_args__ = (
        UniqueConstraint(
            "coach_id", "day_of_week", "start_hour", name="uq_coach_availability_block"
        ),
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_coach_availability_day"),
        CheckConstraint("start_hour < end_hour", name="ck_coach_availability_window"),
        Index("ix_coach_availability_coach_day", "coach_id", "day_of_week"),
    )

    def covers(self, start_hour: int, end_hour: int) -> bool:
        return self.start_hour <= start_hour and self.end_hour >= end_hour

    def __repr__(self) -> str:
        return (
            f"<CoachAvailability coach={self.coach_id} day={self.day_of_week} "
            f"{self.start_hour}-{self.end_hour}>"
        )
