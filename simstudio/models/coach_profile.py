# simstudio/models/coach_profile.py
"""Coach profile, one-to-one with a user flagged is_coach."""

from sqlalchemy import CheckConstraint, Column, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import relationship
import ulid

from ..database import Base
from .types import UTCDateTime, utc_now


class CoachProfile(Base):
    __tablename__ = "coach_profiles"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    user_id = Column(
        String(26),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    hourly_rate = Column(Numeric(10, 2), nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(UTCDateTime, nullable=False, default=utc_now)
    updated_at = Column(UTCDateTime, nullable=True, default=utc_now, onupdate=utc_now)

    user = relationship("User", back_populates="coach_profile")

    __table_args__ = (CheckConstraint("hourly_rate >= 0", name="ck_coach_profiles_rate"),)

    def __repr__(self) -> str:
        return f"<CoachProfile user={self.user_id} rate={self.hourly_rate}>"
