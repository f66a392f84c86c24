# simstudio/models/package.py
"""Purchasable hour bundles."""

from sqlalchemy import Boolean, CheckConstraint, Column, Integer, Numeric, String, Text
import ulid

from ..database import Base
from .types import UTCDateTime, utc_now


class Package(Base):
    """
    A purchasable bundle of simulator hours at a fixed price.

    Packages are never removed by the normal delete flow; they are
    deactivated with ``is_active = False``.
    """

    __tablename__ = "packages"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    name = Column(String(120), nullable=False, index=True)
    hours = Column(Integer, nullable=False, default=0)
    price = Column(Numeric(10, 2), nullable=False)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(UTCDateTime, nullable=False, default=utc_now)
    updated_at = Column(UTCDateTime, nullable=True, onupdate=utc_now)

    __table_args__ = (
        CheckConstraint("hours >= 0", name="ck_packages_hours"),
        CheckConstraint("price >= 0", name="ck_packages_price"),
    )

    def __repr__(self) -> str:
        return f"<Package {self.name} {self.hours}h active={self.is_active}>"
