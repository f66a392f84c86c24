"""Coach profile schemas."""

from typing import Optional

from pydantic import BaseModel, Field

from ..models.coach_profile import CoachProfile
from ._strict_base import StrictRequestModel
from .base import Money


class CoachProfileRequest(StrictRequestModel):
    user_id: str = Field(..., alias="userId")
    hourly_rate: Optional[Money] = Field(None, alias="hourlyRate")
    description: Optional[str] = None


class CoachProfileResponse(BaseModel):
    id: str
    user_id: str
    name: Optional[str] = None
    email: Optional[str] = None
    hourly_rate: Money
    description: Optional[str] = None

    @classmethod
    def from_profile(cls, profile: CoachProfile) -> "CoachProfileResponse":
        return cls(
            id=profile.id,
            user_id=profile.user_id,
            name=profile.user.name if profile.user else None,
            email=profile.user.email if profile.user else None,
            hourly_rate=profile.hourly_rate,
            description=profile.description,
        )
