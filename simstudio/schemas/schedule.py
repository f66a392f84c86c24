"""Business hours, special date and coach availability schemas."""

from datetime import date as date_type
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field

from ..core.constants import DAY_NAMES
from ._strict_base import StrictRequestModel


class BusinessHoursRequest(StrictRequestModel):
    day_of_week: int = Field(..., alias="dayOfWeek", description="0 = Sunday")
    open_hour: int = Field(..., alias="openHour")
    close_hour: int = Field(..., alias="closeHour")
    is_closed: bool = Field(False, alias="isClosed")


class BusinessHoursResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    day_of_week: int
    open_hour: int
    close_hour: int
    is_closed: bool

    @computed_field  # type: ignore[prop-decorator]
    @property
    def day_name(self) -> str:
        return DAY_NAMES[self.day_of_week]


class SpecialDateRequest(StrictRequestModel):
    date: date_type
    is_closed: bool = Field(False, alias="isClosed")
    open_hour: Optional[int] = Field(None, alias="openHour")
    close_hour: Optional[int] = Field(None, alias="closeHour")
    description: Optional[str] = Field(None, max_length=255)


class SpecialDateResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    date: date_type
    is_closed: bool
    open_hour: Optional[int] = None
    close_hour: Optional[int] = None
    description: Optional[str] = None


class CoachAvailabilityRequest(StrictRequestModel):
    coach_id: str = Field(..., alias="coachId")
    day_of_week: int = Field(..., alias="dayOfWeek")
    start_hour: int = Field(..., alias="startHour")
    end_hour: int = Field(..., alias="endHour")


class CoachAvailabilityResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    coach_id: str
    day_of_week: int
    start_hour: int
    end_hour: int
