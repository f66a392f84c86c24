"""Package and hourly rate schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ._strict_base import StrictRequestModel
from .base import Money


class PackageCreate(StrictRequestModel):
    name: str = Field(..., min_length=1, max_length=120)
    hours: int
    price: Money
    description: Optional[str] = None


class PackageUpdate(StrictRequestModel):
    id: str
    name: Optional[str] = Field(None, max_length=120)
    hours: Optional[int] = None
    price: Optional[Money] = None
    description: Optional[str] = None
    is_active: Optional[bool] = Field(None, alias="isActive")


class PackageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    hours: int
    price: Money
    description: Optional[str] = None
    is_active: bool
    created_at: datetime


class HourlyRateRequest(StrictRequestModel):
    rate: Money


class HourlyRateResponse(BaseModel):
    rate: Optional[Money] = None
