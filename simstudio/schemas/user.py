"""User administration schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ._strict_base import StrictRequestModel


class UserCreateRequest(StrictRequestModel):
    email: str = Field(..., min_length=3, max_length=255)
    name: Optional[str] = Field(None, max_length=120)
    mobile_number: Optional[str] = Field(None, alias="mobileNumber", max_length=30)


class UserUpdateRequest(StrictRequestModel):
    id: str
    name: Optional[str] = Field(None, max_length=120)
    mobile_number: Optional[str] = Field(None, alias="mobileNumber", max_length=30)
    is_coach: Optional[bool] = Field(None, alias="isCoach")
    is_admin: Optional[bool] = Field(None, alias="isAdmin")


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    name: Optional[str] = None
    mobile_number: Optional[str] = None
    is_admin: bool
    is_coach: bool
    created_at: datetime
    simulator_hours: Optional[int] = None
    coaching_sessions: Optional[int] = None


class UserListResponse(BaseModel):
    users: List[UserResponse]
    total: int


class UserEnsureResponse(BaseModel):
    user: UserResponse
    created: bool


class MigrationResponse(BaseModel):
    added_columns: List[str]
    needs_migration: bool = False
