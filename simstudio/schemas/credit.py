"""Credit ledger schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ._strict_base import StrictRequestModel


class CreditBalanceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    simulator_hours: int
    coaching_sessions: int


class CreditPurchaseRequest(StrictRequestModel):
    """Additive top-up: either a package or a number of hours."""

    user_id: str = Field(..., alias="userId")
    package_id: Optional[str] = Field(None, alias="packageId")
    hours: Optional[int] = None
    coaching_sessions: int = Field(0, alias="coachingSessions")


class CreditSetRequest(StrictRequestModel):
    """Absolute overwrite; omitted fields keep their value."""

    user_id: str = Field(..., alias="userId")
    simulator_hours: Optional[int] = Field(None, alias="simulatorHours")
    coaching_sessions: Optional[int] = Field(None, alias="coachingSessions")


class CreditTransactionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    kind: str
    hours: int
    balance_before: int
    balance_after: int
    booking_id: Optional[str] = None
    package_id: Optional[str] = None
    actor_id: Optional[str] = None
    created_at: datetime


class CreditHistoryResponse(BaseModel):
    balance: CreditBalanceResponse
    transactions: List[CreditTransactionResponse]
