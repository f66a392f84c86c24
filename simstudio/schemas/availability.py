"""Availability resolver responses."""

from datetime import datetime
from typing import Dict, List

from pydantic import BaseModel, Field


class SlotResponse(BaseModel):
    start: datetime
    end: datetime
    time: str = Field(description="Studio-local HH:MM")
    simulator_ids: List[int]


class AvailabilityResponse(BaseModel):
    date: str
    slots: List[SlotResponse]


class SessionsResponse(BaseModel):
    days: int
    sessions: Dict[str, List[SlotResponse]]
