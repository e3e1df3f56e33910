# backend/app/schemas/session.py
"""
Class session schemas.
"""

from datetime import date, datetime
from typing import List, Literal, Optional

from pydantic import ConfigDict, Field, model_validator

from .base import StandardizedModel
from ._strict_base import StrictRequestModel


class MaterializeRequest(StrictRequestModel):
    """Window to materialize; defaults to the configured rolling window from today."""

    window_from: Optional[date] = Field(None, alias="from")
    window_to: Optional[date] = Field(None, alias="to")

    model_config = ConfigDict(extra="forbid", validate_assignment=True, populate_by_name=True)


class MaterializeResponse(StandardizedModel):
    window_from: date = Field(..., alias="from")
    window_to: date = Field(..., alias="to")
    upserts: int
    created: int
    updated: int
    skipped: int


class SessionUpdate(StrictRequestModel):
    """
    Admin changes to one session.

    booked_count is not accepted; only bookings move it.
    """

    capacity: Optional[int] = Field(None, ge=1, le=1000)
    status: Optional[Literal["cancelled"]] = None

    @model_validator(mode="after")
    def check_not_empty(self) -> "SessionUpdate":
        if self.capacity is None and self.status is None:
            raise ValueError("Provide capacity or status")
        return self


class SessionResponse(StandardizedModel):
    model_config = ConfigDict(from_attributes=True, use_enum_values=True)

    id: str
    workshop_id: str
    rule_id: Optional[str] = None
    title: Optional[str] = None
    studio: str
    start: datetime
    end: datetime
    timezone: str
    capacity: int
    booked_count: int
    local_date: date
    remaining: int
    status: str
    source: str


class SessionListResponse(StandardizedModel):
    count: int
    sessions: List[SessionResponse]


class SessionAvailabilityResponse(StandardizedModel):
    session_id: str
    capacity: int
    booked: int
    remaining: int
    status: str
