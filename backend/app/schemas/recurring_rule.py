# backend/app/schemas/recurring_rule.py
"""
Recurring rule schemas.

Admins describe the pattern either with a raw RRULE string or with a list
of weekdays (plus an optional week interval); the service turns weekdays
into ``FREQ=WEEKLY;BYDAY=...``.
"""

from datetime import date, datetime
from typing import List, Optional

from pydantic import ConfigDict, Field, model_validator

from .base import StandardizedModel
from ._strict_base import StrictRequestModel


class RecurringRuleCreate(StrictRequestModel):
    workshop_id: str = Field(..., min_length=1, max_length=120, description="Workshop id or slug")
    studio: str = Field("Studio A", min_length=1, max_length=100)
    timezone: Optional[str] = Field(None, max_length=64)
    start_time: str = Field(..., description="HH:MM", examples=["18:00"])
    duration_minutes: int = Field(60, ge=1, le=24 * 60)
    rrule: Optional[str] = Field(None, max_length=255, examples=["FREQ=WEEKLY;BYDAY=MO,WE"])
    weekdays: Optional[List[str]] = Field(None, examples=[["Mon", "Wed"]])
    interval: int = Field(1, ge=1, le=52)
    effective_from: date
    effective_to: Optional[date] = None
    exceptions: List[date] = Field(default_factory=list)
    is_active: bool = True

    @model_validator(mode="after")
    def check_pattern(self) -> "RecurringRuleCreate":
        if bool(self.rrule) == bool(self.weekdays):
            raise ValueError("Provide exactly one of rrule or weekdays")
        if self.effective_to is not None and self.effective_to < self.effective_from:
            raise ValueError("effective_to must be on or after effective_from")
        return self


class RecurringRuleUpdate(StrictRequestModel):
    """Partial update; a new pattern may again be given as rrule or weekdays."""

    studio: Optional[str] = Field(None, min_length=1, max_length=100)
    timezone: Optional[str] = Field(None, max_length=64)
    start_time: Optional[str] = None
    duration_minutes: Optional[int] = Field(None, ge=1, le=24 * 60)
    rrule: Optional[str] = Field(None, max_length=255)
    weekdays: Optional[List[str]] = None
    interval: Optional[int] = Field(None, ge=1, le=52)
    effective_from: Optional[date] = None
    effective_to: Optional[date] = None
    exceptions: Optional[List[date]] = None
    is_active: Optional[bool] = None

    @model_validator(mode="after")
    def check_pattern(self) -> "RecurringRuleUpdate":
        if self.rrule and self.weekdays:
            raise ValueError("Provide only one of rrule or weekdays")
        return self


class RecurringRuleResponse(StandardizedModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    workshop_id: str
    workshop_title: Optional[str] = None
    studio: str
    timezone: str
    start_time: str
    duration_minutes: int
    rrule: str
    effective_from: date
    effective_to: Optional[date] = None
    exceptions: List[str] = Field(default_factory=list)
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class RecurringRuleDeleteResponse(StandardizedModel):
    id: str
    deleted: bool
    deactivated: bool = False
