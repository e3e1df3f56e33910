# backend/app/schemas/schedule.py
"""
Schedule and manual grid schemas.
"""

from datetime import date, datetime
from typing import Dict, List, Optional

from pydantic import Field, field_validator

from .base import StandardizedModel
from ._strict_base import StrictRequestModel

GridMapping = Dict[str, Dict[str, Dict[str, str]]]


class OccurrenceResponse(StandardizedModel):
    """One computed class occurrence; nothing is persisted."""

    source: str
    workshop_id: str
    title: str
    studio: str
    date: str = Field(..., description="Local calendar day, YYYY-MM-DD")
    time: str = Field(..., description="Local start time, HH:MM")
    start: datetime
    end: datetime
    duration_minutes: int
    timezone: str
    rule_id: Optional[str] = None


class StudioConflictResponse(StandardizedModel):
    studio: str
    start: datetime
    end: datetime
    sources: List[str]
    occurrences: List[OccurrenceResponse]


class ScheduleResponse(StandardizedModel):
    window_from: date = Field(..., alias="from")
    window_to: date = Field(..., alias="to")
    count: int
    occurrences: List[OccurrenceResponse]
    conflicts: List[StudioConflictResponse] = Field(default_factory=list)
    skipped_rule_ids: List[str] = Field(default_factory=list)


class WeeklyGridResponse(StandardizedModel):
    week_key: str
    grid: GridMapping
    persisted: bool = Field(
        True, description="False when the grid is an unsaved draft seeded from recurring rules"
    )


class WeeklyGridUpdate(StrictRequestModel):
    week_key: str = Field("default", min_length=1, max_length=32)
    grid: Dict[str, Dict[str, Dict[str, Optional[str]]]]
    updated_by: Optional[str] = Field(None, max_length=26)


class GridCellUpdate(StrictRequestModel):
    week_key: str = Field("default", min_length=1, max_length=32)
    day: str = Field(..., examples=["Monday"])
    slot: str = Field(..., examples=["09:00"])
    studio: str = Field(..., min_length=1, max_length=100)
    workshop_id: Optional[str] = Field(None, description="Empty or null clears the cell")
    updated_by: Optional[str] = Field(None, max_length=26)

    @field_validator("workshop_id")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None
