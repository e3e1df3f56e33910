# backend/app/schemas/__init__.py
"""
Pydantic schemas for the resort API.

Request models extend StrictRequestModel (unknown fields rejected);
response models extend StandardizedModel.
"""

from .availability import (
    RetreatCalendarDay,
    RetreatCalendarItem,
    RetreatCalendarResponse,
    RoomAvailabilityResponse,
    RoomTypeAvailabilityResponse,
)
from .booking import BookingCancel, BookingCreate, BookingResponse
from .recurring_rule import (
    RecurringRuleCreate,
    RecurringRuleDeleteResponse,
    RecurringRuleResponse,
    RecurringRuleUpdate,
)
from .schedule import (
    GridCellUpdate,
    OccurrenceResponse,
    ScheduleResponse,
    StudioConflictResponse,
    WeeklyGridResponse,
    WeeklyGridUpdate,
)
from .session import (
    MaterializeRequest,
    MaterializeResponse,
    SessionAvailabilityResponse,
    SessionListResponse,
    SessionResponse,
    SessionUpdate,
)

__all__ = [
    # Availability
    "RetreatCalendarDay",
    "RetreatCalendarItem",
    "RetreatCalendarResponse",
    "RoomAvailabilityResponse",
    "RoomTypeAvailabilityResponse",
    # Bookings
    "BookingCancel",
    "BookingCreate",
    "BookingResponse",
    # Recurring rules
    "RecurringRuleCreate",
    "RecurringRuleDeleteResponse",
    "RecurringRuleResponse",
    "RecurringRuleUpdate",
    # Schedule
    "GridCellUpdate",
    "OccurrenceResponse",
    "ScheduleResponse",
    "StudioConflictResponse",
    "WeeklyGridResponse",
    "WeeklyGridUpdate",
    # Sessions
    "MaterializeRequest",
    "MaterializeResponse",
    "SessionAvailabilityResponse",
    "SessionListResponse",
    "SessionResponse",
    "SessionUpdate",
]
