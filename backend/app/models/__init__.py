"""
Database models for the resort platform.

This module exports all SQLAlchemy models used in the application.
The models are organized by functionality:
- Catalog: workshops, room types, retreats, treatments
- Scheduling: recurring rules, the manual weekly grid, materialized sessions
- Bookings
"""

from .booking import ACTIVE_BOOKING_STATUSES, Booking, BookingStatus, BookingType
from .recurring_rule import RecurringRule
from .retreat import Retreat
from .room_type import RoomType
from .session import ClassSession, OccurrenceSource, SessionStatus
from .treatment import Treatment
from .weekly_grid import WeeklyGrid
from .workshop import Workshop

__all__ = [
    "ACTIVE_BOOKING_STATUSES",
    "Booking",
    "BookingStatus",
    "BookingType",
    "ClassSession",
    "OccurrenceSource",
    "RecurringRule",
    "Retreat",
    "RoomType",
    "SessionStatus",
    "Treatment",
    "WeeklyGrid",
    "Workshop",
]
