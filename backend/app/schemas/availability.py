# backend/app/schemas/availability.py
"""
Availability schemas: room stock for a stay and the retreat calendar.
"""

from datetime import date
from typing import Dict, List, Optional

from pydantic import Field

from .base import Money, StandardizedModel


class RoomTypeAvailabilityResponse(StandardizedModel):
    id: str
    slug: str
    title: str
    total_stock: int
    occupied_units: int
    available_units: int
    max_guests: Optional[int] = None
    price_base: Optional[Money] = None
    currency: str = "USD"


class RoomAvailabilityResponse(StandardizedModel):
    check_in: date
    check_out: date
    nights: int
    guests: int
    rooms: int
    available_units: int
    resort_closed: bool = False
    summary: Dict[str, RoomTypeAvailabilityResponse] = Field(default_factory=dict)
    available_rooms: List[RoomTypeAvailabilityResponse] = Field(default_factory=list)
    message: str


class RetreatCalendarItem(StandardizedModel):
    id: str
    name: str
    type: Optional[str] = None
    price: Money
    sold_out: bool = False
    is_closed: bool = False


class RetreatCalendarDay(StandardizedModel):
    date: date
    items: List[RetreatCalendarItem] = Field(default_factory=list)


class RetreatCalendarResponse(StandardizedModel):
    window_from: date = Field(..., alias="from")
    window_to: date = Field(..., alias="to")
    days: List[RetreatCalendarDay]
