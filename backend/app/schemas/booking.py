# backend/app/schemas/booking.py
"""
Booking schemas for the resort platform.

One request shape covers all four booking types. Which target fields are
required depends on ``booking_type``; the request validator rejects
combinations that mix shapes so the service receives exactly one of:

- room: item_id (room type slug or id) + check_in + check_out
- workshop: session_id
- retreat: item_id (+ optional booking_date, defaults to the retreat start)
- treatment: item_id + booking_date
"""

from datetime import date, datetime
from typing import Optional

from pydantic import ConfigDict, EmailStr, Field, field_validator, model_validator

from ..models.booking import BookingStatus, BookingType
from .base import Money, StandardizedModel
from ._strict_base import StrictRequestModel

_SHAPE_FIELDS = {
    BookingType.ROOM.value: {"item_id", "check_in", "check_out"},
    BookingType.WORKSHOP.value: {"session_id"},
    BookingType.RETREAT.value: {"item_id"},
    BookingType.TREATMENT.value: {"item_id", "booking_date"},
}
_TARGET_FIELDS = {"session_id", "check_in", "check_out", "booking_date"}


class BookingCreate(StrictRequestModel):
    """Create a booking for a room, class session, retreat or treatment."""

    booking_type: BookingType
    item_id: Optional[str] = Field(None, max_length=120, description="Room type, retreat or treatment")
    session_id: Optional[str] = Field(None, max_length=26, description="Materialized class session")
    check_in: Optional[date] = None
    check_out: Optional[date] = None
    booking_date: Optional[date] = None
    guest_count: int = Field(1, ge=1, le=50)
    units: int = Field(1, ge=1, le=20, description="Rooms of the chosen type (room bookings only)")
    guest_name: str = Field(..., min_length=1, max_length=200)
    guest_email: EmailStr
    guest_phone: Optional[str] = Field(None, max_length=40)
    user_id: Optional[str] = Field(None, max_length=64, description="Opaque auth identity")
    notes: Optional[str] = Field(None, max_length=2000)

    @field_validator("guest_name")
    @classmethod
    def strip_guest_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("guest_name must not be blank")
        return v

    @model_validator(mode="after")
    def check_target_shape(self) -> "BookingCreate":
        booking_type = BookingType(self.booking_type).value
        required = _SHAPE_FIELDS[booking_type]
        missing = sorted(name for name in required if getattr(self, name) in (None, ""))
        if missing:
            raise ValueError(f"{booking_type} bookings require: {', '.join(missing)}")

        allowed = required | ({"booking_date"} if booking_type == BookingType.RETREAT.value else set())
        unexpected = sorted(
            name for name in _TARGET_FIELDS - allowed if getattr(self, name) is not None
        )
        if unexpected:
            raise ValueError(f"{booking_type} bookings do not accept: {', '.join(unexpected)}")

        if booking_type != BookingType.ROOM.value and self.units != 1:
            raise ValueError("units only applies to room bookings")
        return self


class BookingCancel(StrictRequestModel):
    reason: Optional[str] = Field(None, max_length=500)


class BookingResponse(StandardizedModel):
    """Booking as returned by the API."""

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)

    id: str
    booking_number: str
    booking_type: BookingType
    item_id: str
    session_id: Optional[str] = None
    check_in_date: Optional[date] = None
    check_out_date: Optional[date] = None
    booking_date: Optional[date] = None
    guest_count: int
    units: int
    guest_name: str
    guest_email: str
    guest_phone: Optional[str] = None
    user_id: Optional[str] = None
    status: BookingStatus
    total_price: Money
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    confirmed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
