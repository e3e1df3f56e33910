# backend/app/models/booking.py
"""
Booking model for the resort platform.

A booking reserves one of four kinds of inventory:
- room: a unit of a RoomType for [check_in_date, check_out_date)
- workshop: seats in a materialized class session
- retreat: seats in a retreat's pool
- treatment: a spa treatment on a given date

Exactly one shape of target fields is populated per type. Bookings are
never hard-deleted once committed; cancellation is a status change.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from sqlalchemy import CheckConstraint, Column, Date, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship
import ulid

from ..database import Base
from .types import TimestampMixin, UTCDateTime


class BookingStatus(str, Enum):
    """Booking lifecycle statuses."""

    PENDING = "Pending"  # Default - awaiting confirmation
    CONFIRMED = "Confirmed"
    CANCELLED = "Cancelled"  # Terminal


class BookingType(str, Enum):
    """Kind of inventory a booking reserves."""

    ROOM = "room"
    WORKSHOP = "workshop"
    RETREAT = "retreat"
    TREATMENT = "treatment"


# Statuses that hold inventory
ACTIVE_BOOKING_STATUSES = (BookingStatus.PENDING.value, BookingStatus.CONFIRMED.value)


def generate_booking_number() -> str:
    """Short human-readable reference, e.g. ``RS-251004-7K3QZD``."""
    now = datetime.now(timezone.utc)
    return f"RS-{now:%y%m%d}-{str(ulid.ULID())[-6:]}"


class Booking(TimestampMixin, Base):
    """Reservation of resort inventory by a guest."""

    __tablename__ = "bookings"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    booking_number = Column(
        String(32), nullable=False, unique=True, index=True, default=generate_booking_number
    )
    booking_type = Column(String(20), nullable=False, index=True)
    item_id = Column(String(26), nullable=False, index=True)
    session_id = Column(String(26), ForeignKey("sessions.id"), nullable=True, index=True)

    # Target dates; which ones are set depends on booking_type
    check_in_date = Column(Date, nullable=True)
    check_out_date = Column(Date, nullable=True)
    booking_date = Column(Date, nullable=True)

    guest_count = Column(Integer, nullable=False, default=1)
    units = Column(Integer, nullable=False, default=1)
    guest_name = Column(String(200), nullable=False)
    guest_email = Column(String(254), nullable=False, index=True)
    guest_phone = Column(String(40), nullable=True)
    user_id = Column(String(64), nullable=True, index=True)

    status = Column(String(20), nullable=False, default=BookingStatus.PENDING.value, index=True)
    total_price = Column(Numeric(10, 2), nullable=False, default=0)
    notes = Column(Text, nullable=True)

    confirmed_at = Column(UTCDateTime(), nullable=True)
    cancelled_at = Column(UTCDateTime(), nullable=True)
    cancellation_reason = Column(Text, nullable=True)

    session = relationship("ClassSession", lazy="joined")

    __table_args__ = (
        CheckConstraint(
            "status IN ('Pending', 'Confirmed', 'Cancelled')",
            name="ck_bookings_status",
        ),
        CheckConstraint(
            "booking_type IN ('room', 'workshop', 'retreat', 'treatment')",
            name="ck_bookings_type",
        ),
        CheckConstraint("guest_count > 0", name="ck_bookings_guest_count_positive"),
        CheckConstraint("units > 0", name="ck_bookings_units_positive"),
        CheckConstraint("total_price >= 0", name="ck_bookings_price_non_negative"),
        CheckConstraint(
            "check_in_date IS NULL OR check_out_date IS NULL OR check_in_date < check_out_date",
            name="ck_bookings_stay_order",
        ),
        Index(
            "ix_bookings_room_overlap",
            "booking_type",
            "item_id",
            "status",
            "check_in_date",
            "check_out_date",
        ),
    )

    def __init__(self, **kwargs: Any) -> None:
        """Initialize as Pending unless told otherwise."""
        super().__init__(**kwargs)
        if not self.status:
            self.status = BookingStatus.PENDING.value
        if not self.booking_number:
            self.booking_number = generate_booking_number()

    def __repr__(self) -> str:
        return (
            f"<Booking {self.id}: {self.booking_type}={self.item_id}, "
            f"guests={self.guest_count}, status={self.status}>"
        )

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_BOOKING_STATUSES
