# backend/app/models/room_type.py
"""
Room type model.

Rooms are sold as interchangeable units of a type. ``stock`` is the number
of physical units; free units for a date range are always derived from
overlapping bookings and never stored.
"""

from sqlalchemy import Boolean, CheckConstraint, Column, Integer, Numeric, String, Text
import ulid

from ..database import Base
from .types import TimestampMixin


class RoomType(TimestampMixin, Base):
    __tablename__ = "room_types"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    slug = Column(String(120), nullable=False, unique=True, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    max_guests = Column(Integer, nullable=True)
    price_base = Column(Numeric(10, 2), nullable=True)
    currency = Column(String(3), nullable=False, default="USD")
    stock = Column(Integer, nullable=False, default=1)
    active = Column(Boolean, nullable=False, default=True, index=True)

    __table_args__ = (
        CheckConstraint("stock >= 0", name="ck_room_types_stock_non_negative"),
        CheckConstraint("max_guests IS NULL OR max_guests > 0", name="ck_room_types_max_guests"),
    )

    def __repr__(self) -> str:
        return f"<RoomType {self.slug}: stock={self.stock}, active={self.active}>"
