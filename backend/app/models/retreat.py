# backend/app/models/retreat.py
"""
Retreat model.

A retreat is a dated program with a seat pool. ``capacity`` holds the seats
still available and is decremented by the booking flow with a conditional
update. A retreat flagged ``is_closed`` closes the whole resort for its
dates, which blocks room availability.
"""

from sqlalchemy import Boolean, CheckConstraint, Column, Date, Index, Integer, Numeric, String, Text
import ulid

from ..database import Base
from .types import TimestampMixin


class Retreat(TimestampMixin, Base):
    __tablename__ = "retreats"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    name = Column(String(200), nullable=False)
    type = Column(String(50), nullable=True)
    description = Column(Text, nullable=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    capacity = Column(Integer, nullable=False, default=0)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    is_closed = Column(Boolean, nullable=False, default=False)
    sold_out = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)

    __table_args__ = (
        CheckConstraint("capacity >= 0", name="ck_retreats_capacity_non_negative"),
        CheckConstraint("start_date <= end_date", name="ck_retreats_date_order"),
        Index("ix_retreats_closed_dates", "is_closed", "start_date", "end_date"),
    )

    def __repr__(self) -> str:
        return (
            f"<Retreat {self.id}: {self.name} {self.start_date}..{self.end_date}, "
            f"capacity={self.capacity}, closed={self.is_closed}>"
        )
