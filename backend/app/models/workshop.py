# backend/app/models/workshop.py
"""
Workshop catalog model.

A workshop is a bookable class type (yoga, sound healing, ...). The
scheduling engine only reads from it: duration drives occurrence length and
capacity seeds new sessions.
"""

from sqlalchemy import Boolean, CheckConstraint, Column, Integer, Numeric, String, Text
import ulid

from ..database import Base
from .types import TimestampMixin


class Workshop(TimestampMixin, Base):
    """Class catalog entry referenced by recurring rules, grid cells and sessions."""

    __tablename__ = "workshops"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    slug = Column(String(120), nullable=False, unique=True, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    duration_minutes = Column(Integer, nullable=True)
    capacity = Column(Integer, nullable=False, default=12)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    currency = Column(String(3), nullable=False, default="USD")
    is_active = Column(Boolean, nullable=False, default=True)

    __table_args__ = (
        CheckConstraint("capacity > 0", name="ck_workshops_capacity_positive"),
        CheckConstraint("price >= 0", name="ck_workshops_price_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<Workshop {self.slug}: {self.title}>"
