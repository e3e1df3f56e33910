# backend/app/models/treatment.py
"""Spa treatment catalog entry (bookable by date, no capacity tracking)."""

from sqlalchemy import Boolean, Column, Integer, Numeric, String
import ulid

from ..database import Base
from .types import TimestampMixin


class Treatment(TimestampMixin, Base):
    __tablename__ = "treatments"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    title = Column(String(200), nullable=False)
    duration_minutes = Column(Integer, nullable=True)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<Treatment {self.id}: {self.title}>"
