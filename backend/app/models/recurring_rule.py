# backend/app/models/recurring_rule.py
"""
Recurring class rule model.

A rule says "this workshop runs in this studio at HH:MM on these weekdays,
between effective_from and effective_to". The rrule column keeps the
RFC 5545 recurrence string (``FREQ=WEEKLY;BYDAY=MO,WE``); exception dates
are individual days the class does not run.
"""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import relationship
import ulid

from ..database import Base
from .types import StringArrayType, TimestampMixin


class RecurringRule(TimestampMixin, Base):
    """Admin-managed weekly recurrence for a workshop."""

    __tablename__ = "recurring_rules"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    workshop_id = Column(String(26), ForeignKey("workshops.id"), nullable=False, index=True)
    studio = Column(String(100), nullable=False, default="Studio A")
    timezone = Column(String(64), nullable=False, default="Asia/Jerusalem")
    start_time = Column(String(5), nullable=False)  # "HH:MM"
    duration_minutes = Column(Integer, nullable=False, default=60)
    rrule = Column(String(255), nullable=False)
    effective_from = Column(Date, nullable=False)
    effective_to = Column(Date, nullable=True)  # NULL = open-ended
    exceptions = Column(StringArrayType(), nullable=False, default=list)  # ISO dates
    is_active = Column(Boolean, nullable=False, default=True, index=True)

    workshop = relationship("Workshop", lazy="joined")

    __table_args__ = (
        CheckConstraint("duration_minutes > 0", name="ck_recurring_rules_duration_positive"),
        Index("ix_recurring_rules_active_from", "is_active", "effective_from"),
    )

    def __repr__(self) -> str:
        return (
            f"<RecurringRule {self.id}: workshop={self.workshop_id}, studio={self.studio}, "
            f"{self.rrule} @ {self.start_time}>"
        )

    @property
    def workshop_title(self):
        return self.workshop.title if self.workshop is not None else None
