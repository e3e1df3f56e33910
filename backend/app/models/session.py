# backend/app/models/session.py
"""
Materialized class session model.

Sessions are the persisted form of schedule occurrences. They are keyed by
(workshop_id, studio, start) so re-materializing a window finds the same
rows. ``booked_count`` is a counter owned by the booking flow; the
materializer never writes it.
"""

from datetime import date
from enum import Enum

from sqlalchemy import (
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
import ulid

from ..core.timezone_utils import to_resort_time
from ..database import Base
from .types import TimestampMixin, UTCDateTime


class SessionStatus(str, Enum):
    """Session lifecycle statuses."""

    SCHEDULED = "scheduled"
    FULL = "full"
    CANCELLED = "cancelled"


class OccurrenceSource(str, Enum):
    """Where a schedule occurrence came from."""

    RECURRING = "recurring"
    MANUAL = "manual"


class ClassSession(TimestampMixin, Base):
    """One concrete, bookable run of a workshop."""

    __tablename__ = "sessions"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    workshop_id = Column(String(26), ForeignKey("workshops.id"), nullable=False)
    rule_id = Column(String(26), ForeignKey("recurring_rules.id"), nullable=True)
    studio = Column(String(100), nullable=False)
    start = Column(UTCDateTime(), nullable=False, index=True)
    end = Column(UTCDateTime(), nullable=False)
    timezone = Column(String(64), nullable=False, default="Asia/Jerusalem")
    title = Column(String(200), nullable=True)
    capacity = Column(Integer, nullable=False, default=12)
    booked_count = Column(Integer, nullable=False, default=0)
    status = Column(String(20), nullable=False, default=SessionStatus.SCHEDULED.value, index=True)
    source = Column(String(20), nullable=False, default=OccurrenceSource.RECURRING.value)

    workshop = relationship("Workshop", lazy="joined")

    __table_args__ = (
        UniqueConstraint("workshop_id", "studio", "start", name="uq_sessions_workshop_studio_start"),
        CheckConstraint("capacity > 0", name="ck_sessions_capacity_positive"),
        CheckConstraint(
            "booked_count >= 0 AND booked_count <= capacity", name="ck_sessions_booked_in_range"
        ),
        CheckConstraint(
            "status IN ('scheduled', 'full', 'cancelled')", name="ck_sessions_status"
        ),
        CheckConstraint("source IN ('recurring', 'manual')", name="ck_sessions_source"),
        Index("ix_sessions_studio_start", "studio", "start"),
    )

    @property
    def remaining(self) -> int:
        return max(0, (self.capacity or 0) - (self.booked_count or 0))

    @property
    def local_date(self) -> date:
        """Calendar day of the start on the session's own wall clock."""
        return to_resort_time(self.start, self.timezone).date()

    def __repr__(self) -> str:
        return (
            f"<ClassSession {self.id}: workshop={self.workshop_id}, studio={self.studio}, "
            f"start={self.start}, booked={self.booked_count}/{self.capacity}, status={self.status}>"
        )
