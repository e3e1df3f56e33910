# backend/app/models/weekly_grid.py
"""
Manual weekly grid model.

One row per week key (``"default"`` is the standing template). The grid is
stored as JSON shaped ``{day: {"HH:MM": {studio: workshop_id | ""}}}`` and is
always replaced wholesale.
"""

from sqlalchemy import JSON, Column, String

from ..database import Base
from .types import TimestampMixin


class WeeklyGrid(TimestampMixin, Base):
    __tablename__ = "weekly_grids"

    week_key = Column(String(32), primary_key=True, default="default")
    grid = Column(JSON, nullable=False, default=dict)
    updated_by = Column(String(26), nullable=True)

    def __repr__(self) -> str:
        return f"<WeeklyGrid {self.week_key}>"
