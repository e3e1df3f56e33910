# backend/app/repositories/weekly_grid_repository.py
"""
WeeklyGrid Repository for the resort platform.

Exposes the manual grid as an immutable value: ``get`` returns a
WeeklyGridTemplate and ``save`` replaces the stored grid wholesale.
"""

from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.weekly_grid import WeeklyGrid
from ..services.scheduling.manual_grid import DEFAULT_WEEK_KEY, WeeklyGridTemplate
from .base_repository import BaseRepository


class WeeklyGridRepository(BaseRepository[WeeklyGrid]):
    def __init__(self, db: Session):
        super().__init__(db, WeeklyGrid)

    def _get_row(self, week_key: str) -> Optional[WeeklyGrid]:
        try:
            return self.db.get(WeeklyGrid, week_key)
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading weekly grid {week_key}: {str(e)}")
            raise RepositoryException(f"Failed to load weekly grid: {str(e)}")

    def get(self, week_key: str = DEFAULT_WEEK_KEY) -> Optional[WeeklyGridTemplate]:
        """Return the stored grid, or None when nothing was saved for this key."""
        row = self._get_row(week_key)
        if row is None:
            return None
        return WeeklyGridTemplate.from_mapping(row.grid, week_key=week_key)

    def save(
        self,
        week_key: str,
        grid: WeeklyGridTemplate,
        updated_by: Optional[str] = None,
    ) -> WeeklyGridTemplate:
        """Replace the stored grid for ``week_key``. Does not commit."""
        payload = grid.to_mapping()
        try:
            row = self._get_row(week_key)
            if row is None:
                row = WeeklyGrid(week_key=week_key, grid=payload, updated_by=updated_by)
                self.db.add(row)
            else:
                # Assign a fresh dict so the JSON column is marked dirty
                row.grid = payload
                row.updated_by = updated_by
            self.db.flush()
        except SQLAlchemyError as e:
            self.logger.error(f"Error saving weekly grid {week_key}: {str(e)}")
            raise RepositoryException(f"Failed to save weekly grid: {str(e)}") from e
        return WeeklyGridTemplate.from_mapping(payload, week_key=week_key)
