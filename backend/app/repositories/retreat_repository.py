# backend/app/repositories/retreat_repository.py
"""
Retreat Repository for the resort platform.

``capacity`` on a retreat is the remaining seat pool. Like session seats it
is only changed through the conditional updates below.
"""

from datetime import date
from typing import List, Optional

from sqlalchemy import case, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.util import identity_key

from ..core.exceptions import RepositoryException
from ..models.retreat import Retreat
from .base_repository import BaseRepository


class RetreatRepository(BaseRepository[Retreat]):
    def __init__(self, db: Session):
        super().__init__(db, Retreat)

    def find_closing_retreat(self, check_in: date, check_out: date) -> Optional[Retreat]:
        """First closed retreat whose dates intersect [check_in, check_out)."""
        try:
            return (
                self.db.query(Retreat)
                .filter(
                    Retreat.is_closed.is_(True),
                    Retreat.start_date < check_out,
                    Retreat.end_date > check_in,
                )
                .order_by(Retreat.start_date)
                .first()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error checking closed retreats: {str(e)}")
            raise RepositoryException(f"Failed to check closed retreats: {str(e)}")

    def list_in_range(self, range_start: date, range_end: date) -> List[Retreat]:
        """Active retreats touching [range_start, range_end] (inclusive)."""
        query = (
            self.db.query(Retreat)
            .filter(
                Retreat.is_active.is_(True),
                Retreat.start_date <= range_end,
                Retreat.end_date >= range_start,
            )
            .order_by(Retreat.start_date, Retreat.name)
        )
        return self._execute_query(query)

    def reserve_seats(self, retreat_id: str, seats: int) -> bool:
        """
        Atomically take ``seats`` from the pool if enough remain.

        Marks the retreat sold out when the pool hits zero.
        """
        remaining = Retreat.capacity - seats
        stmt = (
            update(Retreat)
            .where(
                Retreat.id == retreat_id,
                Retreat.is_closed.is_(False),
                Retreat.capacity >= seats,
            )
            .values(
                capacity=remaining,
                sold_out=case((remaining <= 0, True), else_=Retreat.sold_out),
            )
            .execution_options(synchronize_session=False)
        )
        return self._execute_counter_update(stmt, retreat_id) == 1

    def release_seats(self, retreat_id: str, seats: int) -> bool:
        """Atomically return ``seats`` to the pool and clear the sold-out flag."""
        stmt = (
            update(Retreat)
            .where(Retreat.id == retreat_id)
            .values(capacity=Retreat.capacity + seats, sold_out=False)
            .execution_options(synchronize_session=False)
        )
        return self._execute_counter_update(stmt, retreat_id) == 1

    def _execute_counter_update(self, stmt, retreat_id: str) -> int:
        try:
            result = self.db.execute(stmt)
        except SQLAlchemyError as e:
            self.logger.error(f"Error updating seat pool for retreat {retreat_id}: {str(e)}")
            raise RepositoryException(f"Failed to update retreat capacity: {str(e)}")
        cached = self.db.identity_map.get(identity_key(Retreat, retreat_id))
        if cached is not None:
            self.db.expire(cached, ["capacity", "sold_out"])
        return int(result.rowcount or 0)
