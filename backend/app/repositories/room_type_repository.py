# backend/app/repositories/room_type_repository.py
"""
RoomType Repository for the resort platform.
"""

from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.room_type import RoomType
from .base_repository import BaseRepository


class RoomTypeRepository(BaseRepository[RoomType]):
    def __init__(self, db: Session):
        super().__init__(db, RoomType)

    def get_by_ref(self, ref: str) -> Optional[RoomType]:
        """Resolve a room type by slug or by id."""
        try:
            return (
                self.db.query(RoomType)
                .filter(or_(RoomType.slug == ref, RoomType.id == ref))
                .first()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error resolving room type {ref}: {str(e)}")
            raise RepositoryException(f"Failed to resolve room type: {str(e)}")

    def find_bookable(
        self, min_guests_per_room: int = 1, ref: Optional[str] = None
    ) -> List[RoomType]:
        """
        Active room types able to host ``min_guests_per_room`` guests per unit.

        Types without a max_guests value are treated as unrestricted.
        """
        query = self.db.query(RoomType).filter(
            RoomType.active.is_(True),
            or_(RoomType.max_guests.is_(None), RoomType.max_guests >= min_guests_per_room),
        )
        if ref:
            query = query.filter(or_(RoomType.slug == ref, RoomType.id == ref))
        return self._execute_query(query.order_by(RoomType.slug))

    def lock_for_booking(self, room_type_id: str) -> Optional[RoomType]:
        """
        Load a room type, taking a row lock where the backend supports it.

        Concurrent room bookings for the same type serialize on this row, so
        the overlap count read afterwards stays valid until commit.
        """
        try:
            query = self.db.query(RoomType).filter(RoomType.id == room_type_id)
            if self.supports_row_locks:
                query = query.with_for_update()
            return query.first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error locking room type {room_type_id}: {str(e)}")
            raise RepositoryException(f"Failed to lock room type: {str(e)}")
