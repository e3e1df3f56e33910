# backend/app/repositories/booking_repository.py
"""
Booking Repository for the resort platform.

Holds the room overlap query. Room occupancy is never stored: it is always
derived from Pending/Confirmed room bookings whose stay intersects the
requested half-open range [check_in, check_out).
"""

from datetime import date
from typing import Any, Dict, Iterable, Optional, Sequence

from sqlalchemy import func, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.util import identity_key

from ..core.exceptions import RepositoryException
from ..models.booking import ACTIVE_BOOKING_STATUSES, Booking, BookingType
from .base_repository import BaseRepository


class BookingRepository(BaseRepository[Booking]):
    def __init__(self, db: Session):
        super().__init__(db, Booking)

    def get_by_number(self, booking_number: str) -> Optional[Booking]:
        return self.find_one_by(booking_number=booking_number)

    def count_room_occupancy(
        self,
        room_type_ids: Iterable[str],
        check_in: date,
        check_out: date,
        exclude_booking_id: Optional[str] = None,
    ) -> Dict[str, int]:
        """
        Units held per room type over [check_in, check_out).

        A stay that checks out on day X does not overlap one checking in on day X.

        Returns:
            Mapping room_type_id -> occupied units (types with none are omitted)
        """
        ids = [i for i in set(room_type_ids) if i]
        if not ids:
            return {}
        try:
            query = self.db.query(Booking.item_id, func.coalesce(func.sum(Booking.units), 0)).filter(
                Booking.booking_type == BookingType.ROOM.value,
                Booking.item_id.in_(ids),
                Booking.status.in_(ACTIVE_BOOKING_STATUSES),
                Booking.check_in_date < check_out,
                Booking.check_out_date > check_in,
            )
            if exclude_booking_id:
                query = query.filter(Booking.id != exclude_booking_id)
            rows = query.group_by(Booking.item_id).all()
        except SQLAlchemyError as e:
            self.logger.error(f"Error counting room occupancy: {str(e)}")
            raise RepositoryException(f"Failed to count room occupancy: {str(e)}")
        return {item_id: int(units or 0) for item_id, units in rows}

    def transition_status(
        self,
        booking_id: str,
        from_statuses: Sequence[str],
        to_status: str,
        **values: Any,
    ) -> bool:
        """
        Move a booking to ``to_status`` only if it is currently in ``from_statuses``.

        Two concurrent callers cannot both win the same transition, so the
        counter reversal that follows a cancel runs at most once.

        Returns:
            True when this call performed the transition
        """
        stmt = (
            update(Booking)
            .where(Booking.id == booking_id, Booking.status.in_(list(from_statuses)))
            .values(status=to_status, **values)
            .execution_options(synchronize_session=False)
        )
        try:
            result = self.db.execute(stmt)
        except SQLAlchemyError as e:
            self.logger.error(f"Error moving booking {booking_id} to {to_status}: {str(e)}")
            raise RepositoryException(f"Failed to update booking status: {str(e)}")
        cached = self.db.identity_map.get(identity_key(Booking, booking_id))
        if cached is not None:
            self.db.expire(cached)
        return int(result.rowcount or 0) == 1
