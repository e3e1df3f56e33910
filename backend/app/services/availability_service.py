# backend/app/services/availability_service.py
"""
Availability Service for the resort platform.

Pure read computations:
- room availability over a half-open stay [check_in, check_out)
- seats left in a materialized class session
- a per-day retreat calendar

Nothing here locks or writes. The booking flow re-checks availability under
its own lock at write time, so these figures are advisory.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date, timedelta
from decimal import Decimal
import logging
import math
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..core.exceptions import NotFoundException, ValidationException
from ..models.room_type import RoomType
from ..models.session import SessionStatus
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)

MAX_CALENDAR_DAYS = 366


@dataclass(frozen=True)
class RoomTypeAvailability:
    id: str
    slug: str
    title: str
    total_stock: int
    occupied_units: int
    available_units: int
    max_guests: Optional[int] = None
    price_base: Optional[Decimal] = None
    currency: str = "USD"


@dataclass
class RoomAvailabilityResult:
    check_in: date
    check_out: date
    guests: int
    rooms: int
    available_units: int = 0
    summary: Dict[str, RoomTypeAvailability] = field(default_factory=dict)
    available_rooms: List[RoomTypeAvailability] = field(default_factory=list)
    resort_closed: bool = False
    message: str = ""

    @property
    def nights(self) -> int:
        return (self.check_out - self.check_in).days


@dataclass(frozen=True)
class SessionAvailability:
    session_id: str
    capacity: int
    booked: int
    remaining: int
    status: str


def stay_nights(check_in: date, check_out: date) -> int:
    """
    Number of nights in [check_in, check_out).

    Raises:
        ValidationException: If check_in is not strictly before check_out
    """
    if check_in >= check_out:
        raise ValidationException(
            "Check-out must be after check-in",
            code="INVALID_STAY",
            details={"check_in": check_in.isoformat(), "check_out": check_out.isoformat()},
        )
    return (check_out - check_in).days


def session_availability(session: Any) -> SessionAvailability:
    """remaining = max(0, capacity - booked); full at zero, cancelled passes through."""
    capacity = int(session.capacity or 0)
    booked = int(session.booked_count or 0)
    remaining = max(0, capacity - booked)
    if session.status == SessionStatus.CANCELLED.value:
        status = SessionStatus.CANCELLED.value
    elif remaining == 0:
        status = SessionStatus.FULL.value
    else:
        status = SessionStatus.SCHEDULED.value
    return SessionAvailability(
        session_id=session.id,
        capacity=capacity,
        booked=booked,
        remaining=remaining,
        status=status,
    )


class AvailabilityService(BaseService):
    """
    Service layer for availability reads.
    """

    def __init__(self, db: Session):
        super().__init__(db)
        self.room_type_repository = RepositoryFactory.create_room_type_repository(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.retreat_repository = RepositoryFactory.create_retreat_repository(db)
        self.session_repository = RepositoryFactory.create_session_repository(db)

    @BaseService.measure_operation("check_room_availability")
    def check_room_availability(
        self,
        check_in: date,
        check_out: date,
        guests: int = 1,
        rooms: int = 1,
        room_type: Optional[str] = None,
    ) -> RoomAvailabilityResult:
        """
        Free room units for a stay.

        Args:
            check_in: Arrival day
            check_out: Departure day (not a night of the stay)
            guests: Total guests
            rooms: Units requested; each must fit ceil(guests / rooms) guests
            room_type: Optional slug or id restricting the search

        Returns:
            RoomAvailabilityResult; ``available_rooms`` stays empty when fewer
            than ``rooms`` units are free overall

        Raises:
            ValidationException: On an empty/inverted stay or non-positive counts
            NotFoundException: If ``room_type`` matches nothing
        """
        stay_nights(check_in, check_out)
        if guests < 1 or rooms < 1:
            raise ValidationException(
                "guests and rooms must be at least 1",
                code="INVALID_PARTY",
                details={"guests": guests, "rooms": rooms},
            )

        result = RoomAvailabilityResult(
            check_in=check_in, check_out=check_out, guests=guests, rooms=rooms
        )

        closing = self.retreat_repository.find_closing_retreat(check_in, check_out)
        if closing is not None:
            result.resort_closed = True
            result.message = f"The resort is closed for {closing.name} in these dates."
            logger.info(
                "Room availability blocked by closed retreat",
                extra={"retreat_id": closing.id, "check_in": str(check_in), "check_out": str(check_out)},
            )
            return result

        if room_type and self.room_type_repository.get_by_ref(room_type) is None:
            raise NotFoundException(f"Room type '{room_type}' not found", code="ROOM_TYPE_NOT_FOUND")

        per_room = math.ceil(guests / rooms)
        types = self.room_type_repository.find_bookable(per_room, ref=room_type)
        occupancy = self.booking_repository.count_room_occupancy(
            [t.id for t in types], check_in, check_out
        )

        for room in types:
            result.summary[room.slug] = self._summarize(room, occupancy.get(room.id, 0))

        result.available_units = sum(s.available_units for s in result.summary.values())
        if result.available_units < rooms:
            result.message = (
                f"Only {result.available_units} units available; you requested {rooms}."
            )
            return result

        result.available_rooms = [s for s in result.summary.values() if s.available_units > 0]
        result.message = f"Found {result.available_units} units available."
        return result

    @staticmethod
    def _summarize(room: RoomType, occupied: int) -> RoomTypeAvailability:
        total = max(0, int(room.stock or 0))
        occupied = max(0, int(occupied or 0))
        return RoomTypeAvailability(
            id=room.id,
            slug=room.slug,
            title=room.title,
            total_stock=total,
            occupied_units=occupied,
            available_units=max(0, total - occupied),
            max_guests=room.max_guests,
            price_base=room.price_base,
            currency=room.currency or "USD",
        )

    @BaseService.measure_operation("check_session_availability")
    def check_session_availability(self, session_id: str) -> SessionAvailability:
        """
        Seats left in a session.

        Raises:
            NotFoundException: If the session does not exist
        """
        session = self.session_repository.get_by_id(session_id, load_relationships=False)
        if session is None:
            raise NotFoundException(f"Session {session_id} not found", code="SESSION_NOT_FOUND")
        return session_availability(session)

    def get_retreat_calendar(self, date_from: date, date_to: date) -> Dict[str, Any]:
        """
        Active retreats listed under every day they run in [date_from, date_to].

        Returns:
            {"from", "to", "days": [{"date", "items": [...]}, ...]} with one
            entry per day, empty days included
        """
        if date_from > date_to:
            raise ValidationException("'from' must be on or before 'to'", code="INVALID_WINDOW")
        if (date_to - date_from).days >= MAX_CALENDAR_DAYS:
            raise ValidationException(
                f"Calendar range cannot exceed {MAX_CALENDAR_DAYS} days", code="INVALID_WINDOW"
            )

        days: Dict[date, List[Dict[str, Any]]] = {}
        current = date_from
        while current <= date_to:
            days[current] = []
            current += timedelta(days=1)

        for retreat in self.retreat_repository.list_in_range(date_from, date_to):
            item = {
                "id": retreat.id,
                "name": retreat.name,
                "type": retreat.type,
                "price": retreat.price,
                "sold_out": bool(retreat.sold_out),
                "is_closed": bool(retreat.is_closed),
            }
            day = max(retreat.start_date, date_from)
            last = min(retreat.end_date, date_to)
            while day <= last:
                days[day].append(dict(item))
                day += timedelta(days=1)

        return {
            "from": date_from,
            "to": date_to,
            "days": [{"date": day, "items": items} for day, items in days.items()],
        }


def availability_to_dict(result: RoomAvailabilityResult) -> Dict[str, Any]:
    data = asdict(result)
    data["nights"] = result.nights
    return data
