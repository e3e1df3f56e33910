# backend/app/services/booking_service.py
"""
Booking Service for the resort platform.

Handles the booking lifecycle:
- Creating room, workshop, retreat and treatment bookings
- Re-checking availability at write time
- Confirming bookings and notifying guests
- Cancelling bookings and releasing inventory

Capacity is never checked with a read followed by a separate write:
- Room stock is derived from overlapping bookings. The room type is locked
  (Redis mutex plus a row lock where the database supports it) while the
  overlap count is re-read and the booking inserted.
- Session seats and retreat pools move through single conditional UPDATEs.
  If the UPDATE refuses the seats the tentative booking is deleted before
  the conflict is raised, so no orphan booking survives.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
import logging
import math
from typing import Any, Callable, Optional

from sqlalchemy.orm import Session

from ..core.exceptions import (
    BusinessRuleException,
    CapacityConflictException,
    InvalidStateTransitionException,
    NotFoundException,
    ResortClosedException,
    ValidationException,
)
from ..core.inventory_lock import inventory_lock
from ..models.booking import Booking, BookingStatus, BookingType
from ..models.session import SessionStatus
from ..models.treatment import Treatment
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from ..schemas.booking import BookingCreate
from .availability_service import stay_nights
from .base import BaseService
from .notification_service import BookingNotifier, NotificationService

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


def _price(unit_price: Any, quantity: int) -> Decimal:
    return (Decimal(str(unit_price or 0)) * quantity).quantize(CENTS, rounding=ROUND_HALF_UP)


class BookingService(BaseService):
    """
    Service layer for resort bookings.
    """

    def __init__(
        self,
        db: Session,
        notification_service: Optional[BookingNotifier] = None,
    ):
        """
        Initialize booking service.

        Args:
            db: Database session
            notification_service: Optional notifier; defaults to the log-only sender
        """
        super().__init__(db)
        self.notification_service = notification_service or NotificationService()
        self.repository = RepositoryFactory.create_booking_repository(db)
        self.room_type_repository = RepositoryFactory.create_room_type_repository(db)
        self.session_repository = RepositoryFactory.create_session_repository(db)
        self.retreat_repository = RepositoryFactory.create_retreat_repository(db)
        self.treatment_repository = RepositoryFactory.create_base_repository(db, Treatment)

    @BaseService.measure_operation("create_booking")
    def create_booking(self, booking_data: BookingCreate) -> Booking:
        """
        Create a Pending booking after re-checking availability.

        Args:
            booking_data: Validated booking request

        Returns:
            The committed booking

        Raises:
            ValidationException: If the request is inconsistent
            NotFoundException: If the target does not exist or is inactive
            BusinessRuleException: If the target cannot be booked (cancelled session)
            CapacityConflictException: If there is not enough stock or seats left
            ResortClosedException: If a closed retreat covers the stay
        """
        booking_type = BookingType(booking_data.booking_type)
        self.log_operation(
            "create_booking",
            booking_type=booking_type.value,
            item_id=booking_data.item_id,
            session_id=booking_data.session_id,
            guests=booking_data.guest_count,
        )

        handlers: dict[BookingType, Callable[[BookingCreate], Booking]] = {
            BookingType.ROOM: self._create_room_booking,
            BookingType.WORKSHOP: self._create_workshop_booking,
            BookingType.RETREAT: self._create_retreat_booking,
            BookingType.TREATMENT: self._create_treatment_booking,
        }
        try:
            booking = handlers[booking_type](booking_data)
        except CapacityConflictException:
            prometheus_metrics.record_booking_outcome(booking_type.value, "conflict")
            raise

        prometheus_metrics.record_booking_outcome(booking_type.value, "created")
        logger.info(
            f"Booking {booking.booking_number} created",
            extra={
                "booking_id": booking.id,
                "booking_type": booking.booking_type,
                "item_id": booking.item_id,
                "total_price": str(booking.total_price),
            },
        )
        return booking

    def _base_fields(self, booking_data: BookingCreate) -> dict[str, Any]:
        return {
            "guest_count": booking_data.guest_count,
            "guest_name": booking_data.guest_name,
            "guest_email": str(booking_data.guest_email),
            "guest_phone": booking_data.guest_phone,
            "user_id": booking_data.user_id,
            "notes": booking_data.notes,
            "status": BookingStatus.PENDING.value,
        }

    def _create_room_booking(self, booking_data: BookingCreate) -> Booking:
        check_in, check_out = booking_data.check_in, booking_data.check_out
        nights = stay_nights(check_in, check_out)
        units = booking_data.units

        room_type = self.room_type_repository.get_by_ref(booking_data.item_id)
        if room_type is None or not room_type.active:
            raise NotFoundException(
                f"Room type '{booking_data.item_id}' not found", code="ROOM_TYPE_NOT_FOUND"
            )
        per_room = math.ceil(booking_data.guest_count / units)
        if room_type.max_guests and per_room > room_type.max_guests:
            raise ValidationException(
                f"{room_type.title} hosts at most {room_type.max_guests} guests per room",
                code="TOO_MANY_GUESTS",
                details={"max_guests": room_type.max_guests, "guests_per_room": per_room},
            )

        closing = self.retreat_repository.find_closing_retreat(check_in, check_out)
        if closing is not None:
            raise ResortClosedException(
                closing.name, closing.start_date.isoformat(), closing.end_date.isoformat()
            )

        with inventory_lock(f"room_type:{room_type.id}") as acquired:
            if not acquired:
                raise CapacityConflictException(
                    "Another booking for this room type is in progress, please retry",
                    details={"room_type": room_type.slug, "reason": "inventory_busy"},
                )
            with self.transaction():
                locked = self.room_type_repository.lock_for_booking(room_type.id)
                occupied = self.repository.count_room_occupancy(
                    [room_type.id], check_in, check_out
                ).get(room_type.id, 0)
                available = max(0, int(locked.stock or 0) - occupied)
                if available < units:
                    raise CapacityConflictException(
                        f"Only {available} units available; you requested {units}.",
                        details={
                            "room_type": room_type.slug,
                            "available_units": available,
                            "requested_units": units,
                        },
                    )
                booking = self.repository.create(
                    booking_type=BookingType.ROOM.value,
                    item_id=room_type.id,
                    check_in_date=check_in,
                    check_out_date=check_out,
                    units=units,
                    total_price=_price(room_type.price_base, nights * units),
                    **self._base_fields(booking_data),
                )
        return booking

    def _create_workshop_booking(self, booking_data: BookingCreate) -> Booking:
        session = self.session_repository.get_by_id(booking_data.session_id)
        if session is None:
            raise NotFoundException(
                f"Session {booking_data.session_id} not found", code="SESSION_NOT_FOUND"
            )
        workshop = session.workshop
        if workshop is None or not workshop.is_active:
            raise NotFoundException(
                f"Workshop for session {session.id} is not available", code="WORKSHOP_NOT_FOUND"
            )
        if booking_data.item_id and booking_data.item_id not in (workshop.id, workshop.slug):
            raise ValidationException(
                "Session does not belong to the requested workshop",
                code="SESSION_WORKSHOP_MISMATCH",
                details={"session_id": session.id, "workshop_id": workshop.id},
            )
        if session.status == SessionStatus.CANCELLED.value:
            raise BusinessRuleException(
                "This session has been cancelled", code="SESSION_CANCELLED"
            )

        seats = booking_data.guest_count
        with self.transaction():
            booking = self.repository.create(
                booking_type=BookingType.WORKSHOP.value,
                item_id=workshop.id,
                session_id=session.id,
                total_price=_price(workshop.price, seats),
                **self._base_fields(booking_data),
            )
            if not self.session_repository.reserve_seats(session.id, seats):
                self._compensate(booking)
                raise CapacityConflictException(
                    "Not enough seats left in this session",
                    details={
                        "session_id": session.id,
                        "remaining": session.remaining,
                        "requested": seats,
                    },
                )
        return booking

    def _create_retreat_booking(self, booking_data: BookingCreate) -> Booking:
        retreat = self.retreat_repository.get_by_id(booking_data.item_id)
        if retreat is None or not retreat.is_active:
            raise NotFoundException(
                f"Retreat {booking_data.item_id} not found", code="RETREAT_NOT_FOUND"
            )
        if retreat.is_closed:
            raise ResortClosedException(
                retreat.name, retreat.start_date.isoformat(), retreat.end_date.isoformat()
            )

        booking_date = booking_data.booking_date or retreat.start_date
        if not retreat.start_date <= booking_date <= retreat.end_date:
            raise ValidationException(
                "Booking date must fall within the retreat dates",
                code="DATE_OUTSIDE_RETREAT",
                details={
                    "start_date": retreat.start_date.isoformat(),
                    "end_date": retreat.end_date.isoformat(),
                },
            )

        seats = booking_data.guest_count
        with self.transaction():
            booking = self.repository.create(
                booking_type=BookingType.RETREAT.value,
                item_id=retreat.id,
                booking_date=booking_date,
                total_price=_price(retreat.price, seats),
                **self._base_fields(booking_data),
            )
            if not self.retreat_repository.reserve_seats(retreat.id, seats):
                self._compensate(booking)
                raise CapacityConflictException(
                    f"{retreat.name} does not have {seats} seats left",
                    details={"retreat_id": retreat.id, "requested": seats},
                )
        return booking

    def _create_treatment_booking(self, booking_data: BookingCreate) -> Booking:
        treatment = self.treatment_repository.get_by_id(booking_data.item_id)
        if treatment is None or not treatment.is_active:
            raise NotFoundException(
                f"Treatment {booking_data.item_id} not found", code="TREATMENT_NOT_FOUND"
            )
        with self.transaction():
            booking = self.repository.create(
                booking_type=BookingType.TREATMENT.value,
                item_id=treatment.id,
                booking_date=booking_data.booking_date,
                total_price=_price(treatment.price, 1),
                **self._base_fields(booking_data),
            )
        return booking

    def _compensate(self, booking: Booking) -> None:
        """Delete a tentative booking whose counter update was refused."""
        self.repository.delete(booking.id)
        logger.info(
            "Removed tentative booking after capacity refusal",
            extra={"booking_id": booking.id, "booking_type": booking.booking_type},
        )

    @BaseService.measure_operation("confirm_booking")
    def confirm_booking(self, booking_id: str) -> Booking:
        """
        Move a Pending booking to Confirmed and notify the guest.

        Confirming an already confirmed booking returns it unchanged.

        Raises:
            NotFoundException: If the booking does not exist
            InvalidStateTransitionException: If the booking was cancelled
        """
        with self.transaction():
            booking = self._get_or_404(booking_id)
            if booking.status == BookingStatus.CONFIRMED.value:
                return booking
            moved = self.repository.transition_status(
                booking_id,
                [BookingStatus.PENDING.value],
                BookingStatus.CONFIRMED.value,
                confirmed_at=datetime.now(timezone.utc),
            )
            if not moved:
                booking = self._get_or_404(booking_id)
                if booking.status == BookingStatus.CONFIRMED.value:
                    return booking
                raise InvalidStateTransitionException(
                    booking_id, booking.status, BookingStatus.CONFIRMED.value
                )

        booking = self._get_or_404(booking_id)
        prometheus_metrics.record_booking_outcome(booking.booking_type, "confirmed")
        self._notify(self.notification_service.send_booking_confirmation, booking)
        return booking

    @BaseService.measure_operation("cancel_booking")
    def cancel_booking(self, booking_id: str, reason: Optional[str] = None) -> Booking:
        """
        Cancel a booking and give its seats back.

        Cancelling a cancelled booking is a no-op that returns it as is.

        Raises:
            NotFoundException: If the booking does not exist
        """
        with self.transaction():
            booking = self._get_or_404(booking_id)
            if booking.status == BookingStatus.CANCELLED.value:
                logger.info("Booking already cancelled", extra={"booking_id": booking_id})
                return booking
            moved = self.repository.transition_status(
                booking_id,
                [BookingStatus.PENDING.value, BookingStatus.CONFIRMED.value],
                BookingStatus.CANCELLED.value,
                cancelled_at=datetime.now(timezone.utc),
                cancellation_reason=reason,
            )
            if moved:
                self._release_inventory(booking)

        booking = self._get_or_404(booking_id)
        if moved:
            prometheus_metrics.record_booking_outcome(booking.booking_type, "cancelled")
            self.log_operation("cancel_booking", booking_id=booking_id, reason=reason)
            self._notify(self.notification_service.send_booking_cancellation, booking)
        return booking

    def _release_inventory(self, booking: Booking) -> None:
        booking_type = booking.booking_type
        seats = booking.guest_count
        if booking_type == BookingType.WORKSHOP.value and booking.session_id:
            released = self.session_repository.release_seats(booking.session_id, seats)
        elif booking_type == BookingType.RETREAT.value:
            released = self.retreat_repository.release_seats(booking.item_id, seats)
        else:
            # Rooms are derived from the overlap query; treatments hold nothing
            return
        if not released:
            logger.warning(
                "Cancelled booking target no longer exists; nothing released",
                extra={"booking_id": booking.id, "booking_type": booking_type},
            )

    def _notify(self, send: Callable[[Booking], None], booking: Booking) -> None:
        try:
            send(booking)
        except Exception as exc:
            logger.warning(
                f"Notification failed for booking {booking.id}: {str(exc)}",
                extra={"booking_id": booking.id, "error_type": type(exc).__name__},
            )

    def _get_or_404(self, booking_id: str) -> Booking:
        booking = self.repository.get_by_id(booking_id, load_relationships=False)
        if booking is None:
            raise NotFoundException(f"Booking {booking_id} not found", code="BOOKING_NOT_FOUND")
        return booking

    def get_booking(self, booking_id: str) -> Booking:
        return self._get_or_404(booking_id)

    def find_booking_by_reference(self, booking_number: str, guest_email: str) -> Booking:
        """
        Guest lookup by booking number plus the email used to book.

        A wrong email is reported exactly like an unknown number.
        """
        booking = self.repository.get_by_number(booking_number.strip())
        if booking is None or booking.guest_email.lower() != guest_email.strip().lower():
            raise NotFoundException("Booking not found", code="BOOKING_NOT_FOUND")
        return booking
