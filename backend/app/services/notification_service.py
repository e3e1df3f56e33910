# backend/app/services/notification_service.py
"""
Notification Service for the resort platform.

Outbound guest messaging is owned by another system. This service is the
seam the booking flow talks to: it receives a confirmed booking and hands
it off. The default implementation only logs the hand-off.

Callers treat every method as fire-and-forget; BookingService logs and
swallows anything raised here so a messaging outage never fails a booking.
"""

import logging
from typing import Protocol

from ..models.booking import Booking

logger = logging.getLogger(__name__)


class BookingNotifier(Protocol):
    def send_booking_confirmation(self, booking: Booking) -> None:
        ...

    def send_booking_cancellation(self, booking: Booking) -> None:
        ...


class NotificationService:
    """Log-only notifier used unless a real sender is injected."""

    def send_booking_confirmation(self, booking: Booking) -> None:
        logger.info(
            f"Booking confirmation queued for {booking.booking_number}",
            extra={
                "booking_id": booking.id,
                "booking_type": booking.booking_type,
                "guest_email": booking.guest_email,
            },
        )

    def send_booking_cancellation(self, booking: Booking) -> None:
        logger.info(
            f"Booking cancellation notice queued for {booking.booking_number}",
            extra={"booking_id": booking.id, "booking_type": booking.booking_type},
        )
