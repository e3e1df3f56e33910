# backend/app/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

This module provides factory functions that create service instances
with their required dependencies properly injected.
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from ...services.availability_service import AvailabilityService
from ...services.booking_service import BookingService
from ...services.notification_service import NotificationService
from ...services.recurring_rule_service import RecurringRuleService
from ...services.schedule_service import ScheduleService
from ...services.session_materializer import SessionMaterializer
from .database import get_db


def get_notification_service() -> NotificationService:
    """Get the guest notification sender."""
    return NotificationService()


def get_schedule_service(db: Session = Depends(get_db)) -> ScheduleService:
    return ScheduleService(db)


def get_session_materializer(
    db: Session = Depends(get_db),
    schedule_service: ScheduleService = Depends(get_schedule_service),
) -> SessionMaterializer:
    return SessionMaterializer(db, schedule_service=schedule_service)


def get_availability_service(db: Session = Depends(get_db)) -> AvailabilityService:
    return AvailabilityService(db)


def get_booking_service(
    db: Session = Depends(get_db),
    notification_service: NotificationService = Depends(get_notification_service),
) -> BookingService:
    """
    Get booking service instance with all dependencies.

    Args:
        db: Database session
        notification_service: Sender invoked after confirmation

    Returns:
        BookingService instance
    """
    return BookingService(db, notification_service=notification_service)


def get_recurring_rule_service(db: Session = Depends(get_db)) -> RecurringRuleService:
    return RecurringRuleService(db)
